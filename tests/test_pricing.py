"""Unit tests for the trip fare engine."""

from datetime import datetime, timedelta, timezone

import pytest

from factories import booking, solo_ride
from uturn.domain.pricing import (
    FareInputs,
    SoloFare,
    VendorFare,
    coerce_amount,
    quote_fare,
    round_fare,
    settle_fare,
    trip_days,
)

START = datetime(2026, 11, 1, 9, 0, tzinfo=timezone.utc)


class TestVendorFare:
    def test_one_way(self):
        job = booking(trip_type="oneWay")
        assert VendorFare().calculate(job, FareInputs(distance_km=52)) == 930  # 150 + 52*15

    def test_round_trip_multiplier(self):
        job = booking(trip_type="round")
        assert VendorFare().calculate(job, FareInputs(distance_km=52)) == 1674  # 930 * 1.8

    def test_rental_multiplier(self):
        job = booking(trip_type="rental", base_fare=100, per_km_rate=10)
        assert VendorFare().calculate(job, FareInputs(distance_km=10)) == 500  # 200 * 2.5

    @pytest.mark.parametrize("trip_type", ["roundTrip", "outstation", "tourPackage"])
    def test_other_trip_types_are_unmultiplied(self, trip_type):
        job = booking(trip_type=trip_type)
        assert VendorFare().calculate(job, FareInputs(distance_km=52)) == 930

    def test_waiting_charges_added(self):
        job = booking(base_fare=500, per_km_rate=0, waiting_charges_per_hour=60)
        inputs = FareInputs(distance_km=0, waiting_mins=30)
        assert VendorFare().calculate(job, inputs) == 530  # 500 + (60/60)*30

    def test_waiting_charges_not_multiplied(self):
        job = booking(trip_type="round", base_fare=100, per_km_rate=0,
                      waiting_charges_per_hour=60)
        inputs = FareInputs(distance_km=0, waiting_mins=30)
        assert VendorFare().calculate(job, inputs) == 210  # 100*1.8 + 30

    def test_extra_charges_coerced_from_string(self):
        job = booking()
        inputs = FareInputs(distance_km=52, extra_charges="70")
        assert VendorFare().calculate(job, inputs) == 1000


class TestSoloFare:
    def test_single_day_allowances(self):
        job = solo_ride(driver_allowance=300, night_allowance=200)
        inputs = FareInputs(distance_km=40, start_time=START, end_time=START + timedelta(hours=5))
        assert SoloFare().calculate(job, inputs) == 1180  # 200 + 480 + 500

    def test_allowances_per_started_day(self):
        job = solo_ride(driver_allowance=300, night_allowance=200)
        inputs = FareInputs(
            distance_km=40, start_time=START, end_time=START + timedelta(days=1, hours=1)
        )
        assert SoloFare().calculate(job, inputs) == 1680  # 680 + 2*500

    def test_no_trip_multiplier(self):
        job = solo_ride(trip_type="round")
        assert SoloFare().calculate(job, FareInputs(distance_km=40)) == 680


class TestHelpers:
    @pytest.mark.parametrize(
        "value, expected",
        [(None, 0.0), ("", 0.0), ("  ", 0.0), ("abc", 0.0), ("12.5", 12.5),
         (40, 40.0), (True, 0.0), ("nan", 0.0)],
    )
    def test_coerce_amount(self, value, expected):
        assert coerce_amount(value) == expected

    def test_round_half_away_from_zero(self):
        assert round_fare(930.5) == 931
        assert round_fare(2.5) == 3  # built-in round() would give 2
        assert round_fare(930.49) == 930

    def test_trip_days_minimum_one(self):
        assert trip_days(START, START) == 1
        assert trip_days(None, START) == 1
        assert trip_days(START, START + timedelta(days=2)) == 2
        assert trip_days(START, START + timedelta(days=2, seconds=1)) == 3


class TestFacade:
    def test_settle_fare_uses_actual_distance_and_waiting(self):
        job = booking(actual_distance_km=52, waiting_charges_per_hour=60,
                      waiting_time_mins=30, start_time=START)
        assert settle_fare(job, START + timedelta(hours=2)) == 960

    def test_settle_fare_solo_counts_days_from_start(self):
        job = solo_ride(actual_distance_km=40, driver_allowance=300, start_time=START)
        assert settle_fare(job, START + timedelta(hours=30), extra_charges="20") == 1300

    def test_quote_uses_planned_distance(self):
        assert quote_fare(booking(trip_type="round")) == 1674
