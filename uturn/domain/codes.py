"""Random codes handed to customers: trip OTPs and public tracking ids."""

import secrets

SOLO_TRACKING_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_otp(length: int = 6) -> str:
    """Uniform random numeric code, zero-padded to *length* digits."""
    return str(secrets.randbelow(10**length)).zfill(length)


def booking_tracking_id() -> str:
    return f"UTN-{secrets.token_hex(3).upper()}"


def solo_tracking_id() -> str:
    suffix = "".join(secrets.choice(SOLO_TRACKING_ALPHABET) for _ in range(4))
    return f"SOLO-{suffix}"
