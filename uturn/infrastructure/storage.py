"""
File storage for trip proof media (driver videos, odometer photos).

Files are written under ``upload_dir/<folder>/<filename>`` and exposed as
``public_base_url/<folder>/<filename>``; serving that URL is left to the
web server or bucket in front of the directory.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


class LocalFileStorage:
    def __init__(self, base_dir: str, public_base_url: str):
        self.base_dir = base_dir
        self.public_base_url = public_base_url.rstrip("/")

    def save(self, folder: str, filename: str, data: bytes, content_type: str) -> str:
        """Store *data* and return its public URL."""
        target_dir = os.path.join(self.base_dir, folder)
        os.makedirs(target_dir, exist_ok=True)
        path = os.path.join(target_dir, filename)
        with open(path, "wb") as f:
            f.write(data)
        logger.info("Stored %s (%s, %d bytes)", path, content_type, len(data))
        return f"{self.public_base_url}/{folder}/{filename}"
