"""Captured image storage.

Image bytes belong to the upload path; the session store only keeps the
filename of the latest capture per identity.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from pybeacon._constants import CAPTURE_SUFFIX, CAPTURE_TIMESTAMP_FORMAT
from pybeacon.exceptions import BeaconCaptureError
from pybeacon.models._base import utcnow

_logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def _filename_safe(identity: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("-", identity) or "unknown"


def decode_image(data: bytes | str) -> bytes:
    """Accept raw bytes or a (data URL) base64 string."""
    if isinstance(data, bytes):
        return data
    payload = _DATA_URL_PREFIX.sub("", data.strip())
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise BeaconCaptureError(f"Invalid base64 image payload: {exc}") from exc


class CaptureStore:
    """Directory of captured images named ``<identity>_<timestamp>.jpg``."""

    def __init__(self, capture_dir: str | Path, *, clock: Callable[[], datetime] = utcnow) -> None:
        self._dir = Path(capture_dir)
        self._clock = clock

    @property
    def capture_dir(self) -> Path:
        return self._dir

    def save(self, identity: str, data: bytes | str) -> str:
        """Write an image for *identity* and return its filename."""
        image = decode_image(data)
        if not image:
            raise BeaconCaptureError("Empty image payload")

        filename = f"{_filename_safe(identity)}_{self._clock().strftime(CAPTURE_TIMESTAMP_FORMAT)}{CAPTURE_SUFFIX}"
        path = self._dir / filename
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(image)
        except OSError as exc:
            raise BeaconCaptureError(f"Cannot write {path}: {exc}") from exc
        _logger.debug("Saved capture %s (%d bytes)", filename, len(image))
        return filename

    def _path_for(self, filename: str) -> Path:
        if not filename or Path(filename).name != filename or filename.startswith("."):
            raise BeaconCaptureError(f"Invalid capture filename {filename!r}")
        return self._dir / filename

    def read(self, filename: str) -> bytes | None:
        """Return the bytes of a capture, or ``None`` if it no longer exists."""
        path = self._path_for(filename)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise BeaconCaptureError(f"Cannot read {path}: {exc}") from exc
