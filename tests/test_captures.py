from __future__ import annotations

import base64

import pytest

from pybeacon.exceptions import BeaconCaptureError
from pybeacon.storage.captures import CaptureStore, decode_image

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


def test_decode_image_accepts_bytes_and_data_urls() -> None:
    encoded = base64.b64encode(JPEG_BYTES).decode("ascii")

    assert decode_image(JPEG_BYTES) == JPEG_BYTES
    assert decode_image(encoded) == JPEG_BYTES
    assert decode_image(f"data:image/jpeg;base64,{encoded}") == JPEG_BYTES


def test_decode_image_rejects_invalid_base64() -> None:
    with pytest.raises(BeaconCaptureError):
        decode_image("data:image/jpeg;base64,@@not-base64@@")


def test_save_and_read_round_trip(tmp_path, clock) -> None:
    captures = CaptureStore(tmp_path / "captures", clock=clock)

    filename = captures.save("8.8.8.8", JPEG_BYTES)

    assert filename == "8.8.8.8_2026-01-01_12-00-00.jpg"
    assert captures.read(filename) == JPEG_BYTES


def test_identity_is_made_filename_safe(tmp_path, clock) -> None:
    captures = CaptureStore(tmp_path, clock=clock)

    filename = captures.save("2001:db8::1", JPEG_BYTES)

    assert filename.startswith("2001-db8--1_")
    assert (tmp_path / filename).exists()


def test_empty_image_is_rejected(tmp_path, clock) -> None:
    captures = CaptureStore(tmp_path, clock=clock)

    with pytest.raises(BeaconCaptureError):
        captures.save("8.8.8.8", b"")


def test_read_missing_or_traversal(tmp_path, clock) -> None:
    captures = CaptureStore(tmp_path, clock=clock)

    assert captures.read("missing.jpg") is None
    with pytest.raises(BeaconCaptureError):
        captures.read("../secret.jpg")
