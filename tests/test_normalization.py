from __future__ import annotations

import pytest

from pybeacon.ingestion.normalize import (
    client_identity,
    is_routable,
    normalize_address,
    safe_bool,
    safe_float,
    safe_str,
)

_ADDRESSES = [
    "203.0.113.5",
    "::ffff:203.0.113.5",
    "::FFFF:10.0.0.1",
    "::ffff:::ffff:8.8.8.8",
    "::1",
    "::ffff:::1",
    "127.0.0.1",
    "2001:db8::1",
    "  198.51.100.7 ",
    "",
    "not-an-address",
]


@pytest.mark.parametrize("address", _ADDRESSES)
def test_normalize_address_is_idempotent(address: str) -> None:
    once = normalize_address(address)
    assert normalize_address(once) == once


def test_normalize_address_strips_ipv4_mapped_prefix() -> None:
    assert normalize_address("::ffff:203.0.113.5") == "203.0.113.5"
    assert normalize_address("::FFFF:10.0.0.1") == "10.0.0.1"


def test_normalize_address_maps_ipv6_loopback() -> None:
    assert normalize_address("::1") == "127.0.0.1"


def test_normalize_address_leaves_other_ipv6_alone() -> None:
    assert normalize_address("2001:db8::1") == "2001:db8::1"


def test_normalize_address_handles_missing_value() -> None:
    assert normalize_address(None) == ""
    assert normalize_address("  ") == ""


def test_is_routable() -> None:
    assert is_routable("8.8.8.8")
    assert not is_routable("10.1.2.3")
    assert not is_routable("192.168.0.10")
    assert not is_routable("169.254.1.1")
    assert not is_routable("203.0.113.5")  # documentation range
    assert not is_routable("example.com")


def test_safe_parsers_reject_placeholders() -> None:
    assert safe_float("--") is None
    assert safe_float("nan") is None
    assert safe_float("1.5") == 1.5
    assert safe_str("   ") is None
    assert safe_bool("yes") is True
    assert safe_bool("off") is False
    assert safe_bool("maybe") is None


@pytest.mark.parametrize(("raw", "expected"), [(None, "unknown"), ("", "unknown"), ("  ", "unknown"), ("::1", "127.0.0.1")])
def test_client_identity_falls_back_to_unknown(raw: str | None, expected: str) -> None:
    assert client_identity(raw) == expected
