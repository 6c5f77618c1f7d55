"""Normalization helpers.

Centralizes defensive parsing, placeholder handling and client address
normalization. Everything here is pure: no I/O, no network calls.
"""

from __future__ import annotations

import ipaddress
import math
from typing import Any

from pybeacon._constants import IPV4_MAPPED_PREFIX, UNKNOWN_IDENTITY


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--":
        return None
    if isinstance(value, bool):
        return float(value)
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def safe_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return None


def normalize_address(raw: str | None) -> str:
    """Normalize a client network address into a session identity.

    - surrounding whitespace is removed
    - the IPv4-mapped IPv6 prefix (``::ffff:``) is stripped
    - the IPv6 loopback ``::1`` is mapped to ``127.0.0.1``

    The function is idempotent: ``normalize_address(normalize_address(a))``
    equals ``normalize_address(a)``.
    """

    address = (raw or "").strip()
    while address.lower().startswith(IPV4_MAPPED_PREFIX):
        address = address[len(IPV4_MAPPED_PREFIX) :]
    if address == "::1":
        return "127.0.0.1"
    return address


def client_identity(raw: str | None) -> str:
    """Session identity for a client address; ``"unknown"`` when there is none."""
    return normalize_address(raw) or UNKNOWN_IDENTITY


def is_routable(address: str) -> bool:
    """Return True for globally routable IP addresses.

    Private, link-local, documentation and otherwise reserved ranges can
    never be geolocated, nor can strings that are not IP addresses.
    """
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return ip.is_global
