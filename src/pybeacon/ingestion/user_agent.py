"""User-agent parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass

from user_agents import parse as parse_ua

from pybeacon._constants import UNKNOWN

# ua-parser reports unrecognised families as "Other".
_UNRECOGNISED = frozenset({"", "Other", "Generic", "Generic Smartphone", "Generic Feature Phone"})

# ``Name/1.2`` product tokens; used when ua-parser's rules need more than the
# client sent (e.g. a bare ``Chrome/120``).
_PRODUCT_TOKEN = re.compile(r"([A-Za-z][\w.-]*)/(\d+(?:\.\d+)*)")
_LAYOUT_PRODUCTS = frozenset({"Mozilla", "AppleWebKit", "Gecko", "KHTML", "Version", "Mobile", "Trident"})


@dataclass(frozen=True)
class UserAgentTriple:
    """Device / OS / browser strings extracted from a user agent."""

    model: str = UNKNOWN
    os: str = UNKNOWN
    browser: str = UNKNOWN


def _label(family: str | None, version: str | None = None) -> str:
    if not family or family in _UNRECOGNISED:
        return UNKNOWN
    if version:
        return f"{family} {version}"
    return family


def _product_label(user_agent: str) -> str:
    """Last non-layout ``Name/version`` token, or ``Unknown``."""
    for name, version in reversed(_PRODUCT_TOKEN.findall(user_agent)):
        if name not in _LAYOUT_PRODUCTS:
            return f"{name} {version}"
    return UNKNOWN


def parse_user_agent(user_agent: str | None) -> UserAgentTriple:
    """Parse a user-agent header; any part that cannot be determined is ``"Unknown"``."""
    if not user_agent or not user_agent.strip():
        return UserAgentTriple()

    ua = parse_ua(user_agent)
    browser = _label(ua.browser.family, ua.browser.version_string)
    if browser == UNKNOWN:
        browser = _product_label(user_agent)
    return UserAgentTriple(
        model=_label(ua.device.model or ua.device.family),
        os=_label(ua.os.family, ua.os.version_string),
        browser=browser,
    )
