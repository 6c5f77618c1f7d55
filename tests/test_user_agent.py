from __future__ import annotations

from pybeacon.ingestion.user_agent import UserAgentTriple, parse_user_agent

CHROME_DESKTOP = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
IPHONE_SAFARI = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)


def test_desktop_chrome() -> None:
    parsed = parse_user_agent(CHROME_DESKTOP)

    assert parsed.browser.startswith("Chrome 120")
    assert parsed.os.startswith("Windows")
    assert parsed.model == "Unknown"


def test_iphone_safari() -> None:
    parsed = parse_user_agent(IPHONE_SAFARI)

    assert parsed.model == "iPhone"
    assert parsed.os.startswith("iOS 17")
    assert "Safari" in parsed.browser


def test_missing_or_garbage_user_agent_defaults_to_unknown() -> None:
    assert parse_user_agent(None) == UserAgentTriple()
    assert parse_user_agent("   ") == UserAgentTriple()

    garbage = parse_user_agent("definitely not a browser")
    assert garbage.model == "Unknown"
    assert garbage.os == "Unknown"
    assert garbage.browser == "Unknown"


def test_bare_product_version_falls_back_to_token() -> None:
    parsed = parse_user_agent("Mozilla/5.0 ... Chrome/120")

    assert parsed.browser == "Chrome 120"


def test_layout_tokens_are_not_browsers() -> None:
    assert parse_user_agent("Mozilla/5.0 AppleWebKit/537.36").browser == "Unknown"
