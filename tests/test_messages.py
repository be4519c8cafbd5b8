import pytest
from pydantic import ValidationError

from footprint_tracker.messages import (
    ContentAnalysis,
    GetAnalytics,
    IdleStateChanged,
    TabUpdated,
    UpdateSettings,
    parse_command,
    parse_signal,
)


def test_commands_are_parsed_by_type():
    message = parse_command({"type": "GET_ANALYTICS", "timeframe": "30d"})
    assert isinstance(message, GetAnalytics)
    assert message.timeframe == "30d"

    content = parse_command(
        {"type": "CONTENT_ANALYSIS", "content": "text", "url": "https://a.b", "tabId": 3}
    )
    assert isinstance(content, ContentAnalysis)
    assert content.title == ""


def test_settings_update_is_partial_and_strict():
    message = parse_command({"type": "UPDATE_SETTINGS", "settings": {"privacyMode": True}})
    assert isinstance(message, UpdateSettings)
    assert message.settings.model_dump(exclude_none=True) == {"privacyMode": True}

    with pytest.raises(ValidationError):
        parse_command({"type": "UPDATE_SETTINGS", "settings": {"darkMode": True}})


def test_signals():
    assert isinstance(parse_signal({"type": "tabUpdated", "url": "https://a.b"}), TabUpdated)
    assert parse_signal({"type": "idleStateChanged", "state": "locked"}) == IdleStateChanged(
        state="locked"
    )
    with pytest.raises(ValidationError):
        parse_signal({"type": "idleStateChanged", "state": "asleep"})


def test_tab_updates_carry_tab_identity():
    update = parse_signal(
        {"type": "tabUpdated", "url": "https://a.b", "tabId": 7, "active": False, "status": "loading"}
    )
    assert (update.tabId, update.active, update.status) == (7, False, "loading")

    bare = parse_signal({"type": "tabUpdated", "url": "https://a.b"})
    assert (bare.tabId, bare.active, bare.status) == (None, True, "complete")


def test_unknown_or_misrouted_types_are_rejected():
    with pytest.raises(ValidationError):
        parse_command({"type": "bogus"})
    with pytest.raises(ValidationError):
        parse_command({"type": "tabActivated", "url": "https://a.b"})
    with pytest.raises(ValidationError):
        parse_signal({"type": "pauseTracking"})
    with pytest.raises(ValidationError):
        parse_command({})
