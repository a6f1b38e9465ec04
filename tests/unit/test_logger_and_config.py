import json
import logging

import pytest

from uipom.utils.config import BrowserType, Settings
from uipom.utils.logger import JsonFormatter, current_scopes, get_logger, log_scope


def test_log_scope_nests_and_reports_failure(caplog):
    caplog.set_level(logging.DEBUG, logger="uipom")
    with log_scope("Clicking on Submit"):
        assert current_scopes() == ["Clicking on Submit"]
        with pytest.raises(ValueError):
            with log_scope("Expect Submit is enabled"):
                assert current_scopes() == ["Clicking on Submit", "Expect Submit is enabled"]
                raise ValueError("nope")
    assert current_scopes() == []
    messages = [r.getMessage() for r in caplog.records]
    assert messages == [
        "Clicking on Submit",
        "  Expect Submit is enabled",
        "  Expect Submit is enabled failed: ValueError",
        "Clicking on Submit done",
    ]


def test_scope_context_reaches_the_record(caplog):
    caplog.set_level(logging.DEBUG, logger="uipom")
    with log_scope("Outer"):
        with log_scope("Inner", get_logger("uipom.test")) as scoped:
            scoped.debug("inside")
    record = next(r for r in caplog.records if r.getMessage() == "inside")
    assert record.extra["scope"] == "Outer > Inner"
    assert record.extra["depth"] == 2


def test_json_formatter_merges_extra():
    record = logging.LogRecord("uipom.x", logging.INFO, __file__, 1, "hello", None, None)
    record.extra = {"scope": "A > B"}
    payload = json.loads(JsonFormatter().format(record))
    assert payload["msg"] == "hello"
    assert payload["scope"] == "A > B"
    assert payload["level"] == "INFO"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DEFAULT_TIMEOUT_MS", "5000")
    monkeypatch.setenv("BROWSER_TYPE", "webkit")
    monkeypatch.setenv("SECRET_NAME_MARKERS", '["Password", " PIN "]')
    s = Settings()
    assert s.DEFAULT_TIMEOUT_MS == 5000
    assert s.BROWSER_TYPE == BrowserType.webkit
    assert s.SECRET_NAME_MARKERS == ["password", "pin"]


def test_playwright_kwargs():
    s = Settings(VIEWPORT_WIDTH=800, VIEWPORT_HEIGHT=600, USER_AGENT="bot", SLOW_MO=10)
    assert s.playwright_launch_kwargs() == {"headless": s.HEADLESS, "slow_mo": 10}
    ctx = s.playwright_context_kwargs()
    assert ctx["viewport"] == {"width": 800, "height": 600}
    assert ctx["user_agent"] == "bot"
