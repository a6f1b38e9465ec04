import logging
from unittest.mock import MagicMock

import pytest

from uipom.core import session
from uipom.core.compiler import CompiledModel
from uipom.core.space import Space, compile_descriptors
from uipom.driver.playwright import PlaywrightDriver
from uipom.utils.config import BrowserType, Settings
from uipom.utils.logger import get_logger


@pytest.fixture
def fake_playwright(monkeypatch):
    p = MagicMock(name="playwright")
    cm = MagicMock()
    cm.__enter__.return_value = p
    monkeypatch.setattr(session, "sync_playwright", lambda: cm)
    return p


def test_open_space_binds_a_playwright_page(fake_playwright, nuget_model):
    s = Settings(BROWSER_TYPE=BrowserType.firefox, HEADLESS=True, SLOW_MO=0, BASE_URL="https://www.nuget.org")
    compiled = compile_descriptors(nuget_model)
    browser = fake_playwright.firefox.launch.return_value
    page = browser.new_context.return_value.new_page.return_value

    with session.open_space(compiled, settings=s) as space:
        assert isinstance(space, Space)
        assert isinstance(space.driver, PlaywrightDriver)
        assert space.driver.page is page
        assert space.options.base_url == "https://www.nuget.org"
        space.Home.open()

    fake_playwright.firefox.launch.assert_called_once_with(headless=True, slow_mo=0)
    fake_playwright.chromium.launch.assert_not_called()
    page.goto.assert_called_once_with("https://www.nuget.org/", wait_until="domcontentloaded")
    browser.close.assert_called_once()


def test_open_space_closes_browser_on_error(fake_playwright, nuget_model):
    browser = fake_playwright.chromium.launch.return_value
    with pytest.raises(RuntimeError):
        with session.open_space(nuget_model, settings=Settings()):
            raise RuntimeError("test body failed")
    browser.close.assert_called_once()


def test_open_space_session_log_file(fake_playwright, nuget_model, tmp_path):
    log_file = tmp_path / "logs" / "session.jsonl"
    with session.open_space(nuget_model, settings=Settings(), log_file=log_file) as space:
        assert isinstance(space.compiled, CompiledModel)
    assert log_file.parent.is_dir()


def test_session_context_is_bound_only_while_open(fake_playwright, nuget_model, caplog):
    caplog.set_level(logging.INFO, logger="uipom")
    s = Settings(BROWSER_TYPE=BrowserType.webkit)
    with session.open_space(nuget_model, settings=s):
        get_logger("uipom.test").info("inside")
    get_logger("uipom.test").info("after")

    by_msg = {r.getMessage(): r for r in caplog.records}
    assert by_msg["inside"].extra["browser"] == "webkit"
    assert by_msg["Session closed"].extra["browser"] == "webkit"
    assert "browser" not in by_msg["after"].extra
