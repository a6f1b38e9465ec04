# uipom/core/session.py
from __future__ import annotations

"""Browser session
------------------
Starts Playwright with the configured browser and hands out a Space bound to
a fresh page. Everything is torn down when the context manager exits.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from playwright.sync_api import sync_playwright

from uipom.core.compiler import CompiledModel
from uipom.core.descriptors import DescriptorModel
from uipom.core.space import Space, SpaceOptions, compile_descriptors
from uipom.driver.playwright import PlaywrightDriver
from uipom.utils.config import BrowserType, Settings, get_settings
from uipom.utils.logger import attach_file_logger, bind, detach_file_logger, get_logger, unbind

log = get_logger(__name__)


def _browser_type(p, browser: BrowserType):
    if browser == BrowserType.firefox:
        return p.firefox
    if browser == BrowserType.webkit:
        return p.webkit
    return p.chromium


@contextmanager
def open_space(
    source: Union[CompiledModel, DescriptorModel, Path, str, None] = None,
    settings: Optional[Settings] = None,
    options: Optional[SpaceOptions] = None,
    log_file: Optional[Union[Path, str]] = None,
) -> Iterator[Space]:
    """
    Usage:

        with open_space("pages/") as space:
            space.Search.open()
            space.Search.SearchInput.type("uipom")

    `source` is a compiled model, or anything `compile_descriptors` accepts.
    `log_file` captures this session's log records in a separate JSON file.
    """
    s = settings or get_settings()
    compiled = source if isinstance(source, CompiledModel) else compile_descriptors(source)
    opts = options or SpaceOptions.from_settings(s)

    handler = attach_file_logger(log_file) if log_file else None
    # every record of the session carries the browser name
    bind(browser=s.BROWSER_TYPE.value)
    try:
        with sync_playwright() as p:
            browser = _browser_type(p, s.BROWSER_TYPE).launch(**s.playwright_launch_kwargs())
            try:
                context = browser.new_context(**s.playwright_context_kwargs())
                page = context.new_page()
                page.set_default_timeout(s.PAGE_LOAD_TIMEOUT)
                log.info(f"Session started: {len(compiled.pages)} page(s), headless={s.HEADLESS}")
                yield Space(PlaywrightDriver(page), compiled, opts)
            finally:
                browser.close()
                log.info("Session closed")
    finally:
        unbind("browser")
        if handler is not None:
            detach_file_logger(handler)
