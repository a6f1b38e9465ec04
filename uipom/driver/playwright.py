# uipom/driver/playwright.py
from __future__ import annotations

"""Playwright driver
--------------------
Implements the driver capability over a Playwright sync Page. Element
references are Playwright ElementHandles; detached nodes surface as
StaleElementError so the runtime can relocate them.
"""

from typing import Any, Callable, List, Optional, Sequence, Tuple

from playwright.sync_api import ElementHandle, Error as PWError, Page

from uipom.errors import NoSuchElementError, StaleElementError
from uipom.selectors.locator import Locator
from uipom.utils.logger import get_logger

log = get_logger(__name__)

# Playwright error fragments meaning "the node you hold is gone"
_STALE_MARKERS = (
    "not attached",
    "detached",
    "execution context was destroyed",
    "cannot find context with specified id",
    "target closed",
    "has been collected",
)


def _is_stale_error(err: BaseException) -> bool:
    msg = str(err).lower()
    return any(m in msg for m in _STALE_MARKERS)


def _translate(err: PWError) -> Exception:
    if _is_stale_error(err):
        return StaleElementError(str(err))
    return err


class PlaywrightElement:
    """DriverElement backed by a Playwright ElementHandle."""

    def __init__(self, handle: ElementHandle) -> None:
        self.handle = handle

    # ---------- Internals ----------

    def ensure_attached(self) -> None:
        try:
            connected = self.handle.evaluate("el => el.isConnected")
        except PWError as e:
            raise _translate(e) from e
        if not connected:
            raise StaleElementError("element is not attached to the document")

    def _call(self, op: Callable[[ElementHandle], Any]) -> Any:
        self.ensure_attached()
        try:
            return op(self.handle)
        except PWError as e:
            raise _translate(e) from e

    # ---------- State ----------

    def is_displayed(self) -> bool:
        return bool(self._call(lambda h: h.is_visible()))

    def is_enabled(self) -> bool:
        return bool(self._call(lambda h: h.is_enabled()))

    @property
    def tag_name(self) -> str:
        return self._call(lambda h: h.evaluate("el => el.tagName.toLowerCase()"))

    @property
    def text(self) -> str:
        return self._call(lambda h: h.inner_text()) or ""

    def get_attribute(self, name: str) -> Optional[str]:
        return self._call(lambda h: h.get_attribute(name))

    def get_style(self, name: str) -> str:
        return self._call(
            lambda h: h.evaluate("(el, n) => getComputedStyle(el).getPropertyValue(n)", name)
        ) or ""

    # ---------- Primitives ----------

    def click(self) -> None:
        self._call(lambda h: h.click())

    def send_keys(self, text: str) -> None:
        self._call(lambda h: h.type(text))

    def clear(self) -> None:
        self._call(lambda h: h.fill(""))

    def bounding_center(self, x: Optional[int] = None, y: Optional[int] = None) -> Tuple[float, float]:
        """Absolute page point; offsets are relative to the element's top-left corner."""
        box = self._call(lambda h: h.bounding_box())
        if not box:
            raise StaleElementError("element has no layout box")
        ax = box["x"] + (x if x is not None else box["width"] / 2)
        ay = box["y"] + (y if y is not None else box["height"] / 2)
        return ax, ay


class PlaywrightGestures:
    """Queues pointer steps and replays them through page.mouse on perform()."""

    def __init__(self, page: Page) -> None:
        self.page = page
        self._steps: List[Callable[[], None]] = []
        self._point: Optional[Tuple[float, float]] = None

    def move_to(self, element: PlaywrightElement, x: Optional[int] = None, y: Optional[int] = None) -> "PlaywrightGestures":
        def _do() -> None:
            self._point = element.bounding_center(x, y)
            self.page.mouse.move(*self._point)
        self._steps.append(_do)
        return self

    def click(self) -> "PlaywrightGestures":
        def _do() -> None:
            if self._point is None:
                raise ValueError("click() needs a preceding move_to()")
            self.page.mouse.click(*self._point)
        self._steps.append(_do)
        return self

    def context_click(self, element: PlaywrightElement) -> "PlaywrightGestures":
        self._steps.append(lambda: element._call(lambda h: h.click(button="right")))
        return self

    def double_click(self, element: PlaywrightElement) -> "PlaywrightGestures":
        self._steps.append(lambda: element._call(lambda h: h.dblclick()))
        return self

    def drag_and_drop(self, source: PlaywrightElement, target: PlaywrightElement) -> "PlaywrightGestures":
        def _do() -> None:
            sx, sy = source.bounding_center()
            tx, ty = target.bounding_center()
            self.page.mouse.move(sx, sy)
            self.page.mouse.down()
            self.page.mouse.move(tx, ty, steps=5)
            self.page.mouse.up()
        self._steps.append(_do)
        return self

    def perform(self) -> None:
        steps, self._steps = self._steps, []
        try:
            for step in steps:
                step()
        except PWError as e:
            raise _translate(e) from e


class PlaywrightDriver:
    """Driver capability over a Playwright sync Page."""

    def __init__(self, page: Page) -> None:
        self.page = page

    def _root(self, scope: Optional[PlaywrightElement]):
        if scope is None:
            return self.page
        scope.ensure_attached()
        return scope.handle

    def locate_one(self, scope: Optional[PlaywrightElement], locator: Locator) -> PlaywrightElement:
        try:
            found = self._root(scope).query_selector(locator.playwright_selector())
        except PWError as e:
            raise _translate(e) from e
        if found is None:
            raise NoSuchElementError(f"no element matches '{locator}'", locator=locator)
        return PlaywrightElement(found)

    def locate_all(self, scope: Optional[PlaywrightElement], locator: Locator) -> Sequence[PlaywrightElement]:
        try:
            found = self._root(scope).query_selector_all(locator.playwright_selector())
        except PWError as e:
            raise _translate(e) from e
        return [PlaywrightElement(h) for h in found]

    def execute_script(self, script: str, *args: Any) -> Any:
        """
        Run `script`, a JavaScript function expression, with `args`.
        Element arguments are passed through as live DOM nodes and must still
        be attached.
        """
        for a in args:
            if isinstance(a, PlaywrightElement):
                a.ensure_attached()
        unwrapped = [a.handle if isinstance(a, PlaywrightElement) else a for a in args]
        try:
            return self.page.evaluate(f"(args) => ({script})(...args)", unwrapped)
        except PWError as e:
            raise _translate(e) from e

    def gestures(self) -> PlaywrightGestures:
        return PlaywrightGestures(self.page)

    def navigate(self, url: str) -> None:
        log.debug(f"Navigating to {url}")
        self.page.goto(url, wait_until="domcontentloaded")
