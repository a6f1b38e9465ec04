# uipom/core/actions.py
from __future__ import annotations

"""Component actions
--------------------
Interaction primitives shared by every generated component type. Each
action evaluates an optional `when` precondition, performs the primitive
through the element handle (relocating once on staleness) inside a
diagnostic scope, and returns the component for chaining.
"""

from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

from uipom.core.options import FocusOptions, ScrollIntoViewOptions, coerce_options
from uipom.driver.base import DriverElement
from uipom.errors import InvalidOptionsError, StaleElementError
from uipom.utils.logger import get_logger, log_scope

if TYPE_CHECKING:
    from uipom.core.component import Component
    from uipom.core.conditions import ComponentConditions

C = TypeVar("C", bound="Interactable")
When = Optional[Callable[["ComponentConditions"], Any]]

log = get_logger(__name__)


def mask(text: str) -> str:
    return "*" * len(text)


def is_secret_name(name: str, markers) -> bool:
    low = name.lower()
    return any(m in low for m in markers)


class Interactable:
    """Mixin with the action vocabulary; expects `_handle`, `_space` and `conditions`."""

    # ---------- Internals ----------

    def _precondition(self, when: When) -> None:
        if when is not None:
            when(self.conditions)

    def _perform(self, title: str, operation: Callable[[DriverElement], Any]) -> None:
        with log_scope(title, log):
            self._handle.relocate_on_stale(operation)

    def _script(self, title: str, script: str) -> None:
        driver = self._space.driver
        self._perform(title, lambda el: driver.execute_script(script, el))

    @property
    def _name(self) -> str:
        return self._handle.metadata.name

    # ---------- Keyboard ----------

    def clear(self: C, when: When = None) -> C:
        """Clears the text of an input, e.g. to erase a query before typing a new one."""
        self._precondition(when)
        self._perform(f"Clearing {self._name}", lambda el: el.clear())
        return self

    def type(self: C, text: str, when: When = None) -> C:
        """
        Sends keystrokes to the component.

        Text typed into components whose name looks like a secret
        ("password", ...) is masked in the trace.
        """
        self._precondition(when)
        shown = text
        if text is not None and is_secret_name(self._name, self._space.options.secret_name_markers):
            shown = mask(text)
        self._perform(f"Typing '{shown}' into {self._name}", lambda el: el.send_keys(text))
        return self

    # ---------- Pointer ----------

    def click(self: C, x: Optional[int] = None, y: Optional[int] = None, when: When = None) -> C:
        """
        Clicks the component, or the point (x, y) relative to its top-left
        corner when an offset is given.
        """
        self._precondition(when)
        if x is None and y is None:
            self._perform(f"Clicking on {self._name}", lambda el: el.click())
            return self
        if x is None or y is None:
            raise InvalidOptionsError("click offset needs both x and y")
        gestures = self._space.driver.gestures
        self._perform(
            f"Clicking on {self._name} by X: {x}, Y: {y}",
            lambda el: gestures().move_to(el, x, y).click().perform(),
        )
        return self

    def hover(self: C, x: Optional[int] = None, y: Optional[int] = None, when: When = None) -> C:
        """Moves the pointer onto the component (optionally at an offset)."""
        self._precondition(when)
        if (x is None) != (y is None):
            raise InvalidOptionsError("hover offset needs both x and y")
        gestures = self._space.driver.gestures
        title = f"Hovering over {self._name}" if x is None else f"Hovering on {self._name} by X: {x}, Y: {y}"
        self._perform(title, lambda el: gestures().move_to(el, x, y).perform())
        return self

    def context_click(self: C, when: When = None) -> C:
        self._precondition(when)
        gestures = self._space.driver.gestures
        self._perform(f"Context clicking on {self._name}", lambda el: gestures().context_click(el).perform())
        return self

    def double_click(self: C, when: When = None) -> C:
        self._precondition(when)
        gestures = self._space.driver.gestures
        self._perform(f"Double clicking on {self._name}", lambda el: gestures().double_click(el).perform())
        return self

    def drag_and_drop(self: C, target: "Component", when: When = None) -> C:
        """Drags this component onto `target`; both are resolved before the gesture starts."""
        self._precondition(when)
        driver = self._space.driver

        def attempt() -> None:
            source_el = self._handle.locate()
            target_el = target._handle.locate()
            driver.gestures().drag_and_drop(source_el, target_el).perform()

        with log_scope(f"Dragging {self._name} to {target._handle.metadata.name}", log):
            try:
                attempt()
            except StaleElementError as e:
                log.debug(f"drag and drop hit a stale element ({e}); relocating both ends")
                self._handle.invalidate()
                target._handle.invalidate()
                attempt()
        return self

    # ---------- Scripted ----------

    def scroll_into_view(self: C, options: Any = None, when: When = None) -> C:
        """
        Scrolls ancestors so the component is visible. Without options the
        space default applies, falling back to a plain scrollIntoView().
        """
        self._precondition(when)
        if options is None:
            options = self._space.options.scroll_into_view
        if options is None:
            self._script(f"Scrolling {self._name} into view", "el => el.scrollIntoView()")
        else:
            opts = coerce_options(options, ScrollIntoViewOptions)
            self._script(
                f"Scrolling {self._name} into view with options {opts}",
                f"el => el.scrollIntoView({opts.to_json()})",
            )
        return self

    def focus(self: C, options: Any = None, when: When = None) -> C:
        """Moves keyboard focus to the component when it can be focused."""
        self._precondition(when)
        if options is None:
            options = self._space.options.focus
        if options is None:
            self._script(f"Focusing {self._name}", "el => el.focus()")
        else:
            opts = coerce_options(options, FocusOptions)
            self._script(f"Focusing {self._name} with options {opts}", f"el => el.focus({opts.to_json()})")
        return self

    def blur(self: C, when: When = None) -> C:
        """Removes keyboard focus from the component."""
        self._precondition(when)
        self._script(f"Bluring {self._name}", "el => el.blur()")
        return self
