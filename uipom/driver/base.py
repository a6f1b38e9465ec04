# uipom/driver/base.py
from __future__ import annotations

"""Driver capability
--------------------
The small surface the runtime needs from a browser driver. Implementations
raise NoSuchElementError when a lookup matches nothing and
StaleElementError when an element they handed out has left the document.
"""

from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from uipom.selectors.locator import Locator


@runtime_checkable
class DriverElement(Protocol):
    """An opaque reference to one resolved DOM node."""

    def is_displayed(self) -> bool: ...

    def is_enabled(self) -> bool: ...

    @property
    def tag_name(self) -> str: ...

    @property
    def text(self) -> str: ...

    def get_attribute(self, name: str) -> Optional[str]: ...

    def get_style(self, name: str) -> str: ...

    def click(self) -> None: ...

    def send_keys(self, text: str) -> None: ...

    def clear(self) -> None: ...


class Gestures(Protocol):
    """Compound pointer gesture builder; nothing happens until perform()."""

    def move_to(self, element: DriverElement, x: Optional[int] = None, y: Optional[int] = None) -> "Gestures": ...

    def click(self) -> "Gestures": ...

    def context_click(self, element: DriverElement) -> "Gestures": ...

    def double_click(self, element: DriverElement) -> "Gestures": ...

    def drag_and_drop(self, source: DriverElement, target: DriverElement) -> "Gestures": ...

    def perform(self) -> None: ...


@runtime_checkable
class Driver(Protocol):
    """Element lookup, script execution, gestures and navigation."""

    def locate_one(self, scope: Optional[DriverElement], locator: Locator) -> DriverElement: ...

    def locate_all(self, scope: Optional[DriverElement], locator: Locator) -> Sequence[DriverElement]: ...

    def execute_script(self, script: str, *args: Any) -> Any: ...

    def gestures(self) -> Gestures: ...

    def navigate(self, url: str) -> None: ...
