# uipom/core/handle.py
from __future__ import annotations

"""Element handle
-----------------
Lazy resolution of one component's element with a cached reference that is
dropped on staleness and re-acquired on the next locate().
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, TypeVar

from uipom.driver.base import Driver, DriverElement
from uipom.errors import NoSuchElementError, StaleElementError
from uipom.selectors.locator import Locator
from uipom.utils.logger import get_logger

T = TypeVar("T")

log = get_logger(__name__)


@dataclass(frozen=True)
class ComponentMetadata:
    name: str
    locator: Optional[Locator]

    def describe(self) -> str:
        return f"{self.name} '{self.locator}'" if self.locator else self.name


class ElementHandle:
    """
    Locates a component's element inside its parent's element (or the
    document) and caches the reference.

    Handles for items of a plural component carry an `index` and resolve to
    the index-th match of the locator. Not thread-safe: one owner per handle.
    """

    def __init__(
        self,
        driver: Driver,
        locator: Optional[Locator],
        metadata: ComponentMetadata,
        *,
        parent: Optional["ElementHandle"] = None,
        index: Optional[int] = None,
    ) -> None:
        self.driver = driver
        self.locator = locator
        self.metadata = metadata
        self.parent = parent
        self.index = index
        self._cached: Optional[DriverElement] = None

    # ---------- Resolution ----------

    def _scope(self) -> Optional[DriverElement]:
        return self.parent.locate() if self.parent is not None else None

    def locate(self) -> DriverElement:
        """Cached element, or a fresh lookup when nothing valid is cached."""
        if self._cached is not None:
            return self._cached
        if self.locator is None:
            raise NoSuchElementError(f"{self.metadata.name} has no locator")
        scope = self._scope()
        if self.index is None:
            element = self.driver.locate_one(scope, self.locator)
        else:
            matches = self.driver.locate_all(scope, self.locator)
            if self.index >= len(matches):
                raise NoSuchElementError(
                    f"{self.metadata.name}: no match at index {self.index}, only {len(matches)} for '{self.locator}'",
                    locator=self.locator,
                )
            element = matches[self.index]
        self._cached = element
        return element

    def locate_all(self) -> Sequence[DriverElement]:
        """All matches of the locator in scope; never cached."""
        if self.locator is None:
            raise NoSuchElementError(f"{self.metadata.name} has no locator")
        return self.driver.locate_all(self._scope(), self.locator)

    def invalidate(self) -> None:
        """
        Forget the cached element; the next locate() resolves afresh.
        Enclosing handles are dropped as well.
        """
        self._cached = None
        if self.parent is not None:
            self.parent.invalidate()

    @property
    def is_cached(self) -> bool:
        return self._cached is not None

    # ---------- Staleness recovery ----------

    def relocate_on_stale(self, operation: Callable[[DriverElement], T]) -> T:
        """
        Run `operation` on the located element; if the element went stale,
        invalidate and run it once more on a fresh lookup. A second failure
        propagates as is.
        """
        try:
            return operation(self.locate())
        except StaleElementError as e:
            log.debug(f"{self.metadata.name} went stale ({e}); relocating")
            self.invalidate()
            return operation(self.locate())

    def __repr__(self) -> str:
        idx = f"[{self.index}]" if self.index is not None else ""
        return f"ElementHandle({self.metadata.name}{idx}, {self.locator})"
