# uipom/core/component.py
from __future__ import annotations

"""Runtime components
---------------------
Base classes for the types the compiler generates. A generated type adds
one ComponentAccessor per child; accessing it binds the child to a handle
scoped by the owner's handle.
"""

from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, Iterator, List, Optional, Type, Union

from uipom.core.actions import Interactable
from uipom.core.conditions import ComponentConditions, ListConditions
from uipom.core.handle import ComponentMetadata, ElementHandle
from uipom.errors import NoSuchElementError, StaleElementError, UipomError
from uipom.utils.logger import get_logger, log_scope

if TYPE_CHECKING:
    from uipom.core.descriptors import ComponentDescriptor
    from uipom.core.space import Space

log = get_logger(__name__)


class Component(Interactable):
    """One located element of a page."""

    type_id: ClassVar[str] = "Component"

    def __init__(self, handle: ElementHandle, space: "Space") -> None:
        self._handle = handle
        self._space = space
        self._children: Dict[str, Any] = {}

    @property
    def metadata(self) -> ComponentMetadata:
        return self._handle.metadata

    # ---------- Expectations ----------

    @property
    def conditions(self) -> ComponentConditions:
        return ComponentConditions(self)

    def expect(self, check: Optional[Callable[[ComponentConditions], Any]] = None):
        """
        Without arguments returns the condition builder
        (`c.expect().is_displayed().contains("x")`); with a callable runs it
        against the builder and returns the component.
        """
        if check is None:
            return self.conditions
        check(self.conditions)
        return self

    # ---------- State ----------

    @property
    def displayed(self) -> bool:
        """False when the element cannot be found at all."""
        try:
            return bool(self._handle.relocate_on_stale(lambda el: el.is_displayed()))
        except NoSuchElementError:
            return False

    @property
    def enabled(self) -> bool:
        return bool(self._handle.relocate_on_stale(lambda el: el.is_enabled()))

    @property
    def text(self) -> str:
        return self._handle.relocate_on_stale(lambda el: el.text) or ""

    @property
    def tag_name(self) -> str:
        return self._handle.relocate_on_stale(lambda el: el.tag_name)

    def attribute(self, name: str) -> Optional[str]:
        return self._handle.relocate_on_stale(lambda el: el.get_attribute(name))

    def style(self, name: str) -> Optional[str]:
        return self._handle.relocate_on_stale(lambda el: el.get_style(name))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.metadata.describe()}>"


class ComponentList:
    """
    Plural component. The number of matches is read from the driver on every
    call; items are components of the singular type bound to indexed handles.
    """

    def __init__(self, handle: ElementHandle, item_type: Type[Component], space: "Space") -> None:
        self._handle = handle
        self._item_type = item_type
        self._space = space

    @property
    def metadata(self) -> ComponentMetadata:
        return self._handle.metadata

    @property
    def count(self) -> int:
        try:
            return len(self._handle.locate_all())
        except StaleElementError as e:
            log.debug(f"{self.metadata.name} scope went stale ({e}); counting again")
            self._handle.invalidate()
            return len(self._handle.locate_all())

    def __len__(self) -> int:
        return self.count

    def _item(self, index: int) -> Component:
        handle = ElementHandle(
            self._handle.driver,
            self._handle.locator,
            ComponentMetadata(f"{self.metadata.name}[{index}]", self._handle.locator),
            parent=self._handle.parent,
            index=index,
        )
        return self._item_type(handle, self._space)

    def __getitem__(self, index: Union[int, slice]) -> Union[Component, List[Component]]:
        """
        Item(s) by position. Non-negative indices are not checked against the
        current count, so an item can be awaited before it renders; using one
        that never appears raises NoSuchElementError. Negative indices and
        slices count from the current matches.
        """
        if isinstance(index, slice):
            return [self._item(i) for i in range(*index.indices(self.count))]
        if index < 0:
            index += self.count
            if index < 0:
                raise IndexError(f"{self.metadata.name} index out of range")
        return self._item(index)

    def __iter__(self) -> Iterator[Component]:
        for i in range(self.count):
            yield self._item(i)

    @property
    def conditions(self) -> ListConditions:
        return ListConditions(self)

    def expect(self, check: Optional[Callable[[ListConditions], Any]] = None):
        if check is None:
            return self.conditions
        check(self.conditions)
        return self

    def __repr__(self) -> str:
        return f"<{type(self).__name__} of {self._item_type.__name__} {self.metadata.describe()}>"


class ComponentAccessor:
    """Class attribute exposing one child component of a generated type."""

    def __init__(self, descriptor: "ComponentDescriptor", component_type: Type[Component]) -> None:
        self.descriptor = descriptor
        self.component_type = component_type
        self.name = descriptor.name
        self.locator = descriptor.effective_locator
        self.is_collection = descriptor.effective_is_plural

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def bind(self, owner: Component) -> Union[Component, ComponentList]:
        parent = None if isinstance(owner, Page) else owner._handle
        handle = ElementHandle(
            owner._space.driver,
            self.locator,
            ComponentMetadata(self.descriptor.name, self.locator),
            parent=parent,
        )
        if self.is_collection:
            return ComponentList(handle, self.component_type, owner._space)
        return self.component_type(handle, owner._space)

    def __get__(self, owner: Optional[Component], owner_type: Optional[type] = None):
        if owner is None:
            return self
        children = owner._children
        if self.name not in children:
            children[self.name] = self.bind(owner)
        return children[self.name]

    def __repr__(self) -> str:
        kind = "list of " if self.is_collection else ""
        return f"ComponentAccessor({self.name}: {kind}{self.component_type.type_id})"


class Page(Component):
    """Component bound to the whole document."""

    url: ClassVar[Optional[str]] = None

    def __init__(self, space: "Space") -> None:
        name = type(self).__name__
        super().__init__(ElementHandle(space.driver, None, ComponentMetadata(name, None)), space)

    def resolve_url(self, **params: Any) -> str:
        """`url` with `{placeholders}` filled from params, joined to the space base url."""
        if not self.url:
            raise UipomError(f"{type(self).__name__} has no url")
        path = self.url.format(**params) if params else self.url
        if "://" in path:
            return path
        base = self._space.options.base_url
        if not base:
            return path
        return base.rstrip("/") + "/" + path.lstrip("/")

    def open(self, **params: Any) -> "Page":
        target = self.resolve_url(**params)
        with log_scope(f"Opening {type(self).__name__} at {target}", log):
            self._space.driver.navigate(target)
        return self
