# uipom/core/compiler.py
from __future__ import annotations

"""Descriptor compiler
----------------------
Resolves every descriptor to a namespace-qualified type identifier and
materialises one Python class per identifier, with one accessor attribute
per child component. Resolution is memoised in an injectable, thread-safe
TypeCache.
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Type

from uipom.core.component import Component, ComponentAccessor, Page
from uipom.core.descriptors import ComponentDescriptor, DescriptorModel
from uipom.errors import CyclicDescriptorError
from uipom.selectors.locator import Locator
from uipom.utils.logger import get_logger
from uipom.utils.timing import measure

log = get_logger(__name__)


class TypeCache:
    """Descriptor -> type identifier, keyed by descriptor identity."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: Dict[ComponentDescriptor, str] = {}

    def get(self, descriptor: ComponentDescriptor) -> Optional[str]:
        with self._lock:
            return self._data.get(descriptor)

    def set_default(self, descriptor: ComponentDescriptor, type_id: str) -> str:
        """Store unless already present; returns the stored value (first writer wins)."""
        with self._lock:
            return self._data.setdefault(descriptor, type_id)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __contains__(self, descriptor: ComponentDescriptor) -> bool:
        with self._lock:
            return descriptor in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


@dataclass
class AccessorDefinition:
    """What the compiler emits for one descriptor."""
    name: str
    qualified_name: str
    return_type: str
    is_collection: bool
    locator: Optional[Locator]
    descriptor: ComponentDescriptor = field(repr=False)
    children: List["AccessorDefinition"] = field(default_factory=list)

    def walk(self):
        yield self
        for c in self.children:
            yield from c.walk()


@dataclass
class CompiledModel:
    definitions: List[AccessorDefinition]
    types: Dict[str, type]
    pages: Dict[str, type]

    def type_for(self, type_id: str) -> type:
        return self.types[type_id]


class DescriptorCompiler:
    def __init__(self, cache: Optional[TypeCache] = None) -> None:
        self.cache = cache if cache is not None else TypeCache()

    # ---------- Type resolution ----------

    def resolve_type(self, descriptor: ComponentDescriptor) -> str:
        """
        Namespace-qualified element type of `descriptor`.

        Aliases resolve to their target's type; plural components to the type
        of one element (named from `singular_name`).
        """
        return self._resolve(descriptor, [], set())

    def _resolve(self, descriptor: ComponentDescriptor, chain: List[str], seen: Set[int]) -> str:
        cached = self.cache.get(descriptor)
        if cached is not None:
            return cached

        if id(descriptor) in seen:
            raise CyclicDescriptorError(chain + [descriptor.qualified_name])
        seen.add(id(descriptor))
        chain = chain + [descriptor.qualified_name]

        target = descriptor.referenced_descriptor
        if target is not None:
            if target.referenced_descriptor is not None and len(chain) == 1:
                log.warning(
                    f"'{descriptor.qualified_name}' references '{target.qualified_name}', "
                    f"which is itself a reference; following the chain"
                )
            type_id = self._resolve(target, chain, seen)
        else:
            type_id = self._own_type(descriptor)

        return self.cache.set_default(descriptor, type_id)

    @staticmethod
    def _own_type(descriptor: ComponentDescriptor) -> str:
        if descriptor.is_page:
            suffix = "" if descriptor.name.endswith("Page") else "Page"
            return f"{descriptor.namespace}.{descriptor.name}{suffix}"
        name = descriptor.singular_name if descriptor.is_plural else descriptor.name
        return f"{descriptor.namespace}.{name}Component"

    # ---------- Accessor definitions ----------

    def define(self, descriptor: ComponentDescriptor) -> AccessorDefinition:
        return AccessorDefinition(
            name=descriptor.name,
            qualified_name=descriptor.qualified_name,
            return_type=self.resolve_type(descriptor),
            is_collection=descriptor.effective_is_plural,
            locator=descriptor.effective_locator,
            descriptor=descriptor,
            children=[self.define(c) for c in descriptor.children],
        )

    # ---------- Materialisation ----------

    @measure("compile descriptors", level="DEBUG")
    def compile(self, model: DescriptorModel) -> CompiledModel:
        """Emit accessor definitions and build the Python types for a linked model."""
        model.link()
        definitions = [self.define(root) for root in model.roots]

        # members of a type come from the descriptor that owns it (never from an alias)
        owners: Dict[str, ComponentDescriptor] = {}
        for node in model.walk():
            type_id = self.resolve_type(node)
            if node.referenced_descriptor is not None:
                continue
            if type_id in owners and owners[type_id] is not node:
                log.warning(
                    f"'{node.qualified_name}' and '{owners[type_id].qualified_name}' both resolve to "
                    f"{type_id}; keeping the members of the first"
                )
                continue
            owners[type_id] = node

        types: Dict[str, type] = {}

        def build(type_id: str) -> type:
            if type_id in types:
                return types[type_id]
            owner = owners[type_id]
            base: Type[Component] = Page if owner.is_page else Component
            namespace, _, cls_name = type_id.rpartition(".")
            cls = type(cls_name, (base,), {
                "__module__": namespace,
                "__qualname__": cls_name,
                "type_id": type_id,
                "__doc__": f"Generated from descriptor '{owner.qualified_name}'.",
            })
            if owner.is_page:
                cls.url = owner.url
            types[type_id] = cls
            for child in owner.children:
                child_type = build(self.resolve_type(child))
                setattr(cls, child.name, ComponentAccessor(child, child_type))
            return cls

        for type_id in owners:
            build(type_id)

        pages = {d.name: types[self.resolve_type(d)] for d in model.pages}
        log.debug(f"Compiled {len(types)} type(s), {len(pages)} page(s)")
        return CompiledModel(definitions=definitions, types=types, pages=pages)
