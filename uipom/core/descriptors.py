# uipom/core/descriptors.py
from __future__ import annotations

"""Component descriptor model
-----------------------------
In-memory graph of named page/component nodes. Built once by the loader,
linked (references resolved), then treated as read-only by the compiler and
the runtime.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from uipom.errors import DescriptorError
from uipom.selectors.locator import Locator


@dataclass(eq=False)
class ComponentDescriptor:
    """
    One authored page or component.

    Identity is by reference: two descriptors with equal fields are still
    distinct nodes. When `referenced_descriptor` is set the node takes its
    type entirely from the referenced one.
    """
    name: str
    namespace: str
    locator: Optional[Locator] = None
    singular_name: Optional[str] = None
    is_plural: bool = False
    referenced_descriptor: Optional["ComponentDescriptor"] = None
    children: List["ComponentDescriptor"] = field(default_factory=list)
    parent: Optional["ComponentDescriptor"] = field(default=None, repr=False)
    is_page: bool = False
    url: Optional[str] = None
    # name of the referenced descriptor until DescriptorModel.link() resolves it
    ref_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.singular_name is None:
            self.singular_name = singularize(self.name) if self.is_plural else self.name

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    @property
    def member_namespace(self) -> str:
        """Namespace that children of this descriptor live in."""
        return self.qualified_name

    def dereference(self) -> "ComponentDescriptor":
        """Last descriptor of the reference chain (self when not an alias)."""
        node, seen = self, set()
        while node.referenced_descriptor is not None:
            if id(node) in seen:
                raise DescriptorError(f"reference cycle through '{node.qualified_name}'")
            seen.add(id(node))
            node = node.referenced_descriptor
        return node

    @property
    def effective_locator(self) -> Optional[Locator]:
        """Own locator, else the nearest one along the reference chain."""
        return next((n.locator for n in self._chain() if n.locator is not None), None)

    @property
    def effective_is_plural(self) -> bool:
        return any(n.is_plural for n in self._chain())

    def _chain(self) -> List["ComponentDescriptor"]:
        end = self.dereference()
        nodes = [self]
        while nodes[-1] is not end:
            nodes.append(nodes[-1].referenced_descriptor)
        return nodes

    def add_child(self, child: "ComponentDescriptor") -> "ComponentDescriptor":
        child.parent = self
        self.children.append(child)
        return child

    def walk(self) -> Iterator["ComponentDescriptor"]:
        yield self
        for c in self.children:
            yield from c.walk()


# ---------- Naming ----------

_IRREGULAR = {
    "children": "child",
    "people": "person",
    "men": "man",
    "women": "woman",
    "data": "datum",
}


def _match_case(word: str, template: str) -> str:
    return word[:1].upper() + word[1:] if template[:1].isupper() else word


def singularize(name: str) -> str:
    """
    Best-effort English singular of the last word in a component name.

    "Packages" -> "Package", "SearchResults" -> "SearchResult",
    "Entries" -> "Entry", "Boxes" -> "Box". Names that do not look plural
    get an "Item" suffix so the element type never collides with the list.
    """
    words = re.findall(r"[A-Z]?[a-z0-9]+|[A-Z]+(?![a-z])|\W+|_", name)
    if not words:
        return name + "Item"
    head, last = "".join(words[:-1]), words[-1]
    low = last.lower()
    if low in _IRREGULAR:
        single = _IRREGULAR[low]
    elif low.endswith("ies") and len(low) > 3:
        single = low[:-3] + "y"
    elif re.search(r"(ss|sh|ch|x|z)es$", low):
        single = low[:-2]
    elif low.endswith("s") and not low.endswith("ss"):
        single = low[:-1]
    else:
        return name + "Item"
    return head + _match_case(single, last)


# ---------- Model ----------

class DescriptorModel:
    """All pages and shared components loaded from one or more files."""

    def __init__(self) -> None:
        self.roots: List[ComponentDescriptor] = []
        self._by_name: Dict[str, ComponentDescriptor] = {}
        self._linked = False

    def add(self, descriptor: ComponentDescriptor) -> ComponentDescriptor:
        key = descriptor.qualified_name
        if key in self._by_name:
            raise DescriptorError(f"duplicate descriptor '{key}'")
        self.roots.append(descriptor)
        self._by_name[key] = descriptor
        return descriptor

    def walk(self) -> Iterator[ComponentDescriptor]:
        for r in self.roots:
            yield from r.walk()

    @property
    def pages(self) -> List[ComponentDescriptor]:
        return [r for r in self.roots if r.is_page]

    def find(self, name: str, namespace: Optional[str] = None) -> Optional[ComponentDescriptor]:
        """Look up a root by qualified name, or by short name within a namespace."""
        if name in self._by_name:
            return self._by_name[name]
        # innermost enclosing namespace first: "a.b.Page" -> "a.b" -> "a"
        ns = namespace or ""
        while ns:
            key = f"{ns}.{name}"
            if key in self._by_name:
                return self._by_name[key]
            ns = ns.rpartition(".")[0]
        matches = [r for r in self.roots if r.name == name]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            where = ", ".join(m.qualified_name for m in matches)
            raise DescriptorError(f"ambiguous reference '{name}' (candidates: {where})")
        return None

    def link(self) -> "DescriptorModel":
        """Resolve every `ref_name` to its descriptor. Idempotent."""
        if self._linked:
            return self
        for node in self.walk():
            if node.ref_name and node.referenced_descriptor is None:
                target = self.find(node.ref_name, node.namespace)
                if target is None:
                    raise DescriptorError(
                        f"'{node.qualified_name}' references unknown component '{node.ref_name}'"
                    )
                node.referenced_descriptor = target
        self._linked = True
        return self

    def __len__(self) -> int:
        return sum(1 for _ in self.walk())
