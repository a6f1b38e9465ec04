from __future__ import annotations

import textwrap
from typing import Dict, List, Optional

import pytest

from uipom.core.space import Space, SpaceOptions, compile_descriptors
from uipom.core.descriptor_loader import load_descriptor_text
from uipom.errors import NoSuchElementError, StaleElementError
from uipom.utils import timing


# ---------- Fake DOM ----------


class FakeNode:
    """A DOM node; `detach()` makes every reference handed out so far stale."""

    def __init__(self, tag="div", text="", attrs=None, styles=None, displayed=True, enabled=True):
        self.tag = tag
        self.text = text
        self.attrs: Dict[str, str] = dict(attrs or {})
        self.styles: Dict[str, str] = dict(styles or {})
        self.displayed = displayed
        self.enabled = enabled
        self.children: Dict[str, List["FakeNode"]] = {}
        self.generation = 0
        self.log: list = []

    def add(self, expression: str, *nodes: "FakeNode") -> "FakeNode":
        self.children.setdefault(expression, []).extend(nodes)
        return nodes[0] if nodes else self

    def detach(self) -> None:
        self.generation += 1


class FakeElement:
    def __init__(self, node: FakeNode) -> None:
        self.node = node
        self.generation = node.generation

    def _check(self) -> FakeNode:
        if self.generation != self.node.generation:
            raise StaleElementError("element is not attached to the document")
        return self.node

    def is_displayed(self) -> bool:
        return self._check().displayed

    def is_enabled(self) -> bool:
        return self._check().enabled

    @property
    def tag_name(self) -> str:
        return self._check().tag

    @property
    def text(self) -> str:
        return self._check().text

    def get_attribute(self, name: str) -> Optional[str]:
        return self._check().attrs.get(name)

    def get_style(self, name: str) -> str:
        return self._check().styles.get(name, "")

    def click(self) -> None:
        self._check().log.append("click")

    def send_keys(self, text: str) -> None:
        node = self._check()
        node.text += text
        node.log.append(("send_keys", text))

    def clear(self) -> None:
        node = self._check()
        node.text = ""
        node.log.append("clear")


class FakeGestures:
    def __init__(self, driver: "FakeDriver") -> None:
        self.driver = driver
        self.steps: list = []

    def move_to(self, element, x=None, y=None):
        self.steps.append(("move_to", element, x, y))
        return self

    def click(self):
        self.steps.append(("click",))
        return self

    def context_click(self, element):
        self.steps.append(("context_click", element))
        return self

    def double_click(self, element):
        self.steps.append(("double_click", element))
        return self

    def drag_and_drop(self, source, target):
        self.steps.append(("drag_and_drop", source, target))
        return self

    def perform(self) -> None:
        for step in self.steps:
            for arg in step[1:]:
                if isinstance(arg, FakeElement):
                    arg._check()
        self.driver.performed.append(list(self.steps))
        self.steps = []


class FakeDriver:
    """
    In-memory driver. Root nodes are registered by locator expression;
    lookups inside a scope search the scope node's children.
    """

    def __init__(self) -> None:
        self.document = FakeNode(tag="html")
        self.lookups: list = []
        self.scripts: list = []
        self.performed: list = []
        self.visited: list = []
        # expression -> exception raised by the next locate_one calls
        self.failures: Dict[str, List[Exception]] = {}

    def add(self, expression: str, *nodes: FakeNode) -> FakeNode:
        return self.document.add(expression, *nodes)

    def _matches(self, scope: Optional[FakeElement], locator) -> List[FakeNode]:
        root = self.document if scope is None else scope._check()
        return list(root.children.get(locator.expression, []))

    def locate_one(self, scope, locator) -> FakeElement:
        self.lookups.append(locator.expression)
        pending = self.failures.get(locator.expression)
        if pending:
            raise pending.pop(0)
        found = self._matches(scope, locator)
        if not found:
            raise NoSuchElementError(f"no element matches '{locator}'", locator=locator)
        return FakeElement(found[0])

    def locate_all(self, scope, locator) -> List[FakeElement]:
        self.lookups.append(locator.expression)
        return [FakeElement(n) for n in self._matches(scope, locator)]

    def execute_script(self, script: str, *args):
        for a in args:
            if isinstance(a, FakeElement):
                a._check()
        self.scripts.append((script, args))

    def gestures(self) -> FakeGestures:
        return FakeGestures(self)

    def navigate(self, url: str) -> None:
        self.visited.append(url)


# ---------- Fake clock ----------


class FakeClock:
    def __init__(self) -> None:
        self.now = 0
        self.sleeps: List[int] = []
        # called after every sleep, e.g. to change the page while a wait is polling
        self.on_sleep = None

    def now_ms(self) -> int:
        return self.now

    def sleep_ms(self, ms: int) -> None:
        self.sleeps.append(ms)
        self.now += max(0, ms)
        if self.on_sleep is not None:
            self.on_sleep()


@pytest.fixture
def clock(monkeypatch) -> FakeClock:
    c = FakeClock()
    monkeypatch.setattr(timing, "now_ms", c.now_ms)
    monkeypatch.setattr(timing, "sleep_ms", c.sleep_ms)
    monkeypatch.setattr("uipom.core.conditions.sleep_ms", c.sleep_ms)
    return c


# ---------- Descriptors / space ----------


NUGET_YAML = textwrap.dedent(
    """
    namespace: nuget
    pages:
      Home:
        url: /
        components:
          search input: "#search"
          search button: "//button[@type='submit']"
          Packages:
            by: .package
            plural: true
            components:
              Title: .//a
              Tags: { by: .tag, plural: true }
          PasswordField: "css=input[type=password]"
          Footer: { ref: Footer }
      PackageDetails:
        url: /packages/{id}
        components:
          Footer: { ref: Footer }
    components:
      Footer:
        by: footer
        components:
          Links: { by: a, singular: Link }
    """
)


@pytest.fixture
def driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def nuget_model():
    return load_descriptor_text(NUGET_YAML, origin="nuget.yaml")


@pytest.fixture
def space(driver, clock) -> Space:
    options = SpaceOptions(timeout_ms=2000, polling_interval_ms=100, base_url="https://www.nuget.org")
    return Space(driver, compile_descriptors(load_descriptor_text(NUGET_YAML)), options)
