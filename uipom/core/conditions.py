# uipom/core/conditions.py
from __future__ import annotations

"""Condition engine
-------------------
Polling conditions on a component's state. Every condition is a probe
plugged into wait_until(); the probe decides which lookup failures mean
"not yet" and which are fatal. Timeouts surface as ExpectError.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

from uipom.core.handle import ElementHandle
from uipom.driver.base import DriverElement
from uipom.errors import ExpectError, NoSuchElementError, StaleElementError, WaitTimeoutError
from uipom.utils.logger import log_scope
from uipom.utils.timing import ProbeResult, fatal, not_yet, satisfied, sleep_ms, wait_until

if TYPE_CHECKING:
    from uipom.core.component import Component, ComponentList


class Comparison(str, Enum):
    ORDINAL = "ordinal"
    IGNORE_CASE = "ignore_case"


@dataclass(frozen=True)
class ConditionContext:
    """Everything one wait needs; built per call, never shared."""
    timeout_ms: int
    polling_interval_ms: int
    handle: ElementHandle
    description: str


# What a probe does when the element cannot be resolved
AbsentPolicy = Optional[Callable[[Exception], ProbeResult]]

KEEP_POLLING: AbsentPolicy = lambda e: not_yet(e)  # noqa: E731
ABSENCE_SATISFIES: AbsentPolicy = lambda e: satisfied()  # noqa: E731
NO_RECOVERY: AbsentPolicy = None


def element_probe(
    handle: ElementHandle,
    check: Callable[[DriverElement], bool],
    on_absent: AbsentPolicy,
) -> Callable[[], ProbeResult]:
    """
    Probe evaluating `check` on the located element.

    NoSuchElement and Stale go through `on_absent` (a stale hit also
    invalidates the handle); with no policy they are fatal. Other errors
    propagate and abort the wait.
    """
    def probe() -> ProbeResult:
        try:
            return satisfied() if check(handle.locate()) else not_yet()
        except StaleElementError as e:
            if on_absent is None:
                return fatal(e)
            handle.invalidate()
            return on_absent(e)
        except NoSuchElementError as e:
            if on_absent is None:
                return fatal(e)
            return on_absent(e)
    return probe


def run_expectation(
    ctx: ConditionContext,
    probe: Callable[[], ProbeResult],
    failure: Callable[[], str],
    condition: str,
) -> None:
    """Wait for `probe` inside a diagnostic scope; timeout -> ExpectError."""
    meta = ctx.handle.metadata
    with log_scope(f"Expect {ctx.description}"):
        try:
            wait_until(probe, ctx.timeout_ms, ctx.polling_interval_ms, ctx.description)
        except WaitTimeoutError as e:
            raise ExpectError(
                failure(),
                component=meta.name,
                locator=str(meta.locator) if meta.locator else "",
                condition=condition,
            ) from e


# ---------- String predicates ----------

def _fold(value: str, comparison: Comparison) -> str:
    return value.casefold() if comparison == Comparison.IGNORE_CASE else value


def _compile(pattern: Union[str, re.Pattern[str]]) -> re.Pattern[str]:
    return pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)


@dataclass(frozen=True)
class StringConditions:
    """
    Conditions on one string read from the element (its text, an attribute,
    a computed style). Each method waits and returns the owning
    ComponentConditions so calls chain.
    """
    owner: "ComponentConditions"
    subject: str
    read: Callable[[DriverElement], Optional[str]]

    def _wait(
        self,
        predicate: Callable[[str], bool],
        expectation: str,
        condition: str,
        timeout: Optional[int],
    ) -> "ComponentConditions":
        seen: dict[str, Any] = {"value": None}

        def check(el: DriverElement) -> bool:
            value = self.read(el)
            seen["value"] = value
            return predicate(value if value is not None else "")

        ctx = self.owner.context(f"{self.subject} {expectation}", timeout)
        run_expectation(
            ctx,
            element_probe(ctx.handle, check, KEEP_POLLING),
            lambda: f"{self.subject} is {seen['value']!r}, expected it {expectation}.",
            condition,
        )
        return self.owner

    # ---- equality ----

    def is_(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        want = _fold(value, comparison)
        return self._wait(lambda s: _fold(s, comparison) == want, f"is '{value}'", "is", timeout)

    def is_not(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        want = _fold(value, comparison)
        return self._wait(lambda s: _fold(s, comparison) != want, f"is not '{value}'", "is_not", timeout)

    def is_empty(self, timeout: Optional[int] = None):
        return self._wait(lambda s: s == "", "is empty", "is_empty", timeout)

    def is_not_empty(self, timeout: Optional[int] = None):
        return self._wait(lambda s: s != "", "is not empty", "is_not_empty", timeout)

    # ---- prefix / suffix ----

    def starts_with(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        want = _fold(value, comparison)
        return self._wait(lambda s: _fold(s, comparison).startswith(want), f"starts with '{value}'", "starts_with", timeout)

    def does_not_start_with(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        want = _fold(value, comparison)
        return self._wait(
            lambda s: not _fold(s, comparison).startswith(want), f"does not start with '{value}'", "does_not_start_with", timeout
        )

    def ends_with(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        want = _fold(value, comparison)
        return self._wait(lambda s: _fold(s, comparison).endswith(want), f"ends with '{value}'", "ends_with", timeout)

    def does_not_end_with(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        want = _fold(value, comparison)
        return self._wait(
            lambda s: not _fold(s, comparison).endswith(want), f"does not end with '{value}'", "does_not_end_with", timeout
        )

    # ---- containment ----

    def contains(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        want = _fold(value, comparison)
        return self._wait(lambda s: want in _fold(s, comparison), f"contains '{value}'", "contains", timeout)

    def does_not_contain(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        want = _fold(value, comparison)
        return self._wait(lambda s: want not in _fold(s, comparison), f"does not contain '{value}'", "does_not_contain", timeout)

    # ---- regex ----

    def matches(self, pattern: Union[str, re.Pattern[str]], timeout: Optional[int] = None):
        rx = _compile(pattern)
        return self._wait(lambda s: rx.search(s) is not None, f"matches /{rx.pattern}/", "matches", timeout)

    def does_not_match(self, pattern: Union[str, re.Pattern[str]], timeout: Optional[int] = None):
        rx = _compile(pattern)
        return self._wait(lambda s: rx.search(s) is None, f"does not match /{rx.pattern}/", "does_not_match", timeout)


@dataclass(frozen=True)
class AttributeConditions(StringConditions):
    """String conditions on an attribute, plus presence checks."""
    attribute: str = ""

    def exists(self, timeout: Optional[int] = None):
        ctx = self.owner.context(f"{self.subject} exists", timeout)
        run_expectation(
            ctx,
            element_probe(ctx.handle, lambda el: el.get_attribute(self.attribute) is not None, KEEP_POLLING),
            lambda: f"{self.subject} is absent.",
            "attribute_exists",
        )
        return self.owner

    def does_not_exist(self, timeout: Optional[int] = None):
        ctx = self.owner.context(f"{self.subject} does not exist", timeout)
        run_expectation(
            ctx,
            element_probe(ctx.handle, lambda el: el.get_attribute(self.attribute) is None, KEEP_POLLING),
            lambda: f"{self.subject} is still present.",
            "attribute_does_not_exist",
        )
        return self.owner


# ---------- Component conditions ----------

class ComponentConditions:
    """Waits on one component; every method returns self for chaining."""

    def __init__(self, component: "Component") -> None:
        self.component = component

    @property
    def handle(self) -> ElementHandle:
        return self.component._handle

    @property
    def name(self) -> str:
        return self.handle.metadata.name

    def context(self, description: str, timeout: Optional[int] = None) -> ConditionContext:
        policy = self.component._space.wait_policy
        return ConditionContext(
            timeout_ms=policy.timeout_ms if timeout is None else timeout,
            polling_interval_ms=policy.polling_interval_ms,
            handle=self.handle,
            description=description,
        )

    # ---------- Visibility / presence ----------

    def is_displayed(self, timeout: Optional[int] = None) -> "ComponentConditions":
        ctx = self.context(f"{self.name} is displayed", timeout)
        run_expectation(
            ctx,
            element_probe(self.handle, lambda el: el.is_displayed(), KEEP_POLLING),
            lambda: f"{self.name} is not displayed yet '{self.handle.locator}'.",
            "is_displayed",
        )
        return self

    def is_not_displayed(self, timeout: Optional[int] = None) -> "ComponentConditions":
        """Detached or missing elements count as not displayed."""
        ctx = self.context(f"{self.name} is not displayed", timeout)
        run_expectation(
            ctx,
            element_probe(self.handle, lambda el: not el.is_displayed(), ABSENCE_SATISFIES),
            lambda: f"{self.name} is still displayed '{self.handle.locator}'.",
            "is_not_displayed",
        )
        return self

    def exists(self, timeout: Optional[int] = None) -> "ComponentConditions":
        ctx = self.context(f"{self.name} exists", timeout)
        # tag_name pings the node
        run_expectation(
            ctx,
            element_probe(self.handle, lambda el: el.tag_name is not None, KEEP_POLLING),
            lambda: f"{self.name} does not exist yet '{self.handle.locator}'.",
            "exists",
        )
        return self

    def does_not_exist(self, timeout: Optional[int] = None) -> "ComponentConditions":
        ctx = self.context(f"{self.name} does not exist", timeout)
        run_expectation(
            ctx,
            element_probe(self.handle, lambda el: el.tag_name is None, ABSENCE_SATISFIES),
            lambda: f"{self.name} still exists '{self.handle.locator}'.",
            "does_not_exist",
        )
        return self

    def is_enabled(self, timeout: Optional[int] = None) -> "ComponentConditions":
        """Lookup failures are not retried here, unlike the display/existence waits."""
        ctx = self.context(f"{self.name} is enabled", timeout)
        run_expectation(
            ctx,
            element_probe(self.handle, lambda el: el.is_enabled(), NO_RECOVERY),
            lambda: f"{self.name} is not enabled yet.",
            "is_enabled",
        )
        return self

    def elapsed(self, duration_ms: int) -> "ComponentConditions":
        """Waits a fixed amount of time."""
        sleep_ms(duration_ms)
        return self

    # ---------- Builders ----------

    def text(self) -> StringConditions:
        return StringConditions(self, f"text of the {self.name}", lambda el: el.text)

    def attribute(self, name: str) -> AttributeConditions:
        return AttributeConditions(
            self, f"attribute '{name}' of the {self.name}", lambda el: el.get_attribute(name), attribute=name
        )

    def style(self, name: str) -> StringConditions:
        return StringConditions(self, f"style '{name}' of the {self.name}", lambda el: el.get_style(name))

    # ---------- Text shortcuts ----------

    def is_(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        return self.text().is_(value, comparison, timeout)

    def is_not(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        return self.text().is_not(value, comparison, timeout)

    def is_empty(self, timeout: Optional[int] = None):
        return self.text().is_empty(timeout)

    def is_not_empty(self, timeout: Optional[int] = None):
        return self.text().is_not_empty(timeout)

    def starts_with(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        return self.text().starts_with(value, comparison, timeout)

    def does_not_start_with(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        return self.text().does_not_start_with(value, comparison, timeout)

    def ends_with(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        return self.text().ends_with(value, comparison, timeout)

    def does_not_end_with(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        return self.text().does_not_end_with(value, comparison, timeout)

    def contains(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        return self.text().contains(value, comparison, timeout)

    def does_not_contain(self, value: str, comparison: Comparison = Comparison.ORDINAL, timeout: Optional[int] = None):
        return self.text().does_not_contain(value, comparison, timeout)

    def matches(self, pattern: Union[str, re.Pattern[str]], timeout: Optional[int] = None):
        return self.text().matches(pattern, timeout)

    def does_not_match(self, pattern: Union[str, re.Pattern[str]], timeout: Optional[int] = None):
        return self.text().does_not_match(pattern, timeout)


# ---------- Collection conditions ----------

class ListConditions:
    """Waits on a plural component; counts are read fresh on every poll."""

    def __init__(self, components: "ComponentList") -> None:
        self.components = components

    @property
    def name(self) -> str:
        return self.components.metadata.name

    def _count_probe(self, predicate: Callable[[int], bool], seen: dict) -> Callable[[], ProbeResult]:
        handle = self.components._handle

        def probe() -> ProbeResult:
            try:
                n = len(handle.locate_all())
            except StaleElementError as e:
                handle.invalidate()
                return not_yet(e)
            except NoSuchElementError as e:
                return not_yet(e)
            seen["count"] = n
            return satisfied() if predicate(n) else not_yet()
        return probe

    def _wait_count(self, predicate: Callable[[int], bool], expectation: str, condition: str, timeout: Optional[int]):
        policy = self.components._space.wait_policy
        ctx = ConditionContext(
            timeout_ms=policy.timeout_ms if timeout is None else timeout,
            polling_interval_ms=policy.polling_interval_ms,
            handle=self.components._handle,
            description=f"count of {self.name} {expectation}",
        )
        seen: dict[str, Any] = {"count": None}
        run_expectation(
            ctx,
            self._count_probe(predicate, seen),
            lambda: f"count of {self.name} is {seen['count']}, expected it {expectation} '{self.components._handle.locator}'.",
            condition,
        )
        return self

    def count_is(self, expected: int, timeout: Optional[int] = None) -> "ListConditions":
        return self._wait_count(lambda n: n == expected, f"is {expected}", "count_is", timeout)

    def count_at_least(self, expected: int, timeout: Optional[int] = None) -> "ListConditions":
        return self._wait_count(lambda n: n >= expected, f"is at least {expected}", "count_at_least", timeout)

    def is_empty(self, timeout: Optional[int] = None) -> "ListConditions":
        return self._wait_count(lambda n: n == 0, "is 0", "is_empty", timeout)

    def is_not_empty(self, timeout: Optional[int] = None) -> "ListConditions":
        return self._wait_count(lambda n: n > 0, "is above 0", "is_not_empty", timeout)

    def all(self, check: Callable[["Component"], Any]) -> "ListConditions":
        """Run `check` against every element currently matched."""
        with log_scope(f"Expect each of {self.name}"):
            for item in self.components:
                check(item)
        return self
