"""Error taxonomy shared by the compiler and the runtime."""

from __future__ import annotations

from typing import Optional


class UipomError(RuntimeError):
    """Base error for uipom."""


class NoSuchElementError(UipomError):
    """A locator matched nothing in its scope."""

    def __init__(self, message: str, *, locator: Optional[object] = None) -> None:
        super().__init__(message)
        self.locator = locator


class StaleElementError(UipomError):
    """A previously resolved element is no longer attached to the document."""


class WaitTimeoutError(UipomError, TimeoutError):
    """A polling wait exceeded its deadline."""

    def __init__(
        self,
        message: str,
        *,
        timeout_ms: int = 0,
        polls: int = 0,
        last_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.timeout_ms = timeout_ms
        self.polls = polls
        self.last_error = last_error


class ExpectError(UipomError, AssertionError):
    """A component condition was not met in time."""

    def __init__(self, message: str, *, component: str, locator: str, condition: str) -> None:
        super().__init__(message)
        self.component = component
        self.locator = locator
        self.condition = condition


class DescriptorError(UipomError, ValueError):
    """Descriptor files could not be parsed or linked."""


class CyclicDescriptorError(DescriptorError):
    """Component references form a cycle."""

    def __init__(self, chain: list[str]) -> None:
        super().__init__("cyclic component reference: " + " -> ".join(chain))
        self.chain = chain


class InvalidOptionsError(UipomError, ValueError):
    """An action received a missing or malformed options value."""


__all__ = [
    "UipomError",
    "NoSuchElementError",
    "StaleElementError",
    "WaitTimeoutError",
    "ExpectError",
    "DescriptorError",
    "CyclicDescriptorError",
    "InvalidOptionsError",
]
