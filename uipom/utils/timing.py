# uipom/utils/timing.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar, ParamSpec, Union

from uipom.errors import WaitTimeoutError
from uipom.utils.logger import get_logger

P = ParamSpec("P")
T = TypeVar("T")


# ---------------- Monotonic time helpers ----------------

def now_ms() -> int:
    """Monotonic time in milliseconds."""
    return time.monotonic_ns() // 1_000_000


def sleep_ms(ms: int) -> None:
    """Sleep for `ms` milliseconds (blocking)."""
    if ms <= 0:
        return
    time.sleep(ms / 1000.0)


# ---------------- Stopwatch ----------------

@dataclass
class Stopwatch:
    """Simple stopwatch usable as a context manager."""
    start_ms: Optional[int] = None

    def start(self) -> "Stopwatch":
        self.start_ms = now_ms()
        return self

    def elapsed_ms(self) -> int:
        if self.start_ms is None:
            return 0
        return max(0, now_ms() - self.start_ms)

    def __enter__(self) -> "Stopwatch":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        return None


# ---------------- Probe results ----------------

@dataclass(frozen=True)
class Satisfied:
    pass


@dataclass(frozen=True)
class NotYetSatisfied:
    cause: Optional[BaseException] = None


@dataclass(frozen=True)
class Fatal:
    cause: BaseException


ProbeResult = Union[Satisfied, NotYetSatisfied, Fatal]

SATISFIED = Satisfied()
NOT_YET = NotYetSatisfied()


def satisfied() -> Satisfied:
    return SATISFIED


def not_yet(cause: Optional[BaseException] = None) -> NotYetSatisfied:
    return NOT_YET if cause is None else NotYetSatisfied(cause)


def fatal(cause: BaseException) -> Fatal:
    return Fatal(cause)


def _as_result(value: Union[ProbeResult, bool]) -> ProbeResult:
    if isinstance(value, (Satisfied, NotYetSatisfied, Fatal)):
        return value
    return SATISFIED if value else NOT_YET


# ---------------- wait_until (polling) ----------------

def wait_until(
    probe: Callable[[], Union[ProbeResult, bool]],
    timeout_ms: int,
    interval_ms: int,
    description: Optional[str] = None,
) -> int:
    """
    Poll `probe()` every `interval_ms` until it is satisfied or `timeout_ms` elapses.

    The probe classifies its own recoverable errors into NotYetSatisfied; a
    Fatal result aborts the wait by raising its cause. Returns the number of
    probe evaluations.

    Raises:
        WaitTimeoutError on timeout (carrying the last NotYetSatisfied cause).
    """
    log = get_logger(__name__)
    deadline = now_ms() + max(0, timeout_ms)
    polls = 0
    last_cause: Optional[BaseException] = None

    while True:
        result = _as_result(probe())
        polls += 1
        if isinstance(result, Satisfied):
            return polls
        if isinstance(result, Fatal):
            raise result.cause
        last_cause = result.cause or last_cause
        remaining = deadline - now_ms()
        if remaining <= 0:
            desc = f" ({description})" if description else ""
            raise WaitTimeoutError(
                f"wait_until timed out after {timeout_ms} ms{desc}",
                timeout_ms=timeout_ms,
                polls=polls,
                last_error=last_cause,
            )
        sleep_ms(max(1, min(interval_ms, remaining)))

        if interval_ms >= 500 and polls % 10 == 0:
            log.debug(f"Waiting... {max(0, deadline - now_ms())} ms left{(' - ' + description) if description else ''}")


# ---------------- measure decorator ----------------

def measure(label: str = "", level: str = "INFO") -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator to log the execution time of a function.
    Example:
        @measure("compile descriptors")
        def compile(...): ...
    """
    level = level.upper()

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            log = get_logger(func.__module__)
            log_fn = getattr(log, level.lower(), log.info)
            with Stopwatch() as sw:
                try:
                    return func(*args, **kwargs)
                finally:
                    ms = sw.elapsed_ms()
                    human = f"{ms} ms" if ms < 1000 else f"{ms/1000:.3f} s"
                    name = label or func.__name__
                    log_fn(f"{name} took {human}")
        wrapper.__name__ = func.__name__
        wrapper.__doc__ = func.__doc__
        return wrapper
    return decorator
