# uipom/utils/logger.py
from __future__ import annotations

import contextlib
import json
import logging
import os
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Iterator, Optional

from rich.console import Console
from rich.logging import RichHandler

from uipom.utils.config import get_settings, LogLevel


__all__ = [
    "get_logger",
    "set_log_level",
    "bind",
    "unbind",
    "log_with_context",
    "log_scope",
    "current_scopes",
    "attach_file_logger",
    "detach_file_logger",
]

ROOT = "uipom"
_FILE_MAX_BYTES = 5 * 1024 * 1024

_config_lock = threading.Lock()
_configured = False
_global_extra: Dict[str, Any] = {}
_scopes = threading.local()


class JsonFormatter(logging.Formatter):
    """One JSON object per line; context from `record.extra` is flattened in."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "ts": ts.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "thread": record.threadName,
        }
        context = getattr(record, "extra", None)
        if isinstance(context, dict):
            payload.update(context)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class _ContextAdapter(logging.LoggerAdapter):
    """Puts bound global context plus the adapter's own into `record.extra`."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {"extra": {**_global_extra, **self.extra}}
        return msg, kwargs


def _to_level(level: LogLevel | str | int) -> int:
    if isinstance(level, int):
        return level
    name = level.value if isinstance(level, LogLevel) else level
    return getattr(logging, name.upper(), logging.INFO)


def _console_handler(level: int, colorized: bool) -> logging.Handler:
    console = Console(stderr=True, no_color=not colorized)
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(level)
    return handler


def _file_handler(path: os.PathLike | str, level: int, backups: int) -> logging.Handler:
    p = os.fspath(path)
    if os.path.dirname(p):
        os.makedirs(os.path.dirname(p), exist_ok=True)
    handler = RotatingFileHandler(p, maxBytes=_FILE_MAX_BYTES, backupCount=backups, encoding="utf-8", delay=True)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def _ensure_configured() -> None:
    """
    Install handlers on the `uipom` logger once, from Settings.
    The root logger is left alone.
    """
    global _configured
    if _configured:
        return
    with _config_lock:
        if _configured:
            return
        settings = get_settings()
        level = _to_level(settings.LOG_LEVEL)

        base = logging.getLogger(ROOT)
        base.setLevel(level)
        for h in list(base.handlers):
            base.removeHandler(h)
        base.addHandler(_console_handler(level, settings.COLORIZED_OUTPUT))
        if settings.LOG_TO_FILE:
            base.addHandler(_file_handler(settings.LOG_FILE, level, backups=5))

        # playwright is chatty at DEBUG
        logging.getLogger("playwright").setLevel(max(level, logging.WARNING))
        _configured = True


def get_logger(name: Optional[str] = None) -> logging.LoggerAdapter:
    """Logger under `uipom` whose records carry the bound global context."""
    _ensure_configured()
    return _ContextAdapter(logging.getLogger(name or ROOT), {})


def set_log_level(level: LogLevel | str | int) -> None:
    _ensure_configured()
    lvl = _to_level(level)
    base = logging.getLogger(ROOT)
    base.setLevel(lvl)
    for h in base.handlers:
        h.setLevel(lvl)


def bind(**kwargs: Any) -> None:
    """Add keys (e.g. browser="chromium") to every following record."""
    _global_extra.update(kwargs)


def unbind(*keys: str) -> None:
    for k in keys:
        _global_extra.pop(k, None)


def log_with_context(logger: logging.LoggerAdapter, **kwargs: Any) -> logging.LoggerAdapter:
    """
    Same logger, with extra context for one section:

        page_log = log_with_context(log, page="SearchPage")
        page_log.info("opened")
    """
    own = logger.extra if isinstance(logger, _ContextAdapter) else {}
    return _ContextAdapter(logger.logger, {**own, **kwargs})


def current_scopes() -> list[str]:
    """Titles of the scopes open on this thread, outermost first."""
    return list(getattr(_scopes, "stack", ()))


@contextlib.contextmanager
def log_scope(title: str, logger: Optional[logging.LoggerAdapter] = None) -> Iterator[logging.LoggerAdapter]:
    """
    Bracket a wait or an action with begin/end DEBUG lines.

    Scopes nest per thread. Each record carries `scope` (the path, joined
    with " > ") and `depth`, so a file log can be folded back into a tree.
    Yields a logger bound to the scope.
    """
    stack = getattr(_scopes, "stack", None)
    if stack is None:
        stack = _scopes.stack = []
    stack.append(title)
    depth = len(stack)
    scoped = log_with_context(logger or get_logger(f"{ROOT}.scope"), scope=" > ".join(stack), depth=depth)
    indent = "  " * (depth - 1)
    scoped.debug(f"{indent}{title}")
    try:
        yield scoped
    except BaseException as e:
        scoped.debug(f"{indent}{title} failed: {e.__class__.__name__}")
        raise
    else:
        scoped.debug(f"{indent}{title} done")
    finally:
        stack.pop()


def attach_file_logger(path: os.PathLike | str, level: Optional[int] = None) -> logging.Handler:
    """
    Add a JSON file handler (one per session) and return it for
    `detach_file_logger`.
    """
    _ensure_configured()
    base = logging.getLogger(ROOT)
    handler = _file_handler(path, level if level is not None else base.level, backups=3)
    base.addHandler(handler)
    return handler


def detach_file_logger(handler: logging.Handler) -> None:
    logging.getLogger(ROOT).removeHandler(handler)
    handler.close()
