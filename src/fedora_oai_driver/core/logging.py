"""
Structured logging helpers for the Fedora OAI driver.

Modules obtain loggers through :func:`get_logger` so every record goes through
:class:`StructuredLogFormatter`, which appends ``extra`` fields as ``key=value``
pairs after the message. The level and colour output are controlled by the
``FEDORA_OAI_LOG_LEVEL`` and ``FEDORA_OAI_LOG_COLOR`` environment variables.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from copy import copy
from logging import Logger, LoggerAdapter
from typing import Any, Iterable, Mapping, MutableMapping, Optional, Sequence

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LEVEL = "WARNING"
_ENV_LEVEL = "FEDORA_OAI_LOG_LEVEL"
_ENV_COLOR = "FEDORA_OAI_LOG_COLOR"
_EXTRA_FOCUS_ORDER: Sequence[str] = (
    "operation",
    "status",
    "rows",
    "url",
    "status_code",
    "bytes",
    "path",
    "query_factory",
)

_LEVEL_STYLES = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[95m",
}
_RESET = "\033[0m"

_RESERVED_ATTRS = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime", "taskName"}

_configured = False


def _resolve_level(level: Optional[int | str]) -> int:
    if isinstance(level, int):
        return level
    candidate = (level or os.getenv(_ENV_LEVEL) or DEFAULT_LEVEL).upper()
    resolved = logging.getLevelName(candidate)
    return resolved if isinstance(resolved, int) else logging.WARNING


def _supports_color(stream: Any) -> bool:
    preference = (os.getenv(_ENV_COLOR) or "auto").strip().lower()
    if preference in {"1", "true", "yes", "on"}:
        return True
    if preference in {"0", "false", "no", "off"}:
        return False
    return hasattr(stream, "isatty") and bool(stream.isatty())


def _iter_extras(record: logging.LogRecord) -> Iterable[tuple[str, Any]]:
    payload = {key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS and not key.startswith("_") and value is not None}

    for key in _EXTRA_FOCUS_ORDER:
        if key in payload:
            yield key, payload.pop(key)

    for key in sorted(payload):
        yield key, payload[key]


def _format_extra_value(value: Any) -> str:
    if isinstance(value, (list, tuple, set)):
        return "[" + ", ".join(_format_extra_value(item) for item in value) + "]"
    if isinstance(value, Mapping):
        try:
            return json.dumps(value, ensure_ascii=False, default=str)
        except TypeError:
            return repr(dict(value))
    return str(value)


class StructuredLogFormatter(logging.Formatter):
    """Formatter that appends structured extras and optionally colours the level."""

    def __init__(self, *, use_color: bool = False) -> None:
        super().__init__(DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        working = copy(record)
        if self.use_color:
            style = _LEVEL_STYLES.get(working.levelname.strip().upper())
            if style:
                working.levelname = f"{style}{working.levelname}{_RESET}"
        base = super().format(working)
        extras = " ".join(f"{key}={_format_extra_value(value)}" for key, value in _iter_extras(record))
        if extras:
            return f"{base} | {extras}"
        return base


def _build_handler(level: Optional[int | str]) -> logging.Handler:
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(_resolve_level(level))
    handler.setFormatter(StructuredLogFormatter(use_color=_supports_color(handler.stream)))
    return handler


def configure_logging(level: Optional[int | str] = None, *, force: bool = False) -> None:
    """
    Install the structured handler on the root logger.

    Parameters
    ----------
    level:
        Optional level override. Falls back to ``FEDORA_OAI_LOG_LEVEL`` or ``WARNING``.
    force:
        Reapply the configuration even if it was installed before.
    """

    global _configured
    if _configured and not force:
        return
    logging.basicConfig(level=_resolve_level(level), handlers=[_build_handler(level)], force=force)
    _configured = True


class ContextLoggerAdapter(LoggerAdapter):
    """Adapter that merges per-call ``extra`` values over its own."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        merged = dict(self.extra or {})
        merged.update(kwargs.get("extra") or {})
        kwargs["extra"] = merged
        return msg, kwargs


def get_logger(name: str, *, extra: Optional[Mapping[str, object]] = None) -> LoggerAdapter:
    """
    Return a :class:`logging.LoggerAdapter` carrying ``extra`` on every record.

    Unlike :func:`configure_logging` this never touches handlers, so importing
    the driver inside a host application leaves its logging setup alone.
    """

    base: Logger = logging.getLogger(name)
    payload = {key: value for key, value in (extra or {}).items() if value is not None}
    return ContextLoggerAdapter(base, payload)


def _emit_with_extra(
    logger: LoggerAdapter | Logger,
    level: int,
    message: str,
    payload: Optional[Mapping[str, object]],
) -> None:
    if isinstance(logger, LoggerAdapter):
        merged: MutableMapping[str, object] = {}
        if isinstance(logger.extra, Mapping):
            merged.update({key: value for key, value in logger.extra.items() if value is not None})
        if payload:
            merged.update(payload)
        logger.logger.log(level, message, extra=merged or None)
        return
    logger.log(level, message, extra=dict(payload) if payload else None)


def log_progress(
    logger: LoggerAdapter | Logger,
    message: str,
    *,
    operation: Optional[str] = None,
    status: Optional[str] = None,
    level: int = logging.INFO,
    extra: Optional[Mapping[str, object]] = None,
) -> None:
    """Emit a progress record tagged with the driver operation and its status."""

    payload: MutableMapping[str, object] = {}
    if extra:
        payload.update(extra)
    if operation:
        payload["operation"] = operation
    if status:
        payload["status"] = status
    _emit_with_extra(logger, level, message, payload or None)
