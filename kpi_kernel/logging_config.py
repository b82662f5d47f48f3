"""
Structured JSON logging for the KPI kernel.

Every record is written as one JSON object per line::

    {"ts": "2024-03-13T15:00:00.123456+00:00", "level": "INFO",
     "logger": "kpi_kernel.services.submission",
     "message": "progress_submission_completed",
     "correlation_id": "...", "actor_id": "...", "kpi_id": "...",
     "period_type": "weekly", "status": "accepted", "duration_ms": 1.7}

The submission fields (who is writing, which KPI, which period) are bound
once per request with ``LogContext.bind`` and stamped on every record
emitted inside the block, so ledger and rollup records of the same
submission share its correlation id.  Kernel exceptions logged with
``exc_info`` add their ``code`` and structured attributes as ``exc_*``
keys, e.g. ``exc_code="DEADLINE_PASSED"`` and ``exc_due_date``.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any
from uuid import UUID

LOGGER_NAME = "kpi_kernel"

CONTEXT_FIELDS = ("correlation_id", "actor_id", "kpi_id", "period_type", "period_key")

_NO_CONTEXT: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("kpi_log_context", default=_NO_CONTEXT)


class LogContext:
    """Submission fields shared by every record of one request."""

    @staticmethod
    @contextmanager
    def bind(**fields: object) -> Iterator[Mapping[str, str]]:
        """
        Stamp ``fields`` on every record logged inside the block.

        Values are stored as text.  None values are skipped, so a nested
        bind never erases what an outer one set.  The previous fields are
        restored on exit, also when the block raises.

        Raises:
            TypeError: A field name outside CONTEXT_FIELDS.
        """
        unknown = sorted(set(fields) - set(CONTEXT_FIELDS))
        if unknown:
            raise TypeError(f"Unknown log context field(s): {', '.join(unknown)}")
        merged = dict(_context.get())
        merged.update((name, str(value)) for name, value in fields.items() if value is not None)
        token = _context.set(MappingProxyType(merged))
        try:
            yield _context.get()
        finally:
            _context.reset(token)

    @staticmethod
    def current() -> Mapping[str, str]:
        return _context.get()


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    return repr(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per record.

    ``extra`` keys never replace the envelope (ts, level, logger, message),
    and bound context fields replace ``extra`` keys of the same name.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS and key not in payload:
                payload[key] = value
        payload.update(LogContext.current())

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger under the kpi_kernel namespace, e.g. ``kpi_kernel.domain.periods``."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

_installed: logging.Handler | None = None
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach the JSON handler to the ``kpi_kernel`` logger.

    Engine setup and every script call this; only the first call installs
    a handler.  Records do not propagate to the root logger.
    """
    global _installed
    with _lock:
        root = logging.getLogger(LOGGER_NAME)
        if _installed is not None and _installed in root.handlers:
            return
        installed = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        installed.setFormatter(StructuredFormatter())
        root.setLevel(level)
        root.propagate = False
        root.addHandler(installed)
        _installed = installed


def reset_logging() -> None:
    """Detach the installed handler so the next configure_logging applies. Tests only."""
    global _installed
    with _lock:
        root = logging.getLogger(LOGGER_NAME)
        if _installed is not None:
            root.removeHandler(_installed)
            _installed = None
        root.setLevel(logging.WARNING)
        root.propagate = True
