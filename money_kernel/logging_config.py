"""
Structured JSON logging for the money kernel and tax engines.

Every logger obtained from ``get_logger`` lives under the ``money_kernel``
namespace. Once ``configure_logging`` has attached its handler, each record
is written as a single JSON object holding:

- ts, level, logger and message
- the calculation context bound with ``LogContext.bind`` (calculation_id,
  jurisdiction, tax_year), so every record of one tax calculation can be
  grouped
- the ``extra=`` payload, with Decimal amounts and rates kept as exact strings
- for failures, the exception type, message, ``code`` and structured
  attributes of MoneyKernelError subclasses as ``exc_*`` fields
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

_LOGGER_PREFIX = "money_kernel"

# Marks the handler installed by configure_logging
_HANDLER_FLAG = "_money_kernel_handler"

_lock = threading.Lock()

_CONTEXT_FIELDS = ("calculation_id", "jurisdiction", "tax_year")

_context_vars: dict[str, ContextVar[str | None]] = {
    field: ContextVar(f"money_kernel_{field}", default=None)
    for field in _CONTEXT_FIELDS
}


class LogContext:
    """Calculation-scoped fields merged into every record."""

    @staticmethod
    @contextmanager
    def bind(**fields: object) -> Iterator[None]:
        """
        Bind context fields for the duration of a ``with`` block.

        None values are skipped. Previous values are restored on exit,
        so nested bindings unwind correctly.

        Raises:
            ValueError: For a field name outside calculation_id,
                jurisdiction and tax_year.
        """
        unknown = sorted(set(fields) - set(_CONTEXT_FIELDS))
        if unknown:
            raise ValueError(f"Unknown log context fields: {', '.join(unknown)}")

        tokens = [
            (_context_vars[field], _context_vars[field].set(str(value)))
            for field, value in fields.items()
            if value is not None
        ]
        try:
            yield
        finally:
            for var, token in reversed(tokens):
                var.reset(token)

    @staticmethod
    def get_all() -> dict[str, str]:
        """Currently bound fields; unbound ones are omitted."""
        return {
            field: value
            for field, var in _context_vars.items()
            if (value := var.get()) is not None
        }


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    # UUID and domain objects such as Money render via str()
    return str(value)


# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    fields.update(
        (f"exc_{name}", value)
        for name, value in vars(exc).items()
        if not name.startswith("_")
    )
    return fields


class StructuredFormatter(logging.Formatter):
    """Render a LogRecord as one JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                entry.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            entry.update(_exception_fields(record.exc_info[1]))
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger named ``money_kernel.<name>``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> logging.Logger:
    """
    Attach the JSON handler to the ``money_kernel`` logger.

    Idempotent: once a handler is installed, later calls change nothing.
    Records stop propagating to the root logger.
    """
    root = logging.getLogger(_LOGGER_PREFIX)
    with _lock:
        if any(getattr(h, _HANDLER_FLAG, False) for h in root.handlers):
            return root
        if handler is None:
            handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        setattr(handler, _HANDLER_FLAG, True)
        root.addHandler(handler)
        root.setLevel(level)
        root.propagate = False
    return root


def reset_logging() -> None:
    """Remove the installed handler and restore stdlib defaults. For tests."""
    root = logging.getLogger(_LOGGER_PREFIX)
    with _lock:
        for handler in [h for h in root.handlers if getattr(h, _HANDLER_FLAG, False)]:
            root.removeHandler(handler)
        root.setLevel(logging.NOTSET)
        root.propagate = True
