# src/logging/context.py — v1
"""Contextual logging support — attach batch_id, file_path, operation to log records.

Each asyncio task gets its own copy of these variables, so concurrent file
checks never see each other's context.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_batch_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch_id", default=None
)
_file_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "file_path", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    batch_id: str | None = None
    file_path: str | None = None
    operation: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        batch_id=_batch_id.get(),
        file_path=_file_path.get(),
        operation=_operation.get(),
    )


def set_batch_context(batch_id: str | None) -> None:
    """Set batch-level context (called once per batch run)."""
    _batch_id.set(batch_id)


def set_file_context(file_path: str, operation: str | None = None) -> None:
    """Set file-level context (called inside each per-file task)."""
    _file_path.set(file_path)
    _operation.set(operation)


def clear_context() -> None:
    """Reset all context variables."""
    _batch_id.set(None)
    _file_path.set(None)
    _operation.set(None)
