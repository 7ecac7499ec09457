"""Request-scoped logging context.

Backed by contextvars so values follow the current thread or task. The
scheduler and ingestion service use ``bind_context`` to tag every record
emitted while they work on one drone or mission.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

_extra_context: ContextVar[dict[str, Any] | None] = ContextVar("extra_context", default=None)


def get_correlation_id() -> str:
    """Get the correlation ID for the current context."""
    return correlation_id.get()


def set_correlation_id(value: str) -> None:
    """Set the correlation ID for the current context."""
    correlation_id.set(value)


def generate_correlation_id() -> str:
    """Generate and set a new correlation ID.

    Returns:
        The generated correlation ID.
    """
    new_id = str(uuid4())
    correlation_id.set(new_id)
    return new_id


def get_extra_context() -> dict[str, Any]:
    """Get a copy of the extra fields attached to every record."""
    context = _extra_context.get()
    if context is None:
        return {}
    return context.copy()


def set_extra_context(**kwargs: Any) -> None:
    """Merge fields into the extra context of the current scope.

    Args:
        **kwargs: Key-value pairs to include in log records.
    """
    current = get_extra_context()
    current.update(kwargs)
    _extra_context.set(current)


@contextmanager
def bind_context(**kwargs: Any) -> Iterator[None]:
    """Attach fields to log records for the duration of a block.

    The previous extra context is restored on exit, even on error.

    Args:
        **kwargs: Key-value pairs to include in log records.
    """
    merged = get_extra_context()
    merged.update(kwargs)
    token = _extra_context.set(merged)
    try:
        yield
    finally:
        _extra_context.reset(token)


def clear_context() -> None:
    """Clear all context (correlation ID and extra context)."""
    correlation_id.set("")
    _extra_context.set(None)
