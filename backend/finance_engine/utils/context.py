# backend/finance_engine/utils/context.py
"""
Call context management for the analytics engine.

Stores a correlation ID (supplied by the host, usually the request ID of
the HTTP call that asked for a calculation) so that every engine log line
can be traced back to its caller.

Uses Python's contextvars, which keeps the value isolated per thread and
per asyncio task.

Usage:
    from finance_engine.utils.context import set_correlation_id

    set_correlation_id("req-123")
    engine.calculate_performance(...)   # log lines carry "req-123"
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

_call_context_var: ContextVar[dict[str, Any]] = ContextVar("call_context", default={})


# =============================================================================
# CORRELATION ID
# =============================================================================

def get_correlation_id() -> str | None:
    """Return the correlation ID for the current call, or None."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current call.

    Args:
        correlation_id: Identifier supplied by the host
    """
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


# =============================================================================
# EXTENDED CONTEXT
# =============================================================================

def get_call_context() -> dict[str, Any]:
    """Return a copy of the call context dictionary."""
    return _call_context_var.get().copy()


def set_call_context(key: str, value: Any) -> None:
    """
    Set a value in the call context (e.g. ``account_id``).

    Args:
        key: Context key
        value: Context value
    """
    ctx = _call_context_var.get().copy()
    ctx[key] = value
    _call_context_var.set(ctx)


def clear_call_context() -> None:
    _call_context_var.set({})


@contextmanager
def bound_context(**fields: Any) -> Iterator[dict[str, Any]]:
    """
    Add fields to the call context for the duration of a block.

    The previous context is restored on exit, also when the block raises.

    Usage:
        with bound_context(account_id=7):
            ...   # log lines carry {"account_id": 7}
    """
    ctx = {**_call_context_var.get(), **fields}
    token = _call_context_var.set(ctx)
    try:
        yield ctx.copy()
    finally:
        _call_context_var.reset(token)
