# backend/finance_engine/utils/__init__.py
"""
Utility modules for the analytics engine.

This package contains cross-cutting utilities used throughout the engine:
- logging: Logging configuration and setup with correlation ID support
- context: Call context management for correlation IDs
- date_utils: Month arithmetic, period strings, sampling calendars
- money: Decimal rounding and string rendering

Usage:
    from finance_engine.utils import setup_logging, get_logger
    from finance_engine.utils import get_correlation_id, set_correlation_id
    from finance_engine.utils.date_utils import resolve_period
"""

from finance_engine.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    get_call_context,
    set_call_context,
    clear_call_context,
    bound_context,
)
from finance_engine.utils.logging import setup_logging, get_logger

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "get_call_context",
    "set_call_context",
    "clear_call_context",
    "bound_context",
]
