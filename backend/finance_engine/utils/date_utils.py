# backend/finance_engine/utils/date_utils.py
"""
Date utility functions for the analytics engine.

This module provides shared date manipulation used across services:
- Month arithmetic (amortization payment dates, payoff dates)
- Period strings (1M, 3M, ..., ALL) to date ranges
- Sampling calendars for valuation series (daily, weekly, monthly)

Usage:
    from finance_engine.utils.date_utils import add_months, resolve_period

    start, end = resolve_period("YTD", today=date(2024, 6, 30))
"""

import calendar
from datetime import date, datetime, timedelta, timezone

from finance_engine.services.constants import (
    ALL_PERIOD_MAX_YEARS,
    SUPPORTED_INTERVALS,
    SUPPORTED_PERIODS,
)
from finance_engine.services.exceptions import InvalidIntervalError, InvalidPeriodError


def add_months(d: date, months: int) -> date:
    """
    Shift a date by a number of months, clamping to the end of month.

    Example:
        >>> add_months(date(2024, 1, 31), 1)
        date(2024, 2, 29)
    """
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def resolve_period(period: str, today: date | None = None) -> tuple[date, date]:
    """
    Map a period string to a (start, end) UTC date range.

    Supported: 1M, 3M, 6M, YTD, 1Y, 3Y, 5Y, ALL (case-insensitive).
    ALL is capped at 10 years back.

    Args:
        period: Period code
        today: End of the range (defaults to the current UTC date)

    Returns:
        Tuple of (start_date, end_date)

    Raises:
        InvalidPeriodError: If the period code is unknown
    """
    end = today or utc_today()
    code = period.strip().upper()

    if code not in SUPPORTED_PERIODS:
        raise InvalidPeriodError(period)

    if code == "YTD":
        return date(end.year, 1, 1), end
    if code == "ALL":
        return add_months(end, -12 * ALL_PERIOD_MAX_YEARS), end

    amount, unit = int(code[:-1]), code[-1]
    months = amount if unit == "M" else amount * 12
    return add_months(end, -months), end


def sampling_dates(start_date: date, end_date: date, interval: str) -> list[date]:
    """
    Build the sampling calendar for a valuation series.

    - daily: every business day (Mon-Fri)
    - weekly: every Friday (the last business day of the week)
    - monthly: the last calendar day of every month

    Dates outside [start_date, end_date] are never returned; endpoints are
    added by the caller.

    Raises:
        InvalidIntervalError: If interval is not daily, weekly or monthly
    """
    if interval not in SUPPORTED_INTERVALS:
        raise InvalidIntervalError(interval)

    dates: list[date] = []

    if interval == "daily":
        current = start_date
        while current <= end_date:
            if current.weekday() < 5:  # Monday = 0, Friday = 4
                dates.append(current)
            current += timedelta(days=1)
    elif interval == "weekly":
        current = start_date + timedelta(days=(4 - start_date.weekday()) % 7)
        while current <= end_date:
            dates.append(current)
            current += timedelta(days=7)
    else:
        current = date(
            start_date.year,
            start_date.month,
            calendar.monthrange(start_date.year, start_date.month)[1],
        )
        while current <= end_date:
            dates.append(current)
            nxt = add_months(date(current.year, current.month, 1), 1)
            current = date(nxt.year, nxt.month, calendar.monthrange(nxt.year, nxt.month)[1])

    return dates

