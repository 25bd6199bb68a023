# backend/finance_engine/services/__init__.py
"""
Service layer for the analytics engine.

Services:
- Have NO knowledge of HTTP or storage
- Consume plain in-memory snapshots, return plain result dataclasses
- Raise domain-specific exceptions only for invalid numeric input

Usage:
    from finance_engine.services.engine import FinanceEngine
    from finance_engine.services import ValidationError

Architecture:
    services/
    ├── __init__.py                  # This file - exception exports
    ├── exceptions.py                # Domain exceptions
    ├── constants.py                 # Business constants
    ├── protocols.py                 # Snapshot repository interface
    ├── repository.py                # In-memory repository
    ├── engine.py                    # FinanceEngine facade (7 operations)
    ├── analytics/                   # Investment analytics
    │   ├── types.py                 # Snapshot and result types
    │   ├── timeseries.py            # Valuation + cash-flow reconstruction
    │   ├── returns.py               # TWR, MWR, volatility, Sharpe
    │   ├── risk.py                  # Drawdown, beta, correlation
    │   ├── benchmark.py             # Benchmark comparison
    │   └── service.py               # Performance / risk orchestrator
    ├── tax/                         # Tax-lot engine
    │   ├── types.py
    │   ├── lots.py                  # Lot replay, realized gains
    │   └── service.py               # Unrealized gains, harvesting
    └── liabilities/                 # Loans and debts
        ├── types.py
        ├── amortization.py          # Schedules, extra-payment payoff
        ├── utilization.py           # Credit utilization
        └── payoff.py                # Avalanche / snowball simulation

Only exceptions are re-exported here: utils imports constants and
exceptions from this package, so nothing that imports utils may be
loaded by this __init__.
"""

from finance_engine.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidIntervalError,
    InvalidPeriodError,
    NotFoundError,
    AccountNotFoundError,
    AnalyticsError,
)

__all__ = [
    "ServiceError",
    "ValidationError",
    "InvalidIntervalError",
    "InvalidPeriodError",
    "NotFoundError",
    "AccountNotFoundError",
    "AnalyticsError",
]
