# backend/finance_engine/__init__.py
"""
Personal-finance analytics engine.

Pure, synchronous calculations over in-memory snapshots: investment
performance and risk, tax lots, loan amortization, credit utilization
and debt payoff strategies. The entry point is
``finance_engine.services.engine.FinanceEngine``.
"""

__version__ = "1.0.0"
