# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Sample data factories for holdings, transactions and price series
- A populated InMemoryAccountRepository
- Engine settings and logging context cleanup
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator

import pytest

from finance_engine.config import EngineSettings
from finance_engine.services.analytics.types import (
    HoldingSnapshot,
    LotMethod,
    PricePoint,
    TransactionRecord,
    TransactionType,
)
from finance_engine.services.liabilities.types import (
    CreditCardSnapshot,
    DebtAccount,
    LoanTerms,
    PropertyMortgage,
)
from finance_engine.services.repository import InMemoryAccountRepository
from finance_engine.utils.context import clear_call_context, clear_correlation_id


ACCOUNT_ID = 1
USER_ID = 7


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def create_holding(
        holding_id: int = 1,
        symbol: str = "AAPL",
        quantity: str = "10",
        current_price: str = "120",
        cost_basis_per_unit: str | None = None,
        name: str | None = None,
        purchase_date: date | None = None,
) -> HoldingSnapshot:
    """Factory function for creating HoldingSnapshot test data."""
    return HoldingSnapshot(
        holding_id=holding_id,
        symbol=symbol,
        quantity=Decimal(quantity),
        current_price=Decimal(current_price),
        cost_basis_per_unit=Decimal(cost_basis_per_unit) if cost_basis_per_unit is not None else None,
        name=name,
        purchase_date=purchase_date,
    )


def create_transaction(
        transaction_id: int,
        txn_date: date,
        transaction_type: TransactionType | str,
        holding_id: int | None = None,
        symbol: str | None = None,
        quantity: str = "0",
        price: str = "0",
        amount: str | None = None,
        lot_method: LotMethod = LotMethod.FIFO,
        specific_lot_ids: tuple[int, ...] = (),
) -> TransactionRecord:
    """Factory function for creating TransactionRecord test data."""
    return TransactionRecord(
        transaction_id=transaction_id,
        date=txn_date,
        transaction_type=transaction_type,
        holding_id=holding_id,
        symbol=symbol,
        quantity=Decimal(quantity),
        price=Decimal(price),
        amount=Decimal(amount) if amount is not None else None,
        lot_method=lot_method,
        specific_lot_ids=specific_lot_ids,
    )


def create_price_series(
        start_date: date,
        end_date: date,
        start_price: str = "100",
        daily_growth: str = "1.001",
        wobble: str = "0",
) -> list[PricePoint]:
    """
    Business-day closes compounding at a fixed daily rate.

    Generates deterministic data so tests can reason about direction
    without hard-coding hundreds of values. A non-zero wobble lifts every
    other close by that fraction so daily returns are not constant.
    """
    points = []
    price = Decimal(start_price)
    growth = Decimal(daily_growth)
    lift = Decimal("1") + Decimal(wobble)
    current = start_date

    while current <= end_date:
        if current.weekday() < 5:
            close = price * lift if len(points) % 2 else price
            points.append(PricePoint(date=current, close=close))
            price = price * growth
        current += timedelta(days=1)

    return points


def create_loan(
        loan_id: int = 1,
        principal: str = "300000",
        annual_rate: str = "0.06",
        term_months: int = 360,
        start_date: date = date(2024, 1, 1),
        **kwargs,
) -> LoanTerms:
    """Factory function for creating LoanTerms test data."""
    return LoanTerms(
        loan_id=loan_id,
        principal=Decimal(principal),
        annual_rate=Decimal(annual_rate),
        term_months=term_months,
        start_date=start_date,
        **kwargs,
    )


# =============================================================================
# SAMPLE ACCOUNT FIXTURES
# =============================================================================

@pytest.fixture
def sample_holdings() -> list[HoldingSnapshot]:
    """One stock position bought in two tranches."""
    return [
        create_holding(
            holding_id=1,
            symbol="AAPL",
            quantity="15",
            current_price="130",
            cost_basis_per_unit="103.3333",
            name="Apple Inc.",
        ),
    ]


@pytest.fixture
def sample_transactions() -> list[TransactionRecord]:
    """Deposit, two buys and a partial sale of AAPL during 2024."""
    return [
        create_transaction(1, date(2024, 1, 2), TransactionType.DEPOSIT, amount="2000"),
        create_transaction(
            2, date(2024, 1, 2), TransactionType.BUY,
            holding_id=1, symbol="AAPL", quantity="10", price="100",
        ),
        create_transaction(3, date(2024, 3, 1), TransactionType.DEPOSIT, amount="1100"),
        create_transaction(
            4, date(2024, 3, 1), TransactionType.BUY,
            holding_id=1, symbol="AAPL", quantity="10", price="110",
        ),
        create_transaction(
            5, date(2024, 5, 1), TransactionType.SELL,
            holding_id=1, symbol="AAPL", quantity="5", price="125",
        ),
    ]


@pytest.fixture
def sample_prices() -> dict[str, list[PricePoint]]:
    return {"AAPL": create_price_series(date(2023, 12, 1), date(2024, 6, 30), "100", "1.001", "0.005")}


@pytest.fixture
def sample_benchmarks() -> dict[str, list[PricePoint]]:
    """SPY and QQQ only: IWM and VTI are deliberately missing."""
    return {
        "SPY": create_price_series(date(2023, 12, 1), date(2024, 6, 30), "450", "1.0008", "0.004"),
        "QQQ": create_price_series(date(2023, 12, 1), date(2024, 6, 30), "390", "1.0011", "0.006"),
    }


@pytest.fixture
def repository(
        sample_holdings,
        sample_transactions,
        sample_prices,
        sample_benchmarks,
) -> InMemoryAccountRepository:
    """Repository holding one investment account plus one user's liabilities."""
    return InMemoryAccountRepository(
        holdings={ACCOUNT_ID: sample_holdings},
        transactions={ACCOUNT_ID: sample_transactions},
        prices=sample_prices,
        benchmarks=sample_benchmarks,
        loans={1: create_loan()},
        credit_cards={
            USER_ID: [
                CreditCardSnapshot(account_id=11, balance=Decimal("1500"), credit_limit=Decimal("5000")),
                CreditCardSnapshot(account_id=12, balance=Decimal("500"), credit_limit=Decimal("5000")),
            ],
        },
        debts={
            USER_ID: [
                DebtAccount(id=1, balance=Decimal("5000"), apr=Decimal("0.05"), minimum_payment=Decimal("100")),
                DebtAccount(id=2, balance=Decimal("8000"), apr=Decimal("0.20"), minimum_payment=Decimal("150")),
            ],
        },
        mortgages={
            USER_ID: [
                PropertyMortgage(
                    property_id=3,
                    name="Main Street",
                    mortgage_balance=Decimal("200000"),
                    monthly_payment=Decimal("1500"),
                ),
            ],
        },
    )


@pytest.fixture
def engine_settings() -> EngineSettings:
    return EngineSettings()


@pytest.fixture(autouse=True)
def clean_context() -> Iterator[None]:
    """Correlation ID and call context never leak between tests."""
    yield
    clear_correlation_id()
    clear_call_context()
