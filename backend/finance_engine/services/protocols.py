# backend/finance_engine/services/protocols.py
"""
Protocol interfaces for the snapshot source.

Using typing.Protocol enables structural subtyping:
- A host's storage adapter satisfies the protocol without inheriting it
- Test doubles work without explicit inheritance
- The engine never learns how snapshots are stored

Every method returns immutable in-memory snapshots; the engine performs
no I/O of its own.
"""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from finance_engine.services.analytics.types import (
        HoldingSnapshot,
        PricePoint,
        TransactionRecord,
    )
    from finance_engine.services.liabilities.types import (
        CreditCardSnapshot,
        DebtAccount,
        LoanTerms,
        PropertyMortgage,
    )


class AccountDataRepository(Protocol):
    """Interface required by FinanceEngine."""

    def get_holdings(self, account_id: int) -> list[HoldingSnapshot]:
        """
        Current holdings of an investment account.

        Raises:
            AccountNotFoundError: If the account is unknown
        """
        ...

    def get_transactions(self, account_id: int) -> list[TransactionRecord]:
        ...

    def get_price_history(self, symbols: list[str]) -> dict[str, list[PricePoint]]:
        """Daily closes per symbol; symbols without history are omitted."""
        ...

    def get_benchmark_series(self, symbols: list[str]) -> dict[str, list[PricePoint]]:
        ...

    def get_loan(self, loan_id: int | str) -> LoanTerms:
        ...

    def get_credit_cards(self, user_id: int) -> list[CreditCardSnapshot]:
        ...

    def get_debts(self, user_id: int) -> list[DebtAccount]:
        ...

    def get_mortgages(self, user_id: int) -> list[PropertyMortgage]:
        ...
