# backend/finance_engine/services/repository.py
"""
In-memory AccountDataRepository.

Holds snapshots in dictionaries keyed by account/user id. Used by tests
and by hosts that already loaded everything they need (batch jobs,
notebooks). Hosts backed by a database implement the same protocol.
"""

from dataclasses import dataclass, field

from finance_engine.services.analytics.types import (
    HoldingSnapshot,
    PricePoint,
    TransactionRecord,
)
from finance_engine.services.exceptions import AccountNotFoundError, NotFoundError
from finance_engine.services.liabilities.types import (
    CreditCardSnapshot,
    DebtAccount,
    LoanTerms,
    PropertyMortgage,
)


@dataclass
class InMemoryAccountRepository:
    """
    Dictionary-backed snapshot source.

    An account is known when it has an entry in holdings or transactions;
    other lookups for unknown ids return empty lists.
    """
    holdings: dict[int, list[HoldingSnapshot]] = field(default_factory=dict)
    transactions: dict[int, list[TransactionRecord]] = field(default_factory=dict)
    prices: dict[str, list[PricePoint]] = field(default_factory=dict)
    benchmarks: dict[str, list[PricePoint]] = field(default_factory=dict)
    loans: dict[int | str, LoanTerms] = field(default_factory=dict)
    credit_cards: dict[int, list[CreditCardSnapshot]] = field(default_factory=dict)
    debts: dict[int, list[DebtAccount]] = field(default_factory=dict)
    mortgages: dict[int, list[PropertyMortgage]] = field(default_factory=dict)

    def _require_account(self, account_id: int) -> None:
        if account_id not in self.holdings and account_id not in self.transactions:
            raise AccountNotFoundError(account_id)

    def get_holdings(self, account_id: int) -> list[HoldingSnapshot]:
        self._require_account(account_id)
        return list(self.holdings.get(account_id, []))

    def get_transactions(self, account_id: int) -> list[TransactionRecord]:
        self._require_account(account_id)
        return list(self.transactions.get(account_id, []))

    def get_price_history(self, symbols: list[str]) -> dict[str, list[PricePoint]]:
        return self._series(self.prices, symbols)

    def get_benchmark_series(self, symbols: list[str]) -> dict[str, list[PricePoint]]:
        return self._series(self.benchmarks, symbols)

    def get_loan(self, loan_id: int | str) -> LoanTerms:
        loan = self.loans.get(loan_id)
        if loan is None:
            raise NotFoundError(
                f"Loan {loan_id} not found",
                resource_type="Loan",
                resource_id=loan_id,
            )
        return loan

    def get_credit_cards(self, user_id: int) -> list[CreditCardSnapshot]:
        return list(self.credit_cards.get(user_id, []))

    def get_debts(self, user_id: int) -> list[DebtAccount]:
        return list(self.debts.get(user_id, []))

    def get_mortgages(self, user_id: int) -> list[PropertyMortgage]:
        return list(self.mortgages.get(user_id, []))

    @staticmethod
    def _series(source: dict[str, list[PricePoint]], symbols: list[str]) -> dict[str, list[PricePoint]]:
        wanted = {s.upper() for s in symbols}
        return {
            symbol.upper(): list(points)
            for symbol, points in source.items()
            if symbol.upper() in wanted
        }
