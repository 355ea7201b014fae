"""
The Ledger State Container

DESIGN DECISION: One explicit object owns the FinanceState of the logged-in
user. The session passes it around by reference; there is no module-level
state. Mutations are applied in place, but only after the input has been
fully validated, so a failed call never leaves a half-applied change behind.

The read side (totals, balances, filtering) is pure and synchronous.
"""

from decimal import Decimal
from typing import Any, Iterator, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from bliq_money.ledger.balance import cumulative_balance, opening_balance
from bliq_money.ledger.categories import CategoryRegistry
from bliq_money.ledger.errors import ValidationError
from bliq_money.ledger.months import MonthRegistry
from bliq_money.ledger.totals import compute_totals
from bliq_money.ledger.transactions import (
    DraftInput,
    TransactionInput,
    TransactionStore,
)
from bliq_money.models.ledger import (
    Category,
    FinanceState,
    MonthData,
    MonthKey,
    MonthTotals,
    Transaction,
    TransactionStatus,
    TypeFilter,
)


class Ledger:
    """A user's months, transactions and categories."""

    def __init__(self, state: Optional[FinanceState] = None):
        self._state = state if state is not None else FinanceState.initial()
        self._categories = CategoryRegistry(self._state.categories)
        self._months = MonthRegistry(self._state.months)

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> "Ledger":
        """
        Build a ledger from a raw snapshot dict.

        Raises:
            ValidationError: If the snapshot does not match the schema
        """
        try:
            return cls(FinanceState.model_validate(data))
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "snapshot") from e

    @property
    def state(self) -> FinanceState:
        return self._state

    @property
    def categories(self) -> CategoryRegistry:
        return self._categories

    @property
    def months(self) -> MonthRegistry:
        return self._months

    def month(self, month: MonthKey) -> MonthData:
        return self._months.get(month)

    def store(self, month: MonthKey) -> TransactionStore:
        return self._months.store(month)

    def snapshot(self) -> FinanceState:
        """An independent copy of the current state, for persistence."""
        return self._state.model_copy(deep=True)

    def to_snapshot(self) -> dict[str, Any]:
        return self._state.to_snapshot()

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_transaction(self, month: MonthKey, draft: DraftInput) -> Transaction:
        return self.store(month).add(draft)

    def update_transaction(self, month: MonthKey, transaction: TransactionInput) -> bool:
        return self.store(month).update(transaction)

    def delete_transaction(self, month: MonthKey, transaction_id: str) -> bool:
        return self.store(month).remove(transaction_id)

    def confirm_transaction(self, month: MonthKey, transaction_id: str) -> bool:
        return self.store(month).set_status(transaction_id, TransactionStatus.CONFIRMED)

    def toggle_carry_over(self, month: MonthKey) -> bool:
        return self._months.toggle_carry_over(month)

    def add_category(self, name: str, **presentation: str) -> Category:
        return self._categories.add(name, **presentation)

    def remove_category(self, category_id: str) -> bool:
        return self._categories.remove(category_id)

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    def totals(self, month: MonthKey) -> MonthTotals:
        return compute_totals(self._state, month)

    def opening_balance(self, month: MonthKey) -> Decimal:
        return opening_balance(self._state, month)

    def cumulative_balance(self, through: MonthKey) -> Decimal:
        return cumulative_balance(self._state, through)

    def filter(
        self,
        month: MonthKey,
        search_term: str = "",
        type_filter: TypeFilter = TypeFilter.ALL,
    ) -> list[Transaction]:
        return self.store(month).filter(search_term, type_filter)

    def require_transaction(self, month: MonthKey, transaction_id: str) -> Transaction:
        """
        Strict lookup.

        Raises:
            NotFoundError: If the month has no transaction with this id
        """
        return self.store(month).require(transaction_id)

    def transactions(self, month: MonthKey) -> list[Transaction]:
        return list(self.month(month).transactions)

    def iter_transactions(self) -> Iterator[tuple[MonthKey, Transaction]]:
        """Every transaction of the ledger with its month, in calendar order."""
        for month, data in self._months:
            for transaction in data.transactions:
                yield month, transaction

    def transaction_count(self) -> int:
        return sum(1 for _ in self.iter_transactions())
