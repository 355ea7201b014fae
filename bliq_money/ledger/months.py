"""
Month Registry

Access to the twelve fixed month buckets of a ledger.
"""

from typing import Iterator

from bliq_money.ledger.transactions import TransactionStore
from bliq_money.models.ledger import MONTHS, MonthData, MonthKey


class MonthRegistry:
    """
    Per-month access: bucket data, carry-over flag and transaction store.

    A bucket is never absent. If a month is missing from the mapping it is
    created on first access with no transactions and carry-over off.
    """

    def __init__(self, months: dict[MonthKey, MonthData]):
        self._months = months

    def __iter__(self) -> Iterator[tuple[MonthKey, MonthData]]:
        """Iterate (month, data) pairs in calendar order."""
        for month in MONTHS:
            yield month, self.get(month)

    def get(self, month: MonthKey) -> MonthData:
        month = MonthKey(month)
        data = self._months.get(month)
        if data is None:
            data = MonthData()
            self._months[month] = data
        return data

    def store(self, month: MonthKey) -> TransactionStore:
        """The transaction store of a month, for mutation and filtering."""
        return TransactionStore(self.get(month).transactions)

    def carry_over(self, month: MonthKey) -> bool:
        return self.get(month).settings.carry_over_balance

    def set_carry_over(self, month: MonthKey, enabled: bool) -> bool:
        self.get(month).settings.carry_over_balance = bool(enabled)
        return self.get(month).settings.carry_over_balance

    def toggle_carry_over(self, month: MonthKey) -> bool:
        """
        Flip the carry-over flag of a month.

        Balances are derived on read, so nothing needs recomputing here.

        Returns:
            The new value of the flag
        """
        return self.set_carry_over(month, not self.carry_over(month))
