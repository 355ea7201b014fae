"""
Balance Propagation

Computes how much of the previous months' result flows into a month.

The months form a fixed chain, Janeiro to Dezembro. Walking the chain from
the start with a running total, a month whose carry-over flag is OFF resets
the total to zero BEFORE its own net is added. So the reset happens at the
non-carrying month itself: its own result starts a new chain, it is not
skipped. Janeiro never resets since nothing precedes it.

Only CONFIRMED transactions count. Everything here is recomputed on each
call; with twelve months there is nothing worth caching.
"""

from decimal import Decimal
from typing import Iterable

from bliq_money.models.ledger import (
    MONTHS,
    ZERO,
    FinanceState,
    MonthData,
    MonthKey,
    Transaction,
    TransactionStatus,
    TransactionType,
)


def sum_amounts(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType,
    status: TransactionStatus,
) -> Decimal:
    """Sum the amounts of the transactions with the given type and status."""
    return sum(
        (
            t.amount for t in transactions
            if t.type == transaction_type and t.status == status
        ),
        ZERO,
    )


def month_net(month_data: MonthData) -> Decimal:
    """Confirmed income minus confirmed expense of a single month."""
    income = sum_amounts(
        month_data.transactions, TransactionType.INCOME, TransactionStatus.CONFIRMED
    )
    expense = sum_amounts(
        month_data.transactions, TransactionType.EXPENSE, TransactionStatus.CONFIRMED
    )
    return income - expense


def cumulative_balance(state: FinanceState, through: MonthKey) -> Decimal:
    """
    Running balance of the chain up to and including `through`.

    Example (flags in brackets):
        Janeiro [off] net 600, Fevereiro [on] net 0, Março [off] net -50
        through Fevereiro -> 600
        through Março     -> -50   (reset at Março, then its own net)
    """
    target = MonthKey(through).ordinal
    running = ZERO
    for month in MONTHS[: target + 1]:
        data = state.months.get(month) or MonthData()
        if month.ordinal > 0 and not data.settings.carry_over_balance:
            running = ZERO
        running += month_net(data)
    return running


def opening_balance(state: FinanceState, month: MonthKey) -> Decimal:
    """
    The amount carried into `month` from the months before it.

    Zero when the month does not carry over, and always zero for Janeiro.
    """
    month = MonthKey(month)
    data = state.months.get(month) or MonthData()
    if not data.settings.carry_over_balance or month.previous is None:
        return ZERO
    return cumulative_balance(state, month.previous)
