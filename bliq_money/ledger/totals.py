"""
Totals Aggregation

The four headline figures of a month: realized income/expense, pending
income/expense, current (net) balance and projected balance.
"""

from decimal import Decimal
from typing import Iterable

from bliq_money.ledger.balance import opening_balance, sum_amounts
from bliq_money.models.ledger import (
    ZERO,
    FinanceState,
    MonthData,
    MonthKey,
    MonthTotals,
    Transaction,
    TransactionStatus,
    TransactionType,
)


def summarize(
    transactions: Iterable[Transaction],
    opening: Decimal = ZERO,
) -> MonthTotals:
    """
    Reduce a month's transactions, given its opening balance.

    net       = opening + confirmed income - confirmed expense
    projected = opening + all income - all expense (pending included)
    """
    transactions = list(transactions)
    confirmed_income = sum_amounts(
        transactions, TransactionType.INCOME, TransactionStatus.CONFIRMED
    )
    confirmed_expense = sum_amounts(
        transactions, TransactionType.EXPENSE, TransactionStatus.CONFIRMED
    )
    pending_income = sum_amounts(
        transactions, TransactionType.INCOME, TransactionStatus.PENDING
    )
    pending_expense = sum_amounts(
        transactions, TransactionType.EXPENSE, TransactionStatus.PENDING
    )
    return MonthTotals(
        opening_balance=opening,
        confirmed_income=confirmed_income,
        confirmed_expense=confirmed_expense,
        pending_income=pending_income,
        pending_expense=pending_expense,
        net=opening + confirmed_income - confirmed_expense,
        projected=(
            opening
            + (confirmed_income + pending_income)
            - (confirmed_expense + pending_expense)
        ),
    )


def compute_totals(state: FinanceState, month: MonthKey) -> MonthTotals:
    """Totals of a month of the ledger, opening balance included."""
    month = MonthKey(month)
    data = state.months.get(month) or MonthData()
    return summarize(data.transactions, opening_balance(state, month))
