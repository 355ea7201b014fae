"""Monthly ledger and balance-propagation engine."""

from bliq_money.ledger.balance import (
    cumulative_balance,
    month_net,
    opening_balance,
)
from bliq_money.ledger.categories import CategoryRegistry
from bliq_money.ledger.errors import LedgerError, NotFoundError, ValidationError
from bliq_money.ledger.ledger import Ledger
from bliq_money.ledger.months import MonthRegistry
from bliq_money.ledger.totals import compute_totals, summarize
from bliq_money.ledger.transactions import (
    TransactionStore,
    parse_draft,
    parse_transaction,
)

__all__ = [
    "CategoryRegistry",
    "Ledger",
    "LedgerError",
    "MonthRegistry",
    "NotFoundError",
    "TransactionStore",
    "ValidationError",
    "compute_totals",
    "cumulative_balance",
    "month_net",
    "opening_balance",
    "parse_draft",
    "parse_transaction",
    "summarize",
]
