"""Shared fixtures: ledgers, drafts and in-memory collaborators."""

from datetime import date
from decimal import Decimal
from typing import Sequence

import pytest

from bliq_money.agents import AdviceError, AdviceGeneratorInterface
from bliq_money.audit import AuditLogger
from bliq_money.ledger import Ledger
from bliq_money.models.ledger import (
    FinanceState,
    MonthKey,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from bliq_money.models.user import AuthSession, UserProfile
from bliq_money.services.storage import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    StorageError,
)


def make_draft(
    description: str = "Mercado",
    amount: str = "100.00",
    tx_date: date = date(2024, 1, 10),
    category: str = "Alimentação",
    tx_type: TransactionType = TransactionType.EXPENSE,
    status: TransactionStatus = TransactionStatus.CONFIRMED,
) -> dict:
    return {
        "description": description,
        "amount": Decimal(amount),
        "date": tx_date,
        "category": category,
        "type": tx_type,
        "status": status,
    }


class StubAdvisor(AdviceGeneratorInterface):
    """Returns canned advice, or fails if asked to."""

    def __init__(self, text: str = "Primeiro parágrafo.\n\nSegundo parágrafo.", fail: bool = False):
        self.text = text
        self.fail = fail
        self.calls: list[tuple[MonthKey, list[Transaction]]] = []

    async def get_advice(self, month: MonthKey, transactions: Sequence[Transaction]) -> str:
        self.calls.append((month, list(transactions)))
        if self.fail:
            raise AdviceError("advisor offline")
        return self.text


class FailingLedgerStorage(InMemoryLedgerStorage):
    """Loads normally, refuses every save."""

    async def save(self, user_id: str, state: FinanceState) -> bool:
        raise StorageError("disk full")


@pytest.fixture
def ledger() -> Ledger:
    return Ledger()


@pytest.fixture
def scenario_ledger() -> Ledger:
    """
    Janeiro: +1000 / -400 confirmed, no carry-over
    Fevereiro: +200 pending, carry-over on
    Março: -50 confirmed, carry-over off
    """
    ledger = Ledger()
    ledger.add_transaction(MonthKey.JANEIRO, make_draft(
        "Salário", "1000.00", date(2024, 1, 5), "Salário", TransactionType.INCOME,
    ))
    ledger.add_transaction(MonthKey.JANEIRO, make_draft(
        "Aluguel", "400.00", date(2024, 1, 10), "Moradia",
    ))
    ledger.add_transaction(MonthKey.FEVEREIRO, make_draft(
        "Freela", "200.00", date(2024, 2, 15), "Outros",
        TransactionType.INCOME, TransactionStatus.PENDING,
    ))
    ledger.months.set_carry_over(MonthKey.FEVEREIRO, True)
    ledger.add_transaction(MonthKey.MARCO, make_draft(
        "Cinema", "50.00", date(2024, 3, 2), "Lazer",
    ))
    return ledger


@pytest.fixture
def user_session() -> AuthSession:
    return AuthSession(
        user=UserProfile(id="user-1", name="Ana Souza", email="ana@example.com"),
        token="token",
    )


@pytest.fixture
def memory_storage() -> InMemoryLedgerStorage:
    return InMemoryLedgerStorage()


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage) -> AuditLogger:
    return AuditLogger(audit_storage)
