"""
Integration tests for the ledger session.

Every collaborator is in-memory or stubbed.
"""

import pytest
import pytest_asyncio
from datetime import date
from decimal import Decimal

from conftest import FailingLedgerStorage, StubAdvisor, make_draft

from bliq_money.ledger import LedgerError, ValidationError
from bliq_money.models.audit import AuditEventType
from bliq_money.models.ledger import (
    FinanceState,
    MonthKey,
    TransactionStatus,
    TransactionType,
)
from bliq_money.orchestrator import LedgerSession
from bliq_money.services.auth import AuthenticationError, LocalAuthService
from bliq_money.services.storage import PersistenceError


def event_types(audit_storage) -> list[AuditEventType]:
    return [event.event_type for event in audit_storage.events]


@pytest.fixture
def session(memory_storage, audit_logger) -> LedgerSession:
    return LedgerSession(
        storage=memory_storage,
        advisor=StubAdvisor(),
        audit_logger=audit_logger,
    )


@pytest_asyncio.fixture
async def open_session(session, user_session) -> LedgerSession:
    await session.open(user_session)
    return session


class TestOpen:

    @pytest.mark.asyncio
    async def test_new_user_gets_initial_state(self, session, user_session, audit_storage):
        ledger = await session.open(user_session)

        assert session.is_open is True
        assert session.user_id == "user-1"
        assert ledger.state == FinanceState.initial()
        assert event_types(audit_storage) == [AuditEventType.LEDGER_CREATED]

    @pytest.mark.asyncio
    async def test_existing_snapshot_is_loaded(
        self, session, user_session, memory_storage, audit_storage,
    ):
        state = FinanceState.initial()
        state.months[MonthKey.MAIO].settings.carry_over_balance = True
        await memory_storage.save("user-1", state)

        ledger = await session.open(user_session)

        assert ledger.months.carry_over(MonthKey.MAIO) is True
        assert event_types(audit_storage) == [AuditEventType.LEDGER_LOADED]

    @pytest.mark.asyncio
    async def test_nothing_is_saved_on_open(self, session, user_session, memory_storage):
        await session.open(user_session)
        assert memory_storage.save_count == 0

    def test_operations_require_an_open_ledger(self, session):
        with pytest.raises(LedgerError):
            session.totals(MonthKey.JANEIRO)


class TestMutations:

    @pytest.mark.asyncio
    async def test_every_mutation_is_saved(self, open_session, memory_storage):
        tx = await open_session.add_transaction(
            MonthKey.JANEIRO, make_draft(status=TransactionStatus.PENDING),
        )
        await open_session.confirm_transaction(MonthKey.JANEIRO, tx.id)
        await open_session.update_transaction(
            MonthKey.JANEIRO, {**tx.model_dump(), "description": "Feira"},
        )
        await open_session.toggle_carry_over(MonthKey.FEVEREIRO)
        category = await open_session.add_category("Pets")
        await open_session.remove_category(category.id)
        await open_session.delete_transaction(MonthKey.JANEIRO, tx.id)

        assert memory_storage.save_count == 7

    @pytest.mark.asyncio
    async def test_saved_snapshot_reflects_last_mutation(self, open_session, memory_storage):
        tx = await open_session.add_transaction(MonthKey.JANEIRO, make_draft("Mercado"))

        stored = await memory_storage.load("user-1")
        assert stored.months[MonthKey.JANEIRO].transactions[0].id == tx.id

        await open_session.toggle_carry_over(MonthKey.MARCO)
        stored = await memory_storage.load("user-1")
        assert stored.months[MonthKey.MARCO].settings.carry_over_balance is True

    @pytest.mark.asyncio
    async def test_add_is_audited_with_one_correlation_id(self, open_session, audit_storage):
        await open_session.add_transaction(MonthKey.JANEIRO, make_draft())

        added, saved = audit_storage.events[-2:]
        assert added.event_type == AuditEventType.TRANSACTION_ADDED
        assert saved.event_type == AuditEventType.LEDGER_SAVED
        assert added.correlation_id == saved.correlation_id
        assert added.user_id == "user-1"

    @pytest.mark.asyncio
    async def test_invalid_input_is_audited_and_not_saved(
        self, open_session, memory_storage, audit_storage,
    ):
        with pytest.raises(ValidationError):
            await open_session.add_transaction(MonthKey.JANEIRO, make_draft(amount="-5.00"))

        assert memory_storage.save_count == 0
        assert open_session.ledger.transactions(MonthKey.JANEIRO) == []
        assert audit_storage.events[-1].event_type == AuditEventType.VALIDATION_FAILED

    @pytest.mark.asyncio
    async def test_unknown_ids_are_audited_noops(
        self, open_session, memory_storage, audit_storage,
    ):
        assert await open_session.delete_transaction(MonthKey.JANEIRO, "missing") is False
        assert await open_session.confirm_transaction(MonthKey.JANEIRO, "missing") is False
        assert await open_session.update_transaction(
            MonthKey.JANEIRO, {**make_draft(), "id": "missing"},
        ) is False

        assert memory_storage.save_count == 0
        assert event_types(audit_storage)[-3:] == [AuditEventType.TRANSACTION_NOT_FOUND] * 3

    @pytest.mark.asyncio
    async def test_confirming_twice_saves_once(self, open_session, memory_storage):
        tx = await open_session.add_transaction(
            MonthKey.JANEIRO, make_draft(status=TransactionStatus.PENDING),
        )
        assert await open_session.confirm_transaction(MonthKey.JANEIRO, tx.id) is True
        assert await open_session.confirm_transaction(MonthKey.JANEIRO, tx.id) is False
        assert memory_storage.save_count == 2

    @pytest.mark.asyncio
    async def test_totals_and_filter(self, open_session):
        await open_session.add_transaction(MonthKey.JANEIRO, make_draft(
            "Salário", "1000.00", category="Salário", tx_type=TransactionType.INCOME,
        ))
        await open_session.add_transaction(MonthKey.JANEIRO, make_draft("Aluguel", "400.00"))
        await open_session.toggle_carry_over(MonthKey.FEVEREIRO)

        assert open_session.totals(MonthKey.JANEIRO).net == Decimal("600")
        assert open_session.totals(MonthKey.FEVEREIRO).opening_balance == Decimal("600")
        assert [t.description for t in open_session.filter(MonthKey.JANEIRO, "alug")] == ["Aluguel"]

    @pytest.mark.asyncio
    async def test_validate_uses_current_categories(self, open_session):
        result = open_session.validate(make_draft(category="Pets"), MonthKey.JANEIRO)
        assert [i.issue_type for i in result.issues] == ["unknown_category"]

        await open_session.add_category("Pets")
        assert open_session.validate(make_draft(category="Pets"), MonthKey.JANEIRO).issues == []


class TestPersistenceFailure:

    @pytest.mark.asyncio
    async def test_change_is_kept_in_memory(self, user_session, audit_logger, audit_storage):
        session = LedgerSession(storage=FailingLedgerStorage(), audit_logger=audit_logger)
        await session.open(user_session)

        with pytest.raises(PersistenceError) as exc_info:
            await session.add_transaction(MonthKey.JANEIRO, make_draft())

        assert "not be saved" in exc_info.value.user_message
        assert len(session.ledger.transactions(MonthKey.JANEIRO)) == 1
        assert audit_storage.events[-1].event_type == AuditEventType.SAVE_FAILED


class TestAdvice:

    @pytest.mark.asyncio
    async def test_advisor_gets_a_copy_of_the_month(self, open_session, audit_storage):
        await open_session.add_transaction(MonthKey.ABRIL, make_draft(tx_date=date(2024, 4, 2)))
        advisor = open_session._advisor

        advice = await open_session.request_advice(MonthKey.ABRIL)

        assert advice == advisor.text
        month, transactions = advisor.calls[0]
        assert month == MonthKey.ABRIL
        assert len(transactions) == 1

        transactions.clear()
        assert len(open_session.ledger.transactions(MonthKey.ABRIL)) == 1
        assert event_types(audit_storage)[-2:] == [
            AuditEventType.ADVICE_REQUESTED,
            AuditEventType.ADVICE_GENERATED,
        ]
        assert audit_storage.events[-1].details["paragraph_count"] == 2

    @pytest.mark.asyncio
    async def test_failure_means_no_insight(self, memory_storage, user_session, audit_storage, audit_logger):
        session = LedgerSession(
            storage=memory_storage,
            advisor=StubAdvisor(fail=True),
            audit_logger=audit_logger,
        )
        await session.open(user_session)
        before = session.ledger.snapshot()

        assert await session.request_advice(MonthKey.JANEIRO) is None
        assert session.ledger.state == before
        assert audit_storage.events[-1].event_type == AuditEventType.ADVICE_FAILED

    @pytest.mark.asyncio
    async def test_no_advisor_configured(self, memory_storage, user_session):
        session = LedgerSession(storage=memory_storage)
        await session.open(user_session)
        assert await session.request_advice(MonthKey.JANEIRO) is None


class TestAuthFlow:

    @pytest.fixture
    def auth_session(self, tmp_path, memory_storage, audit_logger) -> LedgerSession:
        return LedgerSession(
            storage=memory_storage,
            auth=LocalAuthService(users_file=tmp_path / "users.json", min_password_length=6),
            audit_logger=audit_logger,
        )

    @pytest.mark.asyncio
    async def test_signup_opens_a_fresh_ledger(self, auth_session, audit_storage):
        await auth_session.signup("Ana Souza", "ana@example.com", "segredo1", date(1990, 5, 1))

        assert auth_session.is_open is True
        assert auth_session.auth_session.user.email == "ana@example.com"
        assert event_types(audit_storage) == [
            AuditEventType.USER_SIGNED_UP,
            AuditEventType.LEDGER_CREATED,
        ]

    @pytest.mark.asyncio
    async def test_login_restores_saved_ledger(self, auth_session):
        await auth_session.signup("Ana Souza", "ana@example.com", "segredo1", date(1990, 5, 1))
        tx = await auth_session.add_transaction(MonthKey.JANEIRO, make_draft())
        await auth_session.logout()
        assert auth_session.is_open is False

        await auth_session.login("ana@example.com", "segredo1")

        assert auth_session.ledger.store(MonthKey.JANEIRO).get(tx.id) == tx

    @pytest.mark.asyncio
    async def test_failed_login_is_audited(self, auth_session, audit_storage):
        with pytest.raises(AuthenticationError):
            await auth_session.login("ana@example.com", "errado99")

        assert auth_session.is_open is False
        assert audit_storage.events[-1].event_type == AuditEventType.AUTH_FAILED

    @pytest.mark.asyncio
    async def test_missing_auth_service(self, memory_storage):
        session = LedgerSession(storage=memory_storage)
        with pytest.raises(AuthenticationError):
            await session.login("ana@example.com", "segredo1")

    @pytest.mark.asyncio
    async def test_reset_for_unknown_email_is_audited(self, auth_session, audit_storage):
        await auth_session.reset_password("nobody@example.com")

        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.PASSWORD_RESET_REQUESTED
        assert event.details == {"email": "nobody@example.com", "account_found": False}

    @pytest.mark.asyncio
    async def test_remembered_email_prefills_login(self, auth_session):
        assert auth_session.remembered_email() == ""
        await auth_session.signup("Ana Souza", "ana@example.com", "segredo1", date(1990, 5, 1))
        await auth_session.logout()

        await auth_session.login("ana@example.com", "segredo1", remember=True)
        await auth_session.logout()
        assert auth_session.remembered_email() == "ana@example.com"

        await auth_session.login("ana@example.com", "segredo1", remember=False)
        assert auth_session.remembered_email() == ""

    def test_no_auth_service_means_nothing_remembered(self, memory_storage):
        assert LedgerSession(storage=memory_storage).remembered_email() == ""
