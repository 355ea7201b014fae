"""
Main Orchestrator for Bliq Money

This module ties together all the components and defines the
end-to-end flows for:
1. Authentication (login / signup / reset → open the user's ledger)
2. Ledger mutations (validate → apply → save snapshot → audit)
3. Advice (month → advisor → paragraphs, or nothing)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The ledger engine itself never does I/O; only this layer persists
- Every completed mutation is followed by a save of the whole snapshot
- Every step is audited

CRITICAL: A failed save never rolls back the in-memory change. The user
keeps working and is told the change is not stored yet; the next
successful save writes everything.
"""

from datetime import date
from typing import Optional
from uuid import UUID

import structlog

from bliq_money.agents import (
    AdviceError,
    AdviceGeneratorInterface,
    GeminiAdviceAgent,
    split_paragraphs,
)
from bliq_money.audit import AuditLogger, create_correlation_id
from bliq_money.config import get_settings
from bliq_money.ledger import Ledger, LedgerError, ValidationError
from bliq_money.ledger.transactions import DraftInput, TransactionInput, parse_transaction
from bliq_money.models.audit import AuditEvent, AuditEventBuilder
from bliq_money.models.ledger import (
    Category,
    FinanceState,
    MonthKey,
    MonthTotals,
    Transaction,
    TypeFilter,
    ValidationResult,
)
from bliq_money.models.user import AuthSession
from bliq_money.services.auth import (
    AuthServiceInterface,
    AuthenticationError,
    LocalAuthService,
)
from bliq_money.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    LedgerStorageInterface,
    PersistenceError,
    StorageError,
)
from bliq_money.validation import TransactionValidator


logger = structlog.get_logger("bliq_money.orchestrator")


class LedgerSession:
    """
    Binds one authenticated user to their ledger.

    Flow:
    1. login / signup → AuthSession
    2. open → load the snapshot (or start a fresh ledger)
    3. mutate → apply to the Ledger, then save the snapshot
    4. logout → forget the ledger

    Reads (totals, filter) go straight to the Ledger and never touch storage.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        auth: Optional[AuthServiceInterface] = None,
        advisor: Optional[AdviceGeneratorInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._auth = auth
        self._advisor = advisor
        self._audit_logger = audit_logger
        self._auth_session: Optional[AuthSession] = None
        self._ledger: Optional[Ledger] = None

    # =========================================================================
    # State
    # =========================================================================

    @property
    def auth_session(self) -> Optional[AuthSession]:
        return self._auth_session

    @property
    def is_open(self) -> bool:
        return self._ledger is not None

    @property
    def user_id(self) -> str:
        return self._require_session().user.id

    @property
    def ledger(self) -> Ledger:
        if self._ledger is None:
            raise LedgerError("No ledger is open; log in first")
        return self._ledger

    def _require_session(self) -> AuthSession:
        if self._auth_session is None:
            raise LedgerError("No user is logged in")
        return self._auth_session

    def _require_auth(self) -> AuthServiceInterface:
        if self._auth is None:
            raise AuthenticationError(
                "No auth service configured",
                user_message="Login is not available right now.",
            )
        return self._auth

    async def _audit(self, event: AuditEvent) -> None:
        if self._audit_logger:
            await self._audit_logger.log(event)

    # =========================================================================
    # Authentication
    # =========================================================================

    async def login(self, email: str, password: str, remember: bool = True) -> AuthSession:
        """
        Log in and open the user's ledger.

        Raises:
            AuthenticationError: With a message for the login form
        """
        try:
            session = await self._require_auth().login(email, password, remember)
        except AuthenticationError as e:
            await self._audit(AuditEventBuilder.auth_failed("login", email, str(e)))
            raise

        await self._audit(AuditEventBuilder.user_logged_in(session.user.id, session.user.email))
        await self.open(session)
        return session

    async def signup(
        self,
        name: str,
        email: str,
        password: str,
        birth_date: date,
    ) -> AuthSession:
        """Create an account, log it in and start its (empty) ledger."""
        try:
            session = await self._require_auth().signup(name, email, password, birth_date)
        except AuthenticationError as e:
            await self._audit(AuditEventBuilder.auth_failed("signup", email, str(e)))
            raise

        await self._audit(AuditEventBuilder.user_signed_up(session.user.id, session.user.email))
        await self.open(session)
        return session

    async def reset_password(self, email: str) -> None:
        """Request a password reset. Unknown addresses are accepted silently."""
        try:
            account_found = await self._require_auth().reset_password(email)
        except AuthenticationError as e:
            await self._audit(AuditEventBuilder.auth_failed("reset_password", email, str(e)))
            raise
        await self._audit(AuditEventBuilder.password_reset_requested(email, account_found))

    def remembered_email(self) -> str:
        """E-mail to pre-fill on the login form, or an empty string."""
        if self._auth is None:
            return ""
        return self._auth.remembered_email() or ""

    async def logout(self) -> None:
        if self._auth_session is not None:
            await self._audit(AuditEventBuilder.user_logged_out(self._auth_session.user.id))
        self._auth_session = None
        self._ledger = None

    async def open(self, session: AuthSession) -> Ledger:
        """
        Load the ledger of an authenticated user.

        A user without a stored snapshot gets the initial state (twelve
        empty months, default categories). It is not saved until the first
        mutation.

        Raises:
            StorageError: If the snapshot cannot be read
        """
        state = await self._storage.load(session.user.id)
        created = state is None
        self._auth_session = session
        self._ledger = Ledger(state if state is not None else FinanceState.initial())

        await self._audit(AuditEventBuilder.ledger_loaded(
            user_id=session.user.id,
            created=created,
            transaction_count=self._ledger.transaction_count(),
        ))
        return self._ledger

    # =========================================================================
    # Persistence
    # =========================================================================

    async def _commit(self, correlation_id: UUID) -> None:
        """
        Save the whole snapshot after a completed mutation.

        Raises:
            PersistenceError: If the save failed. The in-memory change stays.
        """
        try:
            await self._storage.save(self.user_id, self.ledger.snapshot())
        except StorageError as e:
            await self._audit(AuditEventBuilder.save_failed(self.user_id, str(e), correlation_id))
            raise PersistenceError(
                f"Snapshot save failed: {e}",
                user_message=(
                    "Your change was applied but could not be saved. "
                    "It will be saved with your next change."
                ),
            ) from e

        await self._audit(AuditEventBuilder.ledger_saved(self.user_id, correlation_id))

    async def _validation_failed(
        self,
        error: ValidationError,
        entity_type: str,
        correlation_id: UUID,
    ) -> None:
        issues = [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in error.issues
        ]
        await self._audit(AuditEventBuilder.validation_failed(
            user_id=self.user_id,
            entity_type=entity_type,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def _not_found(
        self,
        month: MonthKey,
        transaction_id: str,
        action: str,
        correlation_id: UUID,
    ) -> None:
        await self._audit(AuditEventBuilder.transaction_not_found(
            user_id=self.user_id,
            month=month.value,
            transaction_id=transaction_id,
            action=action,
            correlation_id=correlation_id,
        ))

    # =========================================================================
    # Transactions
    # =========================================================================

    async def add_transaction(
        self,
        month: MonthKey,
        draft: DraftInput,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Add a transaction at the head of the month and save.

        Raises:
            ValidationError: If the draft is malformed (nothing changed)
            PersistenceError: If the save failed (the transaction was added)
        """
        correlation_id = correlation_id or create_correlation_id()
        month = MonthKey(month)

        try:
            transaction = self.ledger.add_transaction(month, draft)
        except ValidationError as e:
            await self._validation_failed(e, "transaction", correlation_id)
            raise

        await self._audit(AuditEventBuilder.transaction_added(
            user_id=self.user_id,
            month=month.value,
            transaction_id=transaction.id,
            amount=str(transaction.amount),
            transaction_type=transaction.type.value,
            correlation_id=correlation_id,
        ))
        await self._commit(correlation_id)
        return transaction

    async def update_transaction(
        self,
        month: MonthKey,
        transaction: TransactionInput,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Replace a transaction in place and save.

        An unknown id changes nothing, saves nothing and returns False.
        """
        correlation_id = correlation_id or create_correlation_id()
        month = MonthKey(month)

        try:
            replacement = parse_transaction(transaction)
            updated = self.ledger.update_transaction(month, replacement)
        except ValidationError as e:
            await self._validation_failed(e, "transaction", correlation_id)
            raise

        if not updated:
            await self._not_found(month, replacement.id, "update", correlation_id)
            return False

        await self._audit(AuditEventBuilder.transaction_updated(
            user_id=self.user_id,
            month=month.value,
            transaction_id=replacement.id,
            correlation_id=correlation_id,
        ))
        await self._commit(correlation_id)
        return True

    async def delete_transaction(
        self,
        month: MonthKey,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        correlation_id = correlation_id or create_correlation_id()
        month = MonthKey(month)

        if not self.ledger.delete_transaction(month, transaction_id):
            await self._not_found(month, transaction_id, "delete", correlation_id)
            return False

        await self._audit(AuditEventBuilder.transaction_deleted(
            user_id=self.user_id,
            month=month.value,
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))
        await self._commit(correlation_id)
        return True

    async def confirm_transaction(
        self,
        month: MonthKey,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Quick-confirm a pending transaction.

        Confirming an already confirmed record is a no-op and is not saved.
        """
        correlation_id = correlation_id or create_correlation_id()
        month = MonthKey(month)

        if self.ledger.store(month).get(transaction_id) is None:
            await self._not_found(month, transaction_id, "confirm", correlation_id)
            return False

        if not self.ledger.confirm_transaction(month, transaction_id):
            return False

        await self._audit(AuditEventBuilder.transaction_confirmed(
            user_id=self.user_id,
            month=month.value,
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))
        await self._commit(correlation_id)
        return True

    # =========================================================================
    # Months and categories
    # =========================================================================

    async def toggle_carry_over(
        self,
        month: MonthKey,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Flip the month's carry-over flag, save, and return the new value."""
        correlation_id = correlation_id or create_correlation_id()
        month = MonthKey(month)

        enabled = self.ledger.toggle_carry_over(month)
        await self._audit(AuditEventBuilder.carry_over_toggled(
            user_id=self.user_id,
            month=month.value,
            enabled=enabled,
            correlation_id=correlation_id,
        ))
        await self._commit(correlation_id)
        return enabled

    async def add_category(
        self,
        name: str,
        correlation_id: Optional[UUID] = None,
        **presentation: str,
    ) -> Category:
        correlation_id = correlation_id or create_correlation_id()

        try:
            category = self.ledger.add_category(name, **presentation)
        except ValidationError as e:
            await self._validation_failed(e, "category", correlation_id)
            raise

        await self._audit(AuditEventBuilder.category_added(
            user_id=self.user_id,
            category_id=category.id,
            name=category.name,
            correlation_id=correlation_id,
        ))
        await self._commit(correlation_id)
        return category

    async def remove_category(
        self,
        category_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Remove a category.

        Transactions that reference it keep their category name.
        """
        correlation_id = correlation_id or create_correlation_id()

        if not self.ledger.remove_category(category_id):
            return False

        await self._audit(AuditEventBuilder.category_removed(
            user_id=self.user_id,
            category_id=category_id,
            correlation_id=correlation_id,
        ))
        await self._commit(correlation_id)
        return True

    # =========================================================================
    # Reads
    # =========================================================================

    def totals(self, month: MonthKey) -> MonthTotals:
        return self.ledger.totals(MonthKey(month))

    def filter(
        self,
        month: MonthKey,
        search_term: str = "",
        type_filter: TypeFilter = TypeFilter.ALL,
    ) -> list[Transaction]:
        return self.ledger.filter(MonthKey(month), search_term, type_filter)

    def validate(self, draft: DraftInput, month: MonthKey) -> ValidationResult:
        """Pre-save check for the transaction form (errors and warnings)."""
        validator = TransactionValidator(
            categories=self.ledger.categories,
            settings=get_settings().app,
        )
        return validator.validate(draft, MonthKey(month))

    # =========================================================================
    # Advice
    # =========================================================================

    async def request_advice(
        self,
        month: MonthKey,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[str]:
        """
        Ask the advisor about one month.

        The advisor only receives a copy of the month's transactions.

        Returns:
            The advice text, or None if no insight is available
        """
        correlation_id = correlation_id or create_correlation_id()
        month = MonthKey(month)
        transactions = self.ledger.transactions(month)

        await self._audit(AuditEventBuilder.advice_requested(
            user_id=self.user_id,
            month=month.value,
            transaction_count=len(transactions),
            correlation_id=correlation_id,
        ))

        if self._advisor is None:
            await self._audit(AuditEventBuilder.advice_failed(
                self.user_id, month.value, "No advisor configured", correlation_id,
            ))
            return None

        try:
            advice = await self._advisor.get_advice(month, transactions)
        except AdviceError as e:
            await self._audit(AuditEventBuilder.advice_failed(
                self.user_id, month.value, str(e), correlation_id,
            ))
            return None

        await self._audit(AuditEventBuilder.advice_generated(
            user_id=self.user_id,
            month=month.value,
            paragraph_count=len(split_paragraphs(advice)),
            correlation_id=correlation_id,
        ))
        return advice


def create_app_components() -> tuple[LedgerSession, AuditLogger]:
    """
    Factory function to create all application components.

    The snapshot backend comes from StorageSettings. If Google Sheets is
    selected but not configured, the JSON backend is used instead.
    The advisor is optional; without a Gemini key the app shows no insight.

    Returns:
        (ledger_session, audit_logger)
    """
    settings = get_settings()
    backend = settings.storage.backend

    storage: LedgerStorageInterface
    audit_storage: Optional[AuditStorageInterface] = None

    if backend == "sheets":
        try:
            sheets_client = GoogleSheetsClient()
            storage = GoogleSheetsLedgerStorage(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Sheets not configured - continue with local files
            logger.warning("sheets_storage_unavailable", error=str(e))
            storage = JsonFileLedgerStorage()
    elif backend == "memory":
        storage = InMemoryLedgerStorage()
        audit_storage = InMemoryAuditStorage()
    else:
        storage = JsonFileLedgerStorage()

    audit_logger = AuditLogger(audit_storage)

    advisor: Optional[AdviceGeneratorInterface] = None
    try:
        advisor = GeminiAdviceAgent()
    except Exception as e:
        logger.warning("advisor_unavailable", error=str(e))

    session = LedgerSession(
        storage=storage,
        auth=LocalAuthService(),
        advisor=advisor,
        audit_logger=audit_logger,
    )
    return session, audit_logger
