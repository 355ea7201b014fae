"""
Transaction Store

The ordered transaction list of ONE month bucket.

DESIGN DECISION: Unknown ids are tolerated. update/remove/set_status on an
id that isn't in the store do nothing and return False, mirroring the
edit-or-ignore behaviour of the UI. Callers that need to know can check the
return value (the session layer audits it).

Every mutation validates its input completely before touching the list,
so a failed call leaves the store exactly as it was.
"""

from typing import Any, Iterator, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from bliq_money.ledger.errors import NotFoundError, ValidationError
from bliq_money.models.ledger import (
    Transaction,
    TransactionDraft,
    TransactionStatus,
    TypeFilter,
)


DraftInput = Union[TransactionDraft, Mapping[str, Any]]
TransactionInput = Union[Transaction, Mapping[str, Any]]


def parse_draft(data: DraftInput) -> TransactionDraft:
    """
    Coerce user input into a TransactionDraft.

    Raises:
        ValidationError: If a required field is missing, the amount is
            negative, or a text field is blank
    """
    if isinstance(data, TransactionDraft):
        # Re-validate: drafts can be built with model_construct or mutated
        data = data.model_dump()
    try:
        return TransactionDraft.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, "transaction") from e


def parse_transaction(data: TransactionInput) -> Transaction:
    """Same as parse_draft, for a full record that already carries an id."""
    if isinstance(data, Transaction):
        data = data.model_dump()
    if not data.get("id"):
        raise ValidationError.single("id", "missing", "Transaction id is required to edit")
    try:
        return Transaction.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, "transaction") from e


class TransactionStore:
    """Insert, edit, delete and filter the transactions of one month."""

    def __init__(self, transactions: list[Transaction]):
        self._transactions = transactions

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self._transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    def _index_of(self, transaction_id: str) -> Optional[int]:
        for index, transaction in enumerate(self._transactions):
            if transaction.id == transaction_id:
                return index
        return None

    def get(self, transaction_id: str) -> Optional[Transaction]:
        index = self._index_of(transaction_id)
        return self._transactions[index] if index is not None else None

    def require(self, transaction_id: str) -> Transaction:
        """Like get, but raises NotFoundError for an unknown id."""
        transaction = self.get(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        return transaction

    def add(self, draft: DraftInput) -> Transaction:
        """
        Insert a new transaction at the head of the list.

        A fresh id is minted; any id in the input is ignored.

        Returns:
            The stored transaction
        """
        if isinstance(draft, Mapping) and "id" in draft:
            draft = {key: value for key, value in draft.items() if key != "id"}
        transaction = Transaction.from_draft(parse_draft(draft))
        self._transactions.insert(0, transaction)
        return transaction

    def update(self, transaction: TransactionInput) -> bool:
        """
        Replace the record with the same id, keeping its position.

        Returns:
            True if a record was replaced, False if the id is unknown
        """
        replacement = parse_transaction(transaction)
        index = self._index_of(replacement.id)
        if index is None:
            return False
        self._transactions[index] = replacement
        return True

    def remove(self, transaction_id: str) -> bool:
        """Delete a record by id. Returns False if there was none."""
        index = self._index_of(transaction_id)
        if index is None:
            return False
        del self._transactions[index]
        return True

    def set_status(
        self,
        transaction_id: str,
        status: TransactionStatus = TransactionStatus.CONFIRMED,
    ) -> bool:
        """
        Quick-confirm a pending transaction.

        The transition is one-directional (PENDING -> CONFIRMED). Confirming
        an already confirmed record is a no-op. To turn a record back into
        PENDING, edit it with update().

        Returns:
            True if the status changed
        """
        if TransactionStatus(status) != TransactionStatus.CONFIRMED:
            raise ValidationError.single(
                "status",
                "invalid_transition",
                "Only the transition to CONFIRMED is allowed; edit the transaction instead",
            )
        index = self._index_of(transaction_id)
        if index is None:
            return False
        current = self._transactions[index]
        if current.status == TransactionStatus.CONFIRMED:
            return False
        self._transactions[index] = current.model_copy(
            update={"status": TransactionStatus.CONFIRMED}
        )
        return True

    def filter(
        self,
        search_term: str = "",
        type_filter: TypeFilter = TypeFilter.ALL,
    ) -> list[Transaction]:
        """
        Transactions whose description or category contains the term
        (case-insensitive) and whose type matches the filter.

        Pure: returns a new list in store order.
        """
        term = (search_term or "").lower()
        type_filter = TypeFilter(type_filter)
        return [
            transaction
            for transaction in self._transactions
            if (
                term in transaction.description.lower()
                or term in transaction.category.lower()
            )
            and type_filter.matches(transaction.type)
        ]
