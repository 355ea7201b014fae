"""
Core Ledger Models for Bliq Money

These models define the schemas for everything stored in a user's ledger:
transactions, categories, the twelve month buckets and the ledger root.

DESIGN DECISION: Amounts are Decimal, never float.
A ledger that re-sums its transactions on every read must not drift.

DESIGN DECISION: A transaction references its category by NAME, as a plain
string. Categories can be deleted without touching transactions; an orphaned
name is simply shown as free text.
"""

import datetime as dt
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


ZERO = Decimal("0")


def new_id() -> str:
    """Mint a fresh identifier for a transaction or category."""
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction. The sign of the amount derives from this."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class TransactionStatus(str, Enum):
    """
    Settlement status of a transaction.

    Only CONFIRMED transactions count towards the realized balance.
    PENDING ones only show up in the projection.
    """
    CONFIRMED = "CONFIRMED"
    PENDING = "PENDING"


class TypeFilter(str, Enum):
    """Type filter used by the transaction list."""
    ALL = "ALL"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"

    def matches(self, transaction_type: TransactionType) -> bool:
        return self is TypeFilter.ALL or self.value == transaction_type.value


class MonthKey(str, Enum):
    """
    The twelve fixed month buckets of the ledger.

    The values are the exact strings used as keys in stored snapshots.

    DESIGN DECISION: There is no notion of a year. Janeiro always follows
    nothing and Dezembro is always last; entries dated in another year still
    land in the bucket they were recorded in.
    """
    JANEIRO = "Janeiro"
    FEVEREIRO = "Fevereiro"
    MARCO = "Março"
    ABRIL = "Abril"
    MAIO = "Maio"
    JUNHO = "Junho"
    JULHO = "Julho"
    AGOSTO = "Agosto"
    SETEMBRO = "Setembro"
    OUTUBRO = "Outubro"
    NOVEMBRO = "Novembro"
    DEZEMBRO = "Dezembro"

    @property
    def ordinal(self) -> int:
        """Calendar position, 0 for Janeiro through 11 for Dezembro."""
        return MONTHS.index(self)

    @property
    def previous(self) -> Optional["MonthKey"]:
        """The month before this one, or None for Janeiro."""
        if self.ordinal == 0:
            return None
        return MONTHS[self.ordinal - 1]

    @classmethod
    def from_index(cls, index: int) -> "MonthKey":
        if not 0 <= index < len(MONTHS):
            raise ValueError(f"Month index out of range: {index}")
        return MONTHS[index]

    @classmethod
    def from_date(cls, value: date) -> "MonthKey":
        return MONTHS[value.month - 1]

    @classmethod
    def current(cls) -> "MonthKey":
        """The bucket for today's calendar month."""
        return cls.from_date(date.today())


MONTHS: list[MonthKey] = list(MonthKey)


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    A transaction as entered by the user, before it gets an id.

    This is the input of the add operation. All fields are required.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Free-text label"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Non-negative amount; the sign comes from type"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category name (soft reference, not enforced)"
    )
    type: TransactionType
    status: TransactionStatus = TransactionStatus.CONFIRMED


class Transaction(TransactionDraft):
    """A stored transaction. The id is stable and never reused."""

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Unique transaction identifier"
    )

    @classmethod
    def from_draft(cls, draft: TransactionDraft) -> "Transaction":
        """Mint a new transaction from a draft."""
        return cls(id=new_id(), **draft.model_dump())

    @property
    def is_confirmed(self) -> bool:
        return self.status == TransactionStatus.CONFIRMED

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign implied by the type."""
        if self.type == TransactionType.EXPENSE:
            return -self.amount
        return self.amount


# =============================================================================
# CATEGORIES
# =============================================================================

DEFAULT_CATEGORY_ICON = "fa-tag"
DEFAULT_CATEGORY_COLOR = "bg-slate-700"


class Category(BaseModel):
    """
    A user-defined category.

    Icon and color are presentation hints for the UI only.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = DEFAULT_CATEGORY_ICON
    color: str = DEFAULT_CATEGORY_COLOR


DEFAULT_CATEGORIES: list[Category] = [
    Category(id="1", name="Moradia", icon="fa-house"),
    Category(id="2", name="Alimentação", icon="fa-utensils"),
    Category(id="3", name="Transporte", icon="fa-car"),
    Category(id="4", name="Lazer", icon="fa-gamepad"),
    Category(id="5", name="Salário", icon="fa-money-bill-trend-up", color="bg-lime-500"),
    Category(id="6", name="Outros", icon="fa-tags"),
]


# =============================================================================
# MONTHS AND LEDGER ROOT
# =============================================================================

class MonthSettings(BaseModel):
    """Per-month settings."""
    model_config = ConfigDict(populate_by_name=True)

    carry_over_balance: bool = Field(
        default=False,
        alias="carryOverBalance",
        description="Whether the prior months' cumulative result flows into this month"
    )


class MonthData(BaseModel):
    """
    One month bucket.

    Transactions are kept in list order: new ones are inserted at the head,
    edits keep their position. The list is never sorted by date.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    settings: MonthSettings = Field(default_factory=MonthSettings)


class FinanceState(BaseModel):
    """
    The ledger root for one user.

    INVARIANT: every MonthKey has a MonthData. Snapshots saved with missing
    months are filled in on load, and the mapping is kept in calendar order.
    """

    months: dict[MonthKey, MonthData] = Field(default_factory=dict)
    categories: list[Category] = Field(default_factory=list)

    @model_validator(mode="after")
    def fill_missing_months(self) -> "FinanceState":
        self.months = {
            month: self.months.get(month) or MonthData()
            for month in MONTHS
        }
        return self

    @classmethod
    def initial(cls) -> "FinanceState":
        """A fresh ledger: twelve empty months and the default categories."""
        return cls(
            categories=[category.model_copy() for category in DEFAULT_CATEGORIES],
        )

    def to_snapshot(self) -> dict[str, Any]:
        """
        Serialize to the JSON-compatible snapshot shape.

        Month names are the keys, settings use the camelCase field names of
        the stored format and amounts become decimal strings.
        """
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# TOTALS
# =============================================================================

class MonthTotals(BaseModel):
    """
    The headline figures of one month.

    Always recomputed from the transactions; never stored.
    """
    model_config = ConfigDict(frozen=True)

    opening_balance: Decimal = ZERO
    confirmed_income: Decimal = ZERO
    confirmed_expense: Decimal = ZERO
    pending_income: Decimal = ZERO
    pending_expense: Decimal = ZERO
    net: Decimal = ZERO
    projected: Decimal = ZERO

    @property
    def month_result(self) -> Decimal:
        """The month's own confirmed result, without the opening balance."""
        return self.confirmed_income - self.confirmed_expense

    @property
    def pending_result(self) -> Decimal:
        return self.pending_income - self.pending_expense


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'outside_month')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of the two-stage transaction validation.

    Stage 1: Schema validation (types, required fields, amount >= 0)
    Stage 2: Semantic validation (warnings only, never blocks a save)
    """

    schema_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    draft: Optional[TransactionDraft] = Field(
        default=None,
        description="The parsed draft, when schema validation passed"
    )

    @property
    def is_valid(self) -> bool:
        return self.schema_valid and not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]

    @field_validator("issues")
    @classmethod
    def errors_first(cls, v: list[ValidationIssue]) -> list[ValidationIssue]:
        order = {"error": 0, "warning": 1, "info": 2}
        return sorted(v, key=lambda issue: order[issue.severity])
