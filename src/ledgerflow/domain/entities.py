"""Domain model entities for ledgerflow.

These are pure data classes representing accounting concepts, independent of
database schema. Services work on these entities only; the database layer maps
its ORM rows into them.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class AccountType(str, Enum):
    """Chart of Accounts classification."""

    ASSET = "asset"
    LIABILITY = "liability"
    INCOME = "income"
    EXPENSE = "expense"
    EQUITY = "equity"


class StatementStatus(str, Enum):
    """Bank statement lifecycle: pending -> processed | failed."""

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


class TransactionType(str, Enum):
    """Direction of money relative to the bank account."""

    CREDIT = "credit"
    DEBIT = "debit"


class TransactionStatus(str, Enum):
    """Bank transaction lifecycle: pending -> posted."""

    PENDING = "pending"
    POSTED = "posted"


class MatchKind(str, Enum):
    """How a classification rule pattern is compared to a description."""

    EXACT = "exact"
    REGEX = "regex"
    CONTAINS = "contains"


class AuditAction(str, Enum):
    """State-changing actions recorded in the accounting audit log."""

    POST_LEDGER = "post_ledger"
    MANUAL_CLASSIFICATION = "manual_classification"


@dataclass(frozen=True)
class Account:
    """Chart of Accounts entry."""

    id: int
    organization_id: int
    code: str
    name: str
    account_type: AccountType
    parent_id: Optional[int]
    is_system: bool
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class BankStatement:
    """One uploaded statement file."""

    id: int
    organization_id: int
    filename: str
    original_filename: str
    file_path: str
    status: StatementStatus
    uploaded_by: Optional[int]
    total_transactions: int
    processed_transactions: int
    error_log: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class BankTransaction:
    """A stored, normalized statement line."""

    id: int
    organization_id: int
    statement_id: int
    date: date
    description: str
    amount: Decimal
    type: TransactionType
    balance: Optional[Decimal]
    reference: Optional[str]
    status: TransactionStatus
    row_hash: str
    suggested_account_id: Optional[int]
    confidence_score: Decimal
    classification_reason: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class BankTransactionDraft:
    """A normalized statement line that has not been stored yet."""

    organization_id: int
    statement_id: int
    date: date
    description: str
    amount: Decimal
    type: TransactionType
    row_hash: str
    balance: Optional[Decimal] = None
    reference: Optional[str] = None
    status: TransactionStatus = TransactionStatus.PENDING
    suggested_account_id: Optional[int] = None
    confidence_score: Decimal = Decimal("0")
    classification_reason: str = "Pending classification"


@dataclass(frozen=True)
class LedgerLine:
    """One side of a double-entry posting, before it is written."""

    account_id: int
    debit: Decimal
    credit: Decimal
    entry_date: date
    description: Optional[str] = None


@dataclass(frozen=True)
class LedgerEntry:
    """A written, immutable ledger line."""

    id: int
    organization_id: int
    transaction_id: Optional[int]
    account_id: int
    debit: Decimal
    credit: Decimal
    description: Optional[str]
    entry_date: date
    posted_at: datetime


@dataclass(frozen=True)
class ClassificationRule:
    """Organization-scoped pattern-to-account mapping."""

    id: int
    organization_id: int
    name: str
    pattern: str
    match_kind: MatchKind
    target_account_id: int
    priority: int
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying a single transaction."""

    confidence: Decimal
    reason: str
    account_id: Optional[int] = None
    rule_id: Optional[int] = None


@dataclass(frozen=True)
class ClassificationFeedback:
    """A recorded human correction."""

    id: int
    organization_id: int
    transaction_description: str
    correct_account_id: int
    user_correction: bool
    created_at: datetime


@dataclass(frozen=True)
class AuditLogEntry:
    """Append-only record of a state-changing action."""

    id: int
    organization_id: int
    entity_type: str
    entity_id: int
    action: str
    changes: Optional[dict[str, Any]]
    performed_by: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class ColumnMapping:
    """Header names resolved to their semantic role for one statement.

    Each field holds the original header text, or None when the statement has
    no column for that role.
    """

    date: Optional[str] = None
    description: Optional[str] = None
    debit: Optional[str] = None
    credit: Optional[str] = None
    amount: Optional[str] = None
    balance: Optional[str] = None
    reference: Optional[str] = None


@dataclass(frozen=True)
class StatementRow:
    """Raw cell values picked out of one record by a ColumnMapping."""

    raw: dict[str, Any]
    date: Any = None
    description: Any = None
    debit: Any = None
    credit: Any = None
    amount: Any = None
    balance: Any = None
    reference: Any = None


@dataclass(frozen=True)
class NormalizedRow:
    """A statement row with typed, side-resolved values."""

    date: date
    description: str
    amount: Decimal
    type: TransactionType
    raw: dict[str, Any]
    balance: Optional[Decimal] = None
    reference: Optional[str] = None


@dataclass(frozen=True)
class ProcessResult:
    """Statistics for one statement processing run."""

    statement_id: int
    normalized: int
    inserted: int
    classified: int


@dataclass(frozen=True)
class ReviewItem:
    """A pending transaction paired with its suggested account."""

    transaction: BankTransaction
    account: Optional[Account]


@dataclass(frozen=True)
class AccountBalance:
    """Aggregated ledger totals for one account."""

    account: Account
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class TrialBalance:
    """Per-account totals for an organization plus grand totals."""

    organization_id: int
    balances: tuple[AccountBalance, ...] = field(default_factory=tuple)
    total_debit: Decimal = Decimal("0")
    total_credit: Decimal = Decimal("0")

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit
