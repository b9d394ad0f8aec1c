"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Any
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerflow.domain.entities import (
    Account,
    AccountType,
    AuditLogEntry,
    BankStatement,
    BankTransaction,
    BankTransactionDraft,
    ClassificationFeedback,
    ClassificationRule,
    LedgerEntry,
    LedgerLine,
    MatchKind,
    StatementStatus,
)


class UnitOfWork(ABC):
    """Writes that must commit or roll back together.

    Obtained from Database.unit_of_work(); nothing done through it is visible
    to other sessions until the enclosing context exits without an error.
    """

    @abstractmethod
    def get_transaction_for_update(
        self, transaction_id: int, organization_id: int
    ) -> Optional[BankTransaction]:
        """Read a bank transaction, locking its row where the backend supports it."""
        pass

    @abstractmethod
    def add_bank_transactions(self, drafts: list[BankTransactionDraft]) -> list[int]:
        """Insert normalized transactions. Returns their IDs in input order."""
        pass

    @abstractmethod
    def add_ledger_entries(
        self, organization_id: int, transaction_id: Optional[int], lines: list[LedgerLine]
    ) -> list[int]:
        """Append ledger lines. Returns entry IDs."""
        pass

    @abstractmethod
    def mark_transaction_posted(self, transaction_id: int, organization_id: int) -> bool:
        """Flip status pending -> posted. Returns False if it was not pending."""
        pass

    @abstractmethod
    def update_transaction_classification(
        self,
        transaction_id: int,
        organization_id: int,
        account_id: Optional[int],
        confidence: Decimal,
        reason: str,
    ) -> None:
        """Set the suggested account, confidence and reason of a transaction."""
        pass

    @abstractmethod
    def update_statement_status(
        self,
        statement_id: int,
        organization_id: int,
        status: StatementStatus,
        error_log: Optional[str] = None,
        total_transactions: Optional[int] = None,
        processed_transactions: Optional[int] = None,
    ) -> None:
        """Update statement status and counters."""
        pass

    @abstractmethod
    def log_action(
        self,
        organization_id: int,
        entity_type: str,
        entity_id: int,
        action: str,
        changes: Optional[dict[str, Any]] = None,
        performed_by: Optional[int] = None,
    ) -> int:
        """Append an audit log record. Returns its ID."""
        pass


class Database(ABC):
    """Abstract database interface for ledgerflow.

    Every read and write is scoped to one organization ID. Ledger entries,
    feedback and audit logs have no update or delete operations.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[UnitOfWork]:
        """Open an atomic unit of work."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        organization_id: int,
        code: str,
        name: str,
        account_type: AccountType,
        parent_id: Optional[int] = None,
        is_system: bool = False,
    ) -> int:
        """Create a chart of accounts entry. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int, organization_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_code(self, organization_id: int, code: str) -> Optional[Account]:
        """Get account by code."""
        pass

    @abstractmethod
    def list_accounts(self, organization_id: int) -> list[Account]:
        """List accounts ordered by code."""
        pass

    # Bank statement operations
    @abstractmethod
    def create_bank_statement(
        self,
        organization_id: int,
        filename: str,
        original_filename: str,
        file_path: str,
        uploaded_by: Optional[int] = None,
    ) -> int:
        """Create a pending bank statement. Returns statement ID."""
        pass

    @abstractmethod
    def get_bank_statement(self, statement_id: int, organization_id: int) -> Optional[BankStatement]:
        """Get bank statement by ID."""
        pass

    @abstractmethod
    def list_bank_statements(self, organization_id: int) -> list[BankStatement]:
        """List bank statements, newest first."""
        pass

    @abstractmethod
    def update_bank_statement_status(
        self,
        statement_id: int,
        organization_id: int,
        status: StatementStatus,
        error_log: Optional[str] = None,
    ) -> None:
        """Update statement status outside of a unit of work."""
        pass

    # Bank transaction operations
    @abstractmethod
    def get_bank_transaction(self, transaction_id: int, organization_id: int) -> Optional[BankTransaction]:
        """Get bank transaction by ID."""
        pass

    @abstractmethod
    def list_statement_transactions(self, statement_id: int, organization_id: int) -> list[BankTransaction]:
        """List the transactions parsed from one statement."""
        pass

    @abstractmethod
    def list_pending_transactions(self, organization_id: int) -> list[BankTransaction]:
        """List pending transactions, newest date first."""
        pass

    # Ledger operations
    @abstractmethod
    def list_ledger_entries(
        self,
        organization_id: int,
        account_id: Optional[int] = None,
        transaction_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[LedgerEntry]:
        """List ledger entries with optional filters, newest first."""
        pass

    @abstractmethod
    def get_account_totals(self, organization_id: int) -> list[dict[str, Any]]:
        """Sum debits and credits per account.

        Returns a list of dictionaries with account_id, total_debit and
        total_credit. This structure is kept as dict for aggregation results.
        """
        pass

    @abstractmethod
    def get_posted_transaction_totals(self, organization_id: int) -> list[dict[str, Any]]:
        """Sum ledger debits and credits per posted transaction.

        Returns dictionaries with transaction_id, amount, total_debit and
        total_credit.
        """
        pass

    # Classification rule operations
    @abstractmethod
    def create_classification_rule(
        self,
        organization_id: int,
        name: str,
        pattern: str,
        match_kind: MatchKind,
        target_account_id: int,
        priority: int = 0,
        is_active: bool = True,
    ) -> int:
        """Create a classification rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_classification_rule(self, rule_id: int, organization_id: int) -> Optional[ClassificationRule]:
        """Get classification rule by ID."""
        pass

    @abstractmethod
    def list_classification_rules(
        self, organization_id: int, active_only: bool = False
    ) -> list[ClassificationRule]:
        """List rules by descending priority, ties by ascending ID."""
        pass

    @abstractmethod
    def set_classification_rule_active(self, rule_id: int, organization_id: int, is_active: bool) -> None:
        """Enable or disable a rule."""
        pass

    # Feedback operations
    @abstractmethod
    def record_feedback(
        self,
        organization_id: int,
        transaction_description: str,
        correct_account_id: int,
        user_correction: bool = True,
    ) -> int:
        """Append a classification correction. Returns feedback ID."""
        pass

    @abstractmethod
    def list_feedback(self, organization_id: int) -> list[ClassificationFeedback]:
        """List recorded corrections, newest first."""
        pass

    # Audit operations
    @abstractmethod
    def list_audit_logs(
        self,
        organization_id: int,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
    ) -> list[AuditLogEntry]:
        """List audit log records, oldest first."""
        pass
