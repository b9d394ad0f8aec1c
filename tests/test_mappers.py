"""Tests for database mappers."""

from datetime import datetime, date, UTC
from decimal import Decimal

from ledgerflow.database.models import (
    AccountMaster as ORMAccount,
    BankTransaction as ORMBankTransaction,
    ClassificationRule as ORMClassificationRule,
    AccountingAuditLog as ORMAccountingAuditLog,
)
from ledgerflow.database.mappers import (
    account_to_domain,
    bank_transaction_to_domain,
    classification_rule_to_domain,
    draft_to_orm,
    audit_log_to_domain,
)
from ledgerflow.domain.entities import (
    Account,
    AccountType,
    BankTransaction,
    BankTransactionDraft,
    MatchKind,
    TransactionStatus,
    TransactionType,
)


class TestAccountMapper:
    """Tests for Account mapper."""

    def test_account_to_domain(self):
        """Test converting ORM AccountMaster to domain Account."""
        orm_account = ORMAccount(
            id=1,
            organization_id=3,
            code="4020",
            name="Rent Expense",
            type="expense",
            parent_id=4,
            is_system=True,
            is_active=True,
            created_at=datetime.now(UTC),
        )
        domain_account = account_to_domain(orm_account)

        assert isinstance(domain_account, Account)
        assert domain_account.id == 1
        assert domain_account.organization_id == 3
        assert domain_account.code == "4020"
        assert domain_account.account_type == AccountType.EXPENSE
        assert domain_account.parent_id == 4
        assert domain_account.is_system is True
        assert domain_account.created_at == orm_account.created_at


class TestBankTransactionMapper:
    """Tests for BankTransaction mappers."""

    def test_bank_transaction_to_domain(self):
        """Test converting ORM BankTransaction to domain BankTransaction."""
        orm_txn = ORMBankTransaction(
            id=10,
            organization_id=1,
            statement_id=2,
            date=date(2024, 1, 15),
            description="Electricity Board",
            amount=Decimal("3250.75"),
            type="debit",
            balance=Decimal("61259.25"),
            reference=None,
            status="posted",
            row_hash="abc",
            suggested_account_id=7,
            confidence_score=Decimal("1.00"),
            classification_reason='Matched rule: "Power"',
            created_at=datetime.now(UTC),
        )
        txn = bank_transaction_to_domain(orm_txn)

        assert isinstance(txn, BankTransaction)
        assert txn.type == TransactionType.DEBIT
        assert txn.status == TransactionStatus.POSTED
        assert txn.amount == Decimal("3250.75")
        assert txn.balance == Decimal("61259.25")
        assert txn.suggested_account_id == 7

    def test_missing_confidence_defaults_to_zero(self):
        """Test that an unset confidence maps to zero."""
        orm_txn = ORMBankTransaction(
            id=10,
            organization_id=1,
            statement_id=2,
            date=date(2024, 1, 15),
            description="x",
            amount=Decimal("1"),
            type="credit",
            status="pending",
            row_hash="abc",
            confidence_score=None,
        )
        assert bank_transaction_to_domain(orm_txn).confidence_score == Decimal("0")

    def test_draft_to_orm(self):
        """Test building an ORM row from a draft."""
        draft = BankTransactionDraft(
            organization_id=1,
            statement_id=2,
            date=date(2024, 1, 15),
            description="Salary - January",
            amount=Decimal("42500"),
            type=TransactionType.DEBIT,
            row_hash="abc",
            reference="SAL01",
        )
        row = draft_to_orm(draft)

        assert row.id is None
        assert row.type == "debit"
        assert row.status == "pending"
        assert row.reference == "SAL01"
        assert row.classification_reason == "Pending classification"


class TestClassificationRuleMapper:
    """Tests for ClassificationRule mapper."""

    def _orm_rule(self, rule_type):
        return ORMClassificationRule(
            id=1,
            organization_id=1,
            name="Rent",
            priority=None,
            rule_type=rule_type,
            pattern="rent",
            target_account_id=9,
            is_active=True,
            created_at=datetime.now(UTC),
        )

    def test_known_rule_types(self):
        assert classification_rule_to_domain(self._orm_rule("regex")).match_kind == MatchKind.REGEX
        assert classification_rule_to_domain(self._orm_rule("exact")).match_kind == MatchKind.EXACT

    def test_legacy_rule_type_means_contains(self):
        """Test that unknown stored rule types fall back to substring matching."""
        rule = classification_rule_to_domain(self._orm_rule("keyword"))

        assert rule.match_kind == MatchKind.CONTAINS
        assert rule.priority == 0


def test_audit_log_to_domain():
    """Test converting an audit log row keeps its change payload."""
    orm_log = ORMAccountingAuditLog(
        id=5,
        organization_id=1,
        entity_type="transaction",
        entity_id=10,
        action="post_ledger",
        changes={"entries": 2, "amount": "99.50"},
        performed_by=None,
        created_at=datetime.now(UTC),
    )
    log = audit_log_to_domain(orm_log)

    assert log.action == "post_ledger"
    assert log.changes == {"entries": 2, "amount": "99.50"}
    assert log.performed_by is None
