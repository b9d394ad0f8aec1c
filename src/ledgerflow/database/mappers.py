"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so column names and storage types
can change without touching the domain services.
"""

from decimal import Decimal

from ledgerflow.domain import entities as domain
from ledgerflow.database.models import (
    AccountMaster as ORMAccount,
    BankStatement as ORMBankStatement,
    BankTransaction as ORMBankTransaction,
    LedgerEntry as ORMLedgerEntry,
    ClassificationRule as ORMClassificationRule,
    ClassificationFeedback as ORMClassificationFeedback,
    AccountingAuditLog as ORMAccountingAuditLog,
)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy AccountMaster model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        organization_id=orm_account.organization_id,
        code=orm_account.code,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.type),
        parent_id=orm_account.parent_id,
        is_system=bool(orm_account.is_system),
        is_active=bool(orm_account.is_active),
        created_at=orm_account.created_at,
    )


def bank_statement_to_domain(orm_statement: ORMBankStatement) -> domain.BankStatement:
    """Convert SQLAlchemy BankStatement model to domain BankStatement entity."""
    return domain.BankStatement(
        id=orm_statement.id,
        organization_id=orm_statement.organization_id,
        filename=orm_statement.filename,
        original_filename=orm_statement.original_filename,
        file_path=orm_statement.file_path,
        status=domain.StatementStatus(orm_statement.status),
        uploaded_by=orm_statement.uploaded_by,
        total_transactions=orm_statement.total_transactions or 0,
        processed_transactions=orm_statement.processed_transactions or 0,
        error_log=orm_statement.error_log,
        created_at=orm_statement.created_at,
        updated_at=orm_statement.updated_at,
    )


def bank_transaction_to_domain(orm_transaction: ORMBankTransaction) -> domain.BankTransaction:
    """Convert SQLAlchemy BankTransaction model to domain BankTransaction entity."""
    return domain.BankTransaction(
        id=orm_transaction.id,
        organization_id=orm_transaction.organization_id,
        statement_id=orm_transaction.statement_id,
        date=orm_transaction.date,
        description=orm_transaction.description,
        amount=orm_transaction.amount,
        type=domain.TransactionType(orm_transaction.type),
        balance=orm_transaction.balance,
        reference=orm_transaction.reference,
        status=domain.TransactionStatus(orm_transaction.status),
        row_hash=orm_transaction.row_hash,
        suggested_account_id=orm_transaction.suggested_account_id,
        confidence_score=(
            orm_transaction.confidence_score
            if orm_transaction.confidence_score is not None
            else Decimal("0")
        ),
        classification_reason=orm_transaction.classification_reason,
        created_at=orm_transaction.created_at,
    )


def draft_to_orm(draft: domain.BankTransactionDraft) -> ORMBankTransaction:
    """Build a SQLAlchemy BankTransaction from an unsaved domain draft."""
    return ORMBankTransaction(
        organization_id=draft.organization_id,
        statement_id=draft.statement_id,
        date=draft.date,
        description=draft.description,
        amount=draft.amount,
        type=draft.type.value,
        balance=draft.balance,
        reference=draft.reference,
        status=draft.status.value,
        row_hash=draft.row_hash,
        suggested_account_id=draft.suggested_account_id,
        confidence_score=draft.confidence_score,
        classification_reason=draft.classification_reason,
    )


def ledger_entry_to_domain(orm_entry: ORMLedgerEntry) -> domain.LedgerEntry:
    """Convert SQLAlchemy LedgerEntry model to domain LedgerEntry entity."""
    return domain.LedgerEntry(
        id=orm_entry.id,
        organization_id=orm_entry.organization_id,
        transaction_id=orm_entry.transaction_id,
        account_id=orm_entry.account_id,
        debit=orm_entry.debit,
        credit=orm_entry.credit,
        description=orm_entry.description,
        entry_date=orm_entry.entry_date,
        posted_at=orm_entry.posted_at,
    )


def classification_rule_to_domain(orm_rule: ORMClassificationRule) -> domain.ClassificationRule:
    """Convert SQLAlchemy ClassificationRule model to domain ClassificationRule entity.

    Rule types other than exact and regex are stored by older data as
    "keyword"; they all mean a substring match.
    """
    try:
        match_kind = domain.MatchKind(orm_rule.rule_type)
    except ValueError:
        match_kind = domain.MatchKind.CONTAINS
    return domain.ClassificationRule(
        id=orm_rule.id,
        organization_id=orm_rule.organization_id,
        name=orm_rule.name,
        pattern=orm_rule.pattern,
        match_kind=match_kind,
        target_account_id=orm_rule.target_account_id,
        priority=orm_rule.priority or 0,
        is_active=bool(orm_rule.is_active),
        created_at=orm_rule.created_at,
    )


def classification_feedback_to_domain(
    orm_feedback: ORMClassificationFeedback,
) -> domain.ClassificationFeedback:
    """Convert SQLAlchemy ClassificationFeedback model to domain entity."""
    return domain.ClassificationFeedback(
        id=orm_feedback.id,
        organization_id=orm_feedback.organization_id,
        transaction_description=orm_feedback.transaction_description,
        correct_account_id=orm_feedback.correct_account_id,
        user_correction=bool(orm_feedback.user_correction),
        created_at=orm_feedback.created_at,
    )


def audit_log_to_domain(orm_log: ORMAccountingAuditLog) -> domain.AuditLogEntry:
    """Convert SQLAlchemy AccountingAuditLog model to domain AuditLogEntry entity."""
    return domain.AuditLogEntry(
        id=orm_log.id,
        organization_id=orm_log.organization_id,
        entity_type=orm_log.entity_type,
        entity_id=orm_log.entity_id,
        action=orm_log.action,
        changes=orm_log.changes,
        performed_by=orm_log.performed_by,
        created_at=orm_log.created_at,
    )
