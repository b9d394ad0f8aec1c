"""SQLAlchemy models for the ledgerflow accounting tables."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AccountMaster(Base):
    """Chart of Accounts entry."""

    __tablename__ = "account_master"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), nullable=False)
    type = Column(String(50), nullable=False)
    parent_id = Column(Integer, ForeignKey("account_master.id"), nullable=True)
    is_system = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("organization_id", "code", name="uq_account_org_code"),)

    # Relationships
    parent = relationship("AccountMaster", remote_side=[id], backref="children")


class BankStatement(Base):
    """Uploaded bank statement file."""

    __tablename__ = "bank_statements"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    original_filename = Column(String(255), nullable=False)
    file_path = Column(Text, nullable=False)
    status = Column(String(50), default="pending", nullable=False)
    uploaded_by = Column(Integer, nullable=True)
    total_transactions = Column(Integer, default=0, nullable=False)
    processed_transactions = Column(Integer, default=0, nullable=False)
    error_log = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    transactions = relationship("BankTransaction", back_populates="statement")


class BankTransaction(Base):
    """Normalized statement line."""

    __tablename__ = "bank_transactions"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, nullable=False)
    statement_id = Column(Integer, ForeignKey("bank_statements.id"), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    type = Column(String(20), nullable=False)
    reference = Column(String(200), nullable=True)
    balance = Column(Numeric(12, 2), nullable=True)
    status = Column(String(20), default="pending", nullable=False)
    confidence_score = Column(Numeric(5, 2), default=0, nullable=False)
    suggested_account_id = Column(Integer, ForeignKey("account_master.id"), nullable=True)
    classification_reason = Column(Text, nullable=True)
    row_hash = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_bank_transactions_org_status", "organization_id", "status"),
        Index("ix_bank_transactions_org_row_hash", "organization_id", "row_hash"),
    )

    # Relationships
    statement = relationship("BankStatement", back_populates="transactions")
    suggested_account = relationship("AccountMaster")


class LedgerEntry(Base):
    """One side of a double-entry posting. Append-only."""

    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, nullable=False, index=True)
    transaction_id = Column(Integer, ForeignKey("bank_transactions.id"), nullable=True, index=True)
    account_id = Column(Integer, ForeignKey("account_master.id"), nullable=False)
    debit = Column(Numeric(12, 2), default=0, nullable=False)
    credit = Column(Numeric(12, 2), default=0, nullable=False)
    description = Column(Text, nullable=True)
    entry_date = Column(Date, nullable=False)
    posted_at = Column(DateTime, default=_utcnow, nullable=False)


class ClassificationRule(Base):
    """Pattern-to-account rule."""

    __tablename__ = "classification_rules"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    priority = Column(Integer, default=0, nullable=False)
    rule_type = Column(String(50), default="contains", nullable=False)
    pattern = Column(Text, nullable=False)
    target_account_id = Column(Integer, ForeignKey("account_master.id"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class ClassificationFeedback(Base):
    """Recorded human correction. Append-only."""

    __tablename__ = "classification_feedback"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, nullable=False, index=True)
    transaction_description = Column(Text, nullable=False)
    correct_account_id = Column(Integer, ForeignKey("account_master.id"), nullable=False)
    user_correction = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class AccountingAuditLog(Base):
    """Audit trail of state-changing actions. Append-only."""

    __tablename__ = "accounting_audit_logs"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, nullable=False, index=True)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(Integer, nullable=False)
    action = Column(String(50), nullable=False)
    changes = Column(JSON, nullable=True)
    performed_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


APPEND_ONLY_MODELS = (LedgerEntry, ClassificationFeedback, AccountingAuditLog)


def _reject_mutation(mapper, connection, target) -> None:
    raise RuntimeError(f"{target.__tablename__} rows are append-only")


for _model in APPEND_ONLY_MODELS:
    event.listen(_model, "before_update", _reject_mutation)
    event.listen(_model, "before_delete", _reject_mutation)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
