"""Shared pytest fixtures for ledgerflow tests."""

import logging
import tempfile
import os
import uuid
from datetime import date
from decimal import Decimal
from pathlib import Path
import pytest

from ledgerflow.database.factories import create_sqlite_database
from ledgerflow.domain.account import AccountService
from ledgerflow.domain.classification import ClassificationEngine, RuleService
from ledgerflow.domain.entities import BankTransactionDraft, TransactionType
from ledgerflow.domain.ledger import LedgerEngine
from ledgerflow.domain.report import ReportService
from ledgerflow.domain.statement import StatementService
from ledgerflow.logger import configure_logging

ORG_ID = 1
OTHER_ORG_ID = 2


@pytest.fixture(autouse=True)
def configure_structlog_for_tests():
    """Route structlog through stdlib logging so caplog sees every event."""
    configure_logging(logging.DEBUG)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def upload_dir(tmp_path):
    """Directory statements are uploaded into."""
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def classification_engine(temp_db):
    """Create a ClassificationEngine with a temporary database."""
    return ClassificationEngine(temp_db)


@pytest.fixture
def rule_service(temp_db):
    """Create a RuleService with a temporary database."""
    return RuleService(temp_db)


@pytest.fixture
def ledger_engine(temp_db):
    """Create a LedgerEngine with a temporary database."""
    return LedgerEngine(temp_db)


@pytest.fixture
def report_service(temp_db):
    """Create a ReportService with a temporary database."""
    return ReportService(temp_db)


@pytest.fixture
def statement_service(temp_db, upload_dir):
    """Create a StatementService with a temporary database and upload dir."""
    return StatementService(temp_db, upload_dir)


@pytest.fixture
def chart(account_service):
    """Seed the default chart of accounts and return account IDs by code."""
    account_service.initialize_chart(ORG_ID)
    return {acc.code: acc.id for acc in account_service.list_accounts(ORG_ID)}


@pytest.fixture
def make_transaction(temp_db):
    """Factory storing a pending bank transaction and returning its ID."""

    def _make(
        amount="100.00",
        txn_type=TransactionType.DEBIT,
        description="Test transaction",
        suggested_account_id=None,
        organization_id=ORG_ID,
        txn_date=date(2024, 5, 1),
    ):
        statement_id = temp_db.create_bank_statement(
            organization_id=organization_id,
            filename="statement.csv",
            original_filename="statement.csv",
            file_path="/tmp/statement.csv",
        )
        draft = BankTransactionDraft(
            organization_id=organization_id,
            statement_id=statement_id,
            date=txn_date,
            description=description,
            amount=Decimal(amount),
            type=txn_type,
            row_hash=uuid.uuid4().hex,
            suggested_account_id=suggested_account_id,
        )
        with temp_db.unit_of_work() as uow:
            [txn_id] = uow.add_bank_transactions([draft])
        return txn_id

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
