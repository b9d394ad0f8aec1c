"""Bank statement upload, processing and review."""

import dataclasses
import secrets
import shutil
import time
from decimal import Decimal
from pathlib import Path
from typing import Optional

from ledgerflow.database.base import Database
from ledgerflow.domain.classification import ClassificationEngine
from ledgerflow.domain.entities import (
    AuditAction,
    BankStatement,
    BankTransaction,
    BankTransactionDraft,
    ProcessResult,
    ReviewItem,
    StatementStatus,
    TransactionStatus,
)
from ledgerflow.domain.errors import (
    AlreadyPostedError,
    FileTooLargeError,
    NotFoundError,
    StatementStateError,
    TransactionNotFoundError,
    UnsupportedFileTypeError,
    ValidationError,
    account_not_found,
    file_too_large,
    statement_not_found,
    statement_not_pending,
    transaction_already_posted,
    transaction_not_found,
    unsupported_file_type,
)
from ledgerflow.domain.normalization import SUPPORTED_EXTENSIONS, NormalizationEngine
from ledgerflow.logger import get_logger, log_timing

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = frozenset(SUPPORTED_EXTENSIONS)
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

NO_TRANSACTIONS_ERROR = "No transactions found or parsing failed"
MANUAL_CORRECTION_REASON = "Manual Correction"
MANUAL_CONFIDENCE = Decimal("1.0")


class StatementService:
    """Runs the upload, normalize, classify and review steps for statements."""

    def __init__(
        self,
        db: Database,
        upload_dir: str | Path,
        normalizer: Optional[NormalizationEngine] = None,
        classifier: Optional[ClassificationEngine] = None,
    ):
        """Initialize statement service.

        Args:
            db: Database instance
            upload_dir: Directory uploaded files are copied into
            normalizer: Normalization engine (a default one if omitted)
            classifier: Classification engine (one over db if omitted)
        """
        self.db = db
        self.upload_dir = Path(upload_dir)
        self.normalizer = normalizer or NormalizationEngine()
        self.classifier = classifier or ClassificationEngine(db)

    def upload_statement(
        self,
        organization_id: int,
        source_path: str | Path,
        uploaded_by: Optional[int] = None,
    ) -> int:
        """Store a statement file and register it as pending.

        Args:
            organization_id: Owning organization
            source_path: File to upload
            uploaded_by: Uploading user

        Returns:
            Statement ID

        Raises:
            ValidationError: If the file doesn't exist
            UnsupportedFileTypeError: If the extension isn't accepted
            FileTooLargeError: If the file is larger than 10 MiB
        """
        source = Path(source_path)
        if not source.is_file():
            raise ValidationError(f"File not found: {source}")

        extension = source.suffix.lower()
        if extension not in ALLOWED_EXTENSIONS:
            raise UnsupportedFileTypeError(unsupported_file_type(extension))

        size = source.stat().st_size
        if size > MAX_UPLOAD_BYTES:
            raise FileTooLargeError(file_too_large(size, MAX_UPLOAD_BYTES))

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{extension}"
        destination = self.upload_dir / filename
        shutil.copyfile(source, destination)

        statement_id = self.db.create_bank_statement(
            organization_id=organization_id,
            filename=filename,
            original_filename=source.name,
            file_path=str(destination),
            uploaded_by=uploaded_by,
        )
        logger.info(
            "statement uploaded",
            statement_id=statement_id,
            organization_id=organization_id,
            original_filename=source.name,
            size=size,
        )
        return statement_id

    def process_statement(self, statement_id: int, organization_id: int) -> ProcessResult:
        """Normalize, classify and store the transactions of a pending statement.

        Every normalized row is stored, repeated lines included. On success the statement becomes processed; on any failure it becomes
        failed with the reason in its error log and the error is re-raised.

        Raises:
            NotFoundError: If the statement isn't in the organization
            StatementStateError: If the statement isn't pending
            ValidationError: If no transactions could be parsed
        """
        statement = self.db.get_bank_statement(statement_id, organization_id)
        if statement is None:
            raise NotFoundError(statement_not_found(statement_id))
        if statement.status != StatementStatus.PENDING:
            raise StatementStateError(statement_not_pending(statement_id, statement.status.value))

        error_log: Optional[str] = None
        try:
            with log_timing("process_statement", logger=logger, statement_id=statement_id) as ctx:
                drafts = self.normalizer.normalize_statement(
                    statement.file_path, statement.id, organization_id
                )
                if not drafts:
                    error_log = NO_TRANSACTIONS_ERROR
                    raise ValidationError("No transactions parsed")

                classified = self._classify_drafts(drafts, organization_id)

                with self.db.unit_of_work() as uow:
                    uow.add_bank_transactions(classified)
                    uow.update_statement_status(
                        statement_id,
                        organization_id,
                        StatementStatus.PROCESSED,
                        total_transactions=len(drafts),
                        processed_transactions=len(classified),
                    )

                result = ProcessResult(
                    statement_id=statement_id,
                    normalized=len(drafts),
                    inserted=len(classified),
                    classified=sum(1 for d in classified if d.suggested_account_id is not None),
                )
                ctx.update(inserted=result.inserted, classified=result.classified)
        except Exception as e:
            self.db.update_bank_statement_status(
                statement_id,
                organization_id,
                StatementStatus.FAILED,
                error_log=error_log or str(e),
            )
            logger.error(
                "statement processing failed",
                statement_id=statement_id,
                organization_id=organization_id,
                error=error_log or str(e),
            )
            raise

        return result

    def _classify_drafts(
        self, drafts: list[BankTransactionDraft], organization_id: int
    ) -> list[BankTransactionDraft]:
        # One rule snapshot for the whole statement
        rules = self.classifier.load_rules(organization_id)
        classified = []
        for draft in drafts:
            suggestion = self.classifier.classify_transaction(draft, organization_id, rules=rules)
            classified.append(
                dataclasses.replace(
                    draft,
                    suggested_account_id=suggestion.account_id,
                    confidence_score=suggestion.confidence,
                    classification_reason=suggestion.reason,
                )
            )
        return classified

    def get_statement(self, statement_id: int, organization_id: int) -> Optional[BankStatement]:
        """Get statement by ID."""
        return self.db.get_bank_statement(statement_id, organization_id)

    def list_statements(self, organization_id: int) -> list[BankStatement]:
        """List statements, newest first."""
        return self.db.list_bank_statements(organization_id)

    def list_statement_transactions(
        self, statement_id: int, organization_id: int
    ) -> list[BankTransaction]:
        """List the transactions stored for a statement.

        Raises:
            NotFoundError: If the statement isn't in the organization
        """
        if self.db.get_bank_statement(statement_id, organization_id) is None:
            raise NotFoundError(statement_not_found(statement_id))
        return self.db.list_statement_transactions(statement_id, organization_id)

    def get_review_queue(self, organization_id: int) -> list[ReviewItem]:
        """Pending transactions, newest first, each with its suggested account."""
        accounts = {account.id: account for account in self.db.list_accounts(organization_id)}
        return [
            ReviewItem(transaction=txn, account=accounts.get(txn.suggested_account_id))
            for txn in self.db.list_pending_transactions(organization_id)
        ]

    def correct_transaction(
        self,
        transaction_id: int,
        organization_id: int,
        account_id: int,
        reason: Optional[str] = None,
        description: Optional[str] = None,
        performed_by: Optional[int] = None,
    ) -> None:
        """Override the suggested account of a pending transaction.

        Confidence becomes 1.0 and the change is audited. When a description
        is given, it is recorded as classification feedback.

        Raises:
            TransactionNotFoundError: If the transaction isn't in the organization
            AlreadyPostedError: If the transaction was posted
            NotFoundError: If the account isn't in the organization
        """
        if self.db.get_account(account_id, organization_id) is None:
            raise NotFoundError(account_not_found(account_id))

        reason = reason or MANUAL_CORRECTION_REASON
        with self.db.unit_of_work() as uow:
            txn = uow.get_transaction_for_update(transaction_id, organization_id)
            if txn is None:
                raise TransactionNotFoundError(transaction_not_found(transaction_id))
            if txn.status == TransactionStatus.POSTED:
                raise AlreadyPostedError(transaction_already_posted(transaction_id))

            uow.update_transaction_classification(
                transaction_id, organization_id, account_id, MANUAL_CONFIDENCE, reason
            )
            uow.log_action(
                organization_id=organization_id,
                entity_type="transaction",
                entity_id=transaction_id,
                action=AuditAction.MANUAL_CLASSIFICATION.value,
                changes={
                    "previous_account_id": txn.suggested_account_id,
                    "suggested_account_id": account_id,
                    "reason": reason,
                },
                performed_by=performed_by,
            )

        if description:
            self.classifier.learn_from_feedback(organization_id, description, account_id)
