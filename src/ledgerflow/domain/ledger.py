"""Double-entry ledger posting."""

from decimal import Decimal
from typing import Optional, Sequence

from ledgerflow.database.base import Database
from ledgerflow.domain.account import SYSTEM_BANK_ACCOUNT_CODE
from ledgerflow.domain.entities import (
    AuditAction,
    BankTransaction,
    LedgerLine,
    TransactionStatus,
    TransactionType,
)
from ledgerflow.domain.errors import (
    AlreadyPostedError,
    MissingSystemAccountError,
    NotClassifiedError,
    NotFoundError,
    TransactionNotFoundError,
    UnbalancedEntryError,
    account_not_found,
    missing_system_account,
    transaction_already_posted,
    transaction_not_classified,
    transaction_not_found,
)
from ledgerflow.logger import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0")


def build_ledger_lines(transaction: BankTransaction, bank_account_id: int) -> list[LedgerLine]:
    """Build the two ledger lines for a classified transaction.

    Money in (credit) debits the bank account and credits the target account;
    money out (debit) debits the target account and credits the bank account.

    Raises:
        NotClassifiedError: If the transaction has no suggested account
    """
    if transaction.suggested_account_id is None:
        raise NotClassifiedError(transaction_not_classified(transaction.id))

    amount = transaction.amount
    target_account_id = transaction.suggested_account_id

    if transaction.type == TransactionType.CREDIT:
        debit_account_id, credit_account_id = bank_account_id, target_account_id
    else:
        debit_account_id, credit_account_id = target_account_id, bank_account_id

    return [
        LedgerLine(
            account_id=debit_account_id,
            debit=amount,
            credit=ZERO,
            entry_date=transaction.date,
            description=transaction.description,
        ),
        LedgerLine(
            account_id=credit_account_id,
            debit=ZERO,
            credit=amount,
            entry_date=transaction.date,
            description=transaction.description,
        ),
    ]


def validate_balance(lines: Sequence[LedgerLine]) -> None:
    """Check that lines balance and each carries exactly one nonzero side.

    Raises:
        UnbalancedEntryError: If any check fails
    """
    if not lines:
        raise UnbalancedEntryError("No ledger lines to post")

    for line in lines:
        if line.debit < 0 or line.credit < 0:
            raise UnbalancedEntryError(f"Negative amount on account {line.account_id}")
        if (line.debit != 0) == (line.credit != 0):
            raise UnbalancedEntryError(
                f"Line for account {line.account_id} must have exactly one of debit or credit"
            )

    total_debit = sum((line.debit for line in lines), ZERO)
    total_credit = sum((line.credit for line in lines), ZERO)
    if total_debit != total_credit:
        raise UnbalancedEntryError(
            f"Ledger lines not balanced: debits {total_debit} != credits {total_credit}"
        )


class LedgerEngine:
    """Posts classified bank transactions into the ledger."""

    def __init__(self, db: Database):
        """Initialize ledger engine.

        Args:
            db: Database instance
        """
        self.db = db

    def post_transaction(
        self,
        transaction_id: int,
        organization_id: int,
        performed_by: Optional[int] = None,
    ) -> list[int]:
        """Post a transaction as a balanced pair of ledger entries.

        The precondition checks, the entries, the status flip and the audit
        record share one unit of work: either all of them commit or none do.
        A second post of the same transaction, concurrent or not, fails with
        AlreadyPostedError.

        Args:
            transaction_id: Bank transaction to post
            organization_id: Owning organization
            performed_by: Acting user recorded in the audit log

        Returns:
            IDs of the created ledger entries

        Raises:
            TransactionNotFoundError: If the transaction isn't in the organization
            AlreadyPostedError: If the transaction was posted before
            NotClassifiedError: If the transaction has no suggested account
            NotFoundError: If the suggested account isn't in the organization
            MissingSystemAccountError: If the bank account (code 1010) is missing
        """
        with self.db.unit_of_work() as uow:
            txn = uow.get_transaction_for_update(transaction_id, organization_id)
            if txn is None:
                raise TransactionNotFoundError(transaction_not_found(transaction_id))
            if txn.status == TransactionStatus.POSTED:
                raise AlreadyPostedError(transaction_already_posted(transaction_id))
            if txn.suggested_account_id is None:
                raise NotClassifiedError(transaction_not_classified(transaction_id))

            if self.db.get_account(txn.suggested_account_id, organization_id) is None:
                raise NotFoundError(account_not_found(txn.suggested_account_id))

            bank = self.db.get_account_by_code(organization_id, SYSTEM_BANK_ACCOUNT_CODE)
            if bank is None or not bank.is_system:
                raise MissingSystemAccountError(missing_system_account(SYSTEM_BANK_ACCOUNT_CODE))

            lines = build_ledger_lines(txn, bank.id)
            validate_balance(lines)

            entry_ids = uow.add_ledger_entries(organization_id, txn.id, lines)

            if not uow.mark_transaction_posted(txn.id, organization_id):
                raise AlreadyPostedError(transaction_already_posted(transaction_id))

            uow.log_action(
                organization_id=organization_id,
                entity_type="transaction",
                entity_id=txn.id,
                action=AuditAction.POST_LEDGER.value,
                changes={"entries": len(entry_ids), "amount": str(txn.amount)},
                performed_by=performed_by,
            )

        logger.info(
            "transaction posted",
            transaction_id=transaction_id,
            organization_id=organization_id,
            amount=str(txn.amount),
            entries=len(entry_ids),
        )
        return entry_ids
