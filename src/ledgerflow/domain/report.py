"""Ledger reports and consistency checks."""

from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerflow.database.base import Database
from ledgerflow.domain.entities import (
    Account,
    AccountBalance,
    AccountType,
    LedgerEntry,
    TrialBalance,
)
from ledgerflow.domain.errors import NotFoundError, account_not_found

# Account types whose balance grows with debits
DEBIT_NORMAL_TYPES = frozenset({AccountType.ASSET, AccountType.EXPENSE})


def normal_balance(account: Account, total_debit: Decimal, total_credit: Decimal) -> Decimal:
    """Balance of an account on its normal side."""
    if account.account_type in DEBIT_NORMAL_TYPES:
        return total_debit - total_credit
    return total_credit - total_debit


class ReportService:
    """Read-only projections over the ledger."""

    def __init__(self, db: Database):
        """Initialize report service.

        Args:
            db: Database instance
        """
        self.db = db

    def ledger_report(
        self,
        organization_id: int,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[LedgerEntry]:
        """List ledger entries, newest first.

        Args:
            organization_id: Owning organization
            account_id: Optional account filter
            start_date: Optional start date (inclusive)
            end_date: Optional end date (inclusive)

        Raises:
            NotFoundError: If the account filter isn't in the organization
        """
        if account_id is not None and self.db.get_account(account_id, organization_id) is None:
            raise NotFoundError(account_not_found(account_id))

        return self.db.list_ledger_entries(
            organization_id,
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
        )

    def trial_balance(self, organization_id: int) -> TrialBalance:
        """Per-account debit and credit totals with their normal balances.

        Accounts without entries are listed with zero totals.
        """
        totals = {row["account_id"]: row for row in self.db.get_account_totals(organization_id)}

        balances = []
        grand_debit = Decimal("0")
        grand_credit = Decimal("0")
        for account in self.db.list_accounts(organization_id):
            row = totals.get(account.id)
            total_debit = row["total_debit"] if row else Decimal("0")
            total_credit = row["total_credit"] if row else Decimal("0")
            grand_debit += total_debit
            grand_credit += total_credit
            balances.append(
                AccountBalance(
                    account=account,
                    total_debit=total_debit,
                    total_credit=total_credit,
                    balance=normal_balance(account, total_debit, total_credit),
                )
            )

        return TrialBalance(
            organization_id=organization_id,
            balances=tuple(balances),
            total_debit=grand_debit,
            total_credit=grand_credit,
        )

    def find_unbalanced_transactions(self, organization_id: int) -> list[int]:
        """IDs of posted transactions whose entries don't balance to their amount.

        A healthy ledger returns an empty list.
        """
        return [
            row["transaction_id"]
            for row in self.db.get_posted_transaction_totals(organization_id)
            if not (row["total_debit"] == row["total_credit"] == row["amount"])
        ]
