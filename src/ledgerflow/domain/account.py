"""Chart of Accounts domain service."""

from typing import Optional
from ledgerflow.database.base import Database
from ledgerflow.domain.entities import Account as AccountEntity, AccountType
from ledgerflow.domain.errors import (
    ConflictError,
    NotFoundError,
    account_code_not_found,
    duplicate_account_code,
)
from ledgerflow.logger import get_logger

logger = get_logger(__name__)

# Code of the bank/cash clearing account every posting touches
SYSTEM_BANK_ACCOUNT_CODE = "1010"

# Default preschool chart of accounts: (code, name, type, parent code)
DEFAULT_CHART_OF_ACCOUNTS = [
    ("1000", "Assets", AccountType.ASSET, None),
    ("1010", "Bank Account", AccountType.ASSET, "1000"),
    ("2000", "Liabilities", AccountType.LIABILITY, None),
    ("2010", "Advances Received", AccountType.LIABILITY, "2000"),
    ("3000", "Income", AccountType.INCOME, None),
    ("3010", "Fees Income", AccountType.INCOME, "3000"),
    ("3020", "Daycare Income", AccountType.INCOME, "3000"),
    ("3030", "Misc Income", AccountType.INCOME, "3000"),
    ("4000", "Expenses", AccountType.EXPENSE, None),
    ("4010", "Salary Expense", AccountType.EXPENSE, "4000"),
    ("4020", "Rent Expense", AccountType.EXPENSE, "4000"),
    ("4030", "Utilities", AccountType.EXPENSE, "4000"),
    ("4040", "Food & Beverages", AccountType.EXPENSE, "4000"),
    ("4050", "Marketing", AccountType.EXPENSE, "4000"),
    ("4060", "Maintenance", AccountType.EXPENSE, "4000"),
]


class AccountService:
    """Service for managing an organization's chart of accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        organization_id: int,
        code: str,
        name: str,
        account_type: AccountType,
        parent_code: Optional[str] = None,
        is_system: bool = False,
    ) -> int:
        """Create a new account.

        Args:
            organization_id: Owning organization
            code: Account code, unique within the organization (e.g. "4010")
            name: Account name
            account_type: Asset, liability, income, expense or equity
            parent_code: Optional code of the parent account
            is_system: Whether the pipeline depends on this account structurally

        Returns:
            Account ID

        Raises:
            ConflictError: If the code is already used in the organization
            NotFoundError: If the parent account doesn't exist
        """
        if self.db.get_account_by_code(organization_id, code) is not None:
            raise ConflictError(duplicate_account_code(code, organization_id))

        parent_id = None
        if parent_code is not None:
            parent = self.db.get_account_by_code(organization_id, parent_code)
            if parent is None:
                raise NotFoundError(account_code_not_found(parent_code))
            parent_id = parent.id

        return self.db.create_account(
            organization_id=organization_id,
            code=code,
            name=name,
            account_type=account_type,
            parent_id=parent_id,
            is_system=is_system,
        )

    def get_account(self, organization_id: int, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Returns:
            Account entity or None if not found in the organization
        """
        return self.db.get_account(account_id, organization_id)

    def get_account_by_code(self, organization_id: int, code: str) -> Optional[AccountEntity]:
        """Get account by code."""
        return self.db.get_account_by_code(organization_id, code)

    def list_accounts(self, organization_id: int) -> list[AccountEntity]:
        """List all accounts of an organization, ordered by code."""
        return self.db.list_accounts(organization_id)

    def get_system_bank_account(self, organization_id: int) -> Optional[AccountEntity]:
        """Return the system bank account (code 1010) or None."""
        account = self.db.get_account_by_code(organization_id, SYSTEM_BANK_ACCOUNT_CODE)
        if account is None or not account.is_system:
            return None
        return account

    def initialize_chart(self, organization_id: int) -> int:
        """Seed the default chart of accounts.

        Parents are listed before their children, so one pass is enough.
        All seeded accounts are system accounts.

        Returns:
            Number of accounts created

        Raises:
            ConflictError: If the organization already has accounts
        """
        if self.db.list_accounts(organization_id):
            raise ConflictError(f"Organization {organization_id} already has a chart of accounts")

        created = 0
        for code, name, account_type, parent_code in DEFAULT_CHART_OF_ACCOUNTS:
            self.create_account(
                organization_id=organization_id,
                code=code,
                name=name,
                account_type=account_type,
                parent_code=parent_code,
                is_system=True,
            )
            created += 1

        logger.info("chart of accounts seeded", organization_id=organization_id, accounts=created)
        return created


def resolve_account(service: AccountService, organization_id: int, account: str | int) -> int:
    """Resolve an account code, ID or exact name to an account ID.

    Codes take precedence over IDs because codes are numeric strings too.

    Raises:
        NotFoundError: If no account matches
    """
    value = str(account).strip()

    by_code = service.get_account_by_code(organization_id, value)
    if by_code is not None:
        return by_code.id

    try:
        account_id = int(value)
    except ValueError:
        account_id = None

    if account_id is not None:
        by_id = service.get_account(organization_id, account_id)
        if by_id is not None:
            return by_id.id

    for acc in service.list_accounts(organization_id):
        if acc.name == value:
            return acc.id

    raise NotFoundError(f"Account '{account}' not found")
