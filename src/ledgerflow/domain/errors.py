"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist in the organization."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or invalid state."""


class UnsupportedFileTypeError(ValidationError):
    """Statement file extension is not one of the supported formats."""


class FileTooLargeError(ValidationError):
    """Uploaded statement exceeds the size limit."""


class TransactionNotFoundError(NotFoundError):
    """Bank transaction does not exist for the organization."""


class AlreadyPostedError(ConflictError):
    """Bank transaction has already been posted to the ledger."""


class NotClassifiedError(ValidationError):
    """Bank transaction has no suggested account and cannot be posted."""


class MissingSystemAccountError(NotFoundError):
    """Organization has no system bank account in its chart of accounts."""


class UnbalancedEntryError(DomainError):
    """Ledger lines built for a posting do not balance."""


class StatementStateError(ConflictError):
    """Bank statement is not in a state that allows the operation."""


def unsupported_file_type(extension: str) -> str:
    """Return message for an unsupported statement extension."""
    return f"Unsupported file type: {extension or '(none)'}"


def file_too_large(size: int, limit: int) -> str:
    """Return message for an upload above the size limit."""
    return f"File is {size} bytes; the limit is {limit} bytes"


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def account_code_not_found(code: str) -> str:
    """Return message for missing account by code."""
    return f"Account with code '{code}' not found"


def duplicate_account_code(code: str, organization_id: int) -> str:
    """Return message for an account code already in use."""
    return f"Account code '{code}' already exists for organization {organization_id}"


def statement_not_found(statement_id: int) -> str:
    """Return message for missing bank statement."""
    return f"Statement {statement_id} not found"


def statement_not_pending(statement_id: int, status: str) -> str:
    """Return message when a statement has already reached a terminal status."""
    return f"Statement {statement_id} is already {status}"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing bank transaction."""
    return f"Transaction {transaction_id} not found"


def transaction_already_posted(transaction_id: int) -> str:
    """Return message for a transaction that was posted before."""
    return f"Transaction {transaction_id} already posted"


def transaction_not_classified(transaction_id: int) -> str:
    """Return message for posting an unclassified transaction."""
    return f"Transaction {transaction_id} must be classified before posting"


def missing_system_account(code: str) -> str:
    """Return message when the system bank account is absent."""
    return f"System Bank Account (Code {code}) not found in Chart of Accounts"


def rule_not_found(rule_id: int) -> str:
    """Return message for missing classification rule."""
    return f"Classification rule {rule_id} not found"
