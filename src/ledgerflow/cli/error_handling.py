"""CLI error handling helpers."""

import click

from ledgerflow.domain.account import AccountService, resolve_account
from ledgerflow.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, organization_id: int, account: str | int
) -> int:
    """Resolve account code, ID or name, or exit with a CLI error."""
    try:
        return resolve_account(account_service, organization_id, account)
    except DomainError as exc:
        handle_domain_error(ctx, exc)
