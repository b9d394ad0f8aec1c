"""Chart of Accounts commands."""

import click
from ledgerflow.cli.error_handling import handle_domain_error
from ledgerflow.domain.account import AccountService
from ledgerflow.domain.entities import AccountType
from ledgerflow.domain.errors import DomainError


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("create")
@click.argument("code", metavar="CODE")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType]),
    required=True,
    help="Account type",
)
@click.option("--parent", help="Code of the parent account")
@click.pass_context
def create_account(ctx, code: str, name: str, account_type: str, parent: str | None):
    """Create a new account.

    Examples:
        ledgerflow account create 4070 "Transport" --type expense --parent 4000
        ledgerflow account create 2020 "Loans" --type liability
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        account_id = service.create_account(
            organization_id=ctx.obj["org_id"],
            code=code,
            name=name,
            account_type=AccountType(account_type),
            parent_code=parent,
        )
        click.echo(f"Created account {code} '{name}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType]),
    help="Only show accounts of this type",
)
@click.pass_context
def list_accounts(ctx, account_type: str | None):
    """List the chart of accounts."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts(ctx.obj["org_id"])
    if account_type is not None:
        accounts = [acc for acc in accounts if acc.account_type.value == account_type]

    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc in accounts:
        flag = " [system]" if acc.is_system else ""
        click.echo(
            f"ID: {acc.id:3d} | {acc.code:6s} | {acc.name:25s} | {acc.account_type.value:9s}{flag}"
        )


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
