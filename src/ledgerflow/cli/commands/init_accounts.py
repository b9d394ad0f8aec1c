"""Initialize the default chart of accounts."""

import click
from ledgerflow.domain.account import AccountService
from ledgerflow.domain.errors import ConflictError


@click.command("init-accounts")
@click.pass_context
def init_accounts(ctx):
    """Seed the default chart of accounts, including the bank account 1010."""
    db = ctx.obj["db"]
    service = AccountService(db)

    click.echo("Creating default chart of accounts...")
    try:
        created = service.initialize_chart(ctx.obj["org_id"])
    except ConflictError:
        click.echo("Accounts already exist for this organization.")
        return

    click.echo(f"Successfully created {created} accounts.")


def register_commands(cli):
    """Register init-accounts command with main CLI."""
    cli.add_command(init_accounts)
