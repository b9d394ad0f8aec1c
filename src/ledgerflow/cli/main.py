"""Main CLI entry point."""

import logging

import click
from ledgerflow.database.factories import create_sqlite_database
from ledgerflow.logger import configure_logging

# Import and register all commands at module level
from ledgerflow.cli.commands import (
    account,
    init_accounts,
    statement,
    transaction,
    rule,
    report,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERFLOW_DB_PATH environment variable)",
    envvar="LEDGERFLOW_DB_PATH",
)
@click.option(
    "--org",
    "org_id",
    type=int,
    default=1,
    show_default=True,
    help="Organization ID every command is scoped to",
    envvar="LEDGERFLOW_ORG_ID",
)
@click.option(
    "--user-id",
    type=int,
    help="Acting user ID recorded in audit logs",
    envvar="LEDGERFLOW_USER_ID",
)
@click.option(
    "--upload-dir",
    type=click.Path(file_okay=False),
    help="Directory uploaded statements are stored in",
    envvar="LEDGERFLOW_UPLOAD_DIR",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx,
    db_path: str | None,
    org_id: int,
    user_id: int | None,
    upload_dir: str | None,
    verbose: bool,
):
    """Ledgerflow - Bank statement accounting.

    Upload bank statements, classify their transactions with rules and post
    them into a double-entry ledger.
    """
    ctx.ensure_object(dict)
    configure_logging(logging.DEBUG if verbose else logging.WARNING)

    ctx.obj["org_id"] = org_id
    ctx.obj["user_id"] = user_id
    ctx.obj["upload_dir"] = upload_dir

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
init_accounts.register_commands(cli)
statement.register_commands(cli)
transaction.register_commands(cli)
rule.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
