"""Bank statement commands."""

import click
from ledgerflow.cli.error_handling import handle_domain_error
from ledgerflow.database.factories import resolve_upload_dir
from ledgerflow.domain.errors import DomainError
from ledgerflow.domain.statement import StatementService


def _statement_service(ctx) -> StatementService:
    return StatementService(ctx.obj["db"], resolve_upload_dir(ctx.obj["upload_dir"]))


def _run_processing(ctx, service: StatementService, statement_id: int) -> None:
    try:
        result = service.process_statement(statement_id, ctx.obj["org_id"])
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Processed statement {statement_id}:")
    click.echo(f"  Rows normalized:      {result.normalized}")
    click.echo(f"  Transactions stored:  {result.inserted}")
    click.echo(f"  Classified by rules:  {result.classified}")


@click.group()
def statement_group():
    """Upload and process bank statements."""
    pass


@statement_group.command("upload")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--process", "process_now", is_flag=True, help="Process the statement right after upload")
@click.pass_context
def upload_statement(ctx, file_path: str, process_now: bool):
    """Upload a bank statement file (.csv, .xls, .xlsx or .pdf, up to 10 MB).

    Examples:
        ledgerflow statement upload march.csv
        ledgerflow statement upload march.xlsx --process
    """
    service = _statement_service(ctx)

    try:
        statement_id = service.upload_statement(
            ctx.obj["org_id"], file_path, uploaded_by=ctx.obj["user_id"]
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Uploaded statement (ID: {statement_id})")

    if process_now:
        _run_processing(ctx, service, statement_id)


@statement_group.command("process")
@click.argument("statement_id", type=int)
@click.pass_context
def process_statement(ctx, statement_id: int):
    """Normalize and classify a pending statement."""
    _run_processing(ctx, _statement_service(ctx), statement_id)


@statement_group.command("list")
@click.pass_context
def list_statements(ctx):
    """List uploaded statements, newest first."""
    service = _statement_service(ctx)

    statements = service.list_statements(ctx.obj["org_id"])
    if not statements:
        click.echo("No statements found.")
        return

    click.echo(f"\n{'ID':<6} {'Uploaded':<20} {'Status':<10} {'Rows':>6} {'Stored':>7}  {'File'}")
    click.echo("-" * 90)
    for stmt in statements:
        uploaded = stmt.created_at.strftime("%Y-%m-%d %H:%M") if stmt.created_at else ""
        click.echo(
            f"{stmt.id:<6} {uploaded:<20} {stmt.status.value:<10} "
            f"{stmt.total_transactions:>6} {stmt.processed_transactions:>7}  {stmt.original_filename}"
        )
        if stmt.error_log:
            click.echo(f"       Error: {stmt.error_log}")


@statement_group.command("show")
@click.argument("statement_id", type=int)
@click.pass_context
def show_statement(ctx, statement_id: int):
    """Show the transactions parsed from a statement."""
    service = _statement_service(ctx)

    try:
        transactions = service.list_statement_transactions(statement_id, ctx.obj["org_id"])
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 100)
    click.echo(f"{'ID':<6} {'Date':<12} {'Type':<7} {'Amount':>12} {'Status':<8} {'Description'}")
    click.echo("-" * 100)
    for txn in transactions:
        click.echo(
            f"{txn.id:<6} {str(txn.date):<12} {txn.type.value:<7} {txn.amount:>12,.2f} "
            f"{txn.status.value:<8} {txn.description[:50]}"
        )


def register_commands(cli):
    """Register statement commands with main CLI."""
    cli.add_command(statement_group, name="statement")
