"""Ledger report commands."""

import click
from ledgerflow.cli.date_filters import period_options, pop_period_flags, resolve_cli_date_range
from ledgerflow.cli.error_handling import handle_domain_error, resolve_account_or_exit
from ledgerflow.domain.account import AccountService
from ledgerflow.domain.errors import DomainError
from ledgerflow.domain.report import ReportService


@click.group()
def report_group():
    """Ledger reports."""
    pass


@report_group.command("ledger")
@click.option("--account", help="Account code, ID or name")
@period_options
@click.pass_context
def ledger_report(ctx, account: str | None, start_date: str | None, end_date: str | None, **kwargs):
    """Show ledger entries, newest first.

    Examples:
        ledgerflow report ledger
        ledgerflow report ledger --account 1010 --this-month
        ledgerflow report ledger --start-date 2024-01-01 --end-date 2024-03-31
    """
    db = ctx.obj["db"]
    org_id = ctx.obj["org_id"]
    account_service = AccountService(db)

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=pop_period_flags(kwargs),
    )

    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, account_service, org_id, account)

    try:
        entries = ReportService(db).ledger_report(
            org_id, account_id=account_id, start_date=start, end_date=end
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not entries:
        click.echo("No ledger entries found.")
        return

    labels = {acc.id: f"{acc.code} {acc.name}" for acc in account_service.list_accounts(org_id)}
    click.echo(f"\n{'Date':<12} {'Txn':<6} {'Account':<28} {'Debit':>12} {'Credit':>12}  {'Description'}")
    click.echo("-" * 110)
    for entry in entries:
        debit = f"{entry.debit:,.2f}" if entry.debit else ""
        credit = f"{entry.credit:,.2f}" if entry.credit else ""
        txn = str(entry.transaction_id) if entry.transaction_id is not None else ""
        click.echo(
            f"{str(entry.entry_date):<12} {txn:<6} {labels.get(entry.account_id, str(entry.account_id))[:28]:<28} "
            f"{debit:>12} {credit:>12}  {(entry.description or '')[:40]}"
        )


@report_group.command("trial-balance")
@click.pass_context
def trial_balance(ctx):
    """Show debit and credit totals per account."""
    report = ReportService(ctx.obj["db"]).trial_balance(ctx.obj["org_id"])

    click.echo(f"\n{'Code':<6} {'Account':<25} {'Type':<10} {'Debit':>12} {'Credit':>12} {'Balance':>12}")
    click.echo("-" * 82)
    for row in report.balances:
        if not row.total_debit and not row.total_credit:
            continue
        click.echo(
            f"{row.account.code:<6} {row.account.name[:25]:<25} {row.account.account_type.value:<10} "
            f"{row.total_debit:>12,.2f} {row.total_credit:>12,.2f} {row.balance:>12,.2f}"
        )
    click.echo("-" * 82)
    click.echo(f"{'Total':<43} {report.total_debit:>12,.2f} {report.total_credit:>12,.2f}")

    if not report.is_balanced:
        click.echo("Error: Ledger is out of balance", err=True)
        ctx.exit(1)


@report_group.command("check")
@click.pass_context
def check_ledger(ctx):
    """Verify every posted transaction balances to its amount."""
    unbalanced = ReportService(ctx.obj["db"]).find_unbalanced_transactions(ctx.obj["org_id"])
    if unbalanced:
        ids = ", ".join(str(txn_id) for txn_id in unbalanced)
        click.echo(f"Error: Unbalanced transactions: {ids}", err=True)
        ctx.exit(1)

    click.echo("All posted transactions balance.")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
