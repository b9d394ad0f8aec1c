"""Review, classification and posting commands."""

import click
from ledgerflow.cli.error_handling import handle_domain_error, resolve_account_or_exit
from ledgerflow.database.factories import resolve_upload_dir
from ledgerflow.domain.account import AccountService
from ledgerflow.domain.errors import DomainError
from ledgerflow.domain.ledger import LedgerEngine
from ledgerflow.domain.statement import StatementService


@click.group()
def transaction_group():
    """Review, classify and post bank transactions."""
    pass


@transaction_group.command("review")
@click.pass_context
def review_transactions(ctx):
    """List pending transactions with their suggested accounts."""
    service = StatementService(ctx.obj["db"], resolve_upload_dir(ctx.obj["upload_dir"]))

    items = service.get_review_queue(ctx.obj["org_id"])
    if not items:
        click.echo("No transactions awaiting review.")
        return

    click.echo(f"\n{len(items)} transaction(s) awaiting review:")
    click.echo("-" * 120)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Type':<7} {'Amount':>12} {'Conf':>5}  {'Suggested':<25} {'Description'}"
    )
    click.echo("-" * 120)
    for item in items:
        txn = item.transaction
        suggested = f"{item.account.code} {item.account.name}" if item.account else "-"
        click.echo(
            f"{txn.id:<6} {str(txn.date):<12} {txn.type.value:<7} {txn.amount:>12,.2f} "
            f"{txn.confidence_score:>5.2f}  {suggested[:25]:<25} {txn.description[:40]}"
        )
        if txn.classification_reason:
            click.echo(f"{'':<6} {txn.classification_reason}")


@transaction_group.command("classify")
@click.argument("transaction_id", type=int)
@click.option("--account", required=True, help="Account code, ID or name")
@click.option("--reason", help="Classification reason (default: 'Manual Correction')")
@click.option("--learn", is_flag=True, help="Record the description as classification feedback")
@click.pass_context
def classify_transaction(ctx, transaction_id: int, account: str, reason: str | None, learn: bool):
    """Set the account of a pending transaction by hand.

    Examples:
        ledgerflow transaction classify 12 --account 4020
        ledgerflow transaction classify 12 --account "Rent Expense" --learn
    """
    db = ctx.obj["db"]
    org_id = ctx.obj["org_id"]
    service = StatementService(db, resolve_upload_dir(ctx.obj["upload_dir"]))
    account_id = resolve_account_or_exit(ctx, AccountService(db), org_id, account)

    description = None
    if learn:
        txn = db.get_bank_transaction(transaction_id, org_id)
        description = txn.description if txn is not None else None

    try:
        service.correct_transaction(
            transaction_id,
            org_id,
            account_id,
            reason=reason,
            description=description,
            performed_by=ctx.obj["user_id"],
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Transaction {transaction_id} classified to account {account}")
    if description:
        click.echo("Feedback recorded.")


@transaction_group.command("post")
@click.argument("transaction_ids", nargs=-1, required=True, type=int)
@click.pass_context
def post_transactions(ctx, transaction_ids: tuple[int, ...]):
    """Post one or more classified transactions to the ledger.

    Examples:
        ledgerflow transaction post 12
        ledgerflow transaction post 12 13 14
    """
    engine = LedgerEngine(ctx.obj["db"])

    # Remove duplicates while preserving order
    unique_ids = list(dict.fromkeys(transaction_ids))

    successes = []
    errors = []
    for txn_id in unique_ids:
        try:
            engine.post_transaction(txn_id, ctx.obj["org_id"], performed_by=ctx.obj["user_id"])
            successes.append(txn_id)
            if len(unique_ids) == 1:
                click.echo(f"Transaction {txn_id} posted to ledger")
            else:
                click.echo(f"✓ Transaction {txn_id} posted")
        except DomainError as e:
            errors.append((txn_id, str(e)))
            if len(unique_ids) > 1:
                click.echo(f"✗ Transaction {txn_id}: {e}")

    if len(unique_ids) > 1:
        click.echo(f"\nResults: {len(successes)} succeeded, {len(errors)} failed")
        if errors:
            ctx.exit(1)
    elif errors:
        click.echo(f"Error: {errors[0][1]}", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
