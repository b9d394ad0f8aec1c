"""Classification rule commands."""

import click
from ledgerflow.cli.error_handling import handle_domain_error, resolve_account_or_exit
from ledgerflow.domain.account import AccountService
from ledgerflow.domain.classification import ClassificationEngine, RuleService
from ledgerflow.domain.entities import MatchKind
from ledgerflow.domain.errors import DomainError


def _account_labels(db, org_id: int) -> dict[int, str]:
    return {acc.id: f"{acc.code} {acc.name}" for acc in AccountService(db).list_accounts(org_id)}


@click.group()
def rule_group():
    """Manage classification rules."""
    pass


@rule_group.command("create")
@click.argument("name")
@click.argument("pattern")
@click.option("--account", required=True, help="Target account code, ID or name")
@click.option(
    "--type",
    "match_kind",
    type=click.Choice([k.value for k in MatchKind]),
    default=MatchKind.CONTAINS.value,
    show_default=True,
    help="How the pattern is compared to descriptions",
)
@click.option("--priority", type=int, default=0, show_default=True, help="Higher runs first")
@click.pass_context
def create_rule(ctx, name: str, pattern: str, account: str, match_kind: str, priority: int):
    """Create a classification rule.

    Matching is case-insensitive for every type.

    Examples:
        ledgerflow rule create "Rent" "monthly rent" --account 4020
        ledgerflow rule create "Salary" "^salary.*" --account 4010 --type regex --priority 10
    """
    db = ctx.obj["db"]
    org_id = ctx.obj["org_id"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), org_id, account)

    try:
        rule_id = RuleService(db).create_rule(
            organization_id=org_id,
            name=name,
            pattern=pattern,
            target_account_id=account_id,
            match_kind=MatchKind(match_kind),
            priority=priority,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created rule '{name}' (ID: {rule_id})")


@rule_group.command("list")
@click.option("--active-only", is_flag=True, help="Hide disabled rules")
@click.pass_context
def list_rules(ctx, active_only: bool):
    """List rules in evaluation order."""
    db = ctx.obj["db"]
    org_id = ctx.obj["org_id"]

    rules = RuleService(db).list_rules(org_id, active_only=active_only)
    if not rules:
        click.echo("No rules found.")
        return

    labels = _account_labels(db, org_id)
    click.echo(f"\n{'ID':<5} {'Prio':>5} {'Type':<9} {'Active':<7} {'Name':<20} {'Pattern':<25} {'Account'}")
    click.echo("-" * 100)
    for r in rules:
        click.echo(
            f"{r.id:<5} {r.priority:>5} {r.match_kind.value:<9} {'yes' if r.is_active else 'no':<7} "
            f"{r.name[:20]:<20} {r.pattern[:25]:<25} {labels.get(r.target_account_id, r.target_account_id)}"
        )


def _set_active(ctx, rule_id: int, is_active: bool) -> None:
    try:
        RuleService(ctx.obj["db"]).set_active(rule_id, ctx.obj["org_id"], is_active)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Rule {rule_id} {'enabled' if is_active else 'disabled'}")


@rule_group.command("enable")
@click.argument("rule_id", type=int)
@click.pass_context
def enable_rule(ctx, rule_id: int):
    """Enable a rule."""
    _set_active(ctx, rule_id, True)


@rule_group.command("disable")
@click.argument("rule_id", type=int)
@click.pass_context
def disable_rule(ctx, rule_id: int):
    """Disable a rule."""
    _set_active(ctx, rule_id, False)


@rule_group.command("feedback")
@click.pass_context
def list_feedback(ctx):
    """List recorded manual corrections, newest first."""
    db = ctx.obj["db"]
    org_id = ctx.obj["org_id"]

    feedback = ClassificationEngine(db).list_feedback(org_id)
    if not feedback:
        click.echo("No feedback recorded.")
        return

    labels = _account_labels(db, org_id)
    for item in feedback:
        recorded = item.created_at.strftime("%Y-%m-%d") if item.created_at else ""
        click.echo(
            f"{recorded:<11} {item.transaction_description[:50]:<50} -> "
            f"{labels.get(item.correct_account_id, item.correct_account_id)}"
        )


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
