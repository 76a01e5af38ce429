"""Import rule management commands."""

import click
from chobo.domain.account import AccountService
from chobo.domain.errors import DomainError
from chobo.domain.import_rule import ImportRuleService
from chobo.cli.account_resolution import resolve_account_or_exit
from chobo.cli.error_handling import handle_domain_error


@click.group()
def rule_group():
    """Manage classification rules."""
    pass


@rule_group.command("create")
@click.argument("pattern")
@click.option("--debit", required=True, help="Debit account code, name or ID")
@click.option("--credit", required=True, help="Credit account code, name or ID")
@click.option("--confidence", type=click.FloatRange(0, 1), help="Suggestion confidence (default 0.8)")
@click.option("--priority", type=int, default=100, show_default=True, help="Lower runs first")
@click.pass_context
def create_rule(ctx, pattern: str, debit: str, credit: str, confidence: float | None, priority: int):
    """Create a rule matching PATTERN in statement descriptions.

    PATTERN is a case-insensitive substring, or a regular expression
    written between slashes.

    Examples:
        chobo rule create "東京電力" --debit 7130 --credit 1120
        chobo rule create "/^AMAZON/" --debit 7190 --credit 1120 --priority 10
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    debit_id = resolve_account_or_exit(ctx, account_service, debit)
    credit_id = resolve_account_or_exit(ctx, account_service, credit)

    try:
        rule_id = ImportRuleService(db).create_rule(
            pattern=pattern,
            debit_account_id=debit_id,
            credit_account_id=credit_id,
            confidence=confidence,
            priority=priority,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created rule {rule_id} for '{pattern}'")


@rule_group.command("list")
@click.option("--all", "include_disabled", is_flag=True, help="Include disabled rules")
@click.pass_context
def list_rules(ctx, include_disabled: bool):
    """List rules in the order they are tried."""
    db = ctx.obj["db"]
    rules = ImportRuleService(db).list_rules(include_disabled=include_disabled)
    if not rules:
        click.echo("No rules found.")
        return

    accounts = {a.id: a for a in AccountService(db).list_accounts(include_inactive=True)}

    def code(account_id):
        account = accounts.get(account_id)
        return account.code if account else "?"

    click.echo("\nRules:")
    click.echo("-" * 60)
    for rule in rules:
        confidence = f"{rule.confidence:.2f}" if rule.confidence is not None else "0.80"
        disabled = "" if rule.is_active else " (disabled)"
        click.echo(
            f"ID: {rule.id:3d} | prio {rule.priority:3d} | {rule.pattern:24s} | "
            f"{code(rule.debit_account_id)}/{code(rule.credit_account_id)} | {confidence} | "
            f"used {rule.usage_count}{disabled}"
        )


@rule_group.command("disable")
@click.argument("rule_id", type=int)
@click.pass_context
def disable_rule(ctx, rule_id: int):
    """Disable a rule."""
    db = ctx.obj["db"]
    try:
        ImportRuleService(db).disable_rule(rule_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Disabled rule {rule_id}")


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
