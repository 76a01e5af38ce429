"""Account and partner management commands."""

import click
from chobo.domain.account import AccountService, PartnerService
from chobo.domain.entities import AccountType, PartnerType
from chobo.domain.errors import DomainError
from chobo.cli.error_handling import handle_domain_error


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("create")
@click.argument("code")
@click.argument("name")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType]),
    required=True,
    help="Account type",
)
@click.pass_context
def create_account(ctx, code: str, name: str, account_type: str):
    """Create a new account.

    Examples:
        chobo account create 7150 消耗品費 --type expense
        chobo account create 1150 未収入金 --type asset
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        account_id = service.create_account(code=code, name=name, account_type=account_type)
        click.echo(f"Created account {code} '{name}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include inactive accounts")
@click.pass_context
def list_accounts(ctx, include_inactive: bool):
    """List accounts ordered by code."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts(include_inactive=include_inactive)
    if not accounts:
        click.echo("No accounts found. Run 'chobo init' to create the default chart of accounts.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 60)
    for acc in accounts:
        inactive = "" if acc.is_active else " (inactive)"
        click.echo(f"ID: {acc.id:3d} | {acc.code:6s} | {acc.name:16s} | {acc.account_type.value}{inactive}")


@click.group()
def partner_group():
    """Manage trading partners."""
    pass


@partner_group.command("create")
@click.argument("code")
@click.argument("name")
@click.option(
    "--type",
    "partner_type",
    type=click.Choice([t.value for t in PartnerType]),
    default=PartnerType.BOTH.value,
    show_default=True,
    help="Partner type",
)
@click.pass_context
def create_partner(ctx, code: str, name: str, partner_type: str):
    """Create a new trading partner.

    Examples:
        chobo partner create C001 "株式会社サンプル" --type customer
    """
    db = ctx.obj["db"]
    service = PartnerService(db)

    try:
        partner_id = service.create_partner(code=code, name=name, partner_type=partner_type)
        click.echo(f"Created partner {code} '{name}' (ID: {partner_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@partner_group.command("list")
@click.pass_context
def list_partners(ctx):
    """List trading partners."""
    db = ctx.obj["db"]
    partners = PartnerService(db).list_partners()
    if not partners:
        click.echo("No partners found.")
        return

    click.echo("\nPartners:")
    click.echo("-" * 60)
    for partner in partners:
        click.echo(f"ID: {partner.id:3d} | {partner.code:8s} | {partner.name:20s} | {partner.partner_type.value}")


def register_commands(cli):
    """Register account and partner commands with main CLI."""
    cli.add_command(account_group, name="account")
    cli.add_command(partner_group, name="partner")
