"""Accounting period commands."""

import click
from chobo.domain.accounting_period import AccountingPeriodService
from chobo.domain.errors import DomainError
from chobo.cli.error_handling import handle_domain_error
from chobo.utils.date_parser import parse_date


@click.group()
def period_group():
    """Manage accounting periods."""
    pass


def _parse_or_exit(ctx, text: str, label: str):
    try:
        return parse_date(text)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


@period_group.command("create")
@click.argument("name")
@click.argument("start")
@click.argument("end")
@click.pass_context
def create_period(ctx, name: str, start: str, end: str):
    """Open an accounting period NAME running from START to END (inclusive).

    Examples:
        chobo period create 2024年度 2024-01-01 2024-12-31
        chobo period create FY2024 2024-04-01 2025-03-31
    """
    start_date = _parse_or_exit(ctx, start, "start date")
    end_date = _parse_or_exit(ctx, end, "end date")
    try:
        period_id = AccountingPeriodService(ctx.obj["db"]).create_period(name, start_date, end_date)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created accounting period '{name.strip()}' (ID: {period_id})")


@period_group.command("list")
@click.pass_context
def list_periods(ctx):
    """List accounting periods."""
    periods = AccountingPeriodService(ctx.obj["db"]).list_periods()
    if not periods:
        click.echo("No accounting periods found.")
        return

    click.echo("\nAccounting periods:")
    click.echo("-" * 60)
    for period in periods:
        state = "closed" if period.is_closed else "open"
        click.echo(f"ID: {period.id:3d} | {period.name:16s} | {period.start_date} - {period.end_date} | {state}")


@period_group.command("close")
@click.argument("period_id", type=int)
@click.pass_context
def close_period(ctx, period_id: int):
    """Close a period so its entries can no longer change."""
    try:
        AccountingPeriodService(ctx.obj["db"]).close_period(period_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Closed accounting period {period_id}")


@period_group.command("reopen")
@click.argument("period_id", type=int)
@click.pass_context
def reopen_period(ctx, period_id: int):
    """Reopen a closed period."""
    try:
        AccountingPeriodService(ctx.obj["db"]).reopen_period(period_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reopened accounting period {period_id}")


def register_commands(cli):
    """Register accounting period commands with main CLI."""
    cli.add_command(period_group, name="period")
