"""Journal entry commands."""

import click
from chobo.domain.account import AccountService
from chobo.domain.entities import JournalLineInput, JournalStatus
from chobo.domain.errors import DomainError
from chobo.domain.journal import JournalEntryService
from chobo.utils.amount_parser import parse_amount
from chobo.utils.date_parser import parse_date
from chobo.cli.account_resolution import resolve_account_or_exit, resolve_partner_or_exit
from chobo.cli.date_filters import period_options, resolve_cli_date_range
from chobo.cli.error_handling import handle_domain_error


@click.group()
def journal_group():
    """Manage journal entries."""
    pass


def _parse_line(ctx, account_service: AccountService, value: str) -> JournalLineInput:
    """Parse ACCOUNT:debit|credit:AMOUNT into a line."""
    parts = value.rsplit(":", 2)
    if len(parts) != 3 or parts[1].lower() not in ("debit", "credit"):
        click.echo(f"Error: Invalid --line '{value}'. Expected ACCOUNT:debit|credit:AMOUNT", err=True)
        ctx.exit(1)
    account, side, amount_text = parts
    account_id = resolve_account_or_exit(ctx, account_service, account)
    amount = parse_amount(amount_text)
    if side.lower() == "debit":
        return JournalLineInput(account_id=account_id, debit_amount=amount)
    return JournalLineInput(account_id=account_id, credit_amount=amount)


@journal_group.command("add")
@click.argument("date")
@click.argument("description")
@click.option("--debit", help="Debit account code, name or ID")
@click.option("--credit", help="Credit account code, name or ID")
@click.option("--amount", help="Amount (e.g. 1200 or 1,200)")
@click.option("--line", "lines", multiple=True, metavar="ACCOUNT:SIDE:AMOUNT", help="Entry line (repeatable)")
@click.option("--partner", help="Partner code")
@click.pass_context
def add_entry(
    ctx,
    date: str,
    description: str,
    debit: str | None,
    credit: str | None,
    amount: str | None,
    lines: tuple[str, ...],
    partner: str | None,
):
    """Add a draft journal entry.

    Use --debit/--credit/--amount for a two-line entry, or repeat --line
    for compound entries.

    Examples:
        chobo journal add 2024-04-15 "事務用品" --debit 7190 --credit 1110 --amount 1200
        chobo journal add today "売上計上" --line 1140:debit:110000 --line 4110:credit:110000
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    service = JournalEntryService(db)

    try:
        entry_date = parse_date(date)
    except ValueError as e:
        click.echo(f"Error: Invalid date: {e}", err=True)
        ctx.exit(1)

    partner_id = resolve_partner_or_exit(ctx, db, partner)

    if lines:
        if debit or credit or amount:
            click.echo("Error: --line cannot be combined with --debit/--credit/--amount", err=True)
            ctx.exit(1)
        entry_lines = [_parse_line(ctx, account_service, value) for value in lines]
    elif debit and credit and amount:
        value = parse_amount(amount)
        entry_lines = [
            JournalLineInput(account_id=resolve_account_or_exit(ctx, account_service, debit), debit_amount=value),
            JournalLineInput(account_id=resolve_account_or_exit(ctx, account_service, credit), credit_amount=value),
        ]
    else:
        click.echo("Error: Give --debit, --credit and --amount, or at least two --line options", err=True)
        ctx.exit(1)

    try:
        entry_id = service.create_entry(entry_date, description, entry_lines, partner_id=partner_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    entry = service.get_entry(entry_id)
    click.echo(f"Created journal entry {entry.entry_number} (ID: {entry_id}, draft)")


@journal_group.command("list")
@period_options
@click.option("--status", type=click.Choice([s.value for s in JournalStatus]), help="Filter by status")
@click.option("--account", help="Only entries touching this account")
@click.option("--partner", help="Partner code")
@click.pass_context
def list_entries(ctx, period, status: str | None, account: str | None, partner: str | None):
    """List journal entries."""
    db = ctx.obj["db"]
    start_date, end_date, flags = period
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period_flags=flags)

    account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None
    partner_id = resolve_partner_or_exit(ctx, db, partner)

    entries = JournalEntryService(db).list_entries(
        start_date=start, end_date=end, status=status, account_id=account_id, partner_id=partner_id
    )
    if not entries:
        click.echo("No journal entries found.")
        return

    click.echo(f"\n{'ID':>4} | {'Number':10} | {'Date':10} | {'Amount':>12} | {'Status':9} | Description")
    click.echo("-" * 80)
    for entry in entries:
        click.echo(
            f"{entry.id:4d} | {entry.entry_number:10} | {entry.date.isoformat()} | "
            f"{entry.total_debit:>12,} | {entry.status.value:9} | {entry.description}"
        )


@journal_group.command("show")
@click.argument("entry_id", type=int)
@click.pass_context
def show_entry(ctx, entry_id: int):
    """Show an entry with its lines."""
    db = ctx.obj["db"]
    entry = JournalEntryService(db).get_entry(entry_id)
    if entry is None:
        click.echo(f"Error: Journal entry {entry_id} not found", err=True)
        ctx.exit(1)

    accounts = {a.id: a for a in AccountService(db).list_accounts(include_inactive=True)}
    click.echo(f"Entry:       {entry.entry_number} (ID: {entry.id})")
    click.echo(f"Date:        {entry.date.isoformat()}")
    click.echo(f"Status:      {entry.status.value}")
    click.echo(f"Description: {entry.description}")
    click.echo("-" * 60)
    for line in entry.lines:
        account = accounts.get(line.account_id)
        label = f"{account.code} {account.name}" if account else str(line.account_id)
        debit = f"{line.debit_amount:,}" if line.debit_amount else ""
        credit = f"{line.credit_amount:,}" if line.credit_amount else ""
        click.echo(f"{line.line_number:2d} | {label:20s} | {debit:>12} | {credit:>12}")
    click.echo(f"{'':2s} | {'Total':20s} | {entry.total_debit:>12,} | {entry.total_credit:>12,}")


@journal_group.command("approve")
@click.argument("entry_ids", type=int, nargs=-1, required=True)
@click.pass_context
def approve_entries(ctx, entry_ids: tuple[int, ...]):
    """Approve one or more draft entries."""
    service = JournalEntryService(ctx.obj["db"])
    for entry_id in entry_ids:
        try:
            service.approve(entry_id)
        except DomainError as e:
            handle_domain_error(ctx, e)
        click.echo(f"Approved journal entry {entry_id}")


@journal_group.command("cancel")
@click.argument("entry_id", type=int)
@click.pass_context
def cancel_entry(ctx, entry_id: int):
    """Cancel a draft or approved entry."""
    try:
        JournalEntryService(ctx.obj["db"]).cancel(entry_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Cancelled journal entry {entry_id}")


def register_commands(cli):
    """Register journal commands with main CLI."""
    cli.add_command(journal_group, name="journal")
