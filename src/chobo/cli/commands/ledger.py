"""Ledger, aging and payment schedule commands."""

import click
from chobo.domain.entities import JournalStatus, LedgerView
from chobo.domain.errors import DomainError
from chobo.domain.ledger import LedgerService, export_ledger_csv
from chobo.utils.date_parser import parse_date
from chobo.cli.account_resolution import resolve_partner_or_exit
from chobo.cli.date_filters import period_options, resolve_cli_date_range
from chobo.cli.error_handling import handle_domain_error


@click.group()
def ledger_group():
    """Show cash, bank, receivable and payable ledgers."""
    pass


def _display(view: LedgerView) -> None:
    click.echo(f"\n{'Date':10} | {'Number':10} | {'Description':24} | {'Counter':12} | {'In':>12} | {'Out':>12} | {'Balance':>14}")
    click.echo("-" * 110)
    click.echo(f"{'':10} | {'':10} | {'Opening balance':24} | {'':12} | {'':>12} | {'':>12} | {view.opening_balance:>14,}")
    for row in view.rows:
        increase = f"{row.amount:,}" if row.amount > 0 else ""
        decrease = f"{-row.amount:,}" if row.amount < 0 else ""
        click.echo(
            f"{row.date.isoformat()} | {row.entry_number:10} | {row.description[:24]:24} | "
            f"{(row.counter_account or '')[:12]:12} | {increase:>12} | {decrease:>12} | {row.running_balance:>14,}"
        )
    click.echo(f"{'':10} | {'':10} | {'Closing balance':24} | {'':12} | {'':>12} | {'':>12} | {view.closing_balance:>14,}")


def _ledger_command(name: str, method: str, help_text: str):
    @ledger_group.command(name, help=help_text)
    @period_options
    @click.option("--partner", help="Partner code")
    @click.option("--include-drafts", is_flag=True, help="Include draft entries")
    @click.option("--export", "export_path", type=click.Path(dir_okay=False), help="Write the ledger to a CSV file")
    @click.pass_context
    def command(ctx, period, partner: str | None, include_drafts: bool, export_path: str | None):
        db = ctx.obj["db"]
        start_date, end_date, flags = period
        start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period_flags=flags)
        partner_id = resolve_partner_or_exit(ctx, db, partner)
        statuses = (JournalStatus.APPROVED, JournalStatus.DRAFT) if include_drafts else (JournalStatus.APPROVED,)

        try:
            view = getattr(LedgerService(db), method)(start, end, partner_id=partner_id, statuses=statuses)
        except DomainError as e:
            handle_domain_error(ctx, e)

        if export_path:
            with open(export_path, "w", newline="", encoding="utf-8") as f:
                export_ledger_csv(view, f)
            click.echo(f"Exported {len(view.rows)} rows to {export_path}")
            return
        _display(view)

    return command


_ledger_command("cash", "cash_book", "Cash book (現金出納帳).")
_ledger_command("bank", "bank_book", "Bank book (預金出納帳).")
_ledger_command("receivable", "receivables_ledger", "Accounts receivable ledger (売掛金元帳).")
_ledger_command("payable", "payables_ledger", "Accounts payable ledger (買掛金元帳).")


def _today(ctx, value: str | None):
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid date: {e}", err=True)
        ctx.exit(1)


@ledger_group.command("aging")
@click.option("--payables", is_flag=True, help="Age payables instead of receivables")
@click.option("--as-of", help="Reference date (default today)")
@click.option("--partner", help="Partner code")
@click.pass_context
def aging(ctx, payables: bool, as_of: str | None, partner: str | None):
    """Show open receivables (or payables) by age."""
    db = ctx.obj["db"]
    today = _today(ctx, as_of)
    partner_id = resolve_partner_or_exit(ctx, db, partner)
    service = LedgerService(db)

    try:
        if payables:
            buckets = service.payables_aging(today=today, partner_id=partner_id)
        else:
            buckets = service.receivables_aging(today=today, partner_id=partner_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\n{'Payables' if payables else 'Receivables'} aging:")
    click.echo(f"  0-30 days:   {buckets.current:>14,}")
    click.echo(f"  31-60 days:  {buckets.days_31_60:>14,}")
    click.echo(f"  61-90 days:  {buckets.days_61_90:>14,}")
    click.echo(f"  Over 90:     {buckets.days_over_90:>14,}")
    click.echo(f"  Total:       {buckets.total:>14,}")


@ledger_group.command("schedule")
@click.option("--as-of", help="Reference date (default today)")
@click.option("--term-days", type=click.IntRange(min=0), help="Days from invoice to due date")
@click.option("--partner", help="Partner code")
@click.pass_context
def schedule(ctx, as_of: str | None, term_days: int | None, partner: str | None):
    """Show upcoming payments on open payables."""
    db = ctx.obj["db"]
    today = _today(ctx, as_of)
    partner_id = resolve_partner_or_exit(ctx, db, partner)
    if term_days is None:
        term_days = ctx.obj["settings"].payment_term_days

    try:
        plan = LedgerService(db).payment_schedule(today=today, term_days=term_days, partner_id=partner_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo("\nPayment schedule:")
    click.echo(f"  This week:   {plan.this_week:>14,}")
    click.echo(f"  Next week:   {plan.next_week:>14,}")
    click.echo(f"  This month:  {plan.this_month:>14,}")
    click.echo(f"  Next month:  {plan.next_month:>14,}")
    click.echo(f"  Later:       {plan.later:>14,}")


def register_commands(cli):
    """Register ledger commands with main CLI."""
    cli.add_command(ledger_group, name="ledger")
