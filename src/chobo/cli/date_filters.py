"""CLI helpers for date range resolution."""

from datetime import date
import functools

import click

from chobo.utils.date_parser import get_date_range, parse_date

PERIODS = ("this-month", "this-year", "this-week", "last-month", "last-year", "last-week")


def period_options(func):
    """Add --start-date/--end-date and one flag per period to a command.

    The decorated command receives a single ``period`` keyword holding
    (start_date, end_date, {period: is_set}).
    """

    @click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
    @click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
    @click.option("--this-month", "this_month", is_flag=True, help="Current month")
    @click.option("--this-year", "this_year", is_flag=True, help="Current year")
    @click.option("--this-week", "this_week", is_flag=True, help="Current week")
    @click.option("--last-month", "last_month", is_flag=True, help="Previous month")
    @click.option("--last-year", "last_year", is_flag=True, help="Previous year")
    @click.option("--last-week", "last_week", is_flag=True, help="Previous week")
    @functools.wraps(func)
    def wrapper(*args, start_date, end_date, **kwargs):
        flags = {name: kwargs.pop(name.replace("-", "_")) for name in PERIODS}
        return func(*args, period=(start_date, end_date, flags), **kwargs)

    return wrapper


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from period flags or explicit dates."""
    chosen = [period for period, is_set in period_flags.items() if is_set]

    if len(chosen) > 1:
        click.echo("Error: Only one period option can be specified at a time.", err=True)
        ctx.exit(1)

    if chosen and (start_date or end_date):
        click.echo("Error: Period options cannot be combined with --start-date or --end-date.", err=True)
        ctx.exit(1)

    if chosen:
        return get_date_range(chosen[0])

    resolved = []
    for label, text in (("start", start_date), ("end", end_date)):
        if not text:
            resolved.append(None)
            continue
        try:
            resolved.append(parse_date(text))
        except ValueError as e:
            click.echo(f"Error: Invalid {label} date: {e}", err=True)
            ctx.exit(1)

    start, end = resolved
    if start is None and end is None and default_range is not None:
        return default_range
    return start, end
