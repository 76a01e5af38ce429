"""Statement import command."""

from contextlib import nullcontext

import click
from chobo.clients.ai_classifier import AIClassifierClient
from chobo.domain.account import AccountService
from chobo.domain.csv_import import CSVImportService, ImportPreview
from chobo.domain.errors import DomainError
from chobo.domain.rate_limit import RateLimiter
from chobo.utils.csv_decoder import ENCODINGS
from chobo.cli.account_resolution import resolve_account_or_exit
from chobo.cli.error_handling import handle_domain_error


def _parse_mappings(ctx, account_service: AccountService, values: tuple[str, ...]) -> dict[int, tuple[int, int]]:
    """Parse ROW=DEBIT:CREDIT options into row → (debit ID, credit ID)."""
    confirmations = {}
    for value in values:
        row_text, sep, accounts = value.partition("=")
        debit, sep2, credit = accounts.partition(":")
        if not sep or not sep2 or not row_text.strip().isdigit() or not debit or not credit:
            click.echo(f"Error: Invalid --map '{value}'. Expected ROW=DEBIT:CREDIT (e.g. 3=7130:1120)", err=True)
            ctx.exit(1)
        confirmations[int(row_text)] = (
            resolve_account_or_exit(ctx, account_service, debit),
            resolve_account_or_exit(ctx, account_service, credit),
        )
    return confirmations


def _show_preview(preview: ImportPreview, codes: dict[int, str]) -> None:
    detected = " (detected)" if preview.template_match else ""
    click.echo(f"\nTemplate: {preview.template.name}{detected}, encoding {preview.encoding}")
    if preview.truncated:
        click.echo("Warning: file truncated to the row limit", err=True)

    click.echo("-" * 90)
    for row in preview.rows:
        tx = row.transaction
        suggestion = row.suggestion
        accounts = (
            f"{codes.get(suggestion.debit_account_id, '?')}/{codes.get(suggestion.credit_account_id, '?')}"
            if suggestion
            else "-/-"
        )
        confidence = f"{suggestion.confidence:.2f}" if suggestion else "    "
        click.echo(
            f"{row.index:4d} | {tx.date.isoformat()} | {tx.amount:>12,} | {tx.direction.value:7s} | "
            f"{tx.description[:24]:24s} | {accounts:9s} | {confidence} | {row.status}"
        )
    for failure in preview.failures:
        click.echo(f"Row {failure.row_number}: {failure.reason}", err=True)


@click.command("import")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--template", help="Template name (detected from the header if omitted)")
@click.option("--encoding", type=click.Choice(list(ENCODINGS)), help="Override the template encoding")
@click.option("--dry-run", is_flag=True, help="Show the preview without posting anything")
@click.option(
    "--min-confidence",
    type=click.FloatRange(0, 1),
    help="Post rows whose suggestion has at least this confidence",
)
@click.option(
    "--map",
    "mappings",
    multiple=True,
    metavar="ROW=DEBIT:CREDIT",
    help="Confirm accounts for a row by code (repeatable)",
)
@click.option("--ai", "use_ai", is_flag=True, help="Ask the AI classifier (needs CHOBO_AI_URL)")
@click.option("--include-duplicates", is_flag=True, help="Post rows flagged as duplicates too")
@click.option("--create-rules", is_flag=True, help="Learn rules from low-confidence rows you post")
@click.option("--approve", is_flag=True, help="Approve entries right after posting them")
@click.pass_context
def import_csv(
    ctx,
    csv_file: str,
    template: str | None,
    encoding: str | None,
    dry_run: bool,
    min_confidence: float | None,
    mappings: tuple[str, ...],
    use_ai: bool,
    include_duplicates: bool,
    create_rules: bool,
    approve: bool,
):
    """Import a bank or card statement.

    The statement is previewed with suggested accounts. Rows are posted as
    draft journal entries when confirmed with --map, or when their
    suggestion reaches --min-confidence.

    Examples:
        chobo import april.csv --dry-run
        chobo import april.csv --map 1=1110:4110 --approve
        chobo import card.csv --template card --min-confidence 0.7 --create-rules
    """
    db = ctx.obj["db"]
    settings = ctx.obj["settings"]
    account_service = AccountService(db)
    confirmations = _parse_mappings(ctx, account_service, mappings)

    ai_client = None
    limiter = None
    if use_ai:
        if not settings.ai_configured:
            click.echo("Error: --ai needs CHOBO_AI_URL to be set", err=True)
            ctx.exit(1)
        ai_client = AIClassifierClient(settings.ai_url, api_key=settings.ai_api_key, timeout=settings.ai_timeout)
        limiter = RateLimiter(settings.ai_max_calls, settings.ai_window_seconds)

    service = CSVImportService(db, ai_client=ai_client, rate_limiter=limiter)
    codes = {a.id: a.code for a in account_service.list_accounts(include_inactive=True)}

    try:
        with limiter if limiter is not None else nullcontext():
            preview, _ = service.import_file(
                csv_file, template_name=template, encoding=encoding, use_ai=use_ai, dry_run=True
            )
    except DomainError as e:
        handle_domain_error(ctx, e)

    _show_preview(preview, codes)

    if dry_run:
        click.echo("\nDry run: nothing was posted.")
        return

    if not confirmations and min_confidence is None:
        click.echo("\nNothing posted. Confirm rows with --map ROW=DEBIT:CREDIT or use --min-confidence.")
        return

    summary = service.execute_import(
        preview,
        confirmations=confirmations,
        accept_min_confidence=min_confidence,
        skip_duplicates=not include_duplicates,
        create_rules=create_rules,
        approve=approve,
    )
    click.echo("\nImport complete:")
    click.echo(f"  Imported: {summary.imported} entries")
    click.echo(f"  Skipped: {summary.skipped} rows")
    if summary.rules_created:
        click.echo(f"  Rules created: {summary.rules_created}")
    if summary.errors:
        click.echo(f"  Errors: {len(summary.errors)}")
        for error in summary.errors:
            click.echo(f"    {error}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_csv)
