"""CLI helpers for account and partner resolution."""

from __future__ import annotations

import click
from chobo.domain.account import AccountService, PartnerService
from chobo.domain.errors import DomainError
from chobo.utils.account_resolver import resolve_account
from chobo.cli.error_handling import handle_domain_error


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account code, name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, account)
    except DomainError as exc:
        handle_domain_error(ctx, exc)


def resolve_partner_or_exit(ctx: click.Context, db, partner: str | None) -> int | None:
    """Resolve a partner code to its ID; None passes through."""
    if partner is None:
        return None
    found = PartnerService(db).get_partner_by_code(partner)
    if found is None:
        click.echo(f"Error: Partner '{partner}' not found", err=True)
        ctx.exit(1)
    return found.id
