"""Main CLI entry point."""

import click
from chobo.config import load_settings
from chobo.database.factories import create_sqlite_database
from chobo.domain.errors import ValidationError
from chobo.logging_config import setup_logging

# Import and register all commands at module level
from chobo.cli.commands import (
    account,
    init_data,
    period,
    template,
    rule,
    import_cmd,
    journal,
    ledger,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides CHOBO_DB_PATH environment variable)",
    envvar="CHOBO_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    envvar="CHOBO_LOG_LEVEL",
    show_default=True,
    help="Log level for messages written to stderr",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Chobo - double-entry bookkeeping from bank and card statements.

    Import statements from Japanese banks and card companies, review the
    suggested accounts, post balanced journal entries and read cash, bank,
    receivable and payable ledgers.
    """
    ctx.ensure_object(dict)
    setup_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            ctx.obj["settings"] = load_settings()
        except ValidationError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
init_data.register_commands(cli)
account.register_commands(cli)
period.register_commands(cli)
template.register_commands(cli)
rule.register_commands(cli)
import_cmd.register_commands(cli)
journal.register_commands(cli)
ledger.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
