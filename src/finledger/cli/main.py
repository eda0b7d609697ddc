"""Main CLI entry point."""

import logging

import click
from finledger.config import LedgerSettings
from finledger.database.factories import create_sqlite_database
from finledger.domain.errors import ConfigurationError

# Import and register all commands at module level
from finledger.cli.commands import (
    add,
    alias,
    channel,
    import_cmd,
    report,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FINLEDGER_DB_PATH environment variable)",
    envvar="FINLEDGER_DB_PATH",
)
@click.option(
    "--timezone",
    help="Ledger time zone for calendar dates (default: Asia/Seoul)",
    envvar="FINLEDGER_TIMEZONE",
)
@click.option("-v", "--verbose", count=True, help="Show warnings (-v), progress (-vv) or debug output (-vvv)")
@click.pass_context
def cli(ctx, db_path: str | None, timezone: str | None, verbose: int):
    """Finledger - Personal ledger reporting.

    Import transactions from your bank accounts, cards and wallets, then
    produce balance sheets, cash flow statements, income source summaries
    and installment schedules.
    """
    ctx.ensure_object(dict)

    level = logging.ERROR
    if verbose == 1:
        level = logging.WARNING
    elif verbose == 2:
        level = logging.INFO
    elif verbose >= 3:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            ctx.obj["settings"] = LedgerSettings.from_env(timezone=timezone)
        except ConfigurationError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
channel.register_commands(cli)
add.register_commands(cli)
import_cmd.register_commands(cli)
transaction.register_commands(cli)
alias.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
