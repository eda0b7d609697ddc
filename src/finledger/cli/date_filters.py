"""CLI helpers for date range resolution."""

from datetime import date

import click

from finledger.utils.date_parser import parse_date, parse_period


def date_filter_options(command):
    """Attach --start-date, --end-date and --period to a command."""
    command = click.option(
        "--period",
        help="Ledger period: 2024-03 (month), 2024-Q1 (quarter), 2024-H2 (half-year) or 2024",
    )(command)
    command = click.option("--end-date", help="End date, inclusive (YYYY-MM-DD)")(command)
    command = click.option("--start-date", help="Start date, inclusive (YYYY-MM-DD)")(command)
    return command


def _parse_or_exit(ctx, label: str, parse, value: str):
    try:
        return parse(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period: str | None = None,
) -> tuple[date | None, date | None]:
    """Resolve the CLI date range from --period or explicit dates.

    Either bound may be None, meaning unbounded on that side.
    """
    if period and (start_date or end_date):
        click.echo("Error: --period cannot be combined with --start-date or --end-date.", err=True)
        ctx.exit(1)

    if period:
        return _parse_or_exit(ctx, "period", parse_period, period)

    start = _parse_or_exit(ctx, "start date", parse_date, start_date) if start_date else None
    end = _parse_or_exit(ctx, "end date", parse_date, end_date) if end_date else None

    if start is not None and end is not None and start > end:
        click.echo(f"Error: Start date {start} is after end date {end}", err=True)
        ctx.exit(1)

    return start, end
