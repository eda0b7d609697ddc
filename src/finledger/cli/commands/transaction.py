"""Transaction management commands."""

import click
from finledger.cli.channel_resolution import resolve_channel_or_exit
from finledger.cli.date_filters import date_filter_options, resolve_cli_date_range
from finledger.domain.channel import ChannelService
from finledger.domain.transaction import TransactionService
from finledger.utils.date_parser import to_local


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("list")
@date_filter_options
@click.option("--channel", help="Channel name or ID")
@click.option("--verbose", "-v", is_flag=True, help="Show all fields including type, memo and record ID")
@click.pass_context
def list_transactions(ctx, start_date: str, end_date: str, channel: str, verbose: bool, period: str):
    """View transactions with optional filters.

    Dates are calendar dates in the ledger time zone. Transactions without a
    timestamp are shown only when no date filter is given.
    """
    db = ctx.obj["db"]
    settings = ctx.obj["settings"]
    service = TransactionService(db)
    channel_service = ChannelService(db)

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period=period,
    )

    channel_id = None
    if channel:
        channel_id = resolve_channel_or_exit(ctx, channel_service, channel).id

    transactions = service.list_transactions(
        start_date=start, end_date=end, channel_id=channel_id, zone=settings.tzinfo
    )

    if not transactions:
        click.echo("No transactions found.")
        return

    channels = {ch.id: ch.name for ch in channel_service.list_channels()}

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    if verbose:
        click.echo("=" * 100)
        for txn in transactions:
            click.echo(f"\nTransaction ID: {txn.id}")
            click.echo(f"  Time: {_format_time(txn, settings)}")
            click.echo(f"  Amount: {txn.amount:,.2f}")
            click.echo(f"  Channel: {channels.get(txn.channel_id, 'Unknown')} (ID: {txn.channel_id})")
            if txn.description:
                click.echo(f"  Description: {txn.description}")
            if txn.transaction_type:
                click.echo(f"  Type: {txn.transaction_type}")
            if txn.installment_months:
                click.echo(f"  Installments: {txn.installment_months}")
            if txn.record_id:
                click.echo(f"  Record ID: {txn.record_id}")
            if txn.memo:
                click.echo(f"  Memo: {txn.memo}")
            click.echo("-" * 100)
    else:
        click.echo("-" * 100)
        click.echo(f"{'ID':<6} {'Time':<17} {'Amount':>14}  {'Channel':<20} {'Description':<30}")
        click.echo("-" * 100)
        for txn in transactions:
            channel_name = channels.get(txn.channel_id, "Unknown")[:20]
            description = (txn.description or "")[:30]
            click.echo(
                f"{txn.id:<6} {_format_time(txn, settings):<17} {txn.amount:>14,.2f}  "
                f"{channel_name:<20} {description:<30}"
            )

    total_out = sum(txn.amount for txn in transactions if txn.amount < 0)
    total_in = sum(txn.amount for txn in transactions if txn.amount > 0)
    click.echo("-" * 100)
    click.echo(
        f"{'TOTAL':<6} Outflow: {abs(total_out):,.2f} | Inflow: {total_in:,.2f} | "
        f"Count: {len(transactions)}"
    )


@transaction_group.command("normalize-signs")
@click.pass_context
def normalize_signs(ctx):
    """Correct stored amount signs from '[+]'/'[-]' type markers.

    Running it again changes nothing.
    """
    service = TransactionService(ctx.obj["db"])
    corrected = service.normalize_signs()
    click.echo(f"Corrected {corrected} transaction(s)")


def _format_time(txn, settings) -> str:
    if txn.occurred_at is None:
        return "(no timestamp)"
    return to_local(txn.occurred_at, settings.tzinfo).strftime("%Y-%m-%d %H:%M")


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
