"""Add transaction command."""

import click
from finledger.cli.channel_resolution import resolve_channel_or_exit
from finledger.cli.error_handling import handle_domain_error
from finledger.domain.channel import ChannelService
from finledger.domain.errors import DomainError
from finledger.domain.transaction import TransactionService
from finledger.utils.amount_parser import parse_amount
from finledger.utils.date_parser import parse_timestamp


@click.command("add")
@click.option("--channel", required=True, help="Channel name or ID")
@click.option(
    "--at",
    "occurred_at",
    required=True,
    help="Timestamp (e.g. '2024-01-15 10:00' in the ledger zone, or ISO with offset)",
)
@click.option(
    "--amount", required=True, help="Signed amount (positive = inflow, e.g. -15000)"
)
@click.option("--type", "transaction_type", default="", help="Transaction type text (e.g. '[-] 결제')")
@click.option("--description", default="", help="Transaction description")
@click.option("--installments", type=int, help="Installment month count (card purchases)")
@click.option("--counter-channel", help="Counterparty channel name or ID")
@click.option("--record-id", help="Source record ID (unique per channel)")
@click.pass_context
def add_transaction(
    ctx,
    channel: str,
    occurred_at: str,
    amount: str,
    transaction_type: str,
    description: str,
    installments: int | None,
    counter_channel: str | None,
    record_id: str | None,
):
    """Add a transaction manually.

    Examples:
        finledger add --channel "토스뱅크 통장" --at "2024-01-15 10:00" --amount -50000
        finledger add --channel 2 --at "2024-01-15 12:30" --amount -120000 --installments 4
    """
    db = ctx.obj["db"]
    settings = ctx.obj["settings"]
    transaction_service = TransactionService(db)
    channel_service = ChannelService(db)

    channel_obj = resolve_channel_or_exit(ctx, channel_service, channel)
    counter_channel_id = None
    if counter_channel is not None:
        counter_channel_id = resolve_channel_or_exit(ctx, channel_service, counter_channel).id

    try:
        timestamp = parse_timestamp(occurred_at, default_tz=settings.tzinfo)
    except ValueError as e:
        click.echo(f"Error: Invalid timestamp: {e}", err=True)
        ctx.exit(1)

    try:
        txn_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        transaction_id = transaction_service.create_transaction(
            channel_id=channel_obj.id,
            occurred_at=timestamp,
            amount=txn_amount,
            description=description,
            transaction_type=transaction_type,
            counter_channel_id=counter_channel_id,
            record_id=record_id,
            installment_months=installments,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    stored = transaction_service.get_transaction(transaction_id)
    click.echo(f"Added transaction {transaction_id} to '{channel_obj.name}'")
    click.echo(f"Amount: {stored.amount:,.2f}")
    if stored.amount != txn_amount:
        click.echo("Sign corrected to match the transaction type marker")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
