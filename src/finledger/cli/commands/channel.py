"""Channel management commands."""

import click
from finledger.cli.channel_resolution import resolve_channel_or_exit
from finledger.cli.error_handling import handle_domain_error
from finledger.domain.channel import ChannelService
from finledger.domain.channel_roles import classify_channel
from finledger.domain.entities import CashFlowActivity, ChannelType, ReportingRole
from finledger.domain.errors import DomainError


@click.group()
def channel_group():
    """Manage channels (bank accounts, cards, wallets)."""
    pass


@channel_group.command("create")
@click.argument("name", metavar="CHANNEL_NAME")
@click.option(
    "--type",
    "channel_type",
    type=click.Choice([t.value for t in ChannelType]),
    default=ChannelType.BANK.value,
    show_default=True,
    help="Declared channel type",
)
@click.option("--bank", help="Issuing institution")
@click.pass_context
def create_channel(ctx, name: str, channel_type: str, bank: str | None):
    """Create a new channel.

    Examples:
        finledger channel create "토스뱅크 통장"
        finledger channel create "현대카드" --type card --bank "현대카드"
    """
    db = ctx.obj["db"]
    service = ChannelService(db)

    try:
        channel_id = service.create_channel(name=name, channel_type=channel_type, bank=bank)
    except DomainError as e:
        handle_domain_error(ctx, e)
    classification = classify_channel(service.get_channel(channel_id))
    click.echo(f"Created channel '{name}' (ID: {channel_id})")
    click.echo(
        f"Reporting role: {classification.role.value}, activity: {classification.activity.value}"
    )


@channel_group.command("list")
@click.pass_context
def list_channels(ctx):
    """List all channels with their reporting role and activity."""
    db = ctx.obj["db"]
    service = ChannelService(db)

    channels = service.list_channels()
    if not channels:
        click.echo("No channels found.")
        return

    click.echo("\nChannels:")
    click.echo("-" * 80)
    for ch in channels:
        classification = classify_channel(ch)
        click.echo(
            f"ID: {ch.id:3d} | {ch.name:24s} | {ch.channel_type.value:10s} | "
            f"{classification.role.value:11s} | {classification.activity.value}"
        )


@channel_group.command("set-role")
@click.argument("channel", metavar="CHANNEL")
@click.option(
    "--role",
    type=click.Choice([r.value for r in ReportingRole]),
    help="Reporting role override",
)
@click.option(
    "--activity",
    type=click.Choice([a.value for a in CashFlowActivity]),
    help="Cash flow activity override",
)
@click.option("--clear", is_flag=True, help="Remove existing overrides (back to the naming heuristic)")
@click.pass_context
def set_role(ctx, channel: str, role: str | None, activity: str | None, clear: bool):
    """Override a channel's reporting role or cash flow activity.

    CHANNEL can be a channel name or ID.

    Examples:
        finledger channel set-role "증권 계좌" --activity investing
        finledger channel set-role 3 --role liability
        finledger channel set-role 3 --clear
    """
    if role is None and activity is None and not clear:
        click.echo("Error: Specify --role, --activity or --clear", err=True)
        ctx.exit(1)

    db = ctx.obj["db"]
    service = ChannelService(db)
    channel_obj = resolve_channel_or_exit(ctx, service, channel)

    try:
        updated = service.set_classification(
            channel_obj.id, role=role, activity=activity, clear=clear
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    classification = classify_channel(updated)
    click.echo(
        f"Channel '{updated.name}': role {classification.role.value}, "
        f"activity {classification.activity.value}"
    )


def register_commands(cli: click.Group) -> None:
    """Register channel commands with main CLI."""
    cli.add_command(channel_group, name="channel")
