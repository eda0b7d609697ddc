"""CLI helpers for channel resolution."""

from __future__ import annotations

import click
from finledger.domain.channel import ChannelService
from finledger.domain.entities import Channel
from finledger.domain.errors import NotFoundError


def resolve_channel_or_exit(
    ctx: click.Context, channel_service: ChannelService, channel: str | int
) -> Channel:
    """Resolve channel name or ID, or exit with a CLI error."""
    try:
        return channel_service.resolve_channel(str(channel))
    except NotFoundError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
