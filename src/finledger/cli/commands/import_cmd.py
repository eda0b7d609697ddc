"""Transaction file import command."""

import click
from finledger.domain.entities import ChannelType
from finledger.domain.errors import DomainError
from finledger.domain.json_import import TransactionImportService


@click.command("import")
@click.argument("json_file", type=click.Path(exists=True))
@click.option("--channel", help="Import into this channel (created if missing) instead of the file's account")
@click.option(
    "--type",
    "channel_type",
    type=click.Choice([t.value for t in ChannelType]),
    help="Type for a channel created by this import",
)
@click.pass_context
def import_json(ctx, json_file: str, channel: str | None, channel_type: str | None):
    """Import transactions from a normalized JSON transaction file.

    Records already imported for the channel are skipped, so re-importing a
    file is safe. Amount signs are corrected from '[+]'/'[-]' type markers.
    """
    db = ctx.obj["db"]
    service = TransactionImportService(db)

    try:
        result = service.import_file(json_file, channel_name=channel, channel_type=channel_type)
    except (DomainError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    click.echo(f"\nImport complete:")
    click.echo(f"  Imported: {result['imported']} transactions")
    click.echo(f"  Skipped: {result['skipped']} duplicates")
    if result["normalized"]:
        click.echo(f"  Sign corrected: {result['normalized']}")
    if result["undated"]:
        click.echo(f"  Without timestamp: {result['undated']} (kept, left out of reports)")
    if result["errors"]:
        click.echo(f"  Errors: {len(result['errors'])}")
        for error in result["errors"]:
            click.echo(f"    {error}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_json)
