"""Income alias commands."""

import click
from finledger.cli.error_handling import handle_domain_error
from finledger.domain.alias import IncomeAliasService
from finledger.domain.errors import DomainError


@click.group()
def alias_group():
    """Manage income source aliases.

    Deposits are attributed to the source whose pattern is the longest one
    found in the deposit's description. Among equally long patterns, the one
    added first wins.
    """
    pass


@alias_group.command("add")
@click.argument("source_name", metavar="SOURCE")
@click.argument("pattern", metavar="PATTERN")
@click.pass_context
def add_alias(ctx, source_name: str, pattern: str):
    """Map deposits containing PATTERN to SOURCE.

    Examples:
        finledger alias add "이랜서" "이랜서"
        finledger alias add "내부 이체" "내계좌"
    """
    service = IncomeAliasService(ctx.obj["db"])
    try:
        alias_id = service.add_alias(source_name=source_name, pattern=pattern)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added alias {alias_id}: '{pattern}' -> {source_name}")


@alias_group.command("list")
@click.pass_context
def list_aliases(ctx):
    """List aliases in table order."""
    service = IncomeAliasService(ctx.obj["db"])
    aliases = service.list_aliases()
    if not aliases:
        click.echo("No income aliases found.")
        return

    click.echo("\nIncome aliases:")
    click.echo("-" * 60)
    for alias in aliases:
        click.echo(f"ID: {alias.id:3d} | {alias.pattern:24s} -> {alias.source_name}")


@alias_group.command("remove")
@click.argument("alias_id", type=int)
@click.pass_context
def remove_alias(ctx, alias_id: int):
    """Remove an alias."""
    service = IncomeAliasService(ctx.obj["db"])
    try:
        service.remove_alias(alias_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Removed alias {alias_id}")


def register_commands(cli: click.Group) -> None:
    """Register alias commands with main CLI."""
    cli.add_command(alias_group, name="alias")
