"""Report commands."""

import click
from finledger.cli.date_filters import date_filter_options, resolve_cli_date_range
from finledger.cli.error_handling import handle_domain_error
from finledger.domain.errors import DomainError, InvariantViolationError
from finledger.domain.reporting import ReportingService
from finledger.utils.date_parser import parse_date


@click.group()
def report_group():
    """Financial statements and ledger checks."""
    pass


def _service(ctx) -> ReportingService:
    return ReportingService(ctx.obj["db"], ctx.obj["settings"])


def _date_range(ctx, start_date, end_date, period):
    return resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)


def _echo_warnings(warnings) -> None:
    if warnings:
        click.echo(f"\n{len(warnings)} data quality warning(s); run with -v for details", err=True)


@report_group.command("balance-sheet")
@click.option(
    "--granularity",
    type=click.Choice(["month", "quarter", "half-year"]),
    default="month",
    show_default=True,
)
@click.option("--channels", "show_channels", is_flag=True, help="Show per-channel period-end balances")
@date_filter_options
@click.pass_context
def balance_sheet(ctx, granularity: str, show_channels: bool, start_date, end_date, period):
    """Assets, liabilities and equity at each period end."""
    start, end = _date_range(ctx, start_date, end_date, period)
    try:
        report = _service(ctx).balance_sheet(granularity, start_date=start, end_date=end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not report.rows:
        click.echo("No dated transactions found.")
        return

    click.echo(f"\nBalance sheet ({granularity}):")
    click.echo("-" * 80)
    click.echo(f"{'Period':<25} {'Assets':>17} {'Liabilities':>17} {'Equity':>17}")
    click.echo("-" * 80)
    for row in report.rows:
        label = f"{row.period_start} ~ {row.period_end}"
        click.echo(f"{label:<25} {row.assets:>17,.2f} {row.liabilities:>17,.2f} {row.equity:>17,.2f}")

    if show_channels:
        click.echo("\nPer channel:")
        click.echo("-" * 80)
        for channel_row in report.channels:
            click.echo(
                f"{str(channel_row.period_end):<12} {channel_row.channel_name[:30]:<30} "
                f"{channel_row.reporting_role.value:<10} {channel_row.closing_balance:>17,.2f}"
            )
    _echo_warnings(report.warnings)


@report_group.command("cash-flow")
@click.option("--breakdown", is_flag=True, help="List the external inflows of each month")
@date_filter_options
@click.pass_context
def cash_flow(ctx, breakdown: bool, start_date, end_date, period):
    """Monthly cash flow excluding transfers between your own accounts."""
    start, end = _date_range(ctx, start_date, end_date, period)
    try:
        report = _service(ctx).cash_flow(start_date=start, end_date=end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not report.rows:
        click.echo("No dated transactions found.")
        return

    click.echo("\nCash flow (monthly):")
    click.echo("-" * 112)
    click.echo(
        f"{'Month':<8} {'Operating':>16} {'Investing':>16} {'Financing':>16} "
        f"{'Inflow':>16} {'Outflow':>16} {'Net':>16}"
    )
    click.echo("-" * 112)
    for row in report.rows:
        click.echo(
            f"{row.period_start:%Y-%m}  {row.operating:>16,.2f} {row.investing:>16,.2f} "
            f"{row.financing:>16,.2f} {row.total_inflow:>16,.2f} {row.total_outflow:>16,.2f} "
            f"{row.net:>16,.2f}"
        )
        if breakdown:
            for entry in report.breakdown.get(row.period_start, ()):
                click.echo(
                    f"    {entry.occurred_at:%Y-%m-%d %H:%M}  {entry.channel_name[:20]:<20} "
                    f"{entry.amount:>16,.2f}  {entry.description[:30]}"
                )
    _echo_warnings(report.warnings)


@report_group.command("income")
@date_filter_options
@click.pass_context
def income(ctx, start_date, end_date, period):
    """Deposits per income source and month."""
    start, end = _date_range(ctx, start_date, end_date, period)
    try:
        report = _service(ctx).income_sources(start_date=start, end_date=end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not report.rows:
        click.echo("No income found.")
        return

    click.echo("\nIncome by source:")
    click.echo("-" * 70)
    click.echo(f"{'Month':<8} {'Source':<30} {'Amount':>18} {'Count':>8}")
    click.echo("-" * 70)
    for row in report.rows:
        click.echo(
            f"{row.period_start:%Y-%m}  {row.source_name[:30]:<30} "
            f"{row.total_amount:>18,.2f} {row.transaction_count:>8d}"
        )
    _echo_warnings(report.warnings)


@report_group.command("installments")
@click.option("--as-of", help="Evaluation date (default: today)")
@click.option("--schedule", is_flag=True, help="Show the monthly schedule of each purchase")
@click.pass_context
def installments(ctx, as_of: str | None, schedule: bool):
    """Remaining balance of card installment purchases."""
    as_of_date = None
    if as_of:
        try:
            as_of_date = parse_date(as_of)
        except ValueError as e:
            click.echo(f"Error: Invalid date: {e}", err=True)
            ctx.exit(1)

    try:
        report = _service(ctx).installments(as_of=as_of_date, with_schedule=schedule)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not report.plans:
        click.echo("No installment purchases found.")
        return

    click.echo(f"\nInstallment purchases as of {report.as_of}:")
    click.echo("-" * 110)
    click.echo(
        f"{'ID':<6} {'Purchased':<11} {'Channel':<16} {'Total':>14} {'Months':>6} "
        f"{'Monthly':>13} {'Paid':>5} {'Left':>5} {'Remaining':>14} {'Ends':<11}"
    )
    click.echo("-" * 110)
    for plan in report.plans:
        click.echo(
            f"{plan.transaction_id:<6} {str(plan.purchase_date):<11} {plan.channel_name[:16]:<16} "
            f"{plan.total_amount:>14,.2f} {plan.installment_months:>6d} {plan.monthly_amount:>13,.2f} "
            f"{plan.paid_months:>5d} {plan.remaining_months:>5d} {plan.remaining_principal:>14,.2f} "
            f"{str(plan.projected_end_date):<11}"
        )
        for entry in plan.schedule:
            click.echo(
                f"    #{entry.installment_number:<3d} {entry.period_start:%Y-%m}  "
                f"{entry.amount:>13,.2f}  {entry.status.value}"
            )
    _echo_warnings(report.warnings)


@report_group.command("transfers")
@click.pass_context
def transfers(ctx):
    """Matched transfers between your own asset channels."""
    service = _service(ctx)
    try:
        analysis = service.analyze()
    except DomainError as e:
        handle_domain_error(ctx, e)

    pairs = service.transfers(analysis=analysis)
    if not pairs:
        click.echo("No internal transfers found.")
        return

    click.echo(f"\n{len(pairs)} internal transfer(s):")
    click.echo("-" * 80)
    for pair in pairs:
        out_name = analysis.channels[pair.out_channel_id].name
        in_name = analysis.channels[pair.in_channel_id].name
        click.echo(
            f"{pair.out_id:>6} -> {pair.in_id:<6} {out_name[:20]:<20} -> {in_name[:20]:<20} "
            f"{pair.amount:>14,.2f}  ({pair.time_gap_seconds}s)"
        )


@report_group.command("verify")
@click.pass_context
def verify(ctx):
    """Recompute all statements and check that they reconcile."""
    try:
        result = _service(ctx).verify()
    except InvariantViolationError as e:
        click.echo(f"Error: Reports do not reconcile: {e}", err=True)
        ctx.exit(2)
    except DomainError as e:
        handle_domain_error(ctx, e)

    for granularity, count in result["periods"].items():
        click.echo(f"Balance sheet ({granularity}): {count} period(s) balance")
    click.echo(f"Cash flow: {result['months']} month(s) reconcile with asset balances")
    click.echo(f"Internal transfers: {result['transfer_pairs']} pair(s)")
    _echo_warnings(result["warnings"])
    click.echo("OK")


def register_commands(cli: click.Group) -> None:
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
