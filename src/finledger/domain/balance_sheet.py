"""Balance sheet composition from period-end channel balances."""

from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from finledger.domain.entities import (
    BalanceSheetChannelRow,
    BalanceSheetReport,
    BalanceSheetRow,
    Channel,
    ChannelClassification,
    DataQualityWarning,
    Granularity,
    Period,
    PeriodBalance,
    ReportingRole,
)
from finledger.domain.errors import InvariantViolationError


def compose_balance_sheet(
    granularity: Granularity,
    periods: Sequence[Period],
    period_balances: Iterable[PeriodBalance],
    classifications: Mapping[int, ChannelClassification],
    channels: Mapping[int, Channel],
    warnings: Sequence[DataQualityWarning] = (),
) -> BalanceSheetReport:
    """Compose summary and per-channel balance sheet rows.

    Assets and liabilities are sums of period-end balances over the asset and
    liability channels; equity is assets minus liabilities, computed from the
    same partition for every period.
    """
    assets = {period: Decimal("0.00") for period in periods}
    liabilities = {period: Decimal("0.00") for period in periods}
    channel_rows = []

    for balance in period_balances:
        classification = classifications.get(balance.channel_id)
        if classification is None:
            continue
        if classification.role == ReportingRole.ASSET:
            assets[balance.period] += balance.closing_balance
        elif classification.role == ReportingRole.LIABILITY:
            liabilities[balance.period] += balance.closing_balance
        else:
            continue

        channel = channels.get(balance.channel_id)
        channel_rows.append(
            BalanceSheetChannelRow(
                granularity=granularity,
                period_start=balance.period.start,
                period_end=balance.period.end,
                channel_id=balance.channel_id,
                channel_name=channel.name if channel else "Unknown",
                reporting_role=classification.role,
                closing_balance=balance.closing_balance,
            )
        )

    rows = tuple(
        BalanceSheetRow(
            granularity=granularity,
            period_start=period.start,
            period_end=period.end,
            assets=assets[period],
            liabilities=liabilities[period],
            equity=assets[period] - liabilities[period],
        )
        for period in periods
    )
    channel_rows.sort(key=lambda row: (row.period_start, row.channel_name, row.channel_id))
    return BalanceSheetReport(
        granularity=granularity,
        rows=rows,
        channels=tuple(channel_rows),
        warnings=tuple(warnings),
    )


def verify_balance_sheet(report: BalanceSheetReport) -> None:
    """Check assets - liabilities == equity and that channel rows add up.

    Raises:
        InvariantViolationError: On the first period that does not balance
    """
    for row in report.rows:
        if row.assets - row.liabilities != row.equity:
            raise InvariantViolationError(
                f"Balance sheet {row.granularity.value} {row.period_start}: "
                f"assets {row.assets} - liabilities {row.liabilities} != equity {row.equity}"
            )

        period_channels = [
            channel_row
            for channel_row in report.channels
            if channel_row.period_start == row.period_start
        ]
        channel_assets = sum(
            (c.closing_balance for c in period_channels if c.reporting_role == ReportingRole.ASSET),
            Decimal("0.00"),
        )
        channel_liabilities = sum(
            (c.closing_balance for c in period_channels if c.reporting_role == ReportingRole.LIABILITY),
            Decimal("0.00"),
        )
        if channel_assets != row.assets or channel_liabilities != row.liabilities:
            raise InvariantViolationError(
                f"Balance sheet {row.granularity.value} {row.period_start}: "
                "channel breakdown does not add up to the summary row"
            )
