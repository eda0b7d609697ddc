"""Monthly cash flow statement from external asset transactions."""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Sequence

from finledger.domain.entities import (
    BalanceSheetReport,
    CashFlowActivity,
    CashFlowBreakdownEntry,
    CashFlowReport,
    CashFlowRow,
    Channel,
    ChannelClassification,
    DataQualityWarning,
    Granularity,
    Period,
    Transaction,
)
from finledger.domain.errors import InvariantViolationError
from finledger.domain.periods import sum_period_amounts

INFLOW = "inflow"
OUTFLOW = "outflow"


def compose_cash_flow(
    months: Sequence[Period],
    external_transactions: Iterable[Transaction],
    classifications: Mapping[int, ChannelClassification],
    channels: Mapping[int, Channel],
    warnings: Sequence[DataQualityWarning] = (),
) -> CashFlowReport:
    """Compose one cash flow row per month plus an inflow drill-down.

    Args:
        months: Consecutive monthly periods; every month gets a row
        external_transactions: Localized asset transactions outside matched transfers
        classifications: Channel classifications keyed by channel ID
        channels: Channels keyed by ID, for breakdown display names
        warnings: Data quality warnings to attach

    Returns:
        CashFlowReport
    """
    if any(month.granularity != Granularity.MONTH for month in months):
        raise ValueError("Cash flow is reported per month")

    external_transactions = list(external_transactions)
    by_activity = sum_period_amounts(
        external_transactions,
        months,
        keys=list(CashFlowActivity),
        key_for=lambda txn: classifications[txn.channel_id].activity,
    )
    by_direction = sum_period_amounts(
        external_transactions,
        months,
        keys=[INFLOW, OUTFLOW],
        key_for=lambda txn: INFLOW if txn.amount > 0 else OUTFLOW,
    )

    rows = []
    for month in months:
        operating = by_activity[(CashFlowActivity.OPERATING, month)]
        investing = by_activity[(CashFlowActivity.INVESTING, month)]
        financing = by_activity[(CashFlowActivity.FINANCING, month)]
        rows.append(
            CashFlowRow(
                period_start=month.start,
                period_end=month.end,
                operating=operating,
                investing=investing,
                financing=financing,
                total_inflow=by_direction[(INFLOW, month)],
                total_outflow=by_direction[(OUTFLOW, month)],
                net=operating + investing + financing,
            )
        )

    breakdown: dict[date, list[CashFlowBreakdownEntry]] = defaultdict(list)
    month_starts = {month.start for month in months}
    for txn in sorted(external_transactions, key=lambda t: (t.occurred_at, t.id)):
        if txn.amount <= 0:
            continue
        period_start = txn.occurred_at.date().replace(day=1)
        if period_start not in month_starts:
            continue
        channel = channels.get(txn.channel_id)
        breakdown[period_start].append(
            CashFlowBreakdownEntry(
                period_start=period_start,
                transaction_id=txn.id,
                channel_id=txn.channel_id,
                channel_name=channel.name if channel else "Unknown",
                description=txn.description,
                amount=txn.amount,
                occurred_at=txn.occurred_at,
            )
        )

    return CashFlowReport(
        rows=tuple(rows),
        breakdown={key: tuple(entries) for key, entries in breakdown.items()},
        warnings=tuple(warnings),
    )


def verify_cash_flow(report: CashFlowReport) -> None:
    """Check operating + investing + financing == net == inflow + outflow.

    Raises:
        InvariantViolationError: On the first month that does not add up
    """
    for row in report.rows:
        activities = row.operating + row.investing + row.financing
        if activities != row.net:
            raise InvariantViolationError(
                f"Cash flow {row.period_start}: activities {activities} != net {row.net}"
            )
        directions = row.total_inflow + row.total_outflow
        if directions != row.net:
            raise InvariantViolationError(
                f"Cash flow {row.period_start}: inflow + outflow {directions} != net {row.net}"
            )


def verify_cash_flow_against_balances(
    balance_sheet: BalanceSheetReport,
    cash_flow: CashFlowReport,
    internal_leg_totals: Optional[Mapping[date, Decimal]] = None,
) -> None:
    """Check that each month's asset delta equals its net external cash flow.

    The first month is compared against a zero opening balance. Matched
    transfer legs cancel within a month; internal_leg_totals carries the
    residual for pairs whose legs fall in different months, keyed by month
    start.

    Raises:
        InvariantViolationError: If a month's asset delta and net flow differ
    """
    if balance_sheet.granularity != Granularity.MONTH:
        raise ValueError("Cash flow is compared against the monthly balance sheet")
    internal_leg_totals = internal_leg_totals or {}

    net_by_month = {row.period_start: row.net for row in cash_flow.rows}
    previous_assets = Decimal("0.00")
    for row in balance_sheet.rows:
        delta = row.assets - previous_assets
        previous_assets = row.assets
        net = net_by_month.get(row.period_start)
        if net is None:
            raise InvariantViolationError(
                f"Cash flow has no row for balance sheet month {row.period_start}"
            )
        expected = net + internal_leg_totals.get(row.period_start, Decimal("0.00"))
        if delta != expected:
            raise InvariantViolationError(
                f"Month {row.period_start}: asset change {delta} != net cash flow {expected}"
            )
