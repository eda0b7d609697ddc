"""Dense daily running balances per channel."""

from collections import defaultdict
from dataclasses import replace
from datetime import date, timedelta, tzinfo
from decimal import Decimal
from typing import Iterable, Iterator, Mapping, Optional

from finledger.domain.entities import (
    ChannelClassification,
    DailyBalance,
    ReportingRole,
    Transaction,
)
from finledger.utils.date_parser import to_local

BALANCE_ROLES = (ReportingRole.ASSET, ReportingRole.LIABILITY)


def localize_transactions(
    transactions: Iterable[Transaction], zone: tzinfo
) -> list[Transaction]:
    """Express every timestamp in the ledger zone.

    Naive timestamps are read as already being ledger-local.
    """
    result = []
    for txn in transactions:
        if txn.occurred_at is None:
            result.append(txn)
        else:
            result.append(replace(txn, occurred_at=to_local(txn.occurred_at, zone)))
    return result


def calendar_bounds(transactions: Iterable[Transaction]) -> Optional[tuple[date, date]]:
    """First and last calendar date across every dated transaction."""
    days = [txn.occurred_at.date() for txn in transactions if txn.occurred_at is not None]
    if not days:
        return None
    return min(days), max(days)


def iter_calendar(start: date, end: date) -> Iterator[date]:
    """Yield every day from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def daily_deltas(transactions: Iterable[Transaction]) -> dict[tuple[int, date], Decimal]:
    """Sum of amounts per (channel, calendar date) for dated transactions."""
    deltas: dict[tuple[int, date], Decimal] = defaultdict(Decimal)
    for txn in transactions:
        if txn.occurred_at is None or txn.channel_id is None:
            continue
        deltas[(txn.channel_id, txn.occurred_at.date())] += txn.amount
    return dict(deltas)


def build_daily_balances(
    transactions: Iterable[Transaction],
    classifications: Mapping[int, ChannelClassification],
    bounds: Optional[tuple[date, date]] = None,
) -> dict[int, list[DailyBalance]]:
    """Build a gap-free cumulative balance series for each balance-sheet channel.

    Every asset and liability channel gets one point per day from the ledger's
    first to last transaction date, whether or not it had activity that day.
    Balances start from zero at the beginning of the observed history.

    Args:
        transactions: Localized transactions
        classifications: Channel classifications keyed by channel ID
        bounds: Calendar range; derived from transactions when omitted

    Returns:
        Series per channel ID in ascending date order
    """
    transactions = list(transactions)
    if bounds is None:
        bounds = calendar_bounds(transactions)
    if bounds is None:
        return {}

    deltas = daily_deltas(transactions)
    channel_ids = sorted(
        channel_id
        for channel_id, classification in classifications.items()
        if classification.role in BALANCE_ROLES
    )
    calendar = list(iter_calendar(*bounds))

    series: dict[int, list[DailyBalance]] = {}
    for channel_id in channel_ids:
        running = Decimal("0.00")
        points = []
        for day in calendar:
            delta = deltas.get((channel_id, day), Decimal("0.00"))
            running += delta
            points.append(
                DailyBalance(
                    channel_id=channel_id,
                    day=day,
                    delta=delta,
                    closing_balance=running,
                )
            )
        series[channel_id] = points
    return series
