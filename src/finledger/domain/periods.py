"""Calendar periods and period aggregation.

Two aggregation modes feed the statements: point sampling of a dense daily
balance series at each period's last day (balance sheet) and window sums of
transaction amounts inside each period (cash flow). Both emit a row for every
requested key and period, reporting zero where there was no activity.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Hashable, Iterable, Iterator, Mapping, Sequence

from dateutil.relativedelta import relativedelta

from finledger.domain.entities import (
    DailyBalance,
    Granularity,
    Period,
    PeriodBalance,
    Transaction,
)

_PERIOD_MONTHS = {
    Granularity.MONTH: 1,
    Granularity.QUARTER: 3,
    Granularity.HALF_YEAR: 6,
}


def month_start(day: date) -> date:
    return day.replace(day=1)


def month_end(day: date) -> date:
    return month_start(day) + relativedelta(months=1) - timedelta(days=1)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month (may be negative)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def period_for(day: date, granularity: Granularity) -> Period:
    """Return the period of the given granularity that contains day.

    Quarters start in January, April, July and October; half-years split
    between June and July.
    """
    length = _PERIOD_MONTHS[granularity]
    first_month = ((day.month - 1) // length) * length + 1
    start = date(day.year, first_month, 1)
    end = start + relativedelta(months=length) - timedelta(days=1)
    return Period(granularity=granularity, start=start, end=end)


def iter_periods(start: date, end: date, granularity: Granularity) -> Iterator[Period]:
    """Yield consecutive periods covering start through end."""
    period = period_for(start, granularity)
    while period.start <= end:
        yield period
        period = period_for(period.end + timedelta(days=1), granularity)


def sample_period_balances(
    series: Mapping[int, Sequence[DailyBalance]],
    periods: Sequence[Period],
) -> list[PeriodBalance]:
    """Point-sample each channel's balance on the last day of each period.

    For a trailing period that extends past the observed calendar, the last
    observed day inside the period is used. Series must be dense and sorted.
    """
    result = []
    for channel_id in sorted(series):
        points = series[channel_id]
        by_day = {point.day: point for point in points}
        first_day = points[0].day if points else None
        last_day = points[-1].day if points else None
        for period in periods:
            closing = Decimal("0.00")
            if points and period.end >= first_day:
                sample_day = min(period.end, last_day)
                closing = by_day[sample_day].closing_balance
            result.append(
                PeriodBalance(channel_id=channel_id, period=period, closing_balance=closing)
            )
    return result


def sum_period_amounts(
    transactions: Iterable[Transaction],
    periods: Sequence[Period],
    keys: Iterable[Hashable],
    key_for: Callable[[Transaction], Hashable],
) -> dict[tuple[Hashable, Period], Decimal]:
    """Window-sum transaction amounts per (key, period).

    Every combination of the given keys and periods is present in the
    result; combinations without transactions are zero. Transactions without
    a timestamp, outside every period, or whose key is not listed are skipped.
    """
    keys = list(keys)
    totals: dict[tuple[Hashable, Period], Decimal] = {
        (key, period): Decimal("0.00") for key in keys for period in periods
    }
    if not periods:
        return totals

    granularity = periods[0].granularity
    for txn in transactions:
        if txn.occurred_at is None:
            continue
        period = period_for(txn.occurred_at.date(), granularity)
        slot = (key_for(txn), period)
        if slot in totals:
            totals[slot] += txn.amount
    return totals
