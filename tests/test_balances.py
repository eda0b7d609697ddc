"""Tests for daily balance series and period aggregation."""

from datetime import date, datetime, timezone
from decimal import Decimal

from finledger.domain.balances import (
    build_daily_balances,
    calendar_bounds,
    localize_transactions,
)
from finledger.domain.channel_roles import classify_channels
from finledger.domain.entities import Granularity, Period
from finledger.domain.periods import (
    iter_periods,
    month_end,
    months_between,
    period_for,
    sample_period_balances,
    sum_period_amounts,
)

from conftest import SEOUL, make_channel, make_txn, seoul

CHANNELS = [
    make_channel(1, "통장"),
    make_channel(2, "현대카드"),
    make_channel(3, "쿠팡"),
    make_channel(4, "빈 통장"),
]
ROLES = classify_channels(CHANNELS)


def test_series_is_dense_across_whole_ledger_range():
    txns = [
        make_txn(1, 1, seoul(2024, 1, 30), "1000"),
        make_txn(2, 2, seoul(2024, 2, 2), "-300"),
    ]
    series = build_daily_balances(txns, ROLES)

    # Asset and liability channels only, including the idle one
    assert set(series) == {1, 2, 4}
    for points in series.values():
        assert [p.day for p in points] == [
            date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 2)
        ]

    assert [p.closing_balance for p in series[1]] == [Decimal("1000.00")] * 4
    assert [p.closing_balance for p in series[2]] == [
        Decimal("0.00"), Decimal("0.00"), Decimal("0.00"), Decimal("-300.00")
    ]
    assert all(p.closing_balance == 0 for p in series[4])


def test_closing_balance_is_running_sum():
    txns = [
        make_txn(1, 1, seoul(2024, 1, 1, 9), "1000"),
        make_txn(2, 1, seoul(2024, 1, 1, 18), "-250"),
        make_txn(3, 1, seoul(2024, 1, 3), "500"),
    ]
    series = build_daily_balances(txns, ROLES)[1]
    assert [p.delta for p in series] == [Decimal("750.00"), Decimal("0.00"), Decimal("500.00")]
    assert [p.closing_balance for p in series] == [
        Decimal("750.00"), Decimal("750.00"), Decimal("1250.00")
    ]


def test_undated_transactions_are_excluded():
    txns = [
        make_txn(1, 1, seoul(2024, 1, 1), "1000"),
        make_txn(2, 1, None, "999999"),
    ]
    series = build_daily_balances(txns, ROLES)[1]
    assert series[-1].closing_balance == Decimal("1000.00")


def test_empty_ledger_has_no_series():
    assert build_daily_balances([], ROLES) == {}
    assert calendar_bounds([]) is None


def test_localize_moves_late_utc_into_next_local_day():
    txn = make_txn(1, 1, datetime(2024, 1, 31, 16, 0, tzinfo=timezone.utc), "1000")
    (local,) = localize_transactions([txn], SEOUL)
    assert local.occurred_at.date() == date(2024, 2, 1)


def test_localize_treats_naive_as_local():
    txn = make_txn(1, 1, datetime(2024, 1, 31, 23, 0), "1000")
    (local,) = localize_transactions([txn], SEOUL)
    assert local.occurred_at.date() == date(2024, 1, 31)
    assert local.occurred_at.tzinfo is not None


def test_period_boundaries():
    assert period_for(date(2024, 5, 17), Granularity.MONTH) == Period(
        Granularity.MONTH, date(2024, 5, 1), date(2024, 5, 31)
    )
    assert period_for(date(2024, 5, 17), Granularity.QUARTER) == Period(
        Granularity.QUARTER, date(2024, 4, 1), date(2024, 6, 30)
    )
    assert period_for(date(2024, 6, 30), Granularity.HALF_YEAR).end == date(2024, 6, 30)
    assert period_for(date(2024, 7, 1), Granularity.HALF_YEAR).start == date(2024, 7, 1)
    assert period_for(date(2024, 12, 31), Granularity.HALF_YEAR).end == date(2024, 12, 31)


def test_month_helpers():
    assert month_end(date(2024, 2, 10)) == date(2024, 2, 29)
    assert months_between(date(2024, 1, 1), date(2024, 3, 1)) == 2
    assert months_between(date(2023, 11, 1), date(2024, 2, 15)) == 3


def test_iter_periods_covers_range():
    quarters = list(iter_periods(date(2024, 2, 15), date(2024, 8, 1), Granularity.QUARTER))
    assert [q.start for q in quarters] == [date(2024, 1, 1), date(2024, 4, 1), date(2024, 7, 1)]


def test_point_sample_uses_period_end_or_last_observed_day():
    txns = [
        make_txn(1, 1, seoul(2024, 1, 10), "1000"),
        make_txn(2, 1, seoul(2024, 2, 20), "500"),
    ]
    series = build_daily_balances(txns, ROLES)
    months = list(iter_periods(date(2024, 1, 10), date(2024, 2, 20), Granularity.MONTH))
    balances = {
        (b.channel_id, b.period.start): b.closing_balance
        for b in sample_period_balances(series, months)
    }

    assert balances[(1, date(2024, 1, 1))] == Decimal("1000.00")
    assert balances[(1, date(2024, 2, 1))] == Decimal("1500.00")
    # Idle channels still get a row per period
    assert balances[(4, date(2024, 1, 1))] == Decimal("0.00")
    assert balances[(4, date(2024, 2, 1))] == Decimal("0.00")


def test_window_sum_reports_zero_rows():
    months = list(iter_periods(date(2024, 1, 1), date(2024, 3, 31), Granularity.MONTH))
    txns = [
        make_txn(1, 1, seoul(2024, 1, 5), "100"),
        make_txn(2, 1, seoul(2024, 3, 5), "-40"),
        make_txn(3, 1, None, "7"),
    ]
    totals = sum_period_amounts(txns, months, keys=["a", "b"], key_for=lambda t: "a")

    assert len(totals) == 6
    assert totals[("a", months[0])] == Decimal("100.00")
    assert totals[("a", months[1])] == Decimal("0.00")
    assert totals[("a", months[2])] == Decimal("-40.00")
    assert totals[("b", months[0])] == Decimal("0.00")
