"""Tests for balance sheet and cash flow composition."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from finledger.domain.balance_sheet import compose_balance_sheet, verify_balance_sheet
from finledger.domain.balances import build_daily_balances, calendar_bounds
from finledger.domain.cash_flow import (
    compose_cash_flow,
    verify_cash_flow,
    verify_cash_flow_against_balances,
)
from finledger.domain.channel_roles import classify_channels
from finledger.domain.entities import Granularity
from finledger.domain.errors import InvariantViolationError
from finledger.domain.periods import iter_periods, sample_period_balances
from finledger.domain.transfers import external_asset_transactions, match_internal_transfers

from conftest import make_channel, make_txn, seoul

CHANNELS = [
    make_channel(1, "통장"),
    make_channel(2, "저축", cash_flow_activity="investing"),
    make_channel(3, "현대카드"),
    make_channel(4, "쿠팡"),
    make_channel(5, "대출", reporting_role="asset", cash_flow_activity="financing"),
]
CHANNEL_MAP = {c.id: c for c in CHANNELS}
ROLES = classify_channels(CHANNELS)

TXNS = [
    make_txn(1, 1, seoul(2024, 1, 5, 9), "3000000", description="급여"),
    make_txn(2, 3, seoul(2024, 1, 8), "-120000", description="가전"),
    make_txn(3, 1, seoul(2024, 1, 20, 10, 0), "-500000"),
    make_txn(4, 2, seoul(2024, 1, 20, 10, 3), "500000"),
    make_txn(5, 4, seoul(2024, 2, 3), "-45000"),
    make_txn(6, 1, seoul(2024, 2, 25), "-800000", description="월세"),
    make_txn(7, 5, seoul(2024, 3, 2), "1000000", description="대출 실행"),
    make_txn(8, 2, seoul(2024, 3, 15), "12000", description="이자"),
    make_txn(9, 1, None, "77777"),
]


def _balance_sheet(granularity):
    bounds = calendar_bounds(TXNS)
    periods = list(iter_periods(*bounds, granularity))
    series = build_daily_balances(TXNS, ROLES, bounds)
    balances = sample_period_balances(series, periods)
    return compose_balance_sheet(granularity, periods, balances, ROLES, CHANNEL_MAP)


def _cash_flow():
    bounds = calendar_bounds(TXNS)
    months = list(iter_periods(*bounds, Granularity.MONTH))
    pairs = match_internal_transfers(TXNS, ROLES)
    external = external_asset_transactions(TXNS, ROLES, pairs)
    return compose_cash_flow(months, external, ROLES, CHANNEL_MAP)


@pytest.mark.parametrize("granularity", list(Granularity))
def test_equity_identity_holds_for_every_period(granularity):
    report = _balance_sheet(granularity)
    assert report.rows
    for row in report.rows:
        assert row.assets - row.liabilities == row.equity
    verify_balance_sheet(report)


def test_monthly_balance_sheet_values():
    report = _balance_sheet(Granularity.MONTH)
    by_month = {row.period_start: row for row in report.rows}

    jan = by_month[date(2024, 1, 1)]
    assert jan.assets == Decimal("3000000.00")
    assert jan.liabilities == Decimal("-120000.00")
    assert jan.equity == Decimal("3120000.00")

    feb = by_month[date(2024, 2, 1)]
    # Off-balance marketplace spending does not touch the totals
    assert feb.assets == Decimal("2200000.00")

    mar = by_month[date(2024, 3, 1)]
    assert mar.assets == Decimal("3212000.00")
    assert mar.period_end == date(2024, 3, 31)


def test_channel_breakdown_excludes_off_balance():
    report = _balance_sheet(Granularity.QUARTER)
    channel_ids = {row.channel_id for row in report.channels}
    assert channel_ids == {1, 2, 3, 5}


def test_half_year_single_row():
    report = _balance_sheet(Granularity.HALF_YEAR)
    assert len(report.rows) == 1
    assert report.rows[0].period_end == date(2024, 6, 30)
    assert report.rows[0].assets == Decimal("3212000.00")


def test_verify_balance_sheet_detects_broken_identity():
    report = _balance_sheet(Granularity.MONTH)
    broken_row = replace(report.rows[0], equity=report.rows[0].equity + 1)
    broken = replace(report, rows=(broken_row,) + report.rows[1:])
    with pytest.raises(InvariantViolationError):
        verify_balance_sheet(broken)


def test_cash_flow_excludes_matched_transfers():
    report = _cash_flow()
    jan = report.rows[0]
    assert jan.operating == Decimal("3000000.00")
    assert jan.investing == Decimal("0.00")
    assert jan.total_inflow == Decimal("3000000.00")
    assert jan.total_outflow == Decimal("0.00")
    assert jan.net == Decimal("3000000.00")


def test_cash_flow_activities():
    report = _cash_flow()
    mar = report.rows[2]
    assert mar.financing == Decimal("1000000.00")
    assert mar.investing == Decimal("12000.00")
    assert mar.operating == Decimal("0.00")
    assert mar.net == Decimal("1012000.00")


@pytest.mark.parametrize("month_index", [0, 1, 2])
def test_cash_flow_row_identities(month_index):
    row = _cash_flow().rows[month_index]
    assert row.operating + row.investing + row.financing == row.net
    assert row.total_inflow + row.total_outflow == row.net


def test_cash_flow_matches_asset_balance_changes():
    balance_sheet = _balance_sheet(Granularity.MONTH)
    cash_flow = _cash_flow()
    verify_cash_flow(cash_flow)
    verify_cash_flow_against_balances(balance_sheet, cash_flow)

    previous = Decimal("0.00")
    for bs_row, cf_row in zip(balance_sheet.rows, cash_flow.rows):
        assert bs_row.assets - previous == cf_row.net
        previous = bs_row.assets


def test_breakdown_lists_external_inflows_only():
    report = _cash_flow()
    jan = report.breakdown[date(2024, 1, 1)]
    assert [entry.transaction_id for entry in jan] == [1]
    assert jan[0].channel_name == "통장"
    assert date(2024, 2, 1) not in report.breakdown
    assert [e.transaction_id for e in report.breakdown[date(2024, 3, 1)]] == [7, 8]


def test_month_without_activity_still_has_row():
    txns = [
        make_txn(1, 1, seoul(2024, 1, 5), "100"),
        make_txn(2, 1, seoul(2024, 3, 5), "100"),
    ]
    months = list(iter_periods(date(2024, 1, 5), date(2024, 3, 5), Granularity.MONTH))
    report = compose_cash_flow(months, txns, ROLES, CHANNEL_MAP)
    assert [row.period_start for row in report.rows] == [
        date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)
    ]
    assert report.rows[1].net == Decimal("0.00")


def test_straddling_transfer_needs_leg_residual():
    txns = [
        make_txn(1, 1, seoul(2024, 1, 31, 23, 55), "-1000"),
        make_txn(2, 2, seoul(2024, 2, 1, 0, 5), "1000"),
    ]
    bounds = calendar_bounds(txns)
    months = list(iter_periods(*bounds, Granularity.MONTH))
    series = build_daily_balances(txns, ROLES, bounds)
    balance_sheet = compose_balance_sheet(
        Granularity.MONTH, months, sample_period_balances(series, months), ROLES, CHANNEL_MAP
    )
    pairs = match_internal_transfers(txns, ROLES)
    cash_flow = compose_cash_flow(
        months, external_asset_transactions(txns, ROLES, pairs), ROLES, CHANNEL_MAP
    )

    with pytest.raises(InvariantViolationError):
        verify_cash_flow_against_balances(balance_sheet, cash_flow)
    verify_cash_flow_against_balances(
        balance_sheet,
        cash_flow,
        {date(2024, 1, 1): Decimal("-1000.00"), date(2024, 2, 1): Decimal("1000.00")},
    )
