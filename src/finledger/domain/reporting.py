"""Reporting domain service.

Every report call reads one consistent snapshot of the ledger and recomputes
all derived data (classifications, transfer pairs, balances) from it; nothing
derived is stored.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Union

from finledger.config import LedgerSettings
from finledger.database.base import Database
from finledger.domain.balance_sheet import compose_balance_sheet, verify_balance_sheet
from finledger.domain.balances import build_daily_balances, calendar_bounds, localize_transactions
from finledger.domain.cash_flow import (
    compose_cash_flow,
    verify_cash_flow,
    verify_cash_flow_against_balances,
)
from finledger.domain.channel_roles import classify_channels, validate_channel_overrides
from finledger.domain.entities import (
    BalanceSheetReport,
    CashFlowReport,
    Channel,
    ChannelClassification,
    DailyBalance,
    DataQualityWarning,
    Granularity,
    IncomeSourceReport,
    InstallmentReport,
    LedgerSnapshot,
    Transaction,
    TransferPair,
)
from finledger.domain.errors import ValidationError, unknown_choice
from finledger.domain.income import IncomeSourceClassifier
from finledger.domain.installments import build_installment_report
from finledger.domain.periods import iter_periods, month_start, sample_period_balances
from finledger.domain.transfers import external_asset_transactions, match_internal_transfers

logger = logging.getLogger(__name__)


def parse_granularity(value: Union[str, Granularity]) -> Granularity:
    """Parse 'month', 'quarter' or 'half-year' (also 'half_year').

    Raises:
        ValidationError: If value is not a known granularity
    """
    if isinstance(value, Granularity):
        return value
    try:
        return Granularity(str(value).strip().lower().replace("-", "_"))
    except ValueError:
        raise ValidationError(
            unknown_choice("granularity", value, ["month", "quarter", "half-year"])
        )


@dataclass(frozen=True)
class LedgerAnalysis:
    """Derived state shared by every statement of one report run."""

    channels: dict[int, Channel]
    classifications: dict[int, ChannelClassification]
    transactions: list[Transaction]
    transfer_pairs: list[TransferPair]
    external_transactions: list[Transaction]
    bounds: Optional[tuple[date, date]]
    daily_balances: dict[int, list[DailyBalance]]
    warnings: tuple[DataQualityWarning, ...]
    snapshot: LedgerSnapshot

    def internal_leg_totals(self) -> dict[date, Decimal]:
        """Sum of matched transfer leg amounts per month start."""
        by_id = {txn.id: txn for txn in self.transactions}
        totals: dict[date, Decimal] = defaultdict(Decimal)
        for pair in self.transfer_pairs:
            for leg_id in (pair.out_id, pair.in_id):
                leg = by_id[leg_id]
                totals[month_start(leg.occurred_at.date())] += leg.amount
        return dict(totals)


def _overlaps(period_start: date, period_end: date, start: Optional[date], end: Optional[date]) -> bool:
    if start is not None and period_end < start:
        return False
    if end is not None and period_start > end:
        return False
    return True


class ReportingService:
    """Service producing financial statements from the stored ledger."""

    def __init__(self, db: Database, settings: Optional[LedgerSettings] = None):
        """Initialize reporting service.

        Args:
            db: Database instance
            settings: Ledger settings (timezone, transfer window, income source names)
        """
        self.db = db
        self.settings = settings or LedgerSettings()

    def analyze(self) -> LedgerAnalysis:
        """Load a snapshot and derive classifications, transfer pairs and balances.

        Raises:
            ConfigurationError: If a channel carries an unknown role or activity override
        """
        snapshot = self.db.get_ledger_snapshot()
        for channel in snapshot.channels:
            validate_channel_overrides(channel)

        zone = self.settings.tzinfo
        channels = {channel.id: channel for channel in snapshot.channels}
        classifications = classify_channels(snapshot.channels)
        transactions = localize_transactions(snapshot.transactions, zone)

        warnings = list(self._input_warnings(transactions, channels))

        pairs = match_internal_transfers(
            transactions, classifications, self.settings.transfer_window_seconds
        )
        warnings.extend(self._straddle_warnings(transactions, pairs))
        external = external_asset_transactions(transactions, classifications, pairs)

        bounds = calendar_bounds(
            txn for txn in transactions if txn.channel_id in channels
        )
        daily_balances = build_daily_balances(
            [txn for txn in transactions if txn.channel_id in channels],
            classifications,
            bounds,
        )

        for warning in warnings:
            logger.warning("%s: %s", warning.code, warning.message)
        logger.debug(
            "Analyzed %d transactions on %d channels: %d transfer pairs, %d external",
            len(transactions),
            len(channels),
            len(pairs),
            len(external),
        )

        return LedgerAnalysis(
            channels=channels,
            classifications=classifications,
            transactions=transactions,
            transfer_pairs=pairs,
            external_transactions=external,
            bounds=bounds,
            daily_balances=daily_balances,
            warnings=tuple(warnings),
            snapshot=snapshot,
        )

    def balance_sheet(
        self,
        granularity: Union[str, Granularity] = Granularity.MONTH,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        analysis: Optional[LedgerAnalysis] = None,
    ) -> BalanceSheetReport:
        """Compose the balance sheet at the given granularity.

        Args:
            granularity: month, quarter or half-year
            start_date: Optional filter; keeps periods ending on or after it
            end_date: Optional filter; keeps periods starting on or before it
            analysis: Reuse a previous analyze() result instead of reloading

        Returns:
            BalanceSheetReport; assets - liabilities == equity holds for every row
        """
        granularity = parse_granularity(granularity)
        analysis = analysis or self.analyze()
        report = self._compose_balance_sheet(analysis, granularity)
        if start_date is None and end_date is None:
            return report
        return replace(
            report,
            rows=tuple(
                row for row in report.rows
                if _overlaps(row.period_start, row.period_end, start_date, end_date)
            ),
            channels=tuple(
                row for row in report.channels
                if _overlaps(row.period_start, row.period_end, start_date, end_date)
            ),
        )

    def cash_flow(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        analysis: Optional[LedgerAnalysis] = None,
    ) -> CashFlowReport:
        """Compose the monthly cash flow statement from external asset transactions."""
        analysis = analysis or self.analyze()
        report = self._compose_cash_flow(analysis)
        if start_date is None and end_date is None:
            return report
        rows = tuple(
            row for row in report.rows
            if _overlaps(row.period_start, row.period_end, start_date, end_date)
        )
        kept = {row.period_start for row in rows}
        return replace(
            report,
            rows=rows,
            breakdown={key: entries for key, entries in report.breakdown.items() if key in kept},
        )

    def income_sources(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        analysis: Optional[LedgerAnalysis] = None,
    ) -> IncomeSourceReport:
        """Attribute external deposits to income sources per month.

        Raises:
            ConfigurationError: If the alias table is empty or ambiguous
        """
        analysis = analysis or self.analyze()
        classifier = IncomeSourceClassifier(
            analysis.snapshot.income_aliases,
            other_source_name=self.settings.other_source_name,
            internal_source_name=self.settings.internal_source_name,
        )
        deposits = [txn for txn in analysis.external_transactions if txn.amount > 0]
        report = classifier.summarize(deposits, warnings=analysis.warnings)
        if start_date is None and end_date is None:
            return report
        return replace(
            report,
            rows=tuple(
                row for row in report.rows
                if _overlaps(row.period_start, row.period_end, start_date, end_date)
            ),
        )

    def installments(
        self,
        as_of: Optional[date] = None,
        with_schedule: bool = False,
        analysis: Optional[LedgerAnalysis] = None,
    ) -> InstallmentReport:
        """Derive repayment plans for installment purchases on liability channels.

        Args:
            as_of: Evaluation date (default: today in the ledger zone)
            with_schedule: Expand each plan into its monthly schedule
            analysis: Reuse a previous analyze() result instead of reloading
        """
        analysis = analysis or self.analyze()
        if as_of is None:
            as_of = datetime.now(self.settings.tzinfo).date()
        report = build_installment_report(
            analysis.transactions,
            analysis.classifications,
            analysis.channels,
            as_of,
            with_schedule=with_schedule,
        )
        for warning in report.warnings:
            logger.warning("%s: %s", warning.code, warning.message)
        return replace(report, warnings=analysis.warnings + report.warnings)

    def transfers(self, analysis: Optional[LedgerAnalysis] = None) -> list[TransferPair]:
        """Return the matched internal transfer pairs."""
        analysis = analysis or self.analyze()
        return list(analysis.transfer_pairs)

    def verify(self) -> dict[str, Any]:
        """Recompute every statement and check the reporting identities.

        Checks assets - liabilities == equity at every granularity, the cash
        flow row identities, and that each month's asset change equals its net
        cash flow plus any transfer legs whose partner lies in another month.

        Returns:
            Dict with the number of periods checked per granularity, months
            checked, transfer pairs and warnings

        Raises:
            InvariantViolationError: If any identity fails
        """
        analysis = self.analyze()
        periods_checked = {}
        monthly = None
        for granularity in Granularity:
            report = self._compose_balance_sheet(analysis, granularity)
            verify_balance_sheet(report)
            periods_checked[granularity.value] = len(report.rows)
            if granularity == Granularity.MONTH:
                monthly = report

        cash_flow = self._compose_cash_flow(analysis)
        verify_cash_flow(cash_flow)
        verify_cash_flow_against_balances(monthly, cash_flow, analysis.internal_leg_totals())

        logger.info(
            "Verified %d monthly periods and %d transfer pairs",
            len(cash_flow.rows),
            len(analysis.transfer_pairs),
        )
        return {
            "periods": periods_checked,
            "months": len(cash_flow.rows),
            "transfer_pairs": len(analysis.transfer_pairs),
            "warnings": list(analysis.warnings),
        }

    def _compose_balance_sheet(
        self, analysis: LedgerAnalysis, granularity: Granularity
    ) -> BalanceSheetReport:
        periods = list(iter_periods(*analysis.bounds, granularity)) if analysis.bounds else []
        period_balances = sample_period_balances(analysis.daily_balances, periods)
        return compose_balance_sheet(
            granularity,
            periods,
            period_balances,
            analysis.classifications,
            analysis.channels,
            warnings=analysis.warnings,
        )

    def _compose_cash_flow(self, analysis: LedgerAnalysis) -> CashFlowReport:
        months = list(iter_periods(*analysis.bounds, Granularity.MONTH)) if analysis.bounds else []
        return compose_cash_flow(
            months,
            analysis.external_transactions,
            analysis.classifications,
            analysis.channels,
            warnings=analysis.warnings,
        )

    def _input_warnings(self, transactions: list[Transaction], channels: dict[int, Channel]):
        for txn in transactions:
            if txn.channel_id is None:
                yield DataQualityWarning(
                    code="no_channel",
                    message=f"Transaction {txn.id} has no channel and is left out of reports",
                    transaction_id=txn.id,
                )
            elif txn.channel_id not in channels:
                yield DataQualityWarning(
                    code="unknown_channel",
                    message=f"Transaction {txn.id} references unknown channel {txn.channel_id}",
                    transaction_id=txn.id,
                )
            elif txn.occurred_at is None:
                yield DataQualityWarning(
                    code="undated",
                    message=f"Transaction {txn.id} has no timestamp and is left out of period reports",
                    transaction_id=txn.id,
                )

    def _straddle_warnings(self, transactions: list[Transaction], pairs: list[TransferPair]):
        by_id = {txn.id: txn for txn in transactions}
        for pair in pairs:
            out_month = month_start(by_id[pair.out_id].occurred_at.date())
            in_month = month_start(by_id[pair.in_id].occurred_at.date())
            if out_month != in_month:
                yield DataQualityWarning(
                    code="transfer_straddles_period",
                    message=(
                        f"Transfer {pair.out_id} -> {pair.in_id} crosses from "
                        f"{out_month:%Y-%m} to {in_month:%Y-%m}; each month keeps its own leg"
                    ),
                    transaction_id=pair.out_id,
                )
