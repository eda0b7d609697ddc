"""Domain model entities for finledger.

These are pure data classes representing ledger concepts, independent of the
database schema. Stored entities (channels, transactions, income aliases) are
produced by the database layer; every other entity here is derived and can be
recomputed from a ledger snapshot at any time.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional


class ChannelType(str, Enum):
    """Declared category of a channel."""

    BANK = "bank"
    CARD = "card"
    WALLET = "wallet"
    INVESTMENT = "investment"
    OTHER = "other"


class ReportingRole(str, Enum):
    """Balance-sheet placement of a channel."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    OFF_BALANCE = "off_balance"


class CashFlowActivity(str, Enum):
    """Cash-flow statement section of a channel's flows."""

    OPERATING = "operating"
    INVESTING = "investing"
    FINANCING = "financing"


class Granularity(str, Enum):
    """Reporting period length."""

    MONTH = "month"
    QUARTER = "quarter"
    HALF_YEAR = "half_year"


class InstallmentStatus(str, Enum):
    PAID = "paid"
    SCHEDULED = "scheduled"


@dataclass(frozen=True)
class Channel:
    """Owned financial account (bank account, card, wallet, investment)."""

    id: int
    name: str
    channel_type: ChannelType
    created_at: Optional[datetime] = None
    bank: Optional[str] = None
    external_id: Optional[str] = None
    masked_number: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Transaction:
    """Signed monetary event on a channel.

    Positive amounts flow into the channel, negative amounts flow out.
    ``occurred_at`` is None when the source timestamp could not be parsed.
    """

    id: int
    channel_id: Optional[int]
    occurred_at: Optional[datetime]
    amount: Decimal
    description: str = ""
    transaction_type: str = ""
    counter_channel_id: Optional[int] = None
    record_id: Optional[str] = None
    source_file: Optional[str] = None
    balance: Optional[Decimal] = None
    installment_months: Optional[int] = None
    memo: Optional[str] = None
    category: Optional[str] = None
    tags: tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict)
    imported_at: Optional[datetime] = None


@dataclass(frozen=True)
class IncomeAlias:
    """One entry of the ordered income alias table."""

    id: int
    source_name: str
    pattern: str
    position: int
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class LedgerSnapshot:
    """Consistent read of everything the reporting engine consumes."""

    channels: tuple[Channel, ...]
    transactions: tuple[Transaction, ...]
    income_aliases: tuple[IncomeAlias, ...] = ()


@dataclass(frozen=True)
class ChannelClassification:
    """Derived reporting role and cash-flow activity of a channel."""

    channel_id: int
    role: ReportingRole
    activity: CashFlowActivity


@dataclass(frozen=True)
class DataQualityWarning:
    """Non-fatal input problem found while building reports."""

    code: str
    message: str
    transaction_id: Optional[int] = None


@dataclass(frozen=True)
class TransferPair:
    """Outbound and inbound legs judged to be the same self-transfer."""

    out_id: int
    in_id: int
    out_channel_id: int
    in_channel_id: int
    amount: Decimal
    time_gap_seconds: int


@dataclass(frozen=True)
class DailyBalance:
    channel_id: int
    day: date
    delta: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class Period:
    """Calendar period with inclusive start and end dates."""

    granularity: Granularity
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class PeriodBalance:
    channel_id: int
    period: Period
    closing_balance: Decimal


@dataclass(frozen=True)
class BalanceSheetRow:
    granularity: Granularity
    period_start: date
    period_end: date
    assets: Decimal
    liabilities: Decimal
    equity: Decimal


@dataclass(frozen=True)
class BalanceSheetChannelRow:
    granularity: Granularity
    period_start: date
    period_end: date
    channel_id: int
    channel_name: str
    reporting_role: ReportingRole
    closing_balance: Decimal


@dataclass(frozen=True)
class BalanceSheetReport:
    granularity: Granularity
    rows: tuple[BalanceSheetRow, ...]
    channels: tuple[BalanceSheetChannelRow, ...]
    warnings: tuple[DataQualityWarning, ...] = ()


@dataclass(frozen=True)
class CashFlowRow:
    period_start: date
    period_end: date
    operating: Decimal
    investing: Decimal
    financing: Decimal
    total_inflow: Decimal
    total_outflow: Decimal
    net: Decimal


@dataclass(frozen=True)
class CashFlowBreakdownEntry:
    """External inflow listed for drill-down under its month."""

    period_start: date
    transaction_id: int
    channel_id: int
    channel_name: str
    description: str
    amount: Decimal
    occurred_at: datetime


@dataclass(frozen=True)
class CashFlowReport:
    rows: tuple[CashFlowRow, ...]
    breakdown: Mapping[date, tuple[CashFlowBreakdownEntry, ...]]
    warnings: tuple[DataQualityWarning, ...] = ()


@dataclass(frozen=True)
class IncomeSourceRow:
    period_start: date
    period_end: date
    source_name: str
    total_amount: Decimal
    transaction_count: int


@dataclass(frozen=True)
class IncomeSourceReport:
    rows: tuple[IncomeSourceRow, ...]
    attributions: Mapping[int, str]
    warnings: tuple[DataQualityWarning, ...] = ()


@dataclass(frozen=True)
class InstallmentScheduleEntry:
    transaction_id: int
    installment_number: int
    period_start: date
    period_end: date
    amount: Decimal
    status: InstallmentStatus


@dataclass(frozen=True)
class InstallmentPlan:
    """Repayment plan derived from one card installment purchase."""

    transaction_id: int
    channel_id: int
    channel_name: str
    description: str
    purchase_date: date
    total_amount: Decimal
    installment_months: int
    monthly_amount: Decimal
    months_elapsed: int
    paid_months: int
    remaining_months: int
    remaining_principal: Decimal
    first_due_month: date
    projected_end_date: date
    schedule: tuple[InstallmentScheduleEntry, ...] = ()


@dataclass(frozen=True)
class InstallmentReport:
    as_of: date
    plans: tuple[InstallmentPlan, ...]
    warnings: tuple[DataQualityWarning, ...] = ()
