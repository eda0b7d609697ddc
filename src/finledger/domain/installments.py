"""Card installment amortization."""

import re
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Optional

from dateutil.relativedelta import relativedelta

from finledger.domain.entities import (
    Channel,
    ChannelClassification,
    DataQualityWarning,
    InstallmentPlan,
    InstallmentReport,
    InstallmentScheduleEntry,
    InstallmentStatus,
    ReportingRole,
    Transaction,
)
from finledger.domain.periods import month_end, month_start, months_between

CENT = Decimal("0.01")
CANCELLED_TYPE_MARKERS = ("취소", "정정")
CANCELLED_RAW_FIELDS = ("상태", "거래구분")
CANCELLED_RAW_MARKER = "취소"

_NON_DIGITS = re.compile(r"[^0-9]")


def _digits(value: Any) -> Optional[int]:
    if value is None:
        return None
    digits = _NON_DIGITS.sub("", str(value))
    if not digits:
        return None
    return int(digits)


def _whole_number(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    return None


def parse_installment_months(transaction: Transaction) -> Optional[int]:
    """Extract the installment month count of a card purchase.

    Sources, first hit wins: the record's own field, metadata ``installment``,
    raw ``할부``, the digits of raw ``상품구분``, the digits of the type text.
    """
    if transaction.installment_months is not None:
        return transaction.installment_months
    for value in (
        transaction.metadata.get("installment"),
        transaction.raw.get("할부"),
    ):
        months = _whole_number(value)
        if months is not None:
            return months
    for value in (transaction.raw.get("상품구분"), transaction.transaction_type):
        months = _digits(value)
        if months is not None:
            return months
    return None


def is_cancelled(transaction: Transaction) -> bool:
    """True for cancelled or corrected entries."""
    type_text = (transaction.transaction_type or "").lower()
    if any(marker in type_text for marker in CANCELLED_TYPE_MARKERS):
        return True
    for field_name in CANCELLED_RAW_FIELDS:
        value = transaction.raw.get(field_name)
        if value and CANCELLED_RAW_MARKER in str(value).lower():
            return True
    return False


def build_installment_plan(
    transaction: Transaction,
    months: int,
    as_of: date,
    channel_name: str = "",
    with_schedule: bool = False,
) -> InstallmentPlan:
    """Derive the repayment plan of one installment purchase.

    The monthly amount is rounded to cents; the final installment absorbs the
    rounding remainder, so a fully paid plan has zero remaining principal.

    Args:
        transaction: Localized, dated purchase transaction
        months: Installment month count (> 1)
        as_of: Evaluation date; months elapsed count whole calendar months
        channel_name: Display name of the card channel
        with_schedule: Whether to expand the month-by-month schedule
    """
    if months < 1:
        raise ValueError(f"Installment month count must be positive, got {months}")

    purchase_date = transaction.occurred_at.date()
    total = abs(transaction.amount)
    monthly = (total / months).quantize(CENT, rounding=ROUND_HALF_UP)
    first_due = month_start(purchase_date)

    months_elapsed = max(0, months_between(first_due, as_of))
    paid_months = min(months_elapsed, months)
    remaining_months = max(0, months - months_elapsed)
    if paid_months >= months:
        remaining_principal = Decimal("0.00")
    else:
        remaining_principal = max(Decimal("0.00"), total - monthly * paid_months)

    projected_end = first_due + relativedelta(months=months) - timedelta(days=1)

    schedule: tuple[InstallmentScheduleEntry, ...] = ()
    if with_schedule:
        schedule = tuple(
            expand_schedule(transaction.id, total, months, first_due, paid_months)
        )

    return InstallmentPlan(
        transaction_id=transaction.id,
        channel_id=transaction.channel_id,
        channel_name=channel_name,
        description=transaction.description or "",
        purchase_date=purchase_date,
        total_amount=total,
        installment_months=months,
        monthly_amount=monthly,
        months_elapsed=months_elapsed,
        paid_months=paid_months,
        remaining_months=remaining_months,
        remaining_principal=remaining_principal,
        first_due_month=first_due,
        projected_end_date=projected_end,
        schedule=schedule,
    )


def expand_schedule(
    transaction_id: int,
    total: Decimal,
    months: int,
    first_due: date,
    paid_months: int,
) -> list[InstallmentScheduleEntry]:
    """Enumerate installments 1..months with paid/scheduled status."""
    monthly = (total / months).quantize(CENT, rounding=ROUND_HALF_UP)
    entries = []
    for index in range(months):
        period_start = first_due + relativedelta(months=index)
        if index == months - 1:
            amount = total - monthly * (months - 1)
        else:
            amount = monthly
        entries.append(
            InstallmentScheduleEntry(
                transaction_id=transaction_id,
                installment_number=index + 1,
                period_start=period_start,
                period_end=month_end(period_start),
                amount=amount,
                status=(
                    InstallmentStatus.PAID
                    if index < paid_months
                    else InstallmentStatus.SCHEDULED
                ),
            )
        )
    return entries


def build_installment_report(
    transactions: Iterable[Transaction],
    classifications: Mapping[int, ChannelClassification],
    channels: Mapping[int, Channel],
    as_of: date,
    with_schedule: bool = False,
) -> InstallmentReport:
    """Build plans for every qualifying liability-channel installment purchase.

    Qualifying: liability channel, installment months > 1, not cancelled or
    corrected. Qualifying purchases without a timestamp are skipped with a
    warning.
    """
    plans = []
    warnings = []
    for txn in transactions:
        if txn.channel_id is None:
            continue
        classification = classifications.get(txn.channel_id)
        if classification is None or classification.role != ReportingRole.LIABILITY:
            continue
        months = parse_installment_months(txn)
        if months is None or months <= 1 or is_cancelled(txn):
            continue
        if txn.occurred_at is None:
            warnings.append(
                DataQualityWarning(
                    code="installment_undated",
                    message=f"Installment purchase {txn.id} has no timestamp; plan skipped",
                    transaction_id=txn.id,
                )
            )
            continue
        channel = channels.get(txn.channel_id)
        plans.append(
            build_installment_plan(
                txn,
                months,
                as_of,
                channel_name=channel.name if channel else "Unknown",
                with_schedule=with_schedule,
            )
        )

    plans.sort(key=lambda plan: (plan.purchase_date, plan.transaction_id))
    return InstallmentReport(as_of=as_of, plans=tuple(plans), warnings=tuple(warnings))
