"""Date and timestamp parsing utilities."""

import re
from datetime import date, datetime, timedelta, tzinfo
from typing import Any
from dateutil import parser as date_parser
from dateutil import tz
from dateutil.relativedelta import relativedelta

_DOTTED_DATE = re.compile(r"^(\d{4})\.(\d{1,2})\.(\d{1,2})\.?")

# Ledger periods written as 2024-03, 2024-Q1, 2024-H2 or 2024
_MONTH_PERIOD = re.compile(r"^(\d{4})-(\d{1,2})$")
_QUARTER_PERIOD = re.compile(r"^(\d{4})-?q([1-4])$")
_HALF_PERIOD = re.compile(r"^(\d{4})-?h([12])$")
_YEAR_PERIOD = re.compile(r"^(\d{4})$")


def parse_date(date_str: str) -> date:
    """Parse a calendar date.

    Accepts "today", ISO dates ("2024-01-15", "20240115") and the dotted
    form used by Korean statements ("2024.01.15").

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip()
    if text.lower() == "today":
        return date.today()

    text = _DOTTED_DATE.sub(lambda m: f"{m.group(1)}-{int(m.group(2)):02d}-{int(m.group(3)):02d}", text)
    try:
        return date_parser.isoparse(text).date()
    except ValueError as e:
        raise ValueError(f"Could not parse date '{date_str}' (expected YYYY-MM-DD): {e}")


def parse_period(period: str) -> tuple[date, date]:
    """Return the inclusive (start, end) dates of a ledger period.

    "2024-03" is a month, "2024-Q1" a quarter, "2024-H2" a half-year and
    "2024" the whole year.

    Raises:
        ValueError: If the period is not recognized
    """
    text = period.strip().lower()

    match = _YEAR_PERIOD.match(text)
    if match:
        start = date(int(match.group(1)), 1, 1)
        return start, date(start.year, 12, 31)

    match = _MONTH_PERIOD.match(text)
    if match:
        month = int(match.group(2))
        if not 1 <= month <= 12:
            raise ValueError(f"Unknown period '{period}': month must be 01-12")
        start = date(int(match.group(1)), month, 1)
        return start, start + relativedelta(months=1) - timedelta(days=1)

    for pattern, length in ((_QUARTER_PERIOD, 3), (_HALF_PERIOD, 6)):
        match = pattern.match(text)
        if match:
            first_month = (int(match.group(2)) - 1) * length + 1
            start = date(int(match.group(1)), first_month, 1)
            return start, start + relativedelta(months=length) - timedelta(days=1)

    raise ValueError(f"Unknown period '{period}'. Use YYYY-MM, YYYY-Q1..Q4, YYYY-H1/H2 or YYYY")


def parse_timestamp(value: Any, default_tz: tzinfo | None = None) -> datetime:
    """Parse a source timestamp into a timezone-aware datetime.

    Accepts datetimes, ISO or dotted strings ("2024.01.15 10:00:00") and the
    ``{"iso": ..., "utc": ...}`` objects found in normalized transaction files
    (``utc`` is preferred when present). Naive values are interpreted in
    ``default_tz`` (UTC when not given).

    Raises:
        ValueError: If the value cannot be parsed
    """
    if default_tz is None:
        default_tz = tz.UTC

    if isinstance(value, dict):
        value = value.get("utc") or value.get("iso")

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = _DOTTED_DATE.sub(r"\1-\2-\3", value.strip())
        try:
            parsed = date_parser.isoparse(text)
        except ValueError:
            try:
                parsed = date_parser.parse(text)
            except (ValueError, OverflowError) as e:
                raise ValueError(f"Could not parse timestamp '{value}': {e}")
    else:
        raise ValueError(f"Could not parse timestamp {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default_tz)
    return parsed


def to_local(timestamp: datetime, zone: tzinfo) -> datetime:
    """Express a timestamp in the ledger zone; naive values are taken as already local."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=zone)
    return timestamp.astimezone(zone)


def local_date(timestamp: datetime, zone: tzinfo) -> date:
    """Calendar date of a timestamp in the ledger zone."""
    return to_local(timestamp, zone).date()
