"""Reporting role and cash-flow activity classification for channels."""

from typing import Any, Iterable, Mapping, Optional

from finledger.domain.entities import (
    CashFlowActivity,
    Channel,
    ChannelClassification,
    ChannelType,
    ReportingRole,
)
from finledger.domain.errors import ConfigurationError, unknown_choice

ROLE_KEYS = ("reporting_role", "reportingRole")
ACTIVITY_KEYS = ("cash_flow_activity", "cashFlowActivity")

# Checked in order; first marker found in the lowercased name decides.
NAME_HEURISTICS: tuple[tuple[str, ReportingRole], ...] = (
    ("쿠팡", ReportingRole.OFF_BALANCE),
    ("coupang", ReportingRole.OFF_BALANCE),
    ("카드", ReportingRole.LIABILITY),
    ("card", ReportingRole.LIABILITY),
)


def _override(metadata: Mapping[str, Any], keys: Iterable[str]) -> Optional[Any]:
    for key in keys:
        value = metadata.get(key)
        if value is not None and value != "":
            return value
    return None


def parse_reporting_role(value: Any) -> ReportingRole:
    """Parse a role string such as 'liability'.

    Raises:
        ConfigurationError: If value is not a known role
    """
    if isinstance(value, ReportingRole):
        return value
    normalized = str(value).strip().lower().replace("-", "_")
    try:
        return ReportingRole(normalized)
    except ValueError:
        raise ConfigurationError(
            unknown_choice("reporting role", value, [r.value for r in ReportingRole])
        )


def parse_cash_flow_activity(value: Any) -> CashFlowActivity:
    """Parse an activity string such as 'investing'.

    Raises:
        ConfigurationError: If value is not a known activity
    """
    if isinstance(value, CashFlowActivity):
        return value
    normalized = str(value).strip().lower()
    try:
        return CashFlowActivity(normalized)
    except ValueError:
        raise ConfigurationError(
            unknown_choice(
                "cash flow activity", value, [a.value for a in CashFlowActivity]
            )
        )


def validate_channel_overrides(channel: Channel) -> None:
    """Reject role/activity overrides that cannot be parsed.

    Raises:
        ConfigurationError: Naming the channel and the offending value
    """
    role = _override(channel.metadata, ROLE_KEYS)
    activity = _override(channel.metadata, ACTIVITY_KEYS)
    try:
        if role is not None:
            parse_reporting_role(role)
        if activity is not None:
            parse_cash_flow_activity(activity)
    except ConfigurationError as e:
        raise ConfigurationError(f"Channel '{channel.name}' (ID: {channel.id}): {e}")


def heuristic_role(channel: Channel) -> ReportingRole:
    name = (channel.name or "").lower()
    for marker, role in NAME_HEURISTICS:
        if marker in name:
            return role
    if channel.channel_type == ChannelType.CARD:
        return ReportingRole.LIABILITY
    return ReportingRole.ASSET


def classify_channel(channel: Channel) -> ChannelClassification:
    """Derive a channel's reporting role and cash-flow activity.

    Explicit metadata overrides win, then the naming heuristic, then the
    defaults (asset, operating). Never raises: overrides that do not parse
    are ignored here and rejected earlier by validate_channel_overrides.
    """
    role = None
    role_override = _override(channel.metadata, ROLE_KEYS)
    if role_override is not None:
        try:
            role = parse_reporting_role(role_override)
        except ConfigurationError:
            role = None
    if role is None:
        role = heuristic_role(channel)

    activity = CashFlowActivity.OPERATING
    activity_override = _override(channel.metadata, ACTIVITY_KEYS)
    if activity_override is not None:
        try:
            activity = parse_cash_flow_activity(activity_override)
        except ConfigurationError:
            activity = CashFlowActivity.OPERATING

    return ChannelClassification(channel_id=channel.id, role=role, activity=activity)


def classify_channels(
    channels: Iterable[Channel],
) -> dict[int, ChannelClassification]:
    """Classify every channel, keyed by channel ID."""
    return {channel.id: classify_channel(channel) for channel in channels}
