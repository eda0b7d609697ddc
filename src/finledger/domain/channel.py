"""Channel domain service."""

from typing import Any, Optional
from finledger.database.base import Database
from finledger.domain.entities import Channel as ChannelEntity, ChannelType
from finledger.domain.channel_roles import (
    ACTIVITY_KEYS,
    ROLE_KEYS,
    parse_cash_flow_activity,
    parse_reporting_role,
)
from finledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    channel_name_not_found,
    channel_not_found,
    duplicate_channel_name,
    unknown_choice,
)


def parse_channel_type(value: Any) -> ChannelType:
    """Parse a channel type string such as 'card'.

    Raises:
        ValidationError: If value is not a known channel type
    """
    if isinstance(value, ChannelType):
        return value
    try:
        return ChannelType(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            unknown_choice("channel type", value, [t.value for t in ChannelType])
        )


class ChannelService:
    """Service for managing owned financial channels."""

    def __init__(self, db: Database):
        """Initialize channel service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_channel(
        self,
        name: str,
        channel_type: str = ChannelType.BANK.value,
        bank: Optional[str] = None,
        external_id: Optional[str] = None,
        masked_number: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> int:
        """Create a new channel.

        Args:
            name: Channel name (unique)
            channel_type: One of bank, card, wallet, investment, other
            bank: Optional issuing institution
            external_id: Optional identifier from the source system
            masked_number: Optional masked account or card number
            metadata: Optional metadata, including role/activity overrides

        Returns:
            Channel ID

        Raises:
            ValidationError: If the name is blank, or the type or an override is invalid
            ConflictError: If a channel with the same name exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Channel name must not be empty")
        parsed_type = parse_channel_type(channel_type)

        if self.db.get_channel_by_name(name) is not None:
            raise ConflictError(duplicate_channel_name(name))

        metadata = dict(metadata or {})
        self._validate_overrides(metadata)

        return self.db.create_channel(
            name=name,
            channel_type=parsed_type.value,
            bank=bank,
            external_id=external_id,
            masked_number=masked_number,
            metadata=metadata,
        )

    def get_or_create_channel(
        self,
        name: str,
        channel_type: str = ChannelType.BANK.value,
        bank: Optional[str] = None,
        external_id: Optional[str] = None,
        masked_number: Optional[str] = None,
    ) -> tuple[int, bool]:
        """Return the channel with the given name, creating it if missing.

        Returns:
            Tuple of (channel ID, created)
        """
        existing = self.db.get_channel_by_name((name or "").strip())
        if existing is not None:
            return existing.id, False
        channel_id = self.create_channel(
            name=name,
            channel_type=channel_type,
            bank=bank,
            external_id=external_id,
            masked_number=masked_number,
        )
        return channel_id, True

    def get_channel(self, channel_id: int) -> Optional[ChannelEntity]:
        """Get channel by ID."""
        return self.db.get_channel(channel_id)

    def get_channel_by_name(self, name: str) -> Optional[ChannelEntity]:
        """Get channel by name."""
        return self.db.get_channel_by_name(name)

    def list_channels(self) -> list[ChannelEntity]:
        """List all channels ordered by name."""
        return self.db.list_channels()

    def resolve_channel(self, identifier: str) -> ChannelEntity:
        """Resolve a channel from a name or a numeric ID.

        An exact name match takes precedence over interpreting the value as an ID.

        Raises:
            NotFoundError: If no channel matches
        """
        channel = self.db.get_channel_by_name(identifier)
        if channel is not None:
            return channel
        try:
            channel_id = int(identifier)
        except (TypeError, ValueError):
            raise NotFoundError(channel_name_not_found(identifier))
        channel = self.db.get_channel(channel_id)
        if channel is None:
            raise NotFoundError(channel_not_found(channel_id))
        return channel

    def set_classification(
        self,
        channel_id: int,
        role: Optional[str] = None,
        activity: Optional[str] = None,
        clear: bool = False,
    ) -> ChannelEntity:
        """Set or clear a channel's reporting role and cash-flow activity overrides.

        Args:
            channel_id: Channel ID
            role: New reporting role override (asset, liability, equity, off_balance)
            activity: New cash-flow activity override (operating, investing, financing)
            clear: Remove both overrides before applying role/activity

        Returns:
            Updated channel entity

        Raises:
            NotFoundError: If the channel does not exist
            ConfigurationError: If role or activity is not a known value
        """
        channel = self.db.get_channel(channel_id)
        if channel is None:
            raise NotFoundError(channel_not_found(channel_id))

        metadata = dict(channel.metadata)
        if clear:
            for key in ROLE_KEYS + ACTIVITY_KEYS:
                metadata.pop(key, None)
        if role is not None:
            for key in ROLE_KEYS:
                metadata.pop(key, None)
            metadata[ROLE_KEYS[0]] = parse_reporting_role(role).value
        if activity is not None:
            for key in ACTIVITY_KEYS:
                metadata.pop(key, None)
            metadata[ACTIVITY_KEYS[0]] = parse_cash_flow_activity(activity).value

        self.db.update_channel_metadata(channel_id, metadata)
        return self.db.get_channel(channel_id)

    def _validate_overrides(self, metadata: dict[str, Any]) -> None:
        for key in ROLE_KEYS:
            value = metadata.get(key)
            if value:
                metadata[key] = parse_reporting_role(value).value
        for key in ACTIVITY_KEYS:
            value = metadata.get(key)
            if value:
                metadata[key] = parse_cash_flow_activity(value).value
