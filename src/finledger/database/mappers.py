"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the UTC handling of
timestamps: the database stores naive UTC, the domain sees aware datetimes.
"""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional

from finledger.domain import entities as domain
from finledger.database.models import (
    Channel as ORMChannel,
    Transaction as ORMTransaction,
    IncomeAlias as ORMIncomeAlias,
)


def to_storage_timestamp(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware timestamp to naive UTC for storage; naive values are kept as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def from_storage_timestamp(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a stored naive timestamp."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(value).quantize(Decimal("0.01"))


def channel_to_domain(orm_channel: ORMChannel) -> domain.Channel:
    """Convert SQLAlchemy Channel model to domain Channel entity."""
    return domain.Channel(
        id=orm_channel.id,
        name=orm_channel.name,
        channel_type=domain.ChannelType(orm_channel.channel_type),
        created_at=orm_channel.created_at,
        bank=orm_channel.bank,
        external_id=orm_channel.external_id,
        masked_number=orm_channel.masked_number,
        metadata=dict(orm_channel.metadata_json or {}),
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        channel_id=orm_transaction.channel_id,
        occurred_at=from_storage_timestamp(orm_transaction.occurred_at),
        amount=_decimal(orm_transaction.amount),
        description=orm_transaction.description or "",
        transaction_type=orm_transaction.transaction_type or "",
        counter_channel_id=orm_transaction.counter_channel_id,
        record_id=orm_transaction.record_id,
        source_file=orm_transaction.source_file,
        balance=_decimal(orm_transaction.balance),
        installment_months=orm_transaction.installment_months,
        memo=orm_transaction.memo,
        category=orm_transaction.category,
        tags=tuple(orm_transaction.tags or ()),
        metadata=dict(orm_transaction.metadata_json or {}),
        raw=dict(orm_transaction.raw or {}),
        imported_at=orm_transaction.imported_at,
    )


def income_alias_to_domain(orm_alias: ORMIncomeAlias) -> domain.IncomeAlias:
    """Convert SQLAlchemy IncomeAlias model to domain IncomeAlias entity."""
    return domain.IncomeAlias(
        id=orm_alias.id,
        source_name=orm_alias.source_name,
        pattern=orm_alias.pattern,
        position=orm_alias.position,
        created_at=orm_alias.created_at,
    )
