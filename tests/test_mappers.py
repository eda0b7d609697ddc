"""Tests for database mappers."""

from datetime import datetime, UTC
from decimal import Decimal

from dateutil import tz

from finledger.database.models import (
    Channel as ORMChannel,
    IncomeAlias as ORMIncomeAlias,
    Transaction as ORMTransaction,
)
from finledger.database.mappers import (
    channel_to_domain,
    from_storage_timestamp,
    income_alias_to_domain,
    to_storage_timestamp,
    transaction_to_domain,
)
from finledger.domain.entities import Channel, ChannelType, IncomeAlias, Transaction


class TestChannelMapper:
    """Tests for Channel mapper."""

    def test_channel_to_domain(self):
        """Test converting ORM Channel to domain Channel."""
        orm_channel = ORMChannel(
            id=1,
            name="현대카드",
            channel_type="card",
            bank="현대카드",
            metadata_json={"reporting_role": "liability"},
            created_at=datetime.now(UTC),
        )
        channel = channel_to_domain(orm_channel)

        assert isinstance(channel, Channel)
        assert channel.id == 1
        assert channel.channel_type == ChannelType.CARD
        assert channel.metadata == {"reporting_role": "liability"}
        assert channel.created_at == orm_channel.created_at

    def test_channel_without_metadata(self):
        orm_channel = ORMChannel(id=2, name="통장", channel_type="bank", metadata_json=None)
        assert channel_to_domain(orm_channel).metadata == {}


class TestTransactionMapper:
    """Tests for Transaction mapper."""

    def test_transaction_to_domain(self):
        """Stored naive UTC comes back as aware UTC."""
        orm_txn = ORMTransaction(
            id=7,
            channel_id=1,
            occurred_at=datetime(2024, 1, 15, 1, 0),
            amount=Decimal("-15000"),
            description="편의점",
            transaction_type="[-] 결제",
            record_id="r-1",
            balance=Decimal("985000"),
            installment_months=None,
            tags=["food"],
            metadata_json=None,
            raw={"거래구분": "출금"},
            imported_at=datetime.now(UTC),
        )
        txn = transaction_to_domain(orm_txn)

        assert isinstance(txn, Transaction)
        assert txn.occurred_at == datetime(2024, 1, 15, 1, 0, tzinfo=UTC)
        assert txn.amount == Decimal("-15000.00")
        assert txn.balance == Decimal("985000.00")
        assert txn.tags == ("food",)
        assert txn.metadata == {}
        assert txn.raw == {"거래구분": "출금"}

    def test_undated_transaction(self):
        orm_txn = ORMTransaction(id=8, channel_id=1, occurred_at=None, amount=Decimal("1"), raw=None)
        txn = transaction_to_domain(orm_txn)
        assert txn.occurred_at is None
        assert txn.raw == {}
        assert txn.description == ""


class TestIncomeAliasMapper:
    """Tests for IncomeAlias mapper."""

    def test_income_alias_to_domain(self):
        orm_alias = ORMIncomeAlias(id=3, source_name="이랜서", pattern="이랜서", position=2)
        alias = income_alias_to_domain(orm_alias)
        assert isinstance(alias, IncomeAlias)
        assert (alias.id, alias.source_name, alias.pattern, alias.position) == (3, "이랜서", "이랜서", 2)


class TestStorageTimestamps:
    """Tests for the UTC storage conversion."""

    def test_aware_timestamp_stored_as_naive_utc(self):
        seoul = datetime(2024, 1, 15, 10, 0, tzinfo=tz.gettz("Asia/Seoul"))
        assert to_storage_timestamp(seoul) == datetime(2024, 1, 15, 1, 0)

    def test_naive_timestamp_kept(self):
        assert to_storage_timestamp(datetime(2024, 1, 15, 1, 0)) == datetime(2024, 1, 15, 1, 0)

    def test_none_passes_through(self):
        assert to_storage_timestamp(None) is None
        assert from_storage_timestamp(None) is None

    def test_round_trip_preserves_instant(self):
        seoul = datetime(2024, 1, 15, 10, 0, tzinfo=tz.gettz("Asia/Seoul"))
        assert from_storage_timestamp(to_storage_timestamp(seoul)) == seoul
