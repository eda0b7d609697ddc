"""Tests for Database interface returning domain models."""

import pytest
from datetime import date, datetime, UTC
from decimal import Decimal

from finledger.domain import entities
from finledger.domain.errors import NotFoundError


def _at(day, hour=0):
    return datetime(2024, 1, day, hour, 0, tzinfo=UTC)


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_get_channel_returns_domain_model(self, temp_db):
        """Test that get_channel returns a domain Channel entity."""
        channel_id = temp_db.create_channel(
            name="현대카드", channel_type="card", bank="현대카드", metadata={"reporting_role": "liability"}
        )

        channel = temp_db.get_channel(channel_id)

        assert isinstance(channel, entities.Channel)
        assert channel.id == channel_id
        assert channel.channel_type == entities.ChannelType.CARD
        assert channel.metadata == {"reporting_role": "liability"}
        assert isinstance(channel.created_at, datetime)

    def test_missing_channel_returns_none(self, temp_db):
        assert temp_db.get_channel(999) is None
        assert temp_db.get_channel_by_name("없음") is None

    def test_list_channels_ordered_by_name(self, temp_db):
        temp_db.create_channel(name="B", channel_type="bank")
        temp_db.create_channel(name="A", channel_type="bank")

        channels = temp_db.list_channels()

        assert [ch.name for ch in channels] == ["A", "B"]
        assert all(isinstance(ch, entities.Channel) for ch in channels)

    def test_update_channel_metadata(self, temp_db):
        channel_id = temp_db.create_channel(name="저축", channel_type="bank")
        temp_db.update_channel_metadata(channel_id, {"cash_flow_activity": "investing"})
        assert temp_db.get_channel(channel_id).metadata == {"cash_flow_activity": "investing"}

    def test_update_missing_channel_raises(self, temp_db):
        with pytest.raises(NotFoundError):
            temp_db.update_channel_metadata(999, {})

    def test_transaction_round_trip(self, temp_db):
        """Test that get_transaction returns a domain Transaction entity."""
        channel_id = temp_db.create_channel(name="통장", channel_type="bank")
        txn_id = temp_db.create_transaction(
            channel_id=channel_id,
            occurred_at=_at(15, 1),
            amount=Decimal("-15000.00"),
            description="편의점",
            record_id="r-1",
            installment_months=3,
            tags=["food"],
            raw={"구분": "출금"},
        )

        txn = temp_db.get_transaction(txn_id)

        assert isinstance(txn, entities.Transaction)
        assert txn.amount == Decimal("-15000.00")
        assert isinstance(txn.amount, Decimal)
        assert txn.occurred_at == _at(15, 1)
        assert txn.installment_months == 3
        assert txn.tags == ("food",)
        assert txn.raw == {"구분": "출금"}
        assert temp_db.transaction_exists(channel_id, "r-1")
        assert not temp_db.transaction_exists(channel_id, "r-2")

    def test_undated_transaction_is_kept(self, temp_db):
        channel_id = temp_db.create_channel(name="통장", channel_type="bank")
        txn_id = temp_db.create_transaction(
            channel_id=channel_id, occurred_at=None, amount=Decimal("100.00")
        )
        assert temp_db.get_transaction(txn_id).occurred_at is None
        assert temp_db.get_channel_transaction_count(channel_id) == 1

    def test_list_transactions_filters_by_utc_date(self, temp_db):
        channel_id = temp_db.create_channel(name="통장", channel_type="bank")
        other_id = temp_db.create_channel(name="저축", channel_type="bank")
        temp_db.create_transaction(channel_id=channel_id, occurred_at=_at(3), amount=Decimal("1"))
        temp_db.create_transaction(channel_id=channel_id, occurred_at=_at(5, 23), amount=Decimal("2"))
        temp_db.create_transaction(channel_id=channel_id, occurred_at=_at(6), amount=Decimal("3"))
        temp_db.create_transaction(channel_id=other_id, occurred_at=_at(4), amount=Decimal("4"))

        in_range = temp_db.list_transactions(start_date=date(2024, 1, 4), end_date=date(2024, 1, 5))
        assert [t.amount for t in in_range] == [Decimal("4.00"), Decimal("2.00")]

        by_channel = temp_db.list_transactions(channel_id=channel_id)
        assert [t.amount for t in by_channel] == [Decimal("1.00"), Decimal("2.00"), Decimal("3.00")]

    def test_update_transaction_amount(self, temp_db):
        channel_id = temp_db.create_channel(name="통장", channel_type="bank")
        txn_id = temp_db.create_transaction(
            channel_id=channel_id, occurred_at=_at(1), amount=Decimal("500.00")
        )
        temp_db.update_transaction_amount(txn_id, Decimal("-500.00"))
        assert temp_db.get_transaction(txn_id).amount == Decimal("-500.00")

        with pytest.raises(NotFoundError):
            temp_db.update_transaction_amount(999, Decimal("1"))

    def test_income_aliases_keep_insertion_order(self, temp_db):
        first = temp_db.create_income_alias(source_name="이랜서", pattern="이랜서")
        second = temp_db.create_income_alias(source_name="기타수입", pattern="환급")

        aliases = temp_db.list_income_aliases()
        assert [a.id for a in aliases] == [first, second]
        assert aliases[0].position < aliases[1].position

        temp_db.delete_income_alias(first)
        assert [a.id for a in temp_db.list_income_aliases()] == [second]
        with pytest.raises(NotFoundError):
            temp_db.delete_income_alias(first)

    def test_ledger_snapshot(self, temp_db):
        channel_id = temp_db.create_channel(name="통장", channel_type="bank")
        temp_db.create_transaction(channel_id=channel_id, occurred_at=_at(2), amount=Decimal("1"))
        temp_db.create_transaction(channel_id=channel_id, occurred_at=None, amount=Decimal("2"))
        temp_db.create_income_alias(source_name="이랜서", pattern="이랜서")

        snapshot = temp_db.get_ledger_snapshot()

        assert isinstance(snapshot, entities.LedgerSnapshot)
        assert [ch.id for ch in snapshot.channels] == [channel_id]
        assert len(snapshot.transactions) == 2
        assert [a.source_name for a in snapshot.income_aliases] == ["이랜서"]
