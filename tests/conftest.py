"""Shared pytest fixtures for finledger tests."""

import tempfile
import os
from datetime import datetime
from decimal import Decimal
from pathlib import Path
import pytest
from dateutil import tz

from finledger.config import LedgerSettings
from finledger.database.factories import create_sqlite_database
from finledger.domain.alias import IncomeAliasService
from finledger.domain.channel import ChannelService
from finledger.domain.entities import Channel, ChannelType, Transaction
from finledger.domain.reporting import ReportingService
from finledger.domain.transaction import TransactionService

SEOUL = tz.gettz("Asia/Seoul")


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def settings():
    """Default ledger settings (Asia/Seoul, 15 minute transfer window)."""
    return LedgerSettings()


@pytest.fixture
def channel_service(temp_db):
    """Create a ChannelService with a temporary database."""
    return ChannelService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def alias_service(temp_db):
    """Create an IncomeAliasService with a temporary database."""
    return IncomeAliasService(temp_db)


@pytest.fixture
def reporting_service(temp_db, settings):
    """Create a ReportingService with a temporary database."""
    return ReportingService(temp_db, settings)


@pytest.fixture
def sample_channels(channel_service):
    """Create a checking account, a savings account and a credit card."""
    return {
        "checking": channel_service.create_channel("토스뱅크 통장", channel_type="bank"),
        "savings": channel_service.create_channel("카카오뱅크 저축", channel_type="bank"),
        "card": channel_service.create_channel("현대카드", channel_type="card"),
    }


@pytest.fixture
def ledger(transaction_service, alias_service, sample_channels):
    """Two months of activity across the sample channels.

    Holds one internal transfer (checking to savings), one 4-month card
    installment purchase, a card payment and one undated record.
    """
    checking = sample_channels["checking"]
    savings = sample_channels["savings"]
    card = sample_channels["card"]
    add = transaction_service.create_transaction

    ids = {
        "salary": add(checking, seoul(2024, 1, 5, 9), Decimal("3000000"), description="주식회사 이랜서 1월 정산"),
        "to_savings": add(checking, seoul(2024, 1, 20, 10, 0), Decimal("-500000"), description="저축 이체"),
        "from_checking": add(savings, seoul(2024, 1, 20, 10, 4), Decimal("500000"), description="토스 입금"),
        "appliance": add(
            card, seoul(2024, 1, 15, 12, 30), Decimal("-120000"), description="가전제품", installment_months=4
        ),
        "resale": add(checking, seoul(2024, 2, 10), Decimal("200000"), description="중고거래"),
        "card_payment": add(checking, seoul(2024, 2, 25), Decimal("-120000"), description="현대카드 결제"),
        "card_credit": add(card, seoul(2024, 2, 25), Decimal("120000"), description="결제 입금"),
        "undated": add(checking, None, Decimal("1")),
    }
    alias_service.add_alias("이랜서", "이랜서")
    return ids


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


def seoul(year, month, day, hour=0, minute=0, second=0):
    """Aware datetime in the default ledger zone."""
    return datetime(year, month, day, hour, minute, second, tzinfo=SEOUL)


def make_channel(channel_id, name, channel_type=ChannelType.BANK, **metadata):
    """Build an in-memory channel."""
    return Channel(id=channel_id, name=name, channel_type=channel_type, metadata=metadata)


def make_txn(txn_id, channel_id, occurred_at, amount, **fields):
    """Build an in-memory transaction; amount may be given as a string."""
    return Transaction(
        id=txn_id,
        channel_id=channel_id,
        occurred_at=occurred_at,
        amount=Decimal(str(amount)).quantize(Decimal("0.01")),
        **fields,
    )
