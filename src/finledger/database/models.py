"""SQLAlchemy models for finledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Numeric,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Channel(Base):
    """Owned financial channel model."""

    __tablename__ = "channels"

    id = Column(Integer, primary_key=True)
    external_id = Column(String, unique=True, nullable=True)
    name = Column(String, unique=True, nullable=False)
    channel_type = Column(String, nullable=False, default="bank")
    bank = Column(String, nullable=True)
    masked_number = Column(String, nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_json = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    transactions = relationship(
        "Transaction",
        back_populates="channel",
        foreign_keys="Transaction.channel_id",
    )


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    channel_id = Column(Integer, ForeignKey("channels.id"), nullable=True)
    counter_channel_id = Column(Integer, ForeignKey("channels.id"), nullable=True)
    source_file = Column(String, nullable=True)
    record_id = Column(String, nullable=True)
    # Stored as naive UTC
    occurred_at = Column(DateTime, nullable=True)
    description = Column(String, nullable=False, default="")
    transaction_type = Column(String, nullable=False, default="")
    amount = Column(Numeric(18, 2), nullable=False)
    balance = Column(Numeric(18, 2), nullable=True)
    installment_months = Column(Integer, nullable=True)
    memo = Column(String, nullable=True)
    category = Column(String, nullable=True)
    tags = Column(JSON, nullable=True)
    metadata_json = Column("metadata", JSON, nullable=True)
    raw = Column(JSON, nullable=False, default=dict)
    imported_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Unique constraint on channel_id + record_id
    __table_args__ = (
        UniqueConstraint("channel_id", "record_id", name="uq_channel_record_id"),
    )

    # Relationships
    channel = relationship(
        "Channel", back_populates="transactions", foreign_keys=[channel_id]
    )


class IncomeAlias(Base):
    """Ordered income alias table entry."""

    __tablename__ = "income_aliases"

    id = Column(Integer, primary_key=True)
    source_name = Column(String, nullable=False)
    pattern = Column(String, nullable=False, unique=True)
    position = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
