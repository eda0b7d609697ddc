"""Generic SQLAlchemy database implementation."""

from typing import Optional, Any
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from sqlalchemy import func
from sqlalchemy.orm import Session

from finledger.database.base import Database
from finledger.database.models import (
    Channel,
    IncomeAlias,
    Transaction,
    create_session_factory,
)
from finledger.database.mappers import (
    channel_to_domain,
    income_alias_to_domain,
    to_storage_timestamp,
    transaction_to_domain,
)
from finledger.domain.entities import (
    Channel as DomainChannel,
    IncomeAlias as DomainIncomeAlias,
    LedgerSnapshot,
    Transaction as DomainTransaction,
)
from finledger.domain.errors import (
    NotFoundError,
    alias_not_found,
    channel_not_found,
    transaction_not_found,
)


class SQLAlchemyDatabase(Database):
    """SQLAlchemy-based implementation of Database interface."""

    def __init__(self, database_url: str):
        """Initialize SQLAlchemy database.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')
        """
        self.database_url = database_url
        self.session_factory = create_session_factory(database_url)
        self._session: Optional[Session] = None

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    def connect(self) -> None:
        """Connect to the database."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        # Schema is created automatically by create_session_factory
        pass

    # Channel operations
    def create_channel(
        self,
        name: str,
        channel_type: str,
        bank: Optional[str] = None,
        external_id: Optional[str] = None,
        masked_number: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> int:
        """Create a new channel. Returns channel ID."""
        session = self._get_session()
        channel = Channel(
            name=name,
            channel_type=channel_type,
            bank=bank,
            external_id=external_id,
            masked_number=masked_number,
            metadata_json=dict(metadata or {}),
        )
        session.add(channel)
        session.commit()
        return channel.id

    def get_channel(self, channel_id: int) -> Optional[DomainChannel]:
        """Get channel by ID."""
        session = self._get_session()
        channel = session.query(Channel).filter(Channel.id == channel_id).first()
        if channel is None:
            return None
        return channel_to_domain(channel)

    def get_channel_by_name(self, name: str) -> Optional[DomainChannel]:
        """Get channel by name."""
        session = self._get_session()
        channel = session.query(Channel).filter(Channel.name == name).first()
        if channel is None:
            return None
        return channel_to_domain(channel)

    def list_channels(self) -> list[DomainChannel]:
        """List all channels."""
        session = self._get_session()
        channels = session.query(Channel).order_by(Channel.name).all()
        return [channel_to_domain(ch) for ch in channels]

    def update_channel_metadata(self, channel_id: int, metadata: dict[str, Any]) -> None:
        """Replace channel metadata."""
        session = self._get_session()
        channel = session.query(Channel).filter(Channel.id == channel_id).first()
        if channel is None:
            raise NotFoundError(channel_not_found(channel_id))
        # Assign a fresh dict so the JSON column is flagged dirty
        channel.metadata_json = dict(metadata)
        session.commit()

    # Transaction operations
    def create_transaction(
        self,
        channel_id: Optional[int],
        occurred_at: Optional[datetime],
        amount: Decimal,
        description: str = "",
        transaction_type: str = "",
        counter_channel_id: Optional[int] = None,
        record_id: Optional[str] = None,
        source_file: Optional[str] = None,
        balance: Optional[Decimal] = None,
        installment_months: Optional[int] = None,
        memo: Optional[str] = None,
        category: Optional[str] = None,
        tags: Optional[list[str]] = None,
        metadata: Optional[dict[str, Any]] = None,
        raw: Optional[dict[str, Any]] = None,
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        session = self._get_session()
        transaction = Transaction(
            channel_id=channel_id,
            occurred_at=to_storage_timestamp(occurred_at),
            amount=amount,
            description=description or "",
            transaction_type=transaction_type or "",
            counter_channel_id=counter_channel_id,
            record_id=record_id,
            source_file=source_file,
            balance=balance,
            installment_months=installment_months,
            memo=memo,
            category=category,
            tags=list(tags) if tags else None,
            metadata_json=dict(metadata) if metadata else None,
            raw=dict(raw or {}),
        )
        session.add(transaction)
        session.commit()
        return transaction.id

    def get_transaction(self, transaction_id: int) -> Optional[DomainTransaction]:
        """Get transaction by ID."""
        session = self._get_session()
        txn = session.query(Transaction).filter(Transaction.id == transaction_id).first()
        if txn is None:
            return None
        return transaction_to_domain(txn)

    def transaction_exists(self, channel_id: int, record_id: str) -> bool:
        """Check if a transaction with given record_id exists for channel."""
        session = self._get_session()
        count = (
            session.query(Transaction)
            .filter(Transaction.channel_id == channel_id, Transaction.record_id == record_id)
            .count()
        )
        return count > 0

    def update_transaction_amount(self, transaction_id: int, amount: Decimal) -> None:
        """Rewrite a transaction amount in place."""
        session = self._get_session()
        transaction = session.query(Transaction).filter(Transaction.id == transaction_id).first()
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        transaction.amount = amount
        session.commit()

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        channel_id: Optional[int] = None,
    ) -> list[DomainTransaction]:
        """List transactions with optional filters."""
        session = self._get_session()
        query = session.query(Transaction)

        if start_date is not None:
            query = query.filter(Transaction.occurred_at >= datetime.combine(start_date, time.min))
        if end_date is not None:
            query = query.filter(
                Transaction.occurred_at < datetime.combine(end_date + timedelta(days=1), time.min)
            )
        if channel_id is not None:
            query = query.filter(Transaction.channel_id == channel_id)

        transactions = query.order_by(Transaction.occurred_at, Transaction.id).all()
        return [transaction_to_domain(txn) for txn in transactions]

    def get_channel_transaction_count(self, channel_id: int) -> int:
        """Get count of transactions associated with a channel."""
        session = self._get_session()
        return session.query(Transaction).filter(Transaction.channel_id == channel_id).count()

    # Income alias operations
    def create_income_alias(self, source_name: str, pattern: str) -> int:
        """Append an alias at the end of the table. Returns alias ID."""
        session = self._get_session()
        last_position = session.query(func.max(IncomeAlias.position)).scalar()
        alias = IncomeAlias(
            source_name=source_name,
            pattern=pattern,
            position=(last_position or 0) + 1,
        )
        session.add(alias)
        session.commit()
        return alias.id

    def list_income_aliases(self) -> list[DomainIncomeAlias]:
        """List aliases in table order."""
        session = self._get_session()
        aliases = session.query(IncomeAlias).order_by(IncomeAlias.position, IncomeAlias.id).all()
        return [income_alias_to_domain(alias) for alias in aliases]

    def delete_income_alias(self, alias_id: int) -> None:
        """Delete an alias."""
        session = self._get_session()
        alias = session.query(IncomeAlias).filter(IncomeAlias.id == alias_id).first()
        if alias is None:
            raise NotFoundError(alias_not_found(alias_id))
        session.delete(alias)
        session.commit()

    # Reporting
    def get_ledger_snapshot(self) -> LedgerSnapshot:
        """Read channels, transactions and aliases inside one session transaction."""
        session = self._get_session()
        try:
            channels = session.query(Channel).order_by(Channel.id).all()
            transactions = (
                session.query(Transaction).order_by(Transaction.occurred_at, Transaction.id).all()
            )
            aliases = session.query(IncomeAlias).order_by(IncomeAlias.position, IncomeAlias.id).all()
            snapshot = LedgerSnapshot(
                channels=tuple(channel_to_domain(ch) for ch in channels),
                transactions=tuple(transaction_to_domain(txn) for txn in transactions),
                income_aliases=tuple(income_alias_to_domain(alias) for alias in aliases),
            )
        finally:
            session.commit()
        return snapshot
