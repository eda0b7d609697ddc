"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Any
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through the services
from finledger.domain.entities import (
    Channel,
    IncomeAlias,
    LedgerSnapshot,
    Transaction,
)


class Database(ABC):
    """Abstract database interface for finledger."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Channel operations
    @abstractmethod
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
        pass

    @abstractmethod
    def get_channel(self, channel_id: int) -> Optional[Channel]:
        """Get channel by ID."""
        pass

    @abstractmethod
    def get_channel_by_name(self, name: str) -> Optional[Channel]:
        """Get channel by name."""
        pass

    @abstractmethod
    def list_channels(self) -> list[Channel]:
        """List all channels."""
        pass

    @abstractmethod
    def update_channel_metadata(self, channel_id: int, metadata: dict[str, Any]) -> None:
        """Replace channel metadata."""
        pass

    # Transaction operations
    @abstractmethod
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
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def transaction_exists(self, channel_id: int, record_id: str) -> bool:
        """Check if a transaction with given record_id exists for channel."""
        pass

    @abstractmethod
    def update_transaction_amount(self, transaction_id: int, amount: Decimal) -> None:
        """Rewrite a transaction amount in place (sign backfill)."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        channel_id: Optional[int] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters.

        Args:
            start_date: Optional start date filter (UTC date of occurred_at)
            end_date: Optional end date filter (UTC date of occurred_at)
            channel_id: Optional channel ID filter

        Undated transactions are included only when no date filter is given.
        """
        pass

    @abstractmethod
    def get_channel_transaction_count(self, channel_id: int) -> int:
        """Get count of transactions associated with a channel."""
        pass

    # Income alias operations
    @abstractmethod
    def create_income_alias(self, source_name: str, pattern: str) -> int:
        """Append an alias at the end of the table. Returns alias ID."""
        pass

    @abstractmethod
    def list_income_aliases(self) -> list[IncomeAlias]:
        """List aliases in table order."""
        pass

    @abstractmethod
    def delete_income_alias(self, alias_id: int) -> None:
        """Delete an alias."""
        pass

    # Reporting
    @abstractmethod
    def get_ledger_snapshot(self) -> LedgerSnapshot:
        """Read channels, transactions and aliases in one consistent read."""
        pass
