"""Transaction domain service."""

import logging
from typing import Any, Optional
from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal
from finledger.database.base import Database
from finledger.domain.entities import Transaction as TransactionEntity
from finledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    channel_not_found,
    duplicate_record,
)
from finledger.domain.signs import hint_texts, normalize_amount, sign_hint_texts
from finledger.utils.amount_parser import quantize_amount
from finledger.utils.date_parser import local_date

logger = logging.getLogger(__name__)


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_transaction(
        self,
        channel_id: int,
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
        """Create a transaction.

        The amount is quantized to two decimals and its sign is aligned with
        any ``[+``/``[-`` direction marker in the type text or raw fields.

        Args:
            channel_id: Owning channel ID
            occurred_at: Event timestamp; None keeps the record but leaves it out of reports
            amount: Signed amount (positive = inflow)
            description: Free text
            transaction_type: Source classification text
            counter_channel_id: Optional other party channel
            record_id: Optional source record identifier, unique per channel
            source_file: Optional name of the imported file
            balance: Optional running balance reported by the source
            installment_months: Optional installment month count for card purchases
            memo: Optional memo
            category: Optional category label
            tags: Optional tags
            metadata: Optional metadata
            raw: Optional raw source fields

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the channel or counter channel doesn't exist
            ConflictError: If the record ID already exists for the channel
            ValidationError: If the amount or installment count is invalid
        """
        # Verify channel exists
        if self.db.get_channel(channel_id) is None:
            raise NotFoundError(channel_not_found(channel_id))
        if counter_channel_id is not None and self.db.get_channel(counter_channel_id) is None:
            raise NotFoundError(channel_not_found(counter_channel_id))

        # Check for duplicate
        if record_id is not None and self.db.transaction_exists(channel_id, record_id):
            raise ConflictError(duplicate_record(record_id, channel_id))

        if installment_months is not None and installment_months < 1:
            raise ValidationError(
                f"Installment months must be positive, got {installment_months}"
            )

        try:
            amount = quantize_amount(amount)
        except ValueError as e:
            raise ValidationError(str(e))
        raw = dict(raw or {})
        normalized = normalize_amount(amount, hint_texts(transaction_type, raw))
        if normalized != amount:
            logger.debug(
                "Sign of record %s flipped to match its direction marker", record_id
            )

        return self.db.create_transaction(
            channel_id=channel_id,
            occurred_at=occurred_at,
            amount=normalized,
            description=description or "",
            transaction_type=transaction_type or "",
            counter_channel_id=counter_channel_id,
            record_id=record_id,
            source_file=source_file,
            balance=quantize_amount(balance) if balance is not None else None,
            installment_months=installment_months,
            memo=memo,
            category=category,
            tags=tags,
            metadata=metadata,
            raw=raw,
        )

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        channel_id: Optional[int] = None,
        zone: Optional[tzinfo] = None,
    ) -> list[TransactionEntity]:
        """List transactions with optional filters.

        Args:
            start_date: Optional start date filter
            end_date: Optional end date filter
            channel_id: Optional channel ID filter
            zone: Compare dates in this zone instead of UTC

        Returns:
            List of transaction entities ordered by timestamp
        """
        if zone is None or (start_date is None and end_date is None):
            return self.db.list_transactions(
                start_date=start_date, end_date=end_date, channel_id=channel_id
            )

        # Widen the UTC query by a day on each side, then filter on local dates
        transactions = self.db.list_transactions(
            start_date=start_date - timedelta(days=1) if start_date else None,
            end_date=end_date + timedelta(days=1) if end_date else None,
            channel_id=channel_id,
        )
        result = []
        for txn in transactions:
            day = local_date(txn.occurred_at, zone)
            if start_date is not None and day < start_date:
                continue
            if end_date is not None and day > end_date:
                continue
            result.append(txn)
        return result

    def normalize_signs(self) -> int:
        """Rewrite stored amounts whose sign disagrees with their direction marker.

        Safe to run repeatedly: a second run finds nothing to change.

        Returns:
            Number of transactions corrected
        """
        corrected = 0
        for txn in self.db.list_transactions():
            amount = normalize_amount(txn.amount, sign_hint_texts(txn))
            if amount != txn.amount:
                self.db.update_transaction_amount(txn.id, amount)
                corrected += 1
        if corrected:
            logger.info("Corrected the sign of %d transactions", corrected)
        return corrected
