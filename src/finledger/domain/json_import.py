"""Normalized transaction file import domain service."""

import json
import logging
import re
from datetime import tzinfo
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from dateutil import tz

from finledger.database.base import Database
from finledger.domain.channel import ChannelService
from finledger.domain.errors import DomainError, ValidationError
from finledger.domain.signs import hint_texts, normalize_amount
from finledger.domain.transaction import TransactionService
from finledger.utils.amount_parser import parse_amount, quantize_amount
from finledger.utils.date_parser import parse_timestamp

logger = logging.getLogger(__name__)

_UTC_OFFSET = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


def resolve_zone(name: Optional[str]) -> tzinfo:
    """Resolve a zone name ("Asia/Seoul") or UTC offset ("+09:00") to a tzinfo.

    Raises:
        ValidationError: If the zone is not recognised
    """
    if not name:
        return tz.UTC
    match = _UTC_OFFSET.match(name.strip())
    if match:
        sign = -1 if match.group(1) == "-" else 1
        seconds = sign * (int(match.group(2)) * 3600 + int(match.group(3)) * 60)
        return tz.tzoffset(None, seconds)
    zone = tz.gettz(name)
    if zone is None:
        raise ValidationError(f"Unknown timezone '{name}'")
    return zone


def read_payload(path: Path) -> dict:
    """Load a normalized transaction file; JSON numbers with a fraction become Decimal.

    Raises:
        ValidationError: If the file is not valid JSON or not an object
    """
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            payload = json.load(f, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {path}: {e}")
    if not isinstance(payload, dict):
        raise ValidationError(f"{path}: expected a JSON object at the top level")
    return payload


def _amount(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    if isinstance(value, (int, Decimal)):
        return quantize_amount(value)
    return parse_amount(str(value))


def _installment_months(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid installment month count '{value}'")


def channel_identity(account: dict[str, Any], fallback: str) -> tuple[str, str]:
    """Derive (external_id, display name) of the channel a payload belongs to."""
    bank = account.get("bank") or "unknown"
    identifier = account.get("number") or account.get("email") or fallback or ""
    external_id = f"{bank}:{identifier}"
    name = " ".join(
        part for part in (account.get("bank"), account.get("number") or account.get("email")) if part
    )
    if not name:
        name = account.get("holder") or "Unknown Channel"
    return external_id, name


class TransactionImportService:
    """Service for importing normalized transaction JSON files."""

    def __init__(self, db: Database):
        """Initialize import service.

        Args:
            db: Database instance
        """
        self.db = db
        self.transaction_service = TransactionService(db)
        self.channel_service = ChannelService(db)

    def import_file(
        self,
        file_path: str,
        channel_name: Optional[str] = None,
        channel_type: Optional[str] = None,
    ) -> dict[str, Any]:
        """Import transactions from a normalized JSON file.

        Args:
            file_path: Path to the JSON payload
            channel_name: Import into this channel instead of the one named by the payload
            channel_type: Type for a channel created by this import (default: payload's, then bank)

        Returns:
            Dict with import statistics:
            - imported: number of transactions imported
            - skipped: number of duplicates skipped
            - normalized: number of amounts whose sign was corrected
            - undated: number of imported records without a timestamp
            - errors: list of error messages
            - channel_id: channel the records were stored under

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValidationError: If the file is not a valid payload
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Transaction file not found: {file_path}")

        payload = read_payload(path)

        records = payload.get("records")
        if records is None:
            records = payload.get("transactions")
        if not isinstance(records, list):
            raise ValidationError(f"{file_path}: payload has no 'records' list")

        zone = resolve_zone(payload.get("timezone"))
        source_file = payload.get("sourceFile") or str(path)
        channel_id = self._resolve_channel(payload, str(path), channel_name, channel_type)

        imported = 0
        skipped = 0
        normalized = 0
        undated = 0
        errors = []

        for index, record in enumerate(records, start=1):
            if not isinstance(record, dict):
                errors.append(f"Record {index}: not an object")
                continue
            record_id = record.get("id")
            record_id = str(record_id) if record_id not in (None, "") else f"record-{index}"
            label = f"Record {index} ({record_id})"
            try:
                amount = _amount(record.get("amount"))
                if amount is None:
                    errors.append(f"{label}: Missing amount")
                    continue

                occurred_at = None
                if record.get("occurredAt"):
                    occurred_at = parse_timestamp(record["occurredAt"], default_tz=zone)

                if self.db.transaction_exists(channel_id, record_id):
                    skipped += 1
                    continue

                transaction_type = record.get("transactionType") or ""
                raw = record.get("raw") if isinstance(record.get("raw"), dict) else {}
                if normalize_amount(amount, hint_texts(transaction_type, raw)) != amount:
                    normalized += 1

                self.transaction_service.create_transaction(
                    channel_id=channel_id,
                    occurred_at=occurred_at,
                    amount=amount,
                    description=record.get("description") or "",
                    transaction_type=transaction_type,
                    record_id=record_id,
                    source_file=source_file,
                    balance=_amount(record.get("balance")),
                    installment_months=_installment_months(record.get("installmentMonths")),
                    memo=record.get("memo") or None,
                    category=record.get("category") or None,
                    tags=[str(tag) for tag in record.get("tags") or []],
                    metadata=record.get("metadata") if isinstance(record.get("metadata"), dict) else None,
                    raw=raw,
                )
                imported += 1
                if occurred_at is None:
                    undated += 1
            except (DomainError, ValueError) as e:
                errors.append(f"{label}: {e}")
                continue

        logger.info(
            "Imported %d records from %s (%d skipped, %d errors)",
            imported,
            path.name,
            skipped,
            len(errors),
        )
        if undated:
            logger.warning("%d imported records from %s have no timestamp", undated, path.name)

        return {
            "imported": imported,
            "skipped": skipped,
            "normalized": normalized,
            "undated": undated,
            "errors": errors,
            "channel_id": channel_id,
        }

    def _resolve_channel(
        self,
        payload: dict[str, Any],
        fallback: str,
        channel_name: Optional[str],
        channel_type: Optional[str],
    ) -> int:
        account = payload.get("account") if isinstance(payload.get("account"), dict) else {}
        channel_type = channel_type or account.get("channelType") or "bank"

        if channel_name:
            channel_id, created = self.channel_service.get_or_create_channel(
                channel_name, channel_type=channel_type, bank=account.get("bank")
            )
        else:
            external_id, name = channel_identity(account, fallback)
            for channel in self.channel_service.list_channels():
                if channel.external_id == external_id:
                    return channel.id
            channel_id, created = self.channel_service.get_or_create_channel(
                name,
                channel_type=channel_type,
                bank=account.get("bank"),
                external_id=external_id,
                masked_number=account.get("number"),
            )
        if created:
            logger.info("Created channel %d for %s", channel_id, fallback)
        return channel_id
