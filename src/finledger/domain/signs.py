"""Amount polarity normalization from explicit direction markers.

Some sources write the direction into the type text as a bracketed prefix,
e.g. ``"[-] 결제"`` or ``"[+] 충전"``, while storing an unsigned amount. The
marker is authoritative: the amount keeps its magnitude and takes the
marker's sign. Without a marker the amount is left alone, so applying the
rule any number of times gives the same result as applying it once.
"""

import re
from dataclasses import replace
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from finledger.domain.entities import Transaction

SIGN_HINT_RAW_FIELDS = ("거래구분", "거래 구분", "구분")

_MARKER = re.compile(r"^\s*\[\s*([+-])")


def extract_sign_hint(text: Optional[str]) -> Optional[int]:
    """Return +1 or -1 for a leading ``[+``/``[-`` marker, else None."""
    if not text:
        return None
    match = _MARKER.match(str(text))
    if match is None:
        return None
    return 1 if match.group(1) == "+" else -1


def hint_texts(
    transaction_type: Optional[str], raw: Mapping[str, Any]
) -> list[Optional[str]]:
    """Classification texts in the order they are consulted."""
    texts: list[Optional[str]] = [transaction_type]
    for field_name in SIGN_HINT_RAW_FIELDS:
        value = raw.get(field_name)
        texts.append(value if isinstance(value, str) else None)
    return texts


def sign_hint_texts(transaction: Transaction) -> list[Optional[str]]:
    return hint_texts(transaction.transaction_type, transaction.raw)


def normalize_amount(amount: Decimal, hint_texts: Iterable[Optional[str]]) -> Decimal:
    """Apply the first direction marker found in hint_texts to amount."""
    for text in hint_texts:
        hint = extract_sign_hint(text)
        if hint is None:
            continue
        if amount == 0:
            return amount
        if (amount > 0) != (hint > 0):
            return abs(amount) * hint
        return amount
    return amount


def normalize_transaction(transaction: Transaction) -> Transaction:
    """Return the transaction with its amount sign agreeing with its markers."""
    amount = normalize_amount(transaction.amount, sign_hint_texts(transaction))
    if amount == transaction.amount:
        return transaction
    return replace(transaction, amount=amount)
