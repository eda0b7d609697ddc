"""Internal transfer matching between owned asset channels.

An outbound asset transaction and an inbound asset transaction on a different
channel form a candidate pair when the magnitudes are equal and the
timestamps are at most the transfer window apart. Each outbound leg ranks its
candidates by (time gap, inbound id) and each inbound leg ranks its own by
(time gap, outbound id). A pair is accepted only when both legs rank each
other first. Selection runs once over the full candidate set, so a leg whose
nearest partner prefers someone else stays unmatched.
"""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Mapping

from finledger.domain.entities import (
    ChannelClassification,
    ReportingRole,
    Transaction,
    TransferPair,
)

logger = logging.getLogger(__name__)


def asset_cash_transactions(
    transactions: Iterable[Transaction],
    classifications: Mapping[int, ChannelClassification],
) -> list[Transaction]:
    """Dated transactions on channels whose reporting role is asset."""
    result = []
    for txn in transactions:
        if txn.occurred_at is None or txn.channel_id is None:
            continue
        classification = classifications.get(txn.channel_id)
        if classification is not None and classification.role == ReportingRole.ASSET:
            result.append(txn)
    return result


def _gap_seconds(outbound: Transaction, inbound: Transaction) -> int:
    delta = inbound.occurred_at - outbound.occurred_at
    return abs(int(delta.total_seconds()))


def find_transfer_candidates(
    transactions: Iterable[Transaction], window_seconds: int
) -> list[TransferPair]:
    """Build every candidate edge between outbound and inbound legs.

    Args:
        transactions: Dated asset transactions
        window_seconds: Maximum inclusive time gap between legs

    Returns:
        Candidate pairs sorted by (time gap, out_id, in_id)
    """
    inbound_by_amount: dict[Decimal, list[Transaction]] = defaultdict(list)
    outbound: list[Transaction] = []
    for txn in transactions:
        if txn.amount > 0:
            inbound_by_amount[txn.amount].append(txn)
        elif txn.amount < 0:
            outbound.append(txn)

    candidates = []
    for out_txn in outbound:
        for in_txn in inbound_by_amount.get(-out_txn.amount, ()):
            if in_txn.channel_id == out_txn.channel_id:
                continue
            gap = _gap_seconds(out_txn, in_txn)
            if gap > window_seconds:
                continue
            candidates.append(
                TransferPair(
                    out_id=out_txn.id,
                    in_id=in_txn.id,
                    out_channel_id=out_txn.channel_id,
                    in_channel_id=in_txn.channel_id,
                    amount=in_txn.amount,
                    time_gap_seconds=gap,
                )
            )

    candidates.sort(key=lambda pair: (pair.time_gap_seconds, pair.out_id, pair.in_id))
    return candidates


def match_internal_transfers(
    transactions: Iterable[Transaction],
    classifications: Mapping[int, ChannelClassification],
    window_seconds: int = 900,
) -> list[TransferPair]:
    """Pair self-transfers between owned asset channels.

    Args:
        transactions: Full transaction set; non-asset and undated rows are ignored
        classifications: Channel classifications keyed by channel ID
        window_seconds: Proximity window in seconds (inclusive)

    Returns:
        Matched pairs ordered by outbound transaction ID
    """
    candidates = find_transfer_candidates(
        asset_cash_transactions(transactions, classifications), window_seconds
    )

    nearest_inbound: dict[int, TransferPair] = {}
    nearest_outbound: dict[int, TransferPair] = {}
    for candidate in candidates:
        best = nearest_inbound.get(candidate.out_id)
        if best is None or (candidate.time_gap_seconds, candidate.in_id) < (
            best.time_gap_seconds,
            best.in_id,
        ):
            nearest_inbound[candidate.out_id] = candidate
        best = nearest_outbound.get(candidate.in_id)
        if best is None or (candidate.time_gap_seconds, candidate.out_id) < (
            best.time_gap_seconds,
            best.out_id,
        ):
            nearest_outbound[candidate.in_id] = candidate

    pairs = [
        candidate
        for out_id, candidate in nearest_inbound.items()
        if nearest_outbound[candidate.in_id].out_id == out_id
    ]

    logger.debug(
        "Matched %d internal transfer pairs from %d candidates",
        len(pairs),
        len(candidates),
    )
    return sorted(pairs, key=lambda pair: pair.out_id)


def matched_transaction_ids(pairs: Iterable[TransferPair]) -> set[int]:
    """IDs of every transaction that is a leg of a matched pair."""
    ids: set[int] = set()
    for pair in pairs:
        ids.add(pair.out_id)
        ids.add(pair.in_id)
    return ids


def external_asset_transactions(
    transactions: Iterable[Transaction],
    classifications: Mapping[int, ChannelClassification],
    pairs: Iterable[TransferPair],
) -> list[Transaction]:
    """Dated asset transactions that are not part of a matched transfer."""
    internal_ids = matched_transaction_ids(pairs)
    return [
        txn
        for txn in asset_cash_transactions(transactions, classifications)
        if txn.id not in internal_ids
    ]
