"""Partition transactions by owning client."""

from collections import defaultdict
from collections.abc import Iterable

from .models import TransactionRecord


def group_by_client(
    transactions: Iterable[TransactionRecord],
) -> dict[str, list[TransactionRecord]]:
    """Group transactions by ClientID, keeping input order within each group.

    Transactions without a ClientID are orphaned and left out.
    """
    groups: dict[str, list[TransactionRecord]] = defaultdict(list)
    for tx in transactions:
        if not tx.client_id:
            continue
        groups[tx.client_id].append(tx)
    return dict(groups)


def count_orphans(transactions: Iterable[TransactionRecord]) -> int:
    return sum(1 for tx in transactions if not tx.client_id)
