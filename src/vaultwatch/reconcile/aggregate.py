"""Deduplication, ordering and totals for classified transfers."""

from collections.abc import Iterable
from decimal import Decimal

from vaultwatch.models import ClassifiedTransfer, TransferDirection


def dedupe_transfers(transfers: Iterable[ClassifiedTransfer]) -> list[ClassifiedTransfer]:
    """Collapse transfers sharing a signature and sort newest first.

    Later duplicates replace earlier ones; classification is a pure function
    of the transaction, so duplicates are identical anyway. A missing
    block_time sorts as the oldest.
    """
    by_signature = {t.signature: t for t in transfers}
    return sorted(
        by_signature.values(),
        key=lambda t: t.block_time if t.block_time is not None else -1,
        reverse=True,
    )


def total_sent_to(transfers: Iterable[ClassifiedTransfer], vault_address: str) -> Decimal:
    """Sum the amounts of all sent transfers whose destination is the vault."""
    return sum(
        (
            t.amount
            for t in transfers
            if t.direction == TransferDirection.SENT and t.to_address == vault_address
        ),
        Decimal("0"),
    )
