"""Tests for transfer deduplication, ordering and totals."""

from decimal import Decimal

from vaultwatch.models import ClassifiedTransfer, TransferDirection
from vaultwatch.reconcile.aggregate import dedupe_transfers, total_sent_to

WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
VAULT = "4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T"


def _transfer(
    signature: str,
    direction: TransferDirection,
    amount: str,
    block_time: int | None = 1_700_000_000,
) -> ClassifiedTransfer:
    sent = direction == TransferDirection.SENT
    return ClassifiedTransfer(
        signature=signature,
        timestamp=float(block_time or 0),
        block_time=block_time,
        direction=direction,
        amount=Decimal(amount),
        from_address=WALLET if sent else VAULT,
        to_address=VAULT if sent else WALLET,
    )


class TestDedupe:
    """Signature-keyed collapse and newest-first ordering."""

    def test_same_signature_collapses_to_one(self) -> None:
        via_wallet = _transfer("sig1", TransferDirection.SENT, "10")
        via_vault = _transfer("sig1", TransferDirection.SENT, "10")

        result = dedupe_transfers([via_wallet, via_vault])

        assert len(result) == 1
        assert result[0].signature == "sig1"

    def test_sorted_newest_first(self) -> None:
        transfers = [
            _transfer("old", TransferDirection.SENT, "1", block_time=100),
            _transfer("new", TransferDirection.SENT, "1", block_time=300),
            _transfer("mid", TransferDirection.RECEIVED, "1", block_time=200),
        ]

        result = dedupe_transfers(transfers)

        assert [t.signature for t in result] == ["new", "mid", "old"]

    def test_missing_block_time_sorts_oldest(self) -> None:
        transfers = [
            _transfer("unknown", TransferDirection.SENT, "1", block_time=None),
            _transfer("known", TransferDirection.SENT, "1", block_time=100),
        ]

        result = dedupe_transfers(transfers)

        assert [t.signature for t in result] == ["known", "unknown"]

    def test_empty(self) -> None:
        assert dedupe_transfers([]) == []


class TestTotalSent:
    """total_sent_to sums sent transfers into the vault only."""

    def test_sum_of_sent_only(self) -> None:
        transfers = [
            _transfer("a", TransferDirection.SENT, "10"),
            _transfer("b", TransferDirection.RECEIVED, "3"),
            _transfer("c", TransferDirection.SENT, "7"),
        ]
        assert total_sent_to(transfers, VAULT) == Decimal("17")

    def test_other_destination_excluded(self) -> None:
        transfers = [_transfer("a", TransferDirection.SENT, "10")]
        assert total_sent_to(transfers, WALLET) == Decimal("0")

    def test_empty_is_zero(self) -> None:
        assert total_sent_to([], VAULT) == Decimal("0")

    def test_decimal_precision_preserved(self) -> None:
        transfers = [
            _transfer("a", TransferDirection.SENT, "0.1"),
            _transfer("b", TransferDirection.SENT, "0.2"),
        ]
        assert total_sent_to(transfers, VAULT) == Decimal("0.3")
