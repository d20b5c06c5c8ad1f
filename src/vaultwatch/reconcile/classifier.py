"""Balance-delta classification of wallet/vault transfers.

A transaction carries no explicit "transfer" event we can rely on, only the
token balances of each account index before and after execution. A
transaction is a direct transfer between the two holding accounts when one
side loses and the other gains, and the two deltas (nearly) cancel out:

    sent:      wallet_delta < -epsilon  and  vault_delta > epsilon
    received:  vault_delta < -epsilon   and  wallet_delta > epsilon
    both:      abs(wallet_delta + vault_delta) < net_tolerance

epsilon filters dust and net_tolerance absorbs UI-amount rounding. Any
other balance movement (swaps, fees, one-sided changes) is not classified.
"""

import time
from decimal import Decimal

from vaultwatch.config import ReconcileSettings
from vaultwatch.logging import get_logger
from vaultwatch.models import (
    ClassifiedTransfer,
    HoldingPair,
    SignatureRecord,
    TokenBalance,
    TransactionDetail,
    TransferDirection,
)

logger = get_logger(__name__)


def _balance_at(
    balances: tuple[TokenBalance, ...], index: int, mint: str
) -> Decimal:
    """First balance entry for (index, mint), or zero if the account held none."""
    for balance in balances:
        if balance.account_index == index and balance.mint == mint:
            return balance.ui_amount
    return Decimal("0")


class TransferClassifier:
    """Classifies transaction details as wallet-to-vault or vault-to-wallet transfers.

    Classification is a pure function of (holding pair, signature record,
    transaction detail); the same input always yields the same result.

    Args:
        settings: Reconcile settings providing balance_epsilon and net_tolerance.
    """

    def __init__(self, settings: ReconcileSettings) -> None:
        self._epsilon = settings.balance_epsilon
        self._tolerance = settings.net_tolerance

    def deltas(
        self, holdings: HoldingPair, detail: TransactionDetail
    ) -> tuple[Decimal, Decimal] | None:
        """Return (wallet_delta, vault_delta), or None if either account is absent."""
        if not holdings.is_complete:
            return None

        keys = detail.account_keys
        if holdings.wallet_account not in keys or holdings.vault_account not in keys:
            return None

        mint = holdings.pair.asset_mint
        wallet_index = keys.index(holdings.wallet_account)
        vault_index = keys.index(holdings.vault_account)

        wallet_delta = _balance_at(
            detail.post_token_balances, wallet_index, mint
        ) - _balance_at(detail.pre_token_balances, wallet_index, mint)
        vault_delta = _balance_at(
            detail.post_token_balances, vault_index, mint
        ) - _balance_at(detail.pre_token_balances, vault_index, mint)
        return wallet_delta, vault_delta

    def classify(
        self,
        holdings: HoldingPair,
        record: SignatureRecord,
        detail: TransactionDetail,
        captured_at: float | None = None,
    ) -> ClassifiedTransfer | None:
        """Classify one transaction.

        Args:
            holdings: Resolved wallet and vault holding accounts.
            record: Signature record supplying the block time.
            detail: Fetched transaction detail.
            captured_at: Timestamp used when the block time is unknown;
                defaults to now.

        Returns:
            A single ClassifiedTransfer, or None if the transaction is not a
            direct transfer between the two holding accounts.
        """
        deltas = self.deltas(holdings, detail)
        if deltas is None:
            return None
        wallet_delta, vault_delta = deltas

        if abs(wallet_delta + vault_delta) >= self._tolerance:
            if wallet_delta or vault_delta:
                logger.debug(
                    "transfer_deltas_do_not_cancel",
                    signature=record.signature,
                    wallet_delta=str(wallet_delta),
                    vault_delta=str(vault_delta),
                )
            return None

        pair = holdings.pair
        if wallet_delta < -self._epsilon and vault_delta > self._epsilon:
            direction = TransferDirection.SENT
            amount = abs(wallet_delta)
            from_address, to_address = pair.wallet_address, pair.vault_address
        elif vault_delta < -self._epsilon and wallet_delta > self._epsilon:
            direction = TransferDirection.RECEIVED
            amount = abs(vault_delta)
            from_address, to_address = pair.vault_address, pair.wallet_address
        else:
            return None

        if record.block_time is not None:
            timestamp = float(record.block_time)
        else:
            timestamp = captured_at if captured_at is not None else time.time()

        return ClassifiedTransfer(
            signature=record.signature,
            timestamp=timestamp,
            block_time=record.block_time,
            direction=direction,
            amount=amount,
            from_address=from_address,
            to_address=to_address,
        )
