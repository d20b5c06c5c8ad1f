"""Tests for TransferReconciler end to end against a mocked ledger.

Scenario used throughout: wallet W and vault V each own one USDC token
account. sig1 moves 10 USDC W -> V, sig2 moves 5 USDC V -> W, and sig3 is
an unrelated swap touching only the wallet.
"""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from vaultwatch.config import ReconcileSettings
from vaultwatch.exceptions import InvalidAddressError, LedgerRpcError, MissingParameterError
from vaultwatch.ledger.types import USDC_MINT
from vaultwatch.models import (
    SignatureRecord,
    TokenAccount,
    TokenBalance,
    TransactionDetail,
    TransferDirection,
)
from vaultwatch.reconcile.reconciler import TransferReconciler

WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
VAULT = "4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T"
W = "WalletUsdcTokenAccount"
V = "VaultUsdcTokenAccount"


def _token_account(address: str, owner: str) -> TokenAccount:
    return TokenAccount(
        address=address, mint=USDC_MINT, owner=owner,
        amount="0", decimals=6, ui_amount=Decimal("0"),
    )


def _detail(signature: str, keys: tuple[str, ...], pre: dict, post: dict) -> TransactionDetail:
    def balances(values: dict) -> tuple[TokenBalance, ...]:
        return tuple(
            TokenBalance(account_index=keys.index(k), mint=USDC_MINT, ui_amount=Decimal(v))
            for k, v in values.items()
        )

    return TransactionDetail(
        signature=signature,
        account_keys=keys,
        pre_token_balances=balances(pre),
        post_token_balances=balances(post),
    )


DETAILS = {
    "sig1": _detail("sig1", ("Payer", W, V), {W: "100", V: "50"}, {W: "90", V: "60"}),
    "sig2": _detail("sig2", ("Payer", V, W), {W: "90", V: "60"}, {W: "95", V: "55"}),
    "sig3": _detail("sig3", ("Payer", W, "Pool"), {W: "95", "Pool": "1000"}, {W: "80", "Pool": "1015"}),
}

HISTORY = {
    W: [
        SignatureRecord("sig3", 1_700_000_300),
        SignatureRecord("sig2", 1_700_000_200),
        SignatureRecord("sig1", 1_700_000_100),
    ],
    V: [
        SignatureRecord("sig2", 1_700_000_200),
        SignatureRecord("sig1", 1_700_000_100),
    ],
}


@pytest.fixture
def ledger() -> AsyncMock:
    """Ledger mock serving the W/V scenario."""
    owners = {WALLET: [_token_account(W, WALLET)], VAULT: [_token_account(V, VAULT)]}

    ledger = AsyncMock()
    ledger.get_token_accounts_by_owner = AsyncMock(
        side_effect=lambda owner, program_id: owners[owner]
    )
    ledger.get_signatures_for_address = AsyncMock(
        side_effect=lambda address, limit: HISTORY[address][:limit]
    )
    ledger.get_transaction = AsyncMock(side_effect=lambda sig: DETAILS.get(sig))
    return ledger


@pytest.fixture
def reconciler(ledger: AsyncMock, reconcile_settings: ReconcileSettings) -> TransferReconciler:
    return TransferReconciler(ledger, reconcile_settings)


class TestEndToEnd:
    """Full pipeline on the W/V scenario."""

    @pytest.mark.asyncio
    async def test_sent_and_received_newest_first(self, reconciler) -> None:
        result = await reconciler.reconcile(WALLET, VAULT)

        assert [t.signature for t in result.transfers] == ["sig2", "sig1"]
        received, sent = result.transfers
        assert received.direction == TransferDirection.RECEIVED
        assert received.amount == Decimal("5")
        assert received.from_address == VAULT
        assert received.to_address == WALLET
        assert sent.direction == TransferDirection.SENT
        assert sent.amount == Decimal("10")
        assert sent.from_address == WALLET
        assert sent.to_address == VAULT
        assert result.total_sent_to_vault == Decimal("10")
        assert result.count == 2
        assert result.partial is False
        assert result.message is None

    @pytest.mark.asyncio
    async def test_resolved_accounts_reported(self, reconciler) -> None:
        result = await reconciler.reconcile(WALLET, VAULT)
        assert result.wallet_account == W
        assert result.vault_account == V

    @pytest.mark.asyncio
    async def test_each_signature_fetched_once(self, reconciler, ledger) -> None:
        await reconciler.reconcile(WALLET, VAULT)

        fetched = [call.args[0] for call in ledger.get_transaction.await_args_list]
        assert sorted(fetched) == ["sig1", "sig2", "sig3"]

    @pytest.mark.asyncio
    async def test_no_qualifying_transfers_has_message(self, reconciler, ledger) -> None:
        ledger.get_transaction = AsyncMock(side_effect=lambda sig: DETAILS["sig3"])

        result = await reconciler.reconcile(WALLET, VAULT)

        assert result.transfers == []
        assert result.total_sent_to_vault == Decimal("0")
        assert result.message is not None

    @pytest.mark.asyncio
    async def test_partial_flag_on_deadline(self, ledger) -> None:
        async def _get(sig: str) -> TransactionDetail | None:
            if sig == "sig2":
                await asyncio.sleep(10)
            return DETAILS.get(sig)

        ledger.get_transaction = AsyncMock(side_effect=_get)
        settings = ReconcileSettings(detail_fetch_timeout=0.2)
        result = await TransferReconciler(ledger, settings).reconcile(WALLET, VAULT)

        assert result.partial is True
        assert [t.signature for t in result.transfers] == ["sig1"]
        assert result.total_sent_to_vault == Decimal("10")


class TestShortCircuit:
    """Missing holding accounts skip history discovery entirely."""

    @pytest.mark.asyncio
    async def test_vault_without_usdc_account(self, reconciler, ledger) -> None:
        ledger.get_token_accounts_by_owner = AsyncMock(
            side_effect=lambda owner, program_id: (
                [_token_account(W, WALLET)] if owner == WALLET else []
            )
        )

        result = await reconciler.reconcile(WALLET, VAULT)

        assert result.transfers == []
        assert result.total_sent_to_vault == Decimal("0")
        assert result.wallet_account == W
        assert result.vault_account is None
        assert "vault" in result.message
        ledger.get_signatures_for_address.assert_not_called()
        ledger.get_transaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_neither_has_usdc_account(self, reconciler, ledger) -> None:
        ledger.get_token_accounts_by_owner = AsyncMock(return_value=[])

        result = await reconciler.reconcile(WALLET, VAULT)

        assert result.count == 0
        assert result.message == "No USDC token account found for wallet or vault"
        ledger.get_signatures_for_address.assert_not_called()


class TestInputErrors:
    """Top-level failures that abort the request."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("wallet,vault", [(None, VAULT), (WALLET, None), ("", VAULT)])
    async def test_missing_address(self, reconciler, ledger, wallet, vault) -> None:
        with pytest.raises(MissingParameterError):
            await reconciler.reconcile(wallet, vault)
        ledger.get_token_accounts_by_owner.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_address(self, reconciler, ledger) -> None:
        with pytest.raises(InvalidAddressError):
            await reconciler.reconcile(WALLET, "0OIl-not-base58")
        ledger.get_token_accounts_by_owner.assert_not_called()

    @pytest.mark.asyncio
    async def test_discovery_failure_propagates(self, reconciler, ledger) -> None:
        ledger.get_token_accounts_by_owner = AsyncMock(
            side_effect=LedgerRpcError("getParsedTokenAccountsByOwner", "down", 503)
        )
        with pytest.raises(LedgerRpcError):
            await reconciler.reconcile(WALLET, VAULT)
