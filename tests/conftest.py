"""Shared test fixtures for the vaultwatch dashboard backend."""

from decimal import Decimal

import pytest

from vaultwatch.config import ReconcileSettings
from vaultwatch.ledger.types import USDC_MINT
from vaultwatch.models import AccountPair, HoldingPair, TokenBalance, TransactionDetail

# Real base58 public keys so address validation passes
WALLET_ADDRESS = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
VAULT_ADDRESS = "4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T"

# Token accounts only ever appear inside account keys, never validated
WALLET_USDC_ACCOUNT = "WalletUsdcTokenAccount"
VAULT_USDC_ACCOUNT = "VaultUsdcTokenAccount"
FEE_PAYER = "FeePayerAccount"


@pytest.fixture
def reconcile_settings() -> ReconcileSettings:
    """ReconcileSettings with the documented default tolerances and a short deadline."""
    return ReconcileSettings(
        signature_page_size=100,
        detail_fetch_timeout=5.0,
        balance_epsilon=Decimal("0.000001"),
        net_tolerance=Decimal("0.01"),
    )


@pytest.fixture
def account_pair() -> AccountPair:
    return AccountPair(
        wallet_address=WALLET_ADDRESS,
        vault_address=VAULT_ADDRESS,
        asset_mint=USDC_MINT,
    )


@pytest.fixture
def holdings(account_pair: AccountPair) -> HoldingPair:
    """Both holding accounts resolved."""
    return HoldingPair(
        pair=account_pair,
        wallet_account=WALLET_USDC_ACCOUNT,
        vault_account=VAULT_USDC_ACCOUNT,
    )


@pytest.fixture
def make_transfer_detail():
    """Factory for a transaction touching the fee payer, wallet and vault accounts.

    Balances are given as (pre, post) UI amounts; None means the account had
    no token balance entry on that side.
    """

    def _make(
        signature: str,
        wallet: tuple[str | None, str | None],
        vault: tuple[str | None, str | None],
        mint: str = USDC_MINT,
    ) -> TransactionDetail:
        keys = (FEE_PAYER, WALLET_USDC_ACCOUNT, VAULT_USDC_ACCOUNT)
        pre: list[TokenBalance] = []
        post: list[TokenBalance] = []
        for index, (before, after) in ((1, wallet), (2, vault)):
            if before is not None:
                pre.append(TokenBalance(account_index=index, mint=mint, ui_amount=Decimal(before)))
            if after is not None:
                post.append(TokenBalance(account_index=index, mint=mint, ui_amount=Decimal(after)))
        return TransactionDetail(
            signature=signature,
            account_keys=keys,
            pre_token_balances=tuple(pre),
            post_token_balances=tuple(post),
        )

    return _make
