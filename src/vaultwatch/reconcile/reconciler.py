"""TransferReconciler -- wallet/vault transfer ledger for a single asset.

Pipeline for one request:
1. Validate both addresses (no network call on bad input)
2. Resolve both holding accounts concurrently
3. Short-circuit when either holding account is missing
4. Scan both accounts' recent history concurrently under one deadline,
   sharing a seen-set so each signature is fetched once
5. Classify each fetched transaction by balance deltas
6. Deduplicate by signature, order newest first, total the vault inflows

Only missing/invalid addresses and upstream failures during account
discovery abort a reconciliation; everything after that degrades to
partial results.
"""

import asyncio
import time

import structlog

from vaultwatch.config import ReconcileSettings
from vaultwatch.exceptions import MissingParameterError
from vaultwatch.ledger.client import LedgerClient
from vaultwatch.ledger.types import USDC_MINT, validate_address
from vaultwatch.logging import get_logger
from vaultwatch.models import (
    AccountPair,
    ClassifiedTransfer,
    HoldingPair,
    ReconciliationResult,
)
from vaultwatch.reconcile.aggregate import dedupe_transfers, total_sent_to
from vaultwatch.reconcile.classifier import TransferClassifier
from vaultwatch.reconcile.discovery import find_holding_account
from vaultwatch.reconcile.history import HistoryScanner

logger = get_logger(__name__)


class TransferReconciler:
    """Reconstructs transfers between a wallet and a vault from on-chain history.

    Args:
        ledger: Ledger data source.
        settings: Asset, page size, deadline and tolerance settings.
    """

    def __init__(self, ledger: LedgerClient, settings: ReconcileSettings) -> None:
        self._ledger = ledger
        self._settings = settings
        self._classifier = TransferClassifier(settings)

    @property
    def asset_label(self) -> str:
        return "USDC" if self._settings.asset_mint == USDC_MINT else self._settings.asset_mint

    async def discover(self, pair: AccountPair) -> HoldingPair:
        """Resolve the wallet's and the vault's holding accounts concurrently."""
        wallet_account, vault_account = await asyncio.gather(
            find_holding_account(
                self._ledger,
                pair.wallet_address,
                self._settings.token_program_id,
                pair.asset_mint,
            ),
            find_holding_account(
                self._ledger,
                pair.vault_address,
                self._settings.token_program_id,
                pair.asset_mint,
            ),
        )
        return HoldingPair(
            pair=pair,
            wallet_account=wallet_account,
            vault_account=vault_account,
        )

    async def reconcile(
        self, wallet_address: str | None, vault_address: str | None
    ) -> ReconciliationResult:
        """Build the transfer ledger between a wallet and a vault.

        Raises:
            MissingParameterError: If either address is missing.
            InvalidAddressError: If either address is not a valid public key.
            LedgerRpcError: If holding-account discovery fails upstream.
        """
        if not wallet_address or not vault_address:
            raise MissingParameterError("Missing walletAddress or vaultAddress")
        validate_address(wallet_address)
        validate_address(vault_address)

        pair = AccountPair(
            wallet_address=wallet_address,
            vault_address=vault_address,
            asset_mint=self._settings.asset_mint,
        )

        with structlog.contextvars.bound_contextvars(
            wallet=wallet_address, vault=vault_address
        ):
            holdings = await self.discover(pair)
            if not holdings.is_complete:
                return self._missing_accounts_result(holdings)
            return await self._reconcile_history(holdings)

    async def _reconcile_history(self, holdings: HoldingPair) -> ReconciliationResult:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._settings.detail_fetch_timeout
        scanner = HistoryScanner(self._ledger, self._settings.signature_page_size)

        wallet_scan, vault_scan = await asyncio.gather(
            scanner.scan(holdings.wallet_account, deadline),
            scanner.scan(holdings.vault_account, deadline),
        )

        captured_at = time.time()
        classified: list[ClassifiedTransfer] = []
        for scan in (wallet_scan, vault_scan):
            for record, detail in scan.fetched:
                transfer = self._classifier.classify(
                    holdings, record, detail, captured_at=captured_at
                )
                if transfer is not None:
                    classified.append(transfer)

        transfers = dedupe_transfers(classified)
        result = ReconciliationResult(
            transfers=transfers,
            total_sent_to_vault=total_sent_to(transfers, holdings.pair.vault_address),
            wallet_account=holdings.wallet_account,
            vault_account=holdings.vault_account,
            partial=wallet_scan.timed_out or vault_scan.timed_out,
        )
        if not transfers:
            result.message = (
                f"No {self.asset_label} transfers between wallet and vault "
                "found in recent history"
            )

        logger.info(
            "transfers_reconciled",
            signatures=len(scanner.seen),
            classified=len(classified),
            transfers=result.count,
            total_sent_to_vault=str(result.total_sent_to_vault),
            partial=result.partial,
        )
        return result

    def _missing_accounts_result(self, holdings: HoldingPair) -> ReconciliationResult:
        """Empty result without any history fetches: no transfer can ever classify."""
        if holdings.wallet_account is None and holdings.vault_account is None:
            missing = "wallet or vault"
        elif holdings.wallet_account is None:
            missing = "wallet"
        else:
            missing = "vault"

        logger.info(
            "reconcile_short_circuited",
            wallet_account=holdings.wallet_account,
            vault_account=holdings.vault_account,
        )
        return ReconciliationResult(
            wallet_account=holdings.wallet_account,
            vault_account=holdings.vault_account,
            message=f"No {self.asset_label} token account found for {missing}",
        )
