"""Wallet holdings: native balance and SPL token positions for the dashboard.

LP detection is membership in a static set of known LP token mints. Decoding
concentrated-liquidity position NFTs (pool accounts, tick ranges) is out of
scope; such positions show up as ordinary zero-decimal token holdings.
"""

import asyncio

from vaultwatch.ledger.client import LedgerClient
from vaultwatch.ledger.types import TOKEN_PROGRAM_ID, lamports_to_sol, validate_address
from vaultwatch.logging import get_logger
from vaultwatch.models import NativeBalance, PortfolioSnapshot, TokenAccount, TokenHolding
from vaultwatch.portfolio.metadata import TokenMetadataService

logger = get_logger(__name__)

KNOWN_LP_MINTS: frozenset[str] = frozenset({
    "7qbRF6YsyGuLUVs6Y1q64bdVrfe4ZcUUz1JRdoVNUJnm",  # ORCA-SOL
    "2QdhepnKRTLjjSqPL1PtKNwqrUkoLee5Gqs8bvZhRdMv",  # ORCA-USDC
    "4DoNfFBfF7UokCC2FQzriy7yHK6DY6NVdYpuekQ5pRgg",  # SOL-USDC
    "HJPjoWUrhoZzkNfRpHuieeFk9WcZWjwy6PBjZ81ngndJ",  # RAY-SOL
    "6UmmUiYoBjSrhakAobJw8BvkmJtDVxaeBtbt7rxWo1mg",  # RAY-USDC
})


class PortfolioService:
    """Reads a wallet's balances and token holdings.

    Args:
        ledger: Ledger data source.
        metadata: Token metadata service used to enrich non-LP tokens.
        program_id: Token program whose accounts are listed.
        lp_mints: Mints treated as liquidity-pool tokens.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        metadata: TokenMetadataService,
        program_id: str = TOKEN_PROGRAM_ID,
        lp_mints: frozenset[str] = KNOWN_LP_MINTS,
    ) -> None:
        self._ledger = ledger
        self._metadata = metadata
        self._program_id = program_id
        self._lp_mints = lp_mints

    async def get_native_balance(self, address: str) -> NativeBalance:
        """Return the SOL balance of an address.

        Raises:
            InvalidAddressError: If the address is not a valid public key.
            LedgerRpcError: If the RPC call fails.
        """
        validate_address(address)
        lamports = await self._ledger.get_balance(address)
        return NativeBalance(address=address, lamports=lamports, sol=lamports_to_sol(lamports))

    async def _enrich(self, account: TokenAccount) -> TokenHolding:
        info = await self._metadata.get_token_info(account.mint)
        return TokenHolding(account=account, token_info=info)

    async def get_positions(self, address: str) -> PortfolioSnapshot:
        """List non-empty token holdings, split into LP positions and regular tokens.

        Regular tokens are enriched with metadata concurrently and
        deduplicated by mint, keeping the enriched entry when one exists.

        Raises:
            InvalidAddressError: If the address is not a valid public key.
            LedgerRpcError: If the token accounts cannot be fetched.
        """
        validate_address(address)
        accounts = await self._ledger.get_token_accounts_by_owner(address, self._program_id)
        funded = [a for a in accounts if a.ui_amount > 0]

        liquidity_positions = [
            TokenHolding(account=a, is_liquidity_pool=True)
            for a in funded
            if a.mint in self._lp_mints
        ]
        regular = [a for a in funded if a.mint not in self._lp_mints]
        enriched = await asyncio.gather(*(self._enrich(a) for a in regular))

        by_mint: dict[str, TokenHolding] = {}
        for holding in enriched:
            existing = by_mint.get(holding.account.mint)
            if existing is None or (existing.token_info is None and holding.token_info):
                by_mint[holding.account.mint] = holding

        if liquidity_positions:
            message = f"Found {len(liquidity_positions)} liquidity pool positions."
        else:
            message = (
                "No liquidity pool positions found. LP tokens may not be in the "
                "known list, or the wallet has no LP positions."
            )

        snapshot = PortfolioSnapshot(
            address=address,
            liquidity_positions=liquidity_positions,
            regular_tokens=list(by_mint.values()),
            message=message,
        )
        logger.info(
            "positions_loaded",
            address=address,
            token_accounts=len(accounts),
            funded=len(funded),
            liquidity_positions=len(liquidity_positions),
            regular_tokens=len(snapshot.regular_tokens),
            enriched=sum(1 for h in snapshot.regular_tokens if h.token_info),
        )
        return snapshot
