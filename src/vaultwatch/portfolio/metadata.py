"""Token metadata and price lookup for dashboard enrichment.

Best effort only: every provider failure is logged and the next source is
tried. Lookup order for a mint:
1. CoinGecko contract endpoint (symbol, name, USD price, image)
2. SolanaFM token endpoint (symbol, name, image; no price)
3. Built-in table of common Solana tokens

Results from the remote providers are cached in memory per mint with a
configurable TTL, since symbols and names practically never change and the
free CoinGecko tier is heavily rate-limited. Expired entries are dropped on
read; the cache is capped at cache_max_entries, evicting expired and then
oldest entries first.
"""

from __future__ import annotations

import time
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

import httpx

from vaultwatch.logging import get_logger
from vaultwatch.models import TokenInfo

if TYPE_CHECKING:
    from vaultwatch.config import MetadataSettings

logger = get_logger(__name__)

_LOGO_BASE = "https://raw.githubusercontent.com/solana-labs/token-list/main/assets/mainnet"

COMMON_TOKENS: dict[str, tuple[str, str]] = {
    "So11111111111111111111111111111111111111112": ("SOL", "Solana"),
    "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v": ("USDC", "USD Coin"),
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": ("USDT", "Tether USD"),
    "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263": ("BONK", "Bonk"),
    "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So": ("mSOL", "Marinade SOL"),
    "7vfCXTUXx5WJV5JADk17DUJ4ksgau7utNKj4b963voxs": ("ETH", "Ether"),
    "A9mUU4qviSctJVPJdBJWkb28deg915LYJKrzQ19ji3FM": ("USDCet", "USD Coin (Wormhole)"),
    "5XZw2LKTyrfvfiskJ78AMpackRjPcyCif1WhUsPDuVqQ": ("WBTC", "Wrapped Bitcoin"),
    "4qQeZ5LwSz6HuupUu8jCtgXyW1mYQcNbFAW1sWZp89HL": ("CAKE", "PancakeSwap"),
}


def _to_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def common_token_info(mint: str) -> TokenInfo | None:
    """Return TokenInfo from the built-in table, or None for unknown mints."""
    entry = COMMON_TOKENS.get(mint)
    if entry is None:
        return None
    symbol, name = entry
    return TokenInfo(symbol=symbol, name=name, image=f"{_LOGO_BASE}/{mint}/logo.png")


class TokenMetadataService:
    """Looks up token symbol, name and USD price by mint address.

    Args:
        settings: Provider URLs, optional CoinGecko key, timeout and cache TTL.
        transport: Optional httpx transport (tests inject httpx.MockTransport).
    """

    def __init__(
        self,
        settings: MetadataSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._cache: dict[str, TokenInfo] = {}

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._settings.request_timeout,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _is_fresh(self, info: TokenInfo) -> bool:
        return time.time() - info.fetched_at < self._settings.cache_ttl_seconds

    def _remember(self, mint: str, info: TokenInfo) -> None:
        """Cache a lookup, evicting expired entries and then the oldest when full."""
        if len(self._cache) >= self._settings.cache_max_entries:
            for stale in [m for m, i in self._cache.items() if not self._is_fresh(i)]:
                del self._cache[stale]
        while len(self._cache) >= self._settings.cache_max_entries:
            del self._cache[next(iter(self._cache))]
        self._cache[mint] = info

    async def _get_json(self, url: str, params: dict | None = None) -> Any | None:
        """GET a JSON document; None on any transport, status or decode failure."""
        if self._client is None:
            await self.connect()
        assert self._client is not None

        params = dict(params or {})
        api_key = self._settings.coingecko_api_key.get_secret_value()
        if api_key and url.startswith(self._settings.coingecko_base_url):
            params["x_cg_demo_api_key"] = api_key

        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            logger.warning("metadata_request_failed", url=url, error=str(exc))
            return None
        if not response.is_success:
            logger.debug("metadata_request_rejected", url=url, status=response.status_code)
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning("metadata_invalid_json", url=url)
            return None

    async def _from_coingecko(self, mint: str) -> TokenInfo | None:
        data = await self._get_json(
            f"{self._settings.coingecko_base_url}/coins/solana/contract/{mint}"
        )
        if not isinstance(data, dict) or not data.get("symbol") or not data.get("name"):
            return None
        market_data = data.get("market_data") or {}
        image = data.get("image") or {}
        return TokenInfo(
            symbol=str(data["symbol"]).upper(),
            name=str(data["name"]),
            price_usd=_to_decimal((market_data.get("current_price") or {}).get("usd")),
            image=image.get("small") or image.get("thumb"),
        )

    async def _from_solanafm(self, mint: str) -> TokenInfo | None:
        data = await self._get_json(f"{self._settings.solanafm_base_url}/tokens/{mint}")
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, dict) or not result.get("symbol"):
            return None
        return TokenInfo(
            symbol=str(result["symbol"]),
            name=str(result.get("name") or result["symbol"]),
            image=result.get("image"),
        )

    async def get_token_info(self, mint: str) -> TokenInfo | None:
        """Return metadata for a mint, or None if no source knows it. Never raises."""
        cached = self._cache.get(mint)
        if cached is not None:
            if self._is_fresh(cached):
                return cached
            del self._cache[mint]

        for source in (self._from_coingecko, self._from_solanafm):
            try:
                info = await source(mint)
            except Exception as exc:
                logger.warning(
                    "metadata_source_failed",
                    source=source.__name__,
                    mint=mint,
                    error=str(exc),
                )
                continue
            if info is not None:
                self._remember(mint, info)
                return info

        return common_token_info(mint)

    async def get_sol_price_usd(self) -> Decimal | None:
        """Return the SOL/USD spot price from CoinGecko, or None if unavailable."""
        data = await self._get_json(
            f"{self._settings.coingecko_base_url}/simple/price",
            params={"ids": "solana", "vs_currencies": "usd"},
        )
        solana = data.get("solana") if isinstance(data, dict) else None
        if not isinstance(solana, dict):
            return None
        return _to_decimal(solana.get("usd"))
