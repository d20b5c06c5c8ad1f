"""Solana JSON-RPC client implementation over httpx.

Speaks JSON-RPC 2.0 directly to a Solana RPC node (public mainnet-beta,
Helius, etc.) and converts the jsonParsed responses into vaultwatch models.
Transport, HTTP-status, JSON-RPC and malformed-payload errors are all raised
as LedgerRpcError; callers decide whether a failure is fatal for their request.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Any

import httpx

from vaultwatch.exceptions import LedgerRpcError
from vaultwatch.ledger.client import LedgerClient
from vaultwatch.ledger.types import parse_ui_amount
from vaultwatch.logging import get_logger
from vaultwatch.models import (
    SignatureRecord,
    TokenAccount,
    TokenBalance,
    TransactionDetail,
)

if TYPE_CHECKING:
    from vaultwatch.config import LedgerSettings

logger = get_logger(__name__)


def _account_key(key: Any) -> str:
    """jsonParsed account keys are objects with a pubkey; legacy ones are plain strings."""
    if isinstance(key, str):
        return key
    return str(key.get("pubkey", ""))


def _token_balances(entries: list[dict] | None) -> tuple[TokenBalance, ...]:
    return tuple(
        TokenBalance(
            account_index=int(entry["accountIndex"]),
            mint=entry.get("mint", ""),
            ui_amount=parse_ui_amount(entry.get("uiTokenAmount")),
        )
        for entry in entries or []
        if "accountIndex" in entry
    )


class SolanaRpcClient(LedgerClient):
    """Concrete ledger client for a Solana JSON-RPC endpoint."""

    def __init__(
        self,
        settings: LedgerSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._ids = itertools.count(1)

    async def connect(self) -> None:
        """Create the shared HTTP client (idempotent)."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            timeout=self._settings.request_timeout,
            headers={"content-type": "application/json"},
            transport=self._transport,
        )
        logger.info("ledger_client_connected", rpc_url=self._masked_url())

    async def close(self) -> None:
        """Close the shared HTTP client."""
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        logger.info("ledger_client_closed")

    def _masked_url(self) -> str:
        url = self._settings.rpc_url
        if "api-key=" in url:
            return url.split("api-key=")[0] + "api-key=***"
        return url

    async def _call(self, method: str, params: list) -> Any:
        """POST one JSON-RPC request and return its result member."""
        if self._client is None:
            await self.connect()
        assert self._client is not None

        body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            response = await self._client.post(self._settings.rpc_url, json=body)
        except httpx.HTTPError as exc:
            raise LedgerRpcError(method, str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            raise LedgerRpcError(
                method,
                f"Upstream error: {response.status_code} {response.text[:200]}",
                code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise LedgerRpcError(method, "invalid JSON in RPC response") from exc

        if not isinstance(payload, dict):
            raise LedgerRpcError(method, "malformed RPC response")

        error = payload.get("error")
        if error:
            if not isinstance(error, dict):
                raise LedgerRpcError(method, f"malformed RPC response: {str(error)[:200]}")
            raise LedgerRpcError(
                method,
                error.get("message", "RPC error"),
                code=error.get("code"),
            )
        return payload.get("result")

    async def get_balance(self, address: str) -> int:
        result = await self._call("getBalance", [address])
        if result is not None and not isinstance(result, dict):
            raise LedgerRpcError("getBalance", "malformed RPC response")
        return int((result or {}).get("value") or 0)

    async def get_token_accounts_by_owner(
        self, owner: str, program_id: str
    ) -> list[TokenAccount]:
        """Fetch and parse all token accounts of a program owned by an address."""
        result = await self._call(
            "getParsedTokenAccountsByOwner",
            [owner, {"programId": program_id}, {"encoding": "jsonParsed"}],
        )

        if result is not None and not isinstance(result, dict):
            raise LedgerRpcError("getParsedTokenAccountsByOwner", "malformed RPC response")

        accounts: list[TokenAccount] = []
        for entry in (result or {}).get("value") or []:
            if not isinstance(entry, dict):
                continue
            data = (entry.get("account") or {}).get("data") or {}
            info = data.get("parsed", {}).get("info") if isinstance(data, dict) else None
            if not info:
                logger.debug("unparsed_token_account", pubkey=entry.get("pubkey"))
                continue
            token_amount = info.get("tokenAmount", {})
            accounts.append(
                TokenAccount(
                    address=entry["pubkey"],
                    mint=info.get("mint", ""),
                    owner=info.get("owner", owner),
                    amount=str(token_amount.get("amount", "0")),
                    decimals=int(token_amount.get("decimals", 0)),
                    ui_amount=parse_ui_amount(token_amount),
                )
            )

        logger.debug("fetched_token_accounts", owner=owner, count=len(accounts))
        return accounts

    async def get_signatures_for_address(
        self, address: str, limit: int
    ) -> list[SignatureRecord]:
        result = await self._call(
            "getSignaturesForAddress", [address, {"limit": limit}]
        )
        if result is not None and not isinstance(result, list):
            raise LedgerRpcError("getSignaturesForAddress", "malformed RPC response")
        return [
            SignatureRecord(
                signature=item["signature"],
                block_time=item.get("blockTime"),
            )
            for item in (result or [])[:limit]
            if isinstance(item, dict) and item.get("signature")
        ]

    async def get_transaction(self, signature: str) -> TransactionDetail | None:
        result = await self._call(
            "getTransaction",
            [
                signature,
                {"encoding": "jsonParsed", "maxSupportedTransactionVersion": 0},
            ],
        )
        if result is not None and not isinstance(result, dict):
            raise LedgerRpcError("getTransaction", "malformed RPC response")
        if not result or not isinstance(result.get("meta"), dict):
            return None

        meta = result["meta"]
        message = (result.get("transaction") or {}).get("message") or {}
        return TransactionDetail(
            signature=signature,
            account_keys=tuple(_account_key(k) for k in message.get("accountKeys", [])),
            pre_token_balances=_token_balances(meta.get("preTokenBalances")),
            post_token_balances=_token_balances(meta.get("postTokenBalances")),
        )
