"""JSON API endpoints consumed by the browser dashboard.

Every failure is answered with ``{"error": message}``:
400 for missing or invalid input, 502 when the Solana RPC fails,
500 for anything unexpected.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from vaultwatch.exceptions import InvalidAddressError, LedgerRpcError, MissingParameterError
from vaultwatch.models import ClassifiedTransfer, ReconciliationResult, TokenHolding

log = structlog.get_logger(__name__)

router = APIRouter()


def _number(value: Decimal | None) -> float | None:
    """Render a Decimal as a JSON number at the HTTP boundary."""
    return float(value) if value is not None else None


def _error_response(exc: Exception, route: str) -> JSONResponse:
    """Map an exception to the dashboard's error envelope."""
    if isinstance(exc, (MissingParameterError, InvalidAddressError)):
        return JSONResponse(content={"error": str(exc)}, status_code=400)
    if isinstance(exc, LedgerRpcError):
        log.warning("upstream_rpc_error", route=route, method=exc.method, error=str(exc))
        return JSONResponse(content={"error": str(exc)}, status_code=502)
    log.error("unexpected_route_error", route=route, exc_info=exc)
    return JSONResponse(content={"error": str(exc) or "Unknown error"}, status_code=500)


def _holding_to_dict(holding: TokenHolding) -> dict:
    account = holding.account
    result: dict = {
        "mint": account.mint,
        "balance": account.amount,
        "decimals": account.decimals,
        "uiAmount": _number(account.ui_amount),
        "accountAddress": account.address,
        "isLiquidityPool": holding.is_liquidity_pool,
    }
    if holding.token_info is not None:
        result["tokenInfo"] = {
            "symbol": holding.token_info.symbol,
            "name": holding.token_info.name,
            "price": _number(holding.token_info.price_usd),
            "image": holding.token_info.image,
        }
        result["valueUsd"] = _number(holding.value_usd)
    return result


def _transfer_to_dict(transfer: ClassifiedTransfer) -> dict:
    return {
        "signature": transfer.signature,
        "timestamp": transfer.timestamp,
        "type": transfer.direction.value,
        "amount": _number(transfer.amount),
        "from": transfer.from_address,
        "to": transfer.to_address,
        "blockTime": transfer.block_time,
    }


def _reconciliation_to_dict(result: ReconciliationResult) -> dict:
    content: dict = {
        "transactions": [_transfer_to_dict(t) for t in result.transfers],
        "totalSentToVault": _number(result.total_sent_to_vault),
        "count": result.count,
        "partial": result.partial,
        "accounts": {
            "walletUsdcAccount": result.wallet_account,
            "vaultUsdcAccount": result.vault_account,
        },
    }
    if result.message:
        content["message"] = result.message
    return content


@router.get("/balance")
async def get_balance(request: Request, address: str | None = None) -> JSONResponse:
    """Native SOL balance of an address."""
    try:
        if not address:
            raise MissingParameterError("Missing address")
        balance = await request.app.state.portfolio.get_native_balance(address)
    except Exception as exc:
        return _error_response(exc, "balance")

    return JSONResponse(content={"lamports": balance.lamports, "sol": _number(balance.sol)})


@router.get("/positions")
async def get_positions(request: Request, address: str | None = None) -> JSONResponse:
    """Token holdings split into liquidity-pool positions and regular tokens."""
    try:
        if not address:
            raise MissingParameterError("Missing address")
        snapshot = await request.app.state.portfolio.get_positions(address)
    except Exception as exc:
        return _error_response(exc, "positions")

    return JSONResponse(content={
        "liquidityPositions": [_holding_to_dict(h) for h in snapshot.liquidity_positions],
        "regularTokens": [_holding_to_dict(h) for h in snapshot.regular_tokens],
        "totalPositions": len(snapshot.liquidity_positions),
        "totalTokens": len(snapshot.regular_tokens),
        "totalValueUsd": _number(snapshot.total_value_usd),
        "message": snapshot.message,
    })


@router.get("/sol-price")
async def get_sol_price(request: Request) -> JSONResponse:
    """SOL/USD spot price; null when the price provider is unavailable."""
    try:
        price = await request.app.state.metadata.get_sol_price_usd()
    except Exception as exc:
        return _error_response(exc, "sol-price")

    return JSONResponse(content={"usd": _number(price)})


@router.get("/usdc-transactions")
async def get_usdc_transactions(
    request: Request,
    walletAddress: str | None = None,  # noqa: N803 -- query parameter name
    vaultAddress: str | None = None,  # noqa: N803
) -> JSONResponse:
    """Wallet/vault USDC transfer ledger with the total sent to the vault."""
    try:
        result = await request.app.state.reconciler.reconcile(walletAddress, vaultAddress)
    except Exception as exc:
        return _error_response(exc, "usdc-transactions")

    return JSONResponse(content=_reconciliation_to_dict(result))
