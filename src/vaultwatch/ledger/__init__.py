"""Ledger data source layer -- Solana JSON-RPC integration via httpx."""

from vaultwatch.ledger.client import LedgerClient
from vaultwatch.ledger.solana_client import SolanaRpcClient
from vaultwatch.ledger.types import (
    TOKEN_PROGRAM_ID,
    USDC_MINT,
    lamports_to_sol,
    parse_ui_amount,
    validate_address,
)

__all__ = [
    "LedgerClient",
    "SolanaRpcClient",
    "TOKEN_PROGRAM_ID",
    "USDC_MINT",
    "lamports_to_sol",
    "parse_ui_amount",
    "validate_address",
]
