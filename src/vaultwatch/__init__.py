"""Vaultwatch: Solana portfolio dashboard backend with wallet/vault transfer reconciliation."""

__version__ = "0.1.0"
