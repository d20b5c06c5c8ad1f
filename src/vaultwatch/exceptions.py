"""Custom exceptions for the vaultwatch dashboard backend.

Request-level failures live here so the ledger client, the reconciler
and the HTTP routes share one taxonomy without circular imports.
"""


class VaultwatchError(Exception):
    """Base exception for all vaultwatch errors."""


class MissingParameterError(VaultwatchError):
    """Raised when a required request parameter is absent or blank."""


class InvalidAddressError(VaultwatchError):
    """Raised when an address is not a valid Solana public key."""

    def __init__(self, address: str) -> None:
        super().__init__("Invalid Solana address")
        self.address = address


class LedgerRpcError(VaultwatchError):
    """Raised when the Solana RPC endpoint is unreachable or returns an error."""

    def __init__(self, method: str, message: str, code: int | None = None) -> None:
        super().__init__(f"{method}: {message}")
        self.method = method
        self.code = code
