"""Abstract ledger client interface.

Defines the read-only contract the reconciler and portfolio services
depend on, keeping JSON-RPC details isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod

from vaultwatch.models import SignatureRecord, TokenAccount, TransactionDetail


class LedgerClient(ABC):
    """Abstract base class for Solana ledger data sources."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying transport."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying transport."""
        ...

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        """Return the native balance of an address in lamports."""
        ...

    @abstractmethod
    async def get_token_accounts_by_owner(
        self, owner: str, program_id: str
    ) -> list[TokenAccount]:
        """Return every token account of the given program owned by an address."""
        ...

    @abstractmethod
    async def get_signatures_for_address(
        self, address: str, limit: int
    ) -> list[SignatureRecord]:
        """Return the most recent signatures referencing an address, newest first.

        Pagination is NOT handled here -- at most ``limit`` records are returned.
        """
        ...

    @abstractmethod
    async def get_transaction(self, signature: str) -> TransactionDetail | None:
        """Fetch a parsed transaction by signature.

        Returns None when the node no longer resolves the signature or the
        transaction carries no execution metadata.
        """
        ...
