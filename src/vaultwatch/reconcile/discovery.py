"""Holding-account discovery: resolve an owner's token account for one mint.

Each owner is assumed to have at most one token account per mint. When
several exist the first returned by the RPC node wins.
"""

from vaultwatch.ledger.client import LedgerClient
from vaultwatch.ledger.types import validate_address
from vaultwatch.logging import get_logger

logger = get_logger(__name__)


async def find_holding_account(
    ledger: LedgerClient,
    owner: str,
    program_id: str,
    mint: str,
) -> str | None:
    """Return the address of the owner's first token account for ``mint``.

    The owner address is validated before any network call. Upstream
    errors propagate to the caller.

    Returns:
        The token account address, or None if the owner holds no such account.

    Raises:
        InvalidAddressError: If ``owner`` is not a valid public key.
        LedgerRpcError: If the token accounts cannot be fetched.
    """
    validate_address(owner)

    accounts = await ledger.get_token_accounts_by_owner(owner, program_id)
    for account in accounts:
        if account.mint == mint:
            logger.debug(
                "holding_account_found",
                owner=owner,
                account=account.address,
                candidates=len(accounts),
            )
            return account.address

    logger.info("holding_account_missing", owner=owner, mint=mint)
    return None
