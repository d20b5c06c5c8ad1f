"""Solana-specific constants and conversion helpers.

All token quantities are converted to Decimal from their string forms.
"""

from decimal import Decimal, InvalidOperation

from solders.pubkey import Pubkey

from vaultwatch.exceptions import InvalidAddressError

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
LAMPORTS_PER_SOL = Decimal("1000000000")


def validate_address(address: str) -> str:
    """Check that an address parses as a 32-byte base58 public key.

    Returns:
        The address unchanged.

    Raises:
        InvalidAddressError: If the address does not parse.
    """
    try:
        Pubkey.from_string(address)
    except Exception as exc:
        raise InvalidAddressError(address) from exc
    return address


def parse_ui_amount(ui_token_amount: dict | None) -> Decimal:
    """Read a uiTokenAmount object as Decimal.

    Prefers uiAmountString; a missing or unparseable amount counts as zero,
    matching an account that held no balance of the token.
    """
    if not ui_token_amount:
        return Decimal("0")
    raw = ui_token_amount.get("uiAmountString")
    if raw is None:
        raw = ui_token_amount.get("uiAmount")
    if raw is None or raw == "":
        return Decimal("0")
    try:
        return Decimal(str(raw))
    except InvalidOperation:
        return Decimal("0")


def lamports_to_sol(lamports: int) -> Decimal:
    """Convert lamports to SOL."""
    return Decimal(lamports) / LAMPORTS_PER_SOL
