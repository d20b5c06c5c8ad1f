"""Shared data models for the vaultwatch dashboard backend.

CRITICAL: All balances, amounts and prices use Decimal. Token amounts are
parsed from the RPC's uiAmountString, never from the float uiAmount.
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class TransferDirection(str, Enum):
    """Direction of a wallet/vault transfer, seen from the wallet."""

    SENT = "sent"
    RECEIVED = "received"


@dataclass(frozen=True)
class AccountPair:
    """Per-request wallet/vault pair for a single fixed asset."""

    wallet_address: str
    vault_address: str
    asset_mint: str


@dataclass(frozen=True)
class HoldingPair:
    """Holding accounts resolved for an AccountPair. Either side may be missing."""

    pair: AccountPair
    wallet_account: str | None
    vault_account: str | None

    @property
    def is_complete(self) -> bool:
        return self.wallet_account is not None and self.vault_account is not None


@dataclass(frozen=True)
class TokenAccount:
    """An SPL token account as returned by getParsedTokenAccountsByOwner."""

    address: str
    mint: str
    owner: str
    amount: str  # raw integer amount in base units, as the RPC sends it
    decimals: int
    ui_amount: Decimal


@dataclass(frozen=True)
class SignatureRecord:
    """One entry of getSignaturesForAddress (newest first)."""

    signature: str
    block_time: int | None = None  # Unix seconds, None if the node does not know


@dataclass(frozen=True)
class TokenBalance:
    """A pre- or post-execution token balance for one account index."""

    account_index: int
    mint: str
    ui_amount: Decimal


@dataclass(frozen=True)
class TransactionDetail:
    """The parts of a parsed transaction needed for balance-delta classification."""

    signature: str
    account_keys: tuple[str, ...]
    pre_token_balances: tuple[TokenBalance, ...] = ()
    post_token_balances: tuple[TokenBalance, ...] = ()


@dataclass(frozen=True)
class ClassifiedTransfer:
    """A transaction recognised as a direct transfer between wallet and vault.

    timestamp is block_time when known, otherwise the time the transfer
    was classified. Sorting uses block_time so unknown times sort oldest.
    """

    signature: str
    timestamp: float
    block_time: int | None
    direction: TransferDirection
    amount: Decimal
    from_address: str
    to_address: str


@dataclass
class ReconciliationResult:
    """Deduplicated, newest-first transfer ledger for one wallet/vault pair."""

    transfers: list[ClassifiedTransfer] = field(default_factory=list)
    total_sent_to_vault: Decimal = Decimal("0")
    wallet_account: str | None = None
    vault_account: str | None = None
    partial: bool = False  # True when the detail-fetch deadline cut the scan short
    message: str | None = None

    @property
    def count(self) -> int:
        return len(self.transfers)


@dataclass
class NativeBalance:
    """Native SOL balance of an address."""

    address: str
    lamports: int
    sol: Decimal


@dataclass
class TokenInfo:
    """Display metadata for a token mint from a metadata provider."""

    symbol: str
    name: str
    price_usd: Decimal | None = None
    image: str | None = None
    fetched_at: float = field(default_factory=time.time)


@dataclass
class TokenHolding:
    """A non-empty token account enriched for display."""

    account: TokenAccount
    is_liquidity_pool: bool = False
    token_info: TokenInfo | None = None

    @property
    def value_usd(self) -> Decimal | None:
        if self.token_info is None or self.token_info.price_usd is None:
            return None
        return self.account.ui_amount * self.token_info.price_usd


@dataclass
class PortfolioSnapshot:
    """Token holdings of a wallet, split into LP positions and regular tokens."""

    address: str
    liquidity_positions: list[TokenHolding] = field(default_factory=list)
    regular_tokens: list[TokenHolding] = field(default_factory=list)
    message: str = ""

    @property
    def total_value_usd(self) -> Decimal:
        return sum(
            (h.value_usd for h in self.regular_tokens if h.value_usd is not None),
            Decimal("0"),
        )
