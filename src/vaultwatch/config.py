"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vaultwatch.ledger.types import TOKEN_PROGRAM_ID, USDC_MINT


class LedgerSettings(BaseSettings):
    """Solana JSON-RPC connection settings."""

    model_config = SettingsConfigDict(env_prefix="SOLANA_")

    rpc_url: str = "https://api.mainnet-beta.solana.com"
    request_timeout: float = 10.0


class ReconcileSettings(BaseSettings):
    """Wallet-to-vault transfer reconciliation parameters.

    The two tolerances are in UI units of the asset. balance_epsilon is the
    minimum movement that counts as a balance change; net_tolerance is the
    maximum drift allowed between the two sides of one transfer.
    """

    model_config = SettingsConfigDict(env_prefix="RECONCILE_")

    asset_mint: str = USDC_MINT
    token_program_id: str = TOKEN_PROGRAM_ID
    signature_page_size: int = Field(default=100, ge=1, le=1000)  # RPC max is 1000
    detail_fetch_timeout: float = 15.0  # seconds, soft deadline for the detail phase
    balance_epsilon: Decimal = Decimal("0.000001")
    net_tolerance: Decimal = Decimal("0.01")

    @model_validator(mode="after")
    def _check_tolerances(self) -> "ReconcileSettings":
        if self.balance_epsilon <= 0:
            raise ValueError("balance_epsilon must be positive")
        if self.balance_epsilon >= self.net_tolerance:
            raise ValueError("balance_epsilon must be smaller than net_tolerance")
        return self


class MetadataSettings(BaseSettings):
    """Token metadata and price provider settings (best-effort enrichment)."""

    model_config = SettingsConfigDict(env_prefix="METADATA_")

    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    solanafm_base_url: str = "https://api.solana.fm/v0"
    coingecko_api_key: SecretStr = SecretStr("")
    request_timeout: float = 10.0
    cache_ttl_seconds: int = 3600
    cache_max_entries: int = Field(default=1024, ge=1)


class DashboardSettings(BaseSettings):
    """Dashboard server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 8080


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    ledger: LedgerSettings = LedgerSettings()
    reconcile: ReconcileSettings = ReconcileSettings()
    metadata: MetadataSettings = MetadataSettings()
    dashboard: DashboardSettings = DashboardSettings()
