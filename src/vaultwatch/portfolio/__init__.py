"""Portfolio layer -- native balance, token holdings and metadata enrichment."""

from vaultwatch.portfolio.holdings import KNOWN_LP_MINTS, PortfolioService
from vaultwatch.portfolio.metadata import TokenMetadataService

__all__ = ["KNOWN_LP_MINTS", "PortfolioService", "TokenMetadataService"]
