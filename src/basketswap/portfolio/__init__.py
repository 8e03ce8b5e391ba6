"""Portfolio snapshots and token discovery."""

from basketswap.portfolio.base import PortfolioFetchError, PortfolioProvider
from basketswap.portfolio.snapshot import holdings_from_feed
from basketswap.portfolio.tokenlist import TokenList

__all__ = [
    "PortfolioFetchError",
    "PortfolioProvider",
    "TokenList",
    "holdings_from_feed",
]
