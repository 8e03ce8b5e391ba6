"""Abstract base class for portfolio balance providers."""

from abc import ABC, abstractmethod

from basketswap.models import PortfolioFeed


class PortfolioFetchError(Exception):
    """Raised when a portfolio snapshot cannot be fetched."""


class PortfolioProvider(ABC):
    """Interface for fetching token balances for an owner address."""

    @abstractmethod
    def get_portfolio(self, owner_address: str) -> PortfolioFeed:
        """Fetch the owner's token balances.

        Raises:
            ValueError: If owner_address is empty.
            PortfolioFetchError: If the upstream service fails.
        """
        ...
