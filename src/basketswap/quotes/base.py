"""Abstract base class for swap quote providers."""

from abc import ABC, abstractmethod

from pydantic import BaseModel

from basketswap.models import SwapQuote


class QuoteFetchError(Exception):
    """Raised when a swap quote cannot be obtained."""


class QuoteRequest(BaseModel):
    from_token: str
    to_token: str
    from_amount: str  # integer base units
    from_address: str
    slippage: float = 0.005


class QuoteProvider(ABC):
    """Interface for fetching executable swap quotes."""

    @abstractmethod
    def get_quote(self, request: QuoteRequest) -> SwapQuote:
        """Fetch a quote for one swap.

        Raises:
            ValueError: If a required request field is missing.
            QuoteFetchError: If the quote service fails.
        """
        ...
