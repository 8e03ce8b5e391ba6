"""Swap quote collaborators."""

from basketswap.quotes.base import QuoteFetchError, QuoteProvider, QuoteRequest
from basketswap.quotes.fetcher import fetch_quotes

__all__ = ["QuoteFetchError", "QuoteProvider", "QuoteRequest", "fetch_quotes"]
