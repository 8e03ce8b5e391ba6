"""Concurrent quote fetching for a whole rebalance plan."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import structlog

from basketswap.models import SwapQuote
from basketswap.quotes.base import QuoteFetchError, QuoteProvider, QuoteRequest

logger = structlog.get_logger(__name__)


async def fetch_quotes(
    provider: QuoteProvider,
    requests: list[QuoteRequest],
    max_concurrency: int = 4,
) -> list[SwapQuote]:
    """Fetch one quote per request concurrently, returned in input order.

    All quotes must succeed; the first failure aborts the whole set so a
    partial quote list is never used.

    Raises:
        QuoteFetchError: If any single quote fails.
    """
    if not requests:
        return []

    loop = asyncio.get_running_loop()
    executor = ThreadPoolExecutor(max_workers=min(max_concurrency, len(requests)))
    tasks = [
        loop.run_in_executor(executor, provider.get_quote, request)
        for request in requests
    ]
    try:
        quotes = await asyncio.gather(*tasks)
    except QuoteFetchError:
        logger.error("quotes.batch_aborted", requested=len(requests))
        raise
    except Exception as e:
        logger.error("quotes.batch_aborted", requested=len(requests), error=str(e))
        raise QuoteFetchError(f"Failed to fetch swap quote: {e}") from e
    finally:
        # In-flight requests are left to finish in the background
        for task in tasks:
            task.cancel()
        executor.shutdown(wait=False, cancel_futures=True)

    logger.info("quotes.batch_complete", quotes=len(quotes))
    return list(quotes)
