"""Snapshot adapter - normalize a balance feed into allocation holdings."""

import structlog

from basketswap.models import AssetHolding, PortfolioFeed

logger = structlog.get_logger(__name__)


def holdings_from_feed(feed: PortfolioFeed) -> list[AssetHolding]:
    """Convert feed token records into holdings with percentages of the total.

    Percentages are 0 when the feed total is 0. Repeated addresses keep the
    first record.
    """
    total = feed.total_balance_usd
    seen: set[str] = set()
    holdings: list[AssetHolding] = []

    for token in feed.tokens:
        key = token.address.lower()
        if key in seen:
            logger.warning("snapshot.duplicate_token", address=token.address, symbol=token.symbol)
            continue
        seen.add(key)

        percentage = token.balance_usd / total * 100 if total > 0 else 0.0
        holdings.append(
            AssetHolding(
                address=token.address,
                symbol=token.symbol,
                name=token.name,
                decimals=token.decimals,
                balance=token.balance,
                balance_usd=token.balance_usd,
                price=token.price,
                percentage=percentage,
                logo_url=token.logo_url,
                verified=token.verified,
            )
        )

    logger.debug("snapshot.normalized", holdings=len(holdings), total_usd=round(total, 2))
    return holdings
