"""Zapper GraphQL portfolio provider."""

import requests
import structlog
from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from basketswap.config import AppConfig, Secrets
from basketswap.models import PortfolioFeed, TokenRecord
from basketswap.portfolio.base import PortfolioFetchError, PortfolioProvider

logger = structlog.get_logger(__name__)

PORTFOLIO_QUERY = """
  query PortfolioV2Query($addresses: [Address!]!, $chainIds: [Int!], $first: Int!) {
    portfolioV2(addresses: $addresses, chainIds: $chainIds) {
      tokenBalances {
        totalBalanceUSD
        byToken(first: $first) {
          edges {
            node {
              tokenAddress
              symbol
              name
              decimals
              verified
              price
              balance
              balanceUSD
              balanceRaw
              imgUrlV2
              network {
                name
              }
            }
          }
        }
      }
    }
  }
"""


class ZapperPortfolioProvider(PortfolioProvider):
    """Fetches token balances for one chain from the Zapper GraphQL API."""

    def __init__(self, config: AppConfig, secrets: Secrets):
        if not secrets.zapper_api_key:
            raise ValueError(
                "ZAPPER_API_KEY is required when using the zapper portfolio provider. "
                "Set it in .env or as an environment variable."
            )
        self._config = config.portfolio
        self._http = config.http
        self._chain_id = config.chain.chain_id
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Content-Type": "application/json",
                "x-zapper-api-key": secrets.zapper_api_key,
            }
        )

    def get_portfolio(self, owner_address: str) -> PortfolioFeed:
        if not owner_address:
            raise ValueError("Address parameter is required")

        body = {
            "query": PORTFOLIO_QUERY,
            "variables": {
                "addresses": [owner_address],
                "chainIds": [self._chain_id],
                "first": self._config.max_tokens,
            },
        }

        try:
            response = self._fetch_with_retry(body)
            if not response.ok:
                raise PortfolioFetchError(f"Zapper API error: {response.status_code}")

            data = response.json()
            if data.get("errors"):
                raise PortfolioFetchError(f"GraphQL errors: {data['errors']}")

            balances = ((data.get("data") or {}).get("portfolioV2") or {}).get("tokenBalances") or {}
            edges = (balances.get("byToken") or {}).get("edges") or []
            feed = PortfolioFeed(
                total_balance_usd=balances.get("totalBalanceUSD") or 0.0,
                tokens=[TokenRecord.model_validate(edge["node"]) for edge in edges if edge.get("node")],
            )

        except PortfolioFetchError as e:
            logger.error("portfolio.fetch_failed", provider="zapper", error=str(e))
            raise
        except ValidationError as e:
            logger.error("portfolio.invalid_response", provider="zapper", error=str(e))
            raise PortfolioFetchError(f"Zapper returned an unusable token record: {e}") from e
        except Exception as e:
            logger.error("portfolio.fetch_failed", provider="zapper", error=str(e))
            raise PortfolioFetchError(f"Failed to fetch portfolio: {e}") from e

        logger.info(
            "portfolio.fetched",
            provider="zapper",
            tokens=len(feed.tokens),
            total_usd=round(feed.total_balance_usd, 2),
        )
        return feed

    def _fetch_with_retry(self, body: dict) -> requests.Response:
        """POST the query, retrying only on timeouts when configured to."""
        retrying = Retrying(
            stop=stop_after_attempt(self._http.retry_attempts),
            wait=wait_exponential(
                min=self._http.retry_wait_min_seconds,
                max=self._http.retry_wait_max_seconds,
            ),
            retry=retry_if_exception_type(requests.exceptions.Timeout),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self._session.post(
                    self._config.api_url,
                    json=body,
                    timeout=self._config.timeout_seconds,
                )
