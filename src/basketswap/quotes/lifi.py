"""LI.FI quote provider for same-chain swaps."""

import requests
import structlog
from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from basketswap.config import AppConfig, Secrets
from basketswap.models import SwapQuote
from basketswap.quotes.base import QuoteFetchError, QuoteProvider, QuoteRequest

logger = structlog.get_logger(__name__)


class LifiQuoteProvider(QuoteProvider):
    """Requests swap quotes (route + calldata) from the LI.FI quote endpoint."""

    def __init__(self, config: AppConfig, secrets: Secrets):
        self._config = config.quotes
        self._http = config.http
        self._chain_id = str(config.chain.chain_id)
        self._session = requests.Session()
        self._session.headers["Content-Type"] = "application/json"
        # Key is optional; anonymous requests get a lower rate limit
        if secrets.lifi_api_key:
            self._session.headers["x-lifi-api-key"] = secrets.lifi_api_key

    def get_quote(self, request: QuoteRequest) -> SwapQuote:
        if not all((request.from_token, request.to_token, request.from_amount, request.from_address)):
            raise ValueError("Missing required parameters")

        params = {
            "fromChain": self._chain_id,
            "toChain": self._chain_id,
            "fromToken": request.from_token,
            "toToken": request.to_token,
            "fromAmount": request.from_amount,
            "fromAddress": request.from_address,
            "slippage": str(request.slippage),
        }

        logger.debug(
            "quotes.requesting",
            provider="lifi",
            from_token=request.from_token,
            to_token=request.to_token,
            from_amount=request.from_amount,
        )

        try:
            response = self._fetch_with_retry(params)
        except requests.RequestException as e:
            logger.error("quotes.fetch_failed", provider="lifi", error=str(e))
            raise QuoteFetchError(f"LI.FI request failed: {e}") from e

        if not response.ok:
            logger.error(
                "quotes.fetch_failed",
                provider="lifi",
                status=response.status_code,
                body=response.text[:500],
            )
            raise QuoteFetchError(f"LI.FI API error: {response.status_code}")

        try:
            quote = SwapQuote.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error("quotes.invalid_response", provider="lifi", error=str(e))
            raise QuoteFetchError(f"LI.FI returned an unusable quote: {e}") from e

        logger.info(
            "quotes.received",
            provider="lifi",
            from_amount=quote.estimate.from_amount,
            to_amount=quote.estimate.to_amount,
            to_amount_min=quote.estimate.to_amount_min,
            approval_address=quote.estimate.approval_address,
        )
        return quote

    def _fetch_with_retry(self, params: dict) -> requests.Response:
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
                return self._session.get(
                    self._config.api_url,
                    params=params,
                    timeout=self._config.timeout_seconds,
                )
