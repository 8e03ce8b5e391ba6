"""HTTP relay submitter - hands the ordered call list to a signing service."""

import requests
import structlog

from basketswap.config import AppConfig, Secrets
from basketswap.execution.base import BatchSubmitter, SubmissionError
from basketswap.logging_config import get_execution_logger
from basketswap.models import BatchCall

logger = structlog.get_logger(__name__)


class HttpRelaySubmitter(BatchSubmitter):
    """POSTs batches to a relay that signs and sends them as one user operation.

    The relay owns custody and atomicity; this class only serializes the
    calls and reports the returned transaction hash. Submissions are never
    retried.
    """

    def __init__(self, config: AppConfig, secrets: Secrets):
        self._url = config.submission.relay_url
        self._timeout = config.submission.timeout_seconds
        self._chain_id = config.chain.chain_id
        self._session = requests.Session()
        if secrets.relay_api_key:
            self._session.headers["Authorization"] = f"Bearer {secrets.relay_api_key}"
        self._execution_log = get_execution_logger()

    def submit(self, calls: list[BatchCall]) -> str:
        if not calls:
            raise SubmissionError("Refusing to submit an empty batch")

        payload = {
            "chainId": self._chain_id,
            "calls": [call.as_payload() for call in calls],
        }

        try:
            response = self._session.post(self._url, json=payload, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error("relay.request_failed", error=str(e))
            raise SubmissionError(f"Batch submission failed: {e}") from e

        if not response.ok:
            logger.error(
                "relay.rejected",
                status=response.status_code,
                body=response.text[:500],
            )
            raise SubmissionError(f"Relay error: {response.status_code} {response.text[:200]}")

        try:
            data = response.json()
        except ValueError as e:
            raise SubmissionError(f"Relay returned invalid JSON: {e}") from e

        tx_hash = data.get("hash") or data.get("txHash")
        if not tx_hash:
            raise SubmissionError(f"Relay response has no transaction hash: {data}")

        self._execution_log.info(
            "batch.submitted",
            tx_hash=tx_hash,
            calls=len(calls),
            descriptions=[c.description for c in calls],
        )
        return tx_hash
