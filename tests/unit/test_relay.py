"""Tests for the HTTP relay batch submitter."""

from unittest.mock import MagicMock

import pytest
import requests

from basketswap.execution.base import SubmissionError
from basketswap.execution.relay import HttpRelaySubmitter
from basketswap.models import BatchCall
from factories import ROUTER, USDC

TX_HASH = "0x" + "ab" * 32


def _mock_response(payload, status=200):
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    resp.text = "relay says no"
    resp.json.return_value = payload
    return resp


@pytest.fixture
def calls():
    return [
        BatchCall(to=USDC, data="0x095ea7b3", value=0, description="Approve USDC for swap"),
        BatchCall(to=ROUTER, data="0xdeadbeef", value=10, description="Swap 1.0000 USDC -> GLMR"),
    ]


class TestHttpRelaySubmitter:
    @pytest.fixture
    def submitter(self, test_config, mock_secrets):
        s = HttpRelaySubmitter(test_config, mock_secrets)
        s._session = MagicMock()
        return s

    def test_auth_header(self, test_config, mock_secrets):
        s = HttpRelaySubmitter(test_config, mock_secrets)
        assert s._session.headers["Authorization"] == "Bearer test-relay-key"

    def test_submit(self, submitter, calls):
        submitter._session.post.return_value = _mock_response({"hash": TX_HASH})

        assert submitter.submit(calls) == TX_HASH

        args, kwargs = submitter._session.post.call_args
        assert args[0] == "http://relay.test/batch"
        assert kwargs["json"] == {
            "chainId": 1284,
            "calls": [
                {"to": USDC, "data": "0x095ea7b3", "value": "0x0"},
                {"to": ROUTER, "data": "0xdeadbeef", "value": "0xa"},
            ],
        }

    def test_tx_hash_field(self, submitter, calls):
        submitter._session.post.return_value = _mock_response({"txHash": TX_HASH})
        assert submitter.submit(calls) == TX_HASH

    def test_empty_batch_rejected(self, submitter):
        with pytest.raises(SubmissionError, match="empty batch"):
            submitter.submit([])
        submitter._session.post.assert_not_called()

    def test_rejected(self, submitter, calls):
        submitter._session.post.return_value = _mock_response({}, status=400)
        with pytest.raises(SubmissionError, match="Relay error: 400"):
            submitter.submit(calls)

    def test_not_retried(self, submitter, calls):
        submitter._session.post.side_effect = requests.Timeout("slow")
        with pytest.raises(SubmissionError, match="submission failed"):
            submitter.submit(calls)
        assert submitter._session.post.call_count == 1

    def test_missing_hash(self, submitter, calls):
        submitter._session.post.return_value = _mock_response({"status": "queued"})
        with pytest.raises(SubmissionError, match="no transaction hash"):
            submitter.submit(calls)
