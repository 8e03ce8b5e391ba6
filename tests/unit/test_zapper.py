"""Tests for the Zapper portfolio provider."""

from unittest.mock import MagicMock

import pytest
import requests

from basketswap.portfolio.base import PortfolioFetchError
from basketswap.portfolio.zapper import ZapperPortfolioProvider
from factories import GLMR, OWNER, USDC


def _mock_response(payload, status=200):
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    resp.json.return_value = payload
    return resp


def _node(address, symbol, balance_usd, **extra):
    node = {
        "tokenAddress": address,
        "symbol": symbol,
        "name": symbol,
        "decimals": 18,
        "verified": True,
        "price": 1.0,
        "balance": balance_usd,
        "balanceUSD": balance_usd,
        "balanceRaw": "0",
        "imgUrlV2": None,
        "network": {"name": "Moonbeam"},
    }
    node.update(extra)
    return {"node": node}


class TestZapperPortfolioProvider:
    @pytest.fixture
    def provider(self, test_config, mock_secrets):
        p = ZapperPortfolioProvider(test_config, mock_secrets)
        p._session = MagicMock()
        return p

    def test_requires_api_key(self, test_config, mock_secrets):
        mock_secrets.zapper_api_key = ""
        with pytest.raises(ValueError, match="ZAPPER_API_KEY"):
            ZapperPortfolioProvider(test_config, mock_secrets)

    def test_get_portfolio(self, provider):
        provider._session.post.return_value = _mock_response(
            {
                "data": {
                    "portfolioV2": {
                        "tokenBalances": {
                            "totalBalanceUSD": 1000.0,
                            "byToken": {
                                "edges": [
                                    _node(GLMR, "GLMR", 600.0, price=0.25),
                                    _node(USDC, "USDC", 400.0, decimals=6),
                                ]
                            },
                        }
                    }
                }
            }
        )

        feed = provider.get_portfolio(OWNER)

        assert feed.total_balance_usd == 1000.0
        assert [t.symbol for t in feed.tokens] == ["GLMR", "USDC"]
        assert feed.tokens[1].decimals == 6
        assert feed.tokens[0].network_name == "Moonbeam"

        body = provider._session.post.call_args.kwargs["json"]
        assert body["variables"]["addresses"] == [OWNER]
        assert body["variables"]["chainIds"] == [1284]
        assert body["variables"]["first"] == 50

    def test_empty_owner_rejected(self, provider):
        with pytest.raises(ValueError, match="Address parameter is required"):
            provider.get_portfolio("")
        provider._session.post.assert_not_called()

    def test_http_error(self, provider):
        provider._session.post.return_value = _mock_response({}, status=502)
        with pytest.raises(PortfolioFetchError, match="Zapper API error: 502"):
            provider.get_portfolio(OWNER)

    def test_graphql_errors(self, provider):
        provider._session.post.return_value = _mock_response(
            {"errors": [{"message": "rate limited"}]}
        )
        with pytest.raises(PortfolioFetchError, match="GraphQL errors"):
            provider.get_portfolio(OWNER)

    def test_network_failure_wrapped(self, provider):
        provider._session.post.side_effect = requests.ConnectionError("down")
        with pytest.raises(PortfolioFetchError, match="Failed to fetch portfolio"):
            provider.get_portfolio(OWNER)

    def test_malformed_token_record(self, provider):
        provider._session.post.return_value = _mock_response(
            {
                "data": {
                    "portfolioV2": {
                        "tokenBalances": {
                            "totalBalanceUSD": 5.0,
                            "byToken": {"edges": [_node(USDC, None, 5.0)]},
                        }
                    }
                }
            }
        )
        with pytest.raises(PortfolioFetchError, match="unusable token record"):
            provider.get_portfolio(OWNER)

    def test_empty_portfolio(self, provider):
        provider._session.post.return_value = _mock_response({"data": {"portfolioV2": None}})
        feed = provider.get_portfolio(OWNER)
        assert feed.total_balance_usd == 0.0
        assert feed.tokens == []

    def test_no_retry_by_default(self, provider):
        provider._session.post.side_effect = requests.Timeout("slow")
        with pytest.raises(PortfolioFetchError):
            provider.get_portfolio(OWNER)
        assert provider._session.post.call_count == 1

    def test_timeouts_retried_when_configured(self, provider):
        provider._http = provider._http.model_copy(
            update={"retry_attempts": 2, "retry_wait_min_seconds": 0, "retry_wait_max_seconds": 0}
        )
        provider._session.post.side_effect = [
            requests.Timeout("slow"),
            _mock_response({"data": {"portfolioV2": None}}),
        ]
        provider.get_portfolio(OWNER)
        assert provider._session.post.call_count == 2
