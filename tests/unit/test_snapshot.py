"""Tests for the portfolio snapshot adapter and token list."""

import json

import pytest

from basketswap.models import PortfolioFeed, TokenListEntry, TokenRecord
from basketswap.portfolio.snapshot import holdings_from_feed
from basketswap.portfolio.tokenlist import TokenList
from factories import DOT, GLMR, USDC, WETH


def _record(address, symbol, balance_usd, **kwargs):
    return TokenRecord(address=address, symbol=symbol, balance_usd=balance_usd, **kwargs)


class TestHoldingsFromFeed:
    def test_percentages_from_total(self):
        feed = PortfolioFeed(
            total_balance_usd=1000.0,
            tokens=[_record(GLMR, "GLMR", 750.0, price=0.25), _record(USDC, "USDC", 250.0, decimals=6)],
        )
        holdings = holdings_from_feed(feed)
        assert [h.symbol for h in holdings] == ["GLMR", "USDC"]
        assert holdings[0].percentage == pytest.approx(75.0)
        assert holdings[1].percentage == pytest.approx(25.0)
        assert holdings[1].decimals == 6
        assert all(h.locked is False for h in holdings)

    def test_zero_total(self):
        feed = PortfolioFeed(total_balance_usd=0.0, tokens=[_record(GLMR, "GLMR", 0.0)])
        holdings = holdings_from_feed(feed)
        assert holdings[0].percentage == 0.0

    def test_defaults(self):
        feed = PortfolioFeed.model_validate(
            {"totalBalanceUSD": 5.0, "tokens": [{"tokenAddress": USDC, "symbol": "USDC", "balanceUSD": 5.0}]}
        )
        holding = holdings_from_feed(feed)[0]
        assert holding.decimals == 18
        assert holding.logo_url is None
        assert holding.verified is False

    def test_duplicate_addresses_collapsed(self):
        feed = PortfolioFeed(
            total_balance_usd=100.0,
            tokens=[_record(USDC, "USDC", 100.0), _record(USDC.lower(), "USDC", 100.0)],
        )
        assert len(holdings_from_feed(feed)) == 1


class TestTokenList:
    @pytest.fixture
    def token_list(self):
        return TokenList(
            [
                TokenListEntry(address=WETH, symbol="WETH", name="Wrapped Ether"),
                TokenListEntry(address=USDC, symbol="USDC", name="USD Coin", decimals=6),
                TokenListEntry(address=DOT, symbol="xcDOT", name="Polkadot", decimals=10),
                TokenListEntry(address=GLMR, symbol="GLMR", name="Glimmer"),
            ]
        )

    def test_sorted_by_symbol(self, token_list):
        assert [t.symbol for t in token_list.search()] == ["GLMR", "USDC", "WETH", "xcDOT"]

    def test_search_symbol_case_insensitive(self, token_list):
        assert [t.symbol for t in token_list.search("dot")] == ["xcDOT"]

    def test_search_name(self, token_list):
        assert [t.symbol for t in token_list.search("coin")] == ["USDC"]

    def test_search_address(self, token_list):
        assert [t.symbol for t in token_list.search(WETH[2:10].upper())] == ["WETH"]

    def test_exclude_held(self, token_list):
        results = token_list.search("", exclude=[GLMR, USDC.lower()])
        assert [t.symbol for t in results] == ["WETH", "xcDOT"]

    def test_load_file(self, tmp_path):
        path = tmp_path / "tokenlist.json"
        path.write_text(
            json.dumps(
                {
                    "tokens": [
                        {"chainId": 1284, "address": USDC, "symbol": "USDC", "name": "USD Coin",
                         "decimals": 6, "logoURI": "https://example.com/usdc.png", "tags": ["stablecoin"]},
                        {"chainId": 1, "address": WETH, "symbol": "WETH", "name": "Wrapped Ether", "decimals": 18},
                    ]
                }
            )
        )
        token_list = TokenList.load(path, chain_id=1284)
        assert len(token_list) == 1
        entry = token_list.get(USDC.lower())
        assert entry.logo_uri == "https://example.com/usdc.png"
        assert entry.tags == ["stablecoin"]
