"""Verify connectivity to the portfolio, quote and relay services."""

import sys
from pathlib import Path

import requests

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from basketswap.config import AppConfig, Secrets, load_config
from basketswap.execution.erc20 import NATIVE_PRECOMPILE
from basketswap.portfolio.zapper import ZapperPortfolioProvider
from basketswap.quotes.base import QuoteRequest
from basketswap.quotes.lifi import LifiQuoteProvider


def check_zapper(config: AppConfig, secrets: Secrets) -> bool:
    """Fetch the configured owner's balances."""
    print("Checking Zapper API...")
    try:
        provider = ZapperPortfolioProvider(config, secrets)
        feed = provider.get_portfolio(config.rebalancing.owner_address)
        print(f"  Tokens: {len(feed.tokens)}")
        print(f"  Total value: ${feed.total_balance_usd:,.2f}")
        print("  Zapper: OK")
        return True
    except Exception as e:
        print(f"  Zapper: FAILED - {e}")
        return False


def check_lifi(config: AppConfig, secrets: Secrets) -> bool:
    """Request a small native -> first-target quote."""
    print("\nChecking LI.FI API...")
    try:
        provider = LifiQuoteProvider(config, secrets)
        quote = provider.get_quote(
            QuoteRequest(
                from_token=NATIVE_PRECOMPILE,
                to_token="0x931715FEE2d06333043d11F658C8CE934aC61D0c",
                from_amount=str(10**18),
                from_address=config.rebalancing.owner_address,
                slippage=config.quotes.slippage,
            )
        )
        print(f"  Router: {quote.transaction_request.to}")
        print(f"  Expected output: {quote.estimate.to_amount}")
        print("  LI.FI: OK")
        return True
    except Exception as e:
        print(f"  LI.FI: FAILED - {e}")
        return False


def check_relay(config: AppConfig) -> bool:
    """Only checks the relay answers; nothing is submitted."""
    print("\nChecking batch relay...")
    try:
        response = requests.options(config.submission.relay_url, timeout=10)
        print(f"  Status: {response.status_code}")
        print("  Relay: OK")
        return True
    except requests.RequestException as e:
        print(f"  Relay: FAILED - {e}")
        return False


def main():
    print("=" * 50)
    print("Basketswap - API Connectivity Check")
    print("=" * 50)

    config = load_config(Path("config/settings.yaml"))
    try:
        secrets = Secrets()
    except Exception as e:
        print(f"\nFailed to load .env file: {e}")
        print("Make sure .env exists with ZAPPER_API_KEY")
        sys.exit(1)

    if not config.rebalancing.owner_address:
        print("\nrebalancing.owner_address must be set in config/settings.yaml")
        sys.exit(1)

    results = [
        check_zapper(config, secrets),
        check_lifi(config, secrets),
        check_relay(config),
    ]

    print("\n" + "=" * 50)
    if all(results):
        print("All checks passed. Ready to rebalance.")
    else:
        print("Some checks failed. Fix the issues above.")
        sys.exit(1)


if __name__ == "__main__":
    main()
