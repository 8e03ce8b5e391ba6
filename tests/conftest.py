"""Shared test fixtures."""

import pytest

from basketswap.config import AppConfig, Secrets
from basketswap.models import AssetHolding
from factories import GLMR, OWNER, USDC


@pytest.fixture
def test_config() -> AppConfig:
    """Provide a test configuration with safe defaults."""
    return AppConfig(
        chain={"name": "moonbeam", "chain_id": 1284},
        quotes={"slippage": 0.005, "max_concurrency": 2},
        submission={"relay_url": "http://relay.test/batch"},
        rebalancing={
            "owner_address": OWNER,
            "targets": {"GLMR": 50, "USDC": 50},
        },
        logging={
            "level": "DEBUG",
            "app_log": "/tmp/test_basketswap.log",
            "plan_log": "/tmp/test_plans.log",
            "execution_log": "/tmp/test_executions.log",
        },
    )


@pytest.fixture
def mock_secrets() -> Secrets:
    """Provide fake API keys for unit tests."""
    return Secrets(
        zapper_api_key="test-zapper-key",
        lifi_api_key="test-lifi-key",
        relay_api_key="test-relay-key",
    )


@pytest.fixture
def two_holdings() -> list[AssetHolding]:
    """$1000 portfolio split 60/40 between native GLMR and USDC."""
    return [
        AssetHolding(
            address=GLMR, symbol="GLMR", name="Glimmer",
            balance=2400.0, balance_usd=600.0, price=0.25, percentage=60.0,
        ),
        AssetHolding(
            address=USDC, symbol="USDC", name="USD Coin", decimals=6,
            balance=400.0, balance_usd=400.0, price=1.0, percentage=40.0,
        ),
    ]

