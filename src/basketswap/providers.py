"""Provider factory - creates the right implementation based on config."""

import importlib

from basketswap.config import AppConfig, Secrets
from basketswap.execution.base import BatchSubmitter
from basketswap.portfolio.base import PortfolioProvider
from basketswap.quotes.base import QuoteProvider

PORTFOLIO_PROVIDERS = {
    "zapper": "basketswap.portfolio.zapper:ZapperPortfolioProvider",
}

QUOTE_PROVIDERS = {
    "lifi": "basketswap.quotes.lifi:LifiQuoteProvider",
}

SUBMITTERS = {
    "http-relay": "basketswap.execution.relay:HttpRelaySubmitter",
}


def _import_class(path: str):
    """Import a class from a 'module:ClassName' string."""
    module_path, class_name = path.split(":")
    module = importlib.import_module(module_path)
    return getattr(module, class_name)


def create_portfolio_provider(config: AppConfig, secrets: Secrets) -> PortfolioProvider:
    """Create a portfolio provider based on config.providers.portfolio."""
    name = config.providers.portfolio
    if name not in PORTFOLIO_PROVIDERS:
        raise ValueError(
            f"Unknown portfolio provider: '{name}'. Available: {list(PORTFOLIO_PROVIDERS.keys())}"
        )
    cls = _import_class(PORTFOLIO_PROVIDERS[name])
    return cls(config, secrets)


def create_quote_provider(config: AppConfig, secrets: Secrets) -> QuoteProvider:
    """Create a quote provider based on config.providers.quotes."""
    name = config.providers.quotes
    if name not in QUOTE_PROVIDERS:
        raise ValueError(
            f"Unknown quote provider: '{name}'. Available: {list(QUOTE_PROVIDERS.keys())}"
        )
    cls = _import_class(QUOTE_PROVIDERS[name])
    return cls(config, secrets)


def create_submitter(config: AppConfig, secrets: Secrets) -> BatchSubmitter:
    """Create a batch submitter based on config.providers.submitter."""
    name = config.providers.submitter
    if name not in SUBMITTERS:
        raise ValueError(
            f"Unknown submitter: '{name}'. Available: {list(SUBMITTERS.keys())}"
        )
    cls = _import_class(SUBMITTERS[name])
    return cls(config, secrets)
