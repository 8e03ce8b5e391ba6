"""Configuration loading and validation using Pydantic."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class ChainConfig(BaseModel):
    name: str = "moonbeam"
    chain_id: int = Field(default=1284, gt=0)


class ProvidersConfig(BaseModel):
    portfolio: str = "zapper"
    quotes: str = "lifi"
    submitter: str = "http-relay"


class PortfolioConfig(BaseModel):
    api_url: str = "https://public.zapper.xyz/graphql"
    max_tokens: int = Field(default=50, ge=1, le=500)
    timeout_seconds: float = Field(default=30.0, gt=0)
    token_list_path: str = "config/tokenlist.json"


class QuotesConfig(BaseModel):
    api_url: str = "https://li.quest/v1/quote"
    slippage: float = Field(default=0.005, gt=0, lt=1)
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_concurrency: int = Field(default=4, ge=1, le=32)


class SubmissionConfig(BaseModel):
    relay_url: str = "http://localhost:8545/batch"
    timeout_seconds: float = Field(default=60.0, gt=0)


class HttpConfig(BaseModel):
    """Retry policy for read-only collaborator calls. One attempt means no retry."""

    retry_attempts: int = Field(default=1, ge=1, le=5)
    retry_wait_min_seconds: float = Field(default=1.0, ge=0)
    retry_wait_max_seconds: float = Field(default=10.0, ge=0)


class RebalancingConfig(BaseModel):
    """Target allocation and planning thresholds."""

    owner_address: str = ""
    targets: dict[str, float] = Field(default_factory=dict)
    dust_threshold_usd: float = Field(default=0.01, gt=0)
    slider_epsilon: float = Field(default=0.01, gt=0)
    dry_run: bool = True

    @field_validator("targets")
    @classmethod
    def targets_in_range(cls, v):
        for symbol, pct in v.items():
            if pct < 0 or pct > 100:
                raise ValueError(f"target for {symbol} must be between 0 and 100, got {pct}")
        return v

    @model_validator(mode="after")
    def targets_sum_to_100(self):
        if self.targets:
            total = sum(self.targets.values())
            if abs(total - 100.0) > self.slider_epsilon:
                raise ValueError(f"targets must sum to 100, got {total:.4f}")
        return self


class LoggingConfig(BaseModel):
    level: str = "INFO"
    app_log: str = "logs/basketswap.log"
    plan_log: str = "logs/plans.log"
    execution_log: str = "logs/executions.log"
    max_bytes: int = 10485760
    backup_count: int = 5


class AppConfig(BaseModel):
    chain: ChainConfig = Field(default_factory=ChainConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    portfolio: PortfolioConfig = Field(default_factory=PortfolioConfig)
    quotes: QuotesConfig = Field(default_factory=QuotesConfig)
    submission: SubmissionConfig = Field(default_factory=SubmissionConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    rebalancing: RebalancingConfig = Field(default_factory=RebalancingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Secrets(BaseSettings):
    """Loaded from .env file automatically."""

    zapper_api_key: str = ""
    lifi_api_key: str = ""
    relay_api_key: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def load_config(config_path: Path = Path("config/settings.yaml")) -> AppConfig:
    """Load and validate application configuration from YAML."""
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    # Target percentages may be written as "GLMR: 50" or as a list of single-key maps
    rebalancing = raw.get("rebalancing") or {}
    targets = rebalancing.get("targets")
    if isinstance(targets, list):
        merged: dict[str, float] = {}
        for item in targets:
            merged.update(item)
        rebalancing["targets"] = merged

    return AppConfig(**raw)
