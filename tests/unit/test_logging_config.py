"""Tests for the logging streams."""

import json
import logging

import pytest
import structlog

from basketswap.config import LoggingConfig
from basketswap.logging_config import (
    EXECUTION_LOGGER,
    PLAN_LOGGER,
    configure_logging,
    get_execution_logger,
    get_plan_logger,
    remove_handlers,
)


@pytest.fixture
def log_config(tmp_path):
    root_level = logging.getLogger().level
    config = LoggingConfig(
        level="INFO",
        app_log=str(tmp_path / "logs" / "app.log"),
        plan_log=str(tmp_path / "logs" / "plans.log"),
        execution_log=str(tmp_path / "logs" / "executions.log"),
    )
    yield config

    for name in [None, PLAN_LOGGER, EXECUTION_LOGGER]:
        remove_handlers(logging.getLogger(name))
    logging.getLogger().setLevel(root_level)
    structlog.reset_defaults()


def _events(path):
    return [json.loads(line)["event"] for line in path.read_text().splitlines()]


class TestConfigureLogging:
    def test_streams_written_as_json(self, log_config, tmp_path):
        configure_logging(log_config)

        get_plan_logger().info("plan.created", swaps=2)
        get_execution_logger().info("batch.submitted", tx_hash="0xabc")

        logs = tmp_path / "logs"
        assert _events(logs / "plans.log") == ["plan.created"]
        assert _events(logs / "executions.log") == ["batch.submitted"]
        assert _events(logs / "app.log") == ["plan.created", "batch.submitted"]

    def test_reconfigure_does_not_duplicate(self, log_config, tmp_path):
        configure_logging(log_config)
        configure_logging(log_config)

        get_plan_logger().info("plan.created")

        assert _events(tmp_path / "logs" / "plans.log") == ["plan.created"]
        assert len(logging.getLogger(PLAN_LOGGER).handlers) == 1

    def test_noisy_loggers_quieted(self, log_config):
        configure_logging(log_config)
        assert logging.getLogger("urllib3").level == logging.WARNING
