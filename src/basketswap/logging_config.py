"""Structured logging configuration with multiple output streams.

Three files are written: the application log, a plan log holding every
computed rebalance plan, and an execution log holding every submitted batch.
"""

import logging
import logging.handlers
from pathlib import Path

import structlog

from basketswap.config import LoggingConfig

PLAN_LOGGER = "basketswap.plans"
EXECUTION_LOGGER = "basketswap.executions"
HANDLER_PREFIX = "basketswap"

# requests/urllib3 log full URLs at DEBUG, LI.FI quote URLs included
NOISY_LOGGERS = ["urllib3", "requests", "charset_normalizer"]


def _rotating_handler(
    path: str,
    config: LoggingConfig,
    formatter: logging.Formatter,
) -> logging.handlers.RotatingFileHandler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
    )
    handler.set_name(f"{HANDLER_PREFIX}:{path}")
    handler.setFormatter(formatter)
    return handler


def remove_handlers(logger: logging.Logger) -> None:
    """Detach handlers installed by configure_logging, leaving any others."""
    for handler in list(logger.handlers):
        if (handler.get_name() or "").startswith(HANDLER_PREFIX):
            logger.removeHandler(handler)
            handler.close()


def configure_logging(config: LoggingConfig) -> None:
    """Set up structlog with console + rotating JSON file outputs.

    Safe to call more than once; handlers from an earlier call are replaced.
    """
    for log_path in [config.app_log, config.plan_log, config.execution_log]:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Files get JSON, the terminal gets the dev renderer
    json_formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=shared_processors,
    )
    console_formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=True),
        foreign_pre_chain=shared_processors,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper()))
    remove_handlers(root_logger)

    for noisy_logger in NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    console_handler = logging.StreamHandler()
    console_handler.set_name(f"{HANDLER_PREFIX}:console")
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(_rotating_handler(config.app_log, config, json_formatter))

    # Plan and execution streams also propagate to the app log
    for name, path in [(PLAN_LOGGER, config.plan_log), (EXECUTION_LOGGER, config.execution_log)]:
        stream_logger = logging.getLogger(name)
        remove_handlers(stream_logger)
        stream_logger.addHandler(_rotating_handler(path, config, json_formatter))
        stream_logger.propagate = True


def get_plan_logger() -> structlog.stdlib.BoundLogger:
    """Get the rebalance-plan logger."""
    return structlog.get_logger(PLAN_LOGGER)


def get_execution_logger() -> structlog.stdlib.BoundLogger:
    """Get the batch-execution logger."""
    return structlog.get_logger(EXECUTION_LOGGER)
