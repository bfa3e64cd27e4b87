"""Logging setup shared by the API process and scripts."""
import logging
import sys

import structlog

from core.settings import SETTINGS


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Route stdlib logging to stdout and configure structlog on top of it."""
    level = (level or SETTINGS.APP.LOG_LEVEL).upper()
    json_logs = SETTINGS.APP.JSON_LOGS if json_logs is None else json_logs

    # JSON lines must be the bare rendered event
    log_format = (
        "%(message)s"
        if json_logs
        else "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logging.basicConfig(
        level=level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level)
        ),
        cache_logger_on_first_use=True,
    )
