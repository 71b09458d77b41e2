"""Structured logging configuration using structlog."""
import logging
import sys
from typing import Any, Optional

import structlog
from pythonjsonlogger import jsonlogger

from hotel_ledger.config.settings import LoggingSettings, settings

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def add_ledger_scope(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Prefix the event with the property and room it concerns.

    ``[P1/R1] Room dates held`` when both ids are bound, ``[P1]`` or
    ``[R1]`` when only one is. Events with neither are left alone.

    Args:
        logger: The logger instance
        method_name: The name of the method being called
        event_dict: The event dictionary containing log data

    Returns:
        Modified event dictionary
    """
    scope = "/".join(
        str(value)
        for value in (event_dict.get("property_id"), event_dict.get("room_id"))
        if value
    )
    if scope:
        event_dict["event"] = f"[{scope}] {event_dict.get('event', '')}"
    return event_dict


def build_processors(log_format: str) -> list[Any]:
    """Processor chain shared by every ledger logger, ending in the renderer."""
    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_ledger_scope,
        renderer,
    ]


def build_handler(log_format: str, level: int) -> logging.Handler:
    """Stdout handler formatted as JSON lines or plain console text."""
    handler = logging.StreamHandler(sys.stdout)
    if log_format == "json":
        handler.setFormatter(jsonlogger.JsonFormatter(JSON_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    handler.setLevel(level)
    return handler


def configure_logging(config: Optional[LoggingSettings] = None) -> None:
    """Route structlog through the stdlib root logger.

    Called once at service start-up; library code only asks for loggers.
    """
    config = config or settings.logging
    level = getattr(logging, config.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(build_handler(config.format, level))

    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=build_processors(config.format),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.typing.FilteringBoundLogger:
    """Get a configured logger instance.

    Args:
        name: Logger name, typically __name__

    Returns:
        Configured logger instance
    """
    return structlog.get_logger(name)
