"""
Logging configuration for the animation pipeline.

Provides structured logging with different levels for development, testing, and production.
Configures formatters, handlers, and loggers for the pipeline components.
"""

import logging
import logging.config
import os
import sys
from typing import Dict, Any, Optional


def get_log_level() -> str:
    """Get the log level from environment variables."""
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_environment(environment: Optional[str] = None) -> str:
    """Deployment environment: the configured value, else ENVIRONMENT, else development."""
    return (environment or os.getenv("ENVIRONMENT", "development")).lower()


def use_json_format(environment: Optional[str] = None) -> bool:
    environment = get_environment(environment)
    log_format = os.getenv("LOG_FORMAT", "").lower()
    return environment == "production" or log_format == "json"


def get_logging_config(log_level: Optional[str] = None, environment: Optional[str] = None) -> Dict[str, Any]:
    """
    Get the logging configuration dictionary.

    Returns a logging configuration that can be used with logging.config.dictConfig().
    Batch runs in production (or with LOG_FORMAT=json) get JSON lines so the
    structured `extra` fields survive into log collectors. The environment
    comes from the pipeline settings when given, otherwise from ENVIRONMENT.
    """
    log_level = (log_level or get_log_level()).upper()

    if use_json_format(environment):
        formatter_class = "pythonjsonlogger.json.JsonFormatter"
        formatter_format = "%(asctime)s %(name)s %(levelname)s %(message)s"
    else:
        formatter_class = "logging.Formatter"
        formatter_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "class": formatter_class,
                "format": formatter_format,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "class": formatter_class,
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "default",
                "stream": sys.stdout,
            },
            "error_console": {
                "class": "logging.StreamHandler",
                "level": "ERROR",
                "formatter": "detailed",
                "stream": sys.stderr,
            },
        },
        "loggers": {
            "animpipe": {
                "level": log_level,
                "handlers": ["console", "error_console"],
                "propagate": False,
            },
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console", "error_console"],
        },
    }

    return config


def setup_logging(log_level: Optional[str] = None, environment: Optional[str] = None) -> None:
    """
    Configure logging for the pipeline.

    This should be called once at startup, before any other logging occurs.
    """
    config = get_logging_config(log_level, environment)
    logging.config.dictConfig(config)

    logger = logging.getLogger("animpipe.logging")
    logger.debug(
        "Logging configured",
        extra={
            "log_level": (log_level or get_log_level()).upper(),
            "environment": get_environment(environment),
        },
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given name.

    Args:
        name: The logger name, typically __name__ from the calling module

    Returns:
        A logger under the 'animpipe' hierarchy
    """
    if not name.startswith("animpipe"):
        if name.startswith("pipeline.src."):
            # Convert pipeline.src.services.clip_service -> animpipe.services
            parts = name.split(".")
            name = f"animpipe.{parts[2]}" if len(parts) >= 3 else "animpipe"
        else:
            name = f"animpipe.{name}"

    return logging.getLogger(name)
