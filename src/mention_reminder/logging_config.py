"""Structured JSON logging configuration for Cloud Run.

Emits one JSON object per line on stdout with GCP field names, so Cloud
Logging picks up ``severity`` and indexes ``mention_key`` passed via
``extra=`` for correlating a watch record across the three entry points.

Usage:
    from mention_reminder.logging_config import configure_logging
    configure_logging("DEBUG")
"""

import copy
import logging
import logging.config

LOGGING_CONFIG: dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(levelname)s %(name)s %(funcName)s %(message)s",
            "rename_fields": {
                "levelname": "severity",
                "asctime": "timestamp",
                "name": "logger",
            },
            "static_fields": {
                "service": "mention-reminder",
            },
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        # slack_sdk logs every request body at DEBUG
        "slack_sdk": {"level": "WARNING"},
        "httpx": {"level": "WARNING"},
    },
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
}


def configure_logging(level: str = "INFO") -> None:
    """Apply structured JSON logging with the given root level.

    Call once at application startup, from the FastAPI lifespan.
    """
    config = copy.deepcopy(LOGGING_CONFIG)
    config["root"]["level"] = level.upper()
    logging.config.dictConfig(config)
