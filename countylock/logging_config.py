import logging
import logging.config
import sys

from flask import g, has_request_context


class RequestIdFilter(logging.Filter):
    """Attach the current request's correlation id to every record."""

    def filter(self, record):
        record.request_id = g.get("request_id", "-") if has_request_context() else "-"
        return True


def build_logging_config(level="INFO", fmt="json"):
    """Return a dictConfig mapping for the given level and formatter name."""
    return {
        "version": 1,
        "disable_existing_loggers": False,

        "filters": {
            "request_id": {
                "()": "countylock.logging_config.RequestIdFilter",
            },
        },

        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(request_id)s %(message)s",
                "json_ensure_ascii": False,
            },
            "console": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },

        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": fmt,
                "filters": ["request_id"],
                "stream": sys.stdout,
            },
        },

        "loggers": {
            "countylock": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            # Noisy third-party loggers
            "werkzeug": {"level": "WARNING"},
            "sqlalchemy.engine": {"level": "WARNING"},
            "urllib3": {"level": "WARNING"},
            "stripe": {"level": "WARNING"},
        },

        "root": {
            "handlers": ["console"],
            "level": level,
        },
    }


def configure_logging(app):
    """
    Configure logging for the application from LOG_LEVEL and LOG_FORMAT.

    Uses python-json-logger outside development so log lines can be shipped
    as structured records.
    """
    level = app.config.get("LOG_LEVEL", "INFO").upper()
    fmt = app.config.get("LOG_FORMAT", "json")
    if fmt not in ("json", "console"):
        fmt = "json"

    logging.config.dictConfig(build_logging_config(level, fmt))
    logger = logging.getLogger(__name__)
    logger.info("Logging configured", extra={"level": level, "format": fmt})
    return logger
