from __future__ import annotations

import logging
from logging.config import dictConfig

# ``extra=`` attributes set by the port and the ingestion worker
CONTEXT_KEYS = ("address", "rorg", "packet_type", "port")

_configured = False


class ContextualFormatter(logging.Formatter):
    """Appends the telegram context of a record as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{key}={getattr(record, key)}" for key in CONTEXT_KEYS if getattr(record, key, None) is not None
        )
        return f"{message} | {context}" if context else message


def configure_logging(level: str | int = "INFO") -> None:
    """Route the exporter's and uvicorn's loggers to one stderr handler."""
    global _configured
    if _configured:
        logging.getLogger().setLevel(level)
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": ContextualFormatter,
                    "fmt": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                }
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "contextual",
                }
            },
            "root": {"handlers": ["stderr"], "level": level},
        }
    )
    _configured = True
