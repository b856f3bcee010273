# app/utils/logger.py
"""
Centralised logging configuration for the permits backend.
Logs to console and to a rotating file in /logs/. Every record passes through
a redaction filter so a card number can never reach a log sink.
"""

import logging
import os
import re
from logging.handlers import RotatingFileHandler

from app.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
os.makedirs(LOG_DIR, exist_ok=True)

# 13–19 digits, optionally grouped by spaces or dashes
CARD_PATTERN = re.compile(r"\b(?:\d[ -]?){12,18}\d\b")

_configured = False


class CardRedactionFilter(logging.Filter):
    """Replace anything shaped like a card number with its last 4 digits."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if CARD_PATTERN.search(message):
            record.msg = CARD_PATTERN.sub(_mask, message)
            record.args = None
        return True


def _mask(match: re.Match) -> str:
    digits = re.sub(r"\D", "", match.group(0))
    return f"****{digits[-4:]}"


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    redact = CardRedactionFilter()

    console = logging.StreamHandler()
    console.setLevel(LOG_LEVEL)
    console.setFormatter(fmt)
    console.addFilter(redact)

    # Rotating file handler, keeps last 10 × 5MB log files
    file_handler = RotatingFileHandler(
        filename=os.path.join(LOG_DIR, "permits.log"),
        maxBytes=5 * 1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    )
    file_handler.setLevel(LOG_LEVEL)
    file_handler.setFormatter(fmt)
    file_handler.addFilter(redact)

    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    root.addHandler(console)
    root.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure_root_logger()
    return logging.getLogger(name)
