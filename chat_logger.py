"""
chat_logger.py - Logging setup for the LPJ shop chat

One named logger ("lpj_chat") shared by every module:
- File handler: <LOG_DIR>/YYYY-MM-DD/chat.txt, everything from DEBUG up
- Console handler: stderr, filtered by LOG_LEVEL
- Helpers that keep customer text and credentials out of log lines
"""

import os
import re
import logging
from datetime import datetime
from pathlib import Path

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Query parameters that carry credentials (Gemini uses ?key=)
SENSITIVE_QUERY_PARAMS = ("key", "api_key", "access_token")

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_log_string(text: str) -> str:
    """
    Flatten user-supplied text to a single log line.

    Control characters (newlines included) become spaces so a message cannot
    forge extra log entries.
    """
    if not text:
        return text
    return _CONTROL_CHARS.sub(" ", text)


def shorten(text: str, limit: int = 100) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class MillisecondFormatter(logging.Formatter):
    """Adds milliseconds to ``datefmt`` timestamps."""

    def formatTime(self, record, datefmt=None):
        if not datefmt:
            return super().formatTime(record, datefmt)
        stamp = datetime.fromtimestamp(record.created)
        return f"{stamp.strftime(datefmt)}.{int(record.msecs):03d}"


def _level(name: str) -> int:
    return getattr(logging, (name or "INFO").upper(), logging.INFO)


def setup_logger(name: str = "lpj_chat", log_level: str = "INFO") -> logging.Logger:
    """
    Attach file and console handlers to ``name`` once.

    Args:
        name: Logger name
        log_level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    if logger.handlers:
        return logger

    formatter = MillisecondFormatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    log_dir = Path(os.getenv("LOG_DIR", "logs")) / datetime.now().strftime("%Y-%m-%d")
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_dir / "chat.txt", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(_level(log_level))
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


def sanitize_url(url: str) -> str:
    """Mask credential query parameters, e.g. ``?key=AIza...`` → ``?key=***``."""
    if not url:
        return url
    for param in SENSITIVE_QUERY_PARAMS:
        url = re.sub(rf"([?&]{param}=)[^&]*", r"\1***", url)
    return url


def mask_secret(secret: str, visible: int = 6) -> str:
    if not secret:
        return "NOT SET"
    return f"{secret[:visible]}..."


def get_logger(name: str = "lpj_chat") -> logging.Logger:
    """Return ``name``, configuring it from LOG_LEVEL on first use."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        setup_logger(name, os.getenv("LOG_LEVEL", "INFO"))
    return logger
