"""
Central logging configuration for the Card Creator.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


LOGGER_NAME = "card_creator"
LOG_DIR = Path(os.getenv("CARD_CREATOR_LOG_DIR", Path(__file__).resolve().parent / "logs"))
LOG_FILE = LOG_DIR / "card_creator.log"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure the shared logger once and return it.

    Logs go to ``logs/card_creator.log`` with basic rotation; only warnings and
    errors are echoed to the console.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=3)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)
    except OSError:
        # Read-only install location; console logging still works
        pass

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(logging.WARNING)

    logger.setLevel(level)
    logger.addHandler(stream_handler)

    logging.getLogger("PIL").setLevel(logging.WARNING)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a child logger under the card_creator namespace."""
    parent = logging.getLogger(LOGGER_NAME)
    if name:
        return parent.getChild(name)
    return parent
