"""
Logging configuration
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from tracker.config.settings import settings
from tracker.config.constants import LOG_FORMAT, LOG_DATE_FORMAT, LOG_FILE_NAME, LOG_FILE_MAX_BYTES, LOG_FILE_BACKUPS

# Libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    return handler


def setup_logger(name: str = "tracker") -> logging.Logger:
    """
    Configure the application logger

    Console gets INFO and above; the rotating file under logs/ gets everything
    down to DEBUG. Calling it twice replaces the handlers.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.propagate = False
    logger.handlers.clear()

    logger.addHandler(_handler(logging.StreamHandler(sys.stdout), logging.INFO))

    log_dir = Path(__file__).parent.parent.parent / "logs"
    log_dir.mkdir(exist_ok=True)
    logger.addHandler(_handler(
        RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        ),
        logging.DEBUG,
    ))

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


# Global logger instance
logger = setup_logger()
