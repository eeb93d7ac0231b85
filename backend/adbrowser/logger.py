"""Application logging with rotation"""
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from adbrowser.config import settings


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_file: Optional[Path] = None, console_output: bool = False) -> logging.Logger:
    """Configure the application logger with file rotation.

    Args:
        log_file: Path to the log file (defaults to settings.log_file)
        console_output: Also log to the console

    Returns:
        The configured application logger
    """
    log_file = log_file or settings.log_file

    logger = logging.getLogger("adbrowser")
    logger.setLevel(logging.DEBUG)

    # Clear any existing handlers
    logger.handlers.clear()

    # Ensure log directory exists
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Rotating file handler (100 MB max)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=100 * 1024 * 1024,  # 100 MB
        backupCount=5,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Console handler for development
    if console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # Route uvicorn loggers through the same handlers
    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        logger_obj = logging.getLogger(logger_name)
        logger_obj.handlers.clear()
        logger_obj.handlers.extend(logger.handlers)
        logger_obj.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module.

    Args:
        name: Module name (e.g., 'services.dscl')

    Returns:
        Logger instance
    """
    return logging.getLogger(f"adbrowser.{name}")
