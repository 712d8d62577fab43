"""
Logging system for the ledger synchronizer.

Provides colored terminal output and optional rotating file logs.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    GRAY = "\033[90m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BOLD = "\033[1m"


LEVEL_COLORS = {
    logging.DEBUG: Colors.GRAY,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.RED + Colors.BOLD,
}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to terminal output."""

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
        message = super().format(record)
        return f"{color}{message}{Colors.RESET}"


class PlainFormatter(logging.Formatter):
    """Plain formatter for file output (no colors)."""
    pass


# Level applied by set_log_level to loggers created afterwards
_level_override: int | None = None


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        if _level_override is not None:
            return _level_override
        level_str = os.getenv("LOG_LEVEL", "INFO").upper()
        return getattr(logging, level_str, logging.INFO)
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def setup_logger(
    name: str,
    level: int | str | None = None,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """
    Set up and return a configured logger.

    Args:
        name: Logger name, typically the module name
        level: Log level. Defaults to LOG_LEVEL env var or INFO
        log_file: Log file path. Defaults to LEDGER_SYNC_LOG_FILE env var;
            no file handler is attached when neither is set

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger("ledger_sync.ledger.synchronizer")
        >>> logger.info("Network detected")
    """
    logger = logging.getLogger(name)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    level = _resolve_level(level)
    logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(console_handler)

    if log_file is None:
        log_file = os.getenv("LEDGER_SYNC_LOG_FILE") or None

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(PlainFormatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger by name.

    If the logger doesn't exist, creates a new one with default settings.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        return setup_logger(name)

    return logger


def set_log_level(level: int | str, prefix: str = "ledger_sync") -> int:
    """
    Change the level of every logger under prefix, existing or future.

    Args:
        level: Level name or number
        prefix: Logger name prefix

    Returns:
        The numeric level applied
    """
    global _level_override

    resolved = _resolve_level(level)
    _level_override = resolved

    for name, logger in list(logging.root.manager.loggerDict.items()):
        if not isinstance(logger, logging.Logger):
            continue
        if name != prefix and not name.startswith(prefix + "."):
            continue
        logger.setLevel(resolved)
        for handler in logger.handlers:
            handler.setLevel(resolved)

    return resolved
