"""
Logging utilities for the Factorial time tracking tool.

This module sets up console and rotating file logging with consistent
formats, plus small helpers for section headers and step messages.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = 'factorial_bot'

# Rotation limits for the log file
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 5


CONSOLE_FORMAT = '%(levelname)-8s | %(message)s'
FILE_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'
FILE_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """
    Formatter that wraps the level name in ANSI colors for terminal output.

    The record is restored after formatting so other handlers (the log
    file) still see the plain level name.
    """

    RESET = '\033[0m'
    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }

    def format(self, record):
        plain = record.levelname
        color = self.LEVEL_COLORS.get(plain)
        if color:
            record.levelname = f"{color}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def resolve_level(level_name: Optional[str], verbose: bool = False) -> int:
    """
    Map a level name such as "info" or "debug" to a logging level.

    Unknown names fall back to INFO; ``verbose`` always wins.
    """
    if verbose:
        return logging.DEBUG
    if not level_name:
        return logging.INFO
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(
    verbose: bool = False,
    level_name: Optional[str] = None,
    log_file: Optional[str] = None,
    use_colors: bool = True
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        verbose: If True, set level to DEBUG regardless of level_name
        level_name: Level name from configuration (e.g. "info")
        log_file: Path of a rotating log file (None for console only)
        use_colors: If True, use colored output for terminal

    Returns:
        Configured logger instance
    """
    logger = get_logger()
    level = resolve_level(level_name, verbose)
    logger.setLevel(level)

    # Reconfiguring replaces handlers instead of stacking them
    for existing in list(logger.handlers):
        existing.close()
        logger.removeHandler(existing)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    colored = use_colors and sys.stdout.isatty()
    console.setFormatter(
        ColoredFormatter(fmt=CONSOLE_FORMAT) if colored else logging.Formatter(fmt=CONSOLE_FORMAT)
    )
    logger.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def get_logger() -> logging.Logger:
    """Get the application logger."""
    return logging.getLogger(LOGGER_NAME)


def _or_default(logger: Optional[logging.Logger]) -> logging.Logger:
    return logger if logger is not None else get_logger()


def log_section(title: str, logger: Optional[logging.Logger] = None):
    """
    Log a banner line pair around a title, separating phases of a run.

    Args:
        title: Section title
        logger: Logger instance (uses the application logger if None)
    """
    logger = _or_default(logger)
    rule = "=" * 60
    for line in ("", rule, f"  {title}", rule):
        logger.info(line)


def log_step(step: str, logger: Optional[logging.Logger] = None):
    """Log the start of a browser step."""
    _or_default(logger).info(f"→ {step}")


def log_success(message: str, logger: Optional[logging.Logger] = None):
    """Log a step that completed."""
    _or_default(logger).info(f"✓ {message}")


def log_warning(warning: str, logger: Optional[logging.Logger] = None):
    """Log a recoverable problem."""
    _or_default(logger).warning(f"⚠ {warning}")


def log_error(error: str, logger: Optional[logging.Logger] = None):
    """Log a failure that ends the current operation."""
    _or_default(logger).error(f"✗ {error}")
