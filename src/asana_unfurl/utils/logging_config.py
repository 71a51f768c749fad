"""
Logging setup for the Asana URL unfurling tool.

All modules log through the 'asana_unfurl' logger. setup_logger attaches a
console handler and, optionally, a rotating file handler.
"""

import sys
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOGGER_NAME = 'asana_unfurl'

CONSOLE_FORMAT = '%(levelname)s: %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(name: str = LOGGER_NAME, log_level: str = 'INFO',
                 log_file: Optional[str] = None, max_bytes: int = 1_000_000,
                 backup_count: int = 3) -> logging.Logger:
    """
    Configure and return the tool's logger.

    Calling this again replaces the handlers from the previous call.

    Args:
        name: Logger name
        log_level: Level name such as 'DEBUG' or 'INFO'
        log_file: Optional path of a log file (rotated at max_bytes)
        max_bytes: Size at which the log file is rotated
        backup_count: Number of rotated log files to keep

    Returns:
        The configured logger

    Raises:
        ValueError: If log_level is not a known level name
    """
    level = getattr(logging, str(log_level).upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger
