"""
Logging setup for JellyRPC with console and file output.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "JellyRPC"

def setup_logger(log_file: Optional[str] = "jellyrpc.log", level: Union[int, str] = logging.INFO) -> logging.Logger:
    """
    Set up the application logger with both file and console handlers.

    Calling this again replaces the handlers, so the entry point can
    reconfigure the logger once the config file has been read.

    Args:
        log_file: Path to log file. If None, only console logging is enabled
        level: Console logging level, as a number or a name such as "DEBUG"

    Returns:
        Configured logger instance
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file else level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    detailed_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_formatter = logging.Formatter('[%(levelname)s] %(message)s')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # File gets all messages
            file_handler.setFormatter(detailed_formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not set up file logging: {e}")

    return logger

def get_logger() -> logging.Logger:
    """Get the application logger."""
    return logging.getLogger(LOGGER_NAME)
