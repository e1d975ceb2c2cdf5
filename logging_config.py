"""
Centralized logging configuration for synclyrics-bar
Handles all logging setup and provides convenience functions

stdout belongs to the bar (one JSON object per line), so console logs go to stderr.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

# Define log formats
CONSOLE_FORMAT = '(%(filename)s:%(lineno)d) %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'

# Track if logging has been initialized
_logging_initialized = False


def setup_logging(
    console_level: str = "WARNING",
    file_level: str = "INFO",
    console: bool = True,
    log_file: Optional[str] = None,
    max_bytes: int = 1 * 1024 * 1024,
    backup_count: int = 5,
    log_providers: bool = True
) -> None:
    """
    Set up logging configuration with separate console and file handlers

    Args:
        console_level: Logging level for stderr output (default: WARNING)
        file_level: Logging level for file output (default: INFO)
        console: Whether to enable console logging (default: True)
        log_file: Optional log file path, no file handler when empty
        max_bytes: Rotate the log file after this many bytes
        backup_count: Number of rotated files to keep
        log_providers: Whether provider requests are logged at console level (default: True)
    """
    global _logging_initialized
    if _logging_initialized:
        return

    # Get the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all levels

    # Clear any existing handlers
    root_logger.handlers = []

    # Console handler (simpler format)
    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, console_level.upper()))
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root_logger.addHandler(console_handler)

    # File handler (detailed format)
    log_path = None
    if log_file:
        log_path = Path(log_file).expanduser()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(getattr(logging, file_level.upper()))
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            root_logger.addHandler(file_handler)
        except OSError as e:
            print(f"Failed to open log file {log_path}: {e}", file=sys.stderr)
            log_path = None

    if not root_logger.handlers:
        root_logger.addHandler(logging.NullHandler())

    # Configure specific loggers
    if log_providers:
        logging.getLogger('providers').setLevel(getattr(logging, console_level.upper()))
    else:
        logging.getLogger('providers').setLevel(logging.WARNING)

    # Disable unnecessary logging
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    _logging_initialized = True

    # Log initial setup message
    root_logger.info(f"Logging initialized - Console: {console_level if console else 'off'}, File: {file_level if log_path else 'off'}")
    if log_path:
        root_logger.debug(f"Log file: {log_path}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name"""
    # setup_logging() must be called explicitly by the entry point.
    return logging.getLogger(name)
