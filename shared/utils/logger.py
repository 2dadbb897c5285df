"""
Structured logging configuration for the application.
"""

import logging
import sys
from pathlib import Path

from .config import settings


def setup_logger(name: str) -> logging.Logger:
    """
    Setup a logger with consistent formatting.

    Args:
        name: Logger name (usually __name__ of the module)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        logger.setLevel(settings.LOG_LEVEL)

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(settings.LOG_LEVEL)

        # Formatter
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        console_handler.setFormatter(formatter)

        logger.addHandler(console_handler)

        # Optional file handler
        if settings.LOG_FILE:
            log_path = Path(settings.LOG_FILE)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_path)
            file_handler.setLevel(settings.LOG_LEVEL)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


# Context attributes carried by reporting exceptions
_ERROR_CONTEXT_ATTRIBUTES = ("template", "export_format", "destination", "path")


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """
    Log an error with context.

    Context attributes set on the exception (template, export format,
    destination, path) are appended as key=value pairs.

    Args:
        logger: Logger instance
        error: Exception that occurred
        context: Additional context about where the error occurred
    """
    message = f"{type(error).__name__}: {str(error)}"
    if context:
        message = f"{context}: {message}"

    details = [
        f"{name}={getattr(error, name)}"
        for name in _ERROR_CONTEXT_ATTRIBUTES
        if getattr(error, name, None) is not None
    ]
    if details:
        message = f"{message} [{', '.join(details)}]"

    logger.error(message)

    if settings.DEBUG:
        logger.exception("Full traceback:")
