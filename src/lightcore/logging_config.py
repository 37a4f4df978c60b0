"""Logging configuration for lightcore."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", name: str = "lightcore") -> logging.Logger:
    """Attach a console handler to the package logger.

    Calling this more than once replaces the handler instead of stacking
    duplicates.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        name: Logger name, the package root by default.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    for handler in list(logger.handlers):
        if getattr(handler, "_lightcore_handler", False):
            logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._lightcore_handler = True
    logger.addHandler(console_handler)

    return logger
