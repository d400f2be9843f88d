"""
Logging utilities for the GCaMP export pipeline.

Library code uses logging.getLogger(__name__) and never print().
"""

import logging
from typing import Optional


def setup_logging(level: str = "INFO", format_style: str = "default") -> None:
    """
    Configure logging for an export run.

    Call this at the application entry point (script/notebook),
    NOT inside library modules.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_style: "default" for timestamped lines, "minimal" for compact

    Example:
        >>> from gcamp_h5.utils.logging import setup_logging
        >>> setup_logging(level="DEBUG")
    """
    if format_style == "minimal":
        fmt = "%(levelname)s | %(message)s"
    else:
        fmt = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=fmt,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def get_logger(name: str, logger: Optional[logging.Logger] = None) -> logging.Logger:
    """
    Get a logger instance.

    Returns ``logger`` unchanged when one is supplied, so functions can accept
    a caller-owned logger and fall back to their module logger otherwise.

    Args:
        name: Logger name (typically __name__)
        logger: Explicit logger supplied by the caller

    Returns:
        Logger instance
    """
    if logger is not None:
        return logger
    return logging.getLogger(name)
