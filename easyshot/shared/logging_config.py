"""Shared logging configuration for sway-easyshot."""

import logging
from typing import Optional

from easyshot.shared.config import settings


def configure_logging(component: str = "easyshot", debug: Optional[bool] = None) -> logging.Logger:
    """Configure logging based on debug setting.

    Args:
        component: Name of the component for the logger (e.g., 'easyshot.daemon')
        debug: Overrides ``settings.debug`` when given (``daemon --debug``)

    Returns:
        Configured logger instance.
    """
    if debug is None:
        debug = settings.debug
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger().setLevel(log_level)

    return logging.getLogger(component)
