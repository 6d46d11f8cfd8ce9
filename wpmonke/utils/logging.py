"""Logging utilities for wpmonke."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger with rich formatting.

    Args:
        name: Logger name
        level: Log level (default: INFO)

    Returns:
        Configured logger
    """
    logger = logging.getLogger(f"wpmonke.{name}")

    if logger.handlers:
        return logger

    log_level = getattr(logging, level.upper()) if level else logging.INFO
    logger.setLevel(log_level)

    rich_handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    rich_handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
    logger.addHandler(rich_handler)

    # Keep propagation so pytest's caplog and outer collectors see records
    logger.propagate = True

    return logger
