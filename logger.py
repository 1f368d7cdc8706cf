"""
Logger setup for the portfolio API.

Every module logs through ``from loguru import logger``; this module only
decides where the records go.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}


def setup_logger(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Configure loguru sinks for the application.

    Console output is colourised and filtered at ``level``. When ``log_file``
    is given, a file sink captures everything down to DEBUG.

    Args:
        level: Minimum level for the console sink (e.g. "INFO", "DEBUG")
        log_file: Optional path of a detailed log file

    Example:
        from logger import setup_logger

        setup_logger("DEBUG", Path("logs/api.log"))
    """
    logger.remove()

    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)

    logger.add(
        sys.stderr,
        format="{time:YYYY-MM-DD HH:mm:ss} | <level>{level: <7}</level> | {name}:{line} | <level>{message}</level>",
        level=level.upper(),
        colorize=True,
    )

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(exist_ok=True, parents=True)
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {name}:{function}:{line} | {message}",
            level="DEBUG",
        )
