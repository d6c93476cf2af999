"""
Logging configuration for the CLI and the API server.

Library modules only create loggers with `logging.getLogger(__name__)`;
entry points call `setup_logging` once.
"""

import logging
import sys
from typing import Optional

from .config import LOG_LEVEL


def setup_logging(level: Optional[str] = None, include_timestamp: bool = True) -> None:
    """
    Configure the root logger with a single stderr handler.

    Args:
        level: Logging level name (defaults to DIAGRAM_SYNC_LOG_LEVEL)
        include_timestamp: Whether to include timestamps
    """
    level_str = (level or LOG_LEVEL).upper()
    log_level = getattr(logging, level_str, logging.INFO)

    if include_timestamp:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    else:
        formatter = logging.Formatter('%(name)s - %(levelname)s - %(message)s')

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stderr keeps CLI stdout clean for JSON output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
