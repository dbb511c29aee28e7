"""Diagnostic logging setup.

The TUI owns the terminal, so records never go to stderr. Verbosity comes
from ``TMUXMAN_LOG_LEVEL``; without it nothing is logged at all.
"""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from platformdirs import user_log_dir

from .config import APP_NAME

LEVEL_ENV = "TMUXMAN_LOG_LEVEL"
FILE_ENV = "TMUXMAN_LOG_FILE"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def default_log_path() -> Path:
    return Path(user_log_dir(APP_NAME)) / f"{APP_NAME}.log"


def configure_logging(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """Configure the ``tmuxman`` logger from the environment.

    Returns:
        The log file path, or None when logging stays off.
    """
    env = os.environ if environ is None else environ
    logger = logging.getLogger(APP_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    level_name = env.get(LEVEL_ENV, "").strip().upper()
    if not level_name:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.CRITICAL + 1)
        return None

    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    log_path = Path(env.get(FILE_ENV) or default_log_path())
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
    logger.setLevel(level)
    return log_path
