"""
Logging setup for module profiles.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

_LOG_INITIALISED = False
LOG_DIR = Path(os.environ.get("MODULE_PROFILES_LOG_DIR", str(Path.home() / ".module_profiles" / "logs")))
DEFAULT_LOG_PATH = LOG_DIR / "module_profiles.log"


def configure(log_path: Optional[Path] = None) -> None:
    """
    Configure loguru for the application.

    Console output stays at INFO; the rotating file sink keeps DEBUG detail
    for post-mortem inspection of failed installs. Runs only once.
    """
    global _LOG_INITIALISED
    if _LOG_INITIALISED:
        return
    target = log_path or DEFAULT_LOG_PATH
    target.parent.mkdir(parents=True, exist_ok=True)

    _logger.remove()
    if sys.stderr is not None:
        _logger.add(sys.stderr, level="INFO", format="{message}", enqueue=True)
    _logger.add(
        target,
        level="DEBUG",
        rotation="10 MB",
        retention=5,
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )
    _LOG_INITIALISED = True


def get_logger():
    """Return the shared logger instance."""
    configure()
    return _logger
