"""
Environment-backed configuration for the module profile tools.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from module_profiles.module_profiles import logger as app_logger
from shared.install_target import DEFAULT_ARTIFACT_FILENAME, DEFAULT_MANIFEST_FILENAME

_LOGGER = app_logger.get_logger()

_PREFIX = "MODULE_PROFILES_"
_MIN_TIMEOUT = 1
_MAX_TIMEOUT = 600
_MIN_ATTEMPTS = 1
_MAX_ATTEMPTS = 10


@dataclass(eq=True)
class InstallerSettings:
    manifest_timeout_seconds: int = 20
    manifest_attempts: int = 2
    download_timeout_seconds: int = 60
    download_attempts: int = 3
    saves_dir: Path = Path("saves")
    save_extension: str = ".txt"
    search_dir: Path = Path(".")
    manifest_filename: str = DEFAULT_MANIFEST_FILENAME
    artifact_filename: str = DEFAULT_ARTIFACT_FILENAME
    user_agent: str = "module-profiles/1.0"


class SettingsManager:
    """Loads settings from MODULE_PROFILES_* variables and clamps invalid data."""

    def __init__(self, *, environ: Optional[Mapping[str, str]] = None) -> None:
        self._environ = os.environ if environ is None else environ

    def read_settings(self) -> InstallerSettings:
        defaults = InstallerSettings()
        return InstallerSettings(
            manifest_timeout_seconds=self._read_bounded(
                "MANIFEST_TIMEOUT", defaults.manifest_timeout_seconds, _MIN_TIMEOUT, _MAX_TIMEOUT
            ),
            manifest_attempts=self._read_bounded(
                "MANIFEST_ATTEMPTS", defaults.manifest_attempts, _MIN_ATTEMPTS, _MAX_ATTEMPTS
            ),
            download_timeout_seconds=self._read_bounded(
                "DOWNLOAD_TIMEOUT", defaults.download_timeout_seconds, _MIN_TIMEOUT, _MAX_TIMEOUT
            ),
            download_attempts=self._read_bounded(
                "DOWNLOAD_ATTEMPTS", defaults.download_attempts, _MIN_ATTEMPTS, _MAX_ATTEMPTS
            ),
            saves_dir=Path(self._read_str("SAVES_DIR", str(defaults.saves_dir))),
            save_extension=self._read_extension(defaults.save_extension),
            search_dir=Path(self._read_str("SEARCH_DIR", str(defaults.search_dir))),
            manifest_filename=defaults.manifest_filename,
            artifact_filename=defaults.artifact_filename,
            user_agent=self._read_str("USER_AGENT", defaults.user_agent),
        )

    def _read_str(self, name: str, default: str) -> str:
        raw = self._environ.get(_PREFIX + name)
        if raw is None or not raw.strip():
            return default
        return raw.strip()

    def _read_extension(self, default: str) -> str:
        value = self._read_str("SAVE_EXTENSION", default)
        if not value.startswith("."):
            value = "." + value
        return value

    def _read_bounded(self, name: str, default: int, minimum: int, maximum: int) -> int:
        raw = self._environ.get(_PREFIX + name)
        if raw is None or not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError:
            _LOGGER.warning("Setting {}{} has non-integer value {!r}; using {}.", _PREFIX, name, raw, default)
            return default
        if value < minimum or value > maximum:
            _LOGGER.warning(
                "Setting {}{}={} is out of range. Clamping to [{}, {}].",
                _PREFIX,
                name,
                value,
                minimum,
                maximum,
            )
        return max(minimum, min(maximum, value))
