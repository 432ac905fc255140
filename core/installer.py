"""
Installer pipeline: reinstall every module listed in a profile.

Each record runs through resolution, transfer and normalization on its own.
Failures are captured per record and never stop the records that follow.
"""

from __future__ import annotations

import importlib.util
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from core.errors import (
    ModuleInstallError,
    PrerequisiteError,
    StructureAdjustmentError,
    StructureAmbiguousError,
)
from core.fetch import HttpFetcher
from core.normalizer import ArchiveNormalizer
from core.resolver import ManifestResolver
from core.settings import InstallerSettings
from core.transfer import ArtifactTransfer
from module_profiles.module_profiles import logger as app_logger
from shared.install_target import InstallationTarget
from shared.profile_format import ProfileRecord

_LOGGER = app_logger.get_logger()


class InstallStatus(Enum):
    INSTALLED = "Installed"
    ALREADY_INSTALLED = "Already installed"
    NEEDS_ATTENTION = "Needs attention"
    FAILED = "Failed"


@dataclass(slots=True)
class InstallOutcome:
    record: ProfileRecord
    status: InstallStatus
    module_id: Optional[str] = None
    path: Optional[Path] = None
    error: Optional[Exception] = None
    reused_artifact: bool = False


@dataclass(slots=True)
class InstallReport:
    outcomes: List[InstallOutcome] = field(default_factory=list)
    cancelled: bool = False

    def count(self, status: InstallStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def failures(self) -> List[InstallOutcome]:
        return [
            outcome
            for outcome in self.outcomes
            if outcome.status in {InstallStatus.FAILED, InstallStatus.NEEDS_ATTENTION}
        ]


class ModuleInstaller:
    """Runs the per-record install pipeline below one install root."""

    def __init__(
        self,
        install_root: Path,
        *,
        fetcher: HttpFetcher,
        settings: Optional[InstallerSettings] = None,
        normalizer: Optional[ArchiveNormalizer] = None,
    ) -> None:
        self.install_root = Path(install_root)
        self.settings = settings or InstallerSettings()
        self._resolver = ManifestResolver(fetcher)
        self._transfer = ArtifactTransfer(fetcher)
        self._normalizer = normalizer or ArchiveNormalizer()

    def check_prerequisites(self) -> None:
        """Fail the whole run early when modules could not be installed at all."""
        if importlib.util.find_spec("zlib") is None:
            raise PrerequisiteError("zlib support is required to unpack module archives.")
        if self.install_root.exists() and not self.install_root.is_dir():
            raise PrerequisiteError(f"Install location '{self.install_root}' is not a directory.")
        try:
            self.install_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PrerequisiteError(
                f"Could not create custom module install directory '{self.install_root}': {exc}"
            ) from exc

    def install_profile(
        self,
        records: Iterable[ProfileRecord],
        *,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> InstallReport:
        report = InstallReport()
        try:
            for record in records:
                if should_stop is not None and should_stop():
                    report.cancelled = True
                    break
                report.outcomes.append(self.install_record(record))
                _LOGGER.info("  ----------------------------------")
        except KeyboardInterrupt:
            _LOGGER.warning("Install interrupted; {} record(s) processed.", len(report.outcomes))
            report.cancelled = True
        return report

    def install_record(self, record: ProfileRecord) -> InstallOutcome:
        _LOGGER.info('Processing entry for: "{}" (Manifest: {})', record.display_name, record.manifest_url)
        outcome = InstallOutcome(record=record, status=InstallStatus.FAILED)
        try:
            self._run_pipeline(record, outcome)
        except (StructureAdjustmentError, StructureAmbiguousError) as exc:
            outcome.status = InstallStatus.NEEDS_ATTENTION
            outcome.error = exc
            _log_failure(record, exc)
        except (ModuleInstallError, OSError) as exc:
            outcome.status = InstallStatus.FAILED
            outcome.error = exc
            _log_failure(record, exc)
        return outcome

    def _run_pipeline(self, record: ProfileRecord, outcome: InstallOutcome) -> None:
        resolved = self._resolver.resolve(record)
        target = InstallationTarget(
            install_root=self.install_root,
            module_id=resolved.module_id,
            manifest_filename=self.settings.manifest_filename,
            artifact_filename=self.settings.artifact_filename,
        )
        outcome.module_id = resolved.module_id
        outcome.path = target.path

        _LOGGER.info("  Module ID (from remote manifest): {}", resolved.module_id)
        _LOGGER.info("  Download URL (from remote manifest): {}", resolved.download_url)
        _LOGGER.info("  Target install path: {}", target.path)

        if target.is_installed():
            _LOGGER.info(
                "  Skipping: Module directory '{}' already exists and contains a {}.",
                target.path,
                target.manifest_filename,
            )
            outcome.status = InstallStatus.ALREADY_INSTALLED
            return

        transfer = self._transfer.ensure_artifact(target, resolved.download_url, record=record)
        outcome.reused_artifact = transfer.reused

        self._normalizer.unpack(transfer.artifact_path, target, record=record)
        self._normalizer.normalize(target, record=record)
        outcome.status = InstallStatus.INSTALLED


def _log_failure(record: ProfileRecord, exc: Exception) -> None:
    _LOGGER.error(
        "  Error ({}) for '{}' ({}): {}. Skipping.",
        type(exc).__name__,
        record.display_name,
        record.manifest_url,
        exc,
    )
