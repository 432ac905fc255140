"""
Transfer stage: put a module archive on disk inside its install directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from core.errors import ArtifactDownloadError
from core.fetch import FetchError, HttpFetcher
from module_profiles.module_profiles import logger as app_logger
from shared.install_target import InstallationTarget
from shared.profile_format import ProfileRecord

_LOGGER = app_logger.get_logger()


@dataclass(slots=True)
class TransferResult:
    artifact_path: Path
    reused: bool
    size: int = 0


class ArtifactTransfer:
    """Downloads archives, reusing one left behind by an interrupted run."""

    def __init__(self, fetcher: HttpFetcher) -> None:
        self._fetcher = fetcher

    def ensure_artifact(
        self,
        target: InstallationTarget,
        download_url: str,
        *,
        record: ProfileRecord | None = None,
    ) -> TransferResult:
        try:
            target.path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ArtifactDownloadError(
                f"Could not create directory '{target.path}' for download: {exc}",
                record=record,
            ) from exc

        artifact = target.artifact_path
        if artifact.is_file():
            _LOGGER.info("  Info: '{}' already exists. Will attempt to unzip.", artifact)
            return TransferResult(artifact_path=artifact, reused=True, size=artifact.stat().st_size)

        _LOGGER.info("  Downloading module package to: {}", artifact)
        try:
            size = self._fetcher.download_artifact(download_url, artifact)
        except (FetchError, OSError) as exc:
            _discard_partial_download(target)
            raise ArtifactDownloadError(
                f"Failed to download module package from '{download_url}': {exc}",
                record=record,
            ) from exc

        _LOGGER.info("  Successfully downloaded: {} ({} bytes)", artifact, size)
        return TransferResult(artifact_path=artifact, reused=False, size=size)


def _discard_partial_download(target: InstallationTarget) -> None:
    """Remove a partial archive and the install directory if that leaves it empty."""
    target.artifact_path.unlink(missing_ok=True)
    try:
        target.path.rmdir()
    except OSError:
        _LOGGER.debug("Keeping non-empty directory {} after failed download.", target.path)
