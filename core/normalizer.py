"""
Normalization stage: unpack a module archive and flatten a wrapper directory.

Packaging tools often zip a module as ``<name>/module.json`` instead of
``module.json``. When the unpacked tree consists of exactly one directory and
that directory holds the manifest, its contents are lifted one level so the
manifest ends up at the install directory's root. Any other layout is left
exactly as unpacked and reported for manual correction.
"""

from __future__ import annotations

import shutil
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from core.errors import ExtractionError, StructureAdjustmentError, StructureAmbiguousError
from module_profiles.module_profiles import logger as app_logger
from shared.install_target import InstallationTarget
from shared.profile_format import ProfileRecord

_LOGGER = app_logger.get_logger()


@dataclass(slots=True)
class NormalizeResult:
    adjusted: bool
    wrapper_name: Optional[str] = None


class ArchiveNormalizer:
    """Unpacks archives into install directories and fixes single-wrapper layouts."""

    def unpack(
        self,
        artifact_path: Path,
        target: InstallationTarget,
        *,
        record: Optional[ProfileRecord] = None,
    ) -> int:
        """Extract every entry over the target directory, then delete the archive."""
        _LOGGER.info("  Unzipping '{}' into '{}/'", artifact_path, target.path)
        try:
            with zipfile.ZipFile(artifact_path) as archive:
                members = archive.infolist()
                _reject_escaping_members(members, target.path)
                archive.extractall(target.path)
        except ExtractionError as exc:
            exc.record = record
            raise
        except (zipfile.BadZipFile, EOFError, NotImplementedError, RuntimeError, OSError) as exc:
            raise ExtractionError(
                f"Failed to unzip '{artifact_path}' ({exc}). Please check the file and try manually.",
                record=record,
            ) from exc

        _LOGGER.info("  Successfully unzipped module '{}'.", target.module_id)
        _LOGGER.info("  Removing '{}'.", artifact_path)
        artifact_path.unlink(missing_ok=True)
        return len(members)

    def normalize(
        self,
        target: InstallationTarget,
        *,
        record: Optional[ProfileRecord] = None,
    ) -> NormalizeResult:
        """Move the manifest to the target root when the archive wrapped the module once."""
        if target.manifest_path.is_file():
            return NormalizeResult(adjusted=False)

        manifest_name = target.manifest_filename
        _LOGGER.info(
            "  {} not at root of '{}'. Checking for a single nested module directory...",
            manifest_name,
            target.path,
        )
        entries = _top_level_entries(target.path)

        if len(entries) == 1 and _is_real_directory(entries[0]):
            wrapper = entries[0]
            _LOGGER.info("  Found single item: {} (is directory)", wrapper)
            if (wrapper / manifest_name).is_file():
                _LOGGER.info("  {} found in nested directory: {}", manifest_name, wrapper)
                self._lift_wrapper(target, wrapper, record=record)
                return NormalizeResult(adjusted=True, wrapper_name=wrapper.name)
            raise StructureAmbiguousError(
                f"Single subdirectory '{wrapper}' does not contain {manifest_name}.",
                record=record,
            )

        if len(entries) > 1:
            raise StructureAmbiguousError(
                f"Multiple items found in '{target.path}' after unzip, and {manifest_name} not at root. "
                "Cannot automatically adjust structure.",
                record=record,
            )
        raise StructureAmbiguousError(
            f"No single nested directory found containing {manifest_name} in '{target.path}'.",
            record=record,
        )

    def _lift_wrapper(
        self,
        target: InstallationTarget,
        wrapper: Path,
        *,
        record: Optional[ProfileRecord],
    ) -> None:
        try:
            holder = Path(tempfile.mkdtemp(prefix=f".{target.module_id}-", dir=target.install_root))
        except OSError as exc:
            raise StructureAdjustmentError(
                f"Could not create temporary directory for structure adjustment ({exc}). Leaving as is.",
                record=record,
            ) from exc

        _LOGGER.info(
            "  Adjusting structure: Moving contents of '{}' to '{}' via temporary holder...",
            wrapper,
            target.path,
        )
        try:
            for child in sorted(wrapper.iterdir()):
                shutil.move(str(child), str(holder / child.name))
            shutil.copymode(target.path, holder)
            shutil.rmtree(target.path)
            holder.rename(target.path)
        except OSError as exc:
            raise StructureAdjustmentError(
                f"Failed to adjust module structure of '{target.path}' ({exc}). "
                f"Moved content may remain in '{holder}'.",
                record=record,
            ) from exc

        if not target.manifest_path.is_file():
            raise StructureAdjustmentError(
                f"Failed to adjust module structure. {target.manifest_filename} still not at root "
                f"of '{target.path}' after move.",
                record=record,
            )
        _LOGGER.info(
            "  Module structure successfully adjusted. {} is now at root of '{}'.",
            target.manifest_filename,
            target.path,
        )


def _top_level_entries(directory: Path) -> List[Path]:
    """Direct children of ``directory``, hidden ones included."""
    return sorted(directory.iterdir())


def _is_real_directory(path: Path) -> bool:
    return path.is_dir() and not path.is_symlink()


def _reject_escaping_members(members: List[zipfile.ZipInfo], destination: Path) -> None:
    root = destination.resolve()
    for member in members:
        resolved = (root / member.filename).resolve()
        if resolved != root and root not in resolved.parents:
            raise ExtractionError(f"Archive entry '{member.filename}' would be written outside '{destination}'.")
