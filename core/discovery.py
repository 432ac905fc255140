"""
Module discovery utilities for saving profiles.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Tuple

from module_profiles.module_profiles import logger as app_logger
from shared.install_target import DEFAULT_MANIFEST_FILENAME
from shared.manifest_schema import LocalManifest, ManifestValidationError, load_local_manifest
from shared.profile_format import ProfileRecord

_LOGGER = app_logger.get_logger()


@dataclass(slots=True)
class DiscoveryResult:
    records: List[ProfileRecord] = field(default_factory=list)
    skipped: List[LocalManifest] = field(default_factory=list)
    errors: List[Tuple[Path, Exception]] = field(default_factory=list)


def scan_manifests(search_dir: Path, *, manifest_filename: str = DEFAULT_MANIFEST_FILENAME) -> DiscoveryResult:
    """
    Walk ``search_dir`` for manifest files and collect the ones that publish
    a manifest URL. Unreadable manifests are reported, not raised.
    """
    result = DiscoveryResult()
    for manifest_path in _find_manifests(Path(search_dir), manifest_filename):
        _LOGGER.info("Processing file: {}", manifest_path)
        try:
            manifest = load_local_manifest(manifest_path)
        except ManifestValidationError as exc:
            _LOGGER.warning("  Could not read {}: {}", manifest_path, exc)
            result.errors.append((manifest_path, exc))
            continue

        if manifest.manifest_url is None:
            _LOGGER.info(
                '  Module: "{}", but no manifest URL found or it was null/empty in: {}',
                manifest.display_name,
                manifest_path,
            )
            result.skipped.append(manifest)
            continue

        _LOGGER.info('  Found Module: "{}", Manifest URL: {}', manifest.display_name, manifest.manifest_url)
        result.records.append(
            ProfileRecord(display_name=manifest.display_name, manifest_url=manifest.manifest_url)
        )
    return result


def _find_manifests(search_dir: Path, manifest_filename: str) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(search_dir):
        dirnames.sort()
        if manifest_filename in filenames:
            candidate = Path(dirpath) / manifest_filename
            if candidate.is_file():
                yield candidate
