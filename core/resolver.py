"""
Resolution stage: turn a profile record into an installable module reference.
"""

from __future__ import annotations

import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from core.errors import (
    DownloadURLMissingError,
    IdentifierInvalidError,
    ManifestFetchError,
    ManifestParseError,
)
from core.fetch import FetchError, HttpFetcher
from core.module_id import sanitize_module_id
from module_profiles.module_profiles import logger as app_logger
from shared.manifest_schema import ManifestValidationError, RemoteManifest, parse_remote_manifest
from shared.profile_format import ProfileRecord

_LOGGER = app_logger.get_logger()


@dataclass(frozen=True)
class ResolvedModule:
    module_id: str
    download_url: str
    manifest: RemoteManifest


class ManifestResolver:
    """Fetches a record's remote manifest and extracts its id and download URL."""

    def __init__(self, fetcher: HttpFetcher, *, buffer_dir: Optional[Path] = None) -> None:
        self._fetcher = fetcher
        self._buffer_dir = buffer_dir

    def resolve(self, record: ProfileRecord) -> ResolvedModule:
        _LOGGER.info("  Fetching remote manifest from: {}", record.manifest_url)
        with self._manifest_buffer() as buffer:
            contents = self._fetch(record, buffer)

        try:
            manifest = parse_remote_manifest(contents)
        except ManifestValidationError as exc:
            raise ManifestParseError(
                f"Could not extract 'id' or 'name' from fetched manifest ({record.manifest_url}): {exc}",
                record=record,
            ) from exc

        module_id = sanitize_module_id(manifest.identifier or "")
        if not module_id:
            raise IdentifierInvalidError(
                f"Module ID {manifest.identifier!r} from fetched manifest resulted in an empty sanitized ID.",
                record=record,
            )

        if manifest.download is None:
            raise DownloadURLMissingError(
                f"No 'download' URL found in fetched manifest for module ID '{module_id}' "
                f"(from {record.manifest_url}).",
                record=record,
            )

        return ResolvedModule(module_id=module_id, download_url=manifest.download, manifest=manifest)

    def _fetch(self, record: ProfileRecord, buffer: BinaryIO) -> str:
        try:
            size = self._fetcher.fetch_manifest(record.manifest_url, buffer)
        except FetchError as exc:
            raise ManifestFetchError(
                f"Failed to download remote manifest for '{record.display_name}' "
                f"from '{record.manifest_url}': {exc}",
                record=record,
            ) from exc

        buffer.seek(0)
        raw = buffer.read()
        if size == 0 or not raw.strip():
            raise ManifestFetchError(
                f"Downloaded remote manifest for '{record.display_name}' is empty.",
                record=record,
            )
        try:
            return raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ManifestParseError(
                f"Fetched manifest from {record.manifest_url} is not UTF-8 text.",
                record=record,
            ) from exc

    @contextmanager
    def _manifest_buffer(self) -> Iterator[BinaryIO]:
        """A temporary file for one manifest, removed on every exit path."""
        with tempfile.NamedTemporaryFile(
            mode="w+b",
            prefix="manifest-",
            suffix=".json",
            dir=self._buffer_dir,
        ) as buffer:
            yield buffer
