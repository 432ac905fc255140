"""
Manifest parsing shared by the discovery scan and the installer.

Local manifests (module.json files found on disk) and remote manifests (the
document behind a manifest URL) use different fallback rules on purpose:
locally the most readable label wins, remotely the canonical identifier does.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

UNKNOWN_MODULE_NAME = "Unknown Module"


class ManifestValidationError(ValueError):
    """Raised when a manifest file is missing required data or is malformed."""


@dataclass(frozen=True)
class RemoteManifest:
    """Fields of a fetched manifest that the installer relies on."""

    id: Optional[str] = None
    name: Optional[str] = None
    download: Optional[str] = None

    @property
    def identifier(self) -> Optional[str]:
        """The explicit id when present, otherwise the name."""
        return self.id or self.name


@dataclass(frozen=True)
class LocalManifest:
    """Fields of an installed module.json that a profile records."""

    path: Path
    display_name: str
    manifest_url: Optional[str]


def parse_remote_manifest(contents: str) -> RemoteManifest:
    """
    Parse a remote manifest document.

    Raises ManifestValidationError when the document is not a JSON object or
    carries neither an id nor a name. A missing download field is reported by
    the caller since it is a separate failure.
    """
    raw_manifest = _load_object(contents)

    manifest = RemoteManifest(
        id=_optional_string(raw_manifest.get("id")),
        name=_optional_string(raw_manifest.get("name")),
        download=_optional_url(raw_manifest.get("download")),
    )
    if manifest.identifier is None:
        raise ManifestValidationError("Manifest has neither an 'id' nor a 'name'.")
    return manifest


def load_local_manifest(path: Path) -> LocalManifest:
    """Load a module.json from disk and resolve its display name and manifest URL."""
    try:
        contents = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ManifestValidationError(f"Manifest file not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestValidationError(f"Unable to read manifest: {path}") from exc

    raw_manifest = _load_object(contents)

    display_name = (
        _optional_string(raw_manifest.get("title"))
        or _optional_string(raw_manifest.get("name"))
        or _optional_string(raw_manifest.get("id"))
        or UNKNOWN_MODULE_NAME
    )
    return LocalManifest(
        path=path,
        display_name=display_name,
        manifest_url=_optional_url(raw_manifest.get("manifest")),
    )


def _load_object(contents: str) -> Dict[str, Any]:
    try:
        raw_manifest = json.loads(contents)
    except json.JSONDecodeError as exc:
        raise ManifestValidationError(f"Manifest is not valid JSON: {exc}") from exc

    if not isinstance(raw_manifest, dict):
        raise ManifestValidationError("Manifest root must be a JSON object.")
    return raw_manifest


def _optional_string(value: Any) -> Optional[str]:
    """Return a stripped string for usable values, None for missing or blank ones."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _optional_url(value: Any) -> Optional[str]:
    """Like _optional_string, but the literal text "null" also counts as missing."""
    url = _optional_string(value)
    if url == "null":
        return None
    return url
