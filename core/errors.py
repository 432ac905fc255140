"""
Error taxonomy for the module installer.

Every ModuleInstallError is scoped to one profile record: the installer
catches it at the record boundary and moves on. PrerequisiteError is the only
error that stops a run, and it is raised before any record is processed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from shared.profile_format import ProfileRecord


class ModuleInstallError(Exception):
    """Base class for record-scoped installation failures."""

    def __init__(self, message: str, *, record: Optional["ProfileRecord"] = None) -> None:
        super().__init__(message)
        self.record = record


class ManifestFetchError(ModuleInstallError):
    """The remote manifest could not be fetched or was empty."""


class ManifestParseError(ModuleInstallError):
    """The remote manifest is not a JSON object with an id or name."""


class IdentifierInvalidError(ModuleInstallError):
    """The manifest identifier is empty once unsafe characters are removed."""


class DownloadURLMissingError(ModuleInstallError):
    """The remote manifest has no usable download field."""


class ArtifactDownloadError(ModuleInstallError):
    """The module archive could not be downloaded."""


class ExtractionError(ModuleInstallError):
    """The module archive is corrupt, unreadable or unsafe to unpack."""


class StructureAdjustmentError(ModuleInstallError):
    """Flattening a wrapper directory did not put the manifest at the root."""


class StructureAmbiguousError(ModuleInstallError):
    """The unpacked layout is not a single wrapper directory holding the manifest."""


class PrerequisiteError(RuntimeError):
    """A requirement for the whole run is missing."""
