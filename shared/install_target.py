"""
Where a module lives once installed, and how to tell that it already is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_MANIFEST_FILENAME = "module.json"
DEFAULT_ARTIFACT_FILENAME = "module.zip"


@dataclass(slots=True)
class InstallationTarget:
    """
    The directory ``install_root / module_id`` holding one unpacked module.

    The archive is downloaded into the same directory before it is unpacked,
    so a leftover archive marks an interrupted install that can be resumed.
    """

    install_root: Path
    module_id: str
    manifest_filename: str = DEFAULT_MANIFEST_FILENAME
    artifact_filename: str = DEFAULT_ARTIFACT_FILENAME
    path: Path = field(init=False)

    def __post_init__(self) -> None:
        self.install_root = Path(self.install_root)
        self.path = self.install_root / self.module_id

    @property
    def manifest_path(self) -> Path:
        return self.path / self.manifest_filename

    @property
    def artifact_path(self) -> Path:
        return self.path / self.artifact_filename

    def is_installed(self) -> bool:
        """Return whether the directory exists with the manifest at its root."""
        return self.path.is_dir() and self.manifest_path.is_file()
