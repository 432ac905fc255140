"""
Reading and writing of saved module profiles.

A profile is a text file with one module per line:

    Module Title/Name: <display name>, Manifest URL: <manifest url>
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from module_profiles.module_profiles import logger as app_logger

_LOGGER = app_logger.get_logger()

NAME_PREFIX = "Module Title/Name: "
URL_MARKER = "Manifest URL: "
_NAME_SEPARATOR = ", " + URL_MARKER


@dataclass(frozen=True)
class ProfileRecord:
    display_name: str
    manifest_url: str


def format_record(record: ProfileRecord) -> str:
    return f"{NAME_PREFIX}{record.display_name}{_NAME_SEPARATOR}{record.manifest_url}"


def parse_profile_line(line: str) -> Optional[ProfileRecord]:
    """
    Parse one profile line, returning None when no manifest URL can be found.

    The URL is whatever follows the last URL marker, so display names that
    contain the marker text still parse. Lines without the name prefix keep
    an empty display name.
    """
    text = line.rstrip("\r\n")
    marker_index = text.rfind(URL_MARKER)
    if marker_index < 0:
        return None
    manifest_url = text[marker_index + len(URL_MARKER):].strip()
    if not manifest_url:
        return None

    display_name = ""
    if text.startswith(NAME_PREFIX):
        separator_index = text.rfind(_NAME_SEPARATOR)
        if separator_index >= len(NAME_PREFIX):
            display_name = text[len(NAME_PREFIX):separator_index]
    return ProfileRecord(display_name=display_name, manifest_url=manifest_url)


def read_profile(path: Path) -> List[ProfileRecord]:
    """Read every parseable record from a profile, in file order."""
    records: List[ProfileRecord] = []
    with path.open(encoding="utf-8", newline="") as handle:
        contents = handle.read()
    # Records are separated by "\n" only; display names may hold other line breaks.
    for line_number, raw_line in enumerate(contents.split("\n"), start=1):
        line = raw_line.rstrip("\r")
        if not line.strip():
            continue
        record = parse_profile_line(line)
        if record is None:
            _LOGGER.warning("Skipping line {} (could not parse Manifest URL): {}", line_number, line)
            continue
        records.append(record)
    return records


def write_profile(path: Path, records: Iterable[ProfileRecord]) -> int:
    """Write records to a profile, replacing any previous content. Returns the record count."""
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", encoding="utf-8", newline="\n") as handle:
        for record in records:
            handle.write(format_record(record) + "\n")
            count += 1
    return count


def list_profiles(saves_dir: Path, extension: str = ".txt") -> List[str]:
    """Return the sorted file names of saved profiles directly inside saves_dir."""
    try:
        return sorted(
            entry.name
            for entry in saves_dir.iterdir()
            if entry.is_file() and entry.name.endswith(extension)
        )
    except FileNotFoundError:
        return []
