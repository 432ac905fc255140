"""
Module identifier utilities.

Derives the directory name a module is installed under from the identifier
published in its remote manifest.
"""

from __future__ import annotations

import re

_UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_module_id(raw_identifier: str) -> str:
    """
    Remove every character outside ``[A-Za-z0-9_-]``.

    The result is used as a single path component below the install root, so
    separators, dots and anything else that could escape it are dropped. An
    empty string means the identifier is unusable; callers must reject it.
    """
    return _UNSAFE_CHARACTERS.sub("", raw_identifier)
