"""Case-insensitive lookup of files below a root directory."""

from __future__ import annotations

import os
import string
from pathlib import Path

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def _lower(text: str) -> str:
    return text.translate(_ASCII_LOWER)


def _unify_separators(text: str) -> str:
    if os.sep == "\\":
        return text.replace("/", "\\")
    return text.replace("\\", "/")


class FileSystemMappings:
    """Maps lower-cased paths of every file under a root to their real location."""

    def __init__(self, root) -> None:
        self.root = Path(root)
        self._mappings: dict[str, Path] = {}
        self._populate(self.root)

    def _populate(self, directory: Path) -> None:
        for child in directory.iterdir():
            if child.is_file():
                key = _lower(os.path.normpath(str(child)))
                self._mappings[key] = Path(os.path.relpath(child, self.root))
            elif child.is_dir():
                self._populate(child)

    def resolve_path(self, path) -> Path:
        """The real path of a file named in any letter case.

        Unknown paths come back lower-cased and normalised.
        """
        requested = Path(path)
        if not requested.is_absolute():
            requested = self.root / requested
        lowered = _unify_separators(_lower(os.path.normpath(str(requested))))

        relative = self._mappings.get(lowered)
        if relative is not None:
            return self.root / relative
        return Path(lowered)