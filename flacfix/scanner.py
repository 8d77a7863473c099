from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterator
from pathlib import Path

from .config import LibrarySettings


class LibraryScanner:
    """Walks a source tree and yields the audio files to process, in stable order."""

    def __init__(self, settings: LibrarySettings) -> None:
        self.settings = settings
        self._exts = {ext.lower() for ext in self.settings.include_extensions}

    def should_include(self, path: Path, *, apply_excludes: bool = True) -> bool:
        if path.suffix.lower() not in self._exts:
            return False
        if not apply_excludes:
            return True
        rel = str(path)
        for pattern in self.settings.exclude_patterns:
            if fnmatch.fnmatch(rel, pattern):
                return False
        return True

    def iter_files(self, root: Path, *, apply_excludes: bool = True) -> Iterator[Path]:
        """Yield matching files under ``root`` (or ``root`` itself when it is a file).

        With ``apply_excludes=False`` exclude patterns are ignored and every
        file with an included extension is yielded.
        """
        if root.is_file():
            if self.should_include(root, apply_excludes=apply_excludes):
                yield root
            return
        if not root.is_dir():
            return
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            directory = Path(dirpath)
            for name in sorted(filenames):
                file_path = directory / name
                if not self.should_include(file_path, apply_excludes=apply_excludes):
                    continue
                if file_path.is_file():
                    yield file_path
