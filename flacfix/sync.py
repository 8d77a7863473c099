"""Mirror a source tree of FLAC files into a transcoded output tree.

Each source file maps to ``<output_root>/<relative path with the target
extension>``. Work is only done when the output is missing or strictly
older than its source, and encoder output always lands in a temporary
sibling first so the final path never holds a partial file. After a full
tree pass, outputs whose source disappeared are pruned.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from .config import SyncSettings
from .diagnostics import Diagnostics
from .encoder import Encoder
from .fs_utils import (
    atomic_replace,
    ensure_directory,
    is_hidden,
    modified_time_ns,
    remove_empty_directory,
    remove_file,
)
from .models import EncoderFailure, FilesystemError, ProcessingError
from .scanner import LibraryScanner


class SupportsEncode(Protocol):
    def encode(self, source: Path, destination: Path) -> None: ...


class SyncState(Enum):
    SKIPPED = "skipped"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class SyncPlanEntry:
    source: Path
    output: Path
    temp: Path
    stale: bool


@dataclass(slots=True)
class SyncOutcome:
    source: Path
    state: SyncState
    output: Optional[Path] = None
    error: Optional[ProcessingError] = None


@dataclass
class PruneSet:
    orphans: List[Path] = field(default_factory=list)
    temp_files: List[Path] = field(default_factory=list)
    directories: List[Path] = field(default_factory=list)

    @property
    def files(self) -> List[Path]:
        return [*self.temp_files, *self.orphans]


@dataclass
class PruneResult:
    files_removed: int = 0
    directories_removed: int = 0
    failures: Dict[Path, ProcessingError] = field(default_factory=dict)


@dataclass
class SyncReport:
    outcomes: List[SyncOutcome] = field(default_factory=list)
    prune: Optional[PruneResult] = None

    def _count(self, state: SyncState) -> int:
        return sum(1 for outcome in self.outcomes if outcome.state is state)

    @property
    def converted(self) -> int:
        return self._count(SyncState.COMMITTED)

    @property
    def skipped(self) -> int:
        return self._count(SyncState.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(SyncState.FAILED)


class LibrarySync:
    def __init__(
        self,
        settings: SyncSettings,
        scanner: LibraryScanner,
        *,
        output_root: Optional[Path] = None,
        encoder: Optional[SupportsEncode] = None,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        root = output_root or settings.output_root
        if root is None:
            raise ValueError("an output root is required for library sync")
        self.settings = settings
        self.scanner = scanner
        self.output_root = Path(root).resolve()
        self.encoder = encoder or Encoder(list(settings.encoder), settings.output_mode)
        self.diagnostics = diagnostics or Diagnostics()
        self._temp_marker = (settings.target_extension + settings.temp_suffix).lower()

    def output_path(self, source: Path, source_root: Path) -> Path:
        relative = source.relative_to(source_root)
        return (self.output_root / relative).with_suffix(self.settings.target_extension)

    def temp_path(self, output: Path) -> Path:
        return output.with_name(output.name + self.settings.temp_suffix)

    def plan(self, source: Path, source_root: Path) -> SyncPlanEntry:
        output = self.output_path(source, source_root)
        source_mtime = modified_time_ns(source)
        if source_mtime is None:
            raise FilesystemError("stat", source, FileNotFoundError(source))
        output_mtime = modified_time_ns(output)
        stale = output_mtime is None or output_mtime < source_mtime
        return SyncPlanEntry(source, output, self.temp_path(output), stale)

    def convert(self, entry: SyncPlanEntry) -> None:
        ensure_directory(entry.output.parent)
        try:
            self.encoder.encode(entry.source, entry.temp)
        except EncoderFailure:
            try:
                remove_file(entry.temp)
            except FilesystemError as cleanup_exc:
                self.diagnostics.warning(
                    f"Could not remove temp file after failed encode: {cleanup_exc}",
                    path=entry.temp,
                )
            raise
        # A failed rename keeps the temp file: it holds valid encoder output.
        atomic_replace(entry.temp, entry.output)

    def sync_file(self, source: Path, source_root: Path) -> SyncOutcome:
        display = self._display(source, source_root)
        try:
            entry = self.plan(source, source_root)
            if not entry.stale:
                self.diagnostics.debug(f"Skipping (up to date): {display}", path=source)
                return SyncOutcome(source, SyncState.SKIPPED, entry.output)
            self.diagnostics.info(f"Converting: {display}", path=source)
            self.convert(entry)
        except ProcessingError as exc:
            self.diagnostics.warning(f"Error converting {display}: {exc}", path=source)
            return SyncOutcome(source, SyncState.FAILED, error=exc)
        return SyncOutcome(source, SyncState.COMMITTED, entry.output)

    def sync_single(self, source: Path) -> SyncOutcome:
        source = source.resolve()
        return self.sync_file(source, source.parent)

    def sync_tree(self, source_root: Path) -> SyncReport:
        root = source_root.resolve()
        sources = list(self.scanner.iter_files(root))
        report = SyncReport()
        if self.settings.workers > 1:
            with ThreadPoolExecutor(max_workers=self.settings.workers) as executor:
                report.outcomes = list(
                    executor.map(lambda source: self.sync_file(source, root), sources)
                )
        else:
            report.outcomes = [self.sync_file(source, root) for source in sources]
        # Pruning only starts once every conversion above has finished.
        if self.settings.prune:
            report.prune = self.prune(root)
        return report

    def plan_prune(self, source_root: Path) -> PruneSet:
        # Outputs of existing sources are kept even when the source is excluded.
        expected = {
            self.output_path(source, source_root)
            for source in self.scanner.iter_files(source_root, apply_excludes=False)
        }
        target_ext = self.settings.target_extension.lower()
        prune_set = PruneSet()
        if not self.output_root.is_dir():
            return prune_set
        for dirpath, dirnames, filenames in os.walk(self.output_root):
            dirnames[:] = sorted(name for name in dirnames if not is_hidden(name))
            directory = Path(dirpath)
            if directory != self.output_root:
                prune_set.directories.append(directory)
            for name in sorted(filenames):
                path = directory / name
                if name.lower().endswith(self._temp_marker):
                    prune_set.temp_files.append(path)
                elif path.suffix.lower() == target_ext and path not in expected:
                    prune_set.orphans.append(path)
        prune_set.directories.sort(key=lambda path: len(path.parts), reverse=True)
        return prune_set

    def apply_prune(self, prune_set: PruneSet) -> PruneResult:
        result = PruneResult()
        for path in prune_set.temp_files:
            self._prune_file(path, "Removing stale temp file", result)
        for path in prune_set.orphans:
            self._prune_file(path, "Removing orphan", result)
        for directory in prune_set.directories:
            if remove_empty_directory(directory):
                result.directories_removed += 1
                self.diagnostics.debug(f"Removed empty directory: {directory}", path=directory)
        return result

    def prune(self, source_root: Path) -> PruneResult:
        root = source_root.resolve()
        return self.apply_prune(self.plan_prune(root))

    def _prune_file(self, path: Path, label: str, result: PruneResult) -> None:
        self.diagnostics.debug(f"{label}: {path}", path=path)
        try:
            if remove_file(path):
                result.files_removed += 1
        except FilesystemError as exc:
            result.failures[path] = exc
            self.diagnostics.warning(f"Error pruning {path}: {exc}", path=path)

    @staticmethod
    def _display(source: Path, source_root: Path) -> str:
        try:
            return str(source.relative_to(source_root))
        except ValueError:
            return str(source)
