from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .codec import decode_comment_block, encode_comment_block
from .config import FixSettings
from .container import FlacContainer
from .cover import CoverDecision, resolve_cover
from .diagnostics import Diagnostics
from .merge import merge_comments
from .models import (
    BlockKind,
    FixResult,
    MetadataBlock,
    ProcessingError,
    TruncatedInput,
    UnsupportedImage,
    first_block,
)
from .scanner import LibraryScanner


@dataclass
class FixReport:
    results: List[FixResult] = field(default_factory=list)
    failures: Dict[Path, ProcessingError] = field(default_factory=dict)

    @property
    def processed(self) -> int:
        return len(self.results) + len(self.failures)

    @property
    def mbids_fixed(self) -> int:
        return sum(1 for result in self.results if result.tags_merged)

    @property
    def covers_embedded(self) -> int:
        return sum(1 for result in self.results if result.cover_embedded)


class FlacFixer:
    """Merges multi-valued MusicBrainz ids and embeds missing covers in FLAC files."""

    def __init__(
        self,
        settings: FixSettings,
        *,
        diagnostics: Optional[Diagnostics] = None,
        opener: Callable[[Path], FlacContainer] = FlacContainer,
    ) -> None:
        self.settings = settings
        self.diagnostics = diagnostics or Diagnostics()
        self.opener = opener

    def merge_tags(self, path: Path, blocks: List[MetadataBlock]) -> bool:
        comment = first_block(blocks, BlockKind.COMMENT)
        if comment is None:
            return False
        try:
            parsed = decode_comment_block(comment.payload)
        except TruncatedInput as exc:
            raise TruncatedInput(f"{path}: failed to parse vorbis comments: {exc}") from exc

        result = merge_comments(
            parsed, self.settings.merge_tags, warn_prefix=self.settings.warn_prefix
        )
        for warning in result.warnings:
            self.diagnostics.warning(
                f"{path}: Multiple values found for {warning.key} "
                f"(Count: {warning.count}). This might confuse LMS.",
                path=path,
                key=warning.key,
                count=warning.count,
            )
        for key, count in result.merged_keys.items():
            self.diagnostics.info(f"{path}: Merging {count} {key}", path=path, key=key, count=count)
        if result.modified:
            comment.payload = encode_comment_block(result.block)
        return result.modified

    def embed_cover(self, path: Path, blocks: List[MetadataBlock]) -> bool:
        name = self.settings.cover_name
        try:
            decision = resolve_cover(blocks, path.parent / name)
        except UnsupportedImage as exc:
            self.diagnostics.warning(f"{path}: Skipping cover: {exc}", path=path)
            return False
        if decision is CoverDecision.MISSING:
            self.diagnostics.warning(f"{path}: No embedded cover and no {name} found", path=path)
            return False
        if decision is CoverDecision.EMBEDDED:
            self.diagnostics.info(f"{path}: Embedding {name}", path=path)
            return True
        return False

    def fix_blocks(self, path: Path, blocks: List[MetadataBlock]) -> FixResult:
        result = FixResult(path=path)
        if self.settings.fix_mbids:
            result.tags_merged = self.merge_tags(path, blocks)
        if self.settings.embed_cover:
            result.cover_embedded = self.embed_cover(path, blocks)
        return result

    def fix_file(self, path: Path) -> FixResult:
        self.diagnostics.debug(f"Processing {path}", path=path)
        container = self.opener(path)
        result = self.fix_blocks(path, container.blocks)
        if not result.modified:
            return result
        if not self.settings.write:
            self.diagnostics.info(
                f"[DRY-RUN] Changes detected for {path}, but not saving.", path=path
            )
            return result
        self.diagnostics.info(f"Saving changes to {path}...", path=path)
        container.save()
        result.saved = True
        return result

    def fix_tree(self, root: Path, scanner: LibraryScanner) -> FixReport:
        report = FixReport()
        for path in scanner.iter_files(root):
            try:
                report.results.append(self.fix_file(path))
            except ProcessingError as exc:
                report.failures[path] = exc
                self.diagnostics.warning(f"Error processing {path}: {exc}", path=path)
        return report
