from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from mutagen import MutagenError
from mutagen.flac import FLAC
from mutagen.flac import MetadataBlock as FLACBlock

from .meta_keys import BLOCK_PICTURE, BLOCK_VORBIS_COMMENT
from .models import BlockKind, ContainerError, MetadataBlock

logger = logging.getLogger(__name__)

_RAW_CODES = {BLOCK_VORBIS_COMMENT: BlockKind.COMMENT, BLOCK_PICTURE: BlockKind.PICTURE}


class _RawPayloadFLAC(FLAC):
    """FLAC reader that keeps comment and picture blocks as raw payloads.

    mutagen normally parses those blocks into VCFLACDict/Picture objects,
    which drops entries without ``=`` and re-serializes on save. Mapping the
    codes to the generic block type keeps the exact bytes.
    """

    METADATA_BLOCKS = [
        None if code in _RAW_CODES else block_type
        for code, block_type in enumerate(FLAC.METADATA_BLOCKS)
    ]


def _wrap(native: FLACBlock) -> MetadataBlock:
    code = getattr(native, "code", None)
    kind = _RAW_CODES.get(code) if code is not None else None
    if kind is None:
        return MetadataBlock(BlockKind.OTHER, code=code, native=native)
    return MetadataBlock(kind, native.write(), code)


def _unwrap(block: MetadataBlock) -> FLACBlock:
    if block.kind is BlockKind.OTHER:
        return block.native
    raw = FLACBlock(block.payload)
    raw.code = BLOCK_VORBIS_COMMENT if block.kind is BlockKind.COMMENT else BLOCK_PICTURE
    return raw


class FlacContainer:
    """Ordered metadata block list of one FLAC file, backed by mutagen."""

    def __init__(self, path: Path) -> None:
        self.path = path
        try:
            self._audio = _RawPayloadFLAC(path)
        except (MutagenError, OSError) as exc:
            raise ContainerError(f"failed to parse flac file {path}: {exc}") from exc
        self.blocks: List[MetadataBlock] = [
            _wrap(native) for native in self._audio.metadata_blocks
        ]

    def save(self) -> None:
        self._audio.metadata_blocks = [_unwrap(block) for block in self.blocks]
        try:
            self._audio.save()
        except (MutagenError, OSError) as exc:
            raise ContainerError(f"failed to save flac file {self.path}: {exc}") from exc
        logger.debug("Rewrote %d metadata blocks in %s", len(self.blocks), self.path)
