from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

from .meta_keys import BLOCK_PICTURE, BLOCK_VORBIS_COMMENT


@dataclass(slots=True)
class CommentBlock:
    vendor: str
    comments: List[str] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class PictureBlock:
    picture_type: int
    mime_type: str
    description: str
    width: int
    height: int
    depth: int
    colors: int
    data: bytes


class BlockKind(Enum):
    COMMENT = "comment"
    PICTURE = "picture"
    OTHER = "other"


@dataclass(slots=True)
class MetadataBlock:
    """One FLAC metadata block as exchanged with the container layer.

    COMMENT and PICTURE blocks carry their raw payload; OTHER blocks are
    opaque and keep the container's own object in ``native`` so they can
    be written back untouched.
    """

    kind: BlockKind
    payload: bytes = b""
    code: Optional[int] = None
    native: Any = None

    @classmethod
    def comment(cls, payload: bytes) -> "MetadataBlock":
        return cls(BlockKind.COMMENT, payload, BLOCK_VORBIS_COMMENT)

    @classmethod
    def picture(cls, payload: bytes) -> "MetadataBlock":
        return cls(BlockKind.PICTURE, payload, BLOCK_PICTURE)


def first_block(blocks: List[MetadataBlock], kind: BlockKind) -> Optional[MetadataBlock]:
    for block in blocks:
        if block.kind is kind:
            return block
    return None


@dataclass(slots=True)
class FixResult:
    path: Path
    tags_merged: bool = False
    cover_embedded: bool = False
    saved: bool = False

    @property
    def modified(self) -> bool:
        return self.tags_merged or self.cover_embedded


class ProcessingError(Exception):
    """Raised when a file cannot be processed but the run should keep going."""


class TruncatedInput(ProcessingError):
    """A metadata payload ended before a declared length was satisfied."""


class UnsupportedImage(ProcessingError):
    """The external cover image could not be introspected."""


class ContainerError(ProcessingError):
    """The FLAC container could not be parsed or rewritten."""


class EncoderFailure(ProcessingError):
    def __init__(self, source: Path, returncode: Optional[int], stderr: str = "") -> None:
        self.source = source
        self.returncode = returncode
        self.stderr = stderr
        if returncode is None:
            message = f"encoder could not be started for {source}"
        else:
            message = f"encoder failed for {source} (exit {returncode})"
        if stderr:
            message = f"{message}, stderr: {stderr.strip()}"
        super().__init__(message)


class FilesystemError(ProcessingError):
    def __init__(self, action: str, path: Path, cause: OSError) -> None:
        self.action = action
        self.path = path
        self.cause = cause
        super().__init__(f"failed to {action} {path}: {cause}")
