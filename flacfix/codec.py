"""Binary codecs for the Vorbis comment and picture metadata payloads.

Comment payloads use little-endian u32 lengths, picture payloads use
big-endian u32 fields. Text is UTF-8; undecodable bytes survive a round
trip through ``surrogateescape``.
"""

from __future__ import annotations

import struct
from typing import Tuple

from .models import CommentBlock, PictureBlock, TruncatedInput

U32_MAX = 0xFFFFFFFF
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"

_U32_LE = struct.Struct("<I")
_U32_BE = struct.Struct(">I")


class _PayloadReader:
    def __init__(self, data: bytes, u32: struct.Struct) -> None:
        self._view = memoryview(data)
        self._u32 = u32
        self.offset = 0

    def remaining(self) -> int:
        return len(self._view) - self.offset

    def take(self, size: int, what: str) -> bytes:
        if size > self.remaining():
            raise TruncatedInput(
                f"{what} needs {size} bytes at offset {self.offset}, "
                f"only {self.remaining()} left"
            )
        chunk = self._view[self.offset : self.offset + size].tobytes()
        self.offset += size
        return chunk

    def u32(self, what: str) -> int:
        return self._u32.unpack(self.take(4, what))[0]

    def text(self, what: str) -> str:
        length = self.u32(f"{what} length")
        return self.take(length, what).decode(TEXT_ENCODING, TEXT_ERRORS)

    def blob(self, what: str) -> bytes:
        length = self.u32(f"{what} length")
        return self.take(length, what)


def _pack_u32(packer: struct.Struct, value: int, what: str) -> bytes:
    if not 0 <= value <= U32_MAX:
        raise ValueError(f"{what} {value} does not fit in an unsigned 32-bit field")
    return packer.pack(value)


def _pack_blob(packer: struct.Struct, raw: bytes, what: str) -> bytes:
    return _pack_u32(packer, len(raw), f"{what} length") + raw


def _pack_text(packer: struct.Struct, value: str, what: str) -> bytes:
    return _pack_blob(packer, value.encode(TEXT_ENCODING, TEXT_ERRORS), what)


def decode_comment_block(data: bytes) -> CommentBlock:
    reader = _PayloadReader(data, _U32_LE)
    vendor = reader.text("vendor string")
    count = reader.u32("comment count")
    comments = [reader.text(f"comment #{index}") for index in range(count)]
    return CommentBlock(vendor=vendor, comments=comments)


def encode_comment_block(block: CommentBlock) -> bytes:
    parts = [
        _pack_text(_U32_LE, block.vendor, "vendor string"),
        _pack_u32(_U32_LE, len(block.comments), "comment count"),
    ]
    for index, entry in enumerate(block.comments):
        parts.append(_pack_text(_U32_LE, entry, f"comment #{index}"))
    return b"".join(parts)


def decode_picture_block(data: bytes) -> PictureBlock:
    reader = _PayloadReader(data, _U32_BE)
    picture_type = reader.u32("picture type")
    mime_type = reader.text("mime type")
    description = reader.text("description")
    width, height, depth, colors = _read_dimensions(reader)
    payload = reader.blob("picture data")
    return PictureBlock(
        picture_type=picture_type,
        mime_type=mime_type,
        description=description,
        width=width,
        height=height,
        depth=depth,
        colors=colors,
        data=payload,
    )


def _read_dimensions(reader: _PayloadReader) -> Tuple[int, int, int, int]:
    return (
        reader.u32("width"),
        reader.u32("height"),
        reader.u32("depth"),
        reader.u32("colors"),
    )


def encode_picture_block(picture: PictureBlock) -> bytes:
    return b"".join(
        [
            _pack_u32(_U32_BE, picture.picture_type, "picture type"),
            _pack_text(_U32_BE, picture.mime_type, "mime type"),
            _pack_text(_U32_BE, picture.description, "description"),
            _pack_u32(_U32_BE, picture.width, "width"),
            _pack_u32(_U32_BE, picture.height, "height"),
            _pack_u32(_U32_BE, picture.depth, "depth"),
            _pack_u32(_U32_BE, picture.colors, "colors"),
            _pack_blob(_U32_BE, picture.data, "picture data"),
        ]
    )
