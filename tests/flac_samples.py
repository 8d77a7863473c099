"""Minimal FLAC files (metadata only, no audio frames) for container tests."""

import struct
from pathlib import Path

from flacfix.codec import encode_comment_block
from flacfix.models import CommentBlock

STREAMINFO = 0
VORBIS_COMMENT = 4
PICTURE = 6


def streaminfo_payload(sample_rate: int = 44100, channels: int = 2, bits: int = 16) -> bytes:
    packed = (sample_rate << 44) | ((channels - 1) << 41) | ((bits - 1) << 36)
    return struct.pack(">HH", 4096, 4096) + b"\x00" * 6 + struct.pack(">Q", packed) + b"\x00" * 16


def flac_bytes(blocks: list[tuple[int, bytes]]) -> bytes:
    chain = [(STREAMINFO, streaminfo_payload()), *blocks]
    out = bytearray(b"fLaC")
    for index, (code, payload) in enumerate(chain):
        if index == len(chain) - 1:
            code |= 0x80
        out.append(code)
        out += len(payload).to_bytes(3, "big")
        out += payload
    return bytes(out)


def write_flac(path: Path, comments: list[str] | None = None, extra: list[tuple[int, bytes]] | None = None) -> Path:
    blocks: list[tuple[int, bytes]] = []
    if comments is not None:
        payload = encode_comment_block(CommentBlock(vendor="reference libFLAC 1.4.3", comments=comments))
        blocks.append((VORBIS_COMMENT, payload))
    blocks.extend(extra or [])
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(flac_bytes(blocks))
    return path
