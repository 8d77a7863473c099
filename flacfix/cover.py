from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Tuple

from PIL import Image

from .codec import encode_picture_block
from .meta_keys import JPEG_DEPTH, JPEG_MIME, PICTURE_FRONT_COVER
from .models import BlockKind, MetadataBlock, PictureBlock, UnsupportedImage, first_block


class CoverDecision(Enum):
    ALREADY_EMBEDDED = "already-embedded"
    MISSING = "missing"
    EMBEDDED = "embedded"


def has_picture(blocks: List[MetadataBlock]) -> bool:
    return first_block(blocks, BlockKind.PICTURE) is not None


def jpeg_dimensions(path: Path) -> Tuple[int, int]:
    # Image.open only parses the header; pixel data is never decoded here.
    try:
        with Image.open(path) as image:
            if image.format != "JPEG":
                raise UnsupportedImage(
                    f"{path}: expected a JPEG image, found {image.format or 'unknown'}"
                )
            return image.size
    except (OSError, Image.DecompressionBombError) as exc:
        raise UnsupportedImage(f"{path}: cannot read image header: {exc}") from exc


def build_front_cover(path: Path) -> PictureBlock:
    width, height = jpeg_dimensions(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise UnsupportedImage(f"{path}: cannot read image: {exc}") from exc
    return PictureBlock(
        picture_type=PICTURE_FRONT_COVER,
        mime_type=JPEG_MIME,
        description="",
        width=width,
        height=height,
        depth=JPEG_DEPTH,
        colors=0,
        data=data,
    )


def resolve_cover(blocks: List[MetadataBlock], image_path: Path) -> CoverDecision:
    """Append a front cover built from ``image_path`` unless one is embedded.

    An existing picture block is never replaced. Raises ``UnsupportedImage``
    when the image exists but is not a readable JPEG; ``blocks`` is left
    untouched in that case.
    """
    if has_picture(blocks):
        return CoverDecision.ALREADY_EMBEDDED
    if not image_path.is_file():
        return CoverDecision.MISSING
    picture = build_front_cover(image_path)
    blocks.append(MetadataBlock.picture(encode_picture_block(picture)))
    return CoverDecision.EMBEDDED


def embed_cover(blocks: List[MetadataBlock], image_path: Path) -> bool:
    return resolve_cover(blocks, image_path) is CoverDecision.EMBEDDED
