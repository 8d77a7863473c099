import tempfile
import unittest
from pathlib import Path

from PIL import Image

from flacfix.codec import decode_picture_block
from flacfix.cover import CoverDecision, embed_cover, jpeg_dimensions, resolve_cover
from flacfix.models import BlockKind, MetadataBlock, UnsupportedImage


def _write_image(path: Path, size: tuple[int, int], fmt: str) -> None:
    Image.new("RGB", size, color=(200, 10, 10)).save(path, fmt)


class TestCoverResolver(unittest.TestCase):
    def test_existing_picture_is_never_replaced(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            cover = Path(tmpdir) / "cover.jpg"
            _write_image(cover, (10, 10), "JPEG")
            existing = MetadataBlock.picture(b"old")
            blocks = [MetadataBlock.comment(b"c"), existing]
            decision = resolve_cover(blocks, cover)
            self.assertIs(decision, CoverDecision.ALREADY_EMBEDDED)
            self.assertEqual(len(blocks), 2)
            self.assertEqual(blocks[1].payload, b"old")

    def test_missing_image_is_a_noop(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            blocks = [MetadataBlock.comment(b"c")]
            decision = resolve_cover(blocks, Path(tmpdir) / "cover.jpg")
            self.assertIs(decision, CoverDecision.MISSING)
            self.assertEqual(len(blocks), 1)

    def test_embeds_front_cover_from_jpeg(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            cover = Path(tmpdir) / "cover.jpg"
            _write_image(cover, (64, 48), "JPEG")
            blocks = [MetadataBlock.comment(b"c")]
            self.assertTrue(embed_cover(blocks, cover))
            self.assertEqual(len(blocks), 2)
            self.assertIs(blocks[-1].kind, BlockKind.PICTURE)
            picture = decode_picture_block(blocks[-1].payload)
            self.assertEqual(picture.picture_type, 3)
            self.assertEqual(picture.mime_type, "image/jpeg")
            self.assertEqual(picture.description, "")
            self.assertEqual((picture.width, picture.height), (64, 48))
            self.assertEqual((picture.depth, picture.colors), (24, 0))
            self.assertEqual(picture.data, cover.read_bytes())

    def test_non_jpeg_is_unsupported(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            cover = Path(tmpdir) / "cover.jpg"
            _write_image(cover, (8, 8), "PNG")
            blocks: list[MetadataBlock] = []
            with self.assertRaises(UnsupportedImage):
                resolve_cover(blocks, cover)
            self.assertEqual(blocks, [])

    def test_garbage_file_is_unsupported(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            cover = Path(tmpdir) / "cover.jpg"
            cover.write_bytes(b"definitely not an image")
            with self.assertRaises(UnsupportedImage):
                jpeg_dimensions(cover)


if __name__ == "__main__":
    unittest.main()
