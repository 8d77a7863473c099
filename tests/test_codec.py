import struct
import unittest

from flacfix.codec import (
    decode_comment_block,
    decode_picture_block,
    encode_comment_block,
    encode_picture_block,
)
from flacfix.models import CommentBlock, PictureBlock, TruncatedInput


def _le_entry(raw: bytes) -> bytes:
    return struct.pack("<I", len(raw)) + raw


class TestCommentCodec(unittest.TestCase):
    def test_encode_layout_is_little_endian_lengths(self) -> None:
        block = CommentBlock(vendor="ref", comments=["TITLE=Hi", "X"])
        expected = (
            _le_entry(b"ref")
            + struct.pack("<I", 2)
            + _le_entry(b"TITLE=Hi")
            + _le_entry(b"X")
        )
        self.assertEqual(encode_comment_block(block), expected)

    def test_decode_round_trip_from_bytes(self) -> None:
        raw = (
            _le_entry(b"reference libFLAC 1.3.2 20170101")
            + struct.pack("<I", 3)
            + _le_entry(b"TITLE=Test Title")
            + _le_entry("ARTIST=Björk".encode("utf-8"))
            + _le_entry(b"no separator here")
        )
        block = decode_comment_block(raw)
        self.assertEqual(block.vendor, "reference libFLAC 1.3.2 20170101")
        self.assertEqual(
            block.comments, ["TITLE=Test Title", "ARTIST=Björk", "no separator here"]
        )
        self.assertEqual(encode_comment_block(block), raw)

    def test_non_utf8_bytes_survive_round_trip(self) -> None:
        raw = _le_entry(b"v") + struct.pack("<I", 1) + _le_entry(b"COMMENT=\xff\xfe")
        self.assertEqual(encode_comment_block(decode_comment_block(raw)), raw)

    def test_in_memory_block_round_trip(self) -> None:
        block = CommentBlock(vendor="", comments=["", "=", "A=b=c", "KéY=日本"])
        self.assertEqual(decode_comment_block(encode_comment_block(block)), block)

    def test_empty_payload_is_truncated(self) -> None:
        with self.assertRaises(TruncatedInput):
            decode_comment_block(b"")

    def test_vendor_length_beyond_payload_is_truncated(self) -> None:
        with self.assertRaises(TruncatedInput):
            decode_comment_block(struct.pack("<I", 10) + b"abc")

    def test_missing_comment_entry_is_truncated(self) -> None:
        raw = _le_entry(b"v") + struct.pack("<I", 2) + _le_entry(b"A=1")
        with self.assertRaises(TruncatedInput):
            decode_comment_block(raw)

    def test_short_comment_length_field_is_truncated(self) -> None:
        raw = _le_entry(b"v") + struct.pack("<I", 1) + b"\x05\x00"
        with self.assertRaises(TruncatedInput):
            decode_comment_block(raw)


class TestPictureCodec(unittest.TestCase):
    def setUp(self) -> None:
        self.picture = PictureBlock(
            picture_type=3,
            mime_type="image/jpeg",
            description="Cover",
            width=500,
            height=400,
            depth=24,
            colors=0,
            data=b"\x01\x02\x03\x04",
        )

    def test_encode_fields_are_big_endian_in_order(self) -> None:
        data = encode_picture_block(self.picture)
        offset = 0

        def u32() -> int:
            nonlocal offset
            value = struct.unpack_from(">I", data, offset)[0]
            offset += 4
            return value

        self.assertEqual(u32(), 3)
        self.assertEqual(u32(), len("image/jpeg"))
        self.assertEqual(data[offset : offset + 10], b"image/jpeg")
        offset += 10
        self.assertEqual(u32(), len("Cover"))
        offset += 5
        self.assertEqual([u32(), u32(), u32(), u32()], [500, 400, 24, 0])
        self.assertEqual(u32(), 4)
        self.assertEqual(data[offset:], b"\x01\x02\x03\x04")

    def test_decode_is_symmetric(self) -> None:
        self.assertEqual(decode_picture_block(encode_picture_block(self.picture)), self.picture)

    def test_truncated_picture_data(self) -> None:
        data = encode_picture_block(self.picture)[:-1]
        with self.assertRaises(TruncatedInput):
            decode_picture_block(data)

    def test_out_of_range_field_is_rejected(self) -> None:
        bad = PictureBlock(3, "image/jpeg", "", 2**32, 1, 24, 0, b"")
        with self.assertRaises(ValueError):
            encode_picture_block(bad)


if __name__ == "__main__":
    unittest.main()
