import struct
import unittest

from supernote import AddressError, footer_address, read_block, read_uint32


def _block(content: bytes) -> bytes:
    return struct.pack("<I", len(content)) + content


class TestAddressedBlocks(unittest.TestCase):
    def setUp(self):
        self.blob = b"\x00" * 8 + _block(b"hello") + _block(b"") + struct.pack("<I", 8)

    def test_zero_address_is_absent(self):
        self.assertIsNone(read_block(self.blob, 0))

    def test_reads_length_prefixed_content(self):
        content = read_block(self.blob, 8)
        self.assertEqual(bytes(content), b"hello")

    def test_empty_block(self):
        self.assertEqual(bytes(read_block(self.blob, 17)), b"")

    def test_content_is_a_readonly_view(self):
        source = bytearray(self.blob)
        content = read_block(source, 8)
        self.assertIsInstance(content, memoryview)
        self.assertTrue(content.readonly)
        source[12] = ord("j")
        self.assertEqual(bytes(content), b"jello")

    def test_length_past_end_raises(self):
        blob = b"\x00" * 4 + struct.pack("<I", 100) + b"abc"
        with self.assertRaises(AddressError) as ctx:
            read_block(blob, 4)
        self.assertEqual(ctx.exception.length, 100)

    def test_length_field_past_end_raises(self):
        with self.assertRaises(AddressError):
            read_block(self.blob, len(self.blob) - 2)
        with self.assertRaises(AddressError):
            read_block(self.blob, len(self.blob) + 10)

    def test_negative_address_raises(self):
        with self.assertRaises(AddressError):
            read_block(self.blob, -4)

    def test_footer_address_reads_last_four_bytes(self):
        self.assertEqual(footer_address(self.blob), 8)
        self.assertEqual(read_uint32(self.blob, 8), 5)


if __name__ == "__main__":
    unittest.main()
