import io
import struct
import unittest

from director_rsrc.errors import MalformedDiscriminantError, TruncatedDataError
from director_rsrc.reader import BinaryReader, SubStream, first_of, read_exact, restore_on_error
from director_rsrc.toolbox.intl import ScriptCode


class ReadExactTests(unittest.TestCase):
    def test_short_read(self) -> None:
        with self.assertRaises(TruncatedDataError):
            read_exact(io.BytesIO(b"abc"), 4)

    def test_exact_read(self) -> None:
        self.assertEqual(read_exact(io.BytesIO(b"abcd"), 4), b"abcd")


class SubStreamTests(unittest.TestCase):
    def test_bounded_read(self) -> None:
        sub = SubStream(io.BytesIO(b"0123456789"), 2, 5)
        self.assertEqual(len(sub), 5)
        self.assertEqual(sub.read(3), b"234")
        self.assertEqual(sub.read(), b"56")
        self.assertEqual(sub.read(), b"")

    def test_seek(self) -> None:
        sub = SubStream(io.BytesIO(b"0123456789"), 2, 5)
        sub.seek(-1, io.SEEK_END)
        self.assertEqual(sub.read(), b"6")
        sub.seek(1)
        self.assertEqual(sub.tell(), 1)
        self.assertEqual(sub.read(1), b"3")


class BinaryReaderTests(unittest.TestCase):
    def test_big_endian_integers(self) -> None:
        reader = BinaryReader.from_bytes(b"\x01\x02\xff\xfe\x00\x00\x01\x00\x07")
        self.assertEqual(reader.read_be_uint16(), 0x0102)
        self.assertEqual(reader.read_be_int16(), -2)
        self.assertEqual(reader.read_be_uint32(), 0x100)
        self.assertEqual(reader.read_uint8(), 7)
        self.assertEqual(reader.bytes_left(), 0)

    def test_unpack(self) -> None:
        reader = BinaryReader.from_bytes(struct.pack(">hI", -3, 9))
        self.assertEqual(reader.unpack(struct.Struct(">hI")), (-3, 9))

    def test_pascal_string(self) -> None:
        reader = BinaryReader.from_bytes(b"\x05Hello\x02\x8e\x8a")
        self.assertEqual(reader.read_pascal_str(ScriptCode.ROMAN), "Hello")
        self.assertEqual(reader.read_pascal_str(ScriptCode.ROMAN), "éä")

    def test_pascal_string_truncated(self) -> None:
        reader = BinaryReader.from_bytes(b"\x05Hel")
        with self.assertRaises(TruncatedDataError):
            reader.read_pascal_bytes()

    def test_window(self) -> None:
        reader = BinaryReader.from_bytes(b"abcdefgh")
        reader.skip(1)
        window = reader.window(3)
        self.assertEqual(reader.pos, 4)
        self.assertEqual(window.bytes_left(), 3)
        self.assertEqual(window.read_rest(), b"bcd")
        with self.assertRaises(TruncatedDataError):
            reader.window(5)


class RestoreOnErrorTests(unittest.TestCase):
    def test_success_keeps_position(self) -> None:
        reader = BinaryReader.from_bytes(b"\x00\x01\x00\x02")

        def parse(r: BinaryReader, start: int) -> int:
            self.assertEqual(start, 0)
            return r.read_be_uint16()

        self.assertEqual(restore_on_error(reader, parse), 1)
        self.assertEqual(reader.pos, 2)

    def test_failure_rewinds_and_propagates(self) -> None:
        reader = BinaryReader.from_bytes(b"\x00\x01\x00\x02")
        reader.skip(1)
        error = MalformedDiscriminantError("kind", 9)

        def parse(r: BinaryReader, start: int) -> int:
            r.read_bytes(2)
            raise error

        with self.assertRaises(MalformedDiscriminantError) as cm:
            restore_on_error(reader, parse)
        self.assertIs(cm.exception, error)
        self.assertEqual(reader.pos, 1)

    def test_first_of(self) -> None:
        reader = BinaryReader.from_bytes(b"\x00\x09rest")

        def tagged(r: BinaryReader, start: int) -> str:
            tag = r.read_be_uint16()
            if tag != 1:
                raise MalformedDiscriminantError("tag", tag)
            return "tagged"

        def raw(r: BinaryReader, start: int) -> bytes:
            self.assertEqual(r.pos, start)
            return r.read_rest()

        self.assertEqual(first_of(reader, tagged, raw), b"\x00\x09rest")

    def test_first_of_all_fail(self) -> None:
        reader = BinaryReader.from_bytes(b"\x00")

        def short(r: BinaryReader, start: int) -> int:
            return r.read_be_uint32()

        with self.assertRaises(TruncatedDataError):
            first_of(reader, short, short)
        self.assertEqual(reader.pos, 0)


if __name__ == "__main__":
    unittest.main()
