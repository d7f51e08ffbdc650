import struct
import unittest

from director_rsrc.director.cast import (
    STRUCT_MEMBER_HEADER_V4,
    STRUCT_MEMBER_HEADER_V5,
    CastMap,
    CastRegistry,
    Member,
    RawProperties,
)
from director_rsrc.director.chunks import LegacyMemberFlags, MemberKind
from director_rsrc.director.film_loop import STRUCT_FILM_LOOP, FilmLoopFlags, FilmLoopProperties
from director_rsrc.director.metadata import MemberInfoFlags, MemberMetadata
from director_rsrc.director.script import ScriptKind, ScriptProperties
from director_rsrc.director.shape import (
    STRUCT_SHAPE,
    LineDirection,
    ShapeKind,
    ShapeProperties,
)
from director_rsrc.errors import MalformedDiscriminantError, SizeMismatchError
from director_rsrc.reader import BinaryReader
from director_rsrc.resources.source import DecodeContext
from director_rsrc.toolbox.intl import ScriptCode
from director_rsrc.toolbox.types import Rect

from .forks import make_pascal_string

CONTEXT = DecodeContext()

SHAPE = STRUCT_SHAPE.pack(ShapeKind.OVAL, 10, 20, 110, 220, 3, 255, 0, 1, 200, 5)
FILM_LOOP = struct.pack(">hhhhIH", 0, 0, 240, 320, 0x09, 0)


def reader_for(data: bytes) -> BinaryReader:
    return BinaryReader.from_bytes(data)


def build_metadata(
    entries: list,
    *,
    flags: int = 0,
    script_context_num=None,
    script_handle: int = 0,
    unknown: int = 0,
) -> bytes:
    header_size = 16 if script_context_num is None else 20
    header = struct.pack(">IIII", header_size, script_handle, unknown, flags)
    if script_context_num is not None:
        header += struct.pack(">i", script_context_num)
    offsets = [0]
    for entry in entries:
        offsets.append(offsets[-1] + len(entry))
    table = struct.pack(">H", len(entries)) + b"".join(struct.pack(">I", o) for o in offsets)
    return header + table + b"".join(entries)


class ShapeTests(unittest.TestCase):
    def test_load(self) -> None:
        shape = ShapeProperties.load(reader_for(SHAPE), len(SHAPE), CONTEXT)
        self.assertEqual(shape.kind, ShapeKind.OVAL)
        self.assertEqual(shape.bounds, Rect(10, 20, 110, 220))
        self.assertEqual(shape.pattern, 3)
        self.assertEqual(shape.fore_color, 255)
        self.assertEqual(shape.back_color, 0)
        self.assertTrue(shape.filled)
        self.assertEqual(shape.line_direction, LineDirection.TOP_TO_BOTTOM)

    def test_line_size_is_not_clamped(self) -> None:
        shape = ShapeProperties.load(reader_for(SHAPE), len(SHAPE), CONTEXT)
        self.assertEqual(shape.line_size, 200)
        self.assertEqual(shape.painted_line_size, 7)

    def test_painted_line_size_never_negative(self) -> None:
        data = STRUCT_SHAPE.pack(ShapeKind.LINE, 0, 0, 1, 1, 0, 0, 0, 0, 0, 6)
        shape = ShapeProperties.load(reader_for(data), len(data), CONTEXT)
        self.assertEqual(shape.painted_line_size, 0)
        self.assertEqual(shape.line_direction, LineDirection.BOTTOM_TO_TOP)

    def test_bad_kind(self) -> None:
        data = STRUCT_SHAPE.pack(9, 0, 0, 1, 1, 0, 0, 0, 0, 1, 5)
        with self.assertRaises(MalformedDiscriminantError) as cm:
            ShapeProperties.load(reader_for(data), len(data), CONTEXT)
        self.assertEqual(cm.exception.value, 9)

    def test_bad_line_direction(self) -> None:
        data = STRUCT_SHAPE.pack(ShapeKind.LINE, 0, 0, 1, 1, 0, 0, 0, 0, 1, 7)
        with self.assertRaises(MalformedDiscriminantError):
            ShapeProperties.load(reader_for(data), len(data), CONTEXT)

    def test_too_short(self) -> None:
        reader = reader_for(SHAPE[:16])
        with self.assertRaises(SizeMismatchError):
            ShapeProperties.load(reader, 16, CONTEXT)
        self.assertEqual(reader.pos, 0)

    def test_round_trip(self) -> None:
        data = STRUCT_SHAPE.pack(ShapeKind.RECT, -10, -20, -1, -2, -3, 17, 250, 1, 0x27, 6)
        shape = ShapeProperties.load(reader_for(data), len(data), CONTEXT)
        self.assertEqual(shape.bounds, Rect(-10, -20, -1, -2))
        self.assertEqual(shape.pattern, -3)
        repacked = STRUCT_SHAPE.pack(
            shape.kind,
            shape.bounds.top, shape.bounds.left, shape.bounds.bottom, shape.bounds.right,
            shape.pattern,
            shape.fore_color,
            shape.back_color,
            int(shape.filled),
            shape.line_size,
            shape.line_direction,
        )
        self.assertEqual(repacked, data)


class FilmLoopTests(unittest.TestCase):
    def test_load(self) -> None:
        loop = FilmLoopProperties.load(reader_for(FILM_LOOP), len(FILM_LOOP), CONTEXT)
        self.assertEqual(loop.bounds, Rect(0, 0, 240, 320))
        self.assertEqual(loop.flags, FilmLoopFlags.CROP_FROM_CENTER | FilmLoopFlags.SOUND_ENABLED)
        self.assertTrue(loop.loops)

    def test_unknown_flag_bits_survive(self) -> None:
        data = struct.pack(">hhhhIH", 0, 0, 1, 1, 0x40 | FilmLoopFlags.NO_LOOP, 0)
        loop = FilmLoopProperties.load(reader_for(data), len(data), CONTEXT)
        self.assertEqual(int(loop.flags), 0x60)
        self.assertFalse(loop.loops)

    def test_round_trip_keeps_reserved_and_unknown_bits(self) -> None:
        data = STRUCT_FILM_LOOP.pack(-5, -6, 100, 200, 0x80000009, 0x1234)
        loop = FilmLoopProperties.load(reader_for(data), len(data), CONTEXT)
        self.assertEqual(loop.reserved, 0x1234)
        self.assertEqual(int(loop.flags), 0x80000009)
        self.assertIn(FilmLoopFlags.CROP_FROM_CENTER, loop.flags)
        self.assertNotIn(FilmLoopFlags.SCALE, loop.flags)
        b = loop.bounds
        repacked = STRUCT_FILM_LOOP.pack(b.top, b.left, b.bottom, b.right, int(loop.flags), loop.reserved)
        self.assertEqual(repacked, data)

    def test_wrong_size_reads_nothing(self) -> None:
        for size in (13, 15):
            with self.subTest(size=size):
                reader = reader_for(FILM_LOOP + b"\x00")
                with self.assertRaises(SizeMismatchError) as cm:
                    FilmLoopProperties.load(reader, size, CONTEXT)
                self.assertEqual(cm.exception.size, size)
                self.assertEqual(reader.pos, 0)


class ScriptTests(unittest.TestCase):
    def test_kinds(self) -> None:
        self.assertEqual(ScriptProperties.load(reader_for(b""), 0, CONTEXT).kind, ScriptKind.MOVIE)
        self.assertEqual(ScriptProperties.load(reader_for(b"\x00\x01"), 2, CONTEXT).kind, ScriptKind.SCORE)
        self.assertEqual(ScriptProperties.load(reader_for(b"\x00\x07"), 2, CONTEXT).kind, ScriptKind.PARENT)

    def test_bad_kind(self) -> None:
        with self.assertRaises(MalformedDiscriminantError):
            ScriptProperties.load(reader_for(b"\x00\x09"), 2, CONTEXT)

    def test_bad_size(self) -> None:
        with self.assertRaises(SizeMismatchError):
            ScriptProperties.load(reader_for(b"\x00\x01\x00"), 3, CONTEXT)


class MemberTests(unittest.TestCase):
    def load(self, data: bytes, *args) -> Member:
        return Member.load(reader_for(data), len(data), CONTEXT, *args)

    def test_v4_shape_with_flags(self) -> None:
        registry_size = 1 + 1 + len(SHAPE)
        meta = build_metadata([b"", make_pascal_string(b"Oval")])
        data = STRUCT_MEMBER_HEADER_V4.pack(registry_size, len(meta), MemberKind.SHAPE) + b"\x01" + SHAPE + meta
        member = self.load(data, 1024)
        self.assertEqual(member.kind, MemberKind.SHAPE)
        self.assertEqual(member.legacy_flags, LegacyMemberFlags.FLAG_1)
        self.assertEqual(member.properties.kind, ShapeKind.OVAL)
        self.assertEqual(member.metadata.name, "Oval")
        self.assertIsNone(member.metadata.script_context_num)

    def test_v4_legacy_flags_round_trip(self) -> None:
        meta = build_metadata([])
        registry_size = 1 + 1 + len(SHAPE)
        data = STRUCT_MEMBER_HEADER_V4.pack(registry_size, len(meta), MemberKind.SHAPE) + b"\xa5" + SHAPE + meta
        member = self.load(data, 1024)
        self.assertEqual(int(member.legacy_flags), 0xA5)
        self.assertIn(LegacyMemberFlags.FLAG_80, member.legacy_flags)
        repacked = (
            STRUCT_MEMBER_HEADER_V4.pack(registry_size, len(meta), member.kind)
            + bytes([member.legacy_flags])
            + SHAPE
            + build_metadata(list(member.metadata.entries))
        )
        self.assertEqual(repacked, data)

    def test_v4_kind_without_flags(self) -> None:
        data = STRUCT_MEMBER_HEADER_V4.pack(4, 0, MemberKind.TEXT) + b"abc"
        member = self.load(data, 1024)
        self.assertEqual(member.properties, RawProperties(MemberKind.TEXT, b"abc"))
        self.assertIsNone(member.metadata)
        self.assertEqual(member.legacy_flags, LegacyMemberFlags(0))

    def test_v4_properties_are_bounded(self) -> None:
        # Two trailing property bytes the shape layout doesn't use
        registry_size = 1 + 1 + len(SHAPE) + 2
        meta = build_metadata([])
        data = STRUCT_MEMBER_HEADER_V4.pack(registry_size, len(meta), MemberKind.SHAPE) + b"\x00" + SHAPE + b"xx" + meta
        self.assertEqual(self.load(data, 1024).metadata.entries, ())

    def test_v4_registry_too_small(self) -> None:
        data = STRUCT_MEMBER_HEADER_V4.pack(1, 0, MemberKind.SHAPE)
        with self.assertRaises(SizeMismatchError):
            self.load(data, 1024)

    def test_v5_script(self) -> None:
        meta = build_metadata([b"", make_pascal_string(b"Parent")], script_context_num=7)
        data = STRUCT_MEMBER_HEADER_V5.pack(MemberKind.SCRIPT, len(meta), 2) + meta + b"\x00\x07"
        member = self.load(data)
        self.assertEqual(member.kind, MemberKind.SCRIPT)
        self.assertEqual(member.properties, ScriptProperties(ScriptKind.PARENT))
        self.assertEqual(member.metadata.name, "Parent")
        self.assertEqual(member.metadata.script_context_num, 7)

    def test_v5_film_loop_and_movie(self) -> None:
        for kind in (MemberKind.FILM_LOOP, MemberKind.MOVIE):
            with self.subTest(kind=kind):
                data = STRUCT_MEMBER_HEADER_V5.pack(kind, 0, len(FILM_LOOP)) + FILM_LOOP
                self.assertIsInstance(self.load(data).properties, FilmLoopProperties)

    def test_v5_empty_member(self) -> None:
        member = self.load(STRUCT_MEMBER_HEADER_V5.pack(MemberKind.NONE, 0, 0))
        self.assertIsNone(member.properties)
        self.assertIsNone(member.metadata)

    def test_bad_kind(self) -> None:
        with self.assertRaises(MalformedDiscriminantError):
            self.load(STRUCT_MEMBER_HEADER_V5.pack(99, 0, 0))


class MemberMetadataTests(unittest.TestCase):
    ENTRIES = [
        b"on mouseUp\r  beep\rend",
        make_pascal_string(b"Beep Button"),
        make_pascal_string(b"HD:Sounds:"),
        make_pascal_string(b"Beep.aiff"),
        b"",
        b"\x00" * 20,
        b"",
        b"",
        b"",
        b"",
        b"Flash Asset\x00\x00\x00",
    ]

    def load(self, data: bytes, context: DecodeContext = CONTEXT) -> MemberMetadata:
        return MemberMetadata.load(reader_for(data), len(data), context)

    def test_load(self) -> None:
        data = build_metadata(
            self.ENTRIES, flags=0x111, script_handle=0xDEAD, unknown=0x42
        )
        meta = self.load(data)
        self.assertEqual(meta.script_handle, 0xDEAD)
        self.assertEqual(meta.unknown, 0x42)
        self.assertEqual(int(meta.flags), 0x111)
        self.assertIn(MemberInfoFlags.EXTERNAL_FILE, meta.flags)
        self.assertIn(MemberInfoFlags.SOUND_ON, meta.flags)
        self.assertNotIn(MemberInfoFlags.AUTO_HILITE, meta.flags)
        self.assertIsNone(meta.script_context_num)
        self.assertEqual(meta.script_text, "on mouseUp\r  beep\rend")
        self.assertEqual(meta.name, "Beep Button")
        self.assertEqual(meta.file_path, "HD:Sounds:")
        self.assertEqual(meta.file_name, "Beep.aiff")
        self.assertEqual(meta.xtra_name, "Flash Asset")
        self.assertEqual(len(meta.entries), 11)
        self.assertEqual(meta.entries[5], b"\x00" * 20)

    def test_round_trip(self) -> None:
        data = build_metadata(self.ENTRIES, flags=0x80000004, script_context_num=-3, script_handle=9, unknown=1)
        meta = self.load(data)
        repacked = build_metadata(
            list(meta.entries),
            flags=int(meta.flags),
            script_context_num=meta.script_context_num,
            script_handle=meta.script_handle,
            unknown=meta.unknown,
        )
        self.assertEqual(repacked, data)

    def test_missing_entries(self) -> None:
        meta = self.load(build_metadata([b"", b""]))
        self.assertIsNone(meta.script_text)
        self.assertIsNone(meta.name)
        self.assertIsNone(meta.file_name)
        self.assertIsNone(meta.xtra_name)

    def test_backwards_offset_is_empty(self) -> None:
        data = struct.pack(">IIIIH3I", 16, 0, 0, 0, 2, 0, 4, 2) + b"abcd"
        self.assertEqual(self.load(data).entries, (b"abcd", b""))

    def test_names_use_context_script(self) -> None:
        raw = "日本".encode("shift_jis")
        meta = self.load(build_metadata([b"", make_pascal_string(raw)]), DecodeContext(ScriptCode.JAPANESE))
        self.assertEqual(meta.name, "日本")

    def test_bad_header_size(self) -> None:
        data = struct.pack(">IIIIIH", 24, 0, 0, 0, 0, 0) + struct.pack(">I", 0)
        with self.assertRaises(MalformedDiscriminantError) as cm:
            self.load(data)
        self.assertEqual(cm.exception.value, 24)

    def test_offsets_past_end(self) -> None:
        data = build_metadata([b"abcd"])[:-2]
        with self.assertRaises(SizeMismatchError):
            self.load(data)

    def test_too_short(self) -> None:
        with self.assertRaises(SizeMismatchError):
            self.load(bytes(8))


class CastRegistryTests(unittest.TestCase):
    def test_load(self) -> None:
        data = (
            b"\x00"
            + bytes([1 + 1 + len(SHAPE), MemberKind.SHAPE, 0x02]) + SHAPE
            + bytes([4, MemberKind.TEXT]) + b"abc"
            + bytes([1 + 1 + 2, MemberKind.SCRIPT, 0x00]) + b"\x00\x01"
            + b"\x00"
        )
        registry = CastRegistry.load(reader_for(data), len(data), CONTEXT)
        self.assertEqual(len(registry), 5)
        self.assertTrue(registry[0].is_empty)
        self.assertEqual(registry[1].kind, MemberKind.SHAPE)
        self.assertEqual(registry[1].legacy_flags, LegacyMemberFlags.FLAG_2)
        self.assertEqual(registry[1].properties.line_size, 200)
        self.assertEqual(registry[2].properties, RawProperties(MemberKind.TEXT, b"abc"))
        self.assertEqual(registry[3].properties.kind, ScriptKind.SCORE)
        self.assertTrue(registry[4].is_empty)

    def test_bad_record_rewinds(self) -> None:
        data = b"\x00" + bytes([2, 99, 0])
        reader = reader_for(data)
        with self.assertRaises(MalformedDiscriminantError):
            CastRegistry.load(reader, len(data), CONTEXT)
        self.assertEqual(reader.pos, 0)


class CastMapTests(unittest.TestCase):
    def test_load(self) -> None:
        data = struct.pack(">4I", 0, 5, 0, 9)
        cast_map = CastMap.load(reader_for(data), len(data), CONTEXT)
        self.assertEqual(len(cast_map), 4)
        self.assertEqual(list(cast_map), [0, 5, 0, 9])
        self.assertEqual(cast_map.populated(), [(1, 5), (3, 9)])

    def test_empty(self) -> None:
        self.assertEqual(len(CastMap.load(reader_for(b""), 0, CONTEXT)), 0)

    def test_size_not_multiple_of_four(self) -> None:
        with self.assertRaises(SizeMismatchError):
            CastMap.load(reader_for(bytes(6)), 6, CONTEXT)


if __name__ == "__main__":
    unittest.main()
