"""Cast member metadata (``'VWCI'``).

The metadata block is a property vector: a fixed header, then a table of
offsets into a data area holding one variable-length entry per slot::

    u32 header size (16 or 20), u32 script handle, u32 unknown, u32 flags,
    [i32 script context number], u16 entry count, (count + 1) x u32 offsets,
    entry data

Offsets are relative to the start of the entry data.  Entry ``i`` spans
``offsets[i]`` to ``offsets[i + 1]``; an entry whose end does not lie past
its start is empty.
"""

from __future__ import annotations

import enum
import logging
import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from ..errors import MalformedDiscriminantError, SizeMismatchError
from ..reader import BinaryReader
from ..toolbox.intl import convert_text
from ..toolbox.types import OsType
from .chunks import ChunkType

if TYPE_CHECKING:
    from ..resources.source import DecodeContext

log = logging.getLogger(__name__)

# header size, script handle, unknown, flags
STRUCT_METADATA_HEADER = struct.Struct(">IIII")
STRUCT_SCRIPT_CONTEXT = struct.Struct(">i")
STRUCT_ENTRY_COUNT = struct.Struct(">H")
STRUCT_ENTRY_OFFSET = struct.Struct(">I")

HEADER_SIZE_D4 = 16
HEADER_SIZE_D5 = 20


class MemberInfoFlags(enum.IntFlag):
    EXTERNAL_FILE = 0x01
    AUTO_HILITE = 0x02
    PURGE_NEVER = 0x04
    PURGE_LAST = 0x08
    PURGE_NEXT = 0x0C
    SOUND_ON = 0x10


class MetadataEntry(enum.IntEnum):
    """Slots of the metadata entry table that have a known meaning."""

    # Director 3 only; later versions keep scripts in their own chunks.
    SCRIPT_TEXT = 0
    NAME = 1
    FILE_PATH = 2
    FILE_NAME = 3
    XTRA_NAME = 10


def _pascal(data: bytes, context: "DecodeContext") -> str | None:
    if not data:
        return None
    return BinaryReader.from_bytes(data).read_pascal_str(context.script)


def _c_string(data: bytes, context: "DecodeContext") -> str | None:
    if not data:
        return None
    return convert_text(data.split(b"\x00", 1)[0], context.script)


@dataclass(frozen=True)
class MemberMetadata:
    """Names, paths and flags attached to a cast member.

    ``entries`` keeps every slot's raw bytes, including the ones decoded
    into the named fields, so nothing in the block is lost.
    """

    OS_TYPES: ClassVar[tuple[OsType, ...]] = (OsType(ChunkType.VWCI.value),)

    script_handle: int
    unknown: int
    flags: MemberInfoFlags
    script_context_num: int | None
    entries: tuple[bytes, ...]
    script_text: str | None = None
    name: str | None = None
    file_path: str | None = None
    file_name: str | None = None
    xtra_name: str | None = None

    @classmethod
    def load(cls, reader: BinaryReader, size: int, context: "DecodeContext") -> "MemberMetadata":
        if size < STRUCT_METADATA_HEADER.size:
            raise SizeMismatchError("member metadata", size, f">= {STRUCT_METADATA_HEADER.size}")
        header_size, script_handle, unknown, flags = reader.unpack(STRUCT_METADATA_HEADER)
        if header_size not in (HEADER_SIZE_D4, HEADER_SIZE_D5):
            raise MalformedDiscriminantError("member metadata header size", header_size)
        script_context_num = None
        if header_size == HEADER_SIZE_D5:
            (script_context_num,) = reader.unpack(STRUCT_SCRIPT_CONTEXT)

        (count,) = reader.unpack(STRUCT_ENTRY_COUNT)
        offsets = [reader.unpack(STRUCT_ENTRY_OFFSET)[0] for _ in range(count + 1)]
        data_start = header_size + STRUCT_ENTRY_COUNT.size + (count + 1) * STRUCT_ENTRY_OFFSET.size
        data = reader.read_bytes(size - data_start) if size > data_start else b""
        if offsets[-1] > len(data):
            raise SizeMismatchError("member metadata", size, f">= {data_start + offsets[-1]}")

        entries = tuple(
            data[start:end] if end > start else b""
            for start, end in zip(offsets, offsets[1:])
        )

        def entry(slot: MetadataEntry) -> bytes:
            return entries[slot] if slot < len(entries) else b""

        script_text = entry(MetadataEntry.SCRIPT_TEXT)
        metadata = cls(
            script_handle=script_handle,
            unknown=unknown,
            flags=MemberInfoFlags(flags),
            script_context_num=script_context_num,
            entries=entries,
            script_text=convert_text(script_text, context.script) if script_text else None,
            name=_pascal(entry(MetadataEntry.NAME), context),
            file_path=_pascal(entry(MetadataEntry.FILE_PATH), context),
            file_name=_pascal(entry(MetadataEntry.FILE_NAME), context),
            xtra_name=_c_string(entry(MetadataEntry.XTRA_NAME), context),
        )
        log.debug("Member metadata: %d entries, name=%r", count, metadata.name)
        return metadata
