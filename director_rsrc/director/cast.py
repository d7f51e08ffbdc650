"""Cast member records, the Director 3 cast registry and the cast map.

A cast member record (``'CASt'``) has two layouts.  Movies saved with a
config version below 1201 use a short header followed by the kind's
properties and then the member metadata::

    u16 registry size, u32 metadata size, u8 kind, [u8 flags], properties

Later movies use a fixed header and store metadata first::

    u32 kind, u32 metadata size, u32 properties size, metadata, properties

Director 3 keeps every member's properties together in one ``'VWCR'``
registry instead.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Union

from ..errors import SizeMismatchError
from ..reader import BinaryReader, restore_on_error
from ..toolbox.types import OsType
from .chunks import CONFIG_VERSION_D5, MEMBER_KIND_NAMES, ChunkType, LegacyMemberFlags, MemberKind
from .film_loop import FilmLoopProperties
from .metadata import MemberMetadata
from .script import ScriptProperties
from .shape import ShapeProperties

if TYPE_CHECKING:
    from ..resources.source import DecodeContext

log = logging.getLogger(__name__)

# registry size, metadata size, kind
STRUCT_MEMBER_HEADER_V4 = struct.Struct(">HIB")
# kind, metadata size, properties size
STRUCT_MEMBER_HEADER_V5 = struct.Struct(">III")
STRUCT_CHUNK_INDEX = struct.Struct(">I")


@dataclass(frozen=True)
class RawProperties:
    """Properties of a kind without a dedicated decoder, kept verbatim."""

    kind: MemberKind
    data: bytes


MemberProperties = Union[ShapeProperties, FilmLoopProperties, ScriptProperties, RawProperties, None]

# Kinds whose properties have a decoder.  Film loops and movies share one.
_PROPERTY_DECODERS: dict[MemberKind, Any] = {
    MemberKind.SHAPE: ShapeProperties,
    MemberKind.FILM_LOOP: FilmLoopProperties,
    MemberKind.MOVIE: FilmLoopProperties,
    MemberKind.SCRIPT: ScriptProperties,
}


def read_properties(
    reader: BinaryReader,
    kind: MemberKind,
    size: int,
    context: "DecodeContext",
) -> MemberProperties:
    """Decode *size* bytes of properties for a member of *kind*.

    The reader is always left just past the properties, however many bytes
    the decoder consumed.
    """
    window = reader.window(size)
    if kind == MemberKind.NONE:
        return None
    decoder = _PROPERTY_DECODERS.get(kind)
    if decoder is None:
        return RawProperties(kind, window.read_rest())
    return decoder.load(window, size, context)


def read_metadata(reader: BinaryReader, size: int, context: "DecodeContext") -> MemberMetadata | None:
    """Decode the *size*-byte metadata block that follows, if there is one."""
    if not size:
        return None
    return MemberMetadata.load(reader.window(size), size, context)


@dataclass(frozen=True)
class Member:
    """A cast member record (``'CASt'``).

    Takes the movie's config version as its decode argument.
    """

    OS_TYPES: ClassVar[tuple[OsType, ...]] = (OsType(ChunkType.CASt.value),)

    kind: MemberKind
    properties: MemberProperties
    metadata: MemberMetadata | None = None
    legacy_flags: LegacyMemberFlags = LegacyMemberFlags(0)

    @classmethod
    def load(
        cls,
        reader: BinaryReader,
        size: int,
        context: "DecodeContext",
        version: int = CONFIG_VERSION_D5,
    ) -> "Member":
        if version < CONFIG_VERSION_D5:
            return cls._load_v4(reader, context)
        return cls._load_v5(reader, context)

    @classmethod
    def _load_v4(cls, reader: BinaryReader, context: "DecodeContext") -> "Member":
        registry_size, metadata_size, kind = reader.unpack(STRUCT_MEMBER_HEADER_V4)
        kind = MemberKind.parse(kind)

        # The registry size counts the kind byte and the flags byte
        properties_size = registry_size - 1
        flags = LegacyMemberFlags(0)
        if kind.has_legacy_flags:
            properties_size -= 1
            if properties_size < 0:
                raise SizeMismatchError("cast member registry", registry_size, ">= 2")
            flags = LegacyMemberFlags(reader.read_uint8())
        elif properties_size < 0:
            raise SizeMismatchError("cast member registry", registry_size, ">= 1")

        properties = read_properties(reader, kind, properties_size, context)
        metadata = read_metadata(reader, metadata_size, context)
        log.debug("CASt v4: %s, %d property bytes", MEMBER_KIND_NAMES[kind], properties_size)
        return cls(kind, properties, metadata, flags)

    @classmethod
    def _load_v5(cls, reader: BinaryReader, context: "DecodeContext") -> "Member":
        kind, metadata_size, properties_size = reader.unpack(STRUCT_MEMBER_HEADER_V5)
        kind = MemberKind.parse(kind)
        metadata = read_metadata(reader, metadata_size, context)
        properties = read_properties(reader, kind, properties_size, context)
        log.debug("CASt v5: %s, %d property bytes", MEMBER_KIND_NAMES[kind], properties_size)
        return cls(kind, properties, metadata)


@dataclass(frozen=True)
class CastRegistryEntry:
    kind: MemberKind = MemberKind.NONE
    properties: MemberProperties = None
    legacy_flags: LegacyMemberFlags = LegacyMemberFlags(0)

    @property
    def is_empty(self) -> bool:
        return self.kind == MemberKind.NONE


@dataclass(frozen=True)
class CastRegistry:
    """The Director 3 cast registry (``'VWCR'``), one entry per cast slot."""

    OS_TYPES: ClassVar[tuple[OsType, ...]] = (OsType(ChunkType.VWCR.value),)

    entries: tuple[CastRegistryEntry, ...]

    @classmethod
    def load(cls, reader: BinaryReader, size: int, context: "DecodeContext", *args: Any) -> "CastRegistry":
        return restore_on_error(reader, lambda r, _pos: cls._read_entries(r, context))

    @classmethod
    def _read_entries(cls, reader: BinaryReader, context: "DecodeContext") -> "CastRegistry":
        entries = []
        while reader.bytes_left():
            # The record size excludes the size byte itself
            record_size = reader.read_uint8()
            if record_size == 0:
                entries.append(CastRegistryEntry())
                continue
            record = reader.window(record_size)
            kind = MemberKind.parse(record.read_uint8())
            flags = LegacyMemberFlags(0)
            if kind.has_legacy_flags:
                flags = LegacyMemberFlags(record.read_uint8())
            properties_size = record.bytes_left()
            properties = read_properties(record, kind, properties_size, context)
            entries.append(CastRegistryEntry(kind, properties, flags))
        return cls(tuple(entries))

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> CastRegistryEntry:
        return self.entries[index]


@dataclass(frozen=True)
class CastMap:
    """Chunk indexes of each cast slot (``'CAS*'``); 0 marks an empty slot."""

    OS_TYPES: ClassVar[tuple[OsType, ...]] = (OsType(ChunkType.CASs.value),)

    chunk_indexes: tuple[int, ...]

    @classmethod
    def load(cls, reader: BinaryReader, size: int, context: "DecodeContext") -> "CastMap":
        if size % STRUCT_CHUNK_INDEX.size:
            raise SizeMismatchError("cast map", size, "a multiple of 4")
        count = size // STRUCT_CHUNK_INDEX.size
        return cls(tuple(reader.unpack(STRUCT_CHUNK_INDEX)[0] for _ in range(count)))

    def __len__(self) -> int:
        return len(self.chunk_indexes)

    def __iter__(self):
        return iter(self.chunk_indexes)

    def populated(self) -> list[tuple[int, int]]:
        """``(slot, chunk index)`` pairs for every non-empty slot."""
        return [(slot, index) for slot, index in enumerate(self.chunk_indexes) if index]
