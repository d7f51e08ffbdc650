"""Resource tag and cast member kind definitions for Director movies."""

from __future__ import annotations

import enum
from enum import Enum, IntEnum

from ..errors import MalformedDiscriminantError


class ChunkType(str, Enum):
    """Director resource tags this package decodes."""

    CASt = "CASt"  # Cast member record
    CASs = "CAS*"  # Cast member index (slot → chunk)
    VWCR = "VWCR"  # Director 3 cast registry
    VWCI = "VWCI"  # Cast member metadata


# Director config versions.  Cast member headers changed layout at 1201.
CONFIG_VERSION_D5 = 1201


class MemberKind(IntEnum):
    """Director cast member kinds."""

    NONE = 0
    BITMAP = 1
    FILM_LOOP = 2
    FIELD = 3
    PALETTE = 4
    PICTURE = 5
    SOUND = 6
    BUTTON = 7
    SHAPE = 8
    MOVIE = 9
    DIGITAL_VIDEO = 10
    SCRIPT = 11
    TEXT = 12
    OLE = 13
    TRANSITION = 14
    XTRA = 15

    @classmethod
    def parse(cls, value: int) -> "MemberKind":
        try:
            return cls(value)
        except ValueError:
            raise MalformedDiscriminantError("cast member kind", value) from None

    @property
    def has_legacy_flags(self) -> bool:
        """Director 4 and earlier store a flags byte after these kinds."""
        return self in _KINDS_WITH_LEGACY_FLAGS


_KINDS_WITH_LEGACY_FLAGS = frozenset({
    MemberKind.BITMAP,
    MemberKind.BUTTON,
    MemberKind.DIGITAL_VIDEO,
    MemberKind.FIELD,
    MemberKind.FILM_LOOP,
    MemberKind.MOVIE,
    MemberKind.SHAPE,
    MemberKind.SCRIPT,
})


# Cast type names for display
MEMBER_KIND_NAMES: dict[int, str] = {
    0: "Null",
    1: "Bitmap",
    2: "Film Loop",
    3: "Field",
    4: "Palette",
    5: "Picture",
    6: "Sound",
    7: "Button",
    8: "Shape",
    9: "Movie",
    10: "Digital Video",
    11: "Script",
    12: "Text",
    13: "OLE",
    14: "Transition",
    15: "Xtra",
}


class LegacyMemberFlags(enum.IntFlag):
    """The Director 4 flags byte.  Its meaning is not known, only preserved."""

    FLAG_1 = 0x01
    FLAG_2 = 0x02
    FLAG_4 = 0x04
    FLAG_8 = 0x08
    FLAG_10 = 0x10
    FLAG_20 = 0x20
    FLAG_40 = 0x40
    FLAG_80 = 0x80
