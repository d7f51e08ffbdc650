"""Film loop and movie cast member properties.

Film loops (and linked movies, which share the layout) only store their
placement here; the frames themselves live in the member's own score.
"""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from ..errors import SizeMismatchError
from ..reader import BinaryReader
from ..toolbox.types import OsType, Rect

if TYPE_CHECKING:
    from ..resources.source import DecodeContext

# rect (top, left, bottom, right), flags, reserved
STRUCT_FILM_LOOP = struct.Struct(">hhhhIH")


class FilmLoopFlags(enum.IntFlag):
    # Crop from the centre instead of the top-left corner.
    CROP_FROM_CENTER = 0x01
    # Scale instead of cropping when the bounds don't match the stage.
    SCALE = 0x02
    MAP_PALETTES = 0x04
    SOUND_ENABLED = 0x08
    # Movies only.
    ENABLE_SCRIPTS = 0x10
    NO_LOOP = 0x20


@dataclass(frozen=True)
class FilmLoopProperties:
    OS_TYPES: ClassVar[tuple[OsType, ...]] = ()
    SIZE: ClassVar[int] = STRUCT_FILM_LOOP.size

    bounds: Rect
    flags: FilmLoopFlags
    reserved: int = 0

    @classmethod
    def load(cls, reader: BinaryReader, size: int, context: "DecodeContext") -> "FilmLoopProperties":
        if size != cls.SIZE:
            raise SizeMismatchError("film loop properties", size, cls.SIZE)
        top, left, bottom, right, flags, reserved = reader.unpack(STRUCT_FILM_LOOP)
        return cls(
            bounds=Rect(top, left, bottom, right),
            flags=FilmLoopFlags(flags),
            reserved=reserved,
        )

    @property
    def loops(self) -> bool:
        return not self.flags & FilmLoopFlags.NO_LOOP
