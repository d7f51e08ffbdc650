"""Shape cast member properties."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, ClassVar

from ..errors import MalformedDiscriminantError, SizeMismatchError
from ..reader import BinaryReader
from ..toolbox.types import OsType, Rect

if TYPE_CHECKING:
    from ..resources.source import DecodeContext

log = logging.getLogger(__name__)

# kind, rect (top, left, bottom, right), pattern, fore, back, filled,
# line size, line direction
STRUCT_SHAPE = struct.Struct(">HhhhhhBBBBB")


class ShapeKind(IntEnum):
    """Director shape sub-types."""

    RECT = 1
    ROUND_RECT = 2
    OVAL = 3
    LINE = 4


SHAPE_KIND_NAMES: dict[int, str] = {
    1: "Rectangle",
    2: "Rounded Rectangle",
    3: "Oval",
    4: "Line",
}


class LineDirection(IntEnum):
    TOP_TO_BOTTOM = 5
    BOTTOM_TO_TOP = 6


@dataclass(frozen=True)
class ShapeProperties:
    """Parsed shape cast member data.

    ``line_size`` is kept exactly as stored.  Director only clamps it when
    painting; see :attr:`painted_line_size`.
    """

    # Only found inside a cast member record.
    OS_TYPES: ClassVar[tuple[OsType, ...]] = ()
    SIZE: ClassVar[int] = STRUCT_SHAPE.size

    kind: ShapeKind
    bounds: Rect
    pattern: int
    fore_color: int
    back_color: int
    filled: bool
    line_size: int
    line_direction: LineDirection

    @classmethod
    def load(cls, reader: BinaryReader, size: int, context: "DecodeContext") -> "ShapeProperties":
        if size < cls.SIZE:
            raise SizeMismatchError("shape properties", size, f">= {cls.SIZE}")
        (
            kind,
            top, left, bottom, right,
            pattern,
            fore_color,
            back_color,
            filled,
            line_size,
            line_direction,
        ) = reader.unpack(STRUCT_SHAPE)

        try:
            kind = ShapeKind(kind)
        except ValueError:
            raise MalformedDiscriminantError("shape kind", kind) from None
        try:
            line_direction = LineDirection(line_direction)
        except ValueError:
            raise MalformedDiscriminantError("line direction", line_direction) from None

        log.debug("Shape: type=%s lineSize=%d", SHAPE_KIND_NAMES[kind], line_size)
        return cls(
            kind=kind,
            bounds=Rect(top, left, bottom, right),
            pattern=pattern,
            fore_color=fore_color,
            back_color=back_color,
            filled=filled != 0,
            line_size=line_size,
            line_direction=line_direction,
        )

    @property
    def painted_line_size(self) -> int:
        """The pen size Director actually draws with."""
        return max(0, (self.line_size & 0x0F) - 1)
