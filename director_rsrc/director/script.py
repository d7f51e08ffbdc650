"""Script cast member properties."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, ClassVar

from ..errors import MalformedDiscriminantError, SizeMismatchError
from ..reader import BinaryReader
from ..toolbox.types import OsType

if TYPE_CHECKING:
    from ..resources.source import DecodeContext


class ScriptKind(IntEnum):
    SCORE = 1
    MOVIE = 3
    PARENT = 7


@dataclass(frozen=True)
class ScriptProperties:
    """Which kind of script a member holds.

    Members written by older authoring tools omit the kind entirely; those
    are movie scripts.
    """

    OS_TYPES: ClassVar[tuple[OsType, ...]] = ()

    kind: ScriptKind = ScriptKind.MOVIE

    @classmethod
    def load(cls, reader: BinaryReader, size: int, context: "DecodeContext") -> "ScriptProperties":
        if size == 0:
            return cls()
        if size != 2:
            raise SizeMismatchError("script properties", size, "0 or 2")
        kind = reader.read_be_uint16()
        try:
            return cls(ScriptKind(kind))
        except ValueError:
            raise MalformedDiscriminantError("script kind", kind) from None
