"""Decoders for standard Toolbox resource types.

Each decoder is a frozen dataclass with an ``OS_TYPES`` tuple and a
``load(reader, size, context)`` classmethod, so it can be handed straight
to :meth:`ResourceManager.load`.
"""

from __future__ import annotations

import enum
import logging
import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from PIL import Image

from ..errors import MalformedDiscriminantError, SizeMismatchError
from ..reader import BinaryReader
from .intl import CountryCode, codec_for_country, decode_with
from .types import OsType

if TYPE_CHECKING:
    from ..resources.source import DecodeContext

log = logging.getLogger(__name__)

# major, minor, stage, revision, country
STRUCT_VERSION_HEADER = struct.Struct(">BBBBH")


class Stage(enum.IntEnum):
    """Development stage of a ``'vers'`` resource."""

    DEVELOPMENT = 0x20
    ALPHA = 0x40
    BETA = 0x60
    FINAL = 0x80


@dataclass(frozen=True, order=True)
class VersionNumber:
    major: int
    minor: int
    stage: Stage
    revision: int

    def __str__(self) -> str:
        text = f"{self.major:x}.{self.minor >> 4:x}"
        if self.minor & 0x0F:
            text += f".{self.minor & 0x0F:x}"
        if self.stage != Stage.FINAL or self.revision:
            text += f"{'dabf'[(self.stage >> 5) - 1]}{self.revision}"
        return text


@dataclass(frozen=True)
class Version:
    """A ``'vers'`` resource: numeric version, region and display strings."""

    OS_TYPES: ClassVar[tuple[OsType, ...]] = (OsType(b"vers"),)

    number: VersionNumber
    country: CountryCode
    short_version: str
    long_version: str

    @classmethod
    def load(cls, reader: BinaryReader, size: int, context: "DecodeContext") -> "Version":
        major, minor, stage, revision, country = reader.unpack(STRUCT_VERSION_HEADER)
        try:
            stage = Stage(stage)
        except ValueError:
            raise MalformedDiscriminantError("version stage", stage) from None
        country = CountryCode.parse(country)
        codec = codec_for_country(country)
        short_version = decode_with(reader.read_pascal_bytes(), codec)
        long_version = decode_with(reader.read_pascal_bytes(), codec)
        return cls(
            number=VersionNumber(major, minor, stage, revision),
            country=country,
            short_version=short_version,
            long_version=long_version,
        )


@dataclass(frozen=True)
class PString:
    """A ``'STR '`` resource: a single Pascal string."""

    OS_TYPES: ClassVar[tuple[OsType, ...]] = (OsType(b"STR "),)

    value: str

    @classmethod
    def load(cls, reader: BinaryReader, size: int, context: "DecodeContext") -> "PString":
        return cls(reader.read_pascal_str(context.script))

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class StringList:
    """A ``'STR#'`` resource: a counted list of Pascal strings."""

    OS_TYPES: ClassVar[tuple[OsType, ...]] = (OsType(b"STR#"),)

    strings: tuple[str, ...]

    @classmethod
    def load(cls, reader: BinaryReader, size: int, context: "DecodeContext") -> "StringList":
        count = reader.read_be_uint16()
        strings = tuple(reader.read_pascal_str(context.script) for _ in range(count))
        return cls(strings)

    def get(self, index: int) -> str | None:
        """The *index*-th string counting from 1, like ``GetIndString``."""
        if 1 <= index <= len(self.strings):
            return self.strings[index - 1]
        return None

    def __len__(self) -> int:
        return len(self.strings)

    def __iter__(self):
        return iter(self.strings)


@dataclass(frozen=True)
class Pattern:
    """A ``'PAT '`` resource: an 8x8 one-bit QuickDraw pattern."""

    OS_TYPES: ClassVar[tuple[OsType, ...]] = (OsType(b"PAT "),)
    SIZE: ClassVar[int] = 8

    rows: bytes

    @classmethod
    def load(cls, reader: BinaryReader, size: int, context: "DecodeContext") -> "Pattern":
        if size != cls.SIZE:
            raise SizeMismatchError("pattern", size, cls.SIZE)
        return cls(reader.read_bytes(cls.SIZE))

    def is_set(self, x: int, y: int) -> bool:
        return bool(self.rows[y] & (0x80 >> x))

    def to_image(self) -> Image.Image:
        """Render the pattern with set bits black, as QuickDraw draws it."""
        img = Image.new("1", (8, 8))
        for y in range(8):
            for x in range(8):
                img.putpixel((x, y), 0 if self.is_set(x, y) else 255)
        return img
