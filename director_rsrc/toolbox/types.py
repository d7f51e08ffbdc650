"""Basic Macintosh Toolbox value types: OSType, resource IDs and rectangles."""

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering


@total_ordering
class OsType:
    """A four-byte data format identifier such as ``'STR#'`` or ``'CASt'``.

    Any four bytes are a valid OSType; equality, hashing and ordering are
    over the raw bytes.
    """

    __slots__ = ("_raw",)

    def __init__(self, value: "OsType | bytes | str | int") -> None:
        if isinstance(value, OsType):
            raw = value._raw
        elif isinstance(value, (bytes, bytearray)):
            raw = bytes(value)
        elif isinstance(value, str):
            raw = value.encode("latin-1")
        elif isinstance(value, int):
            raw = (value & 0xFFFFFFFF).to_bytes(4, "big")
        else:
            raise TypeError(f"cannot make an OSType from {type(value).__name__}")

        if len(raw) != 4:
            raise ValueError(f"OSType must be exactly 4 bytes, got {raw!r}")
        object.__setattr__(self, "_raw", raw)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("OsType is immutable")

    @property
    def raw(self) -> bytes:
        return self._raw

    def __int__(self) -> int:
        return int.from_bytes(self._raw, "big")

    def __bytes__(self) -> bytes:
        return self._raw

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OsType):
            return self._raw == other._raw
        if isinstance(other, (bytes, bytearray)):
            return self._raw == bytes(other)
        return NotImplemented

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, OsType):
            return NotImplemented
        return self._raw < other._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    def __str__(self) -> str:
        return "".join(
            chr(b) if 0x20 <= b < 0x7F else f"\\x{b:02x}" for b in self._raw
        )

    def __repr__(self) -> str:
        return f"OsType({self._raw!r})"


@total_ordering
@dataclass(frozen=True, init=False, repr=False)
class ResourceId:
    """A resource identifier: an OSType plus a signed 16-bit number."""

    os_type: OsType
    num: int

    def __init__(self, os_type: "OsType | bytes | str | int", num: int) -> None:
        if not -0x8000 <= num <= 0x7FFF:
            raise ValueError(f"resource number {num} does not fit in 16 bits")
        object.__setattr__(self, "os_type", OsType(os_type))
        object.__setattr__(self, "num", int(num))

    @classmethod
    def parse(cls, text: str) -> "ResourceId":
        """Parse ``TYPE:NUM`` (e.g. ``STR#:128``) into a ResourceId."""
        os_type, sep, num = text.rpartition(":")
        if not sep:
            raise ValueError(f"expected TYPE:NUM, got {text!r}")
        # Short tags like "snd" are padded the way ResEdit displays them
        return cls(os_type.ljust(4), int(num))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ResourceId):
            return NotImplemented
        return (self.os_type, self.num) < (other.os_type, other.num)

    def __str__(self) -> str:
        return f"{self.os_type}({self.num})"

    def __repr__(self) -> str:
        return f"ResourceId({self.os_type.raw!r}, {self.num})"


@dataclass(frozen=True)
class Rect:
    """A QuickDraw rectangle."""

    top: int = 0
    left: int = 0
    bottom: int = 0
    right: int = 0

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top
