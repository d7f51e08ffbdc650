"""Binary reading helpers shared by every decoder.

Layouts are described with :class:`struct.Struct` objects whose format
string always carries an explicit byte-order prefix, so endianness is a
property of each layout rather than of the reader.
"""

from __future__ import annotations

import io
import logging
import struct
from typing import TYPE_CHECKING, BinaryIO, Callable, TypeVar

from .errors import DecodeError, TruncatedDataError

if TYPE_CHECKING:
    from .toolbox.intl import ScriptCode

log = logging.getLogger(__name__)

T = TypeVar("T")


def read_exact(stream: BinaryIO, byte_count: int) -> bytes:
    """Read exactly *byte_count* bytes or raise :class:`TruncatedDataError`."""
    data = stream.read(byte_count)
    if len(data) != byte_count:
        raise TruncatedDataError(
            f"attempted to read {byte_count} bytes of data, but only got {len(data)} bytes"
        )
    return data


class SubStream(io.RawIOBase):
    """A read-only view over a range of another seekable stream."""

    def __init__(self, stream: BinaryIO, start: int, length: int) -> None:
        super().__init__()
        self._outer = stream
        self._start = start
        self._length = length
        self._pos = 0

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._pos

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            pos = offset
        elif whence == io.SEEK_CUR:
            pos = self._pos + offset
        elif whence == io.SEEK_END:
            pos = self._length + offset
        else:
            raise ValueError(f"invalid whence value: {whence}")
        if pos < 0:
            raise ValueError(f"negative seek position {pos}")
        self._pos = pos
        return pos

    def read(self, size: int | None = -1) -> bytes:
        remaining = max(0, self._length - self._pos)
        if size is None or size < 0 or size > remaining:
            size = remaining
        if size == 0:
            return b""
        # The outer stream may be shared with other readers
        saved = self._outer.tell()
        self._outer.seek(self._start + self._pos)
        try:
            data = self._outer.read(size)
        finally:
            self._outer.seek(saved)
        self._pos += len(data)
        return data

    def readinto(self, buffer) -> int:
        data = self.read(len(buffer))
        buffer[: len(data)] = data
        return len(data)

    def __len__(self) -> int:
        return self._length


class BinaryReader:
    """Wraps a seekable binary stream with struct-based read methods."""

    def __init__(self, f: BinaryIO):
        self.f = f

    @classmethod
    def from_bytes(cls, data: bytes) -> "BinaryReader":
        return cls(io.BytesIO(data))

    @property
    def pos(self) -> int:
        return self.f.tell()

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> None:
        self.f.seek(offset, whence)

    def skip(self, n: int) -> None:
        self.f.seek(n, io.SEEK_CUR)

    def bytes_left(self) -> int:
        pos = self.f.tell()
        end = self.f.seek(0, io.SEEK_END)
        self.f.seek(pos)
        return max(0, end - pos)

    def read_bytes(self, n: int) -> bytes:
        return read_exact(self.f, n)

    def read_rest(self) -> bytes:
        return self.f.read()

    def unpack(self, st: struct.Struct) -> tuple:
        """Read ``st.size`` bytes and unpack them with *st*."""
        return st.unpack(read_exact(self.f, st.size))

    def read_uint8(self) -> int:
        return read_exact(self.f, 1)[0]

    def read_be_uint16(self) -> int:
        return struct.unpack(">H", read_exact(self.f, 2))[0]

    def read_be_int16(self) -> int:
        return struct.unpack(">h", read_exact(self.f, 2))[0]

    def read_be_uint32(self) -> int:
        return struct.unpack(">I", read_exact(self.f, 4))[0]

    def read_pascal_bytes(self) -> bytes:
        """Read a Pascal-style length-prefixed byte string."""
        length = self.read_uint8()
        return read_exact(self.f, length)

    def read_pascal_str(self, script: "ScriptCode") -> str:
        """Read a Pascal string and decode it with the given script's encoding."""
        from .toolbox.intl import convert_text

        return convert_text(self.read_pascal_bytes(), script)

    def window(self, length: int) -> "BinaryReader":
        """Return a reader bounded to the next *length* bytes and skip past them."""
        start = self.pos
        if length > self.bytes_left():
            raise TruncatedDataError(
                f"window of {length} bytes at {start} runs past the end of the data"
            )
        self.skip(length)
        return BinaryReader(SubStream(self.f, start, length))


def restore_on_error(reader: BinaryReader, parse: Callable[[BinaryReader, int], T]) -> T:
    """Run *parse* and rewind the stream if it fails.

    *parse* receives the reader and the position it started at.  If it
    raises, the stream is moved back to that position and the original
    exception propagates unchanged.
    """
    pos = reader.pos
    try:
        return parse(reader, pos)
    except Exception:
        reader.seek(pos)
        raise


def first_of(reader: BinaryReader, *parsers: Callable[[BinaryReader, int], T]) -> T:
    """Try each parser at the same offset and return the first success.

    Only decode failures move on to the next parser; anything else (an I/O
    error, say) propagates at once.  If every parser fails the last decode
    error is raised.
    """
    if not parsers:
        raise ValueError("first_of needs at least one parser")
    error: DecodeError | None = None
    for parse in parsers:
        try:
            return restore_on_error(reader, parse)
        except DecodeError as e:
            log.debug("Parser %s failed at %d: %s", getattr(parse, "__name__", parse), reader.pos, e)
            error = e
    assert error is not None
    raise error
