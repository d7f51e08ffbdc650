"""Classic Macintosh resource fork parser.

The layout is the one described in Inside Macintosh: More Macintosh Toolbox,
chapter 1.  All integers are big-endian.  A resource fork is a 256-byte
header, a data area of length-prefixed blocks, and a resource map that
indexes those blocks by type and number.

The header and map are read once when the file is opened; resource data is
only read on demand through :meth:`ResourceFile.load_bytes`.
"""

from __future__ import annotations

import enum
import io
import logging
import os
import struct
from dataclasses import dataclass
from typing import BinaryIO, Iterator

from ..errors import (
    CompressionError,
    DecodeError,
    InvalidResourceFileError,
    ResourceNotFoundError,
    SourceIOError,
    UnsupportedCompressionError,
)
from ..reader import BinaryReader, SubStream, read_exact
from . import vise
from .types import OsType, ResourceId

log = logging.getLogger(__name__)

# 4 bytes: offset to resource data (normally 0x100)
# 4 bytes: offset to resource map
# 4 bytes: length of resource data
# 4 bytes: length of resource map
# 112 bytes: reserved for system use
# 128 bytes: application data
STRUCT_RESOURCE_HEADER = struct.Struct(">IIII112s128s")

# 4 bytes: length of the resource data that follows
STRUCT_RESOURCE_DATA_HEADER = struct.Struct(">I")

# 16 bytes: in-memory copy of the header
# 4 bytes: next-map handle
# 2 bytes: file reference number
# 2 bytes: file attributes
# 2 bytes: offset from map start to type list
# 2 bytes: offset from map start to name list
STRUCT_RESOURCE_MAP_HEADER = struct.Struct(">16x4x2xHHH")

# 2 bytes: number of types minus one
STRUCT_RESOURCE_TYPE_LIST_HEADER = struct.Struct(">H")

# 4 bytes: type, 2 bytes: count minus one, 2 bytes: reference list offset
STRUCT_RESOURCE_TYPE = struct.Struct(">4sHH")

# 2 bytes: id, 2 bytes: name offset or 0xffff,
# 1 byte attributes packed with a 3 byte data offset, 4 bytes: handle
STRUCT_RESOURCE_REFERENCE = struct.Struct(">hHI4x")

# The map header is fixed size, and the type list header follows it.
MAP_HEADER_SIZE = 28
MIN_MAP_SIZE = 30

# A 16 MiB fork cannot index more references than this.
MAX_RESOURCE_COUNT = 2727

NO_NAME = 0xFFFF


class ResourceFileAttrs(enum.IntFlag):
    """Resource map attributes (``mapReadOnly`` etc. in ``Resources.h``)."""

    RESOURCES_LOCKED = 1 << 15
    PRINTER_DRIVER_MULTIFINDER_COMPATIBLE = 1 << 8
    READ_ONLY = 1 << 7
    COMPACT = 1 << 6
    CHANGED = 1 << 5


class ResourceAttrs(enum.IntFlag):
    """Per-resource attributes (``resSysHeap`` etc. in ``Resources.h``)."""

    SYS_REF = 1 << 7
    SYS_HEAP = 1 << 6
    PURGEABLE = 1 << 5
    LOCKED = 1 << 4
    PROTECTED = 1 << 3
    PRELOAD = 1 << 2
    CHANGED = 1 << 1
    COMPRESSED = 1 << 0


@dataclass(frozen=True)
class ResourceEntry:
    """One reference list entry, with its data offset made absolute."""

    id: ResourceId
    name_offset: int
    attributes: ResourceAttrs
    data_offset: int


class ResourceFile:
    """A parsed resource fork that serves resources by id.

    *stream* must be seekable.  The ResourceFile does not own the stream
    unless ``close=True`` is given (as :meth:`open` does).
    """

    def __init__(
        self,
        stream: BinaryIO,
        *,
        name: str | None = None,
        close: bool = False,
    ) -> None:
        self._stream = stream
        self._close_stream = close
        self.name = name or getattr(stream, "name", None) or "<resource fork>"
        self._entries: dict[ResourceId, ResourceEntry] = {}
        self._types: dict[OsType, list[ResourceId]] = {}
        self._names = b""
        self._vise: vise.ApplicationVise | None = None
        try:
            self._read_map()
        except (DecodeError, struct.error) as e:
            self.close()
            raise InvalidResourceFileError(f"invalid resource map: {e}", source=self.name) from e
        except OSError as e:
            self.close()
            if isinstance(e, SourceIOError):
                e.source = e.source or self.name
                raise
            raise SourceIOError(f"can't read resource fork: {e}", source=self.name) from e
        log.info("Opened %s: %d resources of %d types", self.name, len(self._entries), len(self._types))

    @classmethod
    def open(cls, path: str | os.PathLike, fs=None) -> "ResourceFile":
        """Open the resource fork of *path*.

        Without *fs* the host filesystem is used, which knows about named
        forks, ``.rsrc`` siblings, AppleDouble and MacBinary.
        """
        if fs is None:
            from ..vfs.host import HostFileSystem

            fs = HostFileSystem()
        return fs.open_resource_file(path)

    # ---- parsing --------------------------------------------------------

    def _read_map(self) -> None:
        reader = BinaryReader(self._stream)
        reader.seek(0)
        (
            self.data_offset,
            self.map_offset,
            self.data_length,
            self.map_length,
            self.header_system_data,
            self.header_application_data,
        ) = reader.unpack(STRUCT_RESOURCE_HEADER)

        if self.map_length < MIN_MAP_SIZE:
            raise InvalidResourceFileError(f"bad map size ({self.map_length})")

        self.file_size = self._stream.seek(0, io.SEEK_END)
        needed = max(self.map_offset + self.map_length, self.data_offset + self.data_length)
        if self.file_size < needed:
            raise InvalidResourceFileError(
                f"file is {self.file_size} bytes but the header needs {needed}"
            )

        reader.seek(self.map_offset)
        file_attributes, type_list_offset, name_list_offset = reader.unpack(
            STRUCT_RESOURCE_MAP_HEADER
        )
        self.file_attributes = ResourceFileAttrs(file_attributes)
        if type_list_offset < MAP_HEADER_SIZE:
            raise InvalidResourceFileError(f"bad type list offset ({type_list_offset})")

        type_list_start = self.map_offset + type_list_offset
        reader.seek(type_list_start)
        (type_count_m1,) = reader.unpack(STRUCT_RESOURCE_TYPE_LIST_HEADER)
        type_count = (type_count_m1 + 1) % 0x10000
        if type_count >= MAX_RESOURCE_COUNT:
            raise InvalidResourceFileError(f"bad type count ({type_count})")

        type_list = []
        for _ in range(type_count):
            raw_type, count_m1, reflist_offset = reader.unpack(STRUCT_RESOURCE_TYPE)
            count = (count_m1 + 1) % 0x10000
            if count >= MAX_RESOURCE_COUNT:
                raise InvalidResourceFileError(
                    f"bad resource count ({count}) for type {OsType(raw_type)}"
                )
            type_list.append((OsType(raw_type), count, reflist_offset))

        for os_type, count, reflist_offset in type_list:
            reader.seek(type_list_start + reflist_offset)
            ids = self._types.setdefault(os_type, [])
            for _ in range(count):
                num, name_offset, attrs_and_offset = reader.unpack(STRUCT_RESOURCE_REFERENCE)
                rid = ResourceId(os_type, num)
                if rid in self._entries:
                    log.warning("%s: duplicate resource %s, keeping the first", self.name, rid)
                    continue
                self._entries[rid] = ResourceEntry(
                    id=rid,
                    name_offset=name_offset,
                    attributes=ResourceAttrs(attrs_and_offset >> 24),
                    data_offset=self.data_offset + (attrs_and_offset & 0xFFFFFF),
                )
                ids.append(rid)

        if name_list_offset < self.map_length:
            reader.seek(self.map_offset + name_list_offset)
            self._names = reader.read_bytes(self.map_length - name_list_offset)

    # ---- source interface -----------------------------------------------

    def contains(self, rid: ResourceId) -> bool:
        return rid in self._entries

    def __contains__(self, rid: object) -> bool:
        return rid in self._entries

    def _entry(self, rid: ResourceId) -> ResourceEntry:
        try:
            return self._entries[rid]
        except KeyError:
            raise ResourceNotFoundError("resource not found", rid, self.name) from None

    def _locate(self, rid: ResourceId) -> tuple[int, int]:
        """The absolute start and the stored size of *rid*'s data."""
        entry = self._entry(rid)
        if entry.attributes & ResourceAttrs.COMPRESSED:
            raise UnsupportedCompressionError("compressed resources are not supported", rid, self.name)
        try:
            self._stream.seek(entry.data_offset)
            (size,) = BinaryReader(self._stream).unpack(STRUCT_RESOURCE_DATA_HEADER)
        except DecodeError as e:
            raise InvalidResourceFileError(f"bad data offset: {e}", rid, self.name) from e
        except OSError as e:
            raise SourceIOError(f"can't read resource data: {e}", rid, self.name) from e
        start = entry.data_offset + STRUCT_RESOURCE_DATA_HEADER.size
        if start + size > self.file_size:
            raise InvalidResourceFileError(
                f"resource data ({size} bytes at {start}) runs past the end of the file",
                rid,
                self.name,
            )
        return start, size

    def _read_data(self, rid: ResourceId, start: int, size: int) -> bytes:
        try:
            self._stream.seek(start)
            return read_exact(self._stream, size)
        except DecodeError as e:
            raise InvalidResourceFileError(f"short resource data: {e}", rid, self.name) from e
        except OSError as e:
            raise SourceIOError(f"can't read resource data: {e}", rid, self.name) from e

    def load_bytes(self, rid: ResourceId) -> tuple[BinaryIO, int]:
        """Return a window over the data of *rid* and its declared size.

        Data compressed by Application VISE is expanded first; the declared
        size is then the expanded size.
        """
        start, size = self._locate(rid)
        if size >= len(vise.SIGNATURE) and vise.is_compressed(self._read_data(rid, start, len(vise.SIGNATURE))):
            decompressor = self._vise_decompressor(rid)
            try:
                data = decompressor.decompress(self._read_data(rid, start, size))
            except CompressionError as e:
                e.attach(rid, self.name)
                raise
            log.debug("%s: %s expanded from %d to %d bytes", self.name, rid, size, len(data))
            return io.BytesIO(data), len(data)
        log.debug("%s: %s is %d bytes at %d", self.name, rid, size, start)
        return SubStream(self._stream, start, size), size

    def _vise_decompressor(self, rid: ResourceId) -> vise.ApplicationVise:
        # The dictionary lives in the last 'CODE' resource of the application
        if self._vise is None:
            code = self._types.get(vise.CODE_TYPE)
            if not code:
                raise CompressionError("VISE data but no 'CODE' resource to expand it with", rid, self.name)
            start, size = self._locate(code[-1])
            shared_data = vise.find_shared_data(self._read_data(code[-1], start, size))
            if shared_data is None:
                raise CompressionError(f"no VISE dictionary in {code[-1]}", rid, self.name)
            self._vise = vise.ApplicationVise(shared_data)
        return self._vise

    # ---- queries --------------------------------------------------------

    def ids(self) -> Iterator[ResourceId]:
        """All resource ids in map order."""
        return iter(self._entries)

    def ids_of_type(self, os_type: OsType | bytes | str) -> list[ResourceId]:
        return list(self._types.get(OsType(os_type), ()))

    def types(self) -> list[OsType]:
        return [t for t, ids in self._types.items() if ids]

    def count(self, os_type: OsType | bytes | str) -> int:
        return len(self._types.get(OsType(os_type), ()))

    def __len__(self) -> int:
        return len(self._entries)

    def id_of_index(self, os_type: OsType | bytes | str, index: int) -> ResourceId | None:
        """The id of the *index*-th resource of *os_type*, counting from 1."""
        ids = self._types.get(OsType(os_type), [])
        if 1 <= index <= len(ids):
            return ids[index - 1]
        return None

    def name_of(self, rid: ResourceId) -> bytes | None:
        """The raw name of *rid*, or None if it has no name."""
        entry = self._entry(rid)
        if entry.name_offset == NO_NAME:
            return None
        offset = entry.name_offset
        if offset >= len(self._names):
            raise InvalidResourceFileError(f"bad name offset ({offset})", rid, self.name)
        length = self._names[offset]
        return self._names[offset + 1 : offset + 1 + length]

    def id_of_name(self, os_type: OsType | bytes | str, name: bytes) -> ResourceId | None:
        for rid in self._types.get(OsType(os_type), ()):
            if self.name_of(rid) == name:
                return rid
        return None

    def attributes_of(self, rid: ResourceId) -> ResourceAttrs:
        return self._entry(rid).attributes

    def size_of(self, rid: ResourceId) -> int:
        return self.load_bytes(rid)[1]

    # ---- lifetime -------------------------------------------------------

    def close(self) -> None:
        if self._close_stream:
            self._stream.close()

    def __enter__(self) -> "ResourceFile":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}: {len(self._entries)} resources>"
