"""In-memory builders for resource forks and their encapsulations."""

import binascii
import collections
import io
import struct
import typing


def make_pascal_string(s: bytes) -> bytes:
    return bytes([len(s)]) + s


def build_resource_fork(
    resources: typing.Iterable[tuple],
    *,
    file_attributes: int = 0,
    application_data: bytes = b"",
) -> bytes:
    """Build a resource fork from ``(type, id, data[, name[, attrs]])`` tuples."""

    by_type: "collections.OrderedDict[bytes, list]" = collections.OrderedDict()
    data_area = bytearray()
    names = bytearray()
    for entry in resources:
        res_type, res_id, data = entry[:3]
        name = entry[3] if len(entry) > 3 else None
        attrs = entry[4] if len(entry) > 4 else 0
        data_offset = len(data_area)
        data_area += struct.pack(">I", len(data)) + data
        if name is None:
            name_offset = 0xFFFF
        else:
            name_offset = len(names)
            names += make_pascal_string(name)
        by_type.setdefault(res_type, []).append((res_id, name_offset, attrs, data_offset))

    type_list = bytearray(struct.pack(">H", (len(by_type) - 1) & 0xFFFF))
    references = bytearray()
    reflist_start = 2 + 8 * len(by_type)
    for res_type, refs in by_type.items():
        type_list += struct.pack(">4sHH", res_type, len(refs) - 1, reflist_start + len(references))
        for res_id, name_offset, attrs, data_offset in refs:
            references += struct.pack(">hHI4x", res_id, name_offset, (attrs << 24) | data_offset)

    name_list_offset = 28 + len(type_list) + len(references)
    map_header = struct.pack(">16x4x2xHHH", file_attributes, 28, name_list_offset)
    resource_map = map_header + type_list + references + names

    data_offset = 256
    map_offset = data_offset + len(data_area)
    header = struct.pack(
        ">IIII112s128s",
        data_offset,
        map_offset,
        len(data_area),
        len(resource_map),
        b"",
        application_data,
    )
    return header + bytes(data_area) + resource_map


def build_apple_double(
    resource_fork: typing.Optional[bytes],
    *,
    name: typing.Optional[bytes] = None,
    script: int = 0,
    data_fork: typing.Optional[bytes] = None,
    single: bool = False,
    version: int = 0x00020000,
) -> bytes:
    """Build an AppleDouble (or AppleSingle) header file."""

    entries = []
    if data_fork is not None:
        entries.append((1, data_fork))
    if resource_fork is not None:
        entries.append((2, resource_fork))
    if name is not None:
        entries.append((3, name))
        finder_info = bytearray(32)
        finder_info[26] = script
        entries.append((9, bytes(finder_info)))

    magic = 0x00051600 if single else 0x00051607
    header = struct.pack(">II16xH", magic, version, len(entries))
    offset = len(header) + 12 * len(entries)
    table = bytearray()
    body = bytearray()
    for entry_id, payload in entries:
        table += struct.pack(">III", entry_id, offset + len(body), len(payload))
        body += payload
    return header + bytes(table) + bytes(body)


def _pad(data: bytes) -> bytes:
    return data + bytes(-len(data) % 128)


def build_mac_binary(
    name: bytes,
    data_fork: bytes,
    resource_fork: bytes,
    *,
    version: int = 2,
) -> bytes:
    """Build a MacBinary I, II or III file."""

    header = bytearray(128)
    header[1] = len(name)
    header[2 : 2 + len(name)] = name
    header[65:69] = b"TEXT"
    header[69:73] = b"ttxt"
    struct.pack_into(">II", header, 83, len(data_fork), len(resource_fork))
    if version >= 2:
        header[122] = 129
        header[123] = 129
    if version >= 3:
        header[102:106] = b"mBIN"
        header[122] = 130
    if version >= 2:
        struct.pack_into(">H", header, 124, binascii.crc_hqx(bytes(header[:124]), 0))
    return bytes(header) + _pad(data_fork) + _pad(resource_fork)


class CountingStream(io.RawIOBase):
    """Wraps a stream and counts calls to read."""

    def __init__(self, data: bytes) -> None:
        super().__init__()
        self._wrapped = io.BytesIO(data)
        self.reads = 0

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._wrapped.seek(offset, whence)

    def tell(self) -> int:
        return self._wrapped.tell()

    def read(self, size: int = -1) -> bytes:
        self.reads += 1
        return self._wrapped.read(size)

    def readinto(self, buffer) -> int:
        data = self.read(len(buffer))
        buffer[: len(data)] = data
        return len(data)


class MemorySource:
    """A Source backed by a dict of ``ResourceId -> bytes``."""

    def __init__(self, name: str, resources: dict) -> None:
        self.name = name
        self.resources = resources
        self.loads = 0

    def contains(self, rid) -> bool:
        return rid in self.resources

    def load_bytes(self, rid):
        from director_rsrc.errors import ResourceNotFoundError

        if rid not in self.resources:
            raise ResourceNotFoundError("resource not found", rid, self.name)
        self.loads += 1
        data = self.resources[rid]
        return io.BytesIO(data), len(data)
