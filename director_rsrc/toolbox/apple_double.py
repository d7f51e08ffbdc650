"""AppleSingle and AppleDouble unwrapping.

AppleDouble keeps the data fork in the ordinary file and everything else
(resource fork, real name, Finder info) in a hidden ``._<name>`` companion.
AppleSingle keeps both forks in one file.  Both share the same header:

* 4 bytes magic, 4 bytes version
* 16 bytes filler (home file system name in version 1)
* 2 bytes entry count, then that many ``(id, offset, length)`` u32 triples
"""

from __future__ import annotations

import logging
import os
import struct
from dataclasses import dataclass
from typing import BinaryIO

from ..errors import EncapsulationError, TruncatedDataError
from ..reader import BinaryReader, SubStream
from .intl import ScriptCode, convert_text

log = logging.getLogger(__name__)

APPLE_SINGLE_MAGIC = 0x00051600
APPLE_DOUBLE_MAGIC = 0x00051607
SUPPORTED_VERSIONS = (0x00010000, 0x00020000)

STRUCT_HEADER = struct.Struct(">II16xH")
STRUCT_ENTRY = struct.Struct(">III")

ENTRY_DATA_FORK = 1
ENTRY_RESOURCE_FORK = 2
ENTRY_REAL_NAME = 3
ENTRY_FINDER_INFO = 9

# Offset of the name script code in the extended Finder info entry.
FINDER_INFO_SCRIPT_OFFSET = 26


def companion_path(path: str | os.PathLike) -> str:
    """The ``._<name>`` file that carries *path*'s AppleDouble header."""
    head, tail = os.path.split(os.fspath(path))
    return os.path.join(head, "._" + tail)


@dataclass
class AppleDouble:
    """The forks of an AppleSingle/AppleDouble encoded file."""

    resource_fork: BinaryIO
    data_fork: BinaryIO | None = None
    raw_name: bytes | None = None
    name_script: int = ScriptCode.ROMAN
    is_double: bool = True
    stream: BinaryIO | None = None

    @property
    def name(self) -> str | None:
        if self.raw_name is None:
            return None
        return convert_text(self.raw_name, self.name_script)

    @classmethod
    def parse(cls, stream: BinaryIO, *, source: str | None = None) -> "AppleDouble":
        """Parse the header at the start of *stream*."""
        reader = BinaryReader(stream)
        reader.seek(0)
        try:
            magic, version, entry_count = reader.unpack(STRUCT_HEADER)
        except TruncatedDataError as e:
            raise EncapsulationError(f"AppleDouble header too short: {e}", source=source) from e

        if magic not in (APPLE_SINGLE_MAGIC, APPLE_DOUBLE_MAGIC):
            raise EncapsulationError(f"bad AppleDouble magic 0x{magic:08x}", source=source)
        if version not in SUPPORTED_VERSIONS:
            raise EncapsulationError(f"unknown AppleDouble version 0x{version:x}", source=source)
        if entry_count == 0:
            raise EncapsulationError("AppleDouble file has no entries", source=source)

        forks: dict[int, SubStream] = {}
        name_script = ScriptCode.ROMAN
        try:
            entries = [reader.unpack(STRUCT_ENTRY) for _ in range(entry_count)]
            for index, (entry_id, offset, length) in enumerate(entries):
                if entry_id == 0:
                    raise EncapsulationError(f"invalid id 0 for entry {index}", source=source)
                if entry_id in (ENTRY_DATA_FORK, ENTRY_RESOURCE_FORK, ENTRY_REAL_NAME):
                    forks[entry_id] = SubStream(stream, offset, length)
                elif entry_id == ENTRY_FINDER_INFO:
                    reader.seek(offset + FINDER_INFO_SCRIPT_OFFSET)
                    name_script = reader.read_uint8()
                else:
                    log.debug("Ignoring AppleDouble entry %d (id %d)", index, entry_id)
        except TruncatedDataError as e:
            raise EncapsulationError(f"AppleDouble entry table truncated: {e}", source=source) from e

        if ENTRY_RESOURCE_FORK not in forks:
            raise EncapsulationError("missing resource fork", source=source)

        raw_name = None
        if ENTRY_REAL_NAME in forks:
            raw_name = forks[ENTRY_REAL_NAME].read()

        return cls(
            resource_fork=forks[ENTRY_RESOURCE_FORK],
            data_fork=forks.get(ENTRY_DATA_FORK),
            raw_name=raw_name,
            name_script=name_script,
            is_double=magic == APPLE_DOUBLE_MAGIC,
        )

    @classmethod
    def open(cls, path: str | os.PathLike) -> "AppleDouble":
        """Open *path* as AppleDouble (via its companion) or AppleSingle.

        The companion ``._<name>`` is preferred; *path* itself is only read
        when no companion exists.  The returned object owns the stream.
        """
        header_path = companion_path(path)
        found_double = os.path.isfile(header_path)
        if not found_double:
            header_path = os.fspath(path)
        stream = open(header_path, "rb")
        try:
            result = cls.parse(stream, source=header_path)
        except BaseException:
            stream.close()
            raise

        result.stream = stream
        if result.is_double and result.data_fork is None and found_double and os.path.isfile(path):
            result.data_fork = open(path, "rb")
        log.info("Opened AppleDouble header %s", header_path)
        return result

    def close(self) -> None:
        """Close the streams opened by :meth:`open`."""
        if self.data_fork is not None:
            self.data_fork.close()
        if self.stream is not None:
            self.stream.close()
