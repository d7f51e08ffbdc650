"""MacBinary I, II and III unwrapping.

A MacBinary file is a 128-byte header followed by the data fork and the
resource fork, each padded to a 128-byte boundary.  Version II may add a
secondary header after the main one.
"""

from __future__ import annotations

import binascii
import enum
import logging
import os
import struct
from dataclasses import dataclass
from typing import BinaryIO

from ..errors import EncapsulationError, TruncatedDataError
from ..reader import SubStream, read_exact
from .intl import ScriptCode, convert_text

log = logging.getLogger(__name__)

HEADER_SIZE = 128
BLOCK_SIZE = 128
MAX_FORK_SIZE = 0x7FFFFF
SCRIPT_FLAG = 0x80
V3_SIGNATURE = b"mBIN"
V2_VERSION = 129

# Fork lengths live at offsets 83 and 87.
STRUCT_FORK_SIZES = struct.Struct(">II")
STRUCT_U16 = struct.Struct(">H")


class MacBinaryVersion(enum.IntEnum):
    V1 = 1
    V2 = 2
    V3 = 3


def align(n: int, alignment: int = BLOCK_SIZE) -> int:
    return (n + alignment - 1) & ~(alignment - 1)


def detect_version(header: bytes) -> MacBinaryVersion:
    """Work out which MacBinary version *header* is, or raise."""
    if len(header) < HEADER_SIZE:
        raise EncapsulationError("file too small for a MacBinary header")
    if header[0] != 0 or header[74] != 0:
        raise EncapsulationError("bad MacBinary magic bytes")

    if header[102:106] == V3_SIGNATURE:
        return MacBinaryVersion.V3

    # Some MacBinary II encoders leave the CRC empty, so a zero CRC with the
    # version bytes set still counts.
    (checksum,) = STRUCT_U16.unpack_from(header, 124)
    if checksum != 0 and binascii.crc_hqx(header[:124], 0) == checksum:
        return MacBinaryVersion.V2
    if checksum == 0 and header[122] == V2_VERSION and header[123] == V2_VERSION:
        return MacBinaryVersion.V2

    if header[82] != 0:
        raise EncapsulationError("bad MacBinary magic byte 82")
    if any(header[101:126]):
        raise EncapsulationError("bad MacBinary header padding")
    if not 1 <= header[1] <= 63:
        raise EncapsulationError(f"bad MacBinary file name length {header[1]}")
    data_size, rsrc_size = STRUCT_FORK_SIZES.unpack_from(header, 83)
    if data_size > MAX_FORK_SIZE or rsrc_size > MAX_FORK_SIZE or (data_size == 0 and rsrc_size == 0):
        raise EncapsulationError("bad MacBinary fork length")
    return MacBinaryVersion.V1


@dataclass
class MacBinary:
    version: MacBinaryVersion
    raw_name: bytes
    name_script: int
    data_fork_start: int
    data_fork_size: int
    resource_fork_start: int
    resource_fork_size: int
    stream: BinaryIO

    @classmethod
    def parse(cls, stream: BinaryIO, *, source: str | None = None) -> "MacBinary":
        stream.seek(0)
        try:
            header = read_exact(stream, HEADER_SIZE)
        except TruncatedDataError as e:
            raise EncapsulationError(f"not MacBinary: {e}", source=source) from e
        try:
            version = detect_version(header)
        except EncapsulationError as e:
            e.source = source
            raise

        header_size = HEADER_SIZE
        if version != MacBinaryVersion.V1:
            (secondary,) = STRUCT_U16.unpack_from(header, 120)
            header_size += align(secondary)

        script = ScriptCode.ROMAN
        if version == MacBinaryVersion.V3 and header[106] & SCRIPT_FLAG:
            script = header[106] & ~SCRIPT_FLAG

        data_size, rsrc_size = STRUCT_FORK_SIZES.unpack_from(header, 83)
        log.debug("MacBinary %s: data %d bytes, resource %d bytes", version.name, data_size, rsrc_size)
        return cls(
            version=version,
            raw_name=header[2 : 2 + header[1]],
            name_script=script,
            data_fork_start=header_size,
            data_fork_size=data_size,
            resource_fork_start=header_size + align(data_size),
            resource_fork_size=rsrc_size,
            stream=stream,
        )

    @classmethod
    def open(cls, path: str | os.PathLike) -> "MacBinary":
        stream = open(path, "rb")
        try:
            return cls.parse(stream, source=os.fspath(path))
        except BaseException:
            stream.close()
            raise

    @property
    def name(self) -> str:
        return convert_text(self.raw_name, self.name_script)

    @property
    def data_fork(self) -> BinaryIO | None:
        if self.data_fork_size == 0:
            return None
        return SubStream(self.stream, self.data_fork_start, self.data_fork_size)

    @property
    def resource_fork(self) -> BinaryIO | None:
        if self.resource_fork_size == 0:
            return None
        return SubStream(self.stream, self.resource_fork_start, self.resource_fork_size)

    def close(self) -> None:
        self.stream.close()
