"""Application VISE executable compression.

Applications (Director projectors among them) packed with Application VISE
keep each resource compressed, with a dictionary of common 16-bit words
shared by every resource stored in the application's last ``'CODE'``
resource.  A compressed resource is::

    u32 signature, u32 checksum, u32 expanded size, u32 unused,
    u32 op stream offset, u32 dictionary config, local words..., ops...,
    [final odd byte]

The op stream is a sequence of variable-length opcodes, each emitting
16-bit words taken from the shared dictionary, the resource's own local
words, or earlier output.
"""

from __future__ import annotations

import logging
import struct

from ..errors import CompressionError
from .types import OsType

log = logging.getLogger(__name__)

SIGNATURE = b"\xa8\x9f\x00\x0c"
CODE_TYPE = OsType(b"CODE")

# signature, checksum, expanded size, unused, op stream offset, config
STRUCT_VISE_HEADER = struct.Struct(">4sIIIII")

USE_SHARED_DICTIONARY = 0x80000000
CHECKSUM_SEED = 0xAAAAAAAA

# Position of the 'VISE' tag and the LEA instruction that addresses the
# dictionary inside the decompressor's CODE resource.
DICTIONARY_TAG_OFFSET = 18
DICTIONARY_LEA_OFFSET = 60
LEA_PC_RELATIVE = b"\x47\xfa"


def is_compressed(data: bytes) -> bool:
    return data[:4] == SIGNATURE


def find_shared_data(code: bytes) -> bytes | None:
    """Locate the shared dictionary in the decompressor's *code*, or None."""
    if code[DICTIONARY_TAG_OFFSET:DICTIONARY_TAG_OFFSET + 4] != b"VISE":
        return None
    if code[DICTIONARY_LEA_OFFSET:DICTIONARY_LEA_OFFSET + 2] != LEA_PC_RELATIVE:
        return None
    base = DICTIONARY_LEA_OFFSET + 2
    if len(code) < base + 2:
        return None
    (offset,) = struct.unpack_from(">H", code, base)
    return code[base + offset:]


def checksum(data: bytes) -> int:
    """XOR of every big-endian word after the first 8 bytes, then the odd bytes."""
    value = CHECKSUM_SEED
    body = data[8:]
    whole = len(body) & ~3
    for (word,) in struct.iter_unpack(">I", body[:whole]):
        value ^= word
    for byte in body[whole:]:
        value ^= byte
    return value


def validate(data: bytes) -> None:
    if len(data) < STRUCT_VISE_HEADER.size:
        raise CompressionError(f"VISE data too short ({len(data)} bytes)")
    (expected,) = struct.unpack_from(">I", data, 4)
    actual = checksum(data)
    if actual != expected:
        raise CompressionError(f"VISE checksum mismatch: 0x{actual:08x} != 0x{expected:08x}")


class ApplicationVise:
    """Expands VISE-compressed resources with one application's dictionary."""

    def __init__(self, shared_data: bytes) -> None:
        self.shared_data = shared_data

    def _dictionary(self, data: bytes, config: int) -> tuple[bytes, int]:
        if not config & USE_SHARED_DICTIONARY:
            # Dictionary embedded in the resource itself
            return data, config
        (offset,) = struct.unpack_from(">H", self.shared_data, (1 << (config & 3)) + 6)
        return self.shared_data, offset

    def decompress(self, data: bytes) -> bytes:
        validate(data)
        _, _, size, _, ops, config = STRUCT_VISE_HEADER.unpack_from(data)
        odd = size & 1
        if not STRUCT_VISE_HEADER.size <= ops < len(data) - odd:
            raise CompressionError(f"bad VISE op stream offset {ops}")
        try:
            shared, shared_base = self._dictionary(data, config)
            output = self._expand(data, ops, shared, shared_base, odd)
        except (IndexError, struct.error) as e:
            raise CompressionError(f"corrupt VISE data: {e}") from e
        if len(output) != size:
            raise CompressionError(f"incomplete VISE data (expected {size} bytes, got {len(output)})")
        return bytes(output)

    @staticmethod
    def _expand(data: bytes, ops: int, shared: bytes, shared_base: int, odd: int) -> bytearray:
        output = bytearray()
        local = STRUCT_VISE_HEADER.size
        # Op bytes after the first, less the trailing odd byte
        remaining = len(data) - ops - 1 - odd

        def copy_word(source: bytes, pos: int) -> None:
            output.append(source[pos])
            output.append(source[pos + 1])

        def copy_output(pos: int) -> None:
            if pos < 0:
                raise IndexError(f"back reference before the start of the output ({pos})")
            output.append(output[pos])

        while True:
            code = data[ops]
            ops += 1
            if not code & 0x01:
                # 0: one shared word
                copy_word(shared, shared_base + (code >> 1) * 2)
            elif not code & 0x02:
                # 01: words copied from a distance back in the output
                code >>= 2
                count = (code & 7) + 1
                distance = (((data[ops] << 3) | (code >> 3)) + 1) * 2
                ops += 1
                for _ in range((count + 1) * 2):
                    copy_output(len(output) - distance)
                remaining -= 1
            elif not code & 0x04:
                # 011: optionally a local word, then a shared word
                offset = ((((data[ops] << 5) | (code >> 3)) + 0x80) * 2) & 0xFFFF
                ops += 1
                if offset & 0x2000:
                    copy_word(data, local)
                    local += 2
                copy_word(shared, shared_base + (offset & ~0x2000))
                remaining -= 1
            elif not code & 0x08:
                # 0111: optionally a local word, then words copied from a
                # position counted from the start of the output
                count = (code >> 4) + 1
                offset = (data[ops] << 8) | data[ops + 1]
                ops += 2
                if offset & 0x8000:
                    copy_word(data, local)
                    local += 2
                offset = (offset << 1) & 0xFFFF
                for i in range((count + 1) * 2):
                    copy_output(offset + i)
                remaining -= 2
            else:
                # 1111: a run of local words
                for _ in range((code >> 4) + 1):
                    copy_word(data, local)
                    local += 2

            if remaining <= 0:
                break
            remaining -= 1

        if odd:
            output.append(data[ops])
        return output
