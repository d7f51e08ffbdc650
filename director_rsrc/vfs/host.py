"""Resource access on the host filesystem.

Classic Mac files carry a resource fork that most filesystems cannot
store.  :func:`open_resource_fork` finds it wherever a copy tool may have
put it:

1. the native named fork, ``<path>/..namedfork/rsrc`` (macOS only)
2. a sibling ``<path>.rsrc`` file
3. an AppleDouble ``._<name>`` companion, or *path* itself as AppleSingle
4. *path* (or ``<path>.bin``) as MacBinary
"""

from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote_from_bytes, unquote_to_bytes

from ..errors import (
    EncapsulationError,
    ResourceError,
    ResourceNotFoundError,
    SourceIOError,
)
from ..toolbox.apple_double import AppleDouble, companion_path
from ..toolbox.mac_binary import MacBinary
from ..toolbox.resource_file import ResourceFile
from ..toolbox.types import OsType, ResourceId

log = logging.getLogger(__name__)

LOOSE_RESOURCE_SUFFIX = ".bin"


def _named_fork(path: str) -> BinaryIO | None:
    fork = os.path.join(path, "..namedfork", "rsrc")
    try:
        if os.path.getsize(fork) == 0:
            return None
        return open(fork, "rb")
    except (FileNotFoundError, NotADirectoryError):
        return None


def _sibling_fork(path: str) -> BinaryIO | None:
    sibling = path + ".rsrc"
    if not os.path.isfile(sibling):
        return None
    return open(sibling, "rb")


def _apple_double_fork(path: str) -> BinaryIO | None:
    header_path = companion_path(path)
    if not os.path.isfile(header_path):
        header_path = path
    if not os.path.isfile(header_path):
        return None
    with open(header_path, "rb") as f:
        try:
            unwrapped = AppleDouble.parse(f, source=header_path)
        except EncapsulationError as e:
            log.debug("%s is not AppleSingle/AppleDouble: %s", header_path, e)
            return None
        return io.BytesIO(unwrapped.resource_fork.read())


def _mac_binary_fork(path: str) -> BinaryIO | None:
    for candidate in (path, path + ".bin"):
        if not os.path.isfile(candidate):
            continue
        with open(candidate, "rb") as f:
            try:
                unwrapped = MacBinary.parse(f, source=candidate)
            except EncapsulationError as e:
                log.debug("%s is not MacBinary: %s", candidate, e)
                continue
            fork = unwrapped.resource_fork
            if fork is None:
                log.debug("%s has no resource fork", candidate)
                continue
            return io.BytesIO(fork.read())
    return None


_FORK_FINDERS = (
    ("named fork", _named_fork),
    ("rsrc file", _sibling_fork),
    ("AppleDouble", _apple_double_fork),
    ("MacBinary", _mac_binary_fork),
)


def open_resource_fork(path: str | os.PathLike) -> BinaryIO:
    """Open the resource fork of *path* as a readable, seekable stream.

    Raises :class:`ResourceNotFoundError` if no representation exists.
    """
    path = os.fspath(path)
    for how, finder in _FORK_FINDERS:
        try:
            stream = finder(path)
        except OSError as e:
            if isinstance(e, ResourceError):
                raise
            raise SourceIOError(f"can't read {how} of {path}: {e}", source=path) from e
        if stream is not None:
            log.debug("Found resource fork of %s via %s", path, how)
            return stream
    raise ResourceNotFoundError("no resource fork found", source=path)


class HostFileSystem:
    """The local filesystem, as seen by resource file lookups."""

    name = "host"

    def open_resource_file(self, path: str | os.PathLike) -> ResourceFile:
        stream = open_resource_fork(path)
        return ResourceFile(stream, name=os.fspath(path), close=True)

    def exists(self, path: str | os.PathLike) -> bool:
        return os.path.exists(path)


# ---------------------------------------------------------------------------
# Loose resource files
# ---------------------------------------------------------------------------


def loose_resource_name(rid: ResourceId) -> str:
    """The file name a loose copy of *rid* is stored under."""
    return f"{quote_from_bytes(rid.os_type.raw, safe='')}_{rid.num}{LOOSE_RESOURCE_SUFFIX}"


def parse_loose_resource_name(file_name: str) -> ResourceId | None:
    """Inverse of :func:`loose_resource_name`; None for unrelated files."""
    if not file_name.endswith(LOOSE_RESOURCE_SUFFIX):
        return None
    tag, sep, num = file_name[: -len(LOOSE_RESOURCE_SUFFIX)].rpartition("_")
    if not sep:
        return None
    raw = unquote_to_bytes(tag)
    if len(raw) != 4:
        return None
    try:
        return ResourceId(OsType(raw), int(num))
    except ValueError:
        return None


class HostFileSource:
    """Resources stored as individual ``<TYPE>_<num>.bin`` files.

    *path* is a single file or a directory searched recursively.  When two
    files map to the same id the first in sorted path order wins.
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)
        self.name = str(self.path)
        self._index: dict[ResourceId, Path] = {}
        files = [self.path] if self.path.is_file() else sorted(p for p in self.path.rglob("*") if p.is_file())
        for file in files:
            rid = parse_loose_resource_name(file.name)
            if rid is None:
                continue
            if rid in self._index:
                log.warning("Ignoring %s: %s already provided by %s", file, rid, self._index[rid])
                continue
            self._index[rid] = file
        log.info("Indexed %d loose resources under %s", len(self._index), self.name)

    def contains(self, rid: ResourceId) -> bool:
        return rid in self._index

    def ids(self):
        return iter(sorted(self._index))

    def ids_of_type(self, os_type) -> list[ResourceId]:
        os_type = OsType(os_type)
        return sorted(rid for rid in self._index if rid.os_type == os_type)

    def load_bytes(self, rid: ResourceId) -> tuple[BinaryIO, int]:
        try:
            file = self._index[rid]
        except KeyError:
            raise ResourceNotFoundError("resource not found", rid, self.name) from None
        try:
            data = file.read_bytes()
        except OSError as e:
            raise SourceIOError(f"can't read {file}: {e}", rid, self.name) from e
        return io.BytesIO(data), len(data)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}: {len(self._index)} resources>"


# ---------------------------------------------------------------------------
# Lazily opened forks
# ---------------------------------------------------------------------------


class ForkSource:
    """The resource fork of one file, opened on first use.

    A file with no resource fork at all behaves as an empty source, so a
    missing optional file does not stop a search chain.  A fork that exists
    but can't be read or parsed raises :class:`SourceIOError` from every
    lookup, leaving the decision to skip it to the caller.
    """

    def __init__(self, path: str | os.PathLike, fs=None) -> None:
        self.path = os.fspath(path)
        self.name = self.path
        self._fs = fs if fs is not None else HostFileSystem()
        self._file: ResourceFile | None = None
        self._error: SourceIOError | None = None
        self._opened = False

    def _resource_file(self, rid: ResourceId | None = None) -> ResourceFile | None:
        if not self._opened:
            self._opened = True
            try:
                self._file = self._fs.open_resource_file(self.path)
            except ResourceNotFoundError:
                log.debug("No resource fork for %s", self.path)
            except SourceIOError as e:
                self._error = e
        if self._error is not None:
            # Fresh instance per lookup so each carries its own resource id
            raise type(self._error)(self._error.message, rid, self.name) from self._error
        return self._file

    @property
    def resource_file(self) -> ResourceFile | None:
        return self._resource_file()

    def contains(self, rid: ResourceId) -> bool:
        file = self._resource_file(rid)
        return file is not None and file.contains(rid)

    def load_bytes(self, rid: ResourceId) -> tuple[BinaryIO, int]:
        file = self._resource_file(rid)
        if file is None:
            raise ResourceNotFoundError("resource not found", rid, self.name)
        return file.load_bytes(rid)

    def id_of_name(self, os_type, name: bytes) -> ResourceId | None:
        file = self._resource_file()
        return None if file is None else file.id_of_name(os_type, name)

    def ids_of_type(self, os_type) -> list[ResourceId]:
        file = self._resource_file()
        return [] if file is None else file.ids_of_type(os_type)

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
