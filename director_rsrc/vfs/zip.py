"""Resource forks stored inside zip archives.

Zip tools on the Mac keep resource forks beside the data in one of two
places: Info-ZIP's ``XtraStuf.mac/<path>`` directory or the
``__MACOSX/<dir>/._<name>`` AppleDouble files written by the Finder.
Logical paths are matched case-insensitively, with ``\\`` and ``:`` both
accepted as separators.
"""

from __future__ import annotations

import io
import logging
import os
import posixpath
import zipfile
from typing import BinaryIO

from ..errors import EncapsulationError, ResourceNotFoundError, SourceIOError
from ..toolbox.apple_double import AppleDouble
from ..toolbox.resource_file import ResourceFile
from ..toolbox.types import ResourceId

log = logging.getLogger(__name__)

XTRA_STUFF_DIR = "xtrastuf.mac"
MACOSX_DIR = "__macosx"


def normalize_path(path: str) -> str:
    """Fold a logical path to the form used as an archive index key."""
    path = path.replace("\\", "/").replace(":", "/")
    parts = [p for p in path.split("/") if p and p != "."]
    return "/".join(parts).lower()


class ZipFileSystem:
    """A read-only view of a zip archive for resource file lookups."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.name = os.fspath(path)
        try:
            self._zip = zipfile.ZipFile(self.name)
        except (OSError, zipfile.BadZipFile) as e:
            raise SourceIOError(f"can't open archive: {e}", source=self.name) from e
        self._index: dict[str, zipfile.ZipInfo] = {}
        for info in self._zip.infolist():
            if info.is_dir():
                continue
            key = normalize_path(info.filename)
            if key in self._index:
                log.warning("%s: duplicate entry %s, keeping the first", self.name, info.filename)
                continue
            self._index[key] = info
        log.info("Opened archive %s: %d entries", self.name, len(self._index))

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self._index

    def read(self, path: str) -> bytes:
        """Read a member's data fork."""
        key = normalize_path(path)
        try:
            info = self._index[key]
        except KeyError:
            raise ResourceNotFoundError(f"no {path} in archive", source=self.name) from None
        try:
            return self._zip.read(info)
        except (OSError, zipfile.BadZipFile) as e:
            raise SourceIOError(f"can't read {info.filename}: {e}", source=self.name) from e

    def open_resource_fork(self, path: str) -> BinaryIO:
        key = normalize_path(path)
        directory, base = posixpath.split(key)

        candidate = posixpath.join(XTRA_STUFF_DIR, key)
        if candidate in self._index:
            return io.BytesIO(self.read(candidate))

        candidate = posixpath.join(MACOSX_DIR, directory, "._" + base)
        if candidate in self._index:
            try:
                unwrapped = AppleDouble.parse(io.BytesIO(self.read(candidate)), source=candidate)
            except EncapsulationError as e:
                log.debug("%s: %s", self.name, e)
            else:
                return io.BytesIO(unwrapped.resource_fork.read())

        candidate = key + ".rsrc"
        if candidate in self._index:
            return io.BytesIO(self.read(candidate))

        raise ResourceNotFoundError(f"no resource fork for {path}", source=self.name)

    def open_resource_file(self, path: str) -> ResourceFile:
        return ResourceFile(self.open_resource_fork(path), name=f"{self.name}:{path}")

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> "ZipFileSystem":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class ArchiveSource:
    """Serves the resource fork of one file inside a zip archive."""

    def __init__(self, archive: ZipFileSystem, logical_path: str) -> None:
        self.archive = archive
        self.logical_path = logical_path
        self.resource_file = archive.open_resource_file(logical_path)
        self.name = self.resource_file.name

    def contains(self, rid: ResourceId) -> bool:
        return self.resource_file.contains(rid)

    def load_bytes(self, rid: ResourceId) -> tuple[BinaryIO, int]:
        return self.resource_file.load_bytes(rid)

    def id_of_name(self, os_type, name: bytes) -> ResourceId | None:
        return self.resource_file.id_of_name(os_type, name)

    def ids_of_type(self, os_type) -> list[ResourceId]:
        return self.resource_file.ids_of_type(os_type)
