"""Filesystems and sources that locate resource forks."""

from .host import ForkSource, HostFileSource, HostFileSystem, open_resource_fork
from .zip import ArchiveSource, ZipFileSystem

__all__ = [
    "ForkSource",
    "HostFileSource",
    "HostFileSystem",
    "open_resource_fork",
    "ArchiveSource",
    "ZipFileSystem",
]
