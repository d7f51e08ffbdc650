"""The resource manager: search a chain of sources, decode, cache.

A manager is built over a fixed, ordered tuple of sources.  ``load``
returns the decoded value of the first source that contains the requested
id, and the same object on every later call for that id.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Iterable, Type, TypeVar

from ..config import Settings
from ..errors import ResourceError, ResourceNotFoundError, ResourceTypeError, SourceIOError
from ..reader import BinaryReader, restore_on_error
from ..toolbox.kinds import PString, StringList
from ..toolbox.types import OsType, ResourceId
from .source import DecodeContext, Source

log = logging.getLogger(__name__)

T = TypeVar("T")

# 'STR ' ids the system answers without a resource.
USER_NAME_STRING_ID = -16096


class ResourceManager:
    """Loads typed resources from an ordered chain of sources.

    Parameters
    ----------
    sources : iterable of Source
        Searched in order; earlier sources shadow later ones.
    settings : Settings, optional
        Text script and error policy.  Defaults to ``Settings()``, which
        picks up the process-wide active script.
    """

    def __init__(self, sources: Iterable[Source], settings: Settings | None = None) -> None:
        self._sources: tuple[Source, ...] = tuple(sources)
        self.settings = settings if settings is not None else Settings()
        self.context = DecodeContext(script=self.settings.script)
        self._cache: dict[ResourceId, Any] = {}

    @property
    def sources(self) -> tuple[Source, ...]:
        return self._sources

    # ---- lookup ---------------------------------------------------------

    def _skip(self, source: Source, rid: ResourceId | None, error: SourceIOError) -> None:
        error.attach(rid, source.name)
        if not self.settings.skip_source_errors:
            raise error
        log.warning("Skipping %s: %s", source.name, error)

    def contains(self, rid: ResourceId) -> bool:
        """True if any source holds *rid*."""
        for source in self._sources:
            try:
                if source.contains(rid):
                    return True
            except SourceIOError as e:
                self._skip(source, rid, e)
        return False

    def __contains__(self, rid: object) -> bool:
        return isinstance(rid, ResourceId) and self.contains(rid)

    def _find(self, rid: ResourceId):
        for source in self._sources:
            try:
                if not source.contains(rid):
                    continue
                window, size = source.load_bytes(rid)
            except ResourceNotFoundError:
                continue
            except SourceIOError as e:
                self._skip(source, rid, e)
                continue
            return source, window, size
        raise ResourceNotFoundError("resource not found", rid)

    # ---- loading --------------------------------------------------------

    def load(self, rid: ResourceId, kind: Type[T]) -> T:
        """Load *rid* decoded as *kind*."""
        return self.load_args(rid, kind)

    def load_args(self, rid: ResourceId, kind: Type[T], *args: Any) -> T:
        """Load *rid* decoded as *kind*, passing *args* to its decoder.

        A cached value is returned as is; *args* only matter for the first
        load of an id.
        """
        if rid in self._cache:
            value = self._cache[rid]
            if not isinstance(value, kind):
                raise ResourceTypeError(
                    f"cached as {type(value).__name__}, requested as {kind.__name__}", rid
                )
            return value

        source, window, size = self._find(rid)
        reader = BinaryReader(window)
        try:
            value = restore_on_error(reader, lambda r, _pos: kind.load(r, size, self.context, *args))
        except ResourceError as e:
            e.attach(rid, source.name)
            raise
        log.debug("Loaded %s from %s as %s (%d bytes)", rid, source.name, kind.__name__, size)
        self._cache[rid] = value
        return value

    def load_num(self, num: int, kind: Type[T], *args: Any) -> T:
        """Load resource *num* under the first of *kind*'s tags that has it."""
        for os_type in kind.OS_TYPES:
            rid = ResourceId(os_type, num)
            if rid in self._cache or self.contains(rid):
                return self.load_args(rid, kind, *args)
        raise ResourceNotFoundError(f"no {kind.__name__} resource {num}")

    def id_of_name(self, os_type: OsType | bytes | str, name: bytes) -> ResourceId | None:
        """The id of the first resource of *os_type* called *name*."""
        for source in self._sources:
            lookup = getattr(source, "id_of_name", None)
            if lookup is None:
                continue
            try:
                rid = lookup(os_type, name)
            except SourceIOError as e:
                self._skip(source, None, e)
                continue
            if rid is not None:
                return rid
        return None

    def ids_of_type(self, os_type: OsType | bytes | str) -> list[ResourceId]:
        """Every id of *os_type* in the chain, in source order.

        An id present in several sources is listed once, at the position of
        the source that shadows the others.  Sources that can't enumerate
        their contents are passed over.
        """
        seen: dict[ResourceId, None] = {}
        for source in self._sources:
            listing = getattr(source, "ids_of_type", None)
            if listing is None:
                continue
            try:
                ids = listing(os_type)
            except SourceIOError as e:
                self._skip(source, None, e)
                continue
            for rid in ids:
                seen.setdefault(rid, None)
        return list(seen)

    def count_resources(self, os_type: OsType | bytes | str) -> int:
        """The number of distinct resources of *os_type* in the chain."""
        return len(self.ids_of_type(os_type))

    def id_of_index(self, os_type: OsType | bytes | str, index: int) -> ResourceId | None:
        """The id of the *index*-th resource of *os_type*, counting from 1."""
        ids = self.ids_of_type(os_type)
        if 1 <= index <= len(ids):
            return ids[index - 1]
        return None

    def load_indexed(self, kind: Type[T], index: int, *args: Any) -> T:
        """Load the *index*-th resource (from 1) stored under *kind*'s primary tag."""
        os_type = kind.OS_TYPES[0]
        rid = self.id_of_index(os_type, index)
        if rid is None:
            raise ResourceNotFoundError(
                f"no {kind.__name__} resource at index {index} of {self.count_resources(os_type)}"
            )
        return self.load_args(rid, kind, *args)

    def load_named(self, kind: Type[T], name: bytes, *args: Any) -> T:
        for os_type in kind.OS_TYPES:
            rid = self.id_of_name(os_type, name)
            if rid is not None:
                return self.load_args(rid, kind, *args)
        raise ResourceNotFoundError(f"no {kind.__name__} resource named {name!r}")

    # ---- strings --------------------------------------------------------

    def get_string(self, num: int) -> str | None:
        """The ``'STR '`` resource *num*, or None if there isn't one."""
        if num == USER_NAME_STRING_ID:
            return os.environ.get("USER") or os.environ.get("USERNAME")
        try:
            return self.load(ResourceId(b"STR ", num), PString).value
        except ResourceNotFoundError:
            return None

    def get_indexed_string(self, num: int, index: int) -> str | None:
        """String *index* (from 1) of the ``'STR#'`` list *num*, or None."""
        try:
            strings = self.load(ResourceId(b"STR#", num), StringList)
        except ResourceNotFoundError:
            return None
        return strings.get(index)

    # ---- cache ----------------------------------------------------------

    def cached(self, rid: ResourceId) -> Any | None:
        return self._cache.get(rid)

    def clear_cache(self) -> None:
        log.debug("Dropping %d cached resources", len(self._cache))
        self._cache.clear()
