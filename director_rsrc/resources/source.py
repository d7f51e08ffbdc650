"""Interfaces shared by resource containers and resource decoders."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, BinaryIO, ClassVar, Protocol, TypeVar, runtime_checkable

from ..reader import BinaryReader
from ..toolbox.intl import ScriptCode
from ..toolbox.types import OsType, ResourceId

R = TypeVar("R")


@dataclass(frozen=True)
class DecodeContext:
    """State a decoder may consult besides its bytes."""

    script: ScriptCode = ScriptCode.ROMAN


@runtime_checkable
class Source(Protocol):
    """Anything that can serve raw resource bytes by id.

    ``load_bytes`` raises :class:`ResourceNotFoundError` for ids the source
    does not contain and :class:`SourceIOError` for read failures.
    """

    name: str

    def contains(self, rid: ResourceId) -> bool: ...

    def load_bytes(self, rid: ResourceId) -> tuple[BinaryIO, int]: ...


class ResourceKind(Protocol[R]):
    """A decodable resource type.

    ``OS_TYPES`` lists the tags the kind is stored under, primary tag first.
    """

    OS_TYPES: ClassVar[tuple[OsType, ...]]

    @classmethod
    def load(cls, reader: BinaryReader, size: int, context: DecodeContext, *args: Any) -> R: ...
