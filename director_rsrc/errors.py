"""Exception types raised while locating and decoding resources.

Every error carries the :class:`ResourceId` it concerns and the name of the
source that produced it, when known.  The resource manager fills both in
before re-raising, so a failure deep inside a decoder is still attributable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .toolbox.types import ResourceId


class ResourceError(Exception):
    """Base class for all resource loading failures."""

    def __init__(
        self,
        message: str,
        resource_id: "ResourceId | None" = None,
        source: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.resource_id = resource_id
        self.source = source

    def attach(self, resource_id: "ResourceId", source: str | None) -> "ResourceError":
        """Record which resource and source this error belongs to."""
        if self.resource_id is None:
            self.resource_id = resource_id
        if self.source is None:
            self.source = source
        return self

    def __str__(self) -> str:
        where = []
        if self.resource_id is not None:
            where.append(str(self.resource_id))
        if self.source:
            where.append(f"in {self.source}")
        if where:
            return f"{self.message} ({' '.join(where)})"
        return self.message


class ResourceNotFoundError(ResourceError, KeyError):
    """No source in the chain contains the requested resource."""


class ResourceTypeError(ResourceError, TypeError):
    """A cached resource was requested again as a different type."""


# ---------------------------------------------------------------------------
# Decode failures
# ---------------------------------------------------------------------------


class DecodeError(ResourceError):
    """The resource bytes do not match the requested layout."""


class SizeMismatchError(DecodeError):
    """The declared size is outside the set a layout accepts."""

    def __init__(self, layout: str, size: int, expected: Any) -> None:
        super().__init__(f"bad size {size} for {layout} (expected {expected})")
        self.layout = layout
        self.size = size
        self.expected = expected


class MalformedDiscriminantError(DecodeError, ValueError):
    """An enumerated tag has a value the layout does not define."""

    def __init__(self, what: str, value: int) -> None:
        super().__init__(f"invalid {what} 0x{value:x}")
        self.what = what
        self.value = value


class TruncatedDataError(DecodeError, EOFError):
    """The byte window ended before the layout was complete."""


class EncodingError(DecodeError):
    """No converter exists for a script, or the bytes are invalid in it."""


# ---------------------------------------------------------------------------
# Source failures
# ---------------------------------------------------------------------------


class SourceIOError(ResourceError, OSError):
    """A container could not be read for reasons other than absence."""


class InvalidResourceFileError(SourceIOError):
    """The resource fork header or map is corrupt."""


class UnsupportedCompressionError(SourceIOError):
    """The resource is stored compressed and no decompressor is available."""


class EncapsulationError(SourceIOError):
    """An AppleSingle/AppleDouble or MacBinary wrapper is malformed."""


class CompressionError(SourceIOError):
    """Compressed resource data could not be expanded."""
