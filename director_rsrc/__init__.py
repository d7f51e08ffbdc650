"""Legacy Macintosh resource and Director cast member loading."""

from .config import Settings
from .errors import (
    CompressionError,
    DecodeError,
    EncapsulationError,
    EncodingError,
    InvalidResourceFileError,
    MalformedDiscriminantError,
    ResourceError,
    ResourceNotFoundError,
    ResourceTypeError,
    SizeMismatchError,
    SourceIOError,
    TruncatedDataError,
    UnsupportedCompressionError,
)
from .reader import BinaryReader, first_of, restore_on_error
from .resources import DecodeContext, ResourceManager, Source
from .toolbox import OsType, Rect, ResourceFile, ResourceId

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Settings",
    "BinaryReader",
    "first_of",
    "restore_on_error",
    "DecodeContext",
    "ResourceManager",
    "Source",
    "OsType",
    "Rect",
    "ResourceFile",
    "ResourceId",
    "ResourceError",
    "ResourceNotFoundError",
    "ResourceTypeError",
    "DecodeError",
    "SizeMismatchError",
    "MalformedDiscriminantError",
    "TruncatedDataError",
    "EncodingError",
    "SourceIOError",
    "InvalidResourceFileError",
    "UnsupportedCompressionError",
    "CompressionError",
    "EncapsulationError",
]
