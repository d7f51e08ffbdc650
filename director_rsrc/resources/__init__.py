"""Resource lookup across sources, with decoding and caching."""

from .manager import ResourceManager
from .source import DecodeContext, ResourceKind, Source

__all__ = [
    "ResourceManager",
    "DecodeContext",
    "ResourceKind",
    "Source",
]
