"""Macromedia Director cast member formats."""

from .cast import CastMap, CastRegistry, CastRegistryEntry, Member, RawProperties
from .chunks import ChunkType, LegacyMemberFlags, MemberKind, MEMBER_KIND_NAMES
from .film_loop import FilmLoopFlags, FilmLoopProperties
from .metadata import MemberInfoFlags, MemberMetadata
from .script import ScriptKind, ScriptProperties
from .shape import LineDirection, ShapeKind, ShapeProperties

__all__ = [
    "CastMap",
    "CastRegistry",
    "CastRegistryEntry",
    "Member",
    "RawProperties",
    "ChunkType",
    "LegacyMemberFlags",
    "MemberKind",
    "MEMBER_KIND_NAMES",
    "FilmLoopFlags",
    "FilmLoopProperties",
    "MemberInfoFlags",
    "MemberMetadata",
    "ScriptKind",
    "ScriptProperties",
    "LineDirection",
    "ShapeKind",
    "ShapeProperties",
]
