"""Macintosh Toolbox formats: resource forks, encapsulations, text and basic resources."""

from .apple_double import AppleDouble
from .intl import (
    CountryCode,
    ScriptCode,
    active_script,
    codec_for_country,
    convert_text,
    set_active_script,
)
from .kinds import Pattern, PString, Stage, StringList, Version, VersionNumber
from .mac_binary import MacBinary, MacBinaryVersion
from .resource_file import ResourceAttrs, ResourceFile, ResourceFileAttrs
from .types import OsType, Rect, ResourceId

__all__ = [
    "AppleDouble",
    "CountryCode",
    "ScriptCode",
    "active_script",
    "codec_for_country",
    "convert_text",
    "set_active_script",
    "Pattern",
    "PString",
    "Stage",
    "StringList",
    "Version",
    "VersionNumber",
    "MacBinary",
    "MacBinaryVersion",
    "ResourceAttrs",
    "ResourceFile",
    "ResourceFileAttrs",
    "OsType",
    "Rect",
    "ResourceId",
]
