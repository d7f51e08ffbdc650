"""Script codes, country codes and legacy text conversion.

Classic Mac OS stored text as plain bytes and interpreted them according to
the system's script at runtime.  This module maps script and country codes
onto Python codecs, and holds the process-wide active script that
applications select once at startup.

The codec tables themselves come from Python's :mod:`codecs` registry.
"""

from __future__ import annotations

import codecs
import logging
from enum import IntEnum

from ..errors import EncodingError, MalformedDiscriminantError

log = logging.getLogger(__name__)


class ScriptCode(IntEnum):
    """Script Manager script codes (``smRoman`` … ``smUninterp``)."""

    ROMAN = 0
    JAPANESE = 1
    CHINESE_TRADITIONAL = 2
    KOREAN = 3
    ARABIC = 4
    HEBREW = 5
    GREEK = 6
    RUSSIAN = 7
    RIGHT_LEFT_SYMBOLS = 8
    DEVANAGARI = 9
    GURMUKHI = 10
    ORIYA = 11
    BENGALI = 12
    TAMIL = 13
    TELUGU = 14
    KANNADA = 15
    MALAYALAM = 16
    SINHALESE = 17
    BURMESE = 18
    CAMBODIAN = 19
    THAI = 20
    LAOTIAN = 21
    GEORGIAN = 22
    ARMENIAN = 23
    CHINESE_SIMPLIFIED = 24
    TIBETAN = 25
    MONGOLIAN = 26
    ETHIOPIAN = 27
    NON_CYRILLIC_SLAVIC = 28
    VIETNAMESE = 29
    SINDHI = 30
    UNINTERPRETED_SYMBOLS = 31

    @classmethod
    def from_name(cls, name: str) -> "ScriptCode":
        """Look up a script by name, e.g. ``roman`` or ``chinese-simplified``."""
        key = name.strip().upper().replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"unknown script {name!r}") from None


class CountryCode(IntEnum):
    """Region codes as stored in ``'vers'`` and ``'itlc'`` resources."""

    USA = 0
    FRANCE = 1
    BRITAIN = 2
    GERMANY = 3
    ITALY = 4
    NETHERLANDS = 5
    FLEMISH = 6
    SWEDEN = 7
    SPAIN = 8
    DENMARK = 9
    PORTUGAL = 10
    FR_CANADA = 11
    NORWAY = 12
    ISRAEL = 13
    JAPAN = 14
    AUSTRALIA = 15
    ARABIC = 16
    FINLAND = 17
    FR_SWISS = 18
    GR_SWISS = 19
    GREECE = 20
    ICELAND = 21
    MALTA = 22
    CYPRUS = 23
    TURKEY = 24
    YUGO_CROATIAN = 25
    NETHERLANDS_COMMA = 26
    BELGIUM_LUX_POINT = 27
    CANADA_COMMA = 28
    CANADA_POINT = 29
    VARIANT_PORTUGAL = 30
    VARIANT_NORWAY = 31
    VARIANT_DENMARK = 32
    INDIA_HINDI = 33
    PAKISTAN_URDU = 34
    TURKISH_MODIFIED = 35
    ITALIAN_SWISS = 36
    INTERNATIONAL = 37
    ROMANIA = 39
    GREECE_POLY = 40
    LITHUANIA = 41
    POLAND = 42
    HUNGARY = 43
    ESTONIA = 44
    LATVIA = 45
    SAMI = 46
    FAROE_ISL = 47
    IRAN = 48
    RUSSIA = 49
    IRELAND = 50
    KOREA = 51
    CHINA = 52
    TAIWAN = 53
    THAILAND = 54
    SCRIPT_GENERIC = 55
    CZECH = 56
    SLOVAK = 57
    FAR_EAST_GENERIC = 58
    MAGYAR = 59
    BENGALI = 60
    BYELO_RUSSIAN = 61
    UKRAINE = 62
    GREECE_ALT = 64
    SERBIAN = 65
    SLOVENIAN = 66
    MACEDONIAN = 67
    CROATIA = 68
    GERMAN_REFORMED = 70
    BRAZIL = 71
    BULGARIA = 72
    CATALONIA = 73
    MULTILINGUAL = 74
    SCOTTISH_GAELIC = 75
    MANX_GAELIC = 76
    BRETON = 77
    NUNAVUT = 78
    WELSH = 79
    IRISH_GAELIC_SCRIPT = 81
    ENG_CANADA = 82
    BHUTAN = 83
    ARMENIAN = 84
    GEORGIAN = 85
    SP_LATIN_AMERICA = 86
    TONGA = 88
    FRENCH_UNIVERSAL = 91
    AUSTRIA = 92
    GUJARATI = 94
    PUNJABI = 95
    INDIA_URDU = 96
    VIETNAM = 97
    FR_BELGIUM = 98
    UZBEK = 99
    SINGAPORE = 100
    NYNORSK = 101
    AFRIKAANS = 102
    ESPERANTO = 103
    MARATHI = 104
    TIBETAN = 105
    NEPAL = 106
    GREENLAND = 107

    @classmethod
    def parse(cls, value: int) -> "CountryCode":
        try:
            return cls(value)
        except ValueError:
            raise MalformedDiscriminantError("country code", value) from None


# Scripts with a usable codec.  Mac Japanese and the Chinese/Korean Mac
# encodings are supersets of these, which is close enough for resource text.
SCRIPT_CODECS: dict[ScriptCode, str] = {
    ScriptCode.ROMAN: "mac_roman",
    ScriptCode.JAPANESE: "shift_jis",
    ScriptCode.CHINESE_TRADITIONAL: "big5",
    ScriptCode.KOREAN: "euc_kr",
    ScriptCode.ARABIC: "mac_arabic",
    ScriptCode.GREEK: "mac_greek",
    ScriptCode.RUSSIAN: "mac_cyrillic",
    ScriptCode.THAI: "tis_620",
    ScriptCode.CHINESE_SIMPLIFIED: "gb2312",
}

# Regions whose Roman-script text is not plain Mac Roman.
_COUNTRY_CODECS: dict[CountryCode, str] = {
    CountryCode.TURKEY: "mac_turkish",
    CountryCode.TURKISH_MODIFIED: "mac_turkish",
    CountryCode.CROATIA: "mac_croatian",
    CountryCode.SLOVENIAN: "mac_croatian",
    CountryCode.YUGO_CROATIAN: "mac_croatian",
    CountryCode.ICELAND: "mac_iceland",
    CountryCode.FAROE_ISL: "mac_iceland",
    CountryCode.ROMANIA: "mac_romanian",
    CountryCode.GREECE: "mac_greek",
    CountryCode.GREECE_POLY: "mac_greek",
    CountryCode.IRAN: "mac_farsi",
    CountryCode.ARABIC: "mac_arabic",
    CountryCode.JAPAN: "shift_jis",
    CountryCode.KOREA: "euc_kr",
    CountryCode.CHINA: "gb2312",
    CountryCode.TAIWAN: "big5",
    CountryCode.THAILAND: "tis_620",
    CountryCode.RUSSIA: "mac_cyrillic",
    CountryCode.UKRAINE: "mac_cyrillic",
    CountryCode.BYELO_RUSSIAN: "mac_cyrillic",
    CountryCode.BULGARIA: "mac_cyrillic",
    CountryCode.MACEDONIAN: "mac_cyrillic",
    CountryCode.SERBIAN: "mac_cyrillic",
    CountryCode.POLAND: "mac_latin2",
    CountryCode.CZECH: "mac_latin2",
    CountryCode.SLOVAK: "mac_latin2",
    CountryCode.HUNGARY: "mac_latin2",
    CountryCode.MAGYAR: "mac_latin2",
    CountryCode.ESTONIA: "mac_latin2",
    CountryCode.LATVIA: "mac_latin2",
    CountryCode.LITHUANIA: "mac_latin2",
}

# No Mac codec is available for these regions.
_UNSUPPORTED_COUNTRIES = frozenset({
    CountryCode.ISRAEL,
    CountryCode.INDIA_HINDI,
    CountryCode.TIBETAN,
    CountryCode.NUNAVUT,
    CountryCode.ARMENIAN,
    CountryCode.GEORGIAN,
})


def codec_for_script(script: ScriptCode | int) -> str:
    """Return the codec name used for *script*."""
    try:
        script = ScriptCode(script)
    except ValueError:
        raise EncodingError(f"invalid script code {script}") from None
    codec = SCRIPT_CODECS.get(script)
    if codec is None:
        raise EncodingError(f"can't find encoder for script {script.name.lower()}")
    return codec


def codec_for_country(country: CountryCode) -> str:
    """Return the codec name for text tagged with *country*."""
    if country in _UNSUPPORTED_COUNTRIES:
        raise EncodingError(f"can't find encoder for country {country.name.lower()}")
    return _COUNTRY_CODECS.get(country, "mac_roman")


def decode_with(data: bytes, codec: str) -> str:
    try:
        return codecs.decode(data, codec)
    except (UnicodeDecodeError, LookupError) as e:
        raise EncodingError(f"invalid {codec} text {data!r}: {e}") from e


def convert_text(data: bytes, script: ScriptCode | int) -> str:
    """Convert legacy text in *script* to a Python string.

    Similar to ``TECConvertText``.  Script codes alone are not enough to
    decode every Roman-script region; use :func:`codec_for_country` when the
    region is known.
    """
    return decode_with(data, codec_for_script(script))


# ---------------------------------------------------------------------------
# Active script selection
# ---------------------------------------------------------------------------

_active_script: ScriptCode = ScriptCode.ROMAN


def active_script() -> ScriptCode:
    """The script new resource managers decode text with."""
    return _active_script


def set_active_script(script: ScriptCode | int) -> ScriptCode:
    """Select the process-wide script.  Returns the previous selection."""
    global _active_script
    script = ScriptCode(script)
    codec_for_script(script)
    previous, _active_script = _active_script, script
    log.debug("Active script: %s (was %s)", script.name, previous.name)
    return previous
