"""
Language codes, names and the country → language table.

The country table is deliberately small: it maps a visitor's country to
the single language most likely to be wanted there. Countries that are
not listed resolve to the configured default language.
"""

from __future__ import annotations

import re
from typing import Mapping


# Human-readable names, used in provider prompts
LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "fr": "French",
    "es": "Spanish",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "zh": "Chinese (Simplified)",
    "ja": "Japanese",
    "ko": "Korean",
    "ar": "Arabic",
    "nl": "Dutch",
    "pl": "Polish",
    "sv": "Swedish",
    "no": "Norwegian",
    "da": "Danish",
    "fi": "Finnish",
    "tr": "Turkish",
    "el": "Greek",
    "he": "Hebrew",
    "hi": "Hindi",
    "th": "Thai",
    "vi": "Vietnamese",
    "id": "Indonesian",
    "ms": "Malay",
    "cs": "Czech",
    "sk": "Slovak",
    "hu": "Hungarian",
    "ro": "Romanian",
    "bg": "Bulgarian",
    "uk": "Ukrainian",
}


# Endonyms, used in language switchers and operator output
NATIVE_NAMES: dict[str, str] = {
    "en": "English",
    "fr": "Français",
    "es": "Español",
    "de": "Deutsch",
    "it": "Italiano",
    "pt": "Português",
    "ru": "Русский",
    "zh": "中文",
    "ja": "日本語",
    "ko": "한국어",
    "ar": "العربية",
    "nl": "Nederlands",
    "pl": "Polski",
    "sv": "Svenska",
    "no": "Norsk",
    "da": "Dansk",
    "fi": "Suomi",
    "tr": "Türkçe",
    "el": "Ελληνικά",
    "he": "עברית",
    "hi": "हिन्दी",
    "th": "ไทย",
    "vi": "Tiếng Việt",
    "id": "Bahasa Indonesia",
    "ms": "Bahasa Melayu",
    "cs": "Čeština",
    "sk": "Slovenčina",
    "hu": "Magyar",
    "ro": "Română",
    "bg": "Български",
    "uk": "Українська",
}


# =============================================================================
# Country → Language
# =============================================================================


COUNTRY_LANGUAGES: dict[str, str] = {
    # English
    "US": "en",
    "GB": "en",
    "CA": "en",
    "AU": "en",
    "NZ": "en",
    "IE": "en",
    "IN": "en",
    "PH": "en",
    "SG": "en",
    "ZA": "en",
    # French (BE and CH are multilingual; French is the closest single pick)
    "FR": "fr",
    "BE": "fr",
    "CH": "fr",
    # Spanish
    "ES": "es",
    "MX": "es",
    "AR": "es",
    "CL": "es",
    "CO": "es",
    "PE": "es",
    "VE": "es",
    # German
    "DE": "de",
    "AT": "de",
    # Others
    "IT": "it",
    "PT": "pt",
    "BR": "pt",
    "RU": "ru",
    "UA": "ru",
    "CN": "zh",
    "TW": "zh",
    "HK": "zh",
    "JP": "ja",
    "KR": "ko",
    "NL": "nl",
    "SE": "sv",
    "NO": "no",
    "DK": "da",
    "FI": "fi",
    "PL": "pl",
    "TR": "tr",
    "GR": "el",
    "IL": "he",
    "SA": "ar",
    "AE": "ar",
    "EG": "ar",
}


RTL_LANGUAGES = frozenset({"ar", "he", "fa", "ur"})


# =============================================================================
# Utilities
# =============================================================================


_TAG_RE = re.compile(r"^[a-z]{2,3}(?:[-_][a-z0-9]{2,8})*$")


def get_language_name(code: str) -> str:
    """Get English language name, falling back to the code itself."""
    return LANGUAGE_NAMES.get(code.lower(), code)


def get_native_name(code: str) -> str:
    """Get the language's own name for itself."""
    return NATIVE_NAMES.get(code.lower(), code.upper())


def normalize_language_code(code: str) -> str:
    """Normalize language code to standard lowercase form."""
    code = code.strip().lower().replace("_", "-")

    # Handle common variants
    variants = {
        "english": "en",
        "french": "fr",
        "spanish": "es",
        "german": "de",
        "italian": "it",
        "portuguese": "pt",
        "russian": "ru",
        "chinese": "zh",
        "japanese": "ja",
        "korean": "ko",
        "arabic": "ar",
        "dutch": "nl",
        "polish": "pl",
        "iw": "he",  # legacy Hebrew code still returned by some detectors
    }

    return variants.get(code, code)


def base_code(tag: str) -> str | None:
    """
    Primary subtag of a BCP-47 style tag.

    >>> base_code("es-ES")
    'es'

    Returns None for anything that does not look like a language tag.
    """
    tag = normalize_language_code(tag)
    if not _TAG_RE.match(tag):
        return None
    return tag.split("-", 1)[0]


def language_for_country(
    country: str | None,
    default: str,
    table: Mapping[str, str] | None = None,
) -> str:
    """
    Map an ISO-3166 alpha-2 country code to a language code.

    Unmapped or missing countries return `default`, never None.
    """
    if not country:
        return default
    table = COUNTRY_LANGUAGES if table is None else table
    return table.get(country.strip().upper(), default)


def is_rtl(code: str) -> bool:
    """Check if language is right-to-left."""
    return base_code(code) in RTL_LANGUAGES
