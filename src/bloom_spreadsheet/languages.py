"""
Noms affichés des langues (en-têtes des colonnes du tableur).
"""

import os
from typing import Mapping, Optional, Protocol

# Noms connus ; les autres codes sont affichés tels quels
KNOWN_LANGUAGE_NAMES: dict[str, str] = {
    "*": "Any language",
    "en": "English",
    "fr": "French",
    "es": "Spanish",
    "pt": "Portuguese",
    "de": "German",
    "sw": "Swahili",
    "tpi": "Tok Pisin",
    "id": "Indonesian",
    "ar": "Arabic",
    "hi": "Hindi",
    "zh-CN": "Chinese (Simplified)",
    "ru": "Russian",
    "ha": "Hausa",
    "am": "Amharic",
}


class LanguageDisplayNames(Protocol):
    def get_language_display_name(self, tag: str) -> str:
        ...


class StaticLanguageNames:
    """
    Résolveur de noms de langue à partir d'une table.

    Des noms supplémentaires peuvent être donnés par la variable
    d'environnement BLOOM_SPREADSHEET_LANG_NAMES ("xyz=Xyzish,abc=Abcish").

    Example:
        >>> StaticLanguageNames().get_language_display_name("fr")
        'French'
        >>> StaticLanguageNames({"xyz": "Xyzish"}).get_language_display_name("xyz")
        'Xyzish'
    """

    def __init__(self, extra: Optional[Mapping[str, str]] = None) -> None:
        self._names = dict(KNOWN_LANGUAGE_NAMES)
        self._names.update(parse_language_names(os.getenv("BLOOM_SPREADSHEET_LANG_NAMES", "")))
        if extra:
            self._names.update(extra)

    def get_language_display_name(self, tag: str) -> str:
        return self._names.get(tag, tag)


def parse_language_names(value: str) -> dict[str, str]:
    names: dict[str, str] = {}
    for item in value.split(","):
        code, sep, name = item.partition("=")
        if sep and code.strip() and name.strip():
            names[code.strip()] = name.strip()
    return names
