"""
Étiquettes typées des colonnes du tableur.

Chaque colonne est identifiée par un ColumnTag (type + langue éventuelle)
dont la forme texte ("[en]", "[audio fr]", "[image source]"...) est celle
écrite dans la première ligne (cachée) du fichier. La table COLUMN_INFO
associe à chaque type fixe son nom affiché et son commentaire.
"""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional


class ColumnKind(Enum):
    """Types de colonnes connus."""

    ROW_TYPE = "row type"
    PAGE_NUMBER = "page number"
    INDEX_ON_PAGE = "text index on page"
    PAGE_TYPE = "page type"
    IMAGE_SOURCE = "image source"
    IMAGE_THUMBNAIL = "image thumbnail"
    VIDEO_SOURCE = "video source"
    WIDGET_SOURCE = "widget source"
    ATTRIBUTE_DATA = "attribute data"
    LANGUAGE = "language"
    AUDIO = "audio"
    ALIGNMENT = "audio alignments"
    OTHER = "other"


class ColumnInfo(NamedTuple):
    display_name: str
    comment: Optional[str] = None


COLUMN_INFO: dict[ColumnKind, ColumnInfo] = {
    ColumnKind.ROW_TYPE: ColumnInfo(
        "Row Type",
        "[textgroup], [image] and [page content] rows hold page content; "
        "other bracketed keys such as [bookTitle] hold book data.",
    ),
    ColumnKind.PAGE_NUMBER: ColumnInfo("Page Number"),
    ColumnKind.INDEX_ON_PAGE: ColumnInfo(
        "Index on Page", "Position of this row's content on its page."
    ),
    ColumnKind.PAGE_TYPE: ColumnInfo(
        "Page Type", "Template page to use if the content needs a new page."
    ),
    ColumnKind.IMAGE_SOURCE: ColumnInfo("Image Source"),
    ColumnKind.IMAGE_THUMBNAIL: ColumnInfo("Image Thumbnail"),
    ColumnKind.VIDEO_SOURCE: ColumnInfo("Video"),
    ColumnKind.WIDGET_SOURCE: ColumnInfo("Widgets"),
    ColumnKind.ATTRIBUTE_DATA: ColumnInfo("Attribute data"),
}

# Colonnes créées dans cet ordre par toute nouvelle grille
STANDARD_LEADING_COLUMNS = (
    ColumnKind.ROW_TYPE,
    ColumnKind.PAGE_NUMBER,
    ColumnKind.INDEX_ON_PAGE,
    ColumnKind.PAGE_TYPE,
    ColumnKind.IMAGE_SOURCE,
    ColumnKind.IMAGE_THUMBNAIL,
)

WILDCARD_LANGUAGE = "*"


@dataclass(frozen=True)
class ColumnTag:
    """
    Identité d'une colonne.

    Attributes:
        kind: Type de la colonne
        lang: Langue pour LANGUAGE, AUDIO et ALIGNMENT
        raw: Libellé d'origine pour une colonne inconnue (OTHER)

    Example:
        >>> ColumnTag.parse("[audio alignments fr]")
        ColumnTag(kind=<ColumnKind.ALIGNMENT: 'audio alignments'>, lang='fr', raw=None)
        >>> ColumnTag.language("en").label
        '[en]'
    """

    kind: ColumnKind
    lang: Optional[str] = None
    raw: Optional[str] = None

    @classmethod
    def language(cls, lang: str) -> "ColumnTag":
        return cls(ColumnKind.LANGUAGE, lang)

    @classmethod
    def audio(cls, lang: str) -> "ColumnTag":
        return cls(ColumnKind.AUDIO, lang)

    @classmethod
    def alignment(cls, lang: str) -> "ColumnTag":
        return cls(ColumnKind.ALIGNMENT, lang)

    @property
    def is_wildcard(self) -> bool:
        return self.kind is ColumnKind.LANGUAGE and self.lang == WILDCARD_LANGUAGE

    @property
    def label(self) -> str:
        if self.kind is ColumnKind.LANGUAGE:
            return f"[{self.lang}]"
        if self.kind is ColumnKind.AUDIO:
            return f"[audio {self.lang}]"
        if self.kind is ColumnKind.ALIGNMENT:
            return f"[audio alignments {self.lang}]"
        if self.kind is ColumnKind.OTHER:
            return self.raw or ""
        return f"[{self.kind.value}]"

    @classmethod
    def parse(cls, label: str) -> "ColumnTag":
        """
        Reconstruit un ColumnTag depuis son libellé.

        Un libellé non reconnu donne une colonne OTHER conservée telle quelle.
        """
        text = (label or "").strip()
        if len(text) < 3 or not (text.startswith("[") and text.endswith("]")):
            return cls(ColumnKind.OTHER, raw=label)
        inner = text[1:-1].strip()
        for kind in COLUMN_INFO:
            if inner == kind.value:
                return cls(kind)
        if inner.startswith("audio alignments "):
            return cls.alignment(inner[len("audio alignments ") :].strip())
        if inner.startswith("audio "):
            return cls.audio(inner[len("audio ") :].strip())
        if inner and not any(ch.isspace() for ch in inner):
            return cls.language(inner)
        return cls(ColumnKind.OTHER, raw=label)

    def __str__(self) -> str:
        return self.label


WILDCARD_TAG = ColumnTag.language(WILDCARD_LANGUAGE)


def default_info(tag: ColumnTag) -> ColumnInfo:
    """Nom affiché et commentaire par défaut d'une colonne."""
    if tag.kind in COLUMN_INFO:
        return COLUMN_INFO[tag.kind]
    if tag.kind is ColumnKind.AUDIO:
        return ColumnInfo(f"{tag.lang} audio")
    if tag.kind is ColumnKind.ALIGNMENT:
        return ColumnInfo(f"{tag.lang} alignments")
    if tag.kind is ColumnKind.LANGUAGE:
        return ColumnInfo(tag.lang or "")
    return ColumnInfo(tag.label)
