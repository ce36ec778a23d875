"""
Classification du contenu d'une page Bloom.

Une page est parcourue une seule fois ; chaque élément utile devient une
variante fermée : TextBlock, QuizAnswer, Image, Video ou Widget. L'exporteur
en tire une ligne par élément, l'importeur les utilise comme emplacements
(slots) à remplir.

Règles :
- les groupes de traduction à l'intérieur d'une description d'image sont
  ignorés
- les blocs de texte sont triés par tabindex entre eux (tri stable, les blocs
  sans tabindex gardent leur place relative après les autres)
- les autres éléments restent dans l'ordre du document
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from bs4.element import Tag

from .constants import (
    CORRECT_ANSWER_CLASS,
    IMAGE_CONTAINER_CLASS,
    IMAGE_DESCRIPTION_CLASS,
    PAGE_LABEL_CLASS,
    PAGE_LINEAGE_ATTR,
    PAGE_NUMBER_ATTR,
    QUIZ_CHOICE_CLASS,
    TRANSLATION_GROUP_CLASS,
    VIDEO_CONTAINER_CLASS,
    WIDGET_CONTAINER_CLASS,
)
from .dom import classes, has_class


class SlotKind(Enum):
    """Types d'emplacements d'une page."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    WIDGET = "widget"


@dataclass
class TextBlock:
    """Groupe de traduction (bloom-translationGroup)."""

    group: Tag
    tabindex: Optional[int] = None

    slot = SlotKind.TEXT


@dataclass
class QuizAnswer(TextBlock):
    """Groupe de traduction d'une réponse de quiz."""

    correct: bool = False

    @property
    def choice(self) -> Optional[Tag]:
        return self.group.parent


@dataclass
class Image:
    container: Tag

    slot = SlotKind.IMAGE

    @property
    def img(self) -> Optional[Tag]:
        return self.container.find("img")

    @property
    def src(self) -> str:
        img = self.img
        return (img.get("src") or "") if img is not None else ""


@dataclass
class Video:
    container: Tag

    slot = SlotKind.VIDEO

    @property
    def source(self) -> Optional[Tag]:
        return self.container.find("source", src=True) or self.container.find("source")

    @property
    def src(self) -> str:
        source = self.source
        return (source.get("src") or "") if source is not None else ""


@dataclass
class Widget:
    container: Tag

    slot = SlotKind.WIDGET

    @property
    def iframe(self) -> Optional[Tag]:
        return self.container.find("iframe")

    @property
    def src(self) -> str:
        iframe = self.iframe
        return (iframe.get("src") or "") if iframe is not None else ""


PageContent = Union[TextBlock, QuizAnswer, Image, Video, Widget]


@dataclass
class PageInfo:
    """
    Page classifiée.

    Attributes:
        element: div.bloom-page
        number: data-page-number ("" pour les pages xmatter)
        label: Texte du div.pageLabel (type de page)
        lineage: Identifiant du modèle d'origine (premier guid de
            data-pagelineage, ou id de la page pour un modèle)
        contents: Éléments dans l'ordre d'export
    """

    element: Tag
    number: str = ""
    label: str = ""
    lineage: str = ""
    contents: list = field(default_factory=list)

    def slots(self, kind: SlotKind) -> list:
        return [c for c in self.contents if c.slot is kind]

    def capacity(self) -> dict[SlotKind, int]:
        """Nombre d'emplacements par type."""
        counts = {kind: 0 for kind in SlotKind}
        for content in self.contents:
            counts[content.slot] += 1
        return counts

    def matches_type(self, key: str) -> bool:
        """Vrai si key désigne le type de cette page (libellé, lignée ou id)."""
        key = (key or "").strip()
        if not key:
            return True
        return key in (self.label, self.lineage, self.element.get("id") or "")


def _tabindex(tag: Tag) -> Optional[int]:
    value = (tag.get("tabindex") or "").strip()
    if value.lstrip("-").isdigit():
        return int(value)
    return None


def _in_image_description(group: Tag) -> bool:
    return has_class(group, IMAGE_DESCRIPTION_CLASS) or any(
        has_class(parent, IMAGE_DESCRIPTION_CLASS) for parent in group.parents
    )


def _text_block(group: Tag) -> TextBlock:
    parent = group.parent
    tabindex = _tabindex(group)
    if has_class(parent, QUIZ_CHOICE_CLASS) or has_class(parent, CORRECT_ANSWER_CLASS):
        return QuizAnswer(group, tabindex, correct=has_class(parent, CORRECT_ANSWER_CLASS))
    return TextBlock(group, tabindex)


def _classify(tag: Tag) -> Optional[PageContent]:
    names = classes(tag)
    if TRANSLATION_GROUP_CLASS in names:
        if _in_image_description(tag):
            return None
        return _text_block(tag)
    if IMAGE_CONTAINER_CLASS in names:
        return Image(tag)
    if VIDEO_CONTAINER_CLASS in names:
        return Video(tag)
    if WIDGET_CONTAINER_CLASS in names:
        return Widget(tag)
    return None


def _sort_text_blocks(contents: list) -> list:
    """Trie les blocs de texte par tabindex en gardant la place des autres."""
    positions = [i for i, c in enumerate(contents) if c.slot is SlotKind.TEXT]
    blocks = [contents[i] for i in positions]
    blocks.sort(key=lambda b: (b.tabindex is None, b.tabindex or 0))
    result = list(contents)
    for position, block in zip(positions, blocks):
        result[position] = block
    return result


def page_label(page: Tag) -> str:
    label = page.find("div", class_=PAGE_LABEL_CLASS)
    if label is None:
        return ""
    return label.get_text().strip()


def page_lineage(page: Tag) -> str:
    lineage = (page.get(PAGE_LINEAGE_ATTR) or "").strip()
    if lineage:
        return lineage.replace(",", ";").split(";")[0].strip()
    return page.get("id") or ""


def classify_page(page: Tag) -> PageInfo:
    """
    Classifie le contenu d'une page en un seul parcours.

    Un conteneur trouvé ne sera pas parcouru à nouveau : un groupe de
    traduction placé dans un conteneur d'image (description) n'est pas un
    bloc de texte de la page.

    Args:
        page: Élément div.bloom-page

    Returns:
        PageInfo avec les éléments dans l'ordre d'export
    """
    contents: list = []
    stack = list(reversed([c for c in page.children if isinstance(c, Tag)]))
    while stack:
        tag = stack.pop()
        content = _classify(tag)
        if content is not None:
            contents.append(content)
            if not isinstance(content, Image):
                continue
        if has_class(tag, IMAGE_DESCRIPTION_CLASS):
            continue
        stack.extend(reversed([c for c in tag.children if isinstance(c, Tag)]))
    return PageInfo(
        element=page,
        number=(page.get(PAGE_NUMBER_ATTR) or "").strip(),
        label=page_label(page),
        lineage=page_lineage(page),
        contents=_sort_text_blocks(contents),
    )
