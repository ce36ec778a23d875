"""
Document de livre Bloom (fichier .htm) manipulé avec BeautifulSoup.
"""

from pathlib import Path
from typing import Optional, Union

from bs4 import BeautifulSoup
from bs4.element import Tag

from ..logger import get_logger
from .constants import (
    DATA_BOOK_ATTR,
    DATA_DIV_ID,
    PAGE_CLASS,
    PAGE_NUMBER_ATTR,
)
from .content import PageInfo, classify_page

logger = get_logger(__name__)


class BookDocument:
    """
    Arbre HTML d'un livre Bloom.

    Le document est modifié en place par l'importeur ; sa persistance reste
    à la charge de l'appelant (save()).

    Attributes:
        soup: Arbre BeautifulSoup du livre
        path: Fichier d'origine, None pour un document construit en mémoire

    Example:
        >>> book = BookDocument.load("MonLivre/MonLivre.htm")
        >>> [p.number for p in book.content_pages()]
        ['1', '2', '3']
    """

    def __init__(self, html: str, path: Optional[Path] = None) -> None:
        self.soup = BeautifulSoup(html, "html.parser")
        self.path = path

    @classmethod
    def load(cls, path: Union[str, Path]) -> "BookDocument":
        path = Path(path)
        logger.debug(f"Lecture du livre {path}")
        return cls(path.read_text(encoding="utf-8"), path)

    def save(self, path: Union[str, Path, None] = None) -> Path:
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("Aucun chemin de sauvegarde pour ce document")
        target.write_text(str(self.soup), encoding="utf-8")
        logger.info(f"✅ Livre enregistré : {target}")
        return target

    def __str__(self) -> str:
        return str(self.soup)

    @property
    def folder(self) -> Optional[Path]:
        return self.path.parent if self.path else None

    @property
    def data_div(self) -> Optional[Tag]:
        return self.soup.find("div", id=DATA_DIV_ID)

    def data_book_elements(self, key: Optional[str] = None) -> list[Tag]:
        """Éléments div[data-book] enfants directs du data div."""
        data_div = self.data_div
        if data_div is None:
            return []
        found = data_div.find_all("div", attrs={DATA_BOOK_ATTR: True}, recursive=False)
        if key is None:
            return found
        return [e for e in found if e.get(DATA_BOOK_ATTR) == key]

    def page_elements(self) -> list[Tag]:
        return self.soup.find_all("div", class_=PAGE_CLASS)

    def pages(self) -> list[PageInfo]:
        """Toutes les pages, classifiées, dans l'ordre du document."""
        return [classify_page(p) for p in self.page_elements()]

    def content_pages(self) -> list[PageInfo]:
        """Pages numérotées (hors pages de couverture et xmatter)."""
        return [p for p in self.pages() if p.number]

    def new_tag(self, name: str, **attrs) -> Tag:
        return self.soup.new_tag(name, attrs=attrs)

    def last_page_number(self) -> int:
        numbers = [
            int(p.get(PAGE_NUMBER_ATTR))
            for p in self.page_elements()
            if (p.get(PAGE_NUMBER_ATTR) or "").isdigit()
        ]
        return max(numbers, default=0)
