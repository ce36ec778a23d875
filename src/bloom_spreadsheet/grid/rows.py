"""
Lignes et cellules de la grille.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from ..config import SpreadsheetLabels


@dataclass
class Cell:
    """Contenu d'une cellule (texte ou HTML) et commentaire éventuel."""

    content: str = ""
    comment: Optional[str] = None


class RowKind(Enum):
    """Classification d'une ligne selon sa cellule [row type]."""

    TEXT_GROUP = "textgroup"
    IMAGE = "image"
    PAGE_CONTENT = "page content"
    BOOK_METADATA = "book metadata"
    UNKNOWN = "unknown"


def classify_row_key(key: str) -> RowKind:
    """
    Détermine le type d'une ligne à partir de sa clé.

    Example:
        >>> classify_row_key("[textgroup]")
        <RowKind.TEXT_GROUP: 'textgroup'>
        >>> classify_row_key("[ISBN]")
        <RowKind.BOOK_METADATA: 'book metadata'>
    """
    key = (key or "").strip()
    if key == SpreadsheetLabels.Text_Group_Row:
        return RowKind.TEXT_GROUP
    if key == SpreadsheetLabels.Image_Row:
        return RowKind.IMAGE
    if key == SpreadsheetLabels.Page_Content_Row:
        return RowKind.PAGE_CONTENT
    if len(key) > 2 and key.startswith("[") and key.endswith("]"):
        return RowKind.BOOK_METADATA
    return RowKind.UNKNOWN


class Row:
    """
    Suite ordonnée de cellules, creuse : une cellule absente vaut "".
    """

    is_header = False

    def __init__(self, cells: Optional[list[Cell]] = None) -> None:
        self._cells: list[Cell] = list(cells) if cells else []
        self.hidden = False

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells)

    def get_cell(self, index: int) -> Cell:
        if 0 <= index < len(self._cells):
            return self._cells[index]
        return Cell()

    def text(self, index: Optional[int]) -> str:
        """Contenu de la cellule, "" si la colonne n'existe pas."""
        if index is None:
            return ""
        return self.get_cell(index).content

    def set_cell(self, index: int, content: str, comment: Optional[str] = None) -> None:
        while len(self._cells) <= index:
            self._cells.append(Cell())
        self._cells[index] = Cell(content, comment)

    def add_cell(self, content: str) -> None:
        self._cells.append(Cell(content))

    def insert_empty_cell(self, index: int) -> None:
        """Décale d'un cran vers la droite les cellules à partir de index."""
        if index < len(self._cells):
            self._cells.insert(index, Cell())


class HeaderRow(Row):
    is_header = True


class ContentRow(Row):
    """
    Ligne de contenu.

    Attributes:
        background_color: Couleur ARGB de la ligne (alternée par page)
        hints: Annotations d'affichage par colonne (statut de vignette)
    """

    def __init__(self, cells: Optional[list[Cell]] = None) -> None:
        super().__init__(cells)
        self.background_color: Optional[str] = None
        self.hints: dict = {}

    @property
    def metadata_key(self) -> str:
        return self.text(0).strip()

    @property
    def kind(self) -> RowKind:
        return classify_row_key(self.metadata_key)

    @property
    def data_book_key(self) -> Optional[str]:
        """Clé data-book d'une ligne de métadonnées (sans crochets)."""
        if self.kind is not RowKind.BOOK_METADATA:
            return None
        return self.metadata_key[1:-1].strip()
