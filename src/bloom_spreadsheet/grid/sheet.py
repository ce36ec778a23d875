"""
Modèle de grille du tableur : colonnes typées et lignes de contenu.

La grille est la représentation intermédiaire entre le document Bloom et le
fichier xlsx. Elle ne connaît ni le HTML ni le format binaire : l'exporteur
la remplit, le codec xlsx la sérialise, l'importeur la relit.

Invariants :
- une étiquette (ColumnTag) a au plus une colonne
- la colonne joker "[*]" reste toujours la dernière ; ajouter une colonne
  la pousse d'un cran vers la droite (c'est le seul index qui change)
- les lignes restent dans l'ordre d'ajout
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from ..exceptions import MissingColumn
from .columns import (
    STANDARD_LEADING_COLUMNS,
    WILDCARD_TAG,
    ColumnKind,
    ColumnTag,
    default_info,
)
from .rows import Cell, ContentRow, HeaderRow, Row


@dataclass
class Column:
    """Description d'une colonne (en-têtes)."""

    tag: ColumnTag
    display_name: str
    comment: Optional[str] = None
    hidden: bool = False


class Grid:
    """
    Tableau ordonné de colonnes typées et de lignes de contenu.

    Attributes:
        retain_markup: Les cellules de langue contiennent du HTML brut
            (export en mode "retain markup")

    Example:
        >>> grid = Grid()
        >>> en = grid.add_column_for_tag(ColumnTag.language("en"), "English")
        >>> row = ContentRow()
        >>> grid.add_row(row)
        >>> grid.set_cell(row, ColumnTag.language("en"), "<p>Hello</p>")
        >>> row.text(en)
        '<p>Hello</p>'
    """

    HEADER_ROW_COUNT = 2

    def __init__(self, standard_columns: bool = True) -> None:
        self._columns: list[Column] = []
        self._index: dict[ColumnTag, int] = {}
        self._rows: list[ContentRow] = []
        self.retain_markup = False
        if standard_columns:
            for kind in STANDARD_LEADING_COLUMNS:
                self.add_column_for_tag(ColumnTag(kind))

    # ------------------------------------------------------------------
    # Colonnes
    # ------------------------------------------------------------------

    @property
    def columns(self) -> tuple[Column, ...]:
        return tuple(self._columns)

    @property
    def column_count(self) -> int:
        return len(self._columns)

    def add_column_for_tag(
        self,
        tag: ColumnTag,
        display_name: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> int:
        """
        Retourne l'index de la colonne de tag, en la créant si besoin.

        Une nouvelle colonne prend la place de la colonne joker, qui est
        décalée d'un cran (y compris dans les lignes déjà présentes).

        Args:
            tag: Étiquette de la colonne
            display_name: Nom affiché (défaut : table COLUMN_INFO)
            comment: Commentaire de l'en-tête

        Returns:
            Index (0-based) de la colonne
        """
        existing = self._index.get(tag)
        if existing is not None:
            return existing

        info = default_info(tag)
        column = Column(
            tag=tag,
            display_name=display_name if display_name is not None else info.display_name,
            comment=comment if comment is not None else info.comment,
        )

        wildcard_index = self._index.get(WILDCARD_TAG)
        if tag.is_wildcard or wildcard_index is None:
            self._columns.append(column)
            index = len(self._columns) - 1
        else:
            index = wildcard_index
            self._columns.insert(index, column)
            self._index[WILDCARD_TAG] = index + 1
            for row in self._rows:
                row.insert_empty_cell(index)

        self._index[tag] = index
        return index

    def column_for_tag(self, tag: ColumnTag) -> Optional[int]:
        return self._index.get(tag)

    def required_column_for_tag(self, tag: ColumnTag) -> int:
        """
        Index d'une colonne obligatoire.

        Raises:
            MissingColumn: Si la grille n'a pas cette colonne
        """
        index = self._index.get(tag)
        if index is None:
            raise MissingColumn(tag.label)
        return index

    def column_for_lang(self, lang: str) -> Optional[int]:
        return self._index.get(ColumnTag.language(lang))

    def audio_column_for_lang(self, lang: str) -> Optional[int]:
        return self._index.get(ColumnTag.audio(lang))

    def alignment_column_for_lang(self, lang: str) -> Optional[int]:
        return self._index.get(ColumnTag.alignment(lang))

    def _langs_of(self, kind: ColumnKind) -> list[str]:
        return [c.tag.lang for c in self._columns if c.tag.kind is kind and c.tag.lang]

    @property
    def languages(self) -> list[str]:
        """Langues ayant une colonne de texte, dans l'ordre des colonnes."""
        return self._langs_of(ColumnKind.LANGUAGE)

    @property
    def audio_languages(self) -> list[str]:
        return self._langs_of(ColumnKind.AUDIO)

    def hide_column(self, tag: ColumnTag) -> None:
        index = self._index.get(tag)
        if index is not None:
            self._columns[index].hidden = True

    # ------------------------------------------------------------------
    # Lignes
    # ------------------------------------------------------------------

    @property
    def content_rows(self) -> tuple[ContentRow, ...]:
        return tuple(self._rows)

    def add_row(self, row: Optional[ContentRow] = None) -> ContentRow:
        """Ajoute une ligne de contenu à la fin et la retourne."""
        row = row if row is not None else ContentRow()
        self._rows.append(row)
        return row

    def set_cell(self, row: Row, tag: ColumnTag, content: str) -> int:
        """Écrit content dans la colonne tag (créée si besoin) ; retourne l'index."""
        index = self.add_column_for_tag(tag)
        row.set_cell(index, content)
        return index

    def cell(self, row: Row, tag: ColumnTag) -> str:
        return row.text(self._index.get(tag))

    def header_rows(self) -> list[HeaderRow]:
        """
        Les deux lignes d'en-tête : étiquettes (cachée) puis noms affichés.
        """
        tags = HeaderRow([Cell(c.tag.label) for c in self._columns])
        tags.hidden = True
        names = HeaderRow([Cell(c.display_name, c.comment) for c in self._columns])
        return [tags, names]

    def all_rows(self) -> Iterator[Row]:
        yield from self.header_rows()
        yield from self._rows

    def sort_hidden_rows_to_bottom(self) -> None:
        """Place les lignes cachées après les visibles (tri stable)."""
        self._rows = [r for r in self._rows if not r.hidden] + [
            r for r in self._rows if r.hidden
        ]

    def row_number(self, row: ContentRow) -> int:
        """Numéro (1-based) de la ligne dans le fichier, en-têtes compris."""
        return self._rows.index(row) + self.HEADER_ROW_COUNT + 1

    # ------------------------------------------------------------------
    # Interface avec le codec
    # ------------------------------------------------------------------

    def cell_values(self) -> Iterator[tuple[int, int, str]]:
        """Itère (ligne, colonne, texte) sur toutes les cellules non vides."""
        for r, row in enumerate(self.all_rows()):
            for c, cell in enumerate(row):
                if cell.content:
                    yield r, c, cell.content

    def set_hint(self, row: ContentRow, tag: ColumnTag, hint: str) -> None:
        self.add_column_for_tag(tag)
        row.hints[tag] = hint

    def display_hint(self, row_index: int, col: int) -> Optional[str]:
        """
        Annotation d'affichage d'une cellule (ex: "Missing" pour une vignette).

        Args:
            row_index: Index de la ligne dans all_rows() (en-têtes compris)
            col: Index de la colonne
        """
        content_index = row_index - self.HEADER_ROW_COUNT
        if content_index < 0 or content_index >= len(self._rows):
            return None
        if col >= len(self._columns):
            return None
        return self._rows[content_index].hints.get(self._columns[col].tag)

    @classmethod
    def from_header(
        cls,
        tags: Sequence[str],
        display_names: Sequence[str] = (),
        comments: Sequence[Optional[str]] = (),
    ) -> "Grid":
        """
        Reconstruit une grille vide depuis les en-têtes d'un fichier.

        Les colonnes gardent exactement leur position d'origine.
        """
        grid = cls(standard_columns=False)
        for i, label in enumerate(tags):
            tag = ColumnTag.parse(label)
            name = display_names[i] if i < len(display_names) else None
            comment = comments[i] if i < len(comments) else None
            column = Column(tag, name if name is not None else default_info(tag).display_name, comment)
            grid._columns.append(column)
            grid._index.setdefault(tag, i)
        return grid
