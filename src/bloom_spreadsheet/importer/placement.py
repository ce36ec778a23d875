"""
Répartition des lignes de contenu sur les pages.

Les lignes [textgroup], [image] et [page content] sont regroupées par numéro
de page (séquences contiguës). Chaque page de destination tient un compteur
par type d'emplacement (SlotCounters) : les emplacements sont consommés dans
l'ordre de classify_page(), indépendamment d'un type à l'autre.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..config import SpreadsheetLabels
from ..document import PageInfo, SlotKind
from ..grid import WILDCARD_LANGUAGE, ColumnKind, ColumnTag, ContentRow, Grid, RowKind

# Lignes qui décrivent le contenu des pages
PAGE_ROW_KINDS = (RowKind.TEXT_GROUP, RowKind.IMAGE, RowKind.PAGE_CONTENT)


@dataclass
class RowGroup:
    """
    Lignes consécutives destinées à une même page.

    Attributes:
        page_number: Numéro de page ("" : groupe sans numéro, placé sur de
            nouvelles pages)
        rows: Lignes dans l'ordre du tableur
    """

    page_number: str
    rows: list[ContentRow] = field(default_factory=list)


def group_rows(grid: Grid, rows: Iterable[ContentRow]) -> list[RowGroup]:
    """
    Regroupe les lignes de page par numéro de page.

    Une ligne sans numéro rejoint le groupe précédent ; en tête de tableau
    elle ouvre un groupe sans numéro. Deux séquences séparées d'un même
    numéro donnent deux groupes.

    Example:
        numéros "1", "1", "", "2", "1" -> groupes 1 (3 lignes), 2, 1
    """
    page_column = grid.column_for_tag(ColumnTag(ColumnKind.PAGE_NUMBER))
    groups: list[RowGroup] = []
    for row in rows:
        number = row.text(page_column).strip()
        if groups and (not number or number == groups[-1].page_number):
            groups[-1].rows.append(row)
        else:
            groups.append(RowGroup(number, [row]))
    return groups


def row_slot_kinds(grid: Grid, row: ContentRow) -> list[SlotKind]:
    """
    Types d'emplacements consommés par une ligne.

    - [textgroup] : un bloc de texte
    - [image] : une image
    - [page content] : un emplacement de chaque type dont la colonne est
      renseignée (texte dans une langue, image, vidéo, widget)
    """
    kind = row.kind
    if kind is RowKind.TEXT_GROUP:
        return [SlotKind.TEXT]
    if kind is RowKind.IMAGE:
        return [SlotKind.IMAGE]
    if kind is not RowKind.PAGE_CONTENT:
        return []

    kinds: list[SlotKind] = []
    if any(
        row.text(grid.column_for_lang(lang)).strip()
        for lang in grid.languages
        if lang != WILDCARD_LANGUAGE
    ):
        kinds.append(SlotKind.TEXT)
    for column_kind, slot in (
        (ColumnKind.IMAGE_SOURCE, SlotKind.IMAGE),
        (ColumnKind.VIDEO_SOURCE, SlotKind.VIDEO),
        (ColumnKind.WIDGET_SOURCE, SlotKind.WIDGET),
    ):
        if grid.cell(row, ColumnTag(column_kind)).strip():
            kinds.append(slot)
    return kinds


def needed_slots(grid: Grid, rows: Iterable[ContentRow]) -> dict[SlotKind, int]:
    """Nombre d'emplacements de chaque type demandés par des lignes."""
    counts: Counter = Counter()
    for row in rows:
        counts.update(row_slot_kinds(grid, row))
    return {kind: counts[kind] for kind in SlotKind}


def requested_page_type(grid: Grid, row: ContentRow) -> str:
    return grid.cell(row, ColumnTag(ColumnKind.PAGE_TYPE)).strip()


def page_accepts(page: PageInfo, grid: Grid, rows: list[ContentRow]) -> bool:
    """
    Vrai si la page peut recevoir le groupe : chaque type demandé y a au
    moins un emplacement et aucun [page type] explicite ne la contredit.
    """
    capacity = page.capacity()
    needed = needed_slots(grid, rows)
    if any(count and not capacity[kind] for kind, count in needed.items()):
        return False
    return all(page.matches_type(requested_page_type(grid, row)) for row in rows)


class SlotCounters:
    """
    Compteurs d'emplacements d'une page.

    take() retourne le prochain emplacement libre du type demandé, ou None
    quand la page est pleine pour ce type ; le numéro du bloc (1-based) est
    compté dans les deux cas, pour les messages de débordement.

    Example:
        >>> counters = SlotCounters(page)   # 1 image, 2 textes
        >>> counters.take(SlotKind.TEXT)
        (TextBlock(...), 1)
        >>> counters.take(SlotKind.IMAGE); counters.take(SlotKind.IMAGE)
        (Image(...), 1)
        (None, 2)
    """

    def __init__(self, page: PageInfo) -> None:
        self.page = page
        self._slots = {kind: page.slots(kind) for kind in SlotKind}
        self._taken = {kind: 0 for kind in SlotKind}
        self.overflow: dict[SlotKind, list[int]] = {kind: [] for kind in SlotKind}

    def capacity(self, kind: SlotKind) -> int:
        return len(self._slots[kind])

    def has_room(self, kind: SlotKind) -> bool:
        return self._taken[kind] < len(self._slots[kind])

    def take(self, kind: SlotKind) -> tuple[Optional[object], int]:
        self._taken[kind] += 1
        index = self._taken[kind]
        if index > len(self._slots[kind]):
            self.overflow[kind].append(index)
            return None, index
        return self._slots[kind][index - 1], index

    def untaken(self, kind: SlotKind) -> list:
        """Emplacements de ce type qu'aucune ligne n'a reçus."""
        return self._slots[kind][self._taken[kind] :]

    def exhausted(self, kinds: Iterable[SlotKind]) -> bool:
        """Vrai si la page a eu de la place pour un de ces types et n'en a plus."""
        return any(self.capacity(k) and not self.has_room(k) for k in kinds)


def is_blank(content: str) -> bool:
    return content.strip() == SpreadsheetLabels.Blank_Content_Indicator
