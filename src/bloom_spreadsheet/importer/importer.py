"""
Import d'une grille de tableur dans un livre Bloom.

Déroulement de run() :
1. vérification du contrat (colonne [row type], bloomDataDiv)
2. lignes de métadonnées -> data div
3. lignes de page regroupées par numéro de page, chaque groupe placé sur la
   première page inutilisée portant ce numéro ; un groupe que la page ne
   peut pas recevoir part sur de nouvelles pages créées depuis les modèles
4. pages numérotées restées sans données signalées, puis renumérotation si
   des pages ont été insérées

Les problèmes de données deviennent des avertissements (liste ordonnée,
aussi transmise au ProgressSink) ; seul GridContractError interrompt
l'import.
"""

import asyncio
import copy
import uuid
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote, unquote

from bs4.element import Tag

from ..audio import AudioProbe, Mp3AudioProbe, RegexSentenceSplitter, SentenceSplitter
from ..config import ImportParams, SpreadsheetLabels
from ..document import (
    BookDocument,
    Image,
    PageInfo,
    QuizAnswer,
    SlotKind,
    TextBlock,
    Video,
    Widget,
)
from ..document.constants import (
    CORRECT_ANSWER_CLASS,
    NO_VIDEO_SELECTED_CLASS,
    PAGE_LINEAGE_ATTR,
    PAGE_NUMBER_ATTR,
    PLACEHOLDER_IMAGE,
    TEMPLATE_LANG,
)
from ..document.content import classify_page
from ..document.dom import (
    add_class,
    editable_in_lang,
    remove_class,
    remove_other_languages,
    set_inner_html,
)
from ..exporter import activity_folder
from ..exceptions import (
    GridContractError,
    MissingMediaFile,
    PageCapacityExceeded,
    PageNotFound,
    PageTypeUnusable,
)
from ..grid import WILDCARD_LANGUAGE, ColumnKind, ColumnTag, ContentRow, Grid, RowKind
from ..logger import get_logger
from ..markup import markup_for_editable
from ..progress import INFO, WARNING, ProgressSink, TqdmProgress
from ..templates import TemplateLibrary
from .audio_import import AudioImporter
from .datadiv import DataDivUpdater
from .media import copy_into_book, resolve_media
from .placement import (
    PAGE_ROW_KINDS,
    RowGroup,
    SlotCounters,
    group_rows,
    is_blank,
    needed_slots,
    page_accepts,
    requested_page_type,
    row_slot_kinds,
)

logger = get_logger(__name__)

# Préfixe des instructions de la colonne [attribute data]
PARENT_CLASS_PREFIX = "../class="


class SpreadsheetImporter:
    """
    Réconcilie un livre avec une grille.

    Args:
        grid: Grille lue depuis le tableur
        document: Livre modifié en place
        book_folder: Dossier du livre (images, audio/, video/, activities/)
        spreadsheet_folder: Dossier du tableur (chemins relatifs des médias)
        sentence_splitter: Découpeur de phrases (défaut : RegexSentenceSplitter)
        audio_probe: Lecteur mp3 (défaut : Mp3AudioProbe)
        template_library: Pages modèles pour les pages insérées
        params: Paramètres d'import
        progress: Retour de progression (défaut : TqdmProgress)

    Example:
        >>> grid = read_spreadsheet("export/MonLivre.xlsx")
        >>> book = BookDocument.load("MonLivre/MonLivre.htm")
        >>> importer = SpreadsheetImporter(grid, book, "MonLivre", "export")
        >>> warnings = importer.import_grid()
        >>> book.save()
    """

    def __init__(
        self,
        grid: Grid,
        document: BookDocument,
        book_folder: Union[str, Path, None] = None,
        spreadsheet_folder: Union[str, Path, None] = None,
        sentence_splitter: Optional[SentenceSplitter] = None,
        audio_probe: Optional[AudioProbe] = None,
        template_library: Optional[TemplateLibrary] = None,
        params: Optional[ImportParams] = None,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        self.grid = grid
        self.document = document
        self.book_folder = Path(book_folder) if book_folder else (document.folder or Path("."))
        self.spreadsheet_folder = Path(spreadsheet_folder) if spreadsheet_folder else Path(".")
        self.params = params or ImportParams()
        self.progress = progress or TqdmProgress()
        self.template_library = template_library or TemplateLibrary.default(
            [lang for lang in grid.languages if lang != WILDCARD_LANGUAGE]
        )
        self.audio = AudioImporter(
            sentence_splitter or RegexSentenceSplitter(),
            audio_probe or Mp3AudioProbe(),
            self.spreadsheet_folder,
            self.book_folder,
        )
        self.warnings: list[str] = []
        self._pages_inserted = 0

    # ------------------------------------------------------------------
    # API publique
    # ------------------------------------------------------------------

    def import_grid(self) -> list[str]:
        """Version synchrone de run()."""
        return asyncio.run(self.run())

    async def run(self) -> list[str]:
        """
        Importe la grille dans le document.

        Returns:
            Avertissements, dans l'ordre où ils ont été produits

        Raises:
            GridContractError: Grille sans colonne [row type] ou livre sans
                bloomDataDiv
        """
        if self.grid.column_for_tag(ColumnTag(ColumnKind.ROW_TYPE)) is None:
            raise GridContractError("The spreadsheet has no [row type] column")
        if self.document.data_div is None:
            raise GridContractError("The book has no bloomDataDiv")

        self.warnings = []
        self._pages_inserted = 0
        logger.info(
            f"🚀 Import de {len(self.grid.content_rows)} ligne(s) "
            f"({', '.join(self.grid.languages) or 'aucune langue'})"
        )

        await self._import_metadata()

        groups = group_rows(
            self.grid, [r for r in self.grid.content_rows if r.kind in PAGE_ROW_KINDS]
        )
        pages = self.document.content_pages()
        used: set[int] = set()
        anchor: Optional[Tag] = None

        self.progress.start(len(groups), "Import des pages")
        try:
            for group in groups:
                if self.params.is_cancelled():
                    self.progress.message("Import cancelled.", INFO)
                    break
                anchor = await self._import_group(group, pages, used, anchor)
                self.progress.advance()
        finally:
            self.progress.finish()

        for page in pages:
            if id(page.element) not in used and any(page.capacity().values()):
                self._warn(f"No input found for page {page.number}; it was not updated.")

        if self._pages_inserted:
            self._renumber_pages()

        logger.info(f"✅ Import terminé ({len(self.warnings)} avertissement(s))")
        return self.warnings

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def _warn(self, text: str) -> None:
        self.warnings.append(text)
        self.progress.message(text, WARNING)

    # ------------------------------------------------------------------
    # Métadonnées
    # ------------------------------------------------------------------

    async def _import_metadata(self) -> None:
        updater = DataDivUpdater(
            self.document,
            self.grid,
            self.audio,
            self.book_folder,
            self.spreadsheet_folder,
            self.params,
            self._warn,
        )
        for row in self.grid.content_rows:
            kind = row.kind
            if kind is RowKind.BOOK_METADATA:
                await updater.update(row, row.data_book_key)
            elif kind is RowKind.UNKNOWN and row.metadata_key:
                logger.debug(f"Ligne ignorée : {row.metadata_key}")

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def _import_group(
        self,
        group: RowGroup,
        pages: list[PageInfo],
        used: set[int],
        anchor: Optional[Tag],
    ) -> Optional[Tag]:
        """
        Place un groupe de lignes.

        Returns:
            Dernière page remplie ou insérée (point d'insertion des groupes
            sans numéro qui suivent)
        """
        if not group.page_number:
            if anchor is None:
                anchor = pages[-1].element if pages else None
            return await self._insert_pages(anchor, group.rows)

        page = next(
            (p for p in pages if p.number == group.page_number and id(p.element) not in used), None
        )
        if page is None:
            self._warn(str(PageNotFound(group.page_number)))
            return anchor
        used.add(id(page.element))

        if page_accepts(page, self.grid, group.rows):
            await self._fill_page(page, group.rows)
            return page.element

        self._warn(
            f"Page {page.number} could not hold the content of its rows; it was left "
            "unchanged and the content was placed on new page(s)"
        )
        return await self._insert_pages(page.element, group.rows)

    async def _fill_page(self, page: PageInfo, rows: list[ContentRow]) -> None:
        counters = SlotCounters(page)
        for row in rows:
            for kind in row_slot_kinds(self.grid, row):
                slot, index = counters.take(kind)
                if slot is not None:
                    await self._write_slot(slot, index, row, page.number)
        self._finish_page(counters)

    def _finish_page(self, counters: SlotCounters) -> None:
        """
        Signale les débordements de la page et retire "correct-answer" des
        réponses de quiz qu'aucune ligne n'a remplies.
        """
        for slot in counters.untaken(SlotKind.TEXT):
            if isinstance(slot, QuizAnswer) and slot.group.parent is not None:
                remove_class(slot.group.parent, CORRECT_ANSWER_CLASS)
        for kind, blocks in counters.overflow.items():
            if blocks:
                self._warn(str(PageCapacityExceeded(counters.page.number, kind.value, blocks)))

    async def _insert_pages(self, anchor: Optional[Tag], rows: list[ContentRow]) -> Optional[Tag]:
        """
        Crée autant de pages modèles que nécessaire après anchor pour
        recevoir les lignes.

        Une nouvelle page commence quand un type d'emplacement demandé par la
        ligne est épuisé, ou quand la ligne demande un autre [page type].
        """
        counters: Optional[SlotCounters] = None
        for position, row in enumerate(rows):
            kinds = row_slot_kinds(self.grid, row)
            if not kinds:
                continue
            requested = requested_page_type(self.grid, row)
            if counters is not None and (
                counters.exhausted(kinds)
                or (requested and not counters.page.matches_type(requested))
            ):
                self._finish_page(counters)
                counters = None
            if counters is None:
                page = self._new_page(anchor, row, rows[position:])
                if page is None:
                    continue
                anchor = page.element
                counters = SlotCounters(page)

            for kind in kinds:
                slot, index = counters.take(kind)
                if slot is not None:
                    await self._write_slot(slot, index, row, counters.page.number)
        if counters is not None:
            self._finish_page(counters)
        return anchor

    def _choose_template(self, row: ContentRow, remaining: list[ContentRow]) -> Optional[PageInfo]:
        """
        Modèle d'une nouvelle page : le [page type] de la ligne s'il peut en
        recevoir les données, sinon le modèle le mieux adapté aux lignes
        restantes (jusqu'au prochain [page type] explicite).
        """
        requested = requested_page_type(self.grid, row)
        if requested:
            template = self.template_library.find(requested)
            kinds = row_slot_kinds(self.grid, row)
            if template is not None and any(template.capacity()[k] for k in kinds):
                return template
            self._warn(str(PageTypeUnusable(self.grid.row_number(row), requested)))

        following = [row]
        for other in remaining[1:]:
            if requested_page_type(self.grid, other):
                break
            following.append(other)
        return self.template_library.best_template_for(needed_slots(self.grid, following))

    def _new_page(
        self, anchor: Optional[Tag], row: ContentRow, remaining: list[ContentRow]
    ) -> Optional[PageInfo]:
        template = self._choose_template(row, remaining)
        element = None
        if template is not None:
            key = template.element.get("id") or template.label
            element = self.template_library.resolve_template_page(key)
        if template is None or element is None:
            self._warn(
                f"Could not find a template page for row {self.grid.row_number(row)}; "
                "its content was not imported."
            )
            return None

        element["id"] = str(uuid.uuid4())
        element[PAGE_LINEAGE_ATTR] = template.element.get("id") or template.lineage
        element[PAGE_NUMBER_ATTR] = self._next_page_number(anchor)
        if anchor is not None:
            anchor.insert_after(element)
        else:
            container = self.document.soup.body or self.document.soup
            container.append(element)
        self._pages_inserted += 1
        logger.info(f"📄 Page insérée ({template.label or template.lineage})")
        return classify_page(element)

    def _next_page_number(self, anchor: Optional[Tag]) -> str:
        number = (anchor.get(PAGE_NUMBER_ATTR) or "") if anchor is not None else ""
        if number.isdigit():
            return str(int(number) + 1)
        return str(self.document.last_page_number() + 1)

    def _renumber_pages(self) -> None:
        """Renumérote les pages numérotées dans l'ordre du document."""
        numbered = [
            p for p in self.document.page_elements() if (p.get(PAGE_NUMBER_ATTR) or "").strip()
        ]
        if not numbered:
            return
        first = numbered[0].get(PAGE_NUMBER_ATTR).strip()
        start = int(first) if first.isdigit() else 1
        for offset, element in enumerate(numbered):
            element[PAGE_NUMBER_ATTR] = str(start + offset)
        logger.debug(f"🔢 {len(numbered)} page(s) renumérotée(s)")

    # ------------------------------------------------------------------
    # Emplacements
    # ------------------------------------------------------------------

    async def _write_slot(self, slot, index: int, row: ContentRow, page_number: str) -> None:
        if isinstance(slot, TextBlock):
            await self._write_text(slot, index, row, page_number)
        elif isinstance(slot, Image):
            self._write_image(slot, index, row, page_number)
        elif isinstance(slot, Video):
            self._write_video(slot, row, page_number)
        elif isinstance(slot, Widget):
            self._write_widget(slot, row, page_number)

    async def _write_text(self, block: TextBlock, index: int, row: ContentRow, page_number: str) -> None:
        group = block.group
        where = f"on page {page_number}"
        for lang in self.grid.languages:
            if lang == WILDCARD_LANGUAGE:
                continue
            content = row.text(self.grid.column_for_lang(lang))
            if not content.strip():
                continue
            editable = editable_in_lang(group, lang)
            if editable is None:
                model = editable_in_lang(group, TEMPLATE_LANG) or editable_in_lang(group, None)
                if model is None:
                    self._warn(
                        f"Could not import text group {index} on page {page_number} because "
                        "it has no bloom-editable children to use as templates."
                    )
                    return
                editable = copy.copy(model)
                if editable.has_attr("id"):
                    del editable["id"]
                editable["lang"] = lang
                group.append(editable)

            if is_blank(content):
                set_inner_html(editable, "<p></p>")
            else:
                set_inner_html(editable, markup_for_editable(content, self.params.retain_markup))

            for warning in await self.audio.import_audio(
                editable,
                lang,
                row.text(self.grid.audio_column_for_lang(lang)),
                row.text(self.grid.alignment_column_for_lang(lang)),
                where,
            ):
                self._warn(warning)

        if self.params.remove_other_languages:
            remove_other_languages(group, self.grid.languages, TEMPLATE_LANG)
        self._apply_attribute_data(block, row)

    def _apply_attribute_data(self, block: TextBlock, row: ContentRow) -> None:
        """
        Colonne [attribute data] : "../class=X" ajoute la classe X au parent
        du groupe. Une réponse de quiz sans cette instruction n'est pas
        correcte.
        """
        data = self.grid.cell(row, ColumnTag(ColumnKind.ATTRIBUTE_DATA))
        parent = block.group.parent
        if isinstance(block, QuizAnswer) and parent is not None:
            remove_class(parent, CORRECT_ANSWER_CLASS)
        for item in data.split():
            if item.startswith(PARENT_CLASS_PREFIX) and parent is not None:
                for name in item[len(PARENT_CLASS_PREFIX) :].split(","):
                    if name:
                        add_class(parent, name)
            else:
                logger.debug(f"Attribut ignoré : {item}")

    def _write_image(self, image: Image, index: int, row: ContentRow, page_number: str) -> None:
        source = self.grid.cell(row, ColumnTag(ColumnKind.IMAGE_SOURCE)).strip()
        if not source:
            return
        img = image.img
        if img is None:
            self._warn(
                f"Could not import image {index} on page {page_number}, img element "
                "missing from book html."
            )
            return

        file_name = PLACEHOLDER_IMAGE if is_blank(source) else Path(source).name
        if unquote(img.get("src") or "") == file_name:
            # image inchangée
            return
        if not is_blank(source):
            path = resolve_media(self.spreadsheet_folder, source)
            if path is None or not path.is_file():
                self._warn(f"Could not find image {source} for page {page_number}")
                return
            copy_into_book(path, self.book_folder / file_name)

        # les anciens attributs (droits, dimensions...) ne valent plus
        container = image.container
        container_class = container.get("class")
        container.attrs = {"class": container_class} if container_class else {}
        img.attrs = {"src": quote(file_name)}

    def _write_video(self, video: Video, row: ContentRow, page_number: str) -> None:
        source = self.grid.cell(row, ColumnTag(ColumnKind.VIDEO_SOURCE)).strip()
        if not source:
            return
        path = resolve_media(self.spreadsheet_folder, source)
        if path is None or not path.is_file():
            self._warn(str(MissingMediaFile(source, media="video", where=f"on page {page_number}")))
            return
        copy_into_book(path, self.book_folder / source)

        tag = video.source
        if tag is None:
            player = video.container.find("video")
            if player is None:
                player = self.document.new_tag("video")
                video.container.append(player)
            tag = self.document.new_tag("source")
            player.append(tag)
        tag["src"] = quote(source)
        remove_class(video.container, NO_VIDEO_SELECTED_CLASS)

    def _write_widget(self, widget: Widget, row: ContentRow, page_number: str) -> None:
        source = self.grid.cell(row, ColumnTag(ColumnKind.WIDGET_SOURCE)).strip()
        if not source:
            return
        path = resolve_media(self.spreadsheet_folder, source)
        if path is None:
            self._warn(str(MissingMediaFile(source, media="activity", where=f"on page {page_number}")))
            return
        # tout le dossier de l'activité accompagne sa page d'entrée
        top = activity_folder(source)
        folder = Path(SpreadsheetLabels.Activities_Folder) / top if top else None
        if folder is not None and (self.spreadsheet_folder / folder).is_dir():
            copy_into_book(self.spreadsheet_folder / folder, self.book_folder / folder)
        else:
            copy_into_book(path, self.book_folder / source)

        iframe = widget.iframe
        if iframe is None:
            iframe = self.document.new_tag("iframe")
            widget.container.append(iframe)
        iframe["src"] = quote(source)


def import_spreadsheet(
    grid: Grid,
    document: BookDocument,
    book_folder: Union[str, Path, None] = None,
    spreadsheet_folder: Union[str, Path, None] = None,
    **kwargs,
) -> list[str]:
    """Raccourci : construit un SpreadsheetImporter et lance l'import."""
    return SpreadsheetImporter(grid, document, book_folder, spreadsheet_folder, **kwargs).import_grid()
