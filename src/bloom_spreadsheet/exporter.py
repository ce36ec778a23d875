"""
Export d'un livre Bloom vers la grille du tableur.

Le livre est parcouru une seule fois :
1. le bloomDataDiv donne une ligne par clé data-book exportée ([bookTitle],
   [coverImage], [ISBN]...)
2. chaque page numérotée donne une ligne par élément de contenu, dans
   l'ordre de classify_page() : [textgroup], [image] ou [page content]
   (vidéo, widget)

Les médias référencés (images, audio, vidéos, dossiers d'activités) sont
copiés vers le dossier d'export par un pool de threads une fois la grille
construite ; une copie en échec devient un avertissement.
"""

import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote

from bs4.element import Tag
from PIL import Image as PILImage
from PIL import UnidentifiedImageError
from tqdm import tqdm

from .config import ExportParams, SpreadsheetLabels
from .document import BookDocument, Image, PageInfo, QuizAnswer, TextBlock, Video, Widget
from .document.constants import (
    AUDIO_DURATION_ATTR,
    AUDIO_END_TIMES_ATTR,
    AUDIO_SENTENCE_CLASS,
    CORRECT_ANSWER_CLASS,
    DATA_BOOK_ATTR,
    DATA_DIV_IMAGES_WITHOUT_SRC,
    PLACEHOLDER_IMAGE,
    TEMPLATE_LANG,
)
from .document.dom import editables, has_class, inner_html
from .grid import ColumnKind, ColumnTag, ContentRow, Grid
from .languages import LanguageDisplayNames, StaticLanguageNames
from .logger import get_logger
from .markup import serialize_fragment
from .progress import ERROR, INFO, WARNING, ProgressSink, TqdmProgress
from .xlsx import write_spreadsheet

logger = get_logger(__name__)

CORRECT_ANSWER_ATTRIBUTE = f"../class={CORRECT_ANSWER_CLASS}"

# Statuts affichés à la place d'une vignette
THUMBNAIL_MISSING = "Missing"
THUMBNAIL_SVG = "Can't display SVG"
THUMBNAIL_BAD_FILE = "Bad image file"


@dataclass(frozen=True)
class MediaCopy:
    """Copie d'un fichier (ou d'un dossier) vers le dossier d'export."""

    source: Path
    destination: Path
    folder: bool = False


class SpreadsheetExporter:
    """
    Construit la grille d'un livre et, optionnellement, le dossier d'export.

    Args:
        language_names: Résolveur des noms affichés des langues
        progress: Retour de progression (défaut : TqdmProgress)
        params: Paramètres d'export

    Example:
        >>> exporter = SpreadsheetExporter(StaticLanguageNames())
        >>> grid = exporter.export(BookDocument.load("MonLivre/MonLivre.htm"))
        >>> [c.tag.label for c in grid.columns][:3]
        ['[row type]', '[page number]', '[text index on page]']
    """

    def __init__(
        self,
        language_names: Optional[LanguageDisplayNames] = None,
        progress: Optional[ProgressSink] = None,
        params: Optional[ExportParams] = None,
    ) -> None:
        self.language_names = language_names or StaticLanguageNames()
        self.progress = progress or TqdmProgress()
        self.params = params or ExportParams()
        self.warnings: list[str] = []
        self._grid = Grid()
        self._book_folder: Optional[Path] = None
        self._output_folder: Optional[Path] = None
        self._copies: dict[Path, MediaCopy] = {}

    # ------------------------------------------------------------------
    # API publique
    # ------------------------------------------------------------------

    def export(
        self,
        document: BookDocument,
        book_folder: Union[str, Path, None] = None,
    ) -> Grid:
        """
        Construit la grille du livre.

        Args:
            document: Livre à exporter
            book_folder: Dossier du livre (défaut : dossier du fichier chargé)

        Returns:
            Grille complète, lignes cachées en fin de tableau
        """
        self._grid = Grid()
        self._grid.retain_markup = self.params.retain_markup
        self.warnings = []
        self._copies = {}
        folder = book_folder if book_folder is not None else document.folder
        self._book_folder = Path(folder) if folder is not None else None

        data_div = document.data_div
        if data_div is not None:
            self._add_data_div_rows(data_div)

        pages = document.content_pages()
        logger.info(f"📄 Export de {len(pages)} page(s)")
        for i, page in enumerate(pages):
            color = (
                SpreadsheetLabels.Alternating_Color_1
                if i % 2 == 0
                else SpreadsheetLabels.Alternating_Color_2
            )
            self._add_page_rows(page, color)

        self._grid.sort_hidden_rows_to_bottom()
        logger.info(
            f"✅ Grille construite : {len(self._grid.content_rows)} ligne(s), "
            f"{self._grid.column_count} colonne(s)"
        )
        return self._grid

    def export_to_folder(
        self,
        document: BookDocument,
        book_folder: Union[str, Path, None],
        output_folder: Union[str, Path],
        overwrite: bool = False,
    ) -> Optional[Path]:
        """
        Exporte le livre dans un dossier : <dossier>/<nom du dossier>.xlsx
        et les sous-dossiers de médias.

        Args:
            document: Livre à exporter
            book_folder: Dossier du livre
            output_folder: Dossier d'export (remplacé s'il existe et que
                overwrite est vrai)
            overwrite: Autoriser le remplacement d'un export précédent

        Returns:
            Chemin du fichier xlsx, None si l'export a été refusé ou a échoué
        """
        output_folder = Path(output_folder)
        if output_folder.exists():
            if not overwrite:
                self._report(
                    f"Output folder ({output_folder}) exists. Use --overwrite to overwrite.",
                    WARNING,
                )
                return None
            if any(output_folder.glob("*.htm")):
                self._report(
                    f"Output folder ({output_folder}) exists and appears to be a Bloom book, "
                    "not a previous export. If you really mean to export there, you'll have "
                    "to delete the folder first.",
                    WARNING,
                )
                return None

        output_path = output_folder / f"{output_folder.name}.xlsx"
        try:
            if output_folder.exists():
                shutil.rmtree(output_folder)
            (output_folder / SpreadsheetLabels.Images_Folder).mkdir(parents=True)
            grid = self.export(document, book_folder)
            self._output_folder = output_folder
            self._run_copies()
            write_spreadsheet(grid, output_path, image_folder=output_folder)
        except PermissionError as e:
            logger.debug(f"Écriture impossible dans {output_folder} : {e}")
            self._report(
                f"Could not write files to that location ({output_folder}). "
                "Check that you have permission to write there.",
                ERROR,
            )
            return None
        finally:
            self._output_folder = None
        logger.info(f"✅ Export terminé : {output_path}")
        return output_path

    # ------------------------------------------------------------------
    # Data div
    # ------------------------------------------------------------------

    def _add_data_div_rows(self, data_div: Tag) -> None:
        elements = data_div.find_all("div", attrs={DATA_BOOK_ATTR: True}, recursive=False)
        elements.sort(key=lambda e: e.get(DATA_BOOK_ATTR) or "")

        row: Optional[ContentRow] = None
        previous_key: Optional[str] = None
        for element in elements:
            lang = element.get("lang") or ""
            key = (element.get(DATA_BOOK_ATTR) or "").strip()
            if lang in ("", TEMPLATE_LANG):
                continue
            if "branding" in key or key == "licenseImage":
                continue
            if key not in self.params.metadata_keys:
                logger.debug(f"Clé data-book ignorée : {key}")
                continue

            is_image = _is_data_div_image(element, key)
            if key != previous_key:
                previous_key = key
                row = self._grid.add_row()
                label = f"[{key}]"
                row.hidden = label not in (
                    SpreadsheetLabels.Book_Title_Row,
                    SpreadsheetLabels.Cover_Image_Row,
                )
                if row.hidden:
                    row.background_color = SpreadsheetLabels.Hidden_Color
                self._grid.set_cell(row, ColumnTag(ColumnKind.ROW_TYPE), label)
                if is_image:
                    self._add_data_div_image(row, element, key)
                    continue
            elif is_image:
                self._report(
                    f"Export warning: Found multiple elements for image element {key}. "
                    "Only the first will be exported.",
                    WARNING,
                )
                continue

            assert row is not None
            index = self._language_column(lang)
            row.set_cell(
                index,
                serialize_fragment(inner_html(element).strip(), self.params.retain_markup),
            )
            self._export_audio(element, row)

    def _add_data_div_image(self, row: ContentRow, element: Tag, key: str) -> None:
        src = unquote((element.get("src") or "").strip())
        text = element.get_text().strip()
        if src and text and src != text:
            self._report(
                "Export warning: Found differing 'src' attribute and element text for "
                f"data-div element {key}. The 'src' attribute will be ignored.",
                WARNING,
            )
        child_images = element.find_all("img", recursive=False)
        child_src = next((img.get("src") for img in child_images if img.get("src")), "")
        if child_src:
            if len(child_images) > 1:
                self._report(
                    f"Export warning: Found multiple images in data-book element {key}. "
                    "Only the first will be exported.",
                    WARNING,
                )
            source = unquote(child_src)
        else:
            source = text or src
        if not source:
            return
        self._set_image(row, source)

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def _add_page_rows(self, page: PageInfo, color: str) -> None:
        page_type = page.label
        for position, content in enumerate(page.contents, start=1):
            row = self._grid.add_row()
            row.background_color = color
            if isinstance(content, TextBlock):
                label = SpreadsheetLabels.Text_Group_Row
            elif isinstance(content, Image):
                label = SpreadsheetLabels.Image_Row
            else:
                label = SpreadsheetLabels.Page_Content_Row
            self._grid.set_cell(row, ColumnTag(ColumnKind.ROW_TYPE), label)
            self._grid.set_cell(row, ColumnTag(ColumnKind.PAGE_NUMBER), page.number)
            self._grid.set_cell(row, ColumnTag(ColumnKind.INDEX_ON_PAGE), str(position))
            if page_type:
                # seule la première ligne de la page porte son type
                self._grid.set_cell(row, ColumnTag(ColumnKind.PAGE_TYPE), page_type)
                page_type = ""

            if isinstance(content, TextBlock):
                self._write_text_block(content, row)
            elif isinstance(content, Image):
                self._set_image(row, content.src or PLACEHOLDER_IMAGE)
            elif isinstance(content, Video):
                self._write_video(content, row)
            elif isinstance(content, Widget):
                self._write_widget(content, row)

    def _write_text_block(self, block: TextBlock, row: ContentRow) -> None:
        for editable in editables(block.group):
            lang = editable.get("lang") or ""
            if lang in ("", TEMPLATE_LANG):
                continue
            index = self._language_column(lang)
            if not editable.get_text().strip():
                content = SpreadsheetLabels.Blank_Content_Indicator
            else:
                content = serialize_fragment(inner_html(editable), self.params.retain_markup)
            row.set_cell(index, content)
            self._export_audio(editable, row)
        if isinstance(block, QuizAnswer) and block.correct:
            self._grid.set_cell(
                row, ColumnTag(ColumnKind.ATTRIBUTE_DATA), CORRECT_ANSWER_ATTRIBUTE
            )

    def _set_image(self, row: ContentRow, source: str) -> None:
        file_name = Path(unquote(source)).name
        if file_name == PLACEHOLDER_IMAGE:
            self._grid.set_cell(
                row,
                ColumnTag(ColumnKind.IMAGE_SOURCE),
                SpreadsheetLabels.Blank_Content_Indicator,
            )
            return
        self._grid.set_cell(
            row,
            ColumnTag(ColumnKind.IMAGE_SOURCE),
            f"{SpreadsheetLabels.Images_Folder}/{file_name}",
        )
        if self._book_folder is None:
            return
        image_path = self._book_folder / unquote(source)
        hint = _thumbnail_status(image_path)
        if hint is not None:
            self._grid.set_hint(row, ColumnTag(ColumnKind.IMAGE_THUMBNAIL), hint)
        if hint == THUMBNAIL_MISSING:
            self._report(
                f"Export warning: did not find the image {image_path}. "
                "It will be missing from the export folder.",
                WARNING,
            )
            return
        self._queue_copy(image_path, Path(SpreadsheetLabels.Images_Folder) / file_name)

    def _write_video(self, video: Video, row: ContentRow) -> None:
        source = unquote(video.src)
        self._grid.set_cell(row, ColumnTag(ColumnKind.VIDEO_SOURCE), source)
        if source and self._book_folder is not None:
            self._queue_copy(self._book_folder / source, Path(source))

    def _write_widget(self, widget: Widget, row: ContentRow) -> None:
        source = unquote(widget.src)
        self._grid.set_cell(row, ColumnTag(ColumnKind.WIDGET_SOURCE), source)
        if not source or self._book_folder is None:
            return
        top = activity_folder(source)
        if top is None:
            return
        relative = Path(SpreadsheetLabels.Activities_Folder) / top
        self._queue_copy(self._book_folder / relative, relative, folder=True)

    # ------------------------------------------------------------------
    # Audio
    # ------------------------------------------------------------------

    def _export_audio(self, element: Tag, row: ContentRow) -> None:
        """
        Écrit les colonnes audio d'un élément (bloom-editable ou champ du
        data div).

        - mode bloc (TextBox) : un seul fichier, et l'alignement (fin de
          chaque phrase, ou durée totale si le bloc n'est pas découpé)
        - mode phrase (Sentence) : un fichier par phrase, "missing" pour les
          phrases non enregistrées ; rien si aucune ne l'est
        """
        lang = element.get("lang") or ""
        if has_class(element, AUDIO_SENTENCE_CLASS):
            path = self._audio_file(element)
            if path == SpreadsheetLabels.Missing_Audio:
                return
            end_times = element.get(AUDIO_END_TIMES_ATTR) or ""
            alignment = end_times or element.get(AUDIO_DURATION_ATTR) or ""
            row.set_cell(self._audio_column(lang), path)
            row.set_cell(self._alignment_column(lang), alignment)
            return

        sentences = [
            span
            for span in element.find_all("span")
            if has_class(span, AUDIO_SENTENCE_CLASS)
        ]
        paths = [self._audio_file(span) for span in sentences]
        if any(p != SpreadsheetLabels.Missing_Audio for p in paths):
            row.set_cell(self._audio_column(lang), ", ".join(paths))

    def _audio_file(self, element: Tag) -> str:
        id_ = element.get("id") or ""
        relative = Path(SpreadsheetLabels.Audio_Folder) / f"{id_}.mp3"
        if self._book_folder is not None:
            source = self._book_folder / relative
            if not id_ or not source.is_file():
                # page préparée pour l'enregistrement mais pas encore enregistrée
                return SpreadsheetLabels.Missing_Audio
            self._queue_copy(source, relative)
        return f"./{relative.as_posix()}"

    # ------------------------------------------------------------------
    # Colonnes
    # ------------------------------------------------------------------

    def _language_column(self, lang: str) -> int:
        index = self._grid.column_for_lang(lang)
        if index is not None:
            return index
        return self._grid.add_column_for_tag(
            ColumnTag.language(lang), self.language_names.get_language_display_name(lang)
        )

    def _audio_column(self, lang: str) -> int:
        name = self.language_names.get_language_display_name(lang)
        return self._grid.add_column_for_tag(ColumnTag.audio(lang), f"{name} audio")

    def _alignment_column(self, lang: str) -> int:
        name = self.language_names.get_language_display_name(lang)
        return self._grid.add_column_for_tag(ColumnTag.alignment(lang), f"{name} alignments")

    # ------------------------------------------------------------------
    # Copie des médias
    # ------------------------------------------------------------------

    def _queue_copy(self, source: Path, relative: Path, folder: bool = False) -> None:
        # une seule copie par destination
        if relative not in self._copies:
            self._copies[relative] = MediaCopy(source, relative, folder)

    def _run_copies(self) -> None:
        assert self._output_folder is not None
        jobs = list(self._copies.values())
        if not jobs:
            return
        logger.info(f"📦 Copie de {len(jobs)} média(s) vers {self._output_folder}")
        with tqdm(
            total=len(jobs),
            desc="Copie des médias",
            unit="fichier",
            ncols=100,
            bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]",
        ) as pbar:
            with ThreadPoolExecutor(max_workers=self.params.max_copy_workers) as executor:
                futures = {executor.submit(self._copy, job): job for job in jobs}
                for future in as_completed(futures):
                    job = futures[future]
                    try:
                        future.result()
                    except OSError as e:
                        what = "folder" if job.folder else "file"
                        self._report(
                            f"Had trouble copying the {what} {job.source} to the "
                            f"{job.destination.parts[0]} folder: {e}",
                            WARNING,
                        )
                    pbar.update(1)

    def _copy(self, job: MediaCopy) -> None:
        assert self._output_folder is not None
        destination = self._output_folder / job.destination
        destination.parent.mkdir(parents=True, exist_ok=True)
        if job.folder:
            shutil.copytree(job.source, destination, dirs_exist_ok=True)
        else:
            shutil.copy2(job.source, destination)
        logger.debug(f"Copié : {job.source} -> {destination}")

    def _report(self, text: str, kind: str = INFO) -> None:
        if kind != INFO:
            self.warnings.append(text)
        self.progress.message(text, kind)


def _is_data_div_image(element: Tag, key: str) -> bool:
    """
    Un champ du data div représente une image s'il a un attribut src, un
    enfant <img src> ou une clé connue sans src.
    """
    if (element.get("src") or "").strip():
        return True
    if any(img.get("src") for img in element.find_all("img", recursive=False)):
        return True
    return key in DATA_DIV_IMAGES_WITHOUT_SRC


def activity_folder(source: str) -> Optional[str]:
    """
    Premier dossier sous activities/ d'une source de widget.

    Example:
        >>> activity_folder("activities/balloon/index.html")
        'balloon'
    """
    parts = Path(source).parts
    if len(parts) < 3 or parts[0] != SpreadsheetLabels.Activities_Folder:
        return None
    return parts[1]


def _thumbnail_status(path: Path) -> Optional[str]:
    """Statut de vignette d'une image ; None si elle est affichable."""
    if not path.is_file():
        return THUMBNAIL_MISSING
    if path.suffix.lower() == ".svg":
        return THUMBNAIL_SVG
    try:
        with PILImage.open(path) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.debug(f"⚠️ Image illisible {path} : {e}")
        return THUMBNAIL_BAD_FILE
    return None
