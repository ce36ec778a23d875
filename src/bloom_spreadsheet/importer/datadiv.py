"""
Mise à jour du bloomDataDiv depuis les lignes de métadonnées ([bookTitle],
[coverImage], [ISBN]...).
"""

import copy
from pathlib import Path
from typing import Callable

from bs4.element import Tag

from ..config import ImportParams, SpreadsheetLabels
from ..document import BookDocument
from ..document.constants import (
    DATA_BOOK_ATTR,
    DATA_DIV_IMAGES_WITHOUT_SRC,
    PLACEHOLDER_IMAGE,
    TEMPLATE_LANG,
)
from ..document.dom import set_inner_html
from ..exceptions import MissingMediaFile
from ..grid import WILDCARD_LANGUAGE, ColumnKind, ColumnTag, ContentRow, Grid
from ..logger import get_logger
from ..markup import markup_for_field
from .audio_import import AudioImporter
from .media import copy_into_book, resolve_media
from .placement import is_blank

logger = get_logger(__name__)


class DataDivUpdater:
    """
    Applique une ligne de métadonnées au data div.

    - ligne image (colonne [image source] renseignée) : un champ lang="*"
      dont le texte est le nom du fichier (et src, sauf clés sans src) ;
      l'image est copiée dans le livre
    - ligne texte : pour chaque langue, le premier champ
      div[data-book=clé][lang] est mis à jour (ou créé depuis un champ
      existant) ; une cellule vide supprime le champ de cette langue

    Args:
        document: Livre importé
        grid: Grille lue
        audio: Import de l'audio des champs
        book_folder: Dossier du livre
        spreadsheet_folder: Dossier du tableur
        params: Paramètres d'import
        warn: Fonction de report des avertissements
    """

    def __init__(
        self,
        document: BookDocument,
        grid: Grid,
        audio: AudioImporter,
        book_folder: Path,
        spreadsheet_folder: Path,
        params: ImportParams,
        warn: Callable[[str], None],
    ) -> None:
        self.document = document
        self.grid = grid
        self.audio = audio
        self.book_folder = book_folder
        self.spreadsheet_folder = spreadsheet_folder
        self.params = params
        self.warn = warn

    @property
    def data_div(self) -> Tag:
        return self.document.data_div

    def _template_node(self, key: str) -> Tag:
        matching = self.document.data_book_elements(key)
        if matching:
            return matching[0]
        return self.document.new_tag("div", **{DATA_BOOK_ATTR: key})

    def _new_node(self, template: Tag, lang: str) -> Tag:
        node = copy.copy(template)
        node["lang"] = lang
        if node.has_attr("id"):
            del node["id"]
        self.data_div.append(node)
        return node

    async def update(self, row: ContentRow, key: str) -> None:
        image_source = self.grid.cell(row, ColumnTag(ColumnKind.IMAGE_SOURCE)).strip()
        if image_source:
            self._update_image(key, image_source)
        else:
            await self._update_text(row, key)

    def _update_image(self, key: str, image_source: str) -> None:
        if is_blank(image_source):
            file_name = PLACEHOLDER_IMAGE
        else:
            file_name = Path(image_source).name
            source = resolve_media(self.spreadsheet_folder, image_source)
            if source is None:
                self.warn(str(MissingMediaFile(image_source, media="image", where=f"for {key}")))
            else:
                copy_into_book(source, self.book_folder / file_name)

        template = self._template_node(key)
        nodes = [n for n in self.document.data_book_elements(key) if n.get("lang") == "*"]
        node = nodes[0] if nodes else self._new_node(template, "*")
        node.string = file_name
        if key not in DATA_DIV_IMAGES_WITHOUT_SRC:
            node["src"] = file_name
        logger.debug(f"🖼️ {key} = {file_name}")

    async def _update_text(self, row: ContentRow, key: str) -> None:
        if f"[{key}]" == SpreadsheetLabels.Cover_Image_Row:
            self.warn("No cover image found")

        template = copy.copy(self._template_node(key))
        languages = self.grid.languages
        wildcard_found = False
        specific_found = False
        for lang in languages:
            content = row.text(self.grid.column_for_lang(lang))
            nodes = [n for n in self.document.data_book_elements(key) if n.get("lang") == lang]
            if not content.strip():
                for node in nodes:
                    node.decompose()
                continue

            if lang == WILDCARD_LANGUAGE:
                wildcard_found = True
            else:
                specific_found = True

            if nodes:
                node = nodes[0]
                if len(nodes) > 1:
                    self.warn(
                        f"Found more than one {key} element for language {lang} in the "
                        "book dom. Only the first will be updated."
                    )
            else:
                node = self._new_node(template, lang)
            markup = "" if is_blank(content) else markup_for_field(content, self.params.retain_markup)
            set_inner_html(node, markup)

            for warning in await self.audio.import_audio(
                node,
                lang,
                row.text(self.grid.audio_column_for_lang(lang)),
                row.text(self.grid.alignment_column_for_lang(lang)),
                f"for {key}",
            ):
                self.warn(warning)

        if self.params.remove_other_languages:
            kept = set(languages)
            for node in self.document.data_book_elements(key):
                lang = node.get("lang") or ""
                if lang and lang != TEMPLATE_LANG and lang not in kept:
                    node.decompose()

        if wildcard_found and specific_found:
            self.warn(
                f"{key} information found in both * language column and other "
                "language column(s)"
            )
