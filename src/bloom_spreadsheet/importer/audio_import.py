"""
Import de l'audio d'un bloc de texte (bloom-editable ou champ du data div).

À partir des colonnes [audio xx] (fichiers) et [audio alignments xx]
(fins de phrases), l'élément reçoit l'un des deux balisages d'enregistrement
de Bloom :

- mode bloc (TextBox) : un seul fichier pour tout le bloc ; avec des
  alignements, le bloc est découpé en segments surlignables
  (span.bloom-highlightSegment) et data-audiorecordingendtimes liste la fin
  de chaque segment
- mode phrase (Sentence) : un fichier par phrase, chaque phrase dans un
  span.audio-sentence dont l'id est le nom du fichier

Tout balisage audio existant est d'abord retiré. Les problèmes de données
(fichier absent, nombres incohérents...) sont levés sous forme de
SpreadsheetError et transformés en avertissements par l'appelant ; l'audio du
bloc n'est alors pas importé (ou importé sans découpage pour les
alignements invalides).
"""

import hashlib
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from bs4.element import Tag

from ..audio import (
    AudioIdAllocator,
    AudioInfo,
    AudioProbe,
    SentenceSplitter,
    content_id,
    file_checksum,
)
from ..config import SpreadsheetLabels
from ..document.constants import (
    AUDIO_DURATION_ATTR,
    AUDIO_END_TIMES_ATTR,
    AUDIO_MD5_ATTR,
    AUDIO_MODE_ATTR,
    AUDIO_MODE_SENTENCE,
    AUDIO_MODE_TEXTBOX,
    AUDIO_SENTENCE_CLASS,
    HIGHLIGHT_SEGMENT_CLASS,
    POST_AUDIO_SPLIT_CLASS,
)
from ..document.dom import add_class, has_class, inner_html, remove_class, set_inner_html
from ..exceptions import (
    AlignmentCountMismatch,
    AlignmentValueInvalid,
    CountMismatch,
    InvalidMediaFile,
    MissingMediaFile,
    SpreadsheetError,
)
from ..logger import get_logger
from ..markup import SPLIT_MARKER_HTML, SPLIT_MARKER_TEXT, MarkedUpText, parse, serialize
from .media import copy_into_book, resolve_media

logger = get_logger(__name__)

_AUDIO_ATTRIBUTES = (AUDIO_MD5_ATTR, AUDIO_DURATION_ATTR, AUDIO_END_TIMES_ATTR, AUDIO_MODE_ATTR)


def format_seconds(value: float) -> str:
    """
    Durée telle qu'écrite dans les attributs (6 décimales au plus).

    Example:
        >>> format_seconds(3.9967)
        '3.9967'
    """
    return str(round(value, 6))


def text_md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def strip_audio(element: Tag) -> None:
    """Retire tout le balisage d'enregistrement d'un élément et de son contenu."""
    for span in element.find_all("span"):
        if has_class(span, AUDIO_SENTENCE_CLASS) or has_class(span, HIGHLIGHT_SEGMENT_CLASS):
            span.unwrap()
    for target in [element, *element.find_all(True)]:
        remove_class(target, AUDIO_SENTENCE_CLASS)
        remove_class(target, POST_AUDIO_SPLIT_CLASS)
        for attr in _AUDIO_ATTRIBUTES:
            if target.has_attr(attr):
                del target[attr]


@dataclass
class _Paragraph:
    element: Tag
    text: MarkedUpText
    sentences: list[str]
    # (début, fin) de chaque phrase dans le texte du paragraphe
    spans: list[tuple[int, int]]


@dataclass
class _Recording:
    path: Path
    info: AudioInfo


class AudioImporter:
    """
    Applique les colonnes audio d'une ligne à un élément.

    Args:
        sentence_splitter: Découpeur de phrases
        audio_probe: Lecteur de durée et de somme de contrôle
        spreadsheet_folder: Dossier du tableur (chemins ./audio/...)
        book_folder: Dossier du livre (destination audio/<id>.mp3)
    """

    def __init__(
        self,
        sentence_splitter: SentenceSplitter,
        audio_probe: AudioProbe,
        spreadsheet_folder: Path,
        book_folder: Path,
    ) -> None:
        self.splitter = sentence_splitter
        self.probe = audio_probe
        self.spreadsheet_folder = Path(spreadsheet_folder)
        self.book_folder = Path(book_folder)
        self.audio_folder = self.book_folder / SpreadsheetLabels.Audio_Folder
        self._checksums: dict[Path, str] = {}
        self.ids = AudioIdAllocator(self.audio_folder, self._existing_checksum)

    async def import_audio(
        self,
        element: Tag,
        lang: str,
        audio_cell: str,
        alignment_cell: str,
        where: str,
    ) -> list[str]:
        """
        Réconcilie l'audio d'un élément avec les cellules de la ligne.

        Args:
            element: bloom-editable (ou champ du data div) déjà mis à jour
            lang: Langue de l'élément
            audio_cell: Contenu de [audio xx]
            alignment_cell: Contenu de [audio alignments xx]
            where: Localisation pour les messages ("on page 3")

        Returns:
            Avertissements produits (vide si tout s'est bien passé)
        """
        strip_audio(element)
        files = [f.strip() for f in audio_cell.split(",") if f.strip()]
        if not files or not element.get_text().strip():
            return []
        if files == [SpreadsheetLabels.Missing_Audio]:
            return []

        warnings: list[str] = []
        alignment_cell = alignment_cell.strip()
        try:
            if len(files) > 1 and alignment_cell:
                raise AlignmentCountMismatch(audio_files=len(files), where=where)
            paragraphs = await self._paragraphs(element, lang, len(files), where)
            sentence_count = sum(len(p.sentences) for p in paragraphs)
            if len(files) == 1:
                recording = await self._recording(files[0], where)
                await self._text_box(
                    element, paragraphs, sentence_count, recording, alignment_cell, where, warnings
                )
            elif len(files) != sentence_count:
                raise CountMismatch(len(files), sentence_count, where=where)
            else:
                recordings = [
                    None if f == SpreadsheetLabels.Missing_Audio else await self._recording(f, where)
                    for f in files
                ]
                self._sentences(element, paragraphs, recordings)
        except SpreadsheetError as e:
            e.where = e.where or where
            strip_audio(element)
            warnings.append(str(e))
        return warnings

    # ------------------------------------------------------------------
    # Fichiers
    # ------------------------------------------------------------------

    async def _recording(self, cell_path: str, where: str) -> _Recording:
        path = resolve_media(self.spreadsheet_folder, cell_path)
        if path is None or not path.is_file():
            raise MissingMediaFile(cell_path, media="audio", where=where)
        try:
            info = await self.probe.probe_audio(path)
        except InvalidMediaFile as e:
            raise InvalidMediaFile(cell_path, reason=e.reason, where=where) from e
        return _Recording(path, info)

    def _existing_checksum(self, path: Path) -> str:
        if path not in self._checksums:
            self._checksums[path] = file_checksum(path)
        return self._checksums[path]

    def _install(self, recording: _Recording) -> str:
        """Copie l'enregistrement dans audio/ et retourne son id."""
        id_, reuse = self.ids.allocate(recording.path.name, recording.info.checksum)
        if not reuse:
            target = self.audio_folder / f"{id_}.mp3"
            copy_into_book(recording.path, target)
            self._checksums[target] = recording.info.checksum
        return id_

    # ------------------------------------------------------------------
    # Phrases
    # ------------------------------------------------------------------

    async def _paragraphs(
        self, element: Tag, lang: str, audio_files: int, where: str
    ) -> list[_Paragraph]:
        """
        Découpe les paragraphes de l'élément en phrases et les situe.

        Raises:
            CountMismatch: Une phrase rendue par le découpeur est introuvable
                dans le texte ; l'audio du bloc ne peut pas être placé
        """
        blocks = element.find_all("p", recursive=False) or [element]
        paragraphs = []
        located = 0
        for block in blocks:
            text = parse(inner_html(block))
            plain = text.plain_text
            sentences = await self.splitter.split_into_sentences(plain, lang) if plain.strip() else []
            spans = []
            cursor = 0
            for sentence in sentences:
                start = plain.find(sentence, cursor)
                if start < 0:
                    logger.debug(f"⚠️ Phrase introuvable dans le paragraphe : {sentence!r}")
                    raise CountMismatch(audio_files, located, where=where)
                cursor = start + len(sentence)
                spans.append((start, cursor))
                located += 1
            paragraphs.append(_Paragraph(block, text, sentences, spans))
        return paragraphs

    def _wrap(self, paragraph: _Paragraph, make_span) -> None:
        """
        Entoure chaque phrase d'un paragraphe d'un span.

        make_span(sentence) retourne le HTML d'ouverture du span de la
        phrase.
        """
        plain = paragraph.text.plain_text
        pieces: list[str] = []
        cursor = 0
        for sentence, (start, end) in zip(paragraph.sentences, paragraph.spans):
            pieces.append(_gap(paragraph.text.slice(cursor, start)))
            pieces.append(make_span(sentence))
            pieces.append(serialize(paragraph.text.slice(start, end)))
            pieces.append("</span>")
            cursor = end
        pieces.append(_gap(paragraph.text.slice(cursor, len(plain))))
        set_inner_html(paragraph.element, "".join(pieces))

    async def _text_box(
        self,
        element: Tag,
        paragraphs: list[_Paragraph],
        sentence_count: int,
        recording: _Recording,
        alignment_cell: str,
        where: str,
        warnings: list[str],
    ) -> None:
        duration = recording.info.duration
        end_times = None
        if alignment_cell:
            try:
                end_times = self._alignments(alignment_cell, sentence_count, duration, where)
            except SpreadsheetError as e:
                # l'audio reste importé, sans découpage
                warnings.append(str(e))

        id_ = self._install(recording)
        if end_times is not None and len(end_times) > 1:
            add_class(element, POST_AUDIO_SPLIT_CLASS)
            element[AUDIO_END_TIMES_ATTR] = " ".join(format_seconds(t) for t in end_times)
            counter = iter(range(sentence_count))
            for paragraph in paragraphs:
                self._wrap(
                    paragraph,
                    lambda sentence: (
                        f'<span id="{content_id(sentence, f"{id_}:{next(counter)}")}" '
                        f'class="{HIGHLIGHT_SEGMENT_CLASS}">'
                    ),
                )
        add_class(element, AUDIO_SENTENCE_CLASS)
        element["id"] = id_
        element[AUDIO_MODE_ATTR] = AUDIO_MODE_TEXTBOX
        element[AUDIO_DURATION_ATTR] = format_seconds(duration)
        element[AUDIO_MD5_ATTR] = text_md5(element.get_text())

    def _alignments(
        self, cell: str, sentence_count: int, duration: float, where: str
    ) -> Optional[list[float]]:
        """
        Valide une cellule d'alignement.

        Chaque valeur doit être un nombre fini, positif ou nul, et la liste
        strictement croissante.

        Returns:
            Fins de segments (la dernière ramenée à la durée), ou None pour
            un bloc non découpé (une seule valeur)
        """
        try:
            values = [float(v) for v in cell.replace(",", " ").split()]
        except ValueError:
            raise AlignmentValueInvalid(cell, where=where)
        if not all(math.isfinite(v) and v >= 0 for v in values):
            raise AlignmentValueInvalid(cell, where=where)
        if any(b <= a for a, b in zip(values, values[1:])):
            raise AlignmentValueInvalid(cell, where=where)
        if len(values) == 1 and sentence_count != 1:
            return None
        if len(values) != sentence_count:
            raise AlignmentCountMismatch(len(values), sentence_count, where=where)
        if any(v > duration for v in values[:-1]):
            raise AlignmentValueInvalid(cell, duration, where=where)
        values[-1] = min(values[-1], duration)
        return values

    def _sentences(
        self,
        element: Tag,
        paragraphs: list[_Paragraph],
        recordings: list[Optional[_Recording]],
    ) -> None:
        element[AUDIO_MODE_ATTR] = AUDIO_MODE_SENTENCE
        queue = iter(recordings)
        salt = element.get("id") or element.get("lang") or ""
        position = iter(range(len(recordings)))

        def make_span(sentence: str) -> str:
            index = next(position)
            recording = next(queue)
            if recording is None:
                return f'<span id="{content_id(sentence, f"{salt}:{index}")}" class="{AUDIO_SENTENCE_CLASS}">'
            id_ = self._install(recording)
            return (
                f'<span id="{id_}" class="{AUDIO_SENTENCE_CLASS}" '
                f'{AUDIO_DURATION_ATTR}="{format_seconds(recording.info.duration)}" '
                f'{AUDIO_MD5_ATTR}="{text_md5(sentence)}">'
            )

        for paragraph in paragraphs:
            self._wrap(paragraph, make_span)


def _gap(text: MarkedUpText) -> str:
    """HTML du texte entre deux phrases ("|" redevient le marqueur de découpage)."""
    return serialize(text).replace(SPLIT_MARKER_TEXT, SPLIT_MARKER_HTML)
