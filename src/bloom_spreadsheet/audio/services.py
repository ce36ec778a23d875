"""
Services audio utilisés par l'importeur : découpage en phrases et lecture
des fichiers mp3.

Les deux services sont asynchrones ; l'importeur les attend bloc par bloc.
Les implémentations par défaut sont RegexSentenceSplitter (règles de
ponctuation simples) et Mp3AudioProbe (mutagen, exécuté dans un thread).
"""

import asyncio
import hashlib
import re
from pathlib import Path
from typing import NamedTuple, Protocol, Union

from mutagen import MutagenError
from mutagen.mp3 import MP3

from ..exceptions import InvalidMediaFile
from ..logger import get_logger
from ..markup import SPLIT_MARKER_TEXT

logger = get_logger(__name__)


class AudioInfo(NamedTuple):
    """Durée (secondes) et somme de contrôle md5 d'un fichier audio."""

    duration: float
    checksum: str


class SentenceSplitter(Protocol):
    async def split_into_sentences(self, text: str, lang: str) -> list[str]:
        ...


class AudioProbe(Protocol):
    async def probe_audio(self, path: Path) -> AudioInfo:
        ...


# Fin de phrase : ponctuation (éventuellement suivie de guillemets ou
# parenthèses fermantes) puis espace
_SENTENCE_END_RE = re.compile(r"([.!?।。！？][\"'”’)\]]*)\s+")


class RegexSentenceSplitter:
    """
    Découpeur de phrases par ponctuation.

    Le marqueur "|" du tableur force aussi une coupure (fragment de phrase
    enregistré séparément).

    Example:
        >>> splitter = RegexSentenceSplitter()
        >>> asyncio.run(splitter.split_into_sentences("Un. Deux ! Trois|quatre", "fr"))
        ['Un.', 'Deux !', 'Trois', 'quatre']
    """

    async def split_into_sentences(self, text: str, lang: str) -> list[str]:
        return split_sentences(text)


def split_sentences(text: str) -> list[str]:
    sentences: list[str] = []
    for phrase in text.split(SPLIT_MARKER_TEXT):
        parts = _SENTENCE_END_RE.split(phrase)
        # split() alterne texte et ponctuation capturée
        pieces = ["".join(parts[i : i + 2]) for i in range(0, len(parts), 2)]
        sentences.extend(p.strip() for p in pieces if p.strip())
    return sentences


def file_checksum(path: Union[str, Path]) -> str:
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


class Mp3AudioProbe:
    """Lit la durée d'un mp3 avec mutagen."""

    def _probe(self, path: Path) -> AudioInfo:
        try:
            audio = MP3(str(path))
        except (MutagenError, OSError) as e:
            logger.debug(f"❌ Lecture mp3 impossible pour {path} : {e}")
            raise InvalidMediaFile(str(path), reason=str(e)) from e
        if audio.info is None or audio.info.length <= 0:
            raise InvalidMediaFile(str(path), reason="durée nulle")
        return AudioInfo(float(audio.info.length), file_checksum(path))

    async def probe_audio(self, path: Path) -> AudioInfo:
        return await asyncio.to_thread(self._probe, Path(path))
