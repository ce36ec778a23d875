"""
Configuration pytest pour les tests bloom-spreadsheet.

Ce fichier contient les fixtures communes à tous les tests : un petit livre
Bloom de deux pages et des doubles déterministes des collaborateurs audio.
"""

import hashlib
import re
from pathlib import Path

import pytest

from bloom_spreadsheet.audio import AudioInfo
from bloom_spreadsheet.document import BookDocument
from bloom_spreadsheet.exceptions import InvalidMediaFile
from bloom_spreadsheet.progress import CollectingProgress


# Livre de deux pages : page 1 = image + texte, page 2 = texte seul.
# Les bloom-editable sont écrits sans blancs pour que l'aller-retour
# export/import puisse être comparé octet par octet.
BOOK_HTML = """<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"><title>My Book</title></head>
<body>
<div id="bloomDataDiv">
<div data-book="bookTitle" lang="en"><p>My Book</p></div>
<div data-book="bookTitle" lang="fr"><p>Mon livre</p></div>
<div data-book="coverImage" lang="*" src="cover.png">cover.png</div>
<div data-book="copyright" lang="*">Copyright © 2020</div>
</div>
<div class="bloom-page cover coverColor" id="cover-page">
<div class="marginBox">
<div class="bloom-translationGroup bookTitle">
<div class="bloom-editable" lang="en" data-book="bookTitle"><p>My Book</p></div>
</div>
</div>
</div>
<div class="bloom-page numberedPage" id="page-1" data-page-number="1" data-pagelineage="adcd48df-e9ab-4a07-afd4-6a24d0398382">
<div class="pageLabel" lang="en">Basic Text &amp; Picture</div>
<div class="marginBox">
<div class="bloom-imageContainer"><img src="chat.png" alt=""></div>
<div class="bloom-translationGroup" tabindex="1">
<div class="bloom-editable" lang="z"><p></p></div>
<div class="bloom-editable" lang="en"><p>The cat sat.</p></div>
<div class="bloom-editable" lang="fr"><p>Le chat est assis.</p></div>
</div>
</div>
</div>
<div class="bloom-page numberedPage" id="page-2" data-page-number="2" data-pagelineage="a31c38d8-c1cb-4eb9-951b-d2840f6a8bdb">
<div class="pageLabel" lang="en">Just Text</div>
<div class="marginBox">
<div class="bloom-translationGroup" tabindex="1">
<div class="bloom-editable" lang="z"><p></p></div>
<div class="bloom-editable" lang="en"><p>The <strong>end</strong>.</p></div>
<div class="bloom-editable" lang="fr"><p></p></div>
</div>
</div>
</div>
</body>
</html>
"""


class FakeSentenceSplitter:
    """Coupe après chaque point suivi d'un blanc, et sur "|"."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    async def split_into_sentences(self, text: str, lang: str) -> list[str]:
        self.calls.append((text, lang))
        pieces = re.split(r"(?<=\.)\s+|\|", text)
        return [p.strip() for p in pieces if p.strip()]


class FakeAudioProbe:
    """
    Durées fixées par nom de fichier ; un fichier inconnu est invalide.

    La somme de contrôle est le md5 du contenu réel du fichier.
    """

    def __init__(self, durations: dict[str, float]) -> None:
        self.durations = dict(durations)

    async def probe_audio(self, path: Path) -> AudioInfo:
        path = Path(path)
        if path.name not in self.durations:
            raise InvalidMediaFile(str(path), reason="durée inconnue")
        checksum = hashlib.md5(path.read_bytes()).hexdigest()
        return AudioInfo(self.durations[path.name], checksum)


@pytest.fixture
def book_html():
    return BOOK_HTML


@pytest.fixture
def book():
    """Livre de deux pages, sans dossier."""
    return BookDocument(BOOK_HTML)


@pytest.fixture
def progress():
    return CollectingProgress()


@pytest.fixture
def splitter():
    return FakeSentenceSplitter()


@pytest.fixture
def book_folder(tmp_path):
    folder = tmp_path / "book"
    folder.mkdir()
    return folder


@pytest.fixture
def sheet_folder(tmp_path):
    """Dossier du tableur, avec ses sous-dossiers de médias."""
    folder = tmp_path / "sheet"
    for name in ("audio", "images", "video", "activities"):
        (folder / name).mkdir(parents=True)
    return folder


def make_audio(sheet_folder: Path, name: str, content: bytes = b"ID3 fake mp3") -> str:
    """Crée un faux mp3 dans sheet/audio et retourne le chemin de cellule."""
    (sheet_folder / "audio" / name).write_bytes(content)
    return f"./audio/{name}"
