"""
Identifiants des éléments audio.

Dans Bloom, l'id d'un élément enregistré est aussi le nom de son fichier
audio (audio/<id>.mp3). Les ids doivent donc être à la fois des id XHTML
valides et uniques dans le dossier audio du livre.
"""

import hashlib
import re
from pathlib import Path
from typing import Callable, Optional

_INVALID_ID_CHARS = re.compile(r"[^A-Za-z0-9_.\-]")

DEFAULT_ID = "defaultId"


def sanitize_xhtml_id(name: str) -> str:
    """
    Transforme un nom de fichier en id XHTML valide.

    Example:
        >>> sanitize_xhtml_id("abc def")
        'abcdef'
        >>> sanitize_xhtml_id("1233")
        'i1233'
        >>> sanitize_xhtml_id("$*&")
        'defaultId'
    """
    cleaned = _INVALID_ID_CHARS.sub("", name or "")
    if not cleaned:
        return DEFAULT_ID
    if not (cleaned[0].isalpha() or cleaned[0] == "_"):
        cleaned = "i" + cleaned
    return cleaned


def content_id(text: str, salt: str = "") -> str:
    """Id déterministe dérivé d'un texte (segments d'alignement)."""
    digest = hashlib.md5(f"{salt}\n{text}".encode("utf-8")).hexdigest()
    return "i" + digest[:12]


class AudioIdAllocator:
    """
    Attribue les ids (et donc les noms de fichiers) des enregistrements
    importés pendant une exécution.

    Un id déjà pris dans cette exécution, ou dont le fichier existe déjà
    dans le dossier audio avec un contenu différent, reçoit un suffixe
    numérique (id1, id2...). Un fichier existant identique est réutilisé.

    Args:
        audio_folder: Dossier audio du livre
        checksum: Fonction calculant la somme de contrôle d'un fichier
    """

    def __init__(self, audio_folder: Path, checksum: Callable[[Path], str]) -> None:
        self.audio_folder = audio_folder
        self._checksum = checksum
        self._used: set[str] = set()

    def reserve(self, id_: str) -> None:
        self._used.add(id_)

    def allocate(self, file_name: str, source_checksum: Optional[str] = None) -> tuple[str, bool]:
        """
        Choisit l'id d'un enregistrement.

        Args:
            file_name: Nom du fichier source (sans dossier)
            source_checksum: md5 du fichier source

        Returns:
            (id, reuse) : reuse vaut True si audio/<id>.mp3 existe déjà avec
            le même contenu et n'a pas besoin d'être copié
        """
        base = sanitize_xhtml_id(Path(file_name).stem)
        candidate = base
        suffix = 0
        while True:
            if candidate not in self._used:
                target = self.audio_folder / f"{candidate}.mp3"
                if not target.exists():
                    self._used.add(candidate)
                    return candidate, False
                if source_checksum is not None and self._checksum(target) == source_checksum:
                    self._used.add(candidate)
                    return candidate, True
            suffix += 1
            candidate = f"{base}{suffix}"
