"""
Services audio de l'import : découpage en phrases, lecture mp3 et ids.

Organisation du module :
- services.py : protocoles SentenceSplitter / AudioProbe et implémentations
  par défaut (RegexSentenceSplitter, Mp3AudioProbe avec mutagen)
- ids.py : ids XHTML dérivés des noms de fichiers et allocation sans collision
"""

from .ids import DEFAULT_ID, AudioIdAllocator, content_id, sanitize_xhtml_id
from .services import (
    AudioInfo,
    AudioProbe,
    Mp3AudioProbe,
    RegexSentenceSplitter,
    SentenceSplitter,
    file_checksum,
    split_sentences,
)

__all__ = [
    # Constantes
    "DEFAULT_ID",
    # Classes
    "AudioIdAllocator",
    "AudioInfo",
    "AudioProbe",
    "Mp3AudioProbe",
    "RegexSentenceSplitter",
    "SentenceSplitter",
    # Fonctions
    "content_id",
    "file_checksum",
    "sanitize_xhtml_id",
    "split_sentences",
]
