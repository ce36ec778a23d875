"""
Configuration globale de bloom-spreadsheet.

Les classes dérivées de ConfigBase sont des singletons : leurs attributs de
classe servent de valeurs par défaut et peuvent être modifiés au démarrage
(par exemple depuis le fichier .env), puis verrouillés avec lock_config().

Les paramètres propres à un export ou à un import sont des dataclasses
(ExportParams, ImportParams) passées explicitement aux moteurs.
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Optional


class ConfigBase:
    # Attribut de classe pour le singleton
    _instance = None
    _locked: bool = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def lock(self):
        self._locked = True

    def __setattr__(self, name, value):
        if getattr(self, "_locked", False):
            raise AttributeError("Configuration is locked")
        super().__setattr__(name, value)


class Logger_Level(ConfigBase):
    level: int = logging.INFO
    console_level: int = logging.ERROR
    file_level: int = logging.DEBUG


class SpreadsheetLabels(ConfigBase):
    """Libellés fixes partagés par l'export, l'import et le codec xlsx."""

    # Cellule volontairement vide (distincte d'une langue absente)
    Blank_Content_Indicator: str = "[blank]"

    # Valeurs de la colonne [row type]
    Text_Group_Row: str = "[textgroup]"
    Image_Row: str = "[image]"
    Page_Content_Row: str = "[page content]"
    Book_Title_Row: str = "[bookTitle]"
    Cover_Image_Row: str = "[coverImage]"

    # Fichier audio absent en mode phrase
    Missing_Audio: str = "missing"

    # Sous-dossiers fixes du dossier tableur / livre
    Images_Folder: str = "images"
    Audio_Folder: str = "audio"
    Video_Folder: str = "video"
    Activities_Folder: str = "activities"

    # Couleurs (ARGB sans '#') alternées par page et des lignes cachées
    Alternating_Color_1: str = "FFF0F8FF"
    Alternating_Color_2: str = "FFFFFAF0"
    Hidden_Color: str = "FFD3D3D3"


# Clés du bloomDataDiv exportées (les autres restent hors du tableur)
DEFAULT_METADATA_KEYS = frozenset(
    {
        "bookTitle",
        "coverImage",
        "topic",
        "ISBN",
        "smallCoverCredits",
        "originalContributions",
        "versionAcknowledgments",
        "originalAcknowledgments",
        "funding",
        "copyright",
        "originalCopyright",
        "licenseUrl",
        "licenseDescription",
        "licenseNotes",
        "originalLicenseUrl",
        "originalLicenseNotes",
        "originalTitle",
        "insideFrontCover",
        "insideBackCover",
        "outsideBackCover",
        "credits",
    }
)


@dataclass
class ExportParams:
    """
    Paramètres d'un export.

    Attributes:
        retain_markup: Écrire le HTML brut des blocs au lieu du texte formaté
        metadata_keys: Liste blanche des clés data-book exportées
        max_copy_workers: Nombre de threads pour la copie des médias
    """

    retain_markup: bool = False
    metadata_keys: frozenset[str] = DEFAULT_METADATA_KEYS
    max_copy_workers: int = 4


@dataclass
class ImportParams:
    """
    Paramètres d'un import.

    Attributes:
        remove_other_languages: Supprimer les bloom-editable dont la langue
            n'a pas de colonne dans le tableur
        retain_markup: Écrire tel quel le contenu des cellules contenant du HTML
        cancel_event: Événement vérifié entre deux groupes de pages
    """

    remove_other_languages: bool = False
    retain_markup: bool = False
    cancel_event: Optional[threading.Event] = field(default=None, repr=False)

    def is_cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


def apply_environment() -> None:
    """
    Applique les variables d'environnement connues à la configuration.

    Variables lues :
    - BLOOM_SPREADSHEET_LOG_LEVEL : niveau global (DEBUG, INFO, ...)
    - BLOOM_SPREADSHEET_CONSOLE_LEVEL : niveau de la console

    Un nom de niveau inconnu est ignoré (avec un avertissement).
    """
    level = _env_level("BLOOM_SPREADSHEET_LOG_LEVEL")
    if level is not None:
        Logger_Level.level = level
    console_level = _env_level("BLOOM_SPREADSHEET_CONSOLE_LEVEL")
    if console_level is not None:
        Logger_Level.console_level = console_level


def _env_level(variable: str) -> Optional[int]:
    name = os.getenv(variable)
    if not name:
        return None
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        # logger.py dépend de ce module : pas de get_logger ici
        logging.getLogger(__name__).warning(f"⚠️ {variable}={name} : niveau inconnu, ignoré")
        return None
    return level


def lock_config():
    """Verrouille la configuration pour empêcher les modifications ultérieures."""
    Logger_Level().lock()
    SpreadsheetLabels().lock()
