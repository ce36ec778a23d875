"""
Import d'une grille de tableur dans un livre Bloom.

Organisation du module :
- importer.py : SpreadsheetImporter (contrat, placement des groupes de
  lignes, écriture des emplacements, pages insérées)
- placement.py : regroupement des lignes par page et compteurs d'emplacements
- datadiv.py : mise à jour du bloomDataDiv
- audio_import.py : modes d'enregistrement TextBox / Sentence
- media.py : résolution et copie des fichiers référencés
"""

from .audio_import import AudioImporter, strip_audio
from .datadiv import DataDivUpdater
from .importer import PARENT_CLASS_PREFIX, SpreadsheetImporter, import_spreadsheet
from .placement import RowGroup, SlotCounters, group_rows, needed_slots, row_slot_kinds

__all__ = [
    # Constantes
    "PARENT_CLASS_PREFIX",
    # Classes
    "AudioImporter",
    "DataDivUpdater",
    "RowGroup",
    "SlotCounters",
    "SpreadsheetImporter",
    # Fonctions
    "group_rows",
    "import_spreadsheet",
    "needed_slots",
    "row_slot_kinds",
    "strip_audio",
]
