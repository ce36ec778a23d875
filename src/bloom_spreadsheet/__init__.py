"""
Export et import de livres Bloom vers/depuis un tableur.

bloom-spreadsheet convertit un livre Bloom (un fichier HTML et son dossier
de médias) en une grille de tableur éditable, une ligne par bloc de
contenu, une colonne par langue, puis réimporte la grille modifiée dans le
livre. C'est l'outil des traducteurs qui travaillent hors de Bloom.

Le processus d'export :
1. Classe le contenu de chaque page (textes, images, vidéos, widgets)
2. Écrit une ligne par élément, le formatage converti en texte enrichi
3. Copie les médias référencés dans le dossier d'export
4. Enregistre le classeur xlsx (feuille "BloomBook")

Le processus d'import :
1. Met à jour le bloomDataDiv depuis les lignes de métadonnées
2. Place chaque groupe de lignes sur sa page (ou sur de nouvelles pages
   créées depuis les modèles)
3. Reconstruit l'audio (modes TextBox et Sentence) depuis les colonnes audio
4. Renvoie la liste ordonnée des avertissements

Organisation du package :
- grid/ : modèle de grille (colonnes typées, lignes)
- markup/ : HTML en ligne <-> runs formatés
- document/ : livre Bloom (BeautifulSoup) et classification des pages
- xlsx/ : lecture/écriture du classeur avec openpyxl
- audio/ : découpage en phrases, lecture mp3, ids audio
- templates/ : pages modèles (livre de base rendu avec Jinja2)
- exporter.py : SpreadsheetExporter
- importer/ : SpreadsheetImporter
- config.py, logger.py, progress.py : configuration, logs, progression

Usage minimal :
    >>> from bloom_spreadsheet import BookDocument, SpreadsheetExporter
    >>>
    >>> book = BookDocument.load("MonLivre/MonLivre.htm")
    >>> SpreadsheetExporter().export_to_folder(book, "MonLivre", "export")

    >>> from bloom_spreadsheet import SpreadsheetImporter, read_spreadsheet
    >>>
    >>> grid = read_spreadsheet("export/MonLivre.xlsx")
    >>> importer = SpreadsheetImporter(grid, book, "MonLivre", "export")
    >>> for warning in importer.import_grid():
    ...     print(warning)
    >>> book.save()

Configuration :
    Variables d'environnement (ou fichier .env chargé par la CLI) :

        BLOOM_SPREADSHEET_LOG_LEVEL=DEBUG
        BLOOM_SPREADSHEET_LANG_NAMES=xyz=Xyzish,abc=Abcish

Version: 0.3.0
"""

# Grille et classeur
from .grid import ColumnKind, ColumnTag, ContentRow, Grid, RowKind
from .xlsx import read_spreadsheet, write_spreadsheet

# Livre
from .document import BookDocument, PageInfo, SlotKind, classify_page

# Export / import
from .exporter import SpreadsheetExporter
from .importer import SpreadsheetImporter, import_spreadsheet

# Collaborateurs
from .audio import AudioInfo, Mp3AudioProbe, RegexSentenceSplitter
from .config import ExportParams, ImportParams
from .languages import StaticLanguageNames
from .progress import CollectingProgress, TqdmProgress
from .templates import TemplateLibrary

# Exceptions
from .exceptions import GridContractError, SpreadsheetError

# Version du package
__version__ = "0.3.0"

# Exports publics
__all__ = [
    # Version
    "__version__",
    # Grille et classeur
    "ColumnKind",
    "ColumnTag",
    "ContentRow",
    "Grid",
    "RowKind",
    "read_spreadsheet",
    "write_spreadsheet",
    # Livre
    "BookDocument",
    "PageInfo",
    "SlotKind",
    "classify_page",
    # Export / import
    "SpreadsheetExporter",
    "SpreadsheetImporter",
    "import_spreadsheet",
    # Collaborateurs
    "AudioInfo",
    "CollectingProgress",
    "ExportParams",
    "ImportParams",
    "Mp3AudioProbe",
    "RegexSentenceSplitter",
    "StaticLanguageNames",
    "TemplateLibrary",
    "TqdmProgress",
    # Exceptions
    "GridContractError",
    "SpreadsheetError",
]
