"""
Codec xlsx de la grille (openpyxl).

Le codec ne fait que traduire la grille : texte enrichi pour les cellules
de langue, lignes et colonnes cachées, couleurs, commentaires d'en-tête et
vignettes d'images. Il n'ajoute aucune règle d'import ou d'export.
"""

from .spreadsheet_io import (
    SHEET_NAME,
    cell_value_to_markup,
    escape_xlsx,
    markup_to_cell_value,
    read_spreadsheet,
    unescape_xlsx,
    write_spreadsheet,
)

__all__ = [
    # Constantes
    "SHEET_NAME",
    # Fonctions
    "cell_value_to_markup",
    "escape_xlsx",
    "markup_to_cell_value",
    "read_spreadsheet",
    "unescape_xlsx",
    "write_spreadsheet",
]
