"""
Modèle de grille du tableur.

Organisation du module :
- columns.py : ColumnKind, ColumnTag et la table des noms affichés
- rows.py : Cell, HeaderRow, ContentRow et la classification des lignes
- sheet.py : Grid, avec l'invariant de la colonne joker "[*]"

Exports publics :
    Classes :
        - Grid, Column : grille et description de colonne
        - ColumnKind, ColumnTag : étiquettes typées
        - Cell, Row, HeaderRow, ContentRow, RowKind : lignes

    Constantes :
        - WILDCARD_TAG : colonne joker "[*]"
        - STANDARD_LEADING_COLUMNS : colonnes créées par défaut
"""

from .columns import (
    COLUMN_INFO,
    STANDARD_LEADING_COLUMNS,
    WILDCARD_LANGUAGE,
    WILDCARD_TAG,
    ColumnInfo,
    ColumnKind,
    ColumnTag,
)
from .rows import Cell, ContentRow, HeaderRow, Row, RowKind, classify_row_key
from .sheet import Column, Grid

__all__ = [
    # Constantes
    "COLUMN_INFO",
    "STANDARD_LEADING_COLUMNS",
    "WILDCARD_LANGUAGE",
    "WILDCARD_TAG",
    # Classes
    "Cell",
    "Column",
    "ColumnInfo",
    "ColumnKind",
    "ColumnTag",
    "ContentRow",
    "Grid",
    "HeaderRow",
    "Row",
    "RowKind",
    # Fonctions
    "classify_row_key",
]
