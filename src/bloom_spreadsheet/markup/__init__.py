"""
Parseur de formatage : HTML en ligne <-> suite de runs formatés.

Organisation du module :
- constants.py : marqueurs Bloom (découpage audio, saut de ligne) et balises
- runs.py : MarkedUpTextRun et MarkedUpText (immuables)
- parser.py : parse, serialize et conversions cellule <-> bloom-editable
"""

from .constants import (
    LINEBREAK_FOLLOWER,
    LINEBREAK_HTML,
    SPLIT_MARKER_HTML,
    SPLIT_MARKER_TEXT,
)
from .parser import (
    has_blocks,
    has_markup,
    markup_for_editable,
    markup_for_field,
    parse,
    serialize,
    serialize_fragment,
)
from .runs import MarkedUpText, MarkedUpTextRun

__all__ = [
    # Constantes
    "LINEBREAK_FOLLOWER",
    "LINEBREAK_HTML",
    "SPLIT_MARKER_HTML",
    "SPLIT_MARKER_TEXT",
    # Classes
    "MarkedUpText",
    "MarkedUpTextRun",
    # Fonctions
    "has_blocks",
    "has_markup",
    "markup_for_editable",
    "markup_for_field",
    "parse",
    "serialize",
    "serialize_fragment",
]
