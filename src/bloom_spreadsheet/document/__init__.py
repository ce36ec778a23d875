"""
Modèle du document Bloom (HTML) au-dessus de BeautifulSoup.

Organisation du module :
- constants.py : classes CSS et attributs du format Bloom
- dom.py : fonctions utilitaires sur les balises (classes, HTML interne...)
- content.py : classification d'une page en TextBlock, QuizAnswer, Image,
  Video et Widget
- book.py : BookDocument (chargement, pages, data div, sauvegarde)
"""

from .book import BookDocument
from .content import (
    Image,
    PageContent,
    PageInfo,
    QuizAnswer,
    SlotKind,
    TextBlock,
    Video,
    Widget,
    classify_page,
)

__all__ = [
    # Classes
    "BookDocument",
    "Image",
    "PageContent",
    "PageInfo",
    "QuizAnswer",
    "SlotKind",
    "TextBlock",
    "Video",
    "Widget",
    # Fonctions
    "classify_page",
]
