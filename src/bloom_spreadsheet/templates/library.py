"""
Bibliothèque de pages modèles.

Les pages modèles viennent d'un livre HTML (par défaut le template Jinja2
basic_book.html.jinja livré avec le paquet, rendu avec les langues du
tableur). Une page est retrouvée par son libellé (div.pageLabel) ou par son
id, qui est aussi la valeur de data-pagelineage des pages créées à partir
d'elle.
"""

import copy
from pathlib import Path
from typing import Optional, Sequence, Union

from bs4 import BeautifulSoup
from bs4.element import Tag
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..document.constants import PAGE_CLASS
from ..document.content import PageInfo, SlotKind, classify_page
from ..logger import get_logger

logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent
DEFAULT_TEMPLATE = "basic_book.html.jinja"


class TemplateLibrary:
    """
    Index des pages modèles par libellé et par id.

    Example:
        >>> library = TemplateLibrary.default(languages=["en", "fr"])
        >>> page = library.resolve_template_page("Just Text")
        >>> page.get("id")
        'a31c38d8-c1cb-4eb9-951b-d2840f6a8bdb'
    """

    def __init__(self, html: str) -> None:
        self.soup = BeautifulSoup(html, "html.parser")
        self._pages: list[PageInfo] = [
            classify_page(p) for p in self.soup.find_all("div", class_=PAGE_CLASS)
        ]
        self._by_key: dict[str, PageInfo] = {}
        for info in self._pages:
            for key in (info.label, info.element.get("id") or ""):
                if key and key not in self._by_key:
                    self._by_key[key] = info
        logger.debug(f"{len(self._pages)} page(s) modèle chargée(s)")

    @classmethod
    def default(cls, languages: Sequence[str] = ()) -> "TemplateLibrary":
        """Bibliothèque livrée avec le paquet, rendue pour les langues données."""
        return cls.from_template(TEMPLATE_DIR / DEFAULT_TEMPLATE, languages)

    @classmethod
    def from_template(
        cls, path: Union[str, Path], languages: Sequence[str] = ()
    ) -> "TemplateLibrary":
        """
        Charge un livre modèle.

        Un fichier .jinja est rendu avec la variable languages ; un fichier
        .htm/.html est lu tel quel.
        """
        path = Path(path)
        if path.suffix != ".jinja":
            return cls(path.read_text(encoding="utf-8"))
        env = Environment(
            loader=FileSystemLoader(str(path.parent)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
        )
        template = env.get_template(path.name)
        return cls(template.render(languages=[lang for lang in languages if lang != "*"]))

    @property
    def pages(self) -> list[PageInfo]:
        return list(self._pages)

    def find(self, key: str) -> Optional[PageInfo]:
        return self._by_key.get((key or "").strip())

    def resolve_template_page(self, key: str) -> Optional[Tag]:
        """
        Copie profonde de la page modèle désignée par key.

        Args:
            key: Libellé ("Just Text") ou id du modèle

        Returns:
            Nouvel élément div.bloom-page, None si le modèle est inconnu
        """
        info = self.find(key)
        if info is None:
            return None
        return copy.copy(info.element)

    def best_template_for(self, needed: dict[SlotKind, int]) -> Optional[PageInfo]:
        """
        Choisit un modèle pour un groupe de lignes.

        Préfère un modèle qui offre au moins un emplacement de chaque type
        demandé et le moins de lignes sans place, puis le moins
        d'emplacements en trop ; à défaut, celui qui couvre le plus de types
        demandés.

        Args:
            needed: Nombre de lignes par type d'emplacement
        """
        wanted = {kind for kind, count in needed.items() if count > 0}
        if not wanted:
            return None
        best: Optional[PageInfo] = None
        best_score: Optional[tuple] = None
        for info in self._pages:
            capacity = info.capacity()
            covered = {kind for kind in wanted if capacity[kind] > 0}
            shortfall = sum(max(0, count - capacity[kind]) for kind, count in needed.items())
            surplus = sum(
                max(0, capacity[kind] - needed.get(kind, 0)) for kind in SlotKind
            )
            score = (len(covered) == len(wanted), len(covered), -shortfall, -surplus)
            if best_score is None or score > best_score:
                best, best_score = info, score
        return best
