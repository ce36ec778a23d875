"""
Pages modèles utilisées par l'import pour ajouter des pages au livre.

Organisation du module :
- library.py : TemplateLibrary (recherche par libellé ou id, choix du
  modèle le mieux adapté à un groupe de lignes)
- basic_book.html.jinja : livre modèle par défaut
"""

from .library import DEFAULT_TEMPLATE, TemplateLibrary

__all__ = [
    # Constantes
    "DEFAULT_TEMPLATE",
    # Classes
    "TemplateLibrary",
]
