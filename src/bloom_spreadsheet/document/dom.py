"""
Petites fonctions utilitaires sur les balises BeautifulSoup.
"""

from typing import Iterable, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from .constants import EDITABLE_CLASS


def classes(tag: Tag) -> list[str]:
    value = tag.get("class") or []
    if isinstance(value, str):
        return value.split()
    return list(value)


def has_class(tag: Optional[Tag], name: str) -> bool:
    return isinstance(tag, Tag) and name in classes(tag)


def add_class(tag: Tag, name: str) -> None:
    current = classes(tag)
    if name not in current:
        current.append(name)
        tag["class"] = current


def remove_class(tag: Tag, name: str) -> None:
    current = classes(tag)
    if name in current:
        current = [c for c in current if c != name]
        if current:
            tag["class"] = current
        else:
            del tag["class"]


def inner_html(tag: Tag) -> str:
    """HTML interne d'une balise."""
    return "".join(str(child) for child in tag.contents)


def set_inner_html(tag: Tag, markup: str) -> None:
    """Remplace le contenu d'une balise par le fragment markup."""
    tag.clear()
    fragment = BeautifulSoup(markup, "html.parser")
    for child in list(fragment.contents):
        tag.append(child.extract())


def find_with_class(root: Tag, name: str, recursive: bool = True) -> list[Tag]:
    return root.find_all(class_=name, recursive=recursive)


def editables(group: Tag) -> list[Tag]:
    """bloom-editable enfants directs d'un groupe de traduction."""
    return [e for e in group.find_all(True, recursive=False) if has_class(e, EDITABLE_CLASS)]


def editable_in_lang(group: Tag, lang: Optional[str]) -> Optional[Tag]:
    """
    Premier bloom-editable du groupe dans la langue lang.

    lang=None retourne le premier bloom-editable quelconque.
    """
    for editable in editables(group):
        if lang is None or editable.get("lang") == lang:
            return editable
    return None


def remove_other_languages(group: Tag, keep: Iterable[str], template_lang: str) -> None:
    """Supprime les bloom-editable dont la langue n'est pas dans keep."""
    kept = set(keep)
    for editable in editables(group):
        lang = editable.get("lang") or ""
        if lang and lang != template_lang and lang not in kept:
            editable.decompose()
