"""
Conversion entre fragments HTML et texte formaté à plat (MarkedUpText).

parse() parcourt l'arbre du fragment en profondeur en accumulant l'état de
formatage (gras, italique, souligné, exposant, couleur) et émet un run par
texte rencontré. serialize() fait l'inverse : chaque run est entouré du
jeu minimal de balises imbriquées, dans l'ordre canonique
strong > em > u > sup > span.

Exemple :
    >>> text = parse("<strong>a<em>b</em></strong>")
    >>> [(r.text, r.bold, r.italic) for r in text]
    [('a', True, False), ('b', True, True)]
    >>> serialize(text)
    '<strong>a<em>b</em></strong>'
"""

import html
import re
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from ..logger import get_logger
from .constants import (
    BLOCK_TAGS,
    BOLD_TAGS,
    ITALIC_TAGS,
    LINEBREAK_CLASS,
    LINEBREAK_FOLLOWER,
    LINEBREAK_HTML,
    SPLIT_MARKER_CLASS,
    SPLIT_MARKER_HTML,
    SPLIT_MARKER_TEXT,
    SUPERSCRIPT_TAGS,
    UNDERLINE_TAGS,
)
from .runs import MarkedUpText, MarkedUpTextRun

logger = get_logger(__name__)

_COLOR_RE = re.compile(r"(?:^|;)\s*color\s*:\s*([^;]+)", re.IGNORECASE)
_BLOCK_RE = re.compile(r"<\s*(?:" + "|".join(sorted(BLOCK_TAGS)) + r")\b", re.IGNORECASE)


@dataclass(frozen=True)
class _Format:
    bold: bool = False
    italic: bool = False
    underlined: bool = False
    superscript: bool = False
    color: Optional[str] = None

    def apply(self, tag: Tag) -> "_Format":
        name = tag.name.lower()
        if name in BOLD_TAGS:
            return _Format(True, self.italic, self.underlined, self.superscript, self.color)
        if name in ITALIC_TAGS:
            return _Format(self.bold, True, self.underlined, self.superscript, self.color)
        if name in UNDERLINE_TAGS:
            return _Format(self.bold, self.italic, True, self.superscript, self.color)
        if name in SUPERSCRIPT_TAGS:
            return _Format(self.bold, self.italic, self.underlined, True, self.color)
        if name == "span":
            color = _span_color(tag)
            if color is not None:
                return _Format(
                    self.bold, self.italic, self.underlined, self.superscript, color
                )
        return self

    def run(self, text: str) -> MarkedUpTextRun:
        return MarkedUpTextRun(
            text, self.bold, self.italic, self.underlined, self.superscript, self.color
        )


def _span_color(tag: Tag) -> Optional[str]:
    match = _COLOR_RE.search(tag.get("style") or "")
    return match.group(1).strip() if match else None


def _has_class(tag: Tag, name: str) -> bool:
    return name in (tag.get("class") or [])


def _is_block(node) -> bool:
    return isinstance(node, Tag) and node.name.lower() in BLOCK_TAGS


class _RunBuilder:
    """Accumule les runs pendant le parcours de l'arbre."""

    def __init__(self) -> None:
        self.runs: list[MarkedUpTextRun] = []
        # Les runs contigus ne fusionnent que dans le même "cadre" de balises
        self._frames: list[int] = []
        self._frame = 0
        self._need_break = False

    def new_frame(self) -> None:
        self._frame += 1

    def add_text(self, text: str, fmt: _Format) -> None:
        self._flush_break()
        run = fmt.run(text)
        if self.runs and self._frames[-1] == self._frame and self.runs[-1].same_format(run):
            self.runs[-1] = self.runs[-1].with_text(self.runs[-1].text + text)
            return
        self.runs.append(run)
        self._frames.append(self._frame)

    def open_block(self) -> None:
        self._flush_break()

    def close_block(self) -> None:
        self._need_break = True

    def _flush_break(self) -> None:
        if self._need_break:
            self._need_break = False
            self.new_frame()
            self.runs.append(MarkedUpTextRun("\n"))
            self._frames.append(self._frame)
            self.new_frame()

    def walk(self, node, fmt: _Format) -> None:
        for child in node.children:
            if isinstance(child, Tag):
                self._walk_tag(child, fmt)
            elif isinstance(child, NavigableString) and not isinstance(
                child, PreformattedString
            ):
                text = str(child)
                if not text:
                    continue
                if text.isspace() and _between_blocks(child):
                    continue
                self.add_text(text, fmt)

    def _walk_tag(self, tag: Tag, fmt: _Format) -> None:
        if _has_class(tag, SPLIT_MARKER_CLASS):
            self.new_frame()
            self.add_text(SPLIT_MARKER_TEXT, fmt)
            self.new_frame()
            return
        if tag.name.lower() == "br" or _has_class(tag, LINEBREAK_CLASS):
            # coupe le run sans ajouter de saut de ligne
            self.new_frame()
            return
        if _is_block(tag):
            self.open_block()
            self.new_frame()
            self.walk(tag, fmt)
            self.close_block()
            return
        inner = fmt.apply(tag)
        if inner is not fmt:
            self.new_frame()
        self.walk(tag, inner)
        if inner is not fmt:
            self.new_frame()


def _between_blocks(node: NavigableString) -> bool:
    """Vrai pour un texte blanc placé à côté d'une balise bloc."""
    return _is_block(node.previous_sibling) or _is_block(node.next_sibling)


def parse(fragment: Optional[str]) -> MarkedUpText:
    """
    Convertit un fragment HTML en MarkedUpText.

    Ne lève jamais d'exception : une entrée sans balise ni entité, ou
    impossible à analyser, donne un unique run non formaté contenant la
    chaîne d'origine. Les entités (&amp;, &lt;...) sont décodées.

    Args:
        fragment: HTML interne d'un bloom-editable ou contenu de cellule

    Returns:
        Texte formaté à plat
    """
    if not fragment:
        return MarkedUpText()
    if "<" not in fragment and "&" not in fragment:
        return MarkedUpText.plain(fragment)
    try:
        soup = BeautifulSoup(fragment, "html.parser")
        builder = _RunBuilder()
        builder.walk(soup, _Format())
    except Exception as e:
        logger.debug(f"⚠️ Fragment non analysable, conservé tel quel : {e}")
        return MarkedUpText.plain(fragment)
    return MarkedUpText(tuple(builder.runs))


def _tags_for(run: MarkedUpTextRun) -> list[tuple[str, Optional[str]]]:
    tags: list[tuple[str, Optional[str]]] = []
    if run.bold:
        tags.append(("strong", None))
    if run.italic:
        tags.append(("em", None))
    if run.underlined:
        tags.append(("u", None))
    if run.superscript:
        tags.append(("sup", None))
    if run.color is not None:
        tags.append(("span", run.color))
    return tags


def _open(tag: tuple[str, Optional[str]]) -> str:
    name, color = tag
    if name == "span":
        return f'<span style="color: {html.escape(color or "")};">'
    return f"<{name}>"


def _escape(text: str) -> str:
    escaped = html.escape(text, quote=False)
    return escaped.replace(LINEBREAK_FOLLOWER, LINEBREAK_HTML + LINEBREAK_FOLLOWER)


def _serialize_line(runs: tuple[MarkedUpTextRun, ...]) -> str:
    out: list[str] = []
    stack: list[tuple[str, Optional[str]]] = []
    previous: Optional[MarkedUpTextRun] = None
    for run in runs:
        if not run.text:
            continue
        wanted = _tags_for(run)
        if previous is not None and previous.same_format(run):
            # deux runs distincts au même format : on referme pour les séparer
            while stack:
                out.append(f"</{stack.pop()[0]}>")
        while any(tag not in wanted for tag in stack):
            out.append(f"</{stack.pop()[0]}>")
        for tag in wanted:
            if tag not in stack:
                stack.append(tag)
                out.append(_open(tag))
        out.append(_escape(run.text))
        previous = run
    while stack:
        out.append(f"</{stack.pop()[0]}>")
    return "".join(out)


def serialize(text: MarkedUpText, paragraphs: bool = False) -> str:
    """
    Reconstruit le HTML d'un texte formaté.

    Args:
        text: Texte à sérialiser
        paragraphs: Entourer chaque ligne de <p>...</p>

    Returns:
        Fragment HTML ; le texte est échappé (&, <, >)
    """
    if not paragraphs:
        return _serialize_line(text.runs)
    return "".join(f"<p>{_serialize_line(p.runs)}</p>" for p in text.paragraphs())


def has_blocks(fragment: str) -> bool:
    """Le fragment contient-il des paragraphes (<p>, <div>...) ?"""
    return bool(_BLOCK_RE.search(fragment or ""))


def serialize_fragment(fragment: str, retain_markup: bool = False) -> str:
    """
    Normalise le HTML interne d'un bloc pour une cellule du tableur.

    Une cellule de langue contient toujours du HTML : le texte reste échappé
    (&amp;, &lt;...) pour que "&lt;b&gt;" écrit dans le livre ne redevienne
    jamais une balise. Les paragraphes ne sont produits que si le fragment en
    contenait (un champ du data div peut être du texte brut). En mode
    retain_markup le HTML brut est conservé ; seuls les marqueurs de
    découpage audio sont remplacés par "|".
    """
    if retain_markup:
        return fragment.replace(SPLIT_MARKER_HTML, SPLIT_MARKER_TEXT).strip()
    return serialize(parse(fragment), paragraphs=has_blocks(fragment))


def has_markup(content: str) -> bool:
    """Le contenu d'une cellule contient-il des balises ?"""
    return "<" in content


def markup_for_editable(content: str, retain_markup: bool = False) -> str:
    """
    Produit le HTML interne d'un bloom-editable à partir d'une cellule.

    Le contenu est normalisé par parse/serialize (ou conservé tel quel en
    mode retain_markup), chaque ligne devient un paragraphe et les "|"
    redeviennent des marqueurs de découpage audio.
    """
    if retain_markup and has_markup(content):
        markup = content
    else:
        markup = serialize(parse(content), paragraphs=True)
    return markup.replace(SPLIT_MARKER_TEXT, SPLIT_MARKER_HTML)


def markup_for_field(content: str, retain_markup: bool = False) -> str:
    """
    HTML interne d'un champ du data div à partir d'une cellule.

    Contrairement à un bloom-editable, un champ sans paragraphe reste sans
    paragraphe.
    """
    if retain_markup and has_markup(content):
        return content
    return serialize(parse(content), paragraphs=has_blocks(content))
