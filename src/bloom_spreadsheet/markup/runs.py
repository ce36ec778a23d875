"""
Texte formaté à plat : une suite immuable de segments (runs).
"""

from dataclasses import dataclass, replace
from typing import Iterator, Optional


@dataclass(frozen=True)
class MarkedUpTextRun:
    """
    Segment de texte avec un formatage uniforme.

    Attributes:
        text: Texte brut (non échappé)
        bold, italic, underlined, superscript: Attributs de caractère
        color: Couleur CSS du span englobant, None si aucune
    """

    text: str
    bold: bool = False
    italic: bool = False
    underlined: bool = False
    superscript: bool = False
    color: Optional[str] = None

    @property
    def has_formatting(self) -> bool:
        return (
            self.bold
            or self.italic
            or self.underlined
            or self.superscript
            or self.color is not None
        )

    def same_format(self, other: "MarkedUpTextRun") -> bool:
        return (
            self.bold == other.bold
            and self.italic == other.italic
            and self.underlined == other.underlined
            and self.superscript == other.superscript
            and self.color == other.color
        )

    def with_text(self, text: str) -> "MarkedUpTextRun":
        return replace(self, text=text)


@dataclass(frozen=True)
class MarkedUpText:
    """
    Texte formaté : la concaténation des runs redonne exactement le texte brut.

    Les paragraphes sont séparés par des "\\n" dans le texte des runs.

    Example:
        >>> text = MarkedUpText.plain("Hello")
        >>> text.plain_text
        'Hello'
        >>> text.has_formatting
        False
    """

    runs: tuple[MarkedUpTextRun, ...] = ()

    @classmethod
    def plain(cls, text: str) -> "MarkedUpText":
        return cls((MarkedUpTextRun(text),)) if text else cls()

    def __iter__(self) -> Iterator[MarkedUpTextRun]:
        return iter(self.runs)

    def __len__(self) -> int:
        return len(self.runs)

    @property
    def plain_text(self) -> str:
        return "".join(run.text for run in self.runs)

    @property
    def has_formatting(self) -> bool:
        return any(run.has_formatting for run in self.runs)

    def paragraphs(self) -> list["MarkedUpText"]:
        """
        Découpe le texte en paragraphes (un MarkedUpText par ligne).

        Un run qui contient des "\\n" est coupé en autant de morceaux, chacun
        gardant le formatage d'origine. Les morceaux vides sont omis.
        """
        lines: list[list[MarkedUpTextRun]] = [[]]
        for run in self.runs:
            pieces = run.text.split("\n")
            for i, piece in enumerate(pieces):
                if i > 0:
                    lines.append([])
                if piece:
                    lines[-1].append(run.with_text(piece))
        if not self.runs:
            return []
        return [MarkedUpText(tuple(line)) for line in lines]

    def slice(self, start: int, end: int) -> "MarkedUpText":
        """Sous-texte [start, end[ du texte brut, formatage conservé."""
        runs: list[MarkedUpTextRun] = []
        offset = 0
        for run in self.runs:
            run_start, run_end = offset, offset + len(run.text)
            offset = run_end
            lo, hi = max(start, run_start), min(end, run_end)
            if lo < hi:
                runs.append(run.with_text(run.text[lo - run_start : hi - run_start]))
        return MarkedUpText(tuple(runs))
