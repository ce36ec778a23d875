"""
Exceptions spécifiques à bloom-spreadsheet.

Toutes les erreurs liées à la qualité des données (fichier audio absent,
nombre de phrases incohérent, page introuvable...) dérivent de
SpreadsheetError. Elles sont récupérables : l'importeur les attrape au niveau
du bloc ou du groupe de lignes concerné et transforme str(exc) en message de
diagnostic, puis continue.

Le texte des messages est en anglais car il est montré tel quel à
l'utilisateur du tableur. L'attribut `where` ("on page 6", "for bookTitle")
peut être complété par l'appelant après coup, le message étant calculé à
l'affichage.

Seule GridContractError signale une violation du contrat d'appel et doit
interrompre l'opération.
"""

from typing import Optional, Sequence


def _seconds(value: float) -> str:
    """Durée arrondie à la milliseconde, sans zéros superflus."""
    return f"{value:.3f}".rstrip("0").rstrip(".")


class SpreadsheetError(ValueError):
    """Classe de base des erreurs de données récupérables."""

    def __init__(self, where: str = ""):
        self.where = where
        super().__init__()

    def _at(self) -> str:
        return f" {self.where}" if self.where else ""

    def message(self) -> str:
        return self.__class__.__name__

    def __str__(self) -> str:
        return self.message()


class GridContractError(Exception):
    """
    Levée quand l'appelant fournit une grille ou un document inutilisable.

    Exemple : import d'une grille sans colonne [row type], ou d'un document
    sans bloomDataDiv. Ce n'est pas un problème de données mais d'appel.
    """


class MissingColumn(SpreadsheetError):
    """
    Colonne obligatoire absente de la grille.

    Attributes:
        tag: Libellé de la colonne recherchée (ex: "[en]")
    """

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__()

    def message(self) -> str:
        return f"The spreadsheet has no column for {self.tag}"

    def __repr__(self) -> str:
        return f"MissingColumn(tag={self.tag!r})"


class MissingMediaFile(SpreadsheetError):
    """
    Fichier média référencé dans le tableur mais introuvable.

    Attributes:
        path: Chemin résolu (séparateurs '/')
        media: Type de média ("audio", "image", "video", "activity")
    """

    def __init__(self, path: str, media: str = "audio", where: str = ""):
        self.path = path
        self.media = media
        super().__init__(where)

    def message(self) -> str:
        return f"Did not import {self.media}{self._at()} because '{self.path}' was not found."

    def __repr__(self) -> str:
        return f"MissingMediaFile(path={self.path!r}, media={self.media!r})"


class InvalidMediaFile(SpreadsheetError):
    """
    Fichier média présent mais illisible (ex: mp3 corrompu).

    Attributes:
        path: Chemin du fichier
        reason: Détail technique (journalisé, non affiché)
    """

    def __init__(self, path: str, reason: str = "", where: str = ""):
        self.path = path
        self.reason = reason
        super().__init__(where)

    def message(self) -> str:
        return (
            f"Did not import audio{self._at()} because the audio file "
            f"'{self.path}' is not a valid mp3 file."
        )

    def __repr__(self) -> str:
        return f"InvalidMediaFile(path={self.path!r}, reason={self.reason!r})"


class CountMismatch(SpreadsheetError):
    """
    Nombre de fichiers audio différent du nombre de phrases.

    Attributes:
        audio_files: Nombre de fichiers (y compris "missing")
        sentences: Nombre de phrases trouvées par le découpeur
    """

    def __init__(self, audio_files: int, sentences: int, where: str = ""):
        self.audio_files = audio_files
        self.sentences = sentences
        super().__init__(where)

    def message(self) -> str:
        return (
            f"Did not import audio{self._at()} because there are {self.audio_files} "
            f"audio files for {self.sentences} sentences; they should match up. "
            "Use 'missing' if necessary."
        )

    def __repr__(self) -> str:
        return (
            f"CountMismatch(audio_files={self.audio_files}, "
            f"sentences={self.sentences})"
        )


class AlignmentCountMismatch(SpreadsheetError):
    """
    Alignements incompatibles avec le contenu du bloc.

    Deux cas :
    - plusieurs fichiers audio accompagnés d'alignements (audio_files > 1)
    - nombre d'alignements différent du nombre de phrases

    Attributes:
        alignments: Nombre de valeurs d'alignement
        sentences: Nombre de phrases
        audio_files: Nombre de fichiers audio (cas multi-fichiers)
    """

    def __init__(
        self,
        alignments: int = 0,
        sentences: int = 0,
        audio_files: Optional[int] = None,
        where: str = "",
    ):
        self.alignments = alignments
        self.sentences = sentences
        self.audio_files = audio_files
        super().__init__(where)

    def message(self) -> str:
        if self.audio_files is not None:
            return (
                f"Did not import audio{self._at()} because there should be only one "
                "audio file when audio alignment is specified."
            )
        return (
            f"Did not import audio alignments{self._at()} because there are "
            f"{self.alignments} audio alignments for {self.sentences} sentences; "
            "they should match up."
        )

    def __repr__(self) -> str:
        return (
            f"AlignmentCountMismatch(alignments={self.alignments}, "
            f"sentences={self.sentences}, audio_files={self.audio_files})"
        )


class AlignmentValueInvalid(SpreadsheetError):
    """
    Valeurs d'alignement non numériques ou dépassant la durée réelle.

    Attributes:
        cell: Contenu brut de la cellule d'alignement
        duration: Durée mesurée du fichier (None si valeurs non numériques)
    """

    def __init__(self, cell: str, duration: Optional[float] = None, where: str = ""):
        self.cell = cell
        self.duration = duration
        super().__init__(where)

    def message(self) -> str:
        if self.duration is None:
            return (
                f"Removed audio alignments{self._at()} because some values in "
                f"'{self.cell}' are not valid numbers."
            )
        return (
            f"Removed audio alignments{self._at()} because some values in the list "
            f"given ('{self.cell}') are larger than the duration of the audio file "
            f"({_seconds(self.duration)})."
        )

    def __repr__(self) -> str:
        return f"AlignmentValueInvalid(cell={self.cell!r}, duration={self.duration})"


class PageCapacityExceeded(SpreadsheetError):
    """
    Plus de lignes d'un type que d'emplacements disponibles sur la page.

    Attributes:
        page_number: Numéro de page
        kind: Type d'emplacement ("text", "image", "video", "widget")
        blocks: Numéros (1-based) des blocs non importés
    """

    def __init__(self, page_number: str, kind: str, blocks: Sequence[int]):
        self.page_number = page_number
        self.kind = kind
        self.blocks = list(blocks)
        super().__init__(f"on page {page_number}")

    def message(self) -> str:
        numbers = ", ".join(str(b) for b in self.blocks)
        return (
            f"Input has more {self.kind} rows than there is room for on page "
            f"{self.page_number}; the row(s) for {self.kind} block(s) {numbers} "
            "were not imported."
        )

    def __repr__(self) -> str:
        return (
            f"PageCapacityExceeded(page={self.page_number!r}, kind={self.kind!r}, "
            f"blocks={self.blocks})"
        )


class PageNotFound(SpreadsheetError):
    """
    Le tableur référence un numéro de page absent du document.

    Attributes:
        page_number: Numéro de page demandé
    """

    def __init__(self, page_number: str):
        self.page_number = page_number
        super().__init__()

    def message(self) -> str:
        return (
            f"Input has rows for page {self.page_number}, but document has no page "
            f"{self.page_number} that can hold this content"
        )

    def __repr__(self) -> str:
        return f"PageNotFound(page={self.page_number!r})"


class PageTypeUnusable(SpreadsheetError):
    """
    Type de page demandé incapable de recevoir les données de la ligne.

    Attributes:
        row_number: Numéro de ligne dans le tableur (1-based, en-têtes compris)
        page_type: Type de page demandé dans [page type]
    """

    def __init__(self, row_number: int, page_type: str):
        self.row_number = row_number
        self.page_type = page_type
        super().__init__()

    def message(self) -> str:
        return (
            f"Row {self.row_number} requested page type '{self.page_type}' but "
            "contains no data suitable for that page type."
        )

    def __repr__(self) -> str:
        return (
            f"PageTypeUnusable(row={self.row_number}, page_type={self.page_type!r})"
        )
