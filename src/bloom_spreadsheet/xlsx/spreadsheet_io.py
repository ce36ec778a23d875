"""
Lecture et écriture de la grille au format xlsx (openpyxl).

Disposition du fichier (feuille "BloomBook") :
- ligne 1 : étiquettes des colonnes ([row type], [en]...), cachée
- ligne 2 : noms affichés, en gras, avec les commentaires d'en-tête
- lignes suivantes : une ligne de contenu par ligne de la grille

Les cellules de langue sont écrites en texte enrichi (gras, italique,
souligné, exposant, couleur) à partir du HTML de la grille, et relues en
HTML (<p> par paragraphe). Dans la grille le texte est du HTML échappé
(&amp;, &lt;) ; dans le fichier il apparaît décodé. En mode retain_markup
le HTML est écrit et relu tel quel.

Les caractères de contrôle interdits dans un fichier xlsx sont codés
_xHHHH_ à l'écriture et décodés à la lecture.
"""

import re
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from openpyxl import Workbook, load_workbook
from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.cell.text import InlineFont
from openpyxl.comments import Comment
from openpyxl.drawing.image import Image as XLImage
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.styles.colors import Color
from openpyxl.utils import get_column_letter
from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from ..config import SpreadsheetLabels
from ..grid import ColumnKind, ColumnTag, ContentRow, Grid
from ..logger import get_logger
from ..markup import (
    LINEBREAK_FOLLOWER,
    MarkedUpText,
    MarkedUpTextRun,
    parse,
    serialize,
)

logger = get_logger(__name__)

SHEET_NAME = "BloomBook"
COMMENT_AUTHOR = "Bloom"
THUMBNAIL_SIZE = 150
LANGUAGE_COLUMN_WIDTH = 40

# Caractères de contrôle refusés par le format (tab, \n et \r sont permis)
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
# Séquence littérale qui serait prise pour un échappement
_ESCAPE_LIKE = re.compile(r"_x[0-9A-Fa-f]{4}_")
_ESCAPED = re.compile(r"_x([0-9A-Fa-f]{4})_")

_NAMED_COLORS = {
    "black": "000000",
    "white": "FFFFFF",
    "red": "FF0000",
    "green": "008000",
    "blue": "0000FF",
    "yellow": "FFFF00",
    "orange": "FFA500",
    "purple": "800080",
    "gray": "808080",
    "grey": "808080",
}
_HEX_COLOR = re.compile(r"^#?([0-9A-Fa-f]{6}|[0-9A-Fa-f]{3})$")
_RGB_COLOR = re.compile(r"^rgb\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)$", re.IGNORECASE)


# ============================================================
# 🔹 Échappements
# ============================================================


def escape_xlsx(text: str) -> str:
    """
    Code les caractères interdits en _xHHHH_.

    Example:
        >>> escape_xlsx("a\\x01b")
        'a_x0001_b'
    """
    text = _ESCAPE_LIKE.sub(lambda m: "_x005F" + m.group(0), text)
    return _CONTROL_CHARS.sub(lambda m: f"_x{ord(m.group(0)):04X}_", text)


def unescape_xlsx(text: str) -> str:
    """Décode les séquences _xHHHH_ (inverse de escape_xlsx)."""
    return _ESCAPED.sub(lambda m: chr(int(m.group(1), 16)), text)


# ============================================================
# 🔹 Couleurs
# ============================================================


def css_to_argb(color: str) -> Optional[str]:
    """
    Convertit une couleur CSS simple en ARGB ("FFRRGGBB").

    Returns:
        None si la couleur n'est pas reconnue
    """
    value = color.strip().lower()
    if value in _NAMED_COLORS:
        return "FF" + _NAMED_COLORS[value]
    match = _HEX_COLOR.match(value)
    if match:
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(c * 2 for c in digits)
        return "FF" + digits.upper()
    match = _RGB_COLOR.match(value)
    if match:
        return "FF" + "".join(f"{min(int(v), 255):02X}" for v in match.groups())
    return None


def argb_to_css(argb: Optional[str]) -> Optional[str]:
    if not isinstance(argb, str) or len(argb) < 6:
        return None
    rgb = argb[-6:].lower()
    if rgb == "000000":
        # couleur par défaut du texte
        return None
    return f"#{rgb}"


# ============================================================
# 🔹 Texte enrichi
# ============================================================


def _cell_text(text: str) -> str:
    """Texte d'un run pour une cellule : saut de ligne forcé = "\\n" + U+FEFF."""
    return escape_xlsx(text.replace(LINEBREAK_FOLLOWER, "\n" + LINEBREAK_FOLLOWER))


def _inline_font(run: MarkedUpTextRun) -> InlineFont:
    font = InlineFont()
    if run.bold:
        font.b = True
    if run.italic:
        font.i = True
    if run.underlined:
        font.u = "single"
    if run.superscript:
        font.vertAlign = "superscript"
    if run.color:
        argb = css_to_argb(run.color)
        if argb is not None:
            font.color = Color(rgb=argb)
        else:
            logger.debug(f"Couleur non reconnue ignorée : {run.color}")
    return font


def markup_to_cell_value(content: str) -> Union[str, CellRichText]:
    """
    Valeur de cellule pour le HTML d'une cellule de langue.

    Les entités sont décodées : "&lt;b&gt;" s'affiche "<b>" dans le
    tableur. Le texte sans formatage est écrit en chaîne simple, les
    paragraphes séparés par des sauts de ligne.
    """
    text = parse(content)
    if not text.has_formatting:
        return _cell_text(text.plain_text)
    parts: list = []
    for run in text:
        if not run.text:
            continue
        if run.has_formatting:
            parts.append(TextBlock(_inline_font(run), _cell_text(run.text)))
        else:
            parts.append(_cell_text(run.text))
    return CellRichText(*parts)


def _run_from_block(block) -> MarkedUpTextRun:
    if isinstance(block, str):
        return MarkedUpTextRun(block)
    font = block.font
    color = None
    if font is not None and font.color is not None:
        color = argb_to_css(getattr(font.color, "rgb", None))
    return MarkedUpTextRun(
        block.text,
        bold=bool(font is not None and font.b),
        italic=bool(font is not None and font.i),
        underlined=bool(font is not None and font.u and font.u != "none"),
        superscript=bool(font is not None and font.vertAlign == "superscript"),
        color=color,
    )


def _runs_to_markup(runs: list[MarkedUpTextRun]) -> str:
    # "\n" + U+FEFF est un saut de ligne forcé, pas un nouveau paragraphe
    fixed = [
        run.with_text(unescape_xlsx(run.text).replace("\n" + LINEBREAK_FOLLOWER, LINEBREAK_FOLLOWER))
        for run in runs
    ]
    return serialize(MarkedUpText(tuple(fixed)), paragraphs=True)


def cell_value_to_markup(value) -> str:
    """
    HTML d'une cellule de langue lue dans le fichier.

    - texte enrichi : un <p> par paragraphe, balises de formatage
    - texte simple sur plusieurs lignes : un <p> par ligne
    - texte simple sur une ligne : échappé, sans <p>

    Le texte lu est toujours échappé : "x<y" dans le tableur donne
    "x&lt;y" dans la grille.
    """
    if isinstance(value, CellRichText):
        runs = [_run_from_block(block) for block in value]
        if any(run.has_formatting for run in runs):
            return _runs_to_markup(runs)
        value = "".join(run.text for run in runs)
    text = _plain(value)
    if "\n" in text.replace("\n" + LINEBREAK_FOLLOWER, ""):
        return _runs_to_markup([MarkedUpTextRun(text)])
    line = unescape_xlsx(text).replace("\n" + LINEBREAK_FOLLOWER, LINEBREAK_FOLLOWER)
    return serialize(MarkedUpText.plain(line))


def _plain(value) -> str:
    """Texte brut d'une valeur de cellule (nombres compris)."""
    if value is None:
        return ""
    if isinstance(value, CellRichText):
        return "".join(str(block) if isinstance(block, str) else block.text for block in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ============================================================
# 🔹 Écriture
# ============================================================


def _thumbnail(path: Path) -> Optional[XLImage]:
    try:
        with PILImage.open(path) as img:
            img.thumbnail((THUMBNAIL_SIZE, THUMBNAIL_SIZE))
            buffer = BytesIO()
            img.save(buffer, format="PNG")
    except (UnidentifiedImageError, OSError) as e:
        logger.debug(f"⚠️ Vignette impossible pour {path} : {e}")
        return None
    buffer.seek(0)
    return XLImage(buffer)


def write_spreadsheet(
    grid: Grid,
    path: Union[str, Path],
    image_folder: Union[str, Path, None] = None,
) -> Path:
    """
    Écrit la grille dans un fichier xlsx.

    Args:
        grid: Grille à écrire
        path: Fichier de sortie
        image_folder: Dossier où chercher les images des vignettes
            (les sources sont relatives à ce dossier : images/<fichier>)

    Returns:
        Chemin du fichier écrit
    """
    path = Path(path)
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_NAME

    columns = grid.columns
    language_columns = {
        i for i, c in enumerate(columns) if c.tag.kind is ColumnKind.LANGUAGE
    }
    source_col = grid.column_for_tag(ColumnTag(ColumnKind.IMAGE_SOURCE))
    thumb_col = grid.column_for_tag(ColumnTag(ColumnKind.IMAGE_THUMBNAIL))
    bold = Font(bold=True)

    for r, row in enumerate(grid.all_rows(), start=1):
        for c, cell in enumerate(row, start=1):
            if not cell.content:
                continue
            target = sheet.cell(row=r, column=c)
            if r > Grid.HEADER_ROW_COUNT and (c - 1) in language_columns and not grid.retain_markup:
                target.value = markup_to_cell_value(cell.content)
            else:
                target.value = escape_xlsx(cell.content)
            if target.data_type == "f":
                # texte commençant par "=", pas une formule
                target.data_type = "s"
            if r == Grid.HEADER_ROW_COUNT:
                target.font = bold
                if cell.comment:
                    target.comment = Comment(cell.comment, COMMENT_AUTHOR)
        if row.hidden:
            sheet.row_dimensions[r].hidden = True
        if isinstance(row, ContentRow):
            fill_color = row.background_color
            if fill_color:
                fill = PatternFill(start_color=fill_color, end_color=fill_color, fill_type="solid")
                for c in range(1, len(columns) + 1):
                    sheet.cell(row=r, column=c).fill = fill
            if thumb_col is not None and source_col is not None:
                _write_thumbnail(grid, sheet, r, row, source_col, thumb_col, image_folder)

    for c, column in enumerate(columns, start=1):
        letter = get_column_letter(c)
        if column.tag.kind is ColumnKind.LANGUAGE:
            sheet.column_dimensions[letter].width = LANGUAGE_COLUMN_WIDTH
            for r in range(Grid.HEADER_ROW_COUNT + 1, sheet.max_row + 1):
                sheet.cell(row=r, column=c).alignment = Alignment(wrap_text=True, vertical="top")
        if column.hidden:
            sheet.column_dimensions[letter].hidden = True

    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)
    logger.info(f"✅ Tableur écrit : {path}")
    return path


def _write_thumbnail(grid, sheet, r, row, source_col, thumb_col, image_folder) -> None:
    cell = sheet.cell(row=r, column=thumb_col + 1)
    hint = grid.display_hint(r - 1, thumb_col)
    if hint:
        cell.value = hint
        return
    source = row.text(source_col)
    if not source or source == SpreadsheetLabels.Blank_Content_Indicator:
        return
    if image_folder is None:
        return
    image = _thumbnail(Path(image_folder) / source)
    if image is None:
        return
    sheet.add_image(image, cell.coordinate)
    # hauteur en points (~ 0,75 pixel)
    sheet.row_dimensions[r].height = max(
        sheet.row_dimensions[r].height or 0, image.height * 0.75 + 4
    )
    sheet.column_dimensions[get_column_letter(thumb_col + 1)].width = THUMBNAIL_SIZE / 7 + 2


# ============================================================
# 🔹 Lecture
# ============================================================


def read_spreadsheet(path: Union[str, Path], retain_markup: bool = False) -> Grid:
    """
    Relit un fichier xlsx en grille.

    Args:
        path: Fichier xlsx
        retain_markup: Lire les cellules de langue en texte brut (HTML saisi
            à la main) au lieu de convertir le texte enrichi

    Returns:
        Grille avec les colonnes dans l'ordre du fichier
    """
    path = Path(path)
    workbook = load_workbook(path, rich_text=True)
    sheet = workbook[SHEET_NAME] if SHEET_NAME in workbook.sheetnames else workbook.active
    rows = list(sheet.iter_rows())
    if not rows:
        return Grid(standard_columns=False)

    tags = [unescape_xlsx(_plain(c.value)) for c in rows[0]]
    names: list[Optional[str]] = []
    comments: list[Optional[str]] = []
    if len(rows) > 1:
        for c in rows[1]:
            names.append(unescape_xlsx(_plain(c.value)) if c.value is not None else None)
            comments.append(c.comment.text if c.comment is not None else None)
    while tags and not tags[-1]:
        tags.pop()
    grid = Grid.from_header(tags, names, comments)
    grid.retain_markup = retain_markup
    language_columns = {
        i for i, column in enumerate(grid.columns) if column.tag.kind is ColumnKind.LANGUAGE
    }

    for r, cells in enumerate(rows[Grid.HEADER_ROW_COUNT :], start=Grid.HEADER_ROW_COUNT + 1):
        row = ContentRow()
        for c, cell in enumerate(cells[: len(tags)]):
            if cell.value is None:
                continue
            if c in language_columns and not retain_markup:
                content = cell_value_to_markup(cell.value)
            else:
                content = unescape_xlsx(_plain(cell.value))
            if content:
                row.set_cell(c, content)
        row.hidden = bool(sheet.row_dimensions[r].hidden)
        if len(row) == 0:
            continue
        grid.add_row(row)
    logger.info(f"📥 Tableur lu : {path} ({len(grid.content_rows)} ligne(s))")
    return grid
