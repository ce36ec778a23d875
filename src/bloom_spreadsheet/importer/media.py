"""
Fichiers référencés par le tableur : résolution et copie dans le livre.
"""

import shutil
from pathlib import Path
from typing import Optional

from ..logger import get_logger

logger = get_logger(__name__)


def resolve_media(spreadsheet_folder: Path, cell_path: str) -> Optional[Path]:
    """
    Fichier (ou dossier) désigné par une cellule.

    Le chemin est d'abord cherché relativement au dossier du tableur
    ("./audio/a.mp3", "images/chat.png"), puis pris tel quel s'il est absolu.

    Returns:
        Chemin existant, None sinon
    """
    cell_path = cell_path.strip()
    if not cell_path:
        return None
    relative = Path(spreadsheet_folder) / cell_path
    if relative.exists():
        return relative
    absolute = Path(cell_path)
    if absolute.is_absolute() and absolute.exists():
        return absolute
    return None


def copy_into_book(source: Path, destination: Path) -> None:
    """Copie un fichier ou un dossier dans le livre, sauf sur lui-même."""
    if source.resolve() == destination.resolve():
        return
    destination.parent.mkdir(parents=True, exist_ok=True)
    if source.is_dir():
        shutil.copytree(source, destination, dirs_exist_ok=True)
    else:
        shutil.copy2(source, destination)
    logger.debug(f"📥 {source} -> {destination}")
