"""
Logging de bloom-spreadsheet.

Chaque module obtient son logger via get_logger(__name__). Un logger a deux
sorties :
- la console, via tqdm.write() pour ne pas casser la barre de copie des
  médias ni celle de l'import des pages
- un fichier dans le répertoire de la session, logs/run_YYYYMMDD_HHMMSS/,
  ouvert seulement au premier message (un export sans incident ne laisse
  pas de dossier vide)

Les niveaux viennent de config.Logger_Level ; la CLI les relit après le
.env avec refresh_levels().
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from tqdm import tqdm

from .config import Logger_Level

DEFAULT_LOG_FILENAME = "spreadsheet.log"
PACKAGE_LOGGER_PREFIX = "bloom_spreadsheet"

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class LogSession:
    """
    Répertoire de logs commun à toute une exécution (singleton).

    Le nom du répertoire est fixé au premier accès ; rien n'est créé sur
    le disque tant qu'aucun fichier de log n'est écrit.

    Attributes:
        base_dir: Dossier parent des sessions (défaut : logs/)
    """

    _instance: Optional["LogSession"] = None
    _session_dir: Optional[Path] = None
    base_dir: Path = Path("logs")

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            cls._session_dir = cls.base_dir / f"run_{stamp}"
        return cls._instance

    @classmethod
    def get_session_dir(cls) -> Path:
        cls()
        assert cls._session_dir is not None
        return cls._session_dir

    @classmethod
    def reset(cls) -> None:
        """Oublie la session courante (tests)."""
        cls._instance = None
        cls._session_dir = None


class TqdmLoggingHandler(logging.Handler):
    """Sortie console qui passe par tqdm.write()."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=sys.stderr)
        except Exception:
            self.handleError(record)


class LazyFileHandler(logging.FileHandler):
    """
    FileHandler ouvert au premier message, dossier parent compris.

    Args:
        filename: Chemin du fichier de log
        mode: Mode d'ouverture ("a" ou "w")
        encoding: Encodage du fichier
        level: Niveau minimal du handler
    """

    def __init__(
        self,
        filename: Union[str, Path],
        mode: str = "a",
        encoding: str = "utf-8",
        level: int = logging.NOTSET,
    ) -> None:
        self.filename = Path(filename)
        super().__init__(self.filename, mode=mode, encoding=encoding, delay=True)
        self.setLevel(level)

    def _open(self):
        self.filename.parent.mkdir(parents=True, exist_ok=True)
        return super()._open()


def setup_logger(
    name: str,
    log_dir: Optional[str] = None,
    level: Optional[int] = None,
    console_level: Optional[int] = None,
    file_level: Optional[int] = None,
    log_filename: str = DEFAULT_LOG_FILENAME,
) -> logging.Logger:
    """
    Configure un logger (console + fichier) s'il ne l'est pas déjà.

    Args:
        name: Nom du logger, en général __name__
        log_dir: Dossier du fichier (défaut : répertoire de la session)
        level: Niveau du logger (défaut : Logger_Level.level)
        console_level: Niveau de la console (défaut : Logger_Level.console_level)
        file_level: Niveau du fichier (défaut : Logger_Level.file_level)
        log_filename: Nom du fichier de log

    Returns:
        Le logger, avec exactement deux handlers

    Example:
        >>> logger = setup_logger("bloom_spreadsheet.exporter", log_filename="export.log")
        >>> logger.info("📄 Export de 12 page(s)")
    """
    logger = logging.getLogger(name)
    logger.setLevel(Logger_Level.level if level is None else level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)
    folder = Path(log_dir) if log_dir is not None else LogSession.get_session_dir()

    console = TqdmLoggingHandler()
    console.setLevel(Logger_Level.console_level if console_level is None else console_level)
    file_handler = LazyFileHandler(
        folder / log_filename,
        level=Logger_Level.file_level if file_level is None else file_level,
    )
    for handler in (console, file_handler):
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def get_logger(name: str, log_filename: Optional[str] = None) -> logging.Logger:
    """
    Logger déjà configuré, ou configuré à la volée.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.warning("⚠️ Page 3 non mise à jour")
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    return setup_logger(name, log_filename=log_filename or DEFAULT_LOG_FILENAME)


def get_session_log_path(filename: str) -> Path:
    """Chemin d'un fichier dans le répertoire de la session."""
    return LogSession.get_session_dir() / filename


def refresh_levels(prefix: str = PACKAGE_LOGGER_PREFIX) -> None:
    """
    Réapplique Logger_Level aux loggers du package déjà créés.

    Les modules créent leur logger à l'import, avant que la CLI ait lu le
    .env.
    """
    for name, logger in logging.Logger.manager.loggerDict.items():
        if not name.startswith(prefix) or not isinstance(logger, logging.Logger):
            continue
        logger.setLevel(Logger_Level.level)
        for handler in logger.handlers:
            if isinstance(handler, TqdmLoggingHandler):
                handler.setLevel(Logger_Level.console_level)
            elif isinstance(handler, LazyFileHandler):
                handler.setLevel(Logger_Level.file_level)
