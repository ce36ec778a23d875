"""
Retour de progression des exports et imports.

Chaque message de diagnostic est transmis au ProgressSink en plus du
logger. TqdmProgress affiche une barre pour les étapes longues (pages,
copies de médias) ; CollectingProgress garde simplement les messages (tests,
intégration dans une autre interface).
"""

from typing import Optional, Protocol

from tqdm import tqdm

from .logger import get_logger

logger = get_logger(__name__)

# Types de messages
INFO = "info"
WARNING = "warning"
ERROR = "error"


class ProgressSink(Protocol):
    def message(self, text: str, kind: str = INFO) -> None:
        ...

    def start(self, total: int, description: str) -> None:
        ...

    def advance(self, count: int = 1) -> None:
        ...

    def finish(self) -> None:
        ...


class TqdmProgress:
    """
    Progression affichée avec tqdm.

    Les avertissements sont écrits au-dessus de la barre (tqdm.write) et
    journalisés.
    """

    def __init__(self, disable: bool = False) -> None:
        self.disable = disable
        self._bar: Optional[tqdm] = None

    def start(self, total: int, description: str) -> None:
        self.finish()
        self._bar = tqdm(
            total=total,
            desc=description,
            ncols=100,
            bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]",
            disable=self.disable,
        )

    def advance(self, count: int = 1) -> None:
        if self._bar is not None:
            self._bar.update(count)

    def finish(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None

    def message(self, text: str, kind: str = INFO) -> None:
        if kind == ERROR:
            logger.error(f"❌ {text}")
        elif kind == WARNING:
            logger.warning(f"⚠️ {text}")
        else:
            logger.info(text)
        # les erreurs passent déjà par la console du logger
        if not self.disable and kind == WARNING:
            tqdm.write(f"⚠️ {text}")


class CollectingProgress:
    """Garde les messages en mémoire, sans affichage."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []
        self.total = 0
        self.done = 0

    def start(self, total: int, description: str) -> None:
        self.total = total
        self.done = 0

    def advance(self, count: int = 1) -> None:
        self.done += count

    def finish(self) -> None:
        pass

    def message(self, text: str, kind: str = INFO) -> None:
        self.messages.append((kind, text))

    def texts(self, kind: Optional[str] = None) -> list[str]:
        return [text for k, text in self.messages if kind is None or k == kind]
