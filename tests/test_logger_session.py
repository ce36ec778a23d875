"""
Tests pour le système de logging avec sessions et création lazy.
"""

import logging
from pathlib import Path

import pytest

from bloom_spreadsheet.config import Logger_Level, apply_environment
from bloom_spreadsheet.logger import (
    DEFAULT_LOG_FILENAME,
    LazyFileHandler,
    LogSession,
    TqdmLoggingHandler,
    get_logger,
    get_session_log_path,
    refresh_levels,
    setup_logger,
)


@pytest.fixture(autouse=True)
def reset_log_session():
    """Reset la session de logs entre chaque test."""
    LogSession.reset()
    yield
    LogSession.reset()


@pytest.fixture
def fresh_logger_name(request):
    """Nom de logger propre au test, nettoyé après."""
    name = f"bloom_spreadsheet.tests.{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_log_session_singleton():
    """Test : LogSession est un singleton."""
    assert LogSession() is LogSession()
    assert LogSession.get_session_dir() == LogSession.get_session_dir()


def test_log_session_dir_name():
    session_dir = LogSession.get_session_dir()
    assert session_dir.name.startswith("run_")
    assert session_dir.parent == Path("logs")


def test_session_dir_not_created_eagerly():
    """Test : aucun répertoire n'est créé tant que rien n'est écrit."""
    LogSession.base_dir, previous = Path("never-created-logs"), LogSession.base_dir
    try:
        assert not LogSession.get_session_dir().exists()
    finally:
        LogSession.base_dir = previous


def test_lazy_file_handler_creates_file_only_on_emit(tmp_path):
    """Test : LazyFileHandler ne crée le fichier qu'au premier log."""
    log_file = tmp_path / "session" / "lazy.log"
    handler = LazyFileHandler(log_file, mode="w")
    handler.setFormatter(logging.Formatter("%(message)s"))

    assert not log_file.parent.exists()

    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg="📥 Tableur lu",
        args=(),
        exc_info=None,
    )
    handler.emit(record)
    handler.close()

    assert log_file.read_text(encoding="utf-8").strip() == "📥 Tableur lu"


def test_setup_logger_handlers(fresh_logger_name, tmp_path):
    """Test : un handler console (tqdm) puis un handler fichier lazy."""
    logger = setup_logger(fresh_logger_name, log_dir=str(tmp_path), log_filename="export.log")

    console, file_handler = logger.handlers
    assert isinstance(console, TqdmLoggingHandler)
    assert isinstance(file_handler, LazyFileHandler)
    assert file_handler.filename == tmp_path / "export.log"


def test_setup_logger_uses_session_dir(fresh_logger_name):
    logger = setup_logger(fresh_logger_name)
    assert logger.handlers[1].filename == LogSession.get_session_dir() / DEFAULT_LOG_FILENAME


def test_setup_logger_avoids_duplicate_handlers(fresh_logger_name):
    logger1 = setup_logger(fresh_logger_name)
    logger2 = setup_logger(fresh_logger_name)
    assert logger1 is logger2
    assert len(logger1.handlers) == 2


def test_get_logger_custom_filename(fresh_logger_name):
    logger = get_logger(fresh_logger_name, log_filename="import.log")
    assert logger.handlers[1].filename.name == "import.log"


def test_get_session_log_path():
    assert get_session_log_path("import.log") == LogSession.get_session_dir() / "import.log"


def test_refresh_levels(fresh_logger_name, monkeypatch):
    """Test : les niveaux lus après coup (.env) s'appliquent aux loggers existants."""
    logger = setup_logger(fresh_logger_name)
    monkeypatch.setattr(Logger_Level, "level", logging.DEBUG)
    monkeypatch.setattr(Logger_Level, "console_level", logging.WARNING)
    monkeypatch.setattr(Logger_Level, "file_level", logging.INFO)

    refresh_levels()

    console, file_handler = logger.handlers
    assert logger.level == logging.DEBUG
    assert console.level == logging.WARNING
    assert file_handler.level == logging.INFO


def test_refresh_levels_ignores_other_loggers(fresh_logger_name, monkeypatch):
    other = logging.getLogger("some.other.library")
    other.setLevel(logging.CRITICAL)
    monkeypatch.setattr(Logger_Level, "level", logging.DEBUG)
    refresh_levels()
    assert other.level == logging.CRITICAL


def test_apply_environment_levels(monkeypatch):
    """Test : les niveaux sont lus dans l'environnement."""
    monkeypatch.setattr(Logger_Level, "level", logging.INFO)
    monkeypatch.setattr(Logger_Level, "console_level", logging.ERROR)
    monkeypatch.setenv("BLOOM_SPREADSHEET_LOG_LEVEL", "debug")
    monkeypatch.setenv("BLOOM_SPREADSHEET_CONSOLE_LEVEL", "WARNING")

    apply_environment()

    assert Logger_Level.level == logging.DEBUG
    assert Logger_Level.console_level == logging.WARNING


def test_apply_environment_unknown_level(monkeypatch, caplog):
    """Test : un nom de niveau inconnu est ignoré avec un avertissement."""
    monkeypatch.setattr(Logger_Level, "level", logging.INFO)
    monkeypatch.setenv("BLOOM_SPREADSHEET_LOG_LEVEL", "verbose")
    monkeypatch.delenv("BLOOM_SPREADSHEET_CONSOLE_LEVEL", raising=False)

    with caplog.at_level(logging.WARNING, logger="bloom_spreadsheet.config"):
        apply_environment()

    assert Logger_Level.level == logging.INFO
    assert "niveau inconnu" in caplog.text
