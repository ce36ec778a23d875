"""
Tests de la ligne de commande (export puis import d'un même livre).
"""

import pytest

from bloom_spreadsheet.__main__ import build_parser, run_export, run_import
from bloom_spreadsheet.document import BookDocument
from bloom_spreadsheet.grid import ColumnTag, Grid
from bloom_spreadsheet.languages import StaticLanguageNames, parse_language_names
from bloom_spreadsheet.xlsx import write_spreadsheet


@pytest.fixture
def book_path(book_folder, book_html):
    path = book_folder / "book.htm"
    path.write_text(book_html, encoding="utf-8")
    return path


class TestParser:
    """Tests pour build_parser()."""

    def test_export_arguments(self, tmp_path):
        args = build_parser().parse_args(["export", "b/b.htm", str(tmp_path), "--overwrite"])
        assert args.command == "export"
        assert args.overwrite
        assert not args.retain_markup

    def test_import_arguments(self):
        args = build_parser().parse_args(
            ["import", "s.xlsx", "b.htm", "--remove-other-languages"]
        )
        assert args.remove_other_languages
        assert args.templates is None

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestCommands:
    """Tests de run_export() et run_import()."""

    def test_export_then_import(self, book_path, tmp_path):
        """Test : un livre réimporté depuis son propre export garde son texte."""
        output = tmp_path / "export"
        parser = build_parser()

        assert run_export(parser.parse_args(["export", str(book_path), str(output)])) == 0
        assert (output / "export.xlsx").is_file()

        args = parser.parse_args(["import", str(output / "export.xlsx"), str(book_path)])
        assert run_import(args) == 0
        book = BookDocument.load(book_path)
        assert "The cat sat." in book.soup.get_text()

    def test_export_refuses_existing_folder(self, book_path, tmp_path):
        output = tmp_path / "export"
        output.mkdir()
        args = build_parser().parse_args(["export", str(book_path), str(output)])
        assert run_export(args) == 1

    def test_import_without_row_type_column(self, book_path, tmp_path, capsys):
        grid = Grid(standard_columns=False)
        grid.set_cell(grid.add_row(), ColumnTag.language("en"), "Hello")
        sheet = write_spreadsheet(grid, tmp_path / "bad.xlsx")

        args = build_parser().parse_args(["import", str(sheet), str(book_path)])

        assert run_import(args) == 2
        assert "[row type]" in capsys.readouterr().err


class TestLanguageNames:
    """Tests des noms affichés des langues."""

    def test_known_and_unknown(self):
        names = StaticLanguageNames()
        assert names.get_language_display_name("*") == "Any language"
        assert names.get_language_display_name("qaa") == "qaa"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("BLOOM_SPREADSHEET_LANG_NAMES", "xyz=Xyzish")
        assert StaticLanguageNames().get_language_display_name("xyz") == "Xyzish"

    def test_parse_language_names(self):
        assert parse_language_names("a=Aish, b = Bish,broken,=x") == {"a": "Aish", "b": "Bish"}
