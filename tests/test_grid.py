"""
Tests du modèle de grille : colonnes typées, colonne joker et lignes.
"""

import pytest

from bloom_spreadsheet.exceptions import MissingColumn
from bloom_spreadsheet.grid import (
    STANDARD_LEADING_COLUMNS,
    WILDCARD_TAG,
    ColumnKind,
    ColumnTag,
    ContentRow,
    Grid,
    RowKind,
    classify_row_key,
)


class TestColumnTag:
    """Tests pour ColumnTag."""

    @pytest.mark.parametrize(
        "label",
        ["[row type]", "[en]", "[*]", "[audio fr]", "[audio alignments tpi]", "[image source]"],
    )
    def test_parse_label(self, label):
        """Test : parse() puis label redonnent le libellé d'origine."""
        assert ColumnTag.parse(label).label == label

    def test_parse_audio_alignments_before_audio(self):
        """Test : "[audio alignments xx]" n'est pas pris pour une colonne audio."""
        tag = ColumnTag.parse("[audio alignments en]")
        assert tag.kind is ColumnKind.ALIGNMENT
        assert tag.lang == "en"

    def test_unknown_label_kept(self):
        """Test : un libellé inconnu donne une colonne OTHER conservée."""
        tag = ColumnTag.parse("Notes du traducteur")
        assert tag.kind is ColumnKind.OTHER
        assert tag.label == "Notes du traducteur"


class TestWildcardColumn:
    """Tests de l'invariant : la colonne [*] reste la dernière."""

    def test_standard_columns(self):
        """Test : une grille neuve a les colonnes standard dans l'ordre."""
        grid = Grid()
        assert [c.tag.kind for c in grid.columns] == list(STANDARD_LEADING_COLUMNS)

    def test_new_column_inserted_before_wildcard(self):
        """Test : une nouvelle colonne est insérée avant [*]."""
        grid = Grid()
        grid.add_column_for_tag(WILDCARD_TAG, "Any language")
        grid.add_column_for_tag(ColumnTag.language("en"), "English")
        grid.add_column_for_tag(ColumnTag.audio("en"), "English audio")

        labels = [c.tag.label for c in grid.columns]
        assert labels[-1] == "[*]"
        assert labels[-3:-1] == ["[en]", "[audio en]"]

    def test_wildcard_cells_shift_with_column(self):
        """Test : le contenu de [*] suit la colonne quand elle se décale."""
        grid = Grid()
        row = grid.add_row()
        grid.set_cell(row, WILDCARD_TAG, "Copyright © 2020")
        grid.set_cell(row, ColumnTag.language("fr"), "Bonjour")

        assert grid.cell(row, WILDCARD_TAG) == "Copyright © 2020"
        assert grid.cell(row, ColumnTag.language("fr")) == "Bonjour"
        assert grid.column_for_tag(WILDCARD_TAG) == grid.column_count - 1

    def test_only_wildcard_index_changes(self):
        """Test : ajouter une colonne ne change que l'index de [*]."""
        grid = Grid()
        en = grid.add_column_for_tag(ColumnTag.language("en"))
        star = grid.add_column_for_tag(WILDCARD_TAG)
        fr = grid.add_column_for_tag(ColumnTag.language("fr"))

        assert grid.column_for_lang("en") == en
        assert fr == star
        assert grid.column_for_tag(WILDCARD_TAG) == star + 1

    def test_one_column_per_tag(self):
        """Test : une étiquette a au plus une colonne."""
        grid = Grid()
        first = grid.add_column_for_tag(ColumnTag.language("en"), "English")
        second = grid.add_column_for_tag(ColumnTag.language("en"), "Anglais")
        assert first == second
        assert grid.columns[first].display_name == "English"


class TestGridLookup:
    """Tests des accès par étiquette."""

    def test_missing_column(self):
        """Test : colonne absente -> None, ou MissingColumn si obligatoire."""
        grid = Grid()
        assert grid.column_for_lang("es") is None
        with pytest.raises(MissingColumn) as exc_info:
            grid.required_column_for_tag(ColumnTag.language("es"))
        assert str(exc_info.value) == "The spreadsheet has no column for [es]"

    def test_languages_in_column_order(self):
        """Test : languages suit l'ordre des colonnes, [*] comprise."""
        grid = Grid()
        grid.add_column_for_tag(WILDCARD_TAG)
        grid.add_column_for_tag(ColumnTag.language("fr"))
        grid.add_column_for_tag(ColumnTag.language("en"))
        assert grid.languages == ["fr", "en", "*"]

    def test_header_rows(self):
        """Test : deux lignes d'en-tête, la première cachée."""
        grid = Grid()
        tags, names = grid.header_rows()
        assert tags.hidden
        assert not names.hidden
        assert tags.get_cell(0).content == "[row type]"
        assert names.get_cell(0).content == "Row Type"

    def test_row_number_counts_headers(self):
        """Test : la première ligne de contenu est la ligne 3 du fichier."""
        grid = Grid()
        first = grid.add_row()
        second = grid.add_row()
        assert grid.row_number(first) == 3
        assert grid.row_number(second) == 4

    def test_sort_hidden_rows_to_bottom(self):
        """Test : les lignes cachées passent en fin, ordre conservé."""
        grid = Grid()
        rows = [grid.add_row() for _ in range(4)]
        rows[0].hidden = True
        rows[2].hidden = True
        grid.sort_hidden_rows_to_bottom()
        assert list(grid.content_rows) == [rows[1], rows[3], rows[0], rows[2]]


class TestRows:
    """Tests des lignes de contenu."""

    @pytest.mark.parametrize(
        "key,kind",
        [
            ("[textgroup]", RowKind.TEXT_GROUP),
            ("[image]", RowKind.IMAGE),
            ("[page content]", RowKind.PAGE_CONTENT),
            ("[bookTitle]", RowKind.BOOK_METADATA),
            ("bookTitle", RowKind.UNKNOWN),
            ("", RowKind.UNKNOWN),
        ],
    )
    def test_classify_row_key(self, key, kind):
        assert classify_row_key(key) is kind

    def test_sparse_cells(self):
        """Test : une cellule absente vaut ""."""
        row = ContentRow()
        row.set_cell(3, "x")
        assert row.text(0) == ""
        assert row.text(3) == "x"
        assert row.text(10) == ""
        assert row.text(None) == ""

    def test_data_book_key(self):
        row = ContentRow()
        row.set_cell(0, "[ISBN]")
        assert row.data_book_key == "ISBN"
