"""
Tests de la bibliothèque de pages modèles.
"""

import pytest

from bloom_spreadsheet.document import SlotKind
from bloom_spreadsheet.document.dom import editables
from bloom_spreadsheet.templates import TemplateLibrary


@pytest.fixture(scope="module")
def library():
    return TemplateLibrary.default(["en", "fr", "*"])


class TestTemplateLibrary:
    """Tests pour TemplateLibrary."""

    def test_find_by_label_and_id(self, library):
        by_label = library.find("Just Text")
        by_id = library.find("a31c38d8-c1cb-4eb9-951b-d2840f6a8bdb")
        assert by_label is by_id
        assert library.find("Basic Text & Picture").capacity()[SlotKind.IMAGE] == 1
        assert library.find("No Such Page") is None

    def test_rendered_languages(self, library):
        """Test : les groupes du modèle ont un editable z plus un par langue."""
        group = library.find("Just Text").slots(SlotKind.TEXT)[0].group
        assert [e["lang"] for e in editables(group)] == ["z", "en", "fr"]

    def test_resolve_returns_copy(self, library):
        page = library.resolve_template_page("Just Text")
        assert page["id"] == "a31c38d8-c1cb-4eb9-951b-d2840f6a8bdb"
        page["id"] = "changed"
        assert library.find("Just Text").element["id"] == "a31c38d8-c1cb-4eb9-951b-d2840f6a8bdb"
        assert library.resolve_template_page("unknown") is None

    @pytest.mark.parametrize(
        "needed,label",
        [
            ({SlotKind.TEXT: 1}, "Just Text"),
            ({SlotKind.IMAGE: 1}, "Just a Picture"),
            ({SlotKind.TEXT: 1, SlotKind.IMAGE: 1}, "Basic Text & Picture"),
            ({SlotKind.TEXT: 2, SlotKind.IMAGE: 1}, "Picture in Middle"),
            ({SlotKind.IMAGE: 1, SlotKind.VIDEO: 1}, "Picture and Video"),
            ({SlotKind.WIDGET: 1}, "Widget"),
        ],
    )
    def test_best_template_for(self, library, needed, label):
        assert library.best_template_for(needed).label == label

    def test_best_template_for_nothing(self, library):
        assert library.best_template_for({SlotKind.TEXT: 0}) is None

    def test_quiz_page(self, library):
        quiz = library.find("Quiz Page")
        assert quiz.capacity()[SlotKind.TEXT] == 5

    def test_from_plain_html(self, tmp_path, book_html):
        """Test : un livre .htm sert tel quel de bibliothèque de modèles."""
        path = tmp_path / "templates.htm"
        path.write_text(book_html, encoding="utf-8")
        library = TemplateLibrary.from_template(path)
        assert library.find("page-2").label == "Just Text"
        assert len(library.pages) == 3
