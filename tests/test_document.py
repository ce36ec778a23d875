"""
Tests du modèle de document Bloom et de la classification des pages.
"""

from bs4 import BeautifulSoup

from bloom_spreadsheet.document import (
    BookDocument,
    Image,
    QuizAnswer,
    SlotKind,
    TextBlock,
    Video,
    Widget,
    classify_page,
)
from bloom_spreadsheet.document.dom import (
    add_class,
    editable_in_lang,
    inner_html,
    remove_class,
    remove_other_languages,
    set_inner_html,
)


def _page(inner: str, attrs: str = 'data-page-number="4"'):
    html = f'<div class="bloom-page" id="p" {attrs}>{inner}</div>'
    return BeautifulSoup(html, "html.parser").div


class TestBookDocument:
    """Tests pour BookDocument."""

    def test_content_pages_skip_unnumbered(self, book):
        """Test : la couverture (sans numéro) n'est pas une page de contenu."""
        assert len(book.pages()) == 3
        assert [p.number for p in book.content_pages()] == ["1", "2"]

    def test_data_book_elements(self, book):
        assert len(book.data_book_elements()) == 4
        titles = book.data_book_elements("bookTitle")
        assert [t["lang"] for t in titles] == ["en", "fr"]

    def test_page_label_and_lineage(self, book):
        first = book.content_pages()[0]
        assert first.label == "Basic Text & Picture"
        assert first.lineage == "adcd48df-e9ab-4a07-afd4-6a24d0398382"

    def test_last_page_number(self, book):
        assert book.last_page_number() == 2

    def test_save_and_load(self, book, tmp_path):
        path = book.save(tmp_path / "book.htm")
        again = BookDocument.load(path)
        assert str(again) == str(book)
        assert again.folder == tmp_path


class TestClassifyPage:
    """Tests pour classify_page()."""

    def test_document_order(self):
        """Test : image, texte, vidéo et widget dans l'ordre du document."""
        page = _page(
            '<div class="bloom-imageContainer"><img src="a.png"></div>'
            '<div class="bloom-translationGroup"></div>'
            '<div class="bloom-videoContainer"><video><source src="v.mp4"></video></div>'
            '<div class="bloom-widgetContainer"><iframe src="activities/w/index.html"></iframe></div>'
        )
        info = classify_page(page)
        assert [type(c) for c in info.contents] == [Image, TextBlock, Video, Widget]
        assert info.contents[0].src == "a.png"
        assert info.contents[2].src == "v.mp4"
        assert info.contents[3].src == "activities/w/index.html"

    def test_text_blocks_sorted_by_tabindex(self):
        """Test : les blocs de texte sont triés par tabindex, sans tabindex à la fin."""
        page = _page(
            '<div class="bloom-translationGroup" id="c"></div>'
            '<div class="bloom-translationGroup" tabindex="2" id="b"></div>'
            '<div class="bloom-imageContainer"><img src="a.png"></div>'
            '<div class="bloom-translationGroup" tabindex="1" id="a"></div>'
        )
        info = classify_page(page)
        kinds = [c.slot for c in info.contents]
        assert kinds == [SlotKind.TEXT, SlotKind.TEXT, SlotKind.IMAGE, SlotKind.TEXT]
        assert [b.group["id"] for b in info.slots(SlotKind.TEXT)] == ["a", "b", "c"]

    def test_image_description_skipped(self):
        """Test : un groupe de traduction dans une description d'image est ignoré."""
        page = _page(
            '<div class="bloom-imageContainer"><img src="a.png">'
            '<div class="bloom-translationGroup bloom-imageDescription">'
            '<div class="bloom-editable" lang="en">A cat</div></div></div>'
            '<div class="bloom-translationGroup"></div>'
        )
        info = classify_page(page)
        assert info.capacity() == {
            SlotKind.TEXT: 1,
            SlotKind.IMAGE: 1,
            SlotKind.VIDEO: 0,
            SlotKind.WIDGET: 0,
        }

    def test_quiz_answers(self):
        page = _page(
            '<div class="checkbox-and-textbox-choice correct-answer">'
            '<div class="bloom-translationGroup"></div></div>'
            '<div class="checkbox-and-textbox-choice">'
            '<div class="bloom-translationGroup"></div></div>'
        )
        answers = classify_page(page).contents
        assert all(isinstance(a, QuizAnswer) for a in answers)
        assert [a.correct for a in answers] == [True, False]

    def test_matches_type(self):
        page = _page(
            '<div class="pageLabel">Just Text</div>',
            attrs='data-page-number="3" data-pagelineage="a31c38d8;other"',
        )
        info = classify_page(page)
        assert info.lineage == "a31c38d8"
        assert info.matches_type("Just Text")
        assert info.matches_type("a31c38d8")
        assert info.matches_type("p")
        assert info.matches_type("")
        assert not info.matches_type("Picture in Middle")

    def test_template_page_lineage_is_id(self):
        info = classify_page(_page("", attrs=""))
        assert info.lineage == "p"
        assert info.number == ""


class TestDom:
    """Tests des utilitaires de balises."""

    def test_classes(self):
        tag = BeautifulSoup('<div class="a b"></div>', "html.parser").div
        add_class(tag, "c")
        add_class(tag, "a")
        assert tag["class"] == ["a", "b", "c"]
        remove_class(tag, "a")
        remove_class(tag, "b")
        remove_class(tag, "c")
        assert not tag.has_attr("class")

    def test_inner_html(self):
        tag = BeautifulSoup("<div>x</div>", "html.parser").div
        set_inner_html(tag, "<p>Hi <em>there</em></p>")
        assert inner_html(tag) == "<p>Hi <em>there</em></p>"

    def test_editables(self):
        group = BeautifulSoup(
            '<div class="bloom-translationGroup">'
            '<div class="bloom-editable" lang="z"></div>'
            '<div class="bloom-editable" lang="en"></div>'
            '<div class="bloom-editable" lang="de"></div></div>',
            "html.parser",
        ).div
        assert editable_in_lang(group, "en")["lang"] == "en"
        assert editable_in_lang(group, None)["lang"] == "z"
        assert editable_in_lang(group, "fr") is None

        remove_other_languages(group, ["en"], "z")
        assert [e["lang"] for e in group.find_all("div")] == ["z", "en"]
