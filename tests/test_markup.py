"""
Tests du parseur de formatage (HTML en ligne <-> runs).
"""

import pytest

from bloom_spreadsheet.markup import (
    LINEBREAK_HTML,
    SPLIT_MARKER_HTML,
    MarkedUpText,
    MarkedUpTextRun,
    markup_for_editable,
    markup_for_field,
    parse,
    serialize,
    serialize_fragment,
)


class TestParse:
    """Tests pour parse()."""

    def test_nested_formatting(self):
        """Test : le formatage s'accumule dans les balises imbriquées."""
        text = parse("<strong>a<em>b</em></strong>c")
        assert [(r.text, r.bold, r.italic) for r in text] == [
            ("a", True, False),
            ("b", True, True),
            ("c", False, False),
        ]

    def test_aliases(self):
        """Test : <b>, <i> valent <strong>, <em>."""
        text = parse("<b>x</b><i>y</i><u>z</u><sup>2</sup>")
        runs = list(text)
        assert runs[0].bold and runs[1].italic
        assert runs[2].underlined and runs[3].superscript

    def test_span_color(self):
        text = parse('<span style="font-size: 12px; color: #ff0000;">rouge</span>')
        assert list(text) == [MarkedUpTextRun("rouge", color="#ff0000")]

    def test_plain_text_never_fails(self):
        """Test : une chaîne sans balise donne un seul run non formaté."""
        assert parse("a < b").plain_text == "a < b"
        assert parse("Tom & Jerry").runs == (MarkedUpTextRun("Tom & Jerry"),)
        assert parse("").runs == ()
        assert parse(None).runs == ()

    def test_paragraphs_separated_by_newline(self):
        text = parse("<p>one</p>\n<p>two</p>")
        assert text.plain_text == "one\ntwo"

    def test_split_marker(self):
        """Test : le marqueur de découpage audio devient "|"."""
        text = parse(f"One.{SPLIT_MARKER_HTML}Two.")
        assert text.plain_text == "One.|Two."

    def test_linebreak_cuts_run(self):
        """Test : un saut de ligne forcé coupe le run sans ajouter de texte."""
        text = parse(f"a{LINEBREAK_HTML}\ufeffb")
        assert [r.text for r in text] == ["a", "\ufeffb"]

    def test_entities_decoded(self):
        assert parse("<p>Tom &amp; Jerry</p>").plain_text == "Tom & Jerry"


class TestSerialize:
    """Tests pour serialize() et l'idempotence parse/serialize."""

    @pytest.mark.parametrize(
        "fragment",
        [
            "<strong>a<em>b</em></strong>",
            "plain <em>and</em> <u>under</u>",
            '<span style="color: #ff0000;">red</span> text',
            "<strong>a</strong><strong>b</strong>",
            "x<sup>2</sup>",
        ],
    )
    def test_idempotent(self, fragment):
        """Test : serialize(parse(x)) est stable et redonne x sous forme canonique."""
        once = serialize(parse(fragment))
        assert once == fragment
        assert serialize(parse(once)) == once

    def test_canonical_order(self):
        """Test : les balises s'ouvrent dans l'ordre strong > em > u > sup > span."""
        text = MarkedUpText(
            (MarkedUpTextRun("x", bold=True, italic=True, underlined=True, color="blue"),)
        )
        assert serialize(text) == (
            '<strong><em><u><span style="color: blue;">x</span></u></em></strong>'
        )

    def test_paragraphs(self):
        text = parse("<p>a</p><p></p><p><em>b</em></p>")
        assert serialize(text, paragraphs=True) == "<p>a</p><p></p><p><em>b</em></p>"

    def test_linebreak_restored(self):
        fragment = f"a{LINEBREAK_HTML}\ufeffb"
        assert serialize(parse(fragment)) == fragment


class TestSlice:
    """Tests pour MarkedUpText.slice()."""

    def test_slice_keeps_formatting(self):
        text = parse("The <strong>big</strong> cat")
        piece = text.slice(2, 7)
        assert [(r.text, r.bold) for r in piece] == [("e ", False), ("big", True)]

    def test_slice_out_of_range(self):
        assert parse("abc").slice(5, 9).runs == ()


class TestCellConversions:
    """Tests des conversions cellule <-> bloom-editable / champ."""

    def test_fragment_keeps_paragraphs(self):
        """Test : <p> n'est gardé que si le fragment en avait."""
        assert serialize_fragment("<p>Hello</p>") == "<p>Hello</p>"
        assert serialize_fragment("<b>Hi</b> there") == "<strong>Hi</strong> there"

    def test_fragment_without_formatting_stays_escaped(self):
        """Test : un champ sans balise garde ses entités dans la cellule."""
        assert serialize_fragment("Copyright &amp; co") == "Copyright &amp; co"
        assert serialize_fragment("<span>just text</span>") == "just text"

    def test_fragment_escaped_tags_stay_text(self):
        """Test : "&lt;b&gt;" écrit dans le livre ne devient pas une balise."""
        fragment = "<p>Use &lt;b&gt; for bold; x&lt;y</p>"
        assert serialize_fragment(fragment) == fragment
        assert serialize_fragment("Cats &lt;b&gt;and&lt;/b&gt; dogs") == "Cats &lt;b&gt;and&lt;/b&gt; dogs"

    def test_fragment_empty_paragraph_is_empty(self):
        assert serialize_fragment("<p></p>") == ""

    def test_fragment_split_marker(self):
        assert serialize_fragment(f"<p>One.{SPLIT_MARKER_HTML}Two.</p>") == "<p>One.|Two.</p>"

    def test_fragment_retain_markup(self):
        """Test : en mode retain_markup le HTML reste brut, sauf les marqueurs."""
        fragment = f' <p class="x">One.{SPLIT_MARKER_HTML}Two.</p> '
        assert serialize_fragment(fragment, retain_markup=True) == '<p class="x">One.|Two.</p>'

    def test_editable_from_plain_text(self):
        """Test : une cellule en texte brut devient des paragraphes."""
        assert markup_for_editable("Hello") == "<p>Hello</p>"
        assert markup_for_editable("one\ntwo") == "<p>one</p><p>two</p>"
        assert markup_for_editable("a & b") == "<p>a &amp; b</p>"

    def test_editable_split_marker(self):
        assert markup_for_editable("One.|Two.") == f"<p>One.{SPLIT_MARKER_HTML}Two.</p>"

    def test_editable_normalizes_markup(self):
        assert markup_for_editable("<p><b>Hi</b></p>") == "<p><strong>Hi</strong></p>"

    def test_editable_retain_markup(self):
        cell = '<p class="keep">Hi</p>'
        assert markup_for_editable(cell, retain_markup=True) == cell

    def test_field(self):
        """Test : un champ en texte brut est seulement échappé."""
        assert markup_for_field("Copyright © 2020") == "Copyright © 2020"
        assert markup_for_field("A & B") == "A &amp; B"
        assert markup_for_field("<p><i>T</i></p>") == "<p><em>T</em></p>"

    def test_field_escaped_tags_stay_text(self):
        """Test : des balises échappées dans une cellule restent du texte."""
        cell = "Cats &lt;b&gt;and&lt;/b&gt; dogs"
        assert markup_for_field(cell) == cell
        assert markup_for_editable(cell) == f"<p>{cell}</p>"
