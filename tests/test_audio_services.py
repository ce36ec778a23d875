"""
Tests des services audio : ids, découpage en phrases, lecture mp3.
"""

import asyncio

import pytest

from bloom_spreadsheet.audio import (
    DEFAULT_ID,
    AudioIdAllocator,
    Mp3AudioProbe,
    RegexSentenceSplitter,
    content_id,
    file_checksum,
    sanitize_xhtml_id,
    split_sentences,
)
from bloom_spreadsheet.exceptions import InvalidMediaFile


class TestSanitizeId:
    """Tests pour sanitize_xhtml_id()."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("abc def", "abcdef"),
            ("1233", "i1233"),
            ("$*&", DEFAULT_ID),
            ("", DEFAULT_ID),
            ("page_1-a.b", "page_1-a.b"),
            ("_x", "_x"),
            ("-x", "i-x"),
        ],
    )
    def test_sanitize(self, name, expected):
        assert sanitize_xhtml_id(name) == expected

    def test_content_id_is_stable(self):
        assert content_id("Hello", "a") == content_id("Hello", "a")
        assert content_id("Hello", "a") != content_id("Hello", "b")
        assert content_id("Hello").startswith("i")


class TestAudioIdAllocator:
    """Tests pour AudioIdAllocator."""

    def test_suffix_when_used_in_run(self, tmp_path):
        allocator = AudioIdAllocator(tmp_path, file_checksum)
        assert allocator.allocate("page 1.mp3") == ("page1", False)
        assert allocator.allocate("page1.mp3") == ("page11", False)
        assert allocator.allocate("page1.mp3") == ("page12", False)

    def test_reuse_identical_file(self, tmp_path):
        """Test : un fichier existant identique est réutilisé sans copie."""
        (tmp_path / "hello.mp3").write_bytes(b"same")
        allocator = AudioIdAllocator(tmp_path, file_checksum)
        checksum = file_checksum(tmp_path / "hello.mp3")
        assert allocator.allocate("hello.mp3", checksum) == ("hello", True)

    def test_different_existing_file(self, tmp_path):
        """Test : un fichier existant différent force un suffixe."""
        (tmp_path / "hello.mp3").write_bytes(b"old")
        allocator = AudioIdAllocator(tmp_path, file_checksum)
        assert allocator.allocate("hello.mp3", "0" * 32) == ("hello1", False)

    def test_reserve(self, tmp_path):
        allocator = AudioIdAllocator(tmp_path, file_checksum)
        allocator.reserve("x")
        assert allocator.allocate("x.mp3")[0] == "x1"


class TestSentenceSplitting:
    """Tests du découpeur par défaut."""

    def test_punctuation(self):
        assert split_sentences("One. Two! Three? Four") == ["One.", "Two!", "Three?", "Four"]

    def test_closing_quote_stays(self):
        assert split_sentences('He said "Go." Then left.') == ['He said "Go."', "Then left."]

    def test_split_marker(self):
        assert split_sentences("First part|second part.") == ["First part", "second part."]

    def test_no_split_inside_numbers(self):
        assert split_sentences("It costs 3.50 now.") == ["It costs 3.50 now."]

    def test_async_interface(self):
        splitter = RegexSentenceSplitter()
        result = asyncio.run(splitter.split_into_sentences("Un. Deux.", "fr"))
        assert result == ["Un.", "Deux."]


class TestMp3AudioProbe:
    """Tests pour Mp3AudioProbe."""

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "bad.mp3"
        path.write_bytes(b"not an mp3 at all")
        with pytest.raises(InvalidMediaFile) as exc_info:
            asyncio.run(Mp3AudioProbe().probe_audio(path))
        assert exc_info.value.path == str(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidMediaFile):
            asyncio.run(Mp3AudioProbe().probe_audio(tmp_path / "absent.mp3"))
