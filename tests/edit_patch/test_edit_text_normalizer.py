"""Tests for whitespace normalization with offset tracking."""

from edit_patch.edit_text_normalizer import NormalizedText, TextLine, indentation, normalize_line, split_lines


class TestSplitLines:
    """Test line splitting with offsets."""

    def test_unix_lines(self):
        """Test splitting text with \\n terminators."""
        assert split_lines("ab\ncd\n") == [TextLine(0, 2, 3), TextLine(3, 5, 6)]

    def test_no_trailing_newline(self):
        """Test that the last line may lack a terminator."""
        assert split_lines("ab\ncd") == [TextLine(0, 2, 3), TextLine(3, 5, 5)]

    def test_windows_and_old_mac_lines(self):
        """Test \\r\\n and \\r terminators."""
        assert split_lines("a\r\nb\rc") == [TextLine(0, 1, 3), TextLine(3, 4, 5), TextLine(5, 6, 6)]

    def test_empty_text(self):
        """Test that empty text has no lines."""
        assert split_lines("") == []

    def test_blank_lines(self):
        """Test that blank lines are kept."""
        assert split_lines("\n\n") == [TextLine(0, 0, 1), TextLine(1, 1, 2)]


class TestLineHelpers:
    """Test single-line helpers."""

    def test_indentation(self):
        """Test leading whitespace extraction."""
        assert indentation("    x = 1") == "    "
        assert indentation("\t\ty") == "\t\t"
        assert indentation("z") == ""

    def test_normalize_line(self):
        """Test trimming and collapsing whitespace within a line."""
        assert normalize_line("   a  =\t 1   ") == "a = 1"
        assert normalize_line("   ") == ""


class TestNormalizedText:
    """Test the normalized view and its offset map."""

    def test_normalizes_whitespace(self):
        """Test collapsing, trimming, and line ending unification."""
        view = NormalizedText("  a   b  \r\n\tc\t\n")
        assert view.text == "a b\nc\n"

    def test_blank_line_becomes_empty(self):
        """Test that whitespace-only lines normalize to empty lines."""
        view = NormalizedText("a\n    \nb")
        assert view.text == "a\n\nb"

    def test_maps_mid_line_match(self):
        """Test mapping a match that starts inside a line."""
        original = "x = foo(  a,   b )\n"
        view = NormalizedText(original)
        idx = view.text.find("a, b")

        start, end = view.to_original_span(idx, idx + len("a, b"))
        assert original[start:end] == "a,   b"

    def test_widens_to_full_lines(self):
        """Test that a line-aligned match consumes indentation and trailing spaces."""
        original = "def f():\n        return   1   \n"
        view = NormalizedText(original)
        idx = view.text.find("return 1")

        start, end = view.to_original_span(idx, idx + len("return 1"))
        assert original[start:end] == "        return   1   "

    def test_match_including_newline(self):
        """Test a match that ends with a line terminator."""
        original = "a\r\n  b\r\nc"
        view = NormalizedText(original)
        idx = view.text.find("b\n")

        start, end = view.to_original_span(idx, idx + 2)
        assert original[start:end] == "  b\r\n"

    def test_index_at_or_after(self):
        """Test converting an original offset to a normalized index."""
        view = NormalizedText("  ab\n  cd")
        assert view.index_at_or_after(0) == 0
        assert view.index_at_or_after(5) == 3
        assert view.text[view.index_at_or_after(5)] == "c"
