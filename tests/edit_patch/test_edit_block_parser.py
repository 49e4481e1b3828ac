"""Tests for edit block parser."""

import pytest

from edit_patch.edit_block_parser import EditBlockParser
from edit_patch.edit_patch_exceptions import EditInputError
from edit_patch.edit_patch_types import EditIssue, LineHint


class TestEditBlockParserMarkers:
    """Test parsing of the <<<SEARCH>>> marker grammar."""

    def test_parse_single_block(self, parser):
        """Test parsing a single marker block."""
        reply = """<<<SEARCH>>>
old line
<<<REPLACE>>>
new line
<<<END>>>
"""
        result = parser.parse(reply)

        assert len(result.instructions) == 1
        instruction = result.instructions[0]
        assert instruction.search == "old line"
        assert instruction.replace == "new line"
        assert instruction.order_index == 0
        assert instruction.line_hint is None
        assert result.diagnostics == []

    def test_parse_multiline_sections(self, parser, helpers):
        """Test that multi-line sections keep their inner newlines and indentation."""
        reply = helpers.marker_block("def f():\n    return 1", "def f():\n    return 2")
        result = parser.parse(reply)

        assert result.instructions[0].search == "def f():\n    return 1"
        assert result.instructions[0].replace == "def f():\n    return 2"

    def test_parse_multiple_blocks_in_order(self, parser, helpers):
        """Test that blocks keep the order they were emitted in."""
        reply = (
            "Here are the changes:\n"
            + helpers.marker_block("first", "FIRST")
            + "and then\n"
            + helpers.marker_block("second", "SECOND")
        )
        result = parser.parse(reply)

        assert [i.search for i in result.instructions] == ["first", "second"]
        assert [i.order_index for i in result.instructions] == [0, 1]

    def test_parse_empty_search_and_replace(self, parser, helpers):
        """Test insertion and deletion blocks."""
        reply = helpers.marker_block("", "inserted") + helpers.marker_block("deleted", "")
        result = parser.parse(reply)

        assert result.instructions[0].search == ""
        assert result.instructions[0].replace == "inserted"
        assert result.instructions[1].search == "deleted"
        assert result.instructions[1].replace == ""

    def test_markers_are_case_insensitive(self, parser):
        """Test lenient marker spelling."""
        reply = "<<< search >>>\na\n<<<Replace>>>\nb\n<<<end>>>"
        result = parser.parse(reply)

        assert len(result.instructions) == 1
        assert result.instructions[0].search == "a"
        assert result.instructions[0].replace == "b"


class TestEditBlockParserXml:
    """Test parsing of the <block> XML grammar."""

    def test_parse_xml_blocks_with_summary(self, parser):
        """Test a complete XML reply."""
        reply = """<edits>
<block>
<search>
    val oldName = repository.getData()
</search>
<replace>
    val newName = repository.getData()
</replace>
</block>
</edits>
<summary>Renamed variable oldName to newName</summary>"""
        result = parser.parse(reply)

        assert len(result.instructions) == 1
        assert result.instructions[0].search == "    val oldName = repository.getData()"
        assert result.instructions[0].replace == "    val newName = repository.getData()"
        assert result.summary == "Renamed variable oldName to newName"

    def test_parse_empty_edits(self, parser):
        """Test a reply saying no changes are needed."""
        result = parser.parse("<edits></edits><summary>No changes needed: already done</summary>")

        assert result.is_empty is True
        assert result.diagnostics == []
        assert result.summary == "No changes needed: already done"

    def test_mixed_grammars(self, parser, helpers):
        """Test that both grammars can appear in one reply, in order."""
        reply = helpers.xml_block("one", "1") + helpers.marker_block("two", "2")
        result = parser.parse(reply)

        assert [(i.search, i.replace) for i in result.instructions] == [("one", "1"), ("two", "2")]


class TestEditBlockParserMalformed:
    """Test partial success with malformed input."""

    def test_empty_reply(self, parser):
        """Test that empty replies produce no instructions and no diagnostics."""
        for reply in ("", "   \n\t"):
            result = parser.parse(reply)
            assert result.is_empty is True
            assert result.diagnostics == []

    def test_reply_without_blocks(self, parser):
        """Test that prose without blocks is ignored."""
        result = parser.parse("I could not work out what to change.")

        assert result.is_empty is True
        assert result.diagnostics == []

    def test_unterminated_block_is_skipped(self, parser, helpers):
        """Test that an unterminated block is dropped but later blocks survive."""
        reply = "<<<SEARCH>>>\nbroken\n<<<REPLACE>>>\nnever ends\n" + helpers.marker_block("ok", "OK")
        result = parser.parse(reply)

        assert len(result.instructions) == 1
        assert result.instructions[0].search == "ok"
        assert result.instructions[0].order_index == 0
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].issue == EditIssue.PARSE_SKIPPED
        assert result.diagnostics[0].position == 0

    def test_unterminated_final_block(self, parser, helpers):
        """Test a truncated reply keeps the complete blocks before it."""
        reply = helpers.marker_block("a", "b") + "<<<SEARCH>>>\ntruncated"
        result = parser.parse(reply)

        assert len(result.instructions) == 1
        assert len(result.diagnostics) == 1
        assert "Unterminated" in result.diagnostics[0].message

    def test_block_missing_replace_marker(self, parser, helpers):
        """Test a block with no replace section is skipped."""
        reply = "<<<SEARCH>>>\nonly search\n<<<END>>>\n" + helpers.marker_block("x", "y")
        result = parser.parse(reply)

        assert [i.search for i in result.instructions] == ["x"]
        assert len(result.diagnostics) == 1
        assert "Malformed" in result.diagnostics[0].message

    def test_xml_block_missing_replace(self, parser):
        """Test an XML block without <replace> is skipped."""
        result = parser.parse("<block><search>x</search></block>")

        assert result.is_empty is True
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].issue == EditIssue.PARSE_SKIPPED

    def test_non_text_reply_raises(self, parser):
        """Test that non-string input is rejected."""
        with pytest.raises(EditInputError):
            parser.parse(b"<<<SEARCH>>>")


class TestEditBlockParserEmbeddedSyntax:
    """Test sections whose text looks like block syntax."""

    def test_marker_block_containing_xml_block_tag(self, parser, helpers):
        """Test that a <block> tag inside a marker block is just text."""
        reply = helpers.marker_block('<block type="x"/>', '<block type="y"/>')
        result = parser.parse(reply)

        assert result.diagnostics == []
        assert len(result.instructions) == 1
        assert result.instructions[0].search == '<block type="x"/>'
        assert result.instructions[0].replace == '<block type="y"/>'

    def test_xml_block_containing_block_tags(self, parser, helpers):
        """Test that <block> and </block> inside XML sections do not end the block."""
        reply = (
            helpers.xml_block('<block type="x">\n</block>', '<block type="y">\n</block>')
            + helpers.marker_block("after", "AFTER")
        )
        result = parser.parse(reply)

        assert result.diagnostics == []
        assert [(i.search, i.replace) for i in result.instructions] == [
            ('<block type="x">\n</block>', '<block type="y">\n</block>'),
            ("after", "AFTER"),
        ]

    def test_malformed_xml_block_does_not_swallow_next(self, parser, helpers):
        """Test that a block without <search> is skipped without consuming the next one."""
        reply = "<block><replace>y</replace></block>\n" + helpers.xml_block("a", "b")
        result = parser.parse(reply)

        assert len(result.diagnostics) == 1
        assert [(i.search, i.replace) for i in result.instructions] == [("a", "b")]


class TestEditBlockParserLineHints:
    """Test line hint extraction."""

    def test_hint_before_block(self, parser, helpers):
        """Test a hint comment on the line before the block."""
        reply = "# near line 42\n" + helpers.marker_block("x = 1", "x = 2")
        result = parser.parse(reply)

        assert result.instructions[0].line_hint == LineHint(42, None)

    def test_hint_range(self, parser, helpers):
        """Test a line range hint."""
        reply = "// near lines 10-12\n" + helpers.marker_block("a", "b")
        result = parser.parse(reply)

        assert result.instructions[0].line_hint == LineHint(10, 12)

    def test_hint_inside_search_is_removed(self, parser):
        """Test a hint on the first line of the search section."""
        reply = "<<<SEARCH>>>\n# near line 7\nx = 1\n<<<REPLACE>>>\nx = 2\n<<<END>>>"
        result = parser.parse(reply)

        assert result.instructions[0].line_hint == LineHint(7, None)
        assert result.instructions[0].search == "x = 1"

    def test_hint_inside_xml_preamble(self, parser):
        """Test a hint between <block> and <search>."""
        reply = "<block>\n# near line 3\n<search>\na\n</search>\n<replace>\nb\n</replace>\n</block>"
        result = parser.parse(reply)

        assert result.instructions[0].line_hint == LineHint(3, None)

    def test_hint_does_not_leak_to_next_block(self, parser, helpers):
        """Test that a hint belongs only to the block right after it."""
        reply = "# near line 5\n" + helpers.marker_block("a", "b") + helpers.marker_block("c", "d")
        result = parser.parse(reply)

        assert result.instructions[0].line_hint == LineHint(5, None)
        assert result.instructions[1].line_hint is None

    @pytest.mark.parametrize("comment", ["# near line 0", "# near lines 9-4"])
    def test_impossible_hint_is_ignored(self, parser, helpers, comment):
        """Test that hints naming no valid line range are dropped."""
        result = parser.parse(comment + "\n" + helpers.marker_block("a", "b"))

        assert len(result.instructions) == 1
        assert result.instructions[0].line_hint is None

    def test_non_hint_comment_is_ignored(self, parser, helpers):
        """Test that ordinary prose before a block is not a hint."""
        reply = "# change the greeting\n" + helpers.marker_block("a", "b")
        result = parser.parse(reply)

        assert result.instructions[0].line_hint is None


class TestEditBlockParserLineNumbers:
    """Test removal of line number prefixes copied from numbered prompts."""

    def test_strips_line_numbers(self, parser, helpers):
        """Test that N| prefixes are removed when most lines have them."""
        reply = helpers.marker_block("41| def f():\n42|     return 1", "41| def f():\n42|     return 2")
        result = parser.parse(reply)

        assert result.instructions[0].search == "def f():\n    return 1"
        assert result.instructions[0].replace == "def f():\n    return 2"

    def test_keeps_text_when_few_lines_numbered(self, parser, helpers):
        """Test that an occasional N| pattern is left alone."""
        search = "table = [\n1| a\n    b,\n    c,\n]"
        result = parser.parse(helpers.marker_block(search, "x"))

        assert result.instructions[0].search == search

    def test_stripping_can_be_disabled(self, helpers):
        """Test parser configured not to strip line numbers."""
        parser = EditBlockParser(strip_line_numbers=False)
        result = parser.parse(helpers.marker_block("1| a", "1| b"))

        assert result.instructions[0].search == "1| a"
