"""Search/replace block parsing for model replies."""

import logging
import re
from typing import List, Tuple

from edit_patch.edit_patch_exceptions import EditInputError
from edit_patch.edit_patch_types import EditInstruction, EditIssue, LineHint, ParseDiagnostic, ParseResult


# Block openers for both reply grammars: <<<SEARCH>>> markers and <block> XML
_OPENER_RE = re.compile(r'(?P<marker><<<\s*SEARCH\s*>>>)|(?P<xml><block\b[^>]*>)', re.IGNORECASE)
_MARKER_OPENER_RE = re.compile(r'<<<\s*SEARCH\s*>>>', re.IGNORECASE)
_MARKER_REPLACE_RE = re.compile(r'<<<\s*REPLACE\s*>>>', re.IGNORECASE)
_MARKER_END_RE = re.compile(r'<<<\s*END\s*>>>', re.IGNORECASE)
_XML_END_RE = re.compile(r'</block\s*>', re.IGNORECASE)
_XML_SEARCH_OPEN_RE = re.compile(r'<search>', re.IGNORECASE)
_XML_SEARCH_CLOSE_RE = re.compile(r'</search>', re.IGNORECASE)
_XML_REPLACE_OPEN_RE = re.compile(r'\s*<replace>', re.IGNORECASE)
_XML_REPLACE_CLOSE_RE = re.compile(r'</replace>', re.IGNORECASE)
_XML_BODY_RE = re.compile(
    r'^(?P<pre>.*?)<search>(?P<search>.*?)</search>\s*<replace>(?P<replace>.*?)</replace>\s*$',
    re.IGNORECASE | re.DOTALL
)
_SUMMARY_RE = re.compile(r'<summary>\s*(.*?)\s*</summary>', re.IGNORECASE | re.DOTALL)
_HINT_RE = re.compile(
    r'^\s*(?:#|//|--|;)\s*near\s+lines?\s+(\d+)(?:\s*-\s*(\d+))?\s*$',
    re.IGNORECASE
)
_LINE_NUMBER_PREFIX_RE = re.compile(r'^\d{1,5}\|(?:[ \t]|$)')


class EditBlockParser:
    """Parser for the search/replace blocks a model emits."""

    def __init__(self, strip_line_numbers: bool = True):
        """
        Initialize the parser.

        Args:
            strip_line_numbers: Remove "N| " prefixes when most lines of a section carry them
        """
        self._strip_line_numbers = strip_line_numbers
        self._logger = logging.getLogger("EditBlockParser")

    def parse(self, reply: str) -> ParseResult:
        """
        Parse a model reply into ordered edit instructions.

        Malformed or unterminated blocks are skipped and reported as diagnostics;
        they never abort the rest of the reply.

        Args:
            reply: Raw model reply text

        Returns:
            ParseResult with instructions, diagnostics, and the optional summary

        Raises:
            EditInputError: If reply is not a string
        """
        if not isinstance(reply, str):
            raise EditInputError(f"Model reply must be text, got {type(reply).__name__}")

        if not reply.strip():
            return ParseResult()

        instructions: List[EditInstruction] = []
        diagnostics: List[ParseDiagnostic] = []

        pos = 0
        while True:
            opener = _OPENER_RE.search(reply, pos)
            if opener is None:
                break

            is_marker = opener.group('marker') is not None
            closer_re = _MARKER_END_RE if is_marker else _XML_END_RE
            kind = "search/replace" if is_marker else "<block>"

            # Section text may itself contain block syntax, so only look past it
            if is_marker:
                closer = closer_re.search(reply, opener.end())
                next_opener = _MARKER_OPENER_RE.search(reply, opener.end())

            else:
                scan_from = self._xml_sections_end(reply, opener.end())
                closer = closer_re.search(reply, scan_from)
                next_opener = _OPENER_RE.search(reply, scan_from)

            if closer is None or (next_opener is not None and next_opener.start() < closer.start()):
                diagnostics.append(ParseDiagnostic(
                    EditIssue.PARSE_SKIPPED,
                    opener.start(),
                    f"Unterminated {kind} block skipped"
                ))
                self._logger.warning("Skipping unterminated %s block at offset %d", kind, opener.start())
                pos = opener.end()
                continue

            body = reply[opener.end():closer.start()]
            sections = self._split_marker_body(body) if is_marker else self._split_xml_body(body)
            if sections is None:
                diagnostics.append(ParseDiagnostic(
                    EditIssue.PARSE_SKIPPED,
                    opener.start(),
                    f"Malformed {kind} block skipped"
                ))
                self._logger.warning("Skipping malformed %s block at offset %d", kind, opener.start())
                pos = closer.end()
                continue

            pre, search, replace = sections
            line_hint = self._find_hint(reply[pos:opener.start()], pre)

            search_lines = search.split('\n')
            search_hint = self._parse_hint(search_lines[0])
            if search_hint is not None:
                line_hint = search_hint
                search = '\n'.join(search_lines[1:])

            instructions.append(EditInstruction(
                search=self._clean_section(search),
                replace=self._clean_section(replace),
                order_index=len(instructions),
                line_hint=line_hint
            ))
            pos = closer.end()

        summary_match = _SUMMARY_RE.search(reply)
        summary = summary_match.group(1).strip() if summary_match else None

        self._logger.debug("Parsed %d block(s), skipped %d", len(instructions), len(diagnostics))
        return ParseResult(instructions, diagnostics, summary)

    def _split_marker_body(self, body: str) -> Tuple[str, str, str] | None:
        """Split the text between <<<SEARCH>>> and <<<END>>> into its sections."""
        replace_marker = _MARKER_REPLACE_RE.search(body)
        if replace_marker is None:
            return None

        search = body[:replace_marker.start()]
        replace = body[replace_marker.end():]
        if _MARKER_REPLACE_RE.search(replace):
            return None

        return "", self._trim_newlines(search), self._trim_newlines(replace)

    def _xml_sections_end(self, reply: str, pos: int) -> int:
        """
        Find where the <search> and <replace> sections of an XML block end.

        Args:
            reply: Raw model reply text
            pos: Offset just past the <block> opener

        Returns:
            Offset just past </replace>, or pos if the block does not open
            with a well-formed search/replace pair
        """
        search_open = _XML_SEARCH_OPEN_RE.search(reply, pos)
        if search_open is None:
            return pos

        preamble = reply[pos:search_open.start()]
        if _OPENER_RE.search(preamble) or _XML_END_RE.search(preamble):
            return pos

        search_close = _XML_SEARCH_CLOSE_RE.search(reply, search_open.end())
        if search_close is None:
            return pos

        replace_open = _XML_REPLACE_OPEN_RE.match(reply, search_close.end())
        if replace_open is None:
            return pos

        replace_close = _XML_REPLACE_CLOSE_RE.search(reply, replace_open.end())
        if replace_close is None:
            return pos

        return replace_close.end()

    def _split_xml_body(self, body: str) -> Tuple[str, str, str] | None:
        """Split the text inside <block>...</block> into its sections."""
        match = _XML_BODY_RE.match(body)
        if match is None:
            return None

        return (
            match.group('pre'),
            self._trim_newlines(match.group('search')),
            self._trim_newlines(match.group('replace'))
        )

    def _find_hint(self, preceding: str, pre: str) -> LineHint | None:
        """Look for a line hint just before a block opener or inside its preamble."""
        for chunk in (pre, preceding):
            lines = [line for line in chunk.split('\n') if line.strip()]
            if lines:
                hint = self._parse_hint(lines[-1])
                if hint is not None:
                    return hint

        return None

    def _parse_hint(self, line: str) -> LineHint | None:
        """Parse a '# near line N' or '# near lines N-M' comment."""
        match = _HINT_RE.match(line)
        if match is None:
            return None

        start_line = int(match.group(1))
        end_line = int(match.group(2)) if match.group(2) else None
        if start_line < 1 or (end_line is not None and end_line < start_line):
            return None

        return LineHint(start_line, end_line)

    def _trim_newlines(self, text: str) -> str:
        """Drop one leading and one trailing newline left by the block delimiters."""
        if text.startswith('\r\n'):
            text = text[2:]

        elif text.startswith('\n'):
            text = text[1:]

        if text.endswith('\r\n'):
            text = text[:-2]

        elif text.endswith('\n'):
            text = text[:-1]

        return text

    def _clean_section(self, text: str) -> str:
        """Remove line-number prefixes copied from a numbered prompt, if most lines have them."""
        if not self._strip_line_numbers or not text.strip():
            return text

        lines = text.split('\n')
        numbered = sum(1 for line in lines if _LINE_NUMBER_PREFIX_RE.match(line))
        if numbered <= len(lines) // 2:
            return text

        return '\n'.join(_LINE_NUMBER_PREFIX_RE.sub('', line, count=1) for line in lines)
