"""Whitespace normalization that remembers where every character came from."""

from bisect import bisect_left
from dataclasses import dataclass
from typing import List, Tuple


HORIZONTAL_WHITESPACE = ' \t\f\v'


@dataclass(frozen=True)
class TextLine:
    """One line of a text, located by character offsets."""

    start: int  # Offset of the first character
    content_end: int  # Offset just past the last non-terminator character
    end: int  # Offset just past the line terminator (equals content_end on the last line)


def split_lines(text: str) -> List[TextLine]:
    """
    Split text into lines, recording offsets.

    Recognises '\\n', '\\r\\n' and '\\r' terminators. A trailing terminator does not
    create an extra empty line, matching str.splitlines().

    Args:
        text: Text to split

    Returns:
        List of located lines
    """
    lines: List[TextLine] = []
    pos = 0
    length = len(text)

    while pos < length:
        i = pos
        while i < length and text[i] not in '\r\n':
            i += 1

        if i >= length:
            lines.append(TextLine(pos, length, length))
            break

        terminator_end = i + 2 if text.startswith('\r\n', i) else i + 1
        lines.append(TextLine(pos, i, terminator_end))
        pos = terminator_end

    return lines


def indentation(line: str) -> str:
    """Return the leading horizontal whitespace of a line."""
    return line[:len(line) - len(line.lstrip(HORIZONTAL_WHITESPACE))]


def normalize_line(line: str) -> str:
    """Trim a line and collapse interior runs of horizontal whitespace to one space."""
    return ' '.join(line.split())


class NormalizedText:
    """
    Whitespace-normalized view of a text with a map back to the original.

    Normalization unifies line endings to '\\n', drops leading and trailing
    horizontal whitespace on every line, and collapses interior runs of
    horizontal whitespace to a single space. For every normalized character
    the original half-open range it was produced from is kept, so a match in
    the normalized text can be turned back into a span of the original.
    """

    def __init__(self, original: str):
        """
        Build the normalized view.

        Args:
            original: Text to normalize
        """
        self._original = original
        chars: List[str] = []
        starts: List[int] = []
        ends: List[int] = []

        for line in split_lines(original):
            i = line.start
            end = line.content_end

            # Skip leading and trailing whitespace of the line
            while i < end and original[i] in HORIZONTAL_WHITESPACE:
                i += 1

            while end > i and original[end - 1] in HORIZONTAL_WHITESPACE:
                end -= 1

            while i < end:
                if original[i] in HORIZONTAL_WHITESPACE:
                    run_start = i
                    while i < end and original[i] in HORIZONTAL_WHITESPACE:
                        i += 1

                    chars.append(' ')
                    starts.append(run_start)
                    ends.append(i)
                    continue

                chars.append(original[i])
                starts.append(i)
                ends.append(i + 1)
                i += 1

            if line.end > line.content_end:
                chars.append('\n')
                starts.append(line.content_end)
                ends.append(line.end)

        self._text = ''.join(chars)
        self._starts = starts
        self._ends = ends

    @property
    def text(self) -> str:
        """The normalized text."""
        return self._text

    def index_at_or_after(self, offset: int) -> int:
        """
        Find the first normalized index that comes from at or after an original offset.

        Args:
            offset: Offset in the original text

        Returns:
            Normalized index (may equal len(text) if nothing follows)
        """
        return bisect_left(self._starts, offset)

    def to_original_span(self, norm_start: int, norm_end: int) -> Tuple[int, int]:
        """
        Map a non-empty normalized range back to the original text.

        When the range begins at the start of a normalized line the span is widened
        back over the line's indentation; when it stops at the end of a line without
        consuming the newline it is widened over trailing whitespace. This makes a
        line-oriented replacement consume whole lines.

        Args:
            norm_start: Start index in the normalized text
            norm_end: End index (exclusive) in the normalized text

        Returns:
            Half-open (start, end) span in the original text
        """
        start = self._starts[norm_start]
        end = self._ends[norm_end - 1]

        if norm_start == 0 or self._text[norm_start - 1] == '\n':
            while start > 0 and self._original[start - 1] in HORIZONTAL_WHITESPACE:
                start -= 1

        ends_line = norm_end == len(self._text) or self._text[norm_end] == '\n'
        if ends_line and self._text[norm_end - 1] != '\n':
            while end < len(self._original) and self._original[end] in HORIZONTAL_WHITESPACE:
                end += 1

        return start, end
