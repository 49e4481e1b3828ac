"""Tiered matching of edit instructions against original text."""

import difflib
import logging
from typing import List, Tuple

from edit_patch.edit_patch_types import EditInstruction, MatchOutcome, MatchStatus
from edit_patch.edit_text_normalizer import NormalizedText, TextLine, normalize_line, split_lines


class EditMatcher:
    """
    Locates the span of original text an edit instruction refers to.

    Strategies are tried in strictly decreasing precision and the first success
    wins: exact substring, whitespace-normalized substring, fuzzy line windows,
    and finally line ranges (from a line hint, or anchored on key lines of the
    search).
    """

    def __init__(self, fuzzy_threshold: float = 0.80, line_tolerance: int = 1):
        """
        Initialize the matcher.

        Args:
            fuzzy_threshold: Minimum similarity (0.0-1.0) required for a fuzzy match
            line_tolerance: Fuzzy windows may have this many lines more or fewer than the search
        """
        self._fuzzy_threshold = fuzzy_threshold
        self._line_tolerance = line_tolerance
        self._logger = logging.getLogger("EditMatcher")

    def fuzzy_threshold(self) -> float:
        """Get the minimum similarity for fuzzy matches."""
        return self._fuzzy_threshold

    def line_tolerance(self) -> int:
        """Get the fuzzy window size tolerance in lines."""
        return self._line_tolerance

    def locate(
        self,
        original_text: str,
        instruction: EditInstruction,
        anchor: int = 0,
        cursor: int | None = None
    ) -> MatchOutcome:
        """
        Find where an instruction applies in the original text.

        Args:
            original_text: Text the instruction refers to
            instruction: Instruction to locate
            anchor: End offset of the last accepted span; later occurrences at or after it are preferred
            cursor: Insertion point for instructions with no search text and no line hint

        Returns:
            MatchOutcome describing the located span, or NOT_FOUND
        """
        if instruction.is_insertion():
            return self._locate_insertion(original_text, instruction, cursor)

        search = instruction.search

        span = self._exact_match(original_text, search, anchor)
        if span is not None:
            self._logger.debug("Block %d: exact match at %s", instruction.order_index + 1, span)
            return MatchOutcome(MatchStatus.EXACT, span, 1.0)

        span = self._normalized_match(original_text, search, anchor)
        if span is not None:
            self._logger.debug("Block %d: normalized match at %s", instruction.order_index + 1, span)
            return MatchOutcome(MatchStatus.NORMALIZED, span, 1.0)

        lines = split_lines(original_text)

        span, confidence = self._fuzzy_match(original_text, lines, search)
        if span is not None:
            self._logger.debug(
                "Block %d: fuzzy match at %s (confidence %.2f)",
                instruction.order_index + 1, span, confidence
            )
            return MatchOutcome(MatchStatus.FUZZY, span, confidence)

        span = self._line_range_match(original_text, lines, instruction)
        if span is not None:
            self._logger.debug("Block %d: line range match at %s", instruction.order_index + 1, span)
            return MatchOutcome(MatchStatus.LINE_RANGE, span)

        self._logger.debug("Block %d: no match", instruction.order_index + 1)
        return MatchOutcome.not_found()

    def _locate_insertion(
        self,
        original_text: str,
        instruction: EditInstruction,
        cursor: int | None
    ) -> MatchOutcome:
        """
        Place an instruction that has no search text.

        With a line hint the insertion goes before the hinted line. Without one it
        goes at the cursor, or is appended to the end of the text.
        """
        hint = instruction.line_hint
        if hint is not None:
            lines = split_lines(original_text)
            if hint.start_line <= len(lines):
                point = lines[hint.start_line - 1].start
                return MatchOutcome(MatchStatus.LINE_RANGE, (point, point))

            if hint.start_line == len(lines) + 1:
                return MatchOutcome(MatchStatus.LINE_RANGE, (len(original_text), len(original_text)))

            return MatchOutcome.not_found()

        point = len(original_text)
        if cursor is not None and 0 <= cursor <= len(original_text):
            point = cursor

        return MatchOutcome(MatchStatus.EXACT, (point, point), 1.0)

    def _exact_match(self, original_text: str, search: str, anchor: int) -> Tuple[int, int] | None:
        """
        Literal substring match, preferring the first occurrence at or after the anchor.

        Returns:
            Span of the chosen occurrence, or None
        """
        idx = original_text.find(search, anchor)
        if idx == -1:
            idx = original_text.find(search)

        if idx == -1:
            return None

        return (idx, idx + len(search))

    def _normalized_match(self, original_text: str, search: str, anchor: int) -> Tuple[int, int] | None:
        """
        Substring match after whitespace normalization of both sides.

        Returns:
            Span in the original (un-normalized) text, or None
        """
        normalized_search = NormalizedText(search).text
        if not normalized_search.strip():
            return None

        view = NormalizedText(original_text)
        idx = view.text.find(normalized_search, view.index_at_or_after(anchor))
        if idx == -1:
            idx = view.text.find(normalized_search)

        if idx == -1:
            return None

        return view.to_original_span(idx, idx + len(normalized_search))

    def _search_lines(self, search: str) -> Tuple[List[str], bool]:
        """
        Split search text into lines.

        Returns:
            Tuple of (lines, whether the search ended with a line terminator)
        """
        unified = search.replace('\r\n', '\n').replace('\r', '\n')
        trailing_newline = unified.endswith('\n')
        if trailing_newline:
            unified = unified[:-1]

        return unified.split('\n'), trailing_newline

    def _line_span(
        self,
        lines: List[TextLine],
        first: int,
        last: int,
        include_terminator: bool
    ) -> Tuple[int, int]:
        """Span covering lines first..last (0-indexed, inclusive)."""
        end = lines[last].end if include_terminator else lines[last].content_end
        return (lines[first].start, end)

    def _fuzzy_match(
        self,
        original_text: str,
        lines: List[TextLine],
        search: str
    ) -> Tuple[Tuple[int, int] | None, float]:
        """
        Score whole-line windows against the search and take the best one.

        Windows have the search's line count plus or minus the line tolerance.
        Ties are broken by the smallest start offset, then by the window size
        closest to the search's line count.

        Returns:
            Tuple of (span or None, confidence of the best window)
        """
        search_lines, trailing_newline = self._search_lines(search)
        target = '\n'.join(normalize_line(line) for line in search_lines)
        if not target.strip() or not lines:
            return None, 0.0

        normalized_lines = [normalize_line(original_text[line.start:line.content_end]) for line in lines]
        count = len(search_lines)
        sizes = sorted(
            range(max(1, count - self._line_tolerance), count + self._line_tolerance + 1),
            key=lambda size: (abs(size - count), size)
        )

        matcher = difflib.SequenceMatcher(None, autojunk=False)
        matcher.set_seq2(target)

        best_score = 0.0
        best_window: Tuple[int, int] | None = None

        for first in range(len(lines)):
            for size in sizes:
                last = first + size - 1
                if last >= len(lines):
                    continue

                # Upper bounds let most windows be rejected without a full ratio()
                floor = max(best_score, self._fuzzy_threshold)
                matcher.set_seq1('\n'.join(normalized_lines[first:last + 1]))
                if matcher.real_quick_ratio() < floor or matcher.quick_ratio() < floor:
                    continue

                score = matcher.ratio()
                if score > best_score:
                    best_score = score
                    best_window = (first, last)

        if best_window is None or best_score < self._fuzzy_threshold:
            return None, best_score

        first, last = best_window
        return self._line_span(lines, first, last, trailing_newline), best_score

    def _line_range_match(
        self,
        original_text: str,
        lines: List[TextLine],
        instruction: EditInstruction
    ) -> Tuple[int, int] | None:
        """
        Last-resort match by line position rather than content similarity.

        A line hint is used directly. Without one, the region is anchored on the
        first and last non-blank search lines, and failing that on the first,
        middle and last non-blank search lines appearing in order close together.

        Returns:
            Span of the selected lines, or None
        """
        if not lines:
            return None

        search_lines, trailing_newline = self._search_lines(instruction.search)
        hint = instruction.line_hint

        if hint is not None:
            first = hint.start_line - 1
            if first >= len(lines):
                return None

            end_line = hint.end_line if hint.end_line is not None else hint.start_line + len(search_lines) - 1
            last = min(end_line, len(lines)) - 1
            return self._line_span(lines, first, last, trailing_newline)

        significant = [line.strip() for line in search_lines if line.strip()]
        if len(significant) < 2:
            return None

        stripped = [original_text[line.start:line.content_end].strip() for line in lines]

        found = self._first_last_lines_match(stripped, significant)
        if found is None:
            found = self._key_lines_match(stripped, significant)

        if found is None:
            return None

        first, last = found
        return self._line_span(lines, first, last, trailing_newline)

    def _first_last_lines_match(self, stripped: List[str], significant: List[str]) -> Tuple[int, int] | None:
        """
        Anchor on the first and last non-blank search lines alone.

        The lines between them may have been rewritten, but the region must hold
        between one fewer and three more non-blank lines than the search.

        Args:
            stripped: Stripped lines of the original text
            significant: Stripped non-blank lines of the search

        Returns:
            Tuple of (first, last) line indexes, or None
        """
        count = len(significant)

        for first, line in enumerate(stripped):
            if line != significant[0]:
                continue

            seen = 0
            for last in range(first, len(stripped)):
                if stripped[last]:
                    seen += 1

                if seen > count + 3:
                    break

                if last > first and seen >= count - 1 and stripped[last] == significant[-1]:
                    return first, last

        return None

    def _key_lines_match(self, stripped: List[str], significant: List[str]) -> Tuple[int, int] | None:
        """
        Anchor on the first, middle and last non-blank search lines, found in order.

        Needs at least three non-blank search lines, and the region may span at
        most twice as many lines as the search has non-blank lines.

        Args:
            stripped: Stripped lines of the original text
            significant: Stripped non-blank lines of the search

        Returns:
            Tuple of (first, last) line indexes, or None
        """
        if len(significant) < 3:
            return None

        keys = [significant[0], significant[len(significant) // 2], significant[-1]]
        found: List[int] = []
        search_from = 0

        for key in keys:
            idx = next((i for i in range(search_from, len(stripped)) if stripped[i] == key), None)
            if idx is None:
                return None

            found.append(idx)
            search_from = idx + 1

        first, last = found[0], found[-1]
        if last - first + 1 > len(significant) * 2:
            return None

        return first, last
