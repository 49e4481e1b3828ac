"""Applies ordered edit instructions to original text."""

from dataclasses import dataclass, replace
import logging
from typing import List, Sequence, Tuple

from edit_patch.edit_block_parser import EditBlockParser
from edit_patch.edit_matcher import EditMatcher
from edit_patch.edit_patch_exceptions import EditInputError
from edit_patch.edit_patch_settings import EditPatchSettings
from edit_patch.edit_patch_types import (
    AppliedBlock,
    EditInstruction,
    EditIssue,
    MatchOutcome,
    MatchStatus,
    PatchResult,
)
from edit_patch.edit_text_normalizer import HORIZONTAL_WHITESPACE, indentation


@dataclass(frozen=True)
class _MatchState:
    """Accumulator threaded through the matching fold."""

    accepted: Tuple[Tuple[int, int], ...] = ()  # Spans accepted so far, in instruction order
    anchor: int = 0  # End offset of the most recently accepted span


def _spans_overlap(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    """Return True if two half-open spans intersect."""
    return a[0] < b[1] and b[0] < a[1]


class EditApplier:
    """Orchestrates matching, overlap arbitration, and replacement for a set of edits."""

    def __init__(self, settings: EditPatchSettings | None = None):
        """
        Initialize the edit applier.

        Args:
            settings: Matching and parsing settings, defaults if not given
        """
        self._settings = settings if settings is not None else EditPatchSettings.create_default()
        self._settings.validate()
        self._parser = EditBlockParser(strip_line_numbers=self._settings.strip_line_numbers)
        self._logger = logging.getLogger("EditApplier")

    def _create_matcher(self) -> EditMatcher:
        """
        Create the matcher used for a run.

        Returns:
            EditMatcher configured from the settings
        """
        return EditMatcher(self._settings.fuzzy_threshold, self._settings.line_tolerance)

    def apply_reply(self, original_text: str, reply: str, cursor: int | None = None) -> PatchResult:
        """
        Parse a model reply and apply its edit blocks.

        Args:
            original_text: Text being edited
            reply: Raw model reply
            cursor: Insertion point for blocks with no search text and no line hint

        Returns:
            PatchResult that also carries the parse diagnostics and model summary
        """
        parsed = self._parser.parse(reply)
        result = self.apply(original_text, parsed.instructions, cursor)
        return replace(result, parse_diagnostics=list(parsed.diagnostics), summary=parsed.summary)

    def apply(
        self,
        original_text: str,
        instructions: Sequence[EditInstruction],
        cursor: int | None = None
    ) -> PatchResult:
        """
        Apply edit instructions to the original text.

        This never fails for instructions that cannot be located; they are
        reported as NOT_FOUND and leave the text untouched at that location.

        Args:
            original_text: Text being edited
            instructions: Instructions to apply
            cursor: Insertion point for instructions with no search text and no line hint

        Returns:
            PatchResult with the new text and one AppliedBlock per instruction

        Raises:
            EditInputError: If original_text is not a string
        """
        if not isinstance(original_text, str):
            raise EditInputError(
                f"Original text must be a string, got {type(original_text).__name__}"
            )

        ordered = sorted(instructions, key=lambda instruction: instruction.order_index)
        if not ordered:
            return PatchResult(original_text, [])

        # Phase 1: Locate every instruction, rejecting spans that collide with earlier ones
        matcher = self._create_matcher()
        state = _MatchState()
        outcomes: List[MatchOutcome] = []

        for instruction in ordered:
            outcome = matcher.locate(original_text, instruction, state.anchor, cursor)
            outcome, state = self._arbitrate(outcome, state)
            outcomes.append(outcome)

        # Phase 2: Work out the text each accepted block writes
        blocks: List[AppliedBlock] = []
        for instruction, outcome in zip(ordered, outcomes):
            applied_text = None
            if outcome.span is not None:
                applied_text = self._replacement_text(original_text, instruction, outcome)

            blocks.append(AppliedBlock(instruction, outcome, applied_text))

        # Phase 3: Apply from the bottom of the text to the top so offsets stay valid
        edits = sorted(
            (block for block in blocks if block.outcome.span is not None),
            key=lambda block: (block.outcome.span[0], block.outcome.span[1], block.instruction.order_index),
            reverse=True
        )

        new_content = original_text
        for block in edits:
            start, end = block.outcome.span
            new_content = new_content[:start] + block.applied_text + new_content[end:]

        result = PatchResult(new_content, blocks)
        self._log_result(result)
        return result

    def _arbitrate(self, outcome: MatchOutcome, state: _MatchState) -> Tuple[MatchOutcome, _MatchState]:
        """
        Accept a located outcome unless it overlaps an earlier accepted span.

        Args:
            outcome: Outcome from the matcher
            state: Accumulated state before this outcome

        Returns:
            Tuple of (final outcome, state after this outcome)
        """
        span = outcome.span
        if span is None:
            return outcome, state

        if any(_spans_overlap(span, accepted) for accepted in state.accepted):
            return MatchOutcome.not_found(EditIssue.OVERLAP_CONFLICT), state

        return outcome, _MatchState(state.accepted + (span,), span[1])

    def _replacement_text(self, original_text: str, instruction: EditInstruction, outcome: MatchOutcome) -> str:
        """
        Work out the text written for an accepted block.

        Insertions at a line boundary are padded so they occupy whole lines.
        Loosely matched blocks are re-indented to the located text.
        """
        text = instruction.replace
        start, end = outcome.span

        if instruction.is_insertion():
            at_line_boundary = start == 0 or original_text[start - 1] in '\r\n' or start == len(original_text)
            if not at_line_boundary or not text:
                return text

            if start == len(original_text) and original_text and original_text[-1] not in '\r\n':
                text = '\n' + text

            if not text.endswith('\n'):
                text += '\n'

            return text

        if outcome.status == MatchStatus.EXACT or not self._settings.reindent:
            return text

        return self._reindent(original_text[start:end], instruction.search, text, start, original_text)

    def _reindent(self, matched: str, search: str, replacement: str, start: int, original_text: str) -> str:
        """
        Shift replacement indentation by the difference between the search and the located text.

        Only applied when the located span starts a line and one indentation is a
        prefix of the other; mixed tab/space differences are left alone.
        """
        if start > 0 and original_text[start - 1] not in '\r\n':
            return replacement

        matched_first = next((line for line in matched.splitlines() if line.strip()), None)
        search_first = next((line for line in search.splitlines() if line.strip()), None)
        if matched_first is None or search_first is None:
            return replacement

        matched_indent = indentation(matched_first)
        search_indent = indentation(search_first)
        if matched_indent == search_indent:
            return replacement

        lines = replacement.split('\n')
        if matched_indent.startswith(search_indent):
            extra = matched_indent[len(search_indent):]
            return '\n'.join(extra + line if line.strip() else line for line in lines)

        if search_indent.startswith(matched_indent):
            cut = len(search_indent) - len(matched_indent)
            shifted = []
            for line in lines:
                leading = len(line) - len(line.lstrip(HORIZONTAL_WHITESPACE))
                shifted.append(line[min(cut, leading):])

            return '\n'.join(shifted)

        return replacement

    def _log_result(self, result: PatchResult) -> None:
        """Log the outcome of a run."""
        self._logger.debug(
            "Applied %d/%d block(s)", result.total_applied, len(result.applied_blocks)
        )

        for block in result.applied_blocks:
            if block.is_applied():
                continue

            self._logger.warning(
                "Block %d not applied (%s); search starts: %r",
                block.block_number,
                block.outcome.issue.value if block.outcome.issue else block.status.value,
                block.instruction.search[:120]
            )
