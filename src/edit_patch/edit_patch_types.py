"""Shared dataclasses for edit patch operations."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple


class MatchStatus(Enum):
    """How an edit instruction was located in the original text."""
    PENDING = "pending"
    EXACT = "exact"
    NORMALIZED = "normalized"
    FUZZY = "fuzzy"
    LINE_RANGE = "line_range"
    NOT_FOUND = "not_found"


class EditIssue(Enum):
    """Non-fatal problems recorded against a parse or an instruction."""
    PARSE_SKIPPED = "parse_skipped"
    NOT_FOUND = "not_found"
    OVERLAP_CONFLICT = "overlap_conflict"
    EMPTY_INPUT = "empty_input"


LOCATED_STATUSES = frozenset({
    MatchStatus.EXACT,
    MatchStatus.NORMALIZED,
    MatchStatus.FUZZY,
    MatchStatus.LINE_RANGE,
})


@dataclass(frozen=True)
class LineHint:
    """Approximate line span the model said an edit is near (1-indexed, inclusive)."""

    start_line: int
    end_line: int | None = None

    def __post_init__(self) -> None:
        if self.start_line < 1:
            raise ValueError(f"Line hint must start at line 1 or later, got {self.start_line}")

        if self.end_line is not None and self.end_line < self.start_line:
            raise ValueError(f"Line hint ends before it starts: {self.start_line}-{self.end_line}")


@dataclass(frozen=True)
class EditInstruction:
    """One search/replace pair proposed by the model."""

    search: str  # Empty means pure insertion
    replace: str  # Empty means deletion
    order_index: int
    line_hint: LineHint | None = None

    def is_insertion(self) -> bool:
        """Return True if this instruction has nothing to search for."""
        return self.search.strip() == ""


@dataclass(frozen=True)
class MatchOutcome:
    """Result of trying to locate one instruction's search text."""

    status: MatchStatus
    span: Tuple[int, int] | None = None  # Half-open [start, end) in the original text
    confidence: float = 0.0
    issue: EditIssue | None = None

    def __post_init__(self) -> None:
        located = self.status in LOCATED_STATUSES
        if located != (self.span is not None):
            raise ValueError(f"{self.status.name} outcome must {'' if located else 'not '}carry a span")

        if self.span is not None and not 0 <= self.span[0] <= self.span[1]:
            raise ValueError(f"Invalid span: {self.span}")

        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence out of range: {self.confidence}")

    @classmethod
    def pending(cls) -> "MatchOutcome":
        """Outcome for an instruction that has not been matched yet."""
        return cls(MatchStatus.PENDING)

    @classmethod
    def not_found(cls, issue: EditIssue = EditIssue.NOT_FOUND) -> "MatchOutcome":
        """Outcome for an instruction that could not be located or was rejected."""
        return cls(MatchStatus.NOT_FOUND, issue=issue)

    def is_located(self) -> bool:
        """Return True if this outcome carries a usable span."""
        return self.span is not None


@dataclass(frozen=True)
class AppliedBlock:
    """An instruction paired with its final match outcome."""

    instruction: EditInstruction
    outcome: MatchOutcome
    applied_text: str | None = None  # Replacement actually written, None if not applied

    @property
    def block_number(self) -> int:
        """1-based block number as shown to users."""
        return self.instruction.order_index + 1

    @property
    def status(self) -> MatchStatus:
        """Shortcut to the outcome status."""
        return self.outcome.status

    def is_applied(self) -> bool:
        """Return True if this block changed (or was written into) the text."""
        return self.outcome.is_located()


@dataclass(frozen=True)
class ParseDiagnostic:
    """A problem found while parsing the model reply."""

    issue: EditIssue
    position: int  # Character offset in the reply
    message: str


@dataclass(frozen=True)
class ParseResult:
    """Instructions extracted from one model reply."""

    instructions: List[EditInstruction] = field(default_factory=list)
    diagnostics: List[ParseDiagnostic] = field(default_factory=list)
    summary: str | None = None

    @property
    def is_empty(self) -> bool:
        """Return True if the reply contained no usable instructions."""
        return not self.instructions

    @property
    def issue(self) -> EditIssue | None:
        """EMPTY_INPUT when the reply held no usable instructions."""
        return EditIssue.EMPTY_INPUT if self.is_empty else None


@dataclass(frozen=True)
class PatchResult:
    """Output of one full patch run."""

    new_content: str
    applied_blocks: List[AppliedBlock]
    parse_diagnostics: List[ParseDiagnostic] = field(default_factory=list)
    summary: str | None = None

    @property
    def issue(self) -> EditIssue | None:
        """EMPTY_INPUT when there was nothing to apply."""
        return EditIssue.EMPTY_INPUT if not self.applied_blocks else None

    @property
    def total_applied(self) -> int:
        """Number of blocks that were located and written."""
        return sum(1 for block in self.applied_blocks if block.is_applied())

    @property
    def total_failed(self) -> int:
        """Number of blocks that could not be applied."""
        return len(self.applied_blocks) - self.total_applied

    @property
    def is_fully_applied(self) -> bool:
        """True if every block resolved to a located status."""
        return self.total_failed == 0

    @property
    def failed_block_numbers(self) -> List[int]:
        """1-based numbers of the blocks that failed."""
        return [block.block_number for block in self.applied_blocks if not block.is_applied()]

    @property
    def status_message(self) -> str:
        """Human-readable summary of the run."""
        total = len(self.applied_blocks)
        if total == 0:
            return "No changes"

        if self.total_failed == 0:
            return f"All {total} edit(s) applied"

        if self.total_applied == 0:
            return f"No edits could be applied ({total} not found)"

        failed = []
        for block in self.applied_blocks:
            if block.is_applied():
                continue

            label = f"#{block.block_number}"
            if block.outcome.issue == EditIssue.OVERLAP_CONFLICT:
                label += " (overlap)"

            failed.append(label)

        return f"{self.total_applied}/{total} edits applied; not found: {', '.join(failed)}"
