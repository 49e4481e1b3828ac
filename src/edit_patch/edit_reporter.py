"""Formatting of patch results for callers and user interfaces."""

import difflib
from typing import Any, Dict, List

from edit_patch.edit_patch_types import AppliedBlock, EditIssue, MatchStatus, PatchResult


_BADGES: Dict[MatchStatus, str] = {
    MatchStatus.PENDING: "PENDING",
    MatchStatus.EXACT: "EXACT",
    MatchStatus.NORMALIZED: "NORM",
    MatchStatus.FUZZY: "FUZZY",
    MatchStatus.LINE_RANGE: "RANGE",
    MatchStatus.NOT_FOUND: "NOT FOUND",
}


class EditReporter:
    """Pure formatting helpers over PatchResult; nothing here mutates a result."""

    def badge(self, status: MatchStatus) -> str:
        """
        Get the short label shown on a block panel.

        Args:
            status: Match status of the block

        Returns:
            Badge text
        """
        return _BADGES[status]

    def block_label(self, block: AppliedBlock) -> str:
        """
        Get a one-line label for a block, e.g. "#2 FUZZY (87%)".

        Args:
            block: Block to describe

        Returns:
            Label text
        """
        label = f"#{block.block_number} {self.badge(block.status)}"
        if block.status == MatchStatus.FUZZY:
            label += f" ({round(block.outcome.confidence * 100)}%)"

        elif block.outcome.issue == EditIssue.OVERLAP_CONFLICT:
            label += " (overlap)"

        return label

    def summary_line(self, result: PatchResult) -> str:
        """
        Get the aggregate status line for a run.

        Args:
            result: Result to summarize

        Returns:
            Status message
        """
        return result.status_message

    def block_preview(self, original_text: str, block: AppliedBlock) -> List[str]:
        """
        Render a unified diff of what one block changes.

        Args:
            original_text: Text the result was produced from
            block: Block to preview

        Returns:
            Unified diff lines (without trailing newlines); the search text is
            shown as removed when the block was not applied
        """
        if block.outcome.span is None:
            before = block.instruction.search
            after = ""

        else:
            start, end = block.outcome.span
            before = original_text[start:end]
            after = block.applied_text or ""

        return list(difflib.unified_diff(
            before.splitlines(),
            after.splitlines(),
            fromfile=f"block {block.block_number} (original)",
            tofile=f"block {block.block_number} (edited)",
            lineterm=""
        ))

    def format_report(self, original_text: str, result: PatchResult, previews: bool = False) -> str:
        """
        Render a multi-line report of a run.

        Args:
            original_text: Text the result was produced from
            result: Result to report on
            previews: Include a diff preview for each block

        Returns:
            Report text
        """
        lines: List[str] = []
        if result.summary:
            lines.append(f"Summary: {result.summary}")

        for diagnostic in result.parse_diagnostics:
            lines.append(f"Skipped: {diagnostic.message} (offset {diagnostic.position})")

        for block in result.applied_blocks:
            lines.append(self.block_label(block))
            if previews:
                lines.extend(f"    {line}" for line in self.block_preview(original_text, block))

        lines.append(self.summary_line(result))
        return '\n'.join(lines)

    def as_dict(self, result: PatchResult) -> Dict[str, Any]:
        """
        Convert a result into a JSON-serializable summary.

        Args:
            result: Result to convert

        Returns:
            Dictionary describing the run (the new content itself is not included)
        """
        blocks = []
        for block in result.applied_blocks:
            hint = block.instruction.line_hint
            blocks.append({
                'block': block.block_number,
                'status': block.status.value,
                'badge': self.badge(block.status),
                'span': list(block.outcome.span) if block.outcome.span is not None else None,
                'confidence': round(block.outcome.confidence, 3),
                'issue': block.outcome.issue.value if block.outcome.issue else None,
                'line_hint': [hint.start_line, hint.end_line] if hint is not None else None,
            })

        return {
            'success': result.is_fully_applied,
            'message': result.status_message,
            'issue': result.issue.value if result.issue else None,
            'summary': result.summary,
            'total_applied': result.total_applied,
            'total_failed': result.total_failed,
            'failed_blocks': result.failed_block_numbers,
            'parse_diagnostics': [
                {'issue': d.issue.value, 'position': d.position, 'message': d.message}
                for d in result.parse_diagnostics
            ],
            'blocks': blocks,
        }
