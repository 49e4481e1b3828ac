"""Qt-specific application of patch results to editor documents."""

import logging

from PySide6.QtGui import QTextCursor, QTextDocument

from edit_patch import EditApplicationError, PatchResult


def _utf16_length(text: str) -> int:
    """Length of text in UTF-16 code units, the unit Qt document positions use."""
    return len(text.encode('utf-16-le')) // 2


class EditorEditApplier:
    """Writes a PatchResult into a Qt text document as a single undoable edit."""

    def __init__(self) -> None:
        """Initialize the editor edit applier."""
        self._logger = logging.getLogger("EditorEditApplier")

    def apply_to_document(
        self,
        document: QTextDocument,
        result: PatchResult,
        original_text: str | None = None
    ) -> bool:
        """
        Replace the document text with the result's new content.

        Only the region that differs is rewritten, inside one edit block, so
        the whole patch is a single undo step and the rest of the document
        (and its cursor positions) is left alone.

        Args:
            document: Qt text document to modify
            result: Patch result to write
            original_text: If given, the text the result was computed from; the
                document must still hold exactly this text

        Returns:
            True if the document was changed

        Raises:
            EditApplicationError: If the document no longer holds original_text or the edit fails
        """
        current = document.toPlainText()
        if original_text is not None and current != original_text:
            raise EditApplicationError(
                "Document changed since the edits were matched",
                {'expected_length': len(original_text), 'actual_length': len(current)}
            )

        new_content = result.new_content
        if current == new_content:
            return False

        # Narrow the rewrite to the span between the common prefix and suffix
        prefix = 0
        limit = min(len(current), len(new_content))
        while prefix < limit and current[prefix] == new_content[prefix]:
            prefix += 1

        suffix = 0
        while (suffix < limit - prefix
                and current[len(current) - 1 - suffix] == new_content[len(new_content) - 1 - suffix]):
            suffix += 1

        start = _utf16_length(current[:prefix])
        end = _utf16_length(current[:len(current) - suffix])
        replacement = new_content[prefix:len(new_content) - suffix]

        cursor = QTextCursor(document)
        cursor.beginEditBlock()
        try:
            cursor.setPosition(start)
            cursor.setPosition(end, QTextCursor.MoveMode.KeepAnchor)
            cursor.insertText(replacement)

        except Exception as e:
            self._logger.exception("Failed to apply edits to document: %s", str(e))
            raise EditApplicationError(f"Failed to apply edits to document: {str(e)}") from e

        finally:
            cursor.endEditBlock()

        self._logger.debug("Rewrote document characters %d-%d", start, end)
        return True
