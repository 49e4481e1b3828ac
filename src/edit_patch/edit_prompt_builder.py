"""Prompt text asking a model for edit blocks the parser understands."""

from typing import List

from edit_patch.edit_patch_settings import EditPatchSettings


_SYSTEM_PROMPT = """You are a precision code editor. Your only job is to produce search/replace blocks for a given source file.

Response format:

<edits>
<block>
<search>
exact lines copied from the original file
</search>
<replace>
new replacement lines
</replace>
</block>
</edits>
<summary>One-line description of all changes made</summary>

Rules:

1. The content of <search> must be a character-perfect copy of lines in the original file.
   Preserve every space, tab, and blank line. Do not fix or reformat anything inside <search>.
2. Each <search> must match exactly one location. Include 3-7 surrounding lines when a line
   such as "}" or "return None" appears more than once.
3. Change only what was asked for. Do not touch imports, comments, or formatting elsewhere.
4. Use a separate <block> for each part of the file, ordered from the top of the file to the
   bottom. Blocks must not share lines.
5. To delete code leave <replace> empty. To insert after line N, put line N in <search> and
   line N followed by the new code in <replace>.
6. You may put a comment line "# near line N" immediately before a <block> to say roughly
   where it belongs.
7. Keep the indentation style of the surrounding code in <replace>.
8. Output only the structure above: no markdown fences, no explanations. If no change is
   needed, return <edits></edits><summary>No changes needed: reason</summary>."""


_LINE_NUMBER_NOTE = """

Line numbers:

The file is shown with line number prefixes of the form "N| " (for example "42| x = 1").
They are for reference only. Never include them in <search> or <replace>; write only the
raw source code. You may mention line numbers in <summary>."""


class EditPromptBuilder:
    """Builds the system prompt and user message for an edit request."""

    def __init__(self, line_number_threshold: int = 300):
        """
        Initialize the prompt builder.

        Args:
            line_number_threshold: Files with more lines than this are shown with line numbers
        """
        self._line_number_threshold = line_number_threshold

    @classmethod
    def from_settings(cls, settings: EditPatchSettings) -> "EditPromptBuilder":
        """
        Create a prompt builder configured from edit patch settings.

        Args:
            settings: Settings supplying the line number threshold

        Returns:
            EditPromptBuilder using settings.line_number_threshold
        """
        return cls(settings.line_number_threshold)

    def uses_line_numbers(self, file_content: str) -> bool:
        """Return True if the file is long enough to be shown with line numbers."""
        return len(file_content.splitlines()) > self._line_number_threshold

    def system_prompt(self, use_line_numbers: bool) -> str:
        """
        Get the system prompt.

        Args:
            use_line_numbers: Whether the user message shows line number prefixes

        Returns:
            System prompt text
        """
        if use_line_numbers:
            return _SYSTEM_PROMPT + _LINE_NUMBER_NOTE

        return _SYSTEM_PROMPT

    def user_message(self, file_content: str, file_name: str, instructions: str) -> str:
        """
        Build the user message carrying the file and the requested change.

        Args:
            file_content: Current file content
            file_name: Name shown to the model
            instructions: What the user wants changed

        Returns:
            User message text
        """
        lines: List[str] = [f"File: `{file_name}`", "", "```"]

        if self.uses_line_numbers(file_content):
            lines.extend(f"{i}| {line}" for i, line in enumerate(file_content.splitlines(), 1))

        else:
            lines.append(file_content.rstrip('\n'))

        lines.extend(["```", "", "Instructions:", instructions])
        return '\n'.join(lines)
