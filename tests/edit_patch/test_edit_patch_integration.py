"""Integration tests for the edit patch package."""

from edit_patch import (
    EditApplier,
    EditPatchSettings,
    EditPromptBuilder,
    EditReporter,
    MatchStatus,
)


ORIGINAL_CODE = """class Greeter:
    def __init__(self, name):
        self.name = name

    def greet(self):
        message = "Hello, " + self.name
        print(message)
        return message

    def farewell(self):
        print("Goodbye, " + self.name)
"""


class TestEditPatchIntegration:
    """Test the parser, matcher, applier and reporter working together."""

    def test_complete_reply_workflow(self, applier):
        """Test a realistic reply with several blocks of varying quality."""
        reply = """I'll make the requested changes.

<edits>
<block>
<search>
    def __init__(self, name):
        self.name = name
</search>
<replace>
    def __init__(self, name, punctuation="!"):
        self.name = name
        self.punctuation = punctuation
</replace>
</block>
<block>
<search>
        message = "Hello, " + self.name
</search>
<replace>
        message = "Hello, " + self.name + self.punctuation
</replace>
</block>
<block>
<search>
        def farewell(self):
            print("Goodbye, " + self.name)
</search>
<replace>
        def farewell(self):
            print("Goodbye, " + self.name + self.punctuation)
</replace>
</block>
</edits>
<summary>Added configurable punctuation</summary>"""

        result = applier.apply_reply(ORIGINAL_CODE, reply)

        assert result.is_fully_applied is True
        assert [block.status for block in result.applied_blocks] == [
            MatchStatus.EXACT,
            MatchStatus.EXACT,
            MatchStatus.NORMALIZED,
        ]
        assert result.summary == "Added configurable punctuation"
        assert 'def __init__(self, name, punctuation="!"):' in result.new_content
        assert '        message = "Hello, " + self.name + self.punctuation\n' in result.new_content
        assert result.new_content.endswith(
            '\n    def farewell(self):\n        print("Goodbye, " + self.name + self.punctuation)\n'
        )

    def test_partial_reply_is_reported(self, applier):
        """Test that one bad block does not stop the others."""
        reply = (
            "<<<SEARCH>>>\n        print(message)\n<<<REPLACE>>>\n        print(message.upper())\n<<<END>>>\n"
            "<<<SEARCH>>>\n    def does_not_exist(self):\n        pass\n<<<REPLACE>>>\n\n<<<END>>>\n"
        )
        result = applier.apply_reply(ORIGINAL_CODE, reply)

        assert result.total_applied == 1
        assert result.failed_block_numbers == [2]
        assert "print(message.upper())" in result.new_content

        report = EditReporter().format_report(ORIGINAL_CODE, result)
        assert report.split('\n')[-1] == "1/2 edits applied; not found: #2"

    def test_numbered_prompt_round_trip(self):
        """Test that a reply quoting a numbered prompt still applies."""
        settings = EditPatchSettings(line_number_threshold=5)
        builder = EditPromptBuilder.from_settings(settings)
        message = builder.user_message(ORIGINAL_CODE, "greeter.py", "Shout the farewell")

        assert "10|     def farewell(self):" in message

        reply = (
            "<block>\n<search>\n"
            "10|     def farewell(self):\n"
            '11|         print("Goodbye, " + self.name)\n'
            "</search>\n<replace>\n"
            "10|     def farewell(self):\n"
            '11|         print("GOODBYE, " + self.name)\n'
            "</replace>\n</block>"
        )
        result = EditApplier(settings).apply_reply(ORIGINAL_CODE, reply)

        assert result.applied_blocks[0].status == MatchStatus.EXACT
        assert '        print("GOODBYE, " + self.name)\n' in result.new_content
