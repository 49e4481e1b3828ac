"""
Search/replace edit parsing, matching, and application.

This package turns a language model's search/replace reply into new file
text, locating each edit with successively looser strategies and reporting
how confidently each one was matched.
"""

from edit_patch.edit_applier import EditApplier
from edit_patch.edit_block_parser import EditBlockParser
from edit_patch.edit_matcher import EditMatcher
from edit_patch.edit_patch_exceptions import (
    EditApplicationError,
    EditInputError,
    EditPatchError,
    EditSettingsError,
)
from edit_patch.edit_patch_settings import EditPatchSettings
from edit_patch.edit_patch_types import (
    AppliedBlock,
    EditInstruction,
    EditIssue,
    LineHint,
    MatchOutcome,
    MatchStatus,
    ParseDiagnostic,
    ParseResult,
    PatchResult,
)
from edit_patch.edit_prompt_builder import EditPromptBuilder
from edit_patch.edit_reporter import EditReporter

__all__ = [
    # Exceptions
    'EditPatchError',
    'EditInputError',
    'EditSettingsError',
    'EditApplicationError',
    # Types
    'MatchStatus',
    'EditIssue',
    'LineHint',
    'EditInstruction',
    'MatchOutcome',
    'AppliedBlock',
    'ParseDiagnostic',
    'ParseResult',
    'PatchResult',
    # Settings
    'EditPatchSettings',
    # Core classes
    'EditBlockParser',
    'EditMatcher',
    'EditApplier',
    'EditReporter',
    'EditPromptBuilder',
]
