"""Shared fixtures and utilities for edit patch tests."""

import pytest
from typing import List, Tuple

from edit_patch.edit_applier import EditApplier
from edit_patch.edit_block_parser import EditBlockParser
from edit_patch.edit_matcher import EditMatcher
from edit_patch.edit_patch_settings import EditPatchSettings
from edit_patch.edit_patch_types import EditInstruction, LineHint
from edit_patch.edit_reporter import EditReporter


@pytest.fixture
def parser():
    """Create a block parser for testing."""
    return EditBlockParser()


@pytest.fixture
def matcher():
    """Create a matcher with default configuration."""
    return EditMatcher()


@pytest.fixture
def matcher_custom():
    """Factory for matchers with custom configuration."""
    def _create_matcher(fuzzy_threshold: float = 0.80, line_tolerance: int = 1):
        return EditMatcher(fuzzy_threshold=fuzzy_threshold, line_tolerance=line_tolerance)
    return _create_matcher


@pytest.fixture
def applier():
    """Create an applier with default settings."""
    return EditApplier()


@pytest.fixture
def applier_custom():
    """Factory for appliers with custom settings."""
    def _create_applier(**kwargs):
        return EditApplier(EditPatchSettings(**kwargs))
    return _create_applier


@pytest.fixture
def reporter():
    """Create a reporter for testing."""
    return EditReporter()


class EditTestHelpers:
    """Helper utilities for edit testing."""

    @staticmethod
    def instructions(*pairs: Tuple[str, str]) -> List[EditInstruction]:
        """Create instructions from (search, replace) pairs in order."""
        return [EditInstruction(search, replace, i) for i, (search, replace) in enumerate(pairs)]

    @staticmethod
    def hinted(search: str, replace: str, start_line: int, end_line: int | None = None,
               order_index: int = 0) -> EditInstruction:
        """Create an instruction carrying a line hint."""
        return EditInstruction(search, replace, order_index, LineHint(start_line, end_line))

    @staticmethod
    def marker_block(search: str, replace: str) -> str:
        """Render a block in the marker grammar."""
        return f"<<<SEARCH>>>\n{search}\n<<<REPLACE>>>\n{replace}\n<<<END>>>\n"

    @staticmethod
    def xml_block(search: str, replace: str) -> str:
        """Render a block in the XML grammar."""
        return f"<block>\n<search>\n{search}\n</search>\n<replace>\n{replace}\n</replace>\n</block>\n"


@pytest.fixture
def helpers():
    """Provide test helper utilities."""
    return EditTestHelpers
