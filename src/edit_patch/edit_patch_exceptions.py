"""Custom exceptions for edit patch operations."""

from typing import Any


class EditPatchError(Exception):
    """Base exception for edit patch operations."""

    def __init__(self, message: str, error_details: dict[str, Any] | None = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            error_details: Optional dictionary with detailed error information
        """
        super().__init__(message)
        self.error_details = error_details


class EditInputError(EditPatchError):
    """Raised when the engine is given something other than text."""


class EditSettingsError(EditPatchError):
    """Raised when settings are invalid or cannot be read."""


class EditApplicationError(EditPatchError):
    """Raised when a patch result cannot be written into a document."""
