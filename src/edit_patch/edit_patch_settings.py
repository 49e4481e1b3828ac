"""Settings module for tuning how edit instructions are matched."""

from dataclasses import dataclass
import json
import os

from edit_patch.edit_patch_exceptions import EditSettingsError


@dataclass
class EditPatchSettings:
    """
    Tunable parameters for parsing and matching edit instructions.
    """
    fuzzy_threshold: float = 0.80  # Minimum similarity for a fuzzy match
    line_tolerance: int = 1  # Fuzzy windows may differ from the search by this many lines
    strip_line_numbers: bool = True  # Remove "N| " prefixes the model copied from the prompt
    reindent: bool = True  # Shift replacement indentation to match the located text
    line_number_threshold: int = 300  # Files longer than this are sent with line numbers

    @classmethod
    def create_default(cls) -> "EditPatchSettings":
        """Create a new EditPatchSettings object with default values."""
        return cls()

    def validate(self) -> None:
        """
        Check that all values are usable.

        Raises:
            EditSettingsError: If any value is out of range
        """
        if not 0.0 < self.fuzzy_threshold <= 1.0:
            raise EditSettingsError(
                f"fuzzy_threshold must be in (0, 1], got {self.fuzzy_threshold}",
                {'field': 'fuzzy_threshold', 'value': self.fuzzy_threshold}
            )

        if self.line_tolerance < 0:
            raise EditSettingsError(
                f"line_tolerance must not be negative, got {self.line_tolerance}",
                {'field': 'line_tolerance', 'value': self.line_tolerance}
            )

        if self.line_number_threshold < 0:
            raise EditSettingsError(
                f"line_number_threshold must not be negative, got {self.line_number_threshold}",
                {'field': 'line_number_threshold', 'value': self.line_number_threshold}
            )

    @classmethod
    def load(cls, path: str) -> "EditPatchSettings":
        """
        Load settings from file.

        Args:
            path: Path to the settings file

        Returns:
            EditPatchSettings object with loaded values

        Raises:
            EditSettingsError: If the file cannot be read, is not valid JSON, or holds invalid values
        """
        # Start with default settings
        settings = cls.create_default()

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)

        except (OSError, json.JSONDecodeError) as e:
            raise EditSettingsError(f"Failed to load settings from {path}: {e}") from e

        if not isinstance(data, dict):
            raise EditSettingsError(f"Settings file {path} must contain a JSON object")

        try:
            settings.fuzzy_threshold = float(data.get("fuzzyThreshold", settings.fuzzy_threshold))
            settings.line_tolerance = int(data.get("lineTolerance", settings.line_tolerance))
            settings.strip_line_numbers = bool(data.get("stripLineNumbers", settings.strip_line_numbers))
            settings.reindent = bool(data.get("reindent", settings.reindent))
            settings.line_number_threshold = int(data.get("lineNumberThreshold", settings.line_number_threshold))

        except (TypeError, ValueError) as e:
            raise EditSettingsError(f"Invalid value in settings file {path}: {e}") from e

        settings.validate()
        return settings

    def save(self, path: str) -> None:
        """
        Save settings to file.

        Args:
            path: Path to save the settings file

        Raises:
            OSError: If there's an issue creating the directory or writing the file
        """
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        data = {
            "fuzzyThreshold": self.fuzzy_threshold,
            "lineTolerance": self.line_tolerance,
            "stripLineNumbers": self.strip_line_numbers,
            "reindent": self.reindent,
            "lineNumberThreshold": self.line_number_threshold,
        }

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=4)
