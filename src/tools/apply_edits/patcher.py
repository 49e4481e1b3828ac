#!/usr/bin/env python3
"""
Edit Patcher - Command-line tool for applying model search/replace replies.

This tool takes a source file and a saved model reply containing
search/replace blocks, locates every block with tiered matching, and
reports how confidently each one matched.

Usage:
    python -m tools.apply_edits --file <source_file> --reply <reply_file> [options]

Options:
    --file PATH         Source file to edit (required)
    --reply PATH        Model reply containing edit blocks (required)
    --apply             Actually write the result (default is dry-run)
    --backup            Create backup before applying (file.bak)
    --allow-partial     Apply even if some blocks could not be located
    --settings PATH     JSON settings file
    --threshold F       Fuzzy similarity threshold (overrides settings)
    --tolerance N       Fuzzy window tolerance in lines (overrides settings)
    --diff              Show a unified diff of the whole file
    --json              Print the report as JSON
    --verbose           Show detailed output
    --help              Show this help message
"""

import argparse
import difflib
import json
import logging
from pathlib import Path
import shutil
import sys
import traceback

from edit_patch import (
    EditApplier,
    EditPatchError,
    EditPatchSettings,
    EditReporter,
    MatchStatus,
    PatchResult,
)


class Colors:
    """ANSI color codes for terminal output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'

    @classmethod
    def disable(cls):
        """Disable colors (for non-terminal output)."""
        cls.RESET = ''
        cls.BOLD = ''
        cls.RED = ''
        cls.GREEN = ''
        cls.YELLOW = ''
        cls.BLUE = ''
        cls.CYAN = ''


_STATUS_COLORS = {
    MatchStatus.EXACT: 'GREEN',
    MatchStatus.NORMALIZED: 'GREEN',
    MatchStatus.FUZZY: 'YELLOW',
    MatchStatus.LINE_RANGE: 'YELLOW',
    MatchStatus.NOT_FOUND: 'RED',
    MatchStatus.PENDING: 'BLUE',
}


class EditPatcher:
    """
    Main patcher application.

    Coordinates:
    - Reading the source file and model reply
    - Loading settings
    - Applying edit blocks
    - Reporting per-block outcomes
    - Writing results
    """

    def __init__(self, args: argparse.Namespace):
        """
        Initialize patcher with command-line arguments.

        Args:
            args: Parsed command-line arguments
        """
        self.args = args
        self.source_file = Path(args.file)
        self.reply_file = Path(args.reply)
        self.verbose = args.verbose

        # Disable colors if not in terminal, if explicitly disabled, or when emitting JSON
        if not sys.stdout.isatty() or args.no_color or args.json:
            Colors.disable()

        self.reporter = EditReporter()

    def run(self) -> int:
        """
        Run the patcher.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        try:
            if not self._validate_inputs():
                return 1

            settings = self._load_settings()
            if settings is None:
                return 1

            source = self._read_text(self.source_file, "source file")
            if source is None:
                return 1

            reply = self._read_text(self.reply_file, "reply file")
            if reply is None:
                return 1

            result = EditApplier(settings).apply_reply(source, reply)

            if self.args.json:
                print(json.dumps(self.reporter.as_dict(result), indent=2))

            else:
                self._show_result(source, result)

            if not result.applied_blocks:
                return 0

            if not result.is_fully_applied and not self.args.allow_partial:
                if not self.args.json:
                    self._print_error("Some edit blocks could not be located; use --allow-partial to apply the rest")

                return 1

            if self.args.apply:
                return self._apply_result(result)

            if not self.args.json:
                self._show_dry_run_message()

            return 0

        except KeyboardInterrupt:
            self._print_error("\nInterrupted by user")
            return 130
        except EditPatchError as e:
            self._print_error(str(e))
            return 1
        except Exception as e:
            self._print_error(f"Unexpected error: {e}")
            if self.verbose:
                traceback.print_exc()
            return 1

    def _validate_inputs(self) -> bool:
        """Validate that input files exist."""
        for path, label in ((self.source_file, "Source"), (self.reply_file, "Reply")):
            if not path.exists():
                self._print_error(f"{label} file not found: {path}")
                return False

            if not path.is_file():
                self._print_error(f"{label} path is not a file: {path}")
                return False

        return True

    def _load_settings(self) -> EditPatchSettings | None:
        """Load settings from file and apply command-line overrides."""
        try:
            if self.args.settings:
                settings = EditPatchSettings.load(self.args.settings)
                self._print_verbose(f"Loaded settings from {self.args.settings}")

            else:
                settings = EditPatchSettings.create_default()

            if self.args.threshold is not None:
                settings.fuzzy_threshold = self.args.threshold

            if self.args.tolerance is not None:
                settings.line_tolerance = self.args.tolerance

            settings.validate()
            return settings

        except EditPatchError as e:
            self._print_error(str(e))
            return None

    def _read_text(self, path: Path, label: str) -> str | None:
        """Read a UTF-8 text file, keeping its line endings."""
        try:
            with open(path, 'r', encoding='utf-8', newline='') as f:
                content = f.read()

            self._print_verbose(f"Read {len(content)} characters from {label} {path}")
            return content

        except (OSError, UnicodeDecodeError) as e:
            self._print_error(f"Failed to read {label}: {e}")
            return None

    def _show_result(self, source: str, result: PatchResult) -> None:
        """Display per-block outcomes and the overall status."""
        print(f"\n{Colors.BOLD}Edit Information:{Colors.RESET}")
        print(f"  Source file: {Colors.CYAN}{self.source_file}{Colors.RESET}")
        print(f"  Reply file:  {Colors.CYAN}{self.reply_file}{Colors.RESET}")
        print(f"  Blocks:      {Colors.CYAN}{len(result.applied_blocks)}{Colors.RESET}")
        if result.summary:
            print(f"  Summary:     {Colors.CYAN}{result.summary}{Colors.RESET}")

        for diagnostic in result.parse_diagnostics:
            self._print_warning(f"{diagnostic.message} (offset {diagnostic.position})")

        if result.applied_blocks:
            print(f"\n{Colors.BOLD}Blocks:{Colors.RESET}")

        for block in result.applied_blocks:
            color = getattr(Colors, _STATUS_COLORS[block.status])
            print(f"  {color}{self.reporter.block_label(block)}{Colors.RESET}")
            if self.verbose:
                for line in self.reporter.block_preview(source, block):
                    print(f"      {line}")

        if self.args.diff and result.new_content != source:
            print(f"\n{Colors.BOLD}Diff:{Colors.RESET}")
            diff = difflib.unified_diff(
                source.splitlines(),
                result.new_content.splitlines(),
                fromfile=f"a/{self.source_file.name}",
                tofile=f"b/{self.source_file.name}",
                lineterm=""
            )
            for line in diff:
                print(line)

        color = Colors.GREEN if result.is_fully_applied else Colors.YELLOW
        print(f"\n{color}{self.reporter.summary_line(result)}{Colors.RESET}")

    def _apply_result(self, result: PatchResult) -> int:
        """Write the edited content back to the source file."""
        if self.args.backup:
            if not self._create_backup():
                return 1

        if not self._write_file(result.new_content):
            return 1

        if not self.args.json:
            print(f"{Colors.GREEN}✓ Edits applied successfully{Colors.RESET}")
            print(f"  Modified: {Colors.CYAN}{self.source_file}{Colors.RESET}")

            if self.args.backup:
                backup_file = self.source_file.with_suffix(self.source_file.suffix + '.bak')
                print(f"  Backup:   {Colors.CYAN}{backup_file}{Colors.RESET}")

        return 0

    def _create_backup(self) -> bool:
        """Create backup of source file."""
        backup_file = self.source_file.with_suffix(self.source_file.suffix + '.bak')

        try:
            shutil.copy2(self.source_file, backup_file)
            self._print_verbose(f"Created backup: {backup_file}")
            return True

        except OSError as e:
            self._print_error(f"Failed to create backup: {e}")
            return False

    def _write_file(self, content: str) -> bool:
        """Write edited content to the source file."""
        try:
            with open(self.source_file, 'w', encoding='utf-8', newline='') as f:
                f.write(content)

            self._print_verbose(f"Wrote {len(content)} characters to {self.source_file}")
            return True

        except OSError as e:
            self._print_error(f"Failed to write edited file: {e}")
            return False

    def _show_dry_run_message(self) -> None:
        """Show message about dry-run mode."""
        print(f"\n{Colors.YELLOW}Dry-run mode: No changes were made{Colors.RESET}")
        print(f"  Use {Colors.BOLD}--apply{Colors.RESET} to write the edited file")
        print(f"  Use {Colors.BOLD}--backup{Colors.RESET} to create a backup before applying")

    def _print_error(self, message: str) -> None:
        """Print error message."""
        print(f"{Colors.RED}Error:{Colors.RESET} {message}", file=sys.stderr)

    def _print_warning(self, message: str) -> None:
        """Print warning message."""
        print(f"{Colors.YELLOW}Warning:{Colors.RESET} {message}")

    def _print_verbose(self, message: str) -> None:
        """Print verbose message."""
        if self.verbose:
            print(f"{Colors.BLUE}[verbose]{Colors.RESET} {message}")


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Apply a model's search/replace edit blocks to a file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Dry run (default) - show how each block would match
  python -m tools.apply_edits --file src/example.py --reply reply.txt

  # Apply the edits
  python -m tools.apply_edits --file src/example.py --reply reply.txt --apply

  # Apply with backup, even if some blocks were not found
  python -m tools.apply_edits --file src/example.py --reply reply.txt --apply --backup --allow-partial

  # Loosen fuzzy matching
  python -m tools.apply_edits --file src/example.py --reply reply.txt --threshold 0.7 --tolerance 2

  # Machine-readable report
  python -m tools.apply_edits --file src/example.py --reply reply.txt --json
        """
    )

    parser.add_argument(
        '--file',
        required=True,
        help='Source file to edit'
    )

    parser.add_argument(
        '--reply',
        required=True,
        help='Model reply containing search/replace blocks'
    )

    parser.add_argument(
        '--apply',
        action='store_true',
        help='Actually write the edited file (default is dry-run)'
    )

    parser.add_argument(
        '--backup',
        action='store_true',
        help='Create backup before applying (file.bak)'
    )

    parser.add_argument(
        '--allow-partial',
        action='store_true',
        help='Apply even if some blocks could not be located'
    )

    parser.add_argument(
        '--settings',
        help='JSON settings file'
    )

    parser.add_argument(
        '--threshold',
        type=float,
        default=None,
        help='Fuzzy similarity threshold, 0-1 (default: 0.8)'
    )

    parser.add_argument(
        '--tolerance',
        type=int,
        default=None,
        help='Fuzzy window tolerance in lines (default: 1)'
    )

    parser.add_argument(
        '--diff',
        action='store_true',
        help='Show a unified diff of the whole file'
    )

    parser.add_argument(
        '--json',
        action='store_true',
        help='Print the report as JSON'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Show detailed output'
    )

    parser.add_argument(
        '--no-color',
        action='store_true',
        help='Disable colored output'
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )
    patcher = EditPatcher(args)
    return patcher.run()


if __name__ == "__main__":
    sys.exit(main())
