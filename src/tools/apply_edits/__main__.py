"""
CLI entry point for Edit Patcher.

This allows the tool to be run as:
    python -m tools.apply_edits --file myfile.py --reply reply.txt
"""

import sys
from .patcher import main

if __name__ == "__main__":
    sys.exit(main())
