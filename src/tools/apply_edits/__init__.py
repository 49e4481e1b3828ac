"""
Edit Patcher - apply a model's search/replace reply to a file.

This package provides a command-line front end for the edit_patch engine,
suitable for replaying saved model replies against source files.
"""

from .patcher import EditPatcher

__version__ = "1.0.0"

__all__ = [
    "EditPatcher",
]
