"""Qt editor integration for search/replace edit results."""

from edit_patch_qt.editor_edit_applier import EditorEditApplier

__all__ = [
    'EditorEditApplier',
]
