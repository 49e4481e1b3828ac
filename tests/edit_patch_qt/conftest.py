"""Shared fixtures for Qt edit patch tests."""

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtGui import QGuiApplication, QTextDocument  # noqa: E402


@pytest.fixture(scope="session")
def qt_app():
    """Provide a GUI application for document layout."""
    app = QGuiApplication.instance()
    if app is None:
        app = QGuiApplication([])

    return app


@pytest.fixture
def document_factory(qt_app):
    """Factory for documents holding the given text."""
    def _create_document(text: str) -> QTextDocument:
        document = QTextDocument()
        document.setPlainText(text)
        return document
    return _create_document
