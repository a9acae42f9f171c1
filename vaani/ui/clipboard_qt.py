from __future__ import annotations

from vaani.errors import ClipboardWriteError

try:
    from PyQt6 import QtGui

    _PYQT_IMPORT_ERROR: ModuleNotFoundError | None = None
except ModuleNotFoundError as e:  # pragma: no cover - import guard path
    QtGui = None  # type: ignore[assignment]
    _PYQT_IMPORT_ERROR = e


class QtClipboard:
    """System clipboard through Qt; call from the Qt thread."""

    def write(self, text: str) -> None:
        if QtGui is None:
            raise ClipboardWriteError("PyQt6 is not installed.") from _PYQT_IMPORT_ERROR
        clipboard = QtGui.QGuiApplication.clipboard()
        if clipboard is None:
            raise ClipboardWriteError("System clipboard is not available.")
        clipboard.setText(text)
        if clipboard.text() != text:
            raise ClipboardWriteError("Clipboard did not accept the conversation text.")
