from __future__ import annotations

from typing import Iterable, Optional

from vaani.errors import SpeechUnavailableError

try:
    from PyQt6 import QtCore

    _PYQT_IMPORT_ERROR: ModuleNotFoundError | None = None
except ModuleNotFoundError as e:  # pragma: no cover - import guard path
    QtCore = None  # type: ignore[assignment]
    _PYQT_IMPORT_ERROR = e


def pick_locale_name(language: str, available: Iterable[str]) -> Optional[str]:
    """Best locale name (e.g. 'hi_IN') for a language code, exact match first."""
    names = list(available)
    lang = (language or "").replace("-", "_").lower()
    for name in names:
        if name.lower() == lang:
            return name
    prefix = lang.split("_", 1)[0]
    for name in names:
        if name.lower().split("_", 1)[0] == prefix:
            return name
    return None


if QtCore is not None:
    class QtSpeechOutput(QtCore.QObject):
        """Qt TextToSpeech engine; speak() may be called from any thread."""

        _speak_requested = QtCore.pyqtSignal(str, str)

        def __init__(self, parent: QtCore.QObject | None = None) -> None:
            super().__init__(parent)
            try:
                from PyQt6.QtTextToSpeech import QTextToSpeech
            except ImportError as e:
                raise SpeechUnavailableError(
                    "Qt TextToSpeech module is not available in this PyQt6 build."
                ) from e
            self._engine = QTextToSpeech(self)
            self._speak_requested.connect(self._say)

        def speak(self, text: str, language: str) -> None:
            if not text:
                return
            self._speak_requested.emit(text, language)

        def _say(self, text: str, language: str) -> None:
            locales = {loc.name(): loc for loc in self._engine.availableLocales()}
            chosen = pick_locale_name(language, locales.keys())
            if chosen is not None:
                self._engine.setLocale(locales[chosen])
            self._engine.say(text)
else:
    class QtSpeechOutput:
        def __init__(self, parent=None) -> None:
            raise SpeechUnavailableError(
                "PyQt6 is required for speech output. Install with: python -m pip install PyQt6"
            ) from _PYQT_IMPORT_ERROR
