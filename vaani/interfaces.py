"""Protocol seams for the devices the conversation session drives."""

from __future__ import annotations

from typing import Callable, Protocol

from vaani.contracts import RecognitionError, RecognitionEvent

EventCallback = Callable[[RecognitionEvent], None]
ErrorCallback = Callable[[RecognitionError], None]
EndCallback = Callable[[], None]


class SpeechInput(Protocol):
    def start(
        self,
        language: str,
        on_event: EventCallback,
        on_error: ErrorCallback,
        on_end: EndCallback,
    ) -> None:
        """Begin recognition; raise SpeechUnavailableError or SpeechStartError."""
        ...

    def stop(self) -> None: ...


class SpeechOutput(Protocol):
    def speak(self, text: str, language: str) -> None: ...


class Clipboard(Protocol):
    def write(self, text: str) -> None:
        """Raise ClipboardWriteError when the text could not be placed."""
        ...
