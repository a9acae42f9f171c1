"""Typed, user-facing failures raised by conversation operations."""

from __future__ import annotations


class ConversationError(Exception):
    """Base class; none of these are fatal to the session."""

    title = "Something went wrong"


class EmptyInputError(ConversationError):
    title = "Nothing to translate"

    def __init__(self, speaker_label: str) -> None:
        super().__init__(f"Enter text for {speaker_label} first.")
        self.speaker_label = speaker_label


class TranslationFailure(ConversationError):
    title = "Translation error"


class NothingToClearError(ConversationError):
    title = "Clear conversation"

    def __init__(self) -> None:
        super().__init__("Conversation is already empty.")


class EmptyTranscriptError(ConversationError):
    title = "Copy conversation"

    def __init__(self) -> None:
        super().__init__("Nothing to copy.")


class SpeechUnavailableError(ConversationError):
    title = "Speech unavailable"


class SpeechStartError(ConversationError):
    title = "Speech recognition failed"


class SpeechRecognitionError(ConversationError):
    title = "Speech recognition error"

    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(f"{code}: {message}" if message else code)
        self.code = code


class ClipboardWriteError(ConversationError):
    title = "Copy failed"


class UnsupportedLanguageError(ConversationError):
    title = "Unsupported language"

    def __init__(self, code: str) -> None:
        super().__init__(f"Language code is not supported: {code!r}")
        self.code = code
