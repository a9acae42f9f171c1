from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from vaani.contracts import RecognitionError, RecognitionEvent, TranslationRequest
from vaani.conversation.state import SessionPhase, TranslationTracker
from vaani.conversation.transcript import Speaker, Transcript, TranscriptEntry
from vaani.errors import (
    ConversationError,
    EmptyInputError,
    EmptyTranscriptError,
    NothingToClearError,
    SpeechRecognitionError,
    SpeechUnavailableError,
    TranslationFailure,
    UnsupportedLanguageError,
)
from vaani.interfaces import SpeechInput, SpeechOutput
from vaani.languages import DEFAULT_CATALOG, LanguageCatalog
from vaani.nlp.translator.base import Translator

DEFAULT_SPEAKER1_LANGUAGE = "en"
DEFAULT_SPEAKER2_LANGUAGE = "hi"


@dataclass
class SpeakerSlot:
    language: str
    pending_text: str = ""


@dataclass(frozen=True)
class SessionSnapshot:
    speaker1_language: str
    speaker2_language: str
    speaker1_text: str
    speaker2_text: str
    transcript: tuple[TranscriptEntry, ...]
    translation_in_flight: bool
    active_listening: Speaker | None
    phase: SessionPhase

    def language_of(self, slot: Speaker) -> str:
        return self.speaker1_language if slot is Speaker.SPEAKER1 else self.speaker2_language

    def text_of(self, slot: Speaker) -> str:
        return self.speaker1_text if slot is Speaker.SPEAKER1 else self.speaker2_text


ChangeCallback = Callable[[SessionSnapshot], None]
ErrorCallback = Callable[[ConversationError], None]


def _log_event(logger: logging.Logger | None, level: int, event: str, **fields: Any) -> None:
    if logger is None:
        return
    logger.log(level, event, extra=fields)


class ConversationSession:
    """
    Two-speaker translation session.

    All methods must be called from one control thread (the event loop that
    awaits translate()). Translations for both speakers may be outstanding at
    once; each result is appended when it resolves, so the transcript is in
    completion order, not request order.
    """

    def __init__(
        self,
        translator: Translator,
        *,
        catalog: LanguageCatalog = DEFAULT_CATALOG,
        speech_input: Optional[SpeechInput] = None,
        speech_output: Optional[SpeechOutput] = None,
        speaker1_language: str = DEFAULT_SPEAKER1_LANGUAGE,
        speaker2_language: str = DEFAULT_SPEAKER2_LANGUAGE,
        on_change: Optional[ChangeCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        for code in (speaker1_language, speaker2_language):
            if not catalog.is_supported(code):
                raise ValueError(f"default language not in catalog: {code}")
        if speaker1_language == speaker2_language:
            raise ValueError("speaker default languages must differ")

        self._translator = translator
        self._catalog = catalog
        self._speech_input = speech_input
        self._speech_output = speech_output
        self._on_change = on_change
        self._on_error = on_error
        self._logger = logger

        self._slots: dict[Speaker, SpeakerSlot] = {
            Speaker.SPEAKER1: SpeakerSlot(language=speaker1_language),
            Speaker.SPEAKER2: SpeakerSlot(language=speaker2_language),
        }
        self._transcript = Transcript()
        self._tracker = TranslationTracker()
        self._active_listening: Speaker | None = None
        self._listen_generation = 0

    # -- state accessors -------------------------------------------------

    @property
    def catalog(self) -> LanguageCatalog:
        return self._catalog

    @property
    def transcript(self) -> tuple[TranscriptEntry, ...]:
        return self._transcript.entries

    @property
    def translation_in_flight(self) -> bool:
        return self._tracker.busy

    @property
    def phase(self) -> SessionPhase:
        return self._tracker.phase

    @property
    def last_error(self) -> str | None:
        return self._tracker.last_error

    @property
    def active_listening(self) -> Speaker | None:
        return self._active_listening

    def language(self, slot: Speaker) -> str:
        return self._slots[slot].language

    def pending_text(self, slot: Speaker) -> str:
        return self._slots[slot].pending_text

    def direction(self, slot: Speaker) -> tuple[str, str]:
        return self._slots[slot].language, self._slots[slot.other].language

    def snapshot(self) -> SessionSnapshot:
        s1 = self._slots[Speaker.SPEAKER1]
        s2 = self._slots[Speaker.SPEAKER2]
        return SessionSnapshot(
            speaker1_language=s1.language,
            speaker2_language=s2.language,
            speaker1_text=s1.pending_text,
            speaker2_text=s2.pending_text,
            transcript=self._transcript.entries,
            translation_in_flight=self._tracker.busy,
            active_listening=self._active_listening,
            phase=self._tracker.phase,
        )

    # -- operations ------------------------------------------------------

    def set_language(self, slot: Speaker, code: str) -> None:
        if not self._catalog.is_supported(code):
            raise UnsupportedLanguageError(code)
        self._slots[slot].language = code
        _log_event(self._logger, logging.INFO, "language_set", speaker=slot.value, language=code)
        self._changed()

    def set_pending_text(self, slot: Speaker, text: str) -> None:
        self._slots[slot].pending_text = text
        self._changed()

    def swap_languages(self) -> None:
        s1 = self._slots[Speaker.SPEAKER1]
        s2 = self._slots[Speaker.SPEAKER2]
        s1.language, s2.language = s2.language, s1.language
        _log_event(
            self._logger,
            logging.INFO,
            "languages_swapped",
            speaker1_language=s1.language,
            speaker2_language=s2.language,
        )
        self._changed()

    async def translate(self, slot: Speaker) -> TranscriptEntry:
        text = self._slots[slot].pending_text
        if not text.strip():
            raise EmptyInputError(slot.label)

        source, target = self.direction(slot)
        req = TranslationRequest(text=text, source_lang=source, target_lang=target)
        self._tracker.set_started()
        _log_event(
            self._logger,
            logging.INFO,
            "translate_start",
            speaker=slot.value,
            source=source,
            target=target,
            chars=len(text),
            in_flight=self._tracker.in_flight,
        )
        self._changed()

        try:
            res = await asyncio.to_thread(self._translator.translate, req)
        except TranslationFailure as e:
            self._tracker.set_failed(str(e))
            _log_event(
                self._logger,
                logging.WARNING,
                "translate_failed",
                speaker=slot.value,
                source=source,
                target=target,
                detail=str(e),
            )
            self._changed()
            raise
        except Exception as e:
            self._tracker.set_failed(repr(e))
            if self._logger is not None:
                self._logger.exception("translate_crashed", extra={"speaker": slot.value})
            self._changed()
            raise

        entry = TranscriptEntry(speaker=slot, text=res.translated_text)
        self._transcript.append(entry)
        self._tracker.set_succeeded()
        _log_event(
            self._logger,
            logging.INFO,
            "translate_done",
            speaker=slot.value,
            provider=res.provider,
            transcript_len=len(self._transcript),
        )
        self._changed()
        return entry

    def listen(self, slot: Speaker) -> Speaker | None:
        """Toggle recognition for slot; returns the slot now listening, if any."""
        if self._active_listening is slot:
            self._stop_listening()
            self._changed()
            return None

        if self._speech_input is None:
            raise SpeechUnavailableError("Speech recognition is not available on this system.")

        if self._active_listening is not None:
            self._stop_listening()

        self._listen_generation += 1
        generation = self._listen_generation
        language = self._slots[slot].language
        try:
            self._speech_input.start(
                language,
                on_event=lambda ev: self._on_recognition_event(generation, slot, ev),
                on_error=lambda err: self._on_recognition_error(generation, slot, err),
                on_end=lambda: self._on_recognition_end(generation, slot),
            )
        except ConversationError:
            # A start failure leaves nothing listening; publish that.
            self._changed()
            raise
        self._active_listening = slot
        _log_event(self._logger, logging.INFO, "listen_started", speaker=slot.value, language=language)
        self._changed()
        return slot

    def speak_entry(self, entry: TranscriptEntry) -> None:
        if not entry.text:
            return
        if self._speech_output is None:
            raise SpeechUnavailableError("Speech output is not available on this system.")
        language = self._slots[entry.speaker.other].language
        _log_event(self._logger, logging.INFO, "speak_entry", speaker=entry.speaker.value, language=language)
        self._speech_output.speak(entry.text, language)

    def clear_transcript(self) -> None:
        if not self._transcript:
            raise NothingToClearError()
        removed = len(self._transcript)
        self._transcript.clear()
        _log_event(self._logger, logging.INFO, "transcript_cleared", entries=removed)
        self._changed()

    def copy_transcript(self) -> str:
        if not self._transcript:
            raise EmptyTranscriptError()
        return self._transcript.render()

    # -- recognition callbacks ------------------------------------------

    def _stop_listening(self) -> None:
        slot = self._active_listening
        self._active_listening = None
        # Invalidate callbacks from the stream being stopped.
        self._listen_generation += 1
        if self._speech_input is not None:
            self._speech_input.stop()
        if slot is not None:
            _log_event(self._logger, logging.INFO, "listen_stopped", speaker=slot.value)

    def _is_current(self, generation: int, slot: Speaker) -> bool:
        return generation == self._listen_generation and self._active_listening is slot

    def _on_recognition_event(self, generation: int, slot: Speaker, event: RecognitionEvent) -> None:
        if not self._is_current(generation, slot):
            return
        self._slots[slot].pending_text = event.text
        self._changed()

    def _on_recognition_error(self, generation: int, slot: Speaker, error: RecognitionError) -> None:
        if not self._is_current(generation, slot):
            return
        self._active_listening = None
        _log_event(
            self._logger,
            logging.WARNING,
            "listen_error",
            speaker=slot.value,
            code=error.code,
            detail=error.message,
        )
        self._changed()
        if self._on_error is not None:
            self._on_error(SpeechRecognitionError(error.code, error.message))

    def _on_recognition_end(self, generation: int, slot: Speaker) -> None:
        if not self._is_current(generation, slot):
            return
        self._active_listening = None
        _log_event(self._logger, logging.INFO, "listen_ended", speaker=slot.value)
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self.snapshot())
