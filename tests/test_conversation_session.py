from __future__ import annotations

import asyncio
import threading

import pytest

from vaani.contracts import RecognitionError, RecognitionEvent, TranslationRequest, TranslationResult
from vaani.conversation.session import ConversationSession, SessionSnapshot
from vaani.conversation.state import SessionPhase
from vaani.conversation.transcript import Speaker, TranscriptEntry
from vaani.errors import (
    ConversationError,
    EmptyInputError,
    EmptyTranscriptError,
    NothingToClearError,
    SpeechRecognitionError,
    SpeechStartError,
    SpeechUnavailableError,
    TranslationFailure,
    UnsupportedLanguageError,
)
from vaani.nlp.translator.base import Translator
from vaani.nlp.translator.stub import StubTranslator

S1 = Speaker.SPEAKER1
S2 = Speaker.SPEAKER2


class _MapTranslator(Translator):
    def __init__(self, table: dict[tuple[str, str, str], str] | None = None) -> None:
        self.table = table or {}
        self.requests: list[TranslationRequest] = []
        self.gates: dict[str, threading.Event] = {}
        self.fail_with: Exception | None = None

    @property
    def name(self) -> str:
        return "map"

    def translate(self, req: TranslationRequest) -> TranslationResult:
        self.requests.append(req)
        gate = self.gates.get(req.text)
        if gate is not None:
            assert gate.wait(timeout=5.0)
        if self.fail_with is not None:
            raise self.fail_with
        out = self.table.get((req.source_lang, req.target_lang, req.text), f"<{req.text}>")
        return TranslationResult(source_text=req.text, translated_text=out, provider=self.name)


class _FakeSpeechInput:
    def __init__(self) -> None:
        self.starts: list[tuple[str, object, object, object]] = []
        self.stops = 0

    def start(self, language, on_event, on_error, on_end) -> None:
        self.starts.append((language, on_event, on_error, on_end))

    def stop(self) -> None:
        self.stops += 1


class _FakeSpeechOutput:
    def __init__(self) -> None:
        self.spoken: list[tuple[str, str]] = []

    def speak(self, text: str, language: str) -> None:
        self.spoken.append((text, language))


def _session(translator: Translator | None = None, **kwargs) -> ConversationSession:
    return ConversationSession(translator or StubTranslator(), **kwargs)


def test_defaults_are_english_and_hindi() -> None:
    session = _session()
    assert session.language(S1) == "en"
    assert session.language(S2) == "hi"
    assert session.direction(S1) == ("en", "hi")
    assert session.direction(S2) == ("hi", "en")
    assert session.transcript == ()
    assert session.active_listening is None
    assert not session.translation_in_flight


def test_invalid_default_languages_rejected() -> None:
    with pytest.raises(ValueError):
        _session(speaker1_language="en", speaker2_language="en")
    with pytest.raises(ValueError):
        _session(speaker1_language="fr")


def test_swap_languages_twice_restores_pair() -> None:
    session = _session(speaker1_language="ta", speaker2_language="kn")
    session.swap_languages()
    assert (session.language(S1), session.language(S2)) == ("kn", "ta")
    session.swap_languages()
    assert (session.language(S1), session.language(S2)) == ("ta", "kn")


def test_set_language_rejects_unsupported_code() -> None:
    session = _session()
    with pytest.raises(UnsupportedLanguageError):
        session.set_language(S1, "fr")
    assert session.language(S1) == "en"

    session.set_language(S1, "ml")
    assert session.language(S1) == "ml"


def test_same_language_for_both_speakers_is_allowed() -> None:
    session = _session()
    session.set_language(S2, "en")
    assert session.direction(S1) == ("en", "en")


def test_translate_appends_translation_and_keeps_pending_text() -> None:
    translator = _MapTranslator({("en", "hi", "Hello"): "नमस्ते"})
    session = _session(translator)
    session.set_pending_text(S1, "Hello")

    entry = asyncio.run(session.translate(S1))

    assert entry == TranscriptEntry(speaker=S1, text="नमस्ते")
    assert session.transcript == (TranscriptEntry(speaker=S1, text="नमस्ते"),)
    assert session.pending_text(S1) == "Hello"
    assert translator.requests == [TranslationRequest(text="Hello", source_lang="en", target_lang="hi")]
    assert not session.translation_in_flight


def test_translate_uses_current_languages_for_speaker2() -> None:
    translator = _MapTranslator()
    session = _session(translator)
    session.set_language(S1, "te")
    session.set_pending_text(S2, "क्या हाल है")

    asyncio.run(session.translate(S2))

    assert translator.requests[0].source_lang == "hi"
    assert translator.requests[0].target_lang == "te"
    assert session.transcript[0].speaker is S2


def test_each_successful_translate_appends_exactly_one_entry() -> None:
    session = _session()
    for i, text in enumerate(["a", "bb", "a"], start=1):
        session.set_pending_text(S1, text)
        asyncio.run(session.translate(S1))
        assert len(session.transcript) == i
        assert session.transcript[-1].speaker is S1


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_translate_empty_input_reports_error_and_keeps_transcript(text: str) -> None:
    translator = _MapTranslator()
    session = _session(translator)
    session.set_pending_text(S2, text)

    with pytest.raises(EmptyInputError) as excinfo:
        asyncio.run(session.translate(S2))

    assert "Speaker2" in str(excinfo.value)
    assert isinstance(excinfo.value, ConversationError)
    assert session.transcript == ()
    assert translator.requests == []
    assert not session.translation_in_flight


def test_translation_failure_leaves_transcript_and_clears_busy_flag() -> None:
    translator = _MapTranslator()
    translator.fail_with = TranslationFailure("HTTP 503")
    session = _session(translator)
    session.set_pending_text(S1, "Hello")

    with pytest.raises(TranslationFailure):
        asyncio.run(session.translate(S1))

    assert session.transcript == ()
    assert not session.translation_in_flight
    assert session.last_error == "HTTP 503"
    assert session.pending_text(S1) == "Hello"


def test_unexpected_translator_error_still_clears_busy_flag() -> None:
    translator = _MapTranslator()
    translator.fail_with = RuntimeError("boom")
    session = _session(translator)
    session.set_pending_text(S1, "Hello")

    with pytest.raises(RuntimeError):
        asyncio.run(session.translate(S1))

    assert session.phase == SessionPhase.IDLE
    assert session.transcript == ()


def test_concurrent_translations_append_in_completion_order() -> None:
    translator = _MapTranslator()
    slow = threading.Event()
    translator.gates["first"] = slow
    session = _session(translator)
    session.set_pending_text(S1, "first")
    session.set_pending_text(S2, "second")

    async def scenario() -> None:
        t1 = asyncio.create_task(session.translate(S1))
        await asyncio.sleep(0)
        t2 = asyncio.create_task(session.translate(S2))
        await t2
        assert session.translation_in_flight
        assert session.phase == SessionPhase.TRANSLATING
        slow.set()
        await t1

    asyncio.run(scenario())

    assert [e.speaker for e in session.transcript] == [S2, S1]
    assert [e.text for e in session.transcript] == ["<second>", "<first>"]
    assert not session.translation_in_flight


def test_clear_transcript() -> None:
    session = _session()
    with pytest.raises(NothingToClearError):
        session.clear_transcript()
    assert session.transcript == ()

    session.set_pending_text(S1, "Hi")
    asyncio.run(session.translate(S1))
    session.clear_transcript()
    assert session.transcript == ()
    assert session.pending_text(S1) == "Hi"


def test_copy_transcript_joins_lines_with_blank_line() -> None:
    translator = _MapTranslator({("en", "hi", "Hello"): "Hola", ("hi", "en", "Namaste"): "Hi"})
    session = _session(translator)
    with pytest.raises(EmptyTranscriptError):
        session.copy_transcript()

    session.set_pending_text(S1, "Hello")
    asyncio.run(session.translate(S1))
    session.set_pending_text(S2, "Namaste")
    asyncio.run(session.translate(S2))

    assert session.copy_transcript() == "Speaker1: Hola\n\nSpeaker2: Hi"


def test_listen_switches_from_other_speaker() -> None:
    mic = _FakeSpeechInput()
    session = _session(speech_input=mic)

    assert session.listen(S2) is S2
    assert session.active_listening is S2
    assert session.listen(S1) is S1

    assert session.active_listening is S1
    assert mic.stops == 1
    assert [start[0] for start in mic.starts] == ["hi", "en"]


def test_listen_switch_with_failed_start_publishes_idle_snapshot() -> None:
    class _FailSecondStart(_FakeSpeechInput):
        def start(self, language, on_event, on_error, on_end) -> None:
            super().start(language, on_event, on_error, on_end)
            if len(self.starts) > 1:
                raise SpeechStartError("microphone busy")

    mic = _FailSecondStart()
    snapshots: list[SessionSnapshot] = []
    session = _session(speech_input=mic, on_change=snapshots.append)
    session.listen(S2)
    assert snapshots[-1].active_listening is S2

    with pytest.raises(SpeechStartError):
        session.listen(S1)

    assert session.active_listening is None
    assert snapshots[-1].active_listening is None
    assert mic.stops == 1


def test_listen_same_speaker_toggles_off() -> None:
    mic = _FakeSpeechInput()
    session = _session(speech_input=mic)
    session.listen(S1)

    assert session.listen(S1) is None
    assert session.active_listening is None
    assert mic.stops == 1


def test_listen_without_speech_input_is_unavailable() -> None:
    session = _session()
    with pytest.raises(SpeechUnavailableError):
        session.listen(S1)
    assert session.active_listening is None


def test_recognition_fragments_overwrite_pending_text() -> None:
    mic = _FakeSpeechInput()
    session = _session(speech_input=mic)
    session.set_pending_text(S1, "typed")
    session.listen(S1)
    _, on_event, _, on_end = mic.starts[-1]

    on_event(RecognitionEvent(text="hel"))
    assert session.pending_text(S1) == "hel"
    on_event(RecognitionEvent(text="hello there", is_final=True))
    assert session.pending_text(S1) == "hello there"

    on_end()
    assert session.active_listening is None
    assert session.pending_text(S1) == "hello there"


def test_stale_recognition_callbacks_are_ignored() -> None:
    mic = _FakeSpeechInput()
    session = _session(speech_input=mic)
    session.listen(S2)
    _, old_event, old_error, old_end = mic.starts[-1]
    session.listen(S1)

    old_event(RecognitionEvent(text="late words", is_final=True))
    old_error(RecognitionError(code="no-speech"))
    old_end()

    assert session.pending_text(S2) == ""
    assert session.active_listening is S1


def test_recognition_error_is_reported_and_stops_listening() -> None:
    mic = _FakeSpeechInput()
    errors: list[ConversationError] = []
    session = _session(speech_input=mic, on_error=errors.append)
    session.listen(S1)
    _, _, on_error, _ = mic.starts[-1]

    on_error(RecognitionError(code="audio-capture", message="no microphone"))

    assert session.active_listening is None
    assert len(errors) == 1
    assert isinstance(errors[0], SpeechRecognitionError)
    assert errors[0].code == "audio-capture"


def test_speak_entry_uses_listener_language() -> None:
    out = _FakeSpeechOutput()
    session = _session(speech_output=out)

    session.speak_entry(TranscriptEntry(speaker=S1, text="नमस्ते"))
    session.speak_entry(TranscriptEntry(speaker=S2, text="Hello"))
    session.speak_entry(TranscriptEntry(speaker=S2, text=""))

    assert out.spoken == [("नमस्ते", "hi"), ("Hello", "en")]


def test_speak_entry_without_output_is_unavailable() -> None:
    session = _session()
    with pytest.raises(SpeechUnavailableError):
        session.speak_entry(TranscriptEntry(speaker=S1, text="hi"))


def test_on_change_receives_snapshots() -> None:
    snapshots: list[SessionSnapshot] = []
    session = _session(on_change=snapshots.append)

    session.set_pending_text(S1, "Hello")
    asyncio.run(session.translate(S1))

    busy = [s for s in snapshots if s.translation_in_flight]
    assert busy and busy[0].phase == SessionPhase.TRANSLATING
    last = snapshots[-1]
    assert last.text_of(S1) == "Hello"
    assert last.language_of(S2) == "hi"
    assert last.transcript == session.transcript
    assert not last.translation_in_flight
