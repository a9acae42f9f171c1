from __future__ import annotations

from vaani.conversation.session import ConversationSession
from vaani.conversation.transcript import Speaker, TranscriptEntry
from vaani.languages import DEFAULT_CATALOG
from vaani.nlp.translator.stub import StubTranslator
from vaani.ui.conversation_qt import (
    format_entry,
    mic_button_text,
    status_text,
    transcript_changed,
    translate_button_text,
)


def test_format_entry_matches_copy_layout() -> None:
    assert format_entry(TranscriptEntry(speaker=Speaker.SPEAKER2, text="Hi")) == "Speaker2: Hi"


def test_button_texts() -> None:
    assert mic_button_text(True) == "Stop"
    assert mic_button_text(False) == "Mic"
    assert translate_button_text(True) == "Translating..."
    assert translate_button_text(False) == "Translate"


def test_status_text_summarizes_snapshot() -> None:
    snap = ConversationSession(StubTranslator()).snapshot()
    assert status_text(snap, DEFAULT_CATALOG) == "English <-> हिन्दी (Hindi) | 0 line(s)"


def test_transcript_changed() -> None:
    a = TranscriptEntry(speaker=Speaker.SPEAKER1, text="a")
    assert not transcript_changed((), [])
    assert transcript_changed((a,), ())
    assert not transcript_changed([a], (a,))
