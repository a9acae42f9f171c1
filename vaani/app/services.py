from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from vaani.languages import LanguageCatalog
from vaani.nlp.translator.base import Translator
from vaani.nlp.translator.factory import get_translator
from vaani.speech.whisper_input import WhisperSpeechInput, build_whisper_speech_input


@dataclass(frozen=True)
class ConversationServices:
    translator: Translator
    catalog: LanguageCatalog
    speech_input: WhisperSpeechInput
    speaker1_language: str
    speaker2_language: str


def build_conversation_services(args: Any, logger: logging.Logger | None = None) -> ConversationServices:
    catalog = LanguageCatalog.from_config(getattr(args, "languages", None))
    translator = get_translator(str(args.translator), timeout_sec=float(args.translate_timeout_sec))
    max_utter = float(args.max_utter_sec)
    speech_input = build_whisper_speech_input(
        model_size=str(args.model),
        device=args.device,
        sample_rate=int(args.sr),
        channels=int(args.channels),
        chunk_sec=float(args.chunk_sec),
        rms_threshold=float(args.rms_th),
        silence_chunks=max(1, int(args.silence_chunks)),
        min_utter_sec=max(0.0, float(args.min_utter_sec)),
        max_utter_sec=max_utter if max_utter > 0 else None,
        continuous=bool(args.listen_continuous),
        logger=logger if getattr(args, "debug", False) else None,
    )
    return ConversationServices(
        translator=translator,
        catalog=catalog,
        speech_input=speech_input,
        speaker1_language=str(args.speaker1_language),
        speaker2_language=str(args.speaker2_language),
    )
