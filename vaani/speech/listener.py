from __future__ import annotations

import logging
from typing import Callable, Iterable, Protocol

from vaani.contracts import ASRSegment, AudioChunk
from vaani.speech.vad import EnergyVAD


class UtteranceTranscriber(Protocol):
    def transcribe_utterance(
        self, pcm16: bytes, sample_rate: int, channels: int, utter_t0: float
    ) -> list[ASRSegment]: ...


class _Utterance:
    def __init__(self, chunk: AudioChunk) -> None:
        self.t0 = float(chunk.start_time)
        self.sample_rate = int(chunk.sample_rate)
        self.channels = int(chunk.channels)
        self.parts: list[bytes] = []
        self.nbytes = 0
        self.trailing_silence = 0

    def add(self, pcm16: bytes) -> None:
        self.parts.append(pcm16)
        self.nbytes += len(pcm16)
        self.trailing_silence = 0

    @property
    def seconds(self) -> float:
        bytes_per_second = self.sample_rate * self.channels * 2
        if bytes_per_second <= 0:
            return 0.0
        return self.nbytes / float(bytes_per_second)


class UtteranceListener:
    """
    Split a chunk stream into utterances with an energy VAD and transcribe
    each one as it closes. on_text receives the utterance text.
    """

    def __init__(
        self,
        *,
        transcriber: UtteranceTranscriber,
        vad: EnergyVAD,
        on_text: Callable[[str], None],
        silence_chunks_to_finalize: int = 2,
        min_utter_sec: float = 0.6,
        max_utter_sec: float | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if silence_chunks_to_finalize <= 0:
            raise ValueError("silence_chunks_to_finalize must be > 0")
        if min_utter_sec < 0:
            raise ValueError("min_utter_sec must be >= 0")
        if max_utter_sec is not None and max_utter_sec <= 0:
            raise ValueError("max_utter_sec must be > 0 when set")

        self.transcriber = transcriber
        self.vad = vad
        self.on_text = on_text
        self.silence_chunks_to_finalize = int(silence_chunks_to_finalize)
        self.min_utter_sec = float(min_utter_sec)
        self.max_utter_sec = float(max_utter_sec) if max_utter_sec is not None else None
        self.logger = logger

    def _finalize(self, utt: _Utterance, reason: str) -> None:
        if utt.seconds < self.min_utter_sec:
            if self.logger is not None:
                self.logger.debug(
                    "utterance_skipped",
                    extra={"reason": reason, "t0": utt.t0, "seconds": round(utt.seconds, 2)},
                )
            return

        segments = self.transcriber.transcribe_utterance(
            b"".join(utt.parts),
            sample_rate=utt.sample_rate,
            channels=utt.channels,
            utter_t0=utt.t0,
        )
        text = " ".join((seg.text or "").strip() for seg in segments).strip()
        if self.logger is not None:
            self.logger.debug(
                "utterance_finalized",
                extra={
                    "reason": reason,
                    "t0": utt.t0,
                    "seconds": round(utt.seconds, 2),
                    "segments": len(segments),
                },
            )
        if text:
            self.on_text(text)

    def run(self, chunks: Iterable[AudioChunk]) -> None:
        utt: _Utterance | None = None

        for chunk in chunks:
            if self.vad.is_speech(chunk.pcm16):
                if utt is None:
                    utt = _Utterance(chunk)
                utt.add(chunk.pcm16)
                if self.max_utter_sec is not None and utt.seconds >= self.max_utter_sec:
                    self._finalize(utt, "max_utter_sec")
                    utt = None
                continue

            if utt is not None:
                utt.trailing_silence += 1
                if utt.trailing_silence >= self.silence_chunks_to_finalize:
                    self._finalize(utt, "silence")
                    utt = None

        if utt is not None and utt.parts:
            self._finalize(utt, "stream_end")
