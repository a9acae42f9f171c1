from __future__ import annotations

import threading
from typing import List, Optional

import numpy as np

from vaani.contracts import ASRSegment
from vaani.errors import SpeechUnavailableError

WHISPER_SAMPLE_RATE = 16000


def pcm16_to_float32(pcm16: bytes, sample_rate: int, channels: int) -> np.ndarray:
    """Decode int16 PCM into the mono 16 kHz float32 array faster-whisper expects."""
    usable = len(pcm16) - (len(pcm16) % (2 * channels))
    samples = np.frombuffer(pcm16[:usable], dtype=np.int16).astype(np.float32) / 32768.0
    if channels > 1:
        samples = samples.reshape(-1, channels).mean(axis=1)
    if sample_rate != WHISPER_SAMPLE_RATE and samples.size:
        duration = samples.size / float(sample_rate)
        target_len = max(1, int(round(duration * WHISPER_SAMPLE_RATE)))
        src_t = np.linspace(0.0, duration, num=samples.size, endpoint=False)
        dst_t = np.linspace(0.0, duration, num=target_len, endpoint=False)
        samples = np.interp(dst_t, src_t, samples).astype(np.float32)
    return samples


class WhisperUtteranceTranscriber:
    """Transcribe one buffered utterance with faster-whisper in a fixed language."""

    def __init__(
        self,
        *,
        model_size: str = "tiny",
        device: str = "cpu",
        compute_type: str = "int8",
        language: Optional[str] = None,
        beam_size: int = 1,
    ) -> None:
        self.model_size = model_size
        self.device = device
        self.compute_type = compute_type
        self.language = language
        self.beam_size = beam_size
        self._model = None
        self._model_lock = threading.Lock()
        self._shared: Optional["WhisperUtteranceTranscriber"] = None

    @staticmethod
    def ensure_available() -> None:
        try:
            import faster_whisper  # noqa: F401
        except ImportError as e:
            raise SpeechUnavailableError(
                "faster-whisper is not installed. Install with: python -m pip install faster-whisper"
            ) from e

    def for_language(self, language: str) -> "WhisperUtteranceTranscriber":
        """Return a transcriber fixed to language that reuses this one's loaded model."""
        view = WhisperUtteranceTranscriber(
            model_size=self.model_size,
            device=self.device,
            compute_type=self.compute_type,
            language=language,
            beam_size=self.beam_size,
        )
        view._shared = self._shared or self
        return view

    def _get_model(self):
        if self._shared is not None:
            return self._shared._get_model()
        with self._model_lock:
            if self._model is None:
                from faster_whisper import WhisperModel

                self._model = WhisperModel(
                    self.model_size,
                    device=self.device,
                    compute_type=self.compute_type,
                )
        return self._model

    def transcribe_utterance(
        self,
        pcm16: bytes,
        sample_rate: int,
        channels: int,
        utter_t0: float,
    ) -> List[ASRSegment]:
        audio = pcm16_to_float32(pcm16, sample_rate, channels)
        if not audio.size:
            return []

        segments, _info = self._get_model().transcribe(
            audio,
            language=self.language,
            beam_size=self.beam_size,
            vad_filter=False,
            condition_on_previous_text=False,
        )
        out: List[ASRSegment] = []
        for s in segments:
            text = (s.text or "").strip()
            if text:
                out.append(ASRSegment(text=text, t0=utter_t0 + float(s.start), t1=utter_t0 + float(s.end)))
        return out
