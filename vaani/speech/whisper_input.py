from __future__ import annotations

import logging
import threading
from typing import Callable, Iterator, Optional, Protocol

from vaani.contracts import AudioChunk, RecognitionError, RecognitionEvent
from vaani.errors import SpeechStartError
from vaani.interfaces import EndCallback, ErrorCallback, EventCallback
from vaani.speech.listener import UtteranceListener, UtteranceTranscriber
from vaani.speech.mic import MicError, SoundDeviceMicSource
from vaani.speech.vad import EnergyVAD
from vaani.speech.whisper_asr import WhisperUtteranceTranscriber

Dispatch = Callable[[Callable[[], None]], None]


class ChunkSource(Protocol):
    def chunks(self, stop_event: threading.Event | None = None) -> Iterator[AudioChunk]: ...


def _direct(fn: Callable[[], None]) -> None:
    fn()


class _Run:
    def __init__(self, language: str, previous: Optional["_Run"]) -> None:
        self.language = language
        self.previous = previous
        self.stop_event = threading.Event()
        self.thread: threading.Thread | None = None


class WhisperSpeechInput:
    """
    Microphone speech recognition: sounddevice capture, energy VAD, faster-whisper.

    Every recognized utterance is reported as a partial event carrying all text
    heard so far; when the stream ends a final event with the full text follows,
    then on_end. Callbacks go through `dispatch`, so the host can hop them onto
    its own thread (e.g. loop.call_soon_threadsafe).
    """

    def __init__(
        self,
        *,
        mic_factory: Callable[[], ChunkSource],
        transcriber_factory: Callable[[str], UtteranceTranscriber],
        vad: EnergyVAD,
        silence_chunks: int = 2,
        min_utter_sec: float = 0.6,
        max_utter_sec: float | None = 8.0,
        continuous: bool = False,
        dispatch: Dispatch | None = None,
        check_available: Callable[[], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._mic_factory = mic_factory
        self._transcriber_factory = transcriber_factory
        self._vad = vad
        self._silence_chunks = int(silence_chunks)
        self._min_utter_sec = float(min_utter_sec)
        self._max_utter_sec = max_utter_sec
        self._continuous = bool(continuous)
        self.dispatch: Dispatch = dispatch or _direct
        self._check_available = check_available
        self._logger = logger
        self._lock = threading.Lock()
        self._current: _Run | None = None
        self._latest: _Run | None = None

    def start(
        self,
        language: str,
        on_event: EventCallback,
        on_error: ErrorCallback,
        on_end: EndCallback,
    ) -> None:
        if self._check_available is not None:
            self._check_available()

        with self._lock:
            previous = self._current
            if previous is not None:
                previous.stop_event.set()
            run = _Run(language, previous)
            thread = threading.Thread(
                target=self._run,
                args=(run, on_event, on_error, on_end),
                name=f"vaani-listen-{language}",
                daemon=True,
            )
            run.thread = thread
            try:
                thread.start()
            except RuntimeError as e:
                raise SpeechStartError(f"Could not start recognition thread: {e}") from e
            self._current = run
            self._latest = run

    def stop(self) -> None:
        with self._lock:
            run = self._current
            self._current = None
        if run is not None:
            run.stop_event.set()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the most recently started stream to finish."""
        with self._lock:
            run = self._latest
        if run is None or run.thread is None:
            return True
        run.thread.join(timeout)
        return not run.thread.is_alive()

    def _emit(self, fn: Callable[[], None]) -> None:
        self.dispatch(fn)

    def _run(
        self,
        run: _Run,
        on_event: EventCallback,
        on_error: ErrorCallback,
        on_end: EndCallback,
    ) -> None:
        # The previous stream must release the microphone first.
        if run.previous is not None and run.previous.thread is not None:
            run.previous.thread.join(timeout=5.0)
        run.previous = None

        heard: list[str] = []

        def _on_text(text: str) -> None:
            heard.append(text)
            partial = RecognitionEvent(text=" ".join(heard), is_final=False)
            self._emit(lambda: on_event(partial))
            if not self._continuous:
                run.stop_event.set()

        listener = UtteranceListener(
            transcriber=self._transcriber_factory(run.language),
            vad=self._vad,
            on_text=_on_text,
            silence_chunks_to_finalize=self._silence_chunks,
            min_utter_sec=self._min_utter_sec,
            max_utter_sec=self._max_utter_sec,
            logger=self._logger,
        )

        try:
            mic = self._mic_factory()
            listener.run(mic.chunks(run.stop_event))
        except MicError as e:
            err = RecognitionError(code="audio-capture", message=str(e))
            self._emit(lambda: on_error(err))
        except Exception as e:
            if self._logger is not None:
                self._logger.exception("recognition_crashed", extra={"language": run.language})
            err = RecognitionError(code="recognition-failed", message=str(e))
            self._emit(lambda: on_error(err))
        else:
            if heard:
                final = RecognitionEvent(text=" ".join(heard), is_final=True)
                self._emit(lambda: on_event(final))
        finally:
            with self._lock:
                if self._current is run:
                    self._current = None
            self._emit(on_end)


def build_whisper_speech_input(
    *,
    model_size: str = "tiny",
    device: Optional[int] = None,
    sample_rate: int = 16000,
    channels: int = 1,
    chunk_sec: float = 0.5,
    rms_threshold: float = 250.0,
    silence_chunks: int = 2,
    min_utter_sec: float = 0.6,
    max_utter_sec: float | None = 8.0,
    continuous: bool = False,
    logger: logging.Logger | None = None,
) -> WhisperSpeechInput:
    def _check() -> None:
        SoundDeviceMicSource.ensure_available()
        WhisperUtteranceTranscriber.ensure_available()

    # Every language shares one loaded model; only the language hint differs.
    shared = WhisperUtteranceTranscriber(model_size=model_size)

    return WhisperSpeechInput(
        mic_factory=lambda: SoundDeviceMicSource(
            chunk_seconds=chunk_sec,
            sample_rate=sample_rate,
            channels=channels,
            device=device,
        ),
        transcriber_factory=shared.for_language,
        vad=EnergyVAD(rms_threshold=rms_threshold),
        silence_chunks=silence_chunks,
        min_utter_sec=min_utter_sec,
        max_utter_sec=max_utter_sec,
        continuous=continuous,
        check_available=_check,
        logger=logger,
    )
