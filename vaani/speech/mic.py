from __future__ import annotations

import contextlib
import threading
from typing import Iterator, Optional

from vaani.contracts import AudioChunk
from vaani.errors import SpeechUnavailableError


class MicError(RuntimeError):
    pass


def _import_sounddevice():
    try:
        import sounddevice as sd
    except ImportError as e:
        raise SpeechUnavailableError(
            "sounddevice is not installed. Install with: python -m pip install sounddevice"
        ) from e
    except OSError as e:
        # PortAudio shared library missing.
        raise SpeechUnavailableError(f"Audio backend unavailable: {e}") from e
    return sd


class SoundDeviceMicSource:
    """
    Live microphone source using the `sounddevice` package (PortAudio).
    Captures raw PCM16 chunks of fixed duration until the stop event is set.
    """

    def __init__(
        self,
        *,
        chunk_seconds: float = 0.5,
        sample_rate: int = 16000,
        channels: int = 1,
        device: Optional[int] = None,
    ) -> None:
        if chunk_seconds <= 0:
            raise ValueError("chunk_seconds must be > 0")
        if sample_rate <= 0:
            raise ValueError("sample_rate must be > 0")
        if channels not in (1, 2):
            raise ValueError("channels must be 1 or 2 (for now)")

        self.chunk_seconds = float(chunk_seconds)
        self.sample_rate = int(sample_rate)
        self.channels = int(channels)
        self.device = device

    @staticmethod
    def ensure_available() -> None:
        _import_sounddevice()

    @staticmethod
    def list_devices() -> str:
        sd = _import_sounddevice()
        return str(sd.query_devices())

    @contextlib.contextmanager
    def _open_stream(self):
        sd = _import_sounddevice()
        try:
            stream = sd.RawInputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                device=self.device,
                blocksize=0,  # let PortAudio choose
            )
        except Exception as e:
            raise MicError(
                "Failed to open microphone stream. "
                "Try --list-devices and select a device id with --device."
            ) from e

        with stream:
            yield stream

    def chunks(self, stop_event: threading.Event | None = None) -> Iterator[AudioChunk]:
        frames_per_chunk = int(round(self.chunk_seconds * self.sample_rate))
        if frames_per_chunk <= 0:
            frames_per_chunk = 1

        frames_seen = 0

        with self._open_stream() as stream:
            while stop_event is None or not stop_event.is_set():
                # Overflow only means PortAudio dropped frames; keep going.
                data, _overflowed = stream.read(frames_per_chunk)

                start_time = frames_seen / self.sample_rate
                duration = frames_per_chunk / self.sample_rate
                frames_seen += frames_per_chunk

                yield AudioChunk(
                    pcm16=bytes(data),
                    sample_rate=self.sample_rate,
                    channels=self.channels,
                    start_time=start_time,
                    duration=duration,
                )
