from __future__ import annotations

import numpy as np


def pcm16_rms(pcm16: bytes) -> float:
    """RMS of little-endian int16 PCM; a trailing odd byte is ignored."""
    usable = len(pcm16) - (len(pcm16) % 2)
    if usable <= 0:
        return 0.0
    samples = np.frombuffer(pcm16[:usable], dtype="<i2").astype(np.float64)
    return float(np.sqrt(np.mean(samples * samples)))


class EnergyVAD:
    """Speech/non-speech decision per chunk by RMS threshold."""

    def __init__(self, rms_threshold: float = 250.0) -> None:
        if rms_threshold < 0:
            raise ValueError("rms_threshold must be >= 0")
        self.rms_threshold = float(rms_threshold)

    def is_speech(self, pcm16: bytes) -> bool:
        return pcm16_rms(pcm16) >= self.rms_threshold
