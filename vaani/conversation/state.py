from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionPhase(str, Enum):
    IDLE = "idle"
    TRANSLATING = "translating"


@dataclass
class TranslationTracker:
    """Busy indicator for the UI; it never serializes requests."""

    in_flight: int = 0
    last_error: str | None = None

    @property
    def phase(self) -> SessionPhase:
        return SessionPhase.TRANSLATING if self.in_flight > 0 else SessionPhase.IDLE

    @property
    def busy(self) -> bool:
        return self.in_flight > 0

    def set_started(self) -> None:
        self.in_flight += 1
        self.last_error = None

    def set_succeeded(self) -> None:
        self._finish()

    def set_failed(self, detail: str) -> None:
        self._finish()
        self.last_error = detail

    def _finish(self) -> None:
        if self.in_flight > 0:
            self.in_flight -= 1
