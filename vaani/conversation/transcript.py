from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class Speaker(str, Enum):
    SPEAKER1 = "Speaker1"
    SPEAKER2 = "Speaker2"

    @property
    def label(self) -> str:
        return self.value

    @property
    def other(self) -> "Speaker":
        return Speaker.SPEAKER2 if self is Speaker.SPEAKER1 else Speaker.SPEAKER1


@dataclass(frozen=True)
class TranscriptEntry:
    speaker: Speaker
    text: str


class Transcript:
    """
    Completion-ordered, append-only log of translated utterances.
    Entries are never edited or removed one by one; clear() swaps in an empty log.
    """

    def __init__(self) -> None:
        self._entries: tuple[TranscriptEntry, ...] = ()

    @property
    def entries(self) -> tuple[TranscriptEntry, ...]:
        return self._entries

    def append(self, entry: TranscriptEntry) -> None:
        self._entries = self._entries + (entry,)

    def clear(self) -> None:
        self._entries = ()

    def render(self) -> str:
        return "\n\n".join(f"{e.speaker.label}: {e.text}" for e in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TranscriptEntry]:
        return iter(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
