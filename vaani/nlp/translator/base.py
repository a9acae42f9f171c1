from __future__ import annotations
from abc import ABC, abstractmethod
from vaani.contracts import TranslationRequest, TranslationResult

class Translator(ABC):
    """One provider call per request: blocking, no retries, no caching."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def translate(self, req: TranslationRequest) -> TranslationResult:
        """Raise TranslationFailure when the provider cannot produce text."""
        ...

    def close(self) -> None:
        """Release provider resources (HTTP sessions and the like)."""
