from __future__ import annotations
import os
from .base import Translator
from .google import GoogleWebTranslator
from .stub import StubTranslator

def get_translator(provider: str | None = None, *, timeout_sec: float = 10.0) -> Translator:
    provider = (provider or os.getenv("VAANI_TRANSLATOR", "google")).lower().strip()

    if provider == "google":
        return GoogleWebTranslator(timeout_sec=timeout_sec)
    if provider == "stub":
        return StubTranslator()

    raise ValueError(f"Unknown translator provider: {provider}")
