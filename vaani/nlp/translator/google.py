from __future__ import annotations

import threading
from typing import Any, Callable

import requests

from .base import Translator
from vaani.contracts import TranslationRequest, TranslationResult
from vaani.errors import TranslationFailure

GOOGLE_TRANSLATE_URL = "https://translate.googleapis.com/translate_a/single"


def extract_first_segment(data: Any) -> str:
    """Pull the translated text out of a [[["translation", "source", ...], ...], ...] payload."""
    node = data
    for depth in range(2):
        if not isinstance(node, list) or not node:
            raise TranslationFailure(f"Unexpected translation response shape at depth {depth}")
        node = node[0]
    if not isinstance(node, list) or not node:
        raise TranslationFailure("Unexpected translation response shape at depth 2")
    text = node[0]
    if not isinstance(text, str):
        raise TranslationFailure(
            f"Unexpected translation response: expected text, got {type(text).__name__}"
        )
    return text


class GoogleWebTranslator(Translator):
    def __init__(
        self,
        *,
        url: str = GOOGLE_TRANSLATE_URL,
        timeout_sec: float = 10.0,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        if timeout_sec <= 0:
            raise ValueError("timeout_sec must be > 0")
        self.url = url
        self.timeout_sec = float(timeout_sec)
        self._session_factory = session_factory
        # requests.Session is not thread-safe; each worker thread gets its own.
        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()

    @property
    def name(self) -> str:
        return "google"

    def translate(self, req: TranslationRequest) -> TranslationResult:
        params = {
            "client": "gtx",
            "sl": req.source_lang,
            "tl": req.target_lang,
            "dt": "t",
            "q": req.text,
        }
        try:
            resp = self._http().get(
                self.url,
                params=params,
                headers={"User-Agent": "Mozilla/5.0"},
                timeout=self.timeout_sec,
            )
        except requests.RequestException as e:
            raise TranslationFailure(f"Network request failed: {e}") from e

        if not resp.ok:
            raise TranslationFailure(f"Translation service returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise TranslationFailure("Translation service returned invalid JSON") from e

        out = extract_first_segment(data)
        return TranslationResult(source_text=req.text, translated_text=out, provider=self.name)

    def _http(self) -> requests.Session:
        http = getattr(self._local, "session", None)
        if http is None:
            http = self._session_factory()
            self._local.session = http
            with self._sessions_lock:
                self._sessions.append(http)
        return http

    def close(self) -> None:
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for http in sessions:
            http.close()
        self._local = threading.local()
