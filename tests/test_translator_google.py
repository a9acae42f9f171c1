from __future__ import annotations

import threading

import pytest
import requests

from vaani.contracts import TranslationRequest
from vaani.errors import TranslationFailure
from vaani.nlp.translator.google import GOOGLE_TRANSLATE_URL, GoogleWebTranslator, extract_first_segment


class _FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, bad_json: bool = False) -> None:
        self._payload = payload
        self.status_code = status_code
        self._bad_json = bad_json

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self):
        if self._bad_json:
            raise ValueError("not json")
        return self._payload


class _FakeSession:
    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict] = []

    def get(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


def _req(text: str = "Hello") -> TranslationRequest:
    return TranslationRequest(text=text, source_lang="en", target_lang="hi")


def test_google_translator_sends_gtx_query_and_reads_first_segment() -> None:
    http = _FakeSession(_FakeResponse([[["नमस्ते", "Hello", None, None, 10]], None, "en"]))
    tr = GoogleWebTranslator(timeout_sec=4.0, session_factory=lambda: http)

    out = tr.translate(_req())

    assert out.translated_text == "नमस्ते"
    assert out.source_text == "Hello"
    assert out.provider == "google"
    call = http.calls[0]
    assert call["url"] == GOOGLE_TRANSLATE_URL
    assert call["params"] == {"client": "gtx", "sl": "en", "tl": "hi", "dt": "t", "q": "Hello"}
    assert call["timeout"] == 4.0


def test_google_translator_non_ok_status_fails() -> None:
    tr = GoogleWebTranslator(session_factory=lambda: _FakeSession(_FakeResponse(status_code=429)))
    with pytest.raises(TranslationFailure, match="HTTP 429"):
        tr.translate(_req())


def test_google_translator_network_error_fails() -> None:
    tr = GoogleWebTranslator(session_factory=lambda: _FakeSession(error=requests.ConnectionError("offline")))
    with pytest.raises(TranslationFailure, match="offline"):
        tr.translate(_req())


def test_google_translator_invalid_json_fails() -> None:
    tr = GoogleWebTranslator(session_factory=lambda: _FakeSession(_FakeResponse(bad_json=True)))
    with pytest.raises(TranslationFailure, match="invalid JSON"):
        tr.translate(_req())


@pytest.mark.parametrize(
    "payload",
    [
        None,
        [],
        [[]],
        [[[]]],
        "text",
        ["abc"],
        [[[None]]],
        {"sentences": []},
    ],
)
def test_extract_first_segment_rejects_unexpected_shapes(payload) -> None:
    with pytest.raises(TranslationFailure):
        extract_first_segment(payload)


def test_timeout_must_be_positive() -> None:
    with pytest.raises(ValueError):
        GoogleWebTranslator(timeout_sec=0, session_factory=_FakeSession)


def test_each_thread_gets_its_own_http_session_and_close_closes_all() -> None:
    class _ClosingSession(_FakeSession):
        closed = False

        def close(self) -> None:
            self.closed = True

    created: list[_ClosingSession] = []

    def _factory() -> _ClosingSession:
        http = _ClosingSession(_FakeResponse([[["ok", "src"]]]))
        created.append(http)
        return http

    tr = GoogleWebTranslator(session_factory=_factory)
    tr.translate(_req("one"))
    tr.translate(_req("two"))
    worker = threading.Thread(target=tr.translate, args=(_req("three"),))
    worker.start()
    worker.join(timeout=5.0)

    assert len(created) == 2
    assert [c["params"]["q"] for c in created[0].calls] == ["one", "two"]
    assert [c["params"]["q"] for c in created[1].calls] == ["three"]

    tr.close()
    assert all(http.closed for http in created)
