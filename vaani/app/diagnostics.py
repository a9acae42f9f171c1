from __future__ import annotations


def summarize_exception(detail: str, *, max_len: int = 220) -> str:
    text = str(detail or "").strip()
    if not text:
        return "Unknown error."
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    for ln in reversed(lines):
        if ln.startswith(("File ", "^", "Traceback ")):
            continue
        out = ln
        break
    else:
        out = lines[-1]
    if len(out) > max_len:
        return out[: max_len - 3].rstrip() + "..."
    return out


def hint_for_exception(summary: str) -> str:
    s = str(summary or "").lower()
    if "faster_whisper" in s or "faster-whisper" in s:
        return "Speech recognition needs faster-whisper. Install it with: python -m pip install faster-whisper"
    if "portaudio" in s or ("sounddevice" in s and ("failed" in s or "no module" in s)):
        return "Microphone init failed. Check the input device selection and the app's mic permissions."
    if "no module named" in s:
        return "A required package is missing in this virtualenv. Reinstall dependencies and retry."
    if "config file not found" in s:
        return "Configured JSON file is missing. Update the config path or restore the file."
    if "http" in s or "connection" in s or "timed out" in s:
        return "The translation service could not be reached. Check the network connection and retry."
    return "Check logs for full traceback."


def describe_failure(exc: BaseException) -> str:
    summary = summarize_exception(f"{type(exc).__name__}: {exc}")
    return f"{summary}\n\n{hint_for_exception(summary)}"
