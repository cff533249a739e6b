from __future__ import annotations


def summarize_exception(detail: str, *, max_len: int = 220) -> str:
    text = str(detail or "").strip()
    if not text:
        return "Unknown error."
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    if not lines:
        return "Unknown error."
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
    if "api key is required" in s:
        return "Pass --api-key (add --remember-key to store it) or set the provider key in the environment."
    if "unsupported translation service" in s:
        return "TRANSLATION_SERVICE must be one of: google, azure, deepl, libre."
    if "api request failed" in s or "connection refused" in s or "max retries exceeded" in s:
        return "Translation server unreachable. Start it with `transbuddy-server` or check --server-url."
    if "portaudio" in s or "microphone" in s:
        return "Microphone init failed. Check --list-devices and the app's mic permissions."
    if "no module named" in s:
        return "A required package is missing in this virtualenv. Reinstall dependencies and retry."
    if "config file not found" in s:
        return "Configured JSON file is missing. Update the config path or restore the file."
    return "Check logs for full traceback."
