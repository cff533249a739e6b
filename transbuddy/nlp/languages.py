from __future__ import annotations

from typing import Optional

AUTO = "auto"

LANGUAGE_NAMES: dict[str, str] = {
    "auto": "Auto-detect",
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "nl": "Dutch",
    "ru": "Russian",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "ar": "Arabic",
    "hi": "Hindi",
    "bo": "Tibetan",
}


def main_code(lang: str) -> str:
    """'en-US' -> 'en'."""
    return str(lang or "").strip().split("-")[0]


def normalize_source(lang: Optional[str]) -> Optional[str]:
    """Return None when the provider should auto-detect the source language."""
    code = str(lang or "").strip()
    if not code or code.lower() == AUTO:
        return None
    return main_code(code)


def normalize_target(lang: Optional[str]) -> str:
    return main_code(str(lang or ""))


def language_name(lang: str) -> str:
    code = main_code(lang)
    return LANGUAGE_NAMES.get(code, lang)
