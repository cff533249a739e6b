from __future__ import annotations
from .base import Translator
from transbuddy.contracts import TranslationRequest, TranslationResult


def mock_translate(text: str, source_lang: str, target_lang: str) -> str:
    # Deterministic, shown when a final translation fails
    return f"[{source_lang} → {target_lang}]: {text}"


class MockTranslator(Translator):
    @property
    def name(self) -> str:
        return "mock"

    def translate(self, req: TranslationRequest) -> TranslationResult:
        out = mock_translate(req.text, req.source_lang or "auto", req.target_lang)
        return TranslationResult(
            source_text=req.text,
            translated_text=out,
            provider=self.name,
            source_lang=req.source_lang,
            target_lang=req.target_lang,
        )
