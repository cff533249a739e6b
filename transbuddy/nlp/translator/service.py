from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Optional

from .base import Translator
from .errors import TranslationError, ValidationError
from transbuddy.app.logging_setup import log_event
from transbuddy.contracts import TranslationRequest, TranslationResult
from transbuddy.nlp.languages import normalize_source, normalize_target


class TranslationService:
    """
    Single entry point in front of one configured Translator.

    Validates input, strips region subtags (en-US -> en), maps "auto" to
    "no source" and hands a normalized request to the provider. Provider
    failures propagate as TranslationError subclasses.
    """

    def __init__(self, translator: Translator, logger: Optional[logging.Logger] = None) -> None:
        self.translator = translator
        self.logger = logger

    @property
    def provider(self) -> str:
        return self.translator.name

    def translate(self, text: str, source_lang: Optional[str], target_lang: Optional[str]) -> str:
        if not text:
            return ""
        return self.translate_request(
            TranslationRequest(text=text, source_lang=source_lang, target_lang=target_lang or "")
        ).translated_text

    def translate_request(self, req: TranslationRequest) -> TranslationResult:
        if not req.text:
            raise ValidationError("Text is required")
        if not req.target_lang:
            raise ValidationError("Target language is required")

        target = normalize_target(req.target_lang)
        if not target:
            raise ValidationError("Target language is required")
        normalized = replace(req, source_lang=normalize_source(req.source_lang), target_lang=target)

        t0 = time.perf_counter()
        try:
            res = self.translator.translate(normalized)
        except TranslationError as e:
            log_event(
                self.logger,
                logging.WARNING,
                "provider_failed",
                provider=self.provider,
                error_type=type(e).__name__,
                error=str(e),
                chars=len(req.text),
            )
            raise
        log_event(
            self.logger,
            logging.INFO,
            "provider_done",
            provider=self.provider,
            source=normalized.source_lang or "auto",
            target=normalized.target_lang,
            chars=len(req.text),
            ms=round((time.perf_counter() - t0) * 1000.0, 2),
        )
        return res
