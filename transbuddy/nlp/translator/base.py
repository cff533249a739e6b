from __future__ import annotations
from abc import ABC, abstractmethod
from transbuddy.contracts import TranslationRequest, TranslationResult

class Translator(ABC):
    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def translate(self, req: TranslationRequest) -> TranslationResult:
        """Translate req.text. req.source_lang is None when the provider should auto-detect."""
