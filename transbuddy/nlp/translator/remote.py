from __future__ import annotations

from typing import Any

from .base import Translator
from .errors import ProviderError
from .http import DEFAULT_TIMEOUT, new_session, read_json, send
from transbuddy.contracts import TranslationRequest, TranslationResult


class ApiTranslator(Translator):
    """
    Client of the bundled HTTP API (POST {base_url}/translate).
    Language codes are sent as given; the server normalizes them.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000/api",
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: Any = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or new_session()

    @property
    def name(self) -> str:
        return "api"

    def translate(self, req: TranslationRequest) -> TranslationResult:
        resp = send(
            self.session,
            "POST",
            f"{self.base_url}/translate",
            provider=self.name,
            timeout=self.timeout,
            json={
                "text": req.text,
                "sourceLang": req.source_lang or "auto",
                "targetLang": req.target_lang,
            },
        )
        data = read_json(resp, provider=self.name)
        if not resp.ok or not isinstance(data, dict) or not data.get("success"):
            message = data.get("message") if isinstance(data, dict) else None
            raise ProviderError(message or "Translation request failed")

        translation = data.get("translation")
        if not isinstance(translation, str):
            raise ProviderError("Translation server response did not contain a translation")
        return TranslationResult(
            source_text=req.text,
            translated_text=translation,
            provider=self.name,
            source_lang=data.get("sourceLang"),
            target_lang=data.get("targetLang"),
        )
