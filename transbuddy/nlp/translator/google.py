from __future__ import annotations

from typing import Any, Optional

from .base import Translator
from .errors import ProviderError
from .http import DEFAULT_TIMEOUT, new_session, read_json, send, unwrap
from transbuddy.contracts import TranslationRequest, TranslationResult

GOOGLE_URL = "https://translation.googleapis.com/language/translate/v2"


class GoogleTranslator(Translator):
    def __init__(
        self,
        api_key: Optional[str],
        *,
        endpoint: str = GOOGLE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Any = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or new_session()

    @property
    def name(self) -> str:
        return "google"

    def translate(self, req: TranslationRequest) -> TranslationResult:
        if not self.api_key:
            raise ProviderError("Google Translate API key is required. Please enter your API key.")

        params = {
            "q": req.text,
            "target": req.target_lang,
            "format": "text",
            "key": self.api_key,
        }
        if req.source_lang:
            params["source"] = req.source_lang

        resp = send(self.session, "GET", self.endpoint, provider=self.name, timeout=self.timeout, params=params)
        data = read_json(resp, provider=self.name)

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ProviderError(message or "Google Translation API error")
        if not resp.ok:
            raise ProviderError(f"Google Translation API error (HTTP {resp.status_code})")

        text = unwrap(data, ("data", "translations", 0, "translatedText"), provider=self.name)
        return TranslationResult(
            source_text=req.text,
            translated_text=text,
            provider=self.name,
            source_lang=req.source_lang,
            target_lang=req.target_lang,
        )
