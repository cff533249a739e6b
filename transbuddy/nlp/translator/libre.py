from __future__ import annotations

from typing import Any, Optional

from .base import Translator
from .errors import ProviderError
from .http import DEFAULT_TIMEOUT, new_session, read_json, send, unwrap
from transbuddy.contracts import TranslationRequest, TranslationResult

LIBRE_URL = "https://libretranslate.de/translate"


class LibreTranslator(Translator):
    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        endpoint: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Any = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.endpoint = endpoint or LIBRE_URL
        self.timeout = timeout
        self.session = session or new_session()

    @property
    def name(self) -> str:
        return "libre"

    def translate(self, req: TranslationRequest) -> TranslationResult:
        body: dict[str, str] = {
            "q": req.text,
            "source": req.source_lang or "auto",
            "target": req.target_lang,
            "format": "text",
        }
        if self.api_key:
            body["api_key"] = self.api_key

        resp = send(
            self.session,
            "POST",
            self.endpoint,
            provider=self.name,
            timeout=self.timeout,
            headers={"Content-Type": "application/json"},
            json=body,
        )
        data = read_json(resp, provider=self.name)
        if not resp.ok:
            detail = data.get("error") if isinstance(data, dict) else None
            msg = f"LibreTranslate API error (HTTP {resp.status_code})"
            raise ProviderError(f"{msg}: {detail}" if detail else msg)

        text = unwrap(data, ("translatedText",), provider=self.name)
        return TranslationResult(
            source_text=req.text,
            translated_text=text,
            provider=self.name,
            source_lang=req.source_lang,
            target_lang=req.target_lang,
        )
