from __future__ import annotations

from typing import Any, Optional

from .base import Translator
from .errors import ProviderError
from .http import DEFAULT_TIMEOUT, new_session, read_json, send, unwrap
from transbuddy.contracts import TranslationRequest, TranslationResult

DEEPL_URL = "https://api-free.deepl.com/v2/translate"


class DeepLTranslator(Translator):
    def __init__(
        self,
        api_key: Optional[str],
        *,
        endpoint: str = DEEPL_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Any = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.endpoint = endpoint or DEEPL_URL
        self.timeout = timeout
        self.session = session or new_session()

    @property
    def name(self) -> str:
        return "deepl"

    def translate(self, req: TranslationRequest) -> TranslationResult:
        if not self.api_key:
            raise ProviderError("DeepL API key is required (DEEPL_API_KEY).")

        # DeepL wants upper-case codes
        form = {"text": req.text, "target_lang": req.target_lang.upper()}
        if req.source_lang:
            form["source_lang"] = req.source_lang.upper()

        resp = send(
            self.session,
            "POST",
            self.endpoint,
            provider=self.name,
            timeout=self.timeout,
            headers={"Authorization": f"DeepL-Auth-Key {self.api_key}"},
            data=form,
        )
        if not resp.ok:
            raise ProviderError(f"DeepL Translation API error (HTTP {resp.status_code})")
        data = read_json(resp, provider=self.name)

        text = unwrap(data, ("translations", 0, "text"), provider=self.name)
        return TranslationResult(
            source_text=req.text,
            translated_text=text,
            provider=self.name,
            source_lang=req.source_lang,
            target_lang=req.target_lang,
        )
