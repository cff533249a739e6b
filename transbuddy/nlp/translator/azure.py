from __future__ import annotations

from typing import Any, Optional

from .base import Translator
from .errors import ProviderError
from .http import DEFAULT_TIMEOUT, new_session, read_json, send, unwrap
from transbuddy.contracts import TranslationRequest, TranslationResult

AZURE_ENDPOINT = "https://api.cognitive.microsofttranslator.com"


class AzureTranslator(Translator):
    def __init__(
        self,
        api_key: Optional[str],
        *,
        endpoint: str = AZURE_ENDPOINT,
        region: str = "global",
        timeout: float = DEFAULT_TIMEOUT,
        session: Any = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.endpoint = (endpoint or AZURE_ENDPOINT).rstrip("/")
        self.region = region or "global"
        self.timeout = timeout
        self.session = session or new_session()

    @property
    def name(self) -> str:
        return "azure"

    def translate(self, req: TranslationRequest) -> TranslationResult:
        if not self.api_key:
            raise ProviderError("Azure Translator API key is required (AZURE_API_KEY).")

        params = {"api-version": "3.0", "to": req.target_lang}
        if req.source_lang:
            params["from"] = req.source_lang
        headers = {
            "Ocp-Apim-Subscription-Key": self.api_key,
            "Ocp-Apim-Subscription-Region": self.region,
            "Content-Type": "application/json",
        }

        resp = send(
            self.session,
            "POST",
            f"{self.endpoint}/translate",
            provider=self.name,
            timeout=self.timeout,
            params=params,
            headers=headers,
            json=[{"text": req.text}],
        )
        if not resp.ok:
            raise ProviderError(f"Azure Translation API error (HTTP {resp.status_code})")
        data = read_json(resp, provider=self.name)

        text = unwrap(data, (0, "translations", 0, "text"), provider=self.name)
        return TranslationResult(
            source_text=req.text,
            translated_text=text,
            provider=self.name,
            source_lang=req.source_lang,
            target_lang=req.target_lang,
        )
