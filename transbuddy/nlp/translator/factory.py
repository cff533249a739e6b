from __future__ import annotations
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from .base import Translator
from .azure import AZURE_ENDPOINT, AzureTranslator
from .deepl import DEEPL_URL, DeepLTranslator
from .errors import UnsupportedConfigurationError
from .google import GOOGLE_URL, GoogleTranslator
from .http import DEFAULT_TIMEOUT
from .libre import LIBRE_URL, LibreTranslator


class Provider(str, Enum):
    GOOGLE = "google"
    AZURE = "azure"
    DEEPL = "deepl"
    LIBRE = "libre"


@dataclass(frozen=True)
class ProviderConfig:
    provider: Provider = Provider.GOOGLE
    api_key: Optional[str] = None
    endpoint: Optional[str] = None
    region: str = "global"
    timeout: float = DEFAULT_TIMEOUT


def parse_provider(value: Any) -> Provider:
    name = str(value or "").lower().strip()
    try:
        return Provider(name)
    except ValueError:
        raise UnsupportedConfigurationError(f"Unsupported translation service: {value}") from None


def provider_config_from_env(
    env: Mapping[str, str] | None = None,
    *,
    provider: str | None = None,
) -> ProviderConfig:
    env = os.environ if env is None else env
    chosen = parse_provider(provider or env.get("TRANSLATION_SERVICE") or "google")
    timeout = float(env.get("TRANSLATION_TIMEOUT") or DEFAULT_TIMEOUT)

    if chosen is Provider.GOOGLE:
        return ProviderConfig(chosen, env.get("GOOGLE_API_KEY"), GOOGLE_URL, timeout=timeout)
    if chosen is Provider.AZURE:
        return ProviderConfig(
            chosen,
            env.get("AZURE_API_KEY"),
            env.get("AZURE_ENDPOINT") or AZURE_ENDPOINT,
            region=env.get("AZURE_REGION") or "global",
            timeout=timeout,
        )
    if chosen is Provider.DEEPL:
        return ProviderConfig(
            chosen, env.get("DEEPL_API_KEY"), env.get("DEEPL_API_URL") or DEEPL_URL, timeout=timeout
        )
    return ProviderConfig(
        chosen, env.get("LIBRE_API_KEY"), env.get("LIBRE_API_URL") or LIBRE_URL, timeout=timeout
    )


def get_translator(config: ProviderConfig | str | None = None, *, session: Any = None) -> Translator:
    if not isinstance(config, ProviderConfig):
        config = provider_config_from_env(provider=config)
    provider = parse_provider(getattr(config.provider, "value", config.provider))

    if provider is Provider.GOOGLE:
        return GoogleTranslator(
            config.api_key, endpoint=config.endpoint or GOOGLE_URL, timeout=config.timeout, session=session
        )
    if provider is Provider.AZURE:
        return AzureTranslator(
            config.api_key,
            endpoint=config.endpoint or AZURE_ENDPOINT,
            region=config.region,
            timeout=config.timeout,
            session=session,
        )
    if provider is Provider.DEEPL:
        return DeepLTranslator(
            config.api_key, endpoint=config.endpoint or DEEPL_URL, timeout=config.timeout, session=session
        )
    if provider is Provider.LIBRE:
        return LibreTranslator(config.api_key, endpoint=config.endpoint, timeout=config.timeout, session=session)

    raise UnsupportedConfigurationError(f"Unsupported translation service: {provider}")
