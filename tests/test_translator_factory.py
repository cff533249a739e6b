from __future__ import annotations

import pytest

from transbuddy.nlp.translator.azure import AzureTranslator
from transbuddy.nlp.translator.deepl import DeepLTranslator
from transbuddy.nlp.translator.errors import UnsupportedConfigurationError
from transbuddy.nlp.translator.factory import (
    Provider,
    ProviderConfig,
    get_translator,
    provider_config_from_env,
)
from transbuddy.nlp.translator.google import GoogleTranslator
from transbuddy.nlp.translator.libre import LIBRE_URL, LibreTranslator


def test_env_defaults_to_google() -> None:
    cfg = provider_config_from_env({"GOOGLE_API_KEY": "g"})
    assert cfg.provider is Provider.GOOGLE
    assert cfg.api_key == "g"
    assert isinstance(get_translator(cfg), GoogleTranslator)


def test_env_azure_defaults_endpoint_and_region() -> None:
    cfg = provider_config_from_env({"TRANSLATION_SERVICE": "azure", "AZURE_API_KEY": "a"})
    assert cfg.endpoint == "https://api.cognitive.microsofttranslator.com"
    assert cfg.region == "global"
    tr = get_translator(cfg)
    assert isinstance(tr, AzureTranslator)
    assert tr.region == "global"


def test_env_libre_default_url_and_timeout() -> None:
    cfg = provider_config_from_env({"TRANSLATION_SERVICE": "LIBRE", "TRANSLATION_TIMEOUT": "3"})
    assert cfg.endpoint == LIBRE_URL
    assert cfg.timeout == 3.0
    assert isinstance(get_translator(cfg), LibreTranslator)


def test_explicit_provider_overrides_env() -> None:
    cfg = provider_config_from_env({"TRANSLATION_SERVICE": "google"}, provider="deepl")
    assert isinstance(get_translator(cfg), DeepLTranslator)


def test_unknown_provider_is_configuration_error() -> None:
    with pytest.raises(UnsupportedConfigurationError, match="Unsupported translation service: bing"):
        provider_config_from_env({"TRANSLATION_SERVICE": "bing"})
    with pytest.raises(UnsupportedConfigurationError):
        get_translator(ProviderConfig(provider="bing"))  # type: ignore[arg-type]


def test_string_provider_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("DEEPL_API_KEY", "dk")
    tr = get_translator("deepl")
    assert isinstance(tr, DeepLTranslator)
    assert tr.api_key == "dk"
