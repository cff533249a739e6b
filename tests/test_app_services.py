from __future__ import annotations

from argparse import Namespace

from transbuddy.app import services as app_services
from transbuddy.nlp.translator.deepl import DeepLTranslator
from transbuddy.nlp.translator.remote import ApiTranslator


def _args(**overrides) -> Namespace:
    values = dict(
        chunk_sec=0.5,
        sr=16000,
        channels=1,
        device=None,
        rms_th=180.0,
        silence_chunks=2,
        interim_every_chunks=2,
        min_utter_sec=0.6,
        max_utter_sec=8.0,
        silence_timeout_sec=6.0,
        debug=False,
        model="base",
        source_lang="auto",
        target_lang="es-ES",
        translate_via="server",
        server_url="http://localhost:3000/api",
        provider="google",
        api_key="",
        request_timeout=15.0,
        debounce_ms=300,
        auto_speak=True,
        speech_rate=1.0,
        speech_pitch=1.0,
        speech_volume=1.0,
    )
    values.update(overrides)
    return Namespace(**values)


class _FakeTranscriber:
    captured: dict[str, object] = {}

    def __init__(self, *, model_size: str):
        _FakeTranscriber.captured["model_size"] = model_size


def test_build_translator_server_mode() -> None:
    tr = app_services.build_translator(_args(server_url="http://example.test/api/", request_timeout=3.0))
    assert isinstance(tr, ApiTranslator)
    assert tr.base_url == "http://example.test/api"
    assert tr.timeout == 3.0


def test_build_translator_direct_mode_uses_cli_key(monkeypatch) -> None:
    monkeypatch.delenv("DEEPL_API_KEY", raising=False)
    tr = app_services.build_translator(_args(translate_via="direct", provider="deepl", api_key="dk"))
    assert isinstance(tr, DeepLTranslator)
    assert tr.api_key == "dk"


def test_build_live_services_wires_session(monkeypatch) -> None:
    monkeypatch.setattr(app_services, "FasterWhisperPCM16Transcriber", _FakeTranscriber)
    services = app_services.build_live_services(_args(debounce_ms=450, source_lang="en-US"))

    assert _FakeTranscriber.captured["model_size"] == "base"
    assert services.translation.provider == "api"
    assert services.session.recognizer is services.recognizer
    assert services.session.synthesizer is services.synthesizer
    assert services.session.source_lang == "en-US"
    assert services.session.target_lang == "es-ES"
    assert services.session.dispatcher.debounce_sec == 0.45
