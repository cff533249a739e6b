from __future__ import annotations

import argparse
import copy
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from platformdirs import user_config_dir

from transbuddy.nlp.translator.factory import Provider, ProviderConfig, provider_config_from_env

DEFAULTS: dict[str, Any] = {
    "list_devices": False,
    "list_voices": False,
    "device": None,
    "sr": 16000,
    "channels": 1,
    "chunk_sec": 0.5,
    "rms_th": 250.0,
    "silence_chunks": 2,
    "interim_every_chunks": 2,
    "min_utter_sec": 0.6,
    "max_utter_sec": 8.0,
    "silence_timeout_sec": 6.0,
    "debug": False,
    "model": "tiny",
    "source_lang": "auto",
    "target_lang": "es-ES",
    "translate_via": "server",
    "server_url": "http://localhost:3000/api",
    "provider": "google",
    "api_key": "",
    "request_timeout": 15.0,
    "debounce_ms": 300,
    "auto_speak": True,
    "speech_rate": 1.0,
    "speech_pitch": 1.0,
    "speech_volume": 1.0,
    "print_console": True,
}
CONFIG_KEYS: tuple[str, ...] = tuple(DEFAULTS.keys())

# Keys the provider reads per service when translating directly (no server)
_PROVIDER_KEY_ENV = {
    "google": "GOOGLE_API_KEY",
    "azure": "AZURE_API_KEY",
    "deepl": "DEEPL_API_KEY",
    "libre": "LIBRE_API_KEY",
}


@dataclass(frozen=True)
class AppPaths:
    config_dir: Path
    config_path: Path


@dataclass(frozen=True)
class ServerConfig:
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    cors_origin: str = "*"
    host: str = "127.0.0.1"
    port: int = 3000


def default_asset_config_path() -> Path:
    return Path(__file__).resolve().parents[2] / "assets" / "config" / "default.json"


def app_paths() -> AppPaths:
    config_dir = Path(user_config_dir("TranslatorBuddy", "TranslatorBuddy"))
    return AppPaths(config_dir=config_dir, config_path=config_dir / "config.json")


def _load_json_dict(path: Path) -> dict[str, Any]:
    # Accept UTF-8 with or without BOM for Windows-edited config files.
    with path.open("r", encoding="utf-8-sig") as f:
        loaded = json.load(f)
    if not isinstance(loaded, dict):
        raise ValueError(f"config must be a JSON object: {path}")
    return loaded


def _write_json_dict(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
        f.write("\n")


def _known_only(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: payload[key] for key in CONFIG_KEYS if key in payload}


def load_default_config() -> dict[str, Any]:
    path = default_asset_config_path()
    out = copy.deepcopy(DEFAULTS)
    if not path.exists():
        return out
    loaded = _load_json_dict(path)
    for key in DEFAULTS.keys():
        if key in loaded:
            out[key] = loaded[key]
    return out


def load_user_config(config_path: str | None = None) -> tuple[dict[str, Any], Path]:
    defaults = load_default_config()
    if config_path:
        chosen = Path(config_path)
        if not chosen.exists():
            raise SystemExit(f"Config file not found: {chosen}")
    else:
        chosen = ensure_user_config_exists(defaults)
    merged = dict(defaults)
    merged.update(_known_only(_load_json_dict(chosen)))
    return merged, chosen


def save_user_config(values: dict[str, Any], config_path: str | None = None) -> Path:
    payload = _known_only(values)
    defaults = load_default_config()
    if config_path:
        path = Path(config_path)
        existing = _known_only(_load_json_dict(path)) if path.exists() else {}
    else:
        path = ensure_user_config_exists(defaults)
        existing = _known_only(_load_json_dict(path))
    merged = dict(defaults)
    merged.update(existing)
    merged.update(payload)
    _write_json_dict(path, _known_only(merged))
    return path


def save_api_key(key: str, config_path: str | None = None) -> bool:
    """Persist a provider API key between sessions. Blank keys are rejected."""
    key = (key or "").strip()
    if not key:
        return False
    save_user_config({"api_key": key}, config_path=config_path)
    return True


def ensure_user_config_exists(defaults: dict[str, Any] | None = None) -> Path:
    paths = app_paths()
    if paths.config_path.exists():
        return paths.config_path
    _write_json_dict(paths.config_path, defaults or load_default_config())
    return paths.config_path


def resolve_defaults(config_path: str | None = None) -> tuple[dict[str, Any], Path]:
    return load_user_config(config_path=config_path)


def parser_with_defaults(defaults: dict[str, Any]) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="transbuddy", description="Live voice translation")
    p.add_argument("--config", default=None, help="JSON config path (CLI flags override config)")
    p.add_argument("--list-devices", action="store_true", help="print audio devices and exit")
    p.add_argument("--list-voices", action="store_true", help="print speech voices for --target-lang and exit")
    p.add_argument("--device", type=int, default=defaults["device"], help="sounddevice input device id")
    p.add_argument("--sr", type=int, default=defaults["sr"], help="sample rate (Hz)")
    p.add_argument("--channels", type=int, default=defaults["channels"], help="input channels")
    p.add_argument("--chunk-sec", type=float, default=defaults["chunk_sec"], help="mic chunk size in seconds")
    p.add_argument("--rms-th", type=float, default=defaults["rms_th"], help="RMS threshold for speech VAD")
    p.add_argument(
        "--silence-chunks",
        type=int,
        default=defaults["silence_chunks"],
        help="finalize an utterance after this many non-speech chunks",
    )
    p.add_argument(
        "--interim-every-chunks",
        type=int,
        default=defaults["interim_every_chunks"],
        help="emit an interim transcript every N speech chunks (0 disables)",
    )
    p.add_argument(
        "--min-utter-sec",
        type=float,
        default=defaults["min_utter_sec"],
        help="ignore utterances shorter than this",
    )
    p.add_argument(
        "--max-utter-sec",
        type=float,
        default=defaults["max_utter_sec"],
        help="force finalize while continuously speaking (seconds)",
    )
    p.add_argument(
        "--silence-timeout-sec",
        type=float,
        default=defaults["silence_timeout_sec"],
        help="stop recording after this much quiet (0 disables)",
    )
    p.add_argument("--debug", action="store_true", help="print chunk RMS and speech decisions")
    p.add_argument("--model", default=defaults["model"], help="faster-whisper model size")
    p.add_argument("--source-lang", default=defaults["source_lang"], help="spoken language, e.g. en-US, or auto")
    p.add_argument("--target-lang", default=defaults["target_lang"], help="translation language, e.g. es-ES")
    p.add_argument(
        "--translate-via",
        default=defaults["translate_via"],
        choices=["server", "direct"],
        help="call the translation server or the provider directly",
    )
    p.add_argument("--server-url", default=defaults["server_url"], help="base URL of the translation API")
    p.add_argument(
        "--provider",
        default=defaults["provider"],
        choices=[p.value for p in Provider],
        help="provider used with --translate-via direct",
    )
    p.add_argument("--api-key", default=defaults["api_key"], help="provider API key for direct mode")
    p.add_argument("--remember-key", action="store_true", help="store --api-key in the user config")
    p.add_argument(
        "--request-timeout",
        type=float,
        default=defaults["request_timeout"],
        help="HTTP timeout for one translation call (seconds)",
    )
    p.add_argument(
        "--debounce-ms",
        type=int,
        default=defaults["debounce_ms"],
        help="delay before translating interim transcripts",
    )
    p.add_argument(
        "--auto-speak",
        action=argparse.BooleanOptionalAction,
        default=defaults["auto_speak"],
        help="speak translations as they arrive",
    )
    p.add_argument("--speech-rate", type=float, default=defaults["speech_rate"], help="speech rate multiplier")
    p.add_argument("--speech-pitch", type=float, default=defaults["speech_pitch"], help="speech pitch multiplier")
    p.add_argument("--speech-volume", type=float, default=defaults["speech_volume"], help="speech volume (0-1)")
    p.add_argument(
        "--print-console",
        action=argparse.BooleanOptionalAction,
        default=defaults["print_console"],
        help="print recognized and translated text to console",
    )
    return p


def resolve_args(argv: list[str] | None = None) -> argparse.Namespace:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=None)
    pre_args, _ = pre.parse_known_args(argv)
    defaults, _ = resolve_defaults(config_path=pre_args.config)
    parser = parser_with_defaults(defaults)
    args = parser.parse_args(argv)
    if defaults.get("list_devices"):
        args.list_devices = True
    if defaults.get("debug"):
        args.debug = True
    return args


def direct_provider_config(args: Any, env: Mapping[str, str] | None = None) -> ProviderConfig:
    """Provider settings for direct mode: CLI/config key wins over the environment."""
    env = dict(os.environ if env is None else env)
    provider = str(args.provider)
    if getattr(args, "api_key", ""):
        env[_PROVIDER_KEY_ENV.get(provider, "GOOGLE_API_KEY")] = str(args.api_key)
    env["TRANSLATION_TIMEOUT"] = str(args.request_timeout)
    return provider_config_from_env(env, provider=provider)


def load_server_config(env: Mapping[str, str] | None = None) -> ServerConfig:
    env = os.environ if env is None else env
    return ServerConfig(
        provider=provider_config_from_env(env),
        cors_origin=env.get("CORS_ORIGIN") or "*",
        host=env.get("HOST") or "127.0.0.1",
        port=int(env.get("PORT") or 3000),
    )
