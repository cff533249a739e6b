from __future__ import annotations

import threading
import time
import traceback

from dotenv import load_dotenv

from transbuddy.app.config import resolve_args, save_api_key
from transbuddy.app.diagnostics import hint_for_exception, summarize_exception
from transbuddy.app.logging_setup import setup_app_logger
from transbuddy.app.services import build_live_services
from transbuddy.audio.mic import SoundDeviceMicSource
from transbuddy.live.session import SessionEvent
from transbuddy.speech.synthesis import SpeechSynthesizer, SynthesisEvent


def _print_voices(language: str) -> int:
    synth = SpeechSynthesizer()
    voices = synth.voices_for_language(language)
    if not voices:
        print(f"No voices found for {language}.")
        return 1
    for v in voices:
        print(f"{v.get('ShortName')}\t{v.get('Locale')}\t{v.get('Gender', '')}")
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = resolve_args(argv)
    logger, _log_dir, log_path = setup_app_logger()
    logger.info("app_start", extra={"config_path": str(getattr(args, "config", "")), "argv": argv or []})

    if args.list_devices:
        print(SoundDeviceMicSource.list_devices())
        return 0
    if args.list_voices:
        return _print_voices(str(args.target_lang))
    if args.remember_key:
        if save_api_key(str(args.api_key), config_path=args.config):
            print("API key saved.")
        else:
            print("Nothing saved: --api-key is empty.")

    try:
        services = build_live_services(args, logger=logger)
    except Exception as e:
        logger.exception("services_build_failed")
        summary = summarize_exception(traceback.format_exc())
        print(f"Startup failed: {summary}")
        print(hint_for_exception(summary))
        return 2

    session = services.session
    stopped = threading.Event()
    shown = {"original": "", "translation": ""}

    def _on_original(text: str, has_interim: bool) -> None:
        if args.print_console and not has_interim and text != shown["original"]:
            shown["original"] = text
            print(f"[{args.source_lang}] {text}")

    def _on_translation(text: str, is_fallback: bool) -> None:
        if args.print_console and text != shown["translation"]:
            shown["translation"] = text
            tag = " (fallback)" if is_fallback else ""
            print(f"[{args.target_lang}]{tag} {text}")

    def _on_error(message: str) -> None:
        summary = summarize_exception(message)
        print(f"Error: {summary}")
        print(f"  hint: {hint_for_exception(summary)}")

    session.events.on(SessionEvent.ORIGINAL, _on_original)
    session.events.on(SessionEvent.TRANSLATION, _on_translation)
    session.events.on(SessionEvent.STATUS, lambda message: print(f"-- {message}"))
    session.events.on(SessionEvent.ERROR, _on_error)
    session.events.on(
        SessionEvent.DETECTED_LANGUAGE,
        lambda code, name: print(f"-- Detected language: {name}"),
    )
    session.events.on(SessionEvent.STOPPED, stopped.set)
    services.synthesizer.events.on(SynthesisEvent.ERROR, lambda message: print(f"Speech output error: {message}"))

    print(f"Listening ({args.source_lang} -> {args.target_lang}). Press Ctrl+C to stop.")
    print(f"Logs: {log_path}")
    session.start_recording()
    try:
        while not stopped.wait(timeout=0.2):
            pass
    except KeyboardInterrupt:
        logger.info("app_keyboard_interrupt")
        session.stop_recording()
    finally:
        session.dispatcher.wait_idle(timeout=float(args.request_timeout) + 1.0)
        session.close()

    # let the last spoken translation finish
    deadline = time.monotonic() + 30.0
    while services.synthesizer.speaking and time.monotonic() < deadline:
        time.sleep(0.2)
    logger.info("app_stop", extra={"chars": len(session.transcript.final_text)})
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
