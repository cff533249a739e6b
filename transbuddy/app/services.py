from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from transbuddy.app.config import direct_provider_config
from transbuddy.asr.faster_whisper_pcm16 import FasterWhisperPCM16Transcriber
from transbuddy.audio.mic import SoundDeviceMicSource
from transbuddy.audio.vad import EnergyVAD
from transbuddy.live.session import TranslationSession
from transbuddy.nlp.translator.base import Translator
from transbuddy.nlp.translator.factory import get_translator
from transbuddy.nlp.translator.remote import ApiTranslator
from transbuddy.nlp.translator.service import TranslationService
from transbuddy.speech.recognition import SpeechRecognizer
from transbuddy.speech.synthesis import SpeechOptions, SpeechSynthesizer


@dataclass(frozen=True)
class LiveServices:
    recognizer: SpeechRecognizer
    synthesizer: SpeechSynthesizer
    translation: TranslationService
    session: TranslationSession


def build_translator(args: Any) -> Translator:
    if str(args.translate_via) == "server":
        return ApiTranslator(str(args.server_url), timeout=float(args.request_timeout))
    return get_translator(direct_provider_config(args))


def build_live_services(args: Any, logger: Optional[logging.Logger] = None) -> LiveServices:
    mic = SoundDeviceMicSource(
        chunk_seconds=float(args.chunk_sec),
        sample_rate=int(args.sr),
        channels=int(args.channels),
        device=args.device,
    )
    recognizer = SpeechRecognizer(
        mic=mic,
        transcriber=FasterWhisperPCM16Transcriber(model_size=str(args.model)),
        vad=EnergyVAD(rms_threshold=float(args.rms_th)),
        silence_chunks=int(args.silence_chunks),
        interim_every_chunks=int(args.interim_every_chunks),
        min_utter_sec=float(args.min_utter_sec),
        max_utter_sec=args.max_utter_sec,
        silence_timeout_sec=args.silence_timeout_sec,
        logger=logger,
        debug=bool(args.debug),
    )
    synthesizer = SpeechSynthesizer(logger=logger)
    translation = TranslationService(build_translator(args), logger=logger)
    session = TranslationSession(
        translation.translate,
        recognizer=recognizer,
        synthesizer=synthesizer,
        source_lang=str(args.source_lang),
        target_lang=str(args.target_lang),
        auto_speak=bool(args.auto_speak),
        speech_options=SpeechOptions(
            rate=float(args.speech_rate),
            pitch=float(args.speech_pitch),
            volume=float(args.speech_volume),
        ),
        debounce_sec=max(0, int(args.debounce_ms)) / 1000.0,
        logger=logger,
    )
    return LiveServices(
        recognizer=recognizer,
        synthesizer=synthesizer,
        translation=translation,
        session=session,
    )
