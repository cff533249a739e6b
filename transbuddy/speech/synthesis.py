from __future__ import annotations

import asyncio
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from transbuddy.app.logging_setup import log_event
from transbuddy.events import EventEmitter
from transbuddy.nlp.languages import AUTO, main_code

DEFAULT_VOICE = "en-US-AriaNeural"


class SynthesisEvent(str, Enum):
    START = "start"  # (text)
    END = "end"      # (text)
    ERROR = "error"  # (message)


@dataclass(frozen=True)
class SpeechOptions:
    rate: float = 1.0
    pitch: float = 1.0
    volume: float = 1.0


def prosody(options: SpeechOptions) -> dict[str, str]:
    """Map rate/pitch/volume multipliers onto edge-tts offsets ('+25%', '-10Hz')."""
    rate = int(round((float(options.rate or 1.0) - 1.0) * 100))
    volume = int(round((min(max(float(options.volume or 1.0), 0.0), 1.0) - 1.0) * 100))
    pitch = int(round((float(options.pitch or 1.0) - 1.0) * 50))
    return {"rate": f"{rate:+d}%", "volume": f"{volume:+d}%", "pitch": f"{pitch:+d}Hz"}


class EdgeTTSBackend:
    def list_voices(self) -> list[dict[str, Any]]:
        import edge_tts

        return asyncio.run(edge_tts.list_voices())

    def synthesize(self, text: str, voice: str, path: str, **prosody_kwargs: str) -> None:
        import edge_tts

        communicate = edge_tts.Communicate(text, voice, **prosody_kwargs)
        asyncio.run(communicate.save(path))


class SoundDevicePlayer:
    def play(self, path: str) -> None:
        import sounddevice as sd
        import soundfile as sf

        data, sr = sf.read(path)
        sd.play(data, sr)
        sd.wait()

    def stop(self) -> None:
        import sounddevice as sd

        sd.stop()


def _spawn_thread(fn: Callable[[], None]) -> None:
    threading.Thread(target=fn, name="transbuddy-tts", daemon=True).start()


class SpeechSynthesizer:
    def __init__(
        self,
        *,
        backend: Any = None,
        player: Any = None,
        spawn: Optional[Callable[[Callable[[], None]], Any]] = None,
        default_voice: str = DEFAULT_VOICE,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.backend = backend or EdgeTTSBackend()
        self.player = player or SoundDevicePlayer()
        self.spawn = spawn or _spawn_thread
        self.default_voice = default_voice
        self.logger = logger
        self.events: EventEmitter[SynthesisEvent] = EventEmitter()

        self._lock = threading.Lock()
        self._generation = 0
        self._speaking = False
        self._voices: Optional[list[dict[str, Any]]] = None

    @property
    def speaking(self) -> bool:
        with self._lock:
            return self._speaking

    def load_voices(self) -> list[dict[str, Any]]:
        if self._voices is None:
            try:
                self._voices = list(self.backend.list_voices())
            except Exception:
                if self.logger is not None:
                    self.logger.exception("tts_voice_list_failed")
                return []
        return self._voices

    def voices_for_language(self, language: str) -> list[dict[str, Any]]:
        if not language or language == AUTO:
            return []
        code = main_code(language)
        return [
            v
            for v in self.load_voices()
            if str(v.get("Locale", "")).startswith(code) or str(v.get("Locale", "")).startswith(language)
        ]

    def voice_for(self, language: str) -> str:
        voices = self.voices_for_language(language)
        if voices:
            return str(voices[0].get("ShortName") or self.default_voice)
        return self.default_voice

    def speak(self, text: str, language: str, options: Optional[SpeechOptions] = None) -> None:
        if not text:
            return
        self.cancel()
        with self._lock:
            generation = self._generation
        voice = self.voice_for(language)
        opts = prosody(options or SpeechOptions())
        self.spawn(lambda: self._speak(generation, text, voice, opts))

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            was_speaking = self._speaking
            self._speaking = False
        if was_speaking:
            self.player.stop()

    def _current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _speak(self, generation: int, text: str, voice: str, opts: dict[str, str]) -> None:
        fd, path = tempfile.mkstemp(suffix=".mp3", prefix="transbuddy_tts_")
        os.close(fd)
        try:
            self.backend.synthesize(text, voice, path, **opts)
            with self._lock:
                if generation != self._generation:
                    return
                self._speaking = True
            self.events.emit(SynthesisEvent.START, text)
            log_event(self.logger, logging.INFO, "tts_start", voice=voice, chars=len(text))
            self.player.play(path)
            if self._current(generation):
                self.events.emit(SynthesisEvent.END, text)
        except Exception as e:
            if self.logger is not None:
                self.logger.exception("tts_failed", extra={"voice": voice})
            self.events.emit(SynthesisEvent.ERROR, str(e) or type(e).__name__)
        finally:
            with self._lock:
                if generation == self._generation:
                    self._speaking = False
            try:
                os.remove(path)
            except OSError:
                pass
