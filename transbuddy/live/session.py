from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional

from transbuddy.app.logging_setup import log_event
from transbuddy.app.state import RecordingStateTracker
from transbuddy.contracts import TranslationOutcome, TranslationRequest
from transbuddy.events import EventEmitter
from transbuddy.live.dispatcher import DispatchEvent, Scheduler, TranslateFn, TranslationDispatcher
from transbuddy.live.transcript import TranscriptState
from transbuddy.nlp.languages import AUTO, language_name
from transbuddy.speech.recognition import RecognizerEvent
from transbuddy.speech.synthesis import SpeechOptions


class SessionEvent(str, Enum):
    ORIGINAL = "original"                    # (text, has_interim)
    TRANSLATION = "translation"              # (text, is_fallback)
    STATUS = "status"                        # (message)
    ERROR = "error"                          # (message)
    DETECTED_LANGUAGE = "detected_language"  # (code, display name)
    STOPPED = "stopped"                      # ()


class TranslationSession:
    """
    Controller for one translation page/console: owns the transcript, the
    language pair and the dispatcher, and wires recognizer events through to
    the display and speech output.
    """

    def __init__(
        self,
        translate: TranslateFn,
        *,
        recognizer: Any = None,
        synthesizer: Any = None,
        source_lang: str = AUTO,
        target_lang: str = "en-US",
        auto_speak: bool = True,
        speech_options: Optional[SpeechOptions] = None,
        debounce_sec: float = 0.3,
        scheduler: Optional[Scheduler] = None,
        spawn: Optional[Callable[[Callable[[], None]], Any]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.recognizer = recognizer
        self.synthesizer = synthesizer
        self.source_lang = source_lang
        self.target_lang = target_lang
        self.auto_speak = auto_speak
        self.speech_options = speech_options or SpeechOptions()
        self.logger = logger

        self.transcript = TranscriptState()
        self.recording = RecordingStateTracker()
        self.events: EventEmitter[SessionEvent] = EventEmitter()
        self._lock = threading.RLock()
        self._final_submitted = ""

        self.dispatcher = TranslationDispatcher(
            translate,
            languages=lambda: (self.source_lang, self.target_lang),
            debounce_sec=debounce_sec,
            scheduler=scheduler,
            spawn=spawn,
            logger=logger,
        )
        self.dispatcher.events.on(DispatchEvent.TRANSLATED, self._on_translated)
        self.dispatcher.events.on(DispatchEvent.FAILED, self._on_failed)

        self._detach: list[Callable[[], None]] = []
        if recognizer is not None:
            self._attach_recognizer(recognizer)

    def _attach_recognizer(self, recognizer: Any) -> None:
        ev = recognizer.events
        self._detach = [
            ev.on(RecognizerEvent.INTERIM, self.handle_interim),
            ev.on(RecognizerEvent.FINAL, self.handle_final),
            ev.on(RecognizerEvent.DETECTED_LANGUAGE, self.handle_detected_language),
            ev.on(RecognizerEvent.SILENCE, self.handle_silence),
            ev.on(RecognizerEvent.ERROR, self.handle_recognizer_error),
            ev.on(RecognizerEvent.END, self.handle_recognizer_end),
        ]

    def close(self) -> None:
        for detach in self._detach:
            detach()
        self._detach = []
        self.dispatcher.reset()

    # --- recording lifecycle ---

    def start_recording(self) -> None:
        with self._lock:
            if self.recording.is_recording:
                return
            if self.auto_speak and self.synthesizer is not None:
                self.synthesizer.cancel()
            self.transcript.reset()
            self._final_submitted = ""
            self.dispatcher.reset()
            self.recording.set_listening()
        log_event(self.logger, logging.INFO, "recording_start", source=self.source_lang, target=self.target_lang)
        self.events.emit(SessionEvent.STATUS, "Listening...")
        if self.recognizer is not None:
            self.recognizer.start(self.source_lang)

    def stop_recording(self) -> None:
        with self._lock:
            if not self.recording.is_recording:
                return
            self.recording.set_finalizing()
        # stop() joins the recognizer, whose last FINAL may still arrive here
        if self.recognizer is not None:
            self.recognizer.stop()

        with self._lock:
            final_text = self.transcript.final_text
            translated = self.transcript.translated_text
            resubmit = bool(final_text) and final_text != self._final_submitted
            if resubmit:
                self._final_submitted = final_text

        if final_text and not translated:
            self.events.emit(SessionEvent.STATUS, "Finalizing translation...")
            if resubmit:
                self.dispatcher.submit(final_text, is_interim=False)
        elif not final_text:
            self.events.emit(SessionEvent.STATUS, "No speech detected. Try again.")
        else:
            self.events.emit(SessionEvent.STATUS, "Translation complete")

        with self._lock:
            self.recording.set_idle()
        log_event(self.logger, logging.INFO, "recording_stop", chars=len(final_text))
        self.events.emit(SessionEvent.STOPPED)

    # --- recognizer events ---

    def handle_interim(self, text: str) -> None:
        with self._lock:
            self.transcript.interim_text = text or ""
            shown = self.transcript.with_interim()
            fragment = self.transcript.interim_text
        self.events.emit(SessionEvent.ORIGINAL, shown, True)
        if len(fragment) > 1:
            self.dispatcher.submit(shown, is_interim=True)

    def handle_final(self, text: str) -> None:
        with self._lock:
            full = self.transcript.append_final(text)
            self._final_submitted = full
        self.events.emit(SessionEvent.ORIGINAL, full, False)
        if full:
            self.dispatcher.submit(full, is_interim=False)

    def handle_detected_language(self, code: str) -> None:
        if self.source_lang == AUTO and code:
            self.events.emit(SessionEvent.DETECTED_LANGUAGE, code, language_name(code))

    def handle_silence(self) -> None:
        log_event(self.logger, logging.INFO, "silence_detected")
        self.stop_recording()

    def handle_recognizer_error(self, message: str) -> None:
        with self._lock:
            self.recording.set_error(str(message))
        self.events.emit(SessionEvent.ERROR, f"Speech recognition error: {message}")
        self.events.emit(SessionEvent.STOPPED)

    def handle_recognizer_end(self) -> None:
        # microphone stream ran out while we still expected speech
        if self.recording.is_recording:
            self.stop_recording()

    # --- dispatcher events ---

    def _on_translated(self, outcome: TranslationOutcome) -> None:
        req = outcome.request
        suffix = ""
        with self._lock:
            if not outcome.is_fallback:
                self.transcript.translated_text = outcome.text
                if req.is_interim and self.auto_speak:
                    suffix = self.transcript.new_suffix(outcome.text)
        self.events.emit(SessionEvent.TRANSLATION, outcome.text, outcome.is_fallback)

        if outcome.is_fallback:
            self._speak(outcome.text)
        elif not req.is_interim:
            self.events.emit(SessionEvent.STATUS, "Translation complete")
            self._speak(outcome.text)
        elif suffix:
            self._speak(suffix)

    def _on_failed(self, req: TranslationRequest, error: Exception) -> None:
        self.events.emit(SessionEvent.ERROR, f"Translation error: {error or 'Unknown error'}")
        self.events.emit(SessionEvent.STATUS, "Translation failed")

    def _speak(self, text: str) -> None:
        if not self.auto_speak or self.synthesizer is None or not text:
            return
        self.synthesizer.speak(text, self.target_lang, self.speech_options)

    # --- user actions ---

    def swap_languages(self) -> bool:
        with self._lock:
            if self.source_lang == AUTO:
                return False
            self.source_lang, self.target_lang = self.target_lang, self.source_lang
            t = self.transcript
            swapped = bool(t.final_text and t.translated_text)
            if swapped:
                t.final_text, t.translated_text = t.translated_text, t.final_text
            original, translated = t.final_text, t.translated_text
        if swapped:
            self.events.emit(SessionEvent.ORIGINAL, original, False)
            self.events.emit(SessionEvent.TRANSLATION, translated, False)
        return True

    def speak_original(self) -> None:
        if self.synthesizer is not None and self.transcript.final_text:
            self.synthesizer.speak(self.transcript.final_text, self.source_lang, self.speech_options)

    def speak_translation(self) -> None:
        if self.synthesizer is not None and self.transcript.translated_text:
            self.synthesizer.speak(self.transcript.translated_text, self.target_lang, self.speech_options)
