from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Iterable, Optional

from transbuddy.app.logging_setup import log_event
from transbuddy.audio.vad import EnergyVAD, pcm16_rms
from transbuddy.contracts import AudioChunk
from transbuddy.events import EventEmitter
from transbuddy.nlp.languages import normalize_source


class RecognizerEvent(str, Enum):
    INTERIM = "interim"                      # (text)
    FINAL = "final"                          # (text)
    DETECTED_LANGUAGE = "detected_language"  # (code)
    SILENCE = "silence"                      # ()
    ERROR = "error"                          # (message)
    END = "end"                              # ()


class _Utterance:
    def __init__(self, chunk: AudioChunk) -> None:
        self.t0 = float(chunk.start_time)
        self.sample_rate = int(chunk.sample_rate)
        self.channels = int(chunk.channels)
        self.parts: list[bytes] = []
        self.nbytes = 0
        self.speech_chunks = 0
        self.trailing_silence = 0

    def add(self, pcm16: bytes) -> None:
        self.parts.append(pcm16)
        self.nbytes += len(pcm16)

    def pcm16(self) -> bytes:
        return b"".join(self.parts)

    @property
    def seconds(self) -> float:
        bytes_per_second = self.sample_rate * self.channels * 2
        return self.nbytes / float(bytes_per_second) if bytes_per_second > 0 else 0.0


class SpeechRecognizer:
    """
    Continuous speech recognition over a chunk source.

    Speech chunks (energy VAD) accumulate into an utterance. Every
    `interim_every_chunks` speech chunks the partial utterance is transcribed
    and emitted as INTERIM; after `silence_chunks` quiet chunks (or
    `max_utter_sec` of speech) it is transcribed once more and emitted as
    FINAL. SILENCE fires once after `silence_timeout_sec` of quiet.
    """

    def __init__(
        self,
        *,
        mic: Any,
        transcriber: Any,
        vad: Optional[EnergyVAD] = None,
        silence_chunks: int = 2,
        interim_every_chunks: int = 2,
        min_utter_sec: float = 0.6,
        max_utter_sec: float | None = None,
        silence_timeout_sec: float | None = None,
        logger: Optional[logging.Logger] = None,
        debug: bool = False,
    ) -> None:
        if silence_chunks <= 0:
            raise ValueError("silence_chunks must be > 0")
        if min_utter_sec < 0:
            raise ValueError("min_utter_sec must be >= 0")
        if max_utter_sec is not None and max_utter_sec <= 0:
            raise ValueError("max_utter_sec must be > 0 when set")

        self.mic = mic
        self.transcriber = transcriber
        self.vad = vad or EnergyVAD()
        self.silence_chunks = int(silence_chunks)
        self.interim_every_chunks = max(0, int(interim_every_chunks))
        self.min_utter_sec = float(min_utter_sec)
        self.max_utter_sec = float(max_utter_sec) if max_utter_sec else None
        self.silence_timeout_sec = float(silence_timeout_sec) if silence_timeout_sec else None
        self.logger = logger
        self.debug = debug
        self.events: EventEmitter[RecognizerEvent] = EventEmitter()

        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._language: Optional[str] = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._stop_event is not None and not self._stop_event.is_set()

    def start(self, language: str = "auto") -> None:
        with self._lock:
            if self._stop_event is not None and not self._stop_event.is_set():
                return
            self._language = normalize_source(language)
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._thread = threading.Thread(
                target=lambda: self._worker(stop_event),
                name="transbuddy-recognizer",
                daemon=True,
            )
            self._thread.start()
        log_event(self.logger, logging.INFO, "recognizer_start", language=self._language or "auto")

    def stop(self, timeout: float = 2.0) -> None:
        with self._lock:
            if self._stop_event is None or self._stop_event.is_set():
                return
            self._stop_event.set()
            thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        log_event(self.logger, logging.INFO, "recognizer_stop")

    def _worker(self, stop_event: threading.Event) -> None:
        try:
            self.listen(self.mic.chunks(stop_event), stop_event)
        except Exception as e:
            if self.logger is not None:
                self.logger.exception("recognizer_crash")
            stop_event.set()
            self.events.emit(RecognizerEvent.ERROR, str(e) or type(e).__name__)
        finally:
            stop_event.set()
            self.events.emit(RecognizerEvent.END)

    def listen(self, chunk_iter: Iterable[AudioChunk], stop_event: Optional[threading.Event] = None) -> None:
        """
        Process chunks on the calling thread until exhausted or stopped.
        An open utterance is finalized either way.
        """
        utter: Optional[_Utterance] = None
        quiet_sec = 0.0
        silence_sent = False

        for i, chunk in enumerate(chunk_iter, start=1):
            if stop_event is not None and stop_event.is_set():
                break
            is_speech = self.vad.is_speech(chunk.pcm16)

            if self.debug:
                print(
                    f"[debug] chunk#{i} {chunk.start_time:.2f}s "
                    f"rms={pcm16_rms(chunk.pcm16):.1f} speech={is_speech}"
                )

            if is_speech:
                quiet_sec = 0.0
                silence_sent = False
                if utter is None:
                    utter = _Utterance(chunk)
                utter.add(chunk.pcm16)
                utter.speech_chunks += 1
                utter.trailing_silence = 0
                if self.max_utter_sec is not None and utter.seconds >= self.max_utter_sec:
                    self._finalize(utter, reason="max_utter_sec")
                    utter = None
                elif self.interim_every_chunks and utter.speech_chunks % self.interim_every_chunks == 0:
                    self._interim(utter)
                continue

            quiet_sec += float(chunk.duration)
            if utter is not None:
                utter.trailing_silence += 1
                if utter.trailing_silence >= self.silence_chunks:
                    self._finalize(utter, reason="silence")
                    utter = None

            if (
                utter is None
                and self.silence_timeout_sec is not None
                and not silence_sent
                and quiet_sec >= self.silence_timeout_sec
            ):
                silence_sent = True
                log_event(self.logger, logging.INFO, "recognizer_silence", quiet_sec=round(quiet_sec, 2))
                self.events.emit(RecognizerEvent.SILENCE)

        if utter is not None:
            self._finalize(utter, reason="stream_end")

    def _transcribe(self, utter: _Utterance, *, is_final: bool) -> tuple[str, Optional[str]]:
        segments = self.transcriber.transcribe_utterance(
            utter.pcm16(),
            sample_rate=utter.sample_rate,
            channels=utter.channels,
            utter_t0=utter.t0,
            language=self._language,
            is_final=is_final,
        )
        text = " ".join((seg.text or "").strip() for seg in segments if (seg.text or "").strip())
        language = next((seg.language for seg in segments if getattr(seg, "language", None)), None)
        return text, language

    def _interim(self, utter: _Utterance) -> None:
        if utter.seconds < self.min_utter_sec:
            return
        text, _ = self._transcribe(utter, is_final=False)
        if text:
            self.events.emit(RecognizerEvent.INTERIM, text)

    def _finalize(self, utter: _Utterance, *, reason: str) -> None:
        if utter.seconds < self.min_utter_sec:
            if self.debug:
                print(f"[debug] finalize skipped short utterance reason={reason} dur={utter.seconds:.2f}s")
            return
        text, language = self._transcribe(utter, is_final=True)
        log_event(
            self.logger,
            logging.INFO,
            "utterance_final",
            reason=reason,
            t0=utter.t0,
            seconds=round(utter.seconds, 2),
            chars=len(text),
        )
        if not text:
            return
        self.events.emit(RecognizerEvent.FINAL, text)
        if language:
            self.events.emit(RecognizerEvent.DETECTED_LANGUAGE, language)
