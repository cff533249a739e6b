from __future__ import annotations

import threading
import time

import numpy as np

from transbuddy.app.state import RecordingState
from transbuddy.audio.vad import EnergyVAD
from transbuddy.contracts import ASRSegment, AudioChunk
from transbuddy.events import EventEmitter
from transbuddy.live.session import SessionEvent, TranslationSession
from transbuddy.nlp.translator.errors import ProviderError
from transbuddy.speech.recognition import RecognizerEvent, SpeechRecognizer


class _Timer:
    def __init__(self, fn) -> None:
        self.fn = fn
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    def __init__(self) -> None:
        self.timers: list[_Timer] = []

    def call_later(self, delay, fn):
        t = _Timer(fn)
        self.timers.append(t)
        return t

    def fire_all(self) -> None:
        timers, self.timers = self.timers, []
        for t in timers:
            if not t.cancelled:
                t.fn()


class FakeRecognizer:
    def __init__(self) -> None:
        self.events: EventEmitter[RecognizerEvent] = EventEmitter()
        self.started_with: list[str] = []
        self.stopped = 0

    def start(self, language) -> None:
        self.started_with.append(language)

    def stop(self) -> None:
        self.stopped += 1


class FakeSynth:
    def __init__(self) -> None:
        self.log: list[tuple] = []

    def cancel(self) -> None:
        self.log.append(("cancel",))

    def speak(self, text, language, options=None) -> None:
        self.log.append(("speak", text, language))

    @property
    def spoken(self) -> list[str]:
        return [entry[1] for entry in self.log if entry[0] == "speak"]


class FakeTranslate:
    def __init__(self, table=None, fail: Exception | None = None) -> None:
        self.table = table or {}
        self.fail = fail
        self.calls: list[tuple] = []

    def __call__(self, text, source, target) -> str:
        self.calls.append((text, source, target))
        if self.fail is not None:
            raise self.fail
        return self.table.get(text, f"<{text}>")


def _session(translate, *, source="en-US", target="fr-FR", auto_speak=True):
    scheduler = ManualScheduler()
    recognizer = FakeRecognizer()
    synth = FakeSynth()
    session = TranslationSession(
        translate,
        recognizer=recognizer,
        synthesizer=synth,
        source_lang=source,
        target_lang=target,
        auto_speak=auto_speak,
        scheduler=scheduler,
        spawn=lambda fn: fn(),
    )
    seen: dict[SessionEvent, list] = {ev: [] for ev in SessionEvent}
    for ev in SessionEvent:
        session.events.on(ev, lambda *args, _ev=ev: seen[_ev].append(args))
    return session, scheduler, recognizer, synth, seen


def test_start_recording_resets_and_starts_recognizer() -> None:
    session, _sched, recognizer, synth, seen = _session(FakeTranslate())
    session.transcript.final_text = "leftover"

    session.start_recording()

    assert session.recording.state == RecordingState.LISTENING
    assert session.transcript.final_text == ""
    assert recognizer.started_with == ["en-US"]
    assert synth.log == [("cancel",)]
    assert seen[SessionEvent.STATUS] == [("Listening...",)]

    # second start while listening is a no-op
    session.start_recording()
    assert recognizer.started_with == ["en-US"]


def test_interim_translation_speaks_only_new_suffix() -> None:
    tr = FakeTranslate(
        {
            "Hello there": "Bonjour toi",
            "Hello there my": "Bonjour toi mon",
            "Hello there my good friend": "Bonjour toi mon bon ami",
        }
    )
    session, sched, recognizer, synth, seen = _session(tr)
    session.start_recording()
    synth.log.clear()

    recognizer.events.emit(RecognizerEvent.INTERIM, "Hello there")
    sched.fire_all()
    assert synth.spoken == ["Bonjour toi"]

    # grew by 4 characters: not enough to speak again
    recognizer.events.emit(RecognizerEvent.INTERIM, "Hello there my")
    sched.fire_all()
    assert synth.spoken == ["Bonjour toi"]

    recognizer.events.emit(RecognizerEvent.INTERIM, "Hello there my good friend")
    sched.fire_all()
    assert synth.spoken == ["Bonjour toi", "mon bon ami"]
    assert seen[SessionEvent.ORIGINAL][-1] == ("Hello there my good friend", True)
    assert seen[SessionEvent.TRANSLATION][-1] == ("Bonjour toi mon bon ami", False)


def test_single_character_interim_is_not_translated() -> None:
    tr = FakeTranslate()
    session, sched, recognizer, _synth, seen = _session(tr)
    session.start_recording()

    recognizer.events.emit(RecognizerEvent.INTERIM, "a")
    sched.fire_all()

    assert seen[SessionEvent.ORIGINAL] == [("a", True)]
    assert tr.calls == []


def test_final_result_is_spoken_in_full() -> None:
    tr = FakeTranslate({"Good morning": "Bonjour"})
    session, sched, recognizer, synth, seen = _session(tr)
    session.start_recording()
    synth.log.clear()

    recognizer.events.emit(RecognizerEvent.FINAL, "Good morning")
    sched.fire_all()

    assert tr.calls == [("Good morning", "en-US", "fr-FR")]
    assert synth.log == [("speak", "Bonjour", "fr-FR")]
    assert ("Translation complete",) in seen[SessionEvent.STATUS]
    assert session.transcript.translated_text == "Bonjour"


def test_stop_with_untranslated_final_text_submits_final() -> None:
    tr = FakeTranslate({"Good night": "Bonne nuit"})
    session, sched, _recognizer, _synth, seen = _session(tr)
    session.start_recording()
    session.transcript.append_final("Good night")

    session.stop_recording()

    assert ("Finalizing translation...",) in seen[SessionEvent.STATUS]
    assert seen[SessionEvent.STOPPED] == [()]
    assert session.recording.state == RecordingState.IDLE
    sched.fire_all()
    assert tr.calls == [("Good night", "en-US", "fr-FR")]
    assert seen[SessionEvent.TRANSLATION] == [("Bonne nuit", False)]


def test_stop_without_speech_reports_no_speech() -> None:
    tr = FakeTranslate()
    session, sched, recognizer, _synth, seen = _session(tr)
    session.start_recording()

    session.stop_recording()
    sched.fire_all()

    assert seen[SessionEvent.STATUS][-1] == ("No speech detected. Try again.",)
    assert recognizer.stopped == 1
    assert tr.calls == []

    # stopping again while idle does nothing
    session.stop_recording()
    assert recognizer.stopped == 1


def test_silence_stops_recording() -> None:
    session, _sched, recognizer, _synth, seen = _session(FakeTranslate())
    session.start_recording()

    recognizer.events.emit(RecognizerEvent.SILENCE)

    assert session.recording.state == RecordingState.IDLE
    assert seen[SessionEvent.STOPPED] == [()]


def test_final_failure_shows_error_and_speaks_fallback() -> None:
    tr = FakeTranslate(fail=ProviderError("quota exceeded"))
    session, sched, recognizer, synth, seen = _session(tr)
    session.start_recording()
    synth.log.clear()

    recognizer.events.emit(RecognizerEvent.FINAL, "Hello world")
    sched.fire_all()

    assert seen[SessionEvent.ERROR] == [("Translation error: quota exceeded",)]
    assert ("Translation failed",) in seen[SessionEvent.STATUS]
    assert seen[SessionEvent.TRANSLATION] == [("[en-US → fr-FR]: Hello world", True)]
    # fallback is spoken in place of the failed translation
    assert synth.log == [("speak", "[en-US → fr-FR]: Hello world", "fr-FR")]


def test_detected_language_only_reported_in_auto_mode() -> None:
    session, _sched, recognizer, _synth, seen = _session(FakeTranslate(), source="auto")
    recognizer.events.emit(RecognizerEvent.DETECTED_LANGUAGE, "es")
    assert seen[SessionEvent.DETECTED_LANGUAGE] == [("es", "Spanish")]

    fixed, _s, fixed_recognizer, _y, fixed_seen = _session(FakeTranslate(), source="en-US")
    fixed_recognizer.events.emit(RecognizerEvent.DETECTED_LANGUAGE, "es")
    assert fixed_seen[SessionEvent.DETECTED_LANGUAGE] == []


def test_recognizer_error_moves_to_error_state() -> None:
    session, _sched, recognizer, _synth, seen = _session(FakeTranslate())
    session.start_recording()

    recognizer.events.emit(RecognizerEvent.ERROR, "microphone unavailable")

    assert session.recording.state == RecordingState.ERROR
    assert session.recording.last_error == "microphone unavailable"
    assert seen[SessionEvent.ERROR] == [("Speech recognition error: microphone unavailable",)]
    assert seen[SessionEvent.STOPPED] == [()]


def test_swap_languages_swaps_text_without_translating() -> None:
    tr = FakeTranslate({"Good morning": "Bonjour"})
    session, sched, recognizer, _synth, seen = _session(tr)
    session.start_recording()
    recognizer.events.emit(RecognizerEvent.FINAL, "Good morning")
    sched.fire_all()
    calls_before = len(tr.calls)

    assert session.swap_languages() is True

    assert (session.source_lang, session.target_lang) == ("fr-FR", "en-US")
    assert session.transcript.final_text == "Bonjour"
    assert session.transcript.translated_text == "Good morning"
    assert seen[SessionEvent.ORIGINAL][-1] == ("Bonjour", False)
    assert seen[SessionEvent.TRANSLATION][-1] == ("Good morning", False)
    assert len(tr.calls) == calls_before


def test_swap_is_refused_in_auto_mode() -> None:
    session, _sched, _recognizer, _synth, _seen = _session(FakeTranslate(), source="auto")
    assert session.swap_languages() is False
    assert (session.source_lang, session.target_lang) == ("auto", "fr-FR")


def test_swap_with_empty_buffers_only_swaps_languages() -> None:
    session, _sched, _recognizer, _synth, seen = _session(FakeTranslate())
    assert session.swap_languages() is True
    assert (session.source_lang, session.target_lang) == ("fr-FR", "en-US")
    assert seen[SessionEvent.ORIGINAL] == []


def test_auto_speak_off_never_speaks() -> None:
    tr = FakeTranslate({"Good morning": "Bonjour"})
    session, sched, recognizer, synth, _seen = _session(tr, auto_speak=False)
    session.start_recording()
    recognizer.events.emit(RecognizerEvent.FINAL, "Good morning")
    sched.fire_all()
    assert synth.log == []

    session.speak_translation()
    assert synth.spoken == ["Bonjour"]


class LiveMic:
    """Yields loud 0.1 s chunks until stopped, like a user still talking."""

    def __init__(self) -> None:
        self.consumed_one = threading.Event()

    def chunks(self, stop_event):
        n = 1600
        loud = np.full(n, 3000, dtype="<i2").tobytes()
        i = 0
        while not stop_event.is_set():
            yield AudioChunk(pcm16=loud, sample_rate=16000, channels=1, start_time=i * 0.1, duration=0.1)
            i += 1
            self.consumed_one.set()
            time.sleep(0.01)


class HelloTranscriber:
    def __init__(self) -> None:
        self.finals = 0

    def transcribe_utterance(self, pcm16, sample_rate, channels, utter_t0, language=None, is_final=True):
        if is_final:
            self.finals += 1
        return [ASRSegment(text="Good night", t0=utter_t0, t1=utter_t0 + 1.0, is_final=is_final)]


def test_stop_mid_utterance_translates_flushed_final() -> None:
    mic = LiveMic()
    transcriber = HelloTranscriber()
    recognizer = SpeechRecognizer(
        mic=mic,
        transcriber=transcriber,
        vad=EnergyVAD(250.0),
        silence_chunks=50,
        interim_every_chunks=0,
        min_utter_sec=0.0,
    )
    tr = FakeTranslate({"Good night": "Bonne nuit"})
    sched = ManualScheduler()
    session = TranslationSession(
        tr,
        recognizer=recognizer,
        synthesizer=FakeSynth(),
        source_lang="en-US",
        target_lang="fr-FR",
        scheduler=sched,
        spawn=lambda fn: fn(),
    )
    seen: dict[SessionEvent, list] = {ev: [] for ev in SessionEvent}
    for ev in SessionEvent:
        session.events.on(ev, lambda *args, _ev=ev: seen[_ev].append(args))

    session.start_recording()
    assert mic.consumed_one.wait(timeout=5.0)
    session.stop_recording()

    statuses = [args[0] for args in seen[SessionEvent.STATUS]]
    assert "No speech detected. Try again." not in statuses
    assert statuses[-1] == "Finalizing translation..."
    assert transcriber.finals == 1
    assert session.transcript.final_text == "Good night"
    assert seen[SessionEvent.STOPPED] == [()]
    assert session.recording.state == RecordingState.IDLE

    sched.fire_all()

    # the flushed final went out once, not again from stop
    assert tr.calls == [("Good night", "en-US", "fr-FR")]
    assert seen[SessionEvent.TRANSLATION] == [("Bonne nuit", False)]
