from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from transbuddy.app.logging_setup import log_event
from transbuddy.contracts import TranslationOutcome, TranslationRequest
from transbuddy.events import EventEmitter
from transbuddy.nlp.translator.mock import mock_translate

TranslateFn = Callable[[str, Optional[str], str], str]


class DispatchEvent(str, Enum):
    TRANSLATED = "translated"  # (TranslationOutcome)
    FAILED = "failed"          # (TranslationRequest, Exception), final requests only


class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay: float, fn: Callable[[], None]) -> Cancellable:
        ...


class ThreadTimerScheduler:
    def call_later(self, delay: float, fn: Callable[[], None]) -> Cancellable:
        timer = threading.Timer(max(0.0, delay), fn)
        timer.daemon = True
        timer.start()
        return timer


def _spawn_thread(fn: Callable[[], None]) -> None:
    threading.Thread(target=fn, name="transbuddy-translate", daemon=True).start()


class TranslationDispatcher:
    """
    Debounced, single-flight translation dispatch.

    submit() restarts a debounce timer (0 for final text). When the timer
    fires the request is sent unless a call is already in flight, in which
    case it takes the single pending slot (last write wins). When a call
    completes the pending request, if any, goes out immediately.

    Results of calls started before reset() are discarded as stale.
    """

    def __init__(
        self,
        translate: TranslateFn,
        *,
        languages: Callable[[], tuple[str, str]],
        debounce_sec: float = 0.3,
        min_chars: int = 2,
        fallback: Callable[[str, str, str], str] = mock_translate,
        scheduler: Optional[Scheduler] = None,
        spawn: Optional[Callable[[Callable[[], None]], Any]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.translate = translate
        self.languages = languages
        self.debounce_sec = max(0.0, float(debounce_sec))
        self.min_chars = int(min_chars)
        self.fallback = fallback
        self.scheduler = scheduler or ThreadTimerScheduler()
        self.spawn = spawn or _spawn_thread
        self.logger = logger
        self.events: EventEmitter[DispatchEvent] = EventEmitter()

        self._cond = threading.Condition(threading.RLock())
        self._timer: Optional[Cancellable] = None
        self._timer_token = 0
        self._in_flight = False
        self._pending: Optional[TranslationRequest] = None
        self._epoch = 0

    @property
    def in_flight(self) -> bool:
        with self._cond:
            return self._in_flight

    @property
    def pending(self) -> Optional[TranslationRequest]:
        with self._cond:
            return self._pending

    def submit(self, text: str, is_interim: bool = True) -> bool:
        text = text or ""
        if len(text) < self.min_chars:
            return False
        source, target = self.languages()
        req = TranslationRequest(text=text, source_lang=source, target_lang=target, is_interim=is_interim)
        delay = self.debounce_sec if is_interim else 0.0

        with self._cond:
            self._cancel_timer_locked()
            self._timer_token += 1
            token = self._timer_token
            self._timer = self.scheduler.call_later(delay, lambda: self._on_timer(token, req))
        return True

    def reset(self) -> None:
        with self._cond:
            self._cancel_timer_locked()
            self._timer_token += 1
            self._pending = None
            self._epoch += 1
            self._cond.notify_all()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(
                lambda: not self._in_flight and self._timer is None and self._pending is None,
                timeout=timeout,
            )

    def _cancel_timer_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, token: int, req: TranslationRequest) -> None:
        with self._cond:
            if token != self._timer_token:
                return
            self._timer = None
            if self._in_flight:
                replaced = self._pending is not None
                self._pending = req
                log_event(
                    self.logger,
                    logging.INFO,
                    "dispatch_queued",
                    interim=req.is_interim,
                    chars=len(req.text),
                    replaced=replaced,
                )
                return
            self._in_flight = True
            epoch = self._epoch
        self.spawn(lambda: self._run(req, epoch))

    def _run(self, req: TranslationRequest, epoch: int) -> None:
        try:
            text: Optional[str] = None
            error: Optional[Exception] = None
            try:
                text = self.translate(req.text, req.source_lang, req.target_lang)
            except Exception as e:
                error = e

            with self._cond:
                stale = epoch != self._epoch
            if stale:
                log_event(self.logger, logging.INFO, "dispatch_stale_dropped", interim=req.is_interim)
            elif error is None:
                self.events.emit(DispatchEvent.TRANSLATED, TranslationOutcome(request=req, text=text or ""))
            else:
                self._handle_failure(req, error)
        finally:
            self._finish()

    def _handle_failure(self, req: TranslationRequest, error: Exception) -> None:
        if req.is_interim:
            # live dictation keeps going; only the log sees it
            log_event(
                self.logger,
                logging.WARNING,
                "translate_interim_failed",
                error_type=type(error).__name__,
                error=str(error),
            )
            return

        if self.logger is not None:
            self.logger.error(
                "translate_final_failed",
                exc_info=(type(error), error, error.__traceback__),
                extra={"chars": len(req.text)},
            )
        self.events.emit(DispatchEvent.FAILED, req, error)
        mock = self.fallback(req.text, req.source_lang or "auto", req.target_lang)
        self.events.emit(DispatchEvent.TRANSLATED, TranslationOutcome(request=req, text=mock, is_fallback=True))

    def _finish(self) -> None:
        with self._cond:
            nxt = self._pending
            self._pending = None
            if nxt is None:
                self._in_flight = False
                self._cond.notify_all()
                return
            # hand the slot straight to the queued request; it is not debounced again
            epoch = self._epoch
        log_event(self.logger, logging.INFO, "dispatch_pending", interim=nxt.is_interim, chars=len(nxt.text))
        self.spawn(lambda: self._run(nxt, epoch))
