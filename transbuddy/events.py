from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

E = TypeVar("E", bound=Enum)
Listener = Callable[..., None]

_log = logging.getLogger(__name__)


class EventEmitter(Generic[E]):
    """
    Listener registry keyed by an Enum of event kinds.

    Listeners run on the emitting thread. A failing listener is logged and
    does not stop the remaining listeners.
    """

    def __init__(self) -> None:
        self._listeners: dict[E, list[Listener]] = {}
        self._lock = threading.Lock()

    def on(self, event: E, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.setdefault(event, []).append(listener)
        return lambda: self.off(event, listener)

    def off(self, event: E, listener: Listener) -> None:
        with self._lock:
            listeners = self._listeners.get(event, [])
            if listener in listeners:
                listeners.remove(listener)

    def listener_count(self, event: E) -> int:
        with self._lock:
            return len(self._listeners.get(event, []))

    def emit(self, event: E, *args: Any) -> None:
        with self._lock:
            listeners = list(self._listeners.get(event, []))
        for listener in listeners:
            try:
                listener(*args)
            except Exception:
                _log.exception("listener_failed", extra={"event": event.value})
