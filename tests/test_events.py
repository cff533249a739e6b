from __future__ import annotations

from enum import Enum

from transbuddy.events import EventEmitter


class _Ev(str, Enum):
    PING = "ping"
    PONG = "pong"


def test_emit_calls_listeners_in_order_with_args() -> None:
    em: EventEmitter[_Ev] = EventEmitter()
    seen = []
    em.on(_Ev.PING, lambda a, b: seen.append(("first", a, b)))
    em.on(_Ev.PING, lambda a, b: seen.append(("second", a, b)))
    em.on(_Ev.PONG, lambda: seen.append(("pong",)))

    em.emit(_Ev.PING, 1, "x")

    assert seen == [("first", 1, "x"), ("second", 1, "x")]


def test_detach_removes_listener() -> None:
    em: EventEmitter[_Ev] = EventEmitter()
    seen = []
    detach = em.on(_Ev.PING, seen.append)
    assert em.listener_count(_Ev.PING) == 1

    detach()
    em.emit(_Ev.PING, 1)

    assert seen == []
    assert em.listener_count(_Ev.PING) == 0
    # detaching twice is harmless
    detach()


def test_failing_listener_does_not_block_others() -> None:
    em: EventEmitter[_Ev] = EventEmitter()
    seen = []

    def _boom(_value) -> None:
        raise RuntimeError("listener bug")

    em.on(_Ev.PING, _boom)
    em.on(_Ev.PING, seen.append)

    em.emit(_Ev.PING, 42)

    assert seen == [42]


def test_emit_without_listeners_is_noop() -> None:
    EventEmitter().emit(_Ev.PONG)
