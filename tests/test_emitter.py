"""Tests for the listener registry."""

import pytest

from hookrelay.emitter import EventEmitter


def test_emit_calls_listeners_in_order() -> None:
    emitter = EventEmitter()
    calls = []
    emitter.on("ping", lambda value: calls.append(("first", value)))
    emitter.on("ping", lambda value: calls.append(("second", value)))

    assert emitter.emit("ping", "pong") is True
    assert calls == [("first", "pong"), ("second", "pong")]


def test_emit_without_listeners_returns_false() -> None:
    assert EventEmitter().emit("ping", "pong") is False


def test_remove_listener() -> None:
    emitter = EventEmitter()
    calls = []

    def listener(value):
        calls.append(value)

    emitter.on("ping", listener)
    emitter.remove_listener("ping", listener)
    emitter.emit("ping", "pong")

    assert calls == []
    assert emitter.listener_count("ping") == 0
    assert "ping" not in emitter.event_names()


def test_remove_unknown_listener_is_noop() -> None:
    emitter = EventEmitter()
    emitter.on("ping", print)
    emitter.remove_listener("ping", len)
    emitter.remove_listener("other", len)
    assert emitter.listeners("ping") == [print]


def test_remove_listener_removes_one_registration() -> None:
    emitter = EventEmitter()
    calls = []
    emitter.on("ping", calls.append)
    emitter.on("ping", calls.append)
    emitter.removeListener("ping", calls.append)
    emitter.emit("ping", 1)
    assert calls == [1]


def test_once_fires_a_single_time() -> None:
    emitter = EventEmitter()
    calls = []
    emitter.once("ping", calls.append)
    emitter.emit("ping", 1)
    emitter.emit("ping", 2)
    assert calls == [1]


def test_once_listener_can_be_removed_before_firing() -> None:
    emitter = EventEmitter()
    calls = []
    emitter.once("ping", calls.append)
    emitter.remove_listener("ping", calls.append)
    emitter.emit("ping", 1)
    assert calls == []


def test_listeners_added_during_emit_wait_for_next_emit() -> None:
    emitter = EventEmitter()
    calls = []

    def late(value):
        calls.append(("late", value))

    def first(value):
        calls.append(("first", value))
        emitter.on("ping", late)

    emitter.on("ping", first)
    emitter.emit("ping", 1)
    assert calls == [("first", 1)]

    emitter.remove_listener("ping", first)
    emitter.emit("ping", 2)
    assert calls == [("first", 1), ("late", 2)]


def test_listener_removed_during_emit_still_sees_current_emit() -> None:
    emitter = EventEmitter()
    calls = []

    def second(value):
        calls.append(("second", value))

    def first(value):
        calls.append(("first", value))
        emitter.remove_listener("ping", second)

    emitter.on("ping", first)
    emitter.on("ping", second)
    emitter.emit("ping", 1)
    emitter.emit("ping", 2)

    assert calls == [("first", 1), ("second", 1), ("first", 2)]


def test_unhandled_error_event_raises() -> None:
    with pytest.raises(ValueError, match="threw an error"):
        EventEmitter().emit("error", ValueError("threw an error"))


def test_unhandled_error_event_without_exception() -> None:
    with pytest.raises(RuntimeError, match="Unhandled error event"):
        EventEmitter().emit("error", "oops")


def test_handled_error_event_does_not_raise() -> None:
    emitter = EventEmitter()
    seen = []
    emitter.on("error", lambda err: seen.append(err))
    err = ValueError("boom")
    assert emitter.emit("error", err) is True
    assert seen == [err]


def test_listener_exceptions_propagate() -> None:
    emitter = EventEmitter()

    def broken(value):
        raise KeyError(value)

    emitter.on("ping", broken)
    with pytest.raises(KeyError):
        emitter.emit("ping", "pong")


def test_on_requires_callable() -> None:
    with pytest.raises(TypeError):
        EventEmitter().on("ping", "not callable")


def test_remove_all_listeners() -> None:
    emitter = EventEmitter()
    emitter.on("a", print).on("b", print)
    emitter.remove_all_listeners("a")
    assert emitter.event_names() == ["b"]
    emitter.remove_all_listeners()
    assert emitter.event_names() == []
