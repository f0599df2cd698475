# =============================================================================
# HOOKRELAY - EVENT EMITTER
# =============================================================================
"""
Event Emitter

A small publish/subscribe registry used by the webhook handler to fan out
accepted deliveries and validation failures to interested listeners.

Listeners are plain callables keyed by event name. Two names are special:
    - "*": the webhook handler emits every accepted delivery here too
    - "error": emitting with no listener registered raises the error

Usage:
    emitter = EventEmitter()
    emitter.on("push", lambda event: print(event.payload))
    emitter.emit("push", event)
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List


Listener = Callable[..., Any]

WILDCARD = "*"
ERROR_EVENT = "error"


class EventEmitter:
    """
    Ordered listener registry keyed by event name.

    Registration and removal are guarded by a lock; ``emit`` iterates
    over a snapshot so listeners may be added or removed from inside
    another listener (or from another thread) while an emit is running.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}
        self._lock = threading.Lock()

    def on(self, event: str, listener: Listener) -> "EventEmitter":
        """Register a listener for an event. Returns self for chaining."""
        if not callable(listener):
            raise TypeError("listener must be callable")
        with self._lock:
            self._listeners.setdefault(event, []).append(listener)
        return self

    add_listener = on

    def once(self, event: str, listener: Listener) -> "EventEmitter":
        """Register a listener that is removed after its first call."""

        def _once(*args: Any) -> Any:
            self.remove_listener(event, _once)
            return listener(*args)

        _once.listener = listener  # type: ignore[attr-defined]
        return self.on(event, _once)

    def remove_listener(self, event: str, listener: Listener) -> "EventEmitter":
        """
        Remove the most recently added registration of a listener.

        Removing a listener that was never registered is a no-op.
        """
        with self._lock:
            listeners = self._listeners.get(event)
            if not listeners:
                return self
            for index in range(len(listeners) - 1, -1, -1):
                candidate = listeners[index]
                if candidate == listener or getattr(candidate, "listener", None) == listener:
                    del listeners[index]
                    break
            if not listeners:
                del self._listeners[event]
        return self

    removeListener = remove_listener
    off = remove_listener

    def remove_all_listeners(self, event: str | None = None) -> "EventEmitter":
        """Drop every listener, or only those of one event."""
        with self._lock:
            if event is None:
                self._listeners.clear()
            else:
                self._listeners.pop(event, None)
        return self

    def listeners(self, event: str) -> List[Listener]:
        """Return a copy of the listeners registered for an event."""
        with self._lock:
            return list(self._listeners.get(event, ()))

    def listener_count(self, event: str) -> int:
        with self._lock:
            return len(self._listeners.get(event, ()))

    def event_names(self) -> List[str]:
        with self._lock:
            return list(self._listeners)

    def emit(self, event: str, *args: Any) -> bool:
        """
        Call every listener of ``event`` in registration order.

        Exceptions raised by listeners propagate to the caller.

        Args:
            event: Event name
            *args: Positional arguments passed to each listener

        Returns:
            True if the event had listeners, False otherwise

        Raises:
            BaseException: The first argument of an "error" emit that
                has no listeners, when it is an exception
        """
        listeners = self.listeners(event)

        if not listeners:
            if event == ERROR_EVENT:
                err = args[0] if args else None
                if isinstance(err, BaseException):
                    raise err
                raise RuntimeError(f"Unhandled error event: {err!r}")
            return False

        for listener in listeners:
            listener(*args)
        return True


__all__ = [
    "EventEmitter",
    "Listener",
    "WILDCARD",
    "ERROR_EVENT",
]
