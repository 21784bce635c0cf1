"""
Single-fire change notification.

A ChangeToken fires once; owners replace it with a fresh token before firing
the old one, so listeners that re-subscribe always land on the next token.
``on_change`` wraps that re-subscription loop.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

import structlog

logger = structlog.get_logger()

ChangeCallback = Callable[[Any], None]


class CallbackRegistration:
    """Handle returned by ChangeToken.register_change_callback."""

    def __init__(self, token: ChangeToken | None, callback_id: int) -> None:
        self._token = token
        self._callback_id = callback_id

    def dispose(self) -> None:
        if self._token is not None:
            self._token._unregister(self._callback_id)
            self._token = None


class ChangeToken:
    """Single-use notification handle."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._callbacks: dict[int, tuple[ChangeCallback, Any]] = {}
        self._next_id = 0
        self._fired = False

    @property
    def has_changed(self) -> bool:
        return self._fired

    def register_change_callback(
        self, callback: ChangeCallback, state: Any = None
    ) -> CallbackRegistration:
        """Register ``callback(state)``; runs immediately if already fired."""
        with self._lock:
            if not self._fired:
                callback_id = self._next_id
                self._next_id += 1
                self._callbacks[callback_id] = (callback, state)
                return CallbackRegistration(self, callback_id)

        callback(state)
        return CallbackRegistration(None, 0)

    def _unregister(self, callback_id: int) -> None:
        with self._lock:
            self._callbacks.pop(callback_id, None)

    def fire(self) -> None:
        """Invoke every registered callback once. Later calls are no-ops."""
        with self._lock:
            if self._fired:
                return
            self._fired = True
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()

        for callback, state in callbacks:
            try:
                callback(state)
            except Exception:
                logger.exception("change_callback_failed", callback=repr(callback))


class ChangeSubscription:
    """Keeps ``consumer`` subscribed across successive tokens from ``producer``."""

    def __init__(self, producer: Callable[[], ChangeToken], consumer: Callable[[], None]) -> None:
        self._producer = producer
        self._consumer = consumer
        self._lock = threading.Lock()
        self._registration: CallbackRegistration | None = None
        self._disposed = False
        self._subscribe()

    def _subscribe(self) -> None:
        registration = self._producer().register_change_callback(self._on_fired)
        with self._lock:
            if self._disposed:
                registration.dispose()
                return
            self._registration = registration

    def _on_fired(self, _state: Any) -> None:
        if self._disposed:
            return
        try:
            self._consumer()
        finally:
            self._subscribe()

    def dispose(self) -> None:
        with self._lock:
            self._disposed = True
            registration, self._registration = self._registration, None
        if registration is not None:
            registration.dispose()


def on_change(
    producer: Callable[[], ChangeToken], consumer: Callable[[], None]
) -> ChangeSubscription:
    """Call ``consumer`` every time the token returned by ``producer`` fires."""
    return ChangeSubscription(producer, consumer)
