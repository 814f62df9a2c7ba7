"""Ordered, fire-once registry of readiness callbacks."""

from __future__ import annotations

from typing import Callable, List

from loguru import logger

from .errors import DuplicateCallbackError, InvalidCallbackError

ReadyCallback = Callable[[], object]


class ReadyCallbackRegistry:
    """Holds zero-argument callbacks and runs each once when the store is ready.

    Callbacks are unique by identity and fire in registration order. A failing
    callback is logged and does not stop the ones after it. Callbacks
    registered after ``fire_all`` has run are invoked immediately.
    """

    def __init__(self) -> None:
        self._callbacks: List[ReadyCallback] = []
        self._fired = False

    def __len__(self) -> int:
        return len(self._callbacks)

    def __contains__(self, callback: object) -> bool:
        return callback in self._callbacks

    @property
    def fired(self) -> bool:
        return self._fired

    def register(self, callback: ReadyCallback) -> None:
        if not callable(callback):
            raise InvalidCallbackError("Callback for on_ready is not callable.")
        if callback in self:
            raise DuplicateCallbackError("Callback is already registered for on_ready.")

        self._callbacks.append(callback)
        if self._fired:
            self._invoke(callback)

    def fire_all(self) -> None:
        if self._fired:
            return
        self._fired = True
        for callback in list(self._callbacks):
            self._invoke(callback)

    @staticmethod
    def _invoke(callback: ReadyCallback) -> None:
        try:
            callback()
        except Exception:
            logger.exception(
                "[MongoDB] Ready callback {name} raised",
                name=getattr(callback, "__qualname__", repr(callback)),
            )
