from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class AbortSignal:
    """
    Cancellation flag observed by in-flight requests.

    Listeners registered with ``add_listener`` run once, synchronously, when
    the owning controller aborts. Abort from the event loop thread running
    the request.
    """

    def __init__(self) -> None:
        self._aborted = False
        self._listeners: list[Callable[[], object]] = []

    @property
    def aborted(self) -> bool:
        return self._aborted

    def add_listener(self, listener: Callable[[], object]) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[], object]) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _abort(self) -> None:
        if self._aborted:
            return
        self._aborted = True
        listeners, self._listeners = self._listeners, []
        logger.debug("abort signal fired, notifying %d listener(s)", len(listeners))
        for listener in listeners:
            listener()

    def __repr__(self) -> str:
        return f"<AbortSignal aborted={self._aborted}>"


class AbortController:
    """Owns an ``AbortSignal`` and fires it."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self) -> None:
        self.signal._abort()
