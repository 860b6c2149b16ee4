from __future__ import annotations

import logging
from typing import Callable, List

logger = logging.getLogger("uniclaw.abort")


class AbortSignal:
    """One-shot cancellation signal.

    Listeners run synchronously, in registration order, exactly once. A
    listener added after the signal fired runs immediately.
    """

    def __init__(self) -> None:
        self._aborted = False
        self._listeners: List[Callable[[], None]] = []

    @property
    def aborted(self) -> bool:
        return self._aborted

    def add_listener(self, callback: Callable[[], None]) -> None:
        if self._aborted:
            callback()
            return
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]) -> None:
        try:
            self._listeners.remove(callback)
        except ValueError:
            pass

    def _fire(self) -> None:
        if self._aborted:
            return
        self._aborted = True
        listeners, self._listeners = self._listeners, []
        for cb in listeners:
            try:
                cb()
            except Exception:
                logger.exception("abort listener failed")


class AbortController:
    """Owns an AbortSignal; `abort()` fires it."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self) -> None:
        self.signal._fire()
