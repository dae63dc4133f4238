from __future__ import annotations

import logging
import time
from typing import Any, Callable, Generic, Optional, TypeVar

from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


class Backoff:
    """Exponential delay: base, base*factor, ... capped; ``reset`` goes back to base."""

    def __init__(self, *, base: float = 1.0, factor: float = 2.0, cap: float = 30.0):
        if base <= 0 or factor < 1 or cap < base:
            raise ValueError("invalid backoff parameters")
        self.base = float(base)
        self.factor = float(factor)
        self.cap = float(cap)
        self._current = self.base

    @property
    def current(self) -> float:
        return self._current

    def next_delay(self) -> float:
        delay = self._current
        self._current = min(self._current * self.factor, self.cap)
        return delay

    def reset(self) -> None:
        self._current = self.base


class ChangeSubscription(Generic[T]):
    """Deliver changes of one watched value to ``on_change``.

    While a push transport is connected, values arrive through ``push`` and
    polling is suspended. Otherwise ``poll`` calls ``fetch`` every ``base``
    seconds; failed fetches back off exponentially until one succeeds.
    Only values different from the last delivered one reach ``on_change``.
    """

    def __init__(
        self,
        fetch: Callable[[], T],
        on_change: Callable[[T], None],
        *,
        backoff: Optional[Backoff] = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "subscription",
    ):
        self._fetch = fetch
        self._on_change = on_change
        self._backoff = backoff or Backoff()
        self._clock = clock
        self._name = name
        self._connected = False
        self._last: Any = _MISSING
        self._next_poll_at = clock()

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def next_poll_at(self) -> float:
        return self._next_poll_at

    def set_connected(self, connected: bool) -> None:
        if connected == self._connected:
            return
        self._connected = connected
        if not connected:
            # Fall back to polling right away so nothing pushed while dropping is missed.
            self._backoff.reset()
            self._next_poll_at = self._clock()
        logger.info("%s push %s", self._name, "connected" if connected else "disconnected")

    def push(self, value: T) -> bool:
        return self._deliver(value)

    def poll(self, now: Optional[float] = None) -> bool:
        """Fetch if due. Returns True when a changed value was delivered."""

        if self._connected:
            return False
        now = self._clock() if now is None else now
        if now < self._next_poll_at:
            return False

        try:
            value = self._fetch()
        except DomainError as exc:
            delay = self._backoff.next_delay()
            self._next_poll_at = now + delay
            logger.warning("%s poll failed (%s); retrying in %.0fs", self._name, exc, delay)
            return False

        self._backoff.reset()
        self._next_poll_at = now + self._backoff.base
        return self._deliver(value)

    def _deliver(self, value: T) -> bool:
        if self._last is not _MISSING and value == self._last:
            return False
        self._last = value
        self._on_change(value)
        return True
