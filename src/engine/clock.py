"""
Clocks and cancellable timer handles

The playback scheduler never owns a timer id directly: it asks a Clock for a
CancelToken and hands it back to cancel(). Cancelling is idempotent.

- ManualClock: deterministic, advanced explicitly (tests, headless hosts)
- AsyncioClock: backed by loop.call_later
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Tuple

# Callbacks receive the clock time (ms) at which they fire
TickCallback = Callable[[float], None]

_token_ids = itertools.count(1)


@dataclass(eq=False)
class CancelToken:
    """Handle for one scheduled callback"""
    id: int = field(default_factory=lambda: next(_token_ids))
    cancelled: bool = False
    fired: bool = False
    _on_cancel: Optional[Callable[[], None]] = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return not self.cancelled and not self.fired

    def cancel(self) -> None:
        """Cancel the pending callback; safe to call any number of times."""
        if self.cancelled:
            return
        self.cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()
            self._on_cancel = None


class Clock(Protocol):
    """Periodic clock contract consumed by the scheduler"""

    def now_ms(self) -> float: ...

    def schedule(self, callback: TickCallback, delay_ms: float) -> CancelToken: ...

    def cancel(self, token: Optional[CancelToken]) -> None: ...


class ManualClock:
    """
    Deterministic clock.

    Example:
        clock = ManualClock()
        token = clock.schedule(lambda now: print(now), 16)
        clock.advance(20)   # prints 16.0
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)
        self._queue: List[Tuple[float, int, TickCallback, CancelToken]] = []

    def now_ms(self) -> float:
        return self._now

    def schedule(self, callback: TickCallback, delay_ms: float) -> CancelToken:
        token = CancelToken()
        due = self._now + max(0.0, float(delay_ms))
        heapq.heappush(self._queue, (due, token.id, callback, token))
        return token

    def cancel(self, token: Optional[CancelToken]) -> None:
        if token is not None:
            token.cancel()

    @property
    def pending(self) -> int:
        return sum(1 for _, _, _, token in self._queue if token.active)

    def advance(self, ms: float) -> None:
        """Move time forward, firing due callbacks in due-time order."""
        target = self._now + max(0.0, float(ms))
        while self._queue and self._queue[0][0] <= target:
            due, _, callback, token = heapq.heappop(self._queue)
            if not token.active:
                continue
            self._now = due
            token.fired = True
            callback(due)
        self._now = target

    def jump(self, ms: float) -> None:
        """
        Move time forward in one step: every due callback fires once, late,
        at the new time (a stalled or backgrounded host).
        """
        self._now += max(0.0, float(ms))
        due_now = []
        while self._queue and self._queue[0][0] <= self._now:
            due_now.append(heapq.heappop(self._queue))
        for _, _, callback, token in due_now:
            if token.active:
                token.fired = True
                callback(self._now)


class AsyncioClock:
    """Clock backed by an asyncio event loop (call_later)"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now_ms(self) -> float:
        if self._loop is None:
            return time.monotonic() * 1000
        return self._loop.time() * 1000

    def schedule(self, callback: TickCallback, delay_ms: float) -> CancelToken:
        token = CancelToken()

        def _fire() -> None:
            if not token.active:
                return
            token.fired = True
            callback(self.now_ms())

        handle = self.loop.call_later(max(0.0, float(delay_ms)) / 1000, _fire)
        token._on_cancel = handle.cancel
        return token

    def cancel(self, token: Optional[CancelToken]) -> None:
        if token is not None:
            token.cancel()
