"""Frame schedulers driving PlaybackClock ticks."""
from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, Optional, Protocol

from smil_timeline.utils.config import settings

FrameCallback = Callable[[float], None]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class FrameScheduler(Protocol):
    def request_frame(self, callback: FrameCallback) -> Any: ...

    def cancel_frame(self, handle: Any) -> None: ...


class ManualFrameScheduler:
    """Frames run only when `run_frame()` is called (tests, headless export)."""

    def __init__(self) -> None:
        self._pending: Dict[int, FrameCallback] = {}
        self._next_handle = 1

    def request_frame(self, callback: FrameCallback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: Any) -> None:
        self._pending.pop(handle, None)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def run_frame(self, timestamp_ms: Optional[float] = None) -> int:
        """Run every callback queued before this call; returns how many ran."""
        ts = monotonic_ms() if timestamp_ms is None else timestamp_ms
        batch = list(self._pending.items())
        self._pending.clear()
        for _, callback in batch:
            callback(ts)
        return len(batch)


class AsyncioFrameScheduler:
    """Schedules frames on an asyncio loop at a fixed interval.

    Without an explicit loop, frames go to the loop running when the first
    frame is requested.
    """

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        interval_s: Optional[float] = None,
        now: Callable[[], float] = monotonic_ms,
    ) -> None:
        self._loop = loop
        self._interval_s = settings.frame_interval_s if interval_s is None else interval_s
        self._now = now

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def request_frame(self, callback: FrameCallback) -> asyncio.TimerHandle:
        return self.loop.call_later(self._interval_s, lambda: callback(self._now()))

    def cancel_frame(self, handle: Any) -> None:
        if handle is not None:
            handle.cancel()
