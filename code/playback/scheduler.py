#!/usr/bin/env python3
# playback/scheduler.py
"""
Repeating-timer abstraction used to drive playback ticks.

The controller only needs: start a repeating callback at some period, stop
it, and change the period. Two implementations:

    ManualScheduler       ticks only when a test (or a headless export)
                          calls `advance()`; fully deterministic
    FigureTimerScheduler  wraps a matplotlib canvas timer for the
                          interactive viewer

Each tick runs to completion before the next one; stopping from inside a
callback cancels every remaining tick.
"""

from __future__ import annotations

from typing import Callable, Optional

TickCallback = Callable[[], None]


class ManualScheduler:
    """Deterministic scheduler: time only moves when `advance()` is called."""

    def __init__(self) -> None:
        self.interval_ms: Optional[int] = None
        self._callback: Optional[TickCallback] = None
        self.ticks_fired = 0

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, interval_ms: int, callback: TickCallback) -> None:
        self.interval_ms = int(interval_ms)
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    def set_interval(self, interval_ms: int) -> None:
        self.interval_ms = int(interval_ms)

    def advance(self, n: int = 1) -> int:
        """
        Fire up to `n` ticks. Returns how many actually fired (fewer when a
        tick stops the scheduler).
        """
        fired = 0
        for _ in range(n):
            if self._callback is None:
                break
            self._callback()
            fired += 1
            self.ticks_fired += 1
        return fired

    def run_until_stopped(self, max_ticks: int = 100_000) -> int:
        """Tick until the callback stops the scheduler (headless export)."""
        return self.advance(max_ticks)


class FigureTimerScheduler:
    """Scheduler backed by `figure.canvas.new_timer` (GUI event loop)."""

    def __init__(self, fig) -> None:
        self._fig = fig
        self._timer = None

    @property
    def running(self) -> bool:
        return self._timer is not None

    def start(self, interval_ms: int, callback: TickCallback) -> None:
        self.stop()
        timer = self._fig.canvas.new_timer(interval=int(interval_ms))
        timer.add_callback(callback)
        timer.start()
        self._timer = timer

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

    def set_interval(self, interval_ms: int) -> None:
        # new period applies from the next tick on
        if self._timer is not None:
            self._timer.interval = int(interval_ms)
