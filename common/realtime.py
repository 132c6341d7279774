"""
Rate keeping utilities inspired by openpilot's common.realtime.
The simulation steps on a fixed dt; the rate keeper only paces it against the wall clock.
"""

from __future__ import annotations

import time

from common.logger import get_logger

logger = get_logger("realtime")


def monotonic_time() -> float:
    """Return monotonic time in seconds."""
    return time.monotonic()


class RateKeeper:
    """
    Maintain a fixed loop rate. Mirrors openpilot's Ratekeeper interface:
    - monitor_time(): update timing statistics, return remaining time (negative if late)
    - keep_time(): call monitor_time() then sleep for remaining time, if positive
    """

    def __init__(self, rate_hz: float, clock=monotonic_time, sleep=time.sleep, print_delay_threshold: float | None = 0.01):
        if rate_hz <= 0.0:
            raise ValueError("rate_hz must be positive")
        self.period = 1.0 / rate_hz
        self.clock = clock
        self._sleep = sleep
        self.print_delay_threshold = print_delay_threshold
        self.frame = 0
        self.lagged_frames = 0
        self._next = self.clock() + self.period

    def monitor_time(self) -> float:
        now = self.clock()
        remaining = self._next - now
        if remaining < 0.0:
            self.lagged_frames += 1
            if self.print_delay_threshold is not None and remaining < -self.print_delay_threshold:
                logger.warning(f"Lagging by {-remaining * 1000:.2f} ms (frame {self.frame})")
            # Do not try to catch up on a backlog of frames; resume pacing from now.
            if remaining < -self.period:
                self._next = now
        self._next += self.period
        self.frame += 1
        return remaining

    def keep_time(self) -> None:
        remaining = self.monitor_time()
        if remaining > 0.0:
            self._sleep(remaining)
