"""
Fixed-interval pacing.

Spaces out calls against downstream services so consecutive calls are
at least `interval` seconds apart. Not adaptive to latency or errors.
"""

import threading
import time
from typing import Callable


class FixedIntervalPacer:
    """
    Enforces a minimum interval between consecutive `wait()` returns.

    The first call never sleeps. An interval of 0 disables pacing.

    Usage:
        pacer = FixedIntervalPacer(0.5)
        for batch in batches:
            pacer.wait()
            send(batch)
    """

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.interval = max(0.0, interval)
        self._clock = clock
        self._sleep = sleep
        self._last_call = None
        self._lock = threading.Lock()

    def wait(self) -> float:
        """
        Block until the interval since the previous call has elapsed.

        Returns:
            Seconds slept
        """
        with self._lock:
            slept = 0.0
            if self._last_call is not None and self.interval > 0:
                elapsed = self._clock() - self._last_call
                if elapsed < self.interval:
                    slept = self.interval - elapsed
                    self._sleep(slept)
            self._last_call = self._clock()
            return slept

    def reset(self) -> None:
        """Forget the previous call so the next `wait()` returns immediately."""
        with self._lock:
            self._last_call = None
