"""
Scoped wall-clock and CPU-time measurement.
"""

import time
from typing import Optional

import torch


class Timer:
    """
    Measure elapsed wall-clock time and consumed CPU ticks over an interval.

    Construction starts the timer, so ``stop()`` can be called without a
    paired ``start()``. CPU consumption is reported as "clocks" in
    nanosecond ticks of the process CPU clock.
    """

    def __init__(self, synchronize: bool = False):
        """
        Args:
            synchronize: Synchronize CUDA at start and stop so queued device
                work is included in the interval
        """
        self.synchronize = synchronize
        self._start_ns = 0
        self._start_clocks = 0
        self._stop_ns: Optional[int] = None
        self._stop_clocks: Optional[int] = None
        self.start()

    def _sync(self):
        if self.synchronize and torch.cuda.is_available():
            torch.cuda.synchronize()

    def start(self):
        """Capture the baseline readings."""
        self._sync()
        self._stop_ns = None
        self._stop_clocks = None
        self._start_clocks = time.process_time_ns()
        self._start_ns = time.perf_counter_ns()

    def stop(self):
        """Capture the end readings. The last call wins."""
        self._sync()
        self._stop_ns = time.perf_counter_ns()
        self._stop_clocks = time.process_time_ns()

    def elapsed_time(self) -> float:
        """Elapsed wall-clock time in seconds."""
        end = self._stop_ns if self._stop_ns is not None else time.perf_counter_ns()
        return max(0, end - self._start_ns) / 1e9

    def elapsed_cycles(self) -> int:
        """Elapsed process CPU ticks (nanoseconds)."""
        end = self._stop_clocks if self._stop_clocks is not None else time.process_time_ns()
        return max(0, end - self._start_clocks)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
