"""
Tests for the scoped timer.
"""

import time

from kernel_harness.core.timer import Timer


class TestTimer:
    """Test wall-clock and CPU tick measurement."""

    def test_stop_without_start(self):
        """Construction starts the timer."""
        timer = Timer()
        time.sleep(0.01)
        timer.stop()

        assert timer.elapsed_time() >= 0.005
        assert timer.elapsed_cycles() >= 0

    def test_elapsed_is_frozen_after_stop(self):
        timer = Timer()
        timer.stop()
        first = timer.elapsed_time()
        time.sleep(0.01)

        assert timer.elapsed_time() == first

    def test_restart_resets_baseline(self):
        timer = Timer()
        time.sleep(0.02)
        timer.start()
        timer.stop()

        assert timer.elapsed_time() < 0.02

    def test_cpu_ticks_grow_with_work(self):
        with Timer() as timer:
            sum(i * i for i in range(200000))

        assert timer.elapsed_cycles() > 0
        assert isinstance(timer.elapsed_cycles(), int)

    def test_query_before_stop_reads_now(self):
        timer = Timer()
        time.sleep(0.005)
        assert timer.elapsed_time() > 0
