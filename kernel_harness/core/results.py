"""
Measurement records and the aggregator that collects them.

A ``MeasurementResult`` describes the outcome of one lifecycle phase or
sub-case. The ``ResultAggregator`` owns two append-only registries: the
registered tests, in run order, and the results they produce, in the order
their phases complete.
"""

import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TextIO, Tuple

from .timer import Timer


@dataclass
class MeasurementResult:
    """Outcome of one phase or sub-case.

    Notes may be appended until ``finish()``; after that the record is
    read-only, including the ``notes`` tuple.

    Attributes:
        description: What was measured, e.g. ``"INIT: fully connected ..."``
        passed: Verdict, set once by ``finish()``
        time_consumed: Wall-clock seconds
        clocks_consumed: CPU ticks
        notes: Diagnostic lines, in the order they were appended
    """
    description: str
    passed: bool = False
    time_consumed: float = 0.0
    clocks_consumed: int = 0
    notes: Tuple[str, ...] = ()
    finished: bool = field(default=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: Any):
        if getattr(self, "finished", False):
            raise AttributeError(f"result '{self.description}' is finished and cannot be changed")
        super().__setattr__(name, value)

    def append_note(self, text: str):
        """Append a diagnostic line. Earlier notes are never overwritten."""
        if self.finished:
            raise RuntimeError(f"result '{self.description}' is already finished")
        self.notes = self.notes + (str(text),)

    def finish(self, passed: bool, timer: Timer):
        """Set the verdict and timing. Allowed exactly once."""
        if self.finished:
            raise RuntimeError(f"result '{self.description}' is already finished")
        timer.stop()
        self.passed = bool(passed)
        self.time_consumed = timer.elapsed_time()
        self.clocks_consumed = timer.elapsed_cycles()
        self.notes = tuple(self.notes)
        self.finished = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "passed": self.passed,
            "time_consumed": self.time_consumed,
            "clocks_consumed": self.clocks_consumed,
            "notes": list(self.notes),
        }


@dataclass(frozen=True)
class Summary:
    """Counts plus the recorded entries, in insertion order."""
    total: int
    passed: int
    failed: int
    entries: Tuple[MeasurementResult, ...]

    @property
    def all_passed(self) -> bool:
        return self.failed == 0


class ResultAggregator:
    """
    Collects registered tests and the measurement results they produce.

    One aggregator is built per harness run and handed to every test, so
    nothing is shared between runs.
    """

    def __init__(self):
        self._tests: List[Any] = []
        self._results: List[MeasurementResult] = []
        self._running = False

    # Test registry

    def register_test(self, test):
        """Add a test. Registration order is run and report order."""
        if self._running:
            raise RuntimeError("cannot register tests while a run is in progress")
        if any(registered is test for registered in self._tests):
            raise ValueError(f"test '{test.description}' is already registered")
        self._tests.append(test)

    @property
    def tests(self) -> Tuple[Any, ...]:
        return tuple(self._tests)

    def run_all(self) -> bool:
        """
        Run every registered test in registration order.

        Returns:
            True only if every test passed. A test that raises is recorded as
            failed and the remaining tests still run.
        """
        overall = True
        self._running = True
        try:
            for test in tuple(self._tests):
                try:
                    passed = bool(test.run())
                except Exception as e:
                    timer = Timer()
                    crash = MeasurementResult(f"RUN: {test.description}")
                    crash.append_note(f"error: {e}")
                    crash.finish(False, timer)
                    self.record(crash)
                    passed = False
                overall = overall and passed
        finally:
            self._running = False
        return overall

    # Result registry

    def record(self, result: MeasurementResult):
        """Append a finished result. There is no update or delete."""
        if not result.finished:
            raise ValueError(f"result '{result.description}' was recorded before it finished")
        self._results.append(result)

    @property
    def results(self) -> Tuple[MeasurementResult, ...]:
        return tuple(self._results)

    def summarize(self) -> Summary:
        entries = tuple(self._results)
        passed = sum(1 for r in entries if r.passed)
        return Summary(
            total=len(entries),
            passed=passed,
            failed=len(entries) - passed,
            entries=entries,
        )

    def to_dict(self) -> Dict[str, Any]:
        summary = self.summarize()
        return {
            "total": summary.total,
            "passed": summary.passed,
            "failed": summary.failed,
            "results": [r.to_dict() for r in summary.entries],
        }

    def print_summary(self, stream: Optional[TextIO] = None):
        """Pretty print the recorded results."""
        stream = stream or sys.stdout
        summary = self.summarize()

        print("\nTest Summary", file=stream)
        print("=" * 100, file=stream)
        print(f"{'Status':<8} {'Time (ms)':>12} {'Clocks':>14}  Description", file=stream)
        print("-" * 100, file=stream)

        for entry in summary.entries:
            status = "PASS" if entry.passed else "FAIL"
            print(
                f"{status:<8} {entry.time_consumed * 1000:>12.3f} "
                f"{entry.clocks_consumed:>14d}  {entry.description}",
                file=stream,
            )
            for note in entry.notes:
                print(f"{'':<37}- {note}", file=stream)

        print("=" * 100, file=stream)
        overall = "ALL TESTS PASSED" if summary.all_passed else "SOME TESTS FAILED"
        print(f"Passed: {summary.passed}/{summary.total}  Failed: {summary.failed}", file=stream)
        print(f"Overall: {overall}", file=stream)
        print("=" * 100, file=stream)
