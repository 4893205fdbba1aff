"""
Kernel Validation Harness
Checks accelerated kernel implementations against naive reference kernels.
"""

__version__ = "0.1.0"

from .core.comparator import compare, compare_tensors
from .core.config import HarnessConfig
from .core.context import HarnessContext
from .core.results import MeasurementResult, ResultAggregator
from .core.lifecycle import KernelTest
from .runner import build_context, main, register_all_tests, run_all_tests

__all__ = [
    "HarnessConfig",
    "HarnessContext",
    "KernelTest",
    "MeasurementResult",
    "ResultAggregator",
    "build_context",
    "compare",
    "compare_tensors",
    "main",
    "register_all_tests",
    "run_all_tests",
]
