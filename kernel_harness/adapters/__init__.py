"""
Per-operator kernel tests.
"""

from .fully_connected_adapter import FullyConnectedFloatCpuRandomTest
from .softmax_adapter import SoftmaxFloatCpuRandomTest

__all__ = [
    "FullyConnectedFloatCpuRandomTest",
    "SoftmaxFloatCpuRandomTest",
]
