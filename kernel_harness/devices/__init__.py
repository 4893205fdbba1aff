"""
Execution engines the harness can test.
"""

from .torch_device import TorchDevice, discover_devices

__all__ = [
    "TorchDevice",
    "discover_devices",
]
