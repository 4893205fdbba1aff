"""Pytest configuration and shared fixtures."""
import pytest

from fixtures.fakes import CountingAllocator
from kernel_harness.core.config import HarnessConfig
from kernel_harness.core.context import HarnessContext
from kernel_harness.core.engine import DeviceCatalog
from kernel_harness.devices import TorchDevice
from kernel_harness.workflows import default_workflows


@pytest.fixture
def config():
    """Quiet CPU configuration with a fixed seed."""
    return HarnessConfig(device='cpu', seed=7, verbose=False)


@pytest.fixture
def allocator():
    return CountingAllocator()


@pytest.fixture
def context(config, allocator):
    """
    Harness context wired to the torch CPU engine and the default workflows.

    The allocator counts allocations so tests can check for leaks.
    """
    config.set_seed()
    return HarnessContext(
        config=config,
        devices=DeviceCatalog([TorchDevice('cpu')]),
        workflows=default_workflows(config),
        allocator=allocator,
    )


def make_context(config, allocator, device):
    """Context whose 'device_cpu' entry is ``device``."""
    return HarnessContext(
        config=config,
        devices=DeviceCatalog([device]),
        workflows=default_workflows(config),
        allocator=allocator,
    )


@pytest.fixture
def context_with_device(config, allocator):
    """Factory fixture: build a context around a given device."""
    return lambda device: make_context(config, allocator, device)
