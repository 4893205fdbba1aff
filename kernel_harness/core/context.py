"""
Explicitly owned harness state, handed to every test on construction.
"""

from dataclasses import dataclass, field

from .config import HarnessConfig
from .engine import DeviceCatalog, WorkflowCatalog
from .results import ResultAggregator
from .tensor import TensorAllocator


@dataclass
class HarnessContext:
    """Everything a test needs from its surroundings for one run."""
    config: HarnessConfig = field(default_factory=HarnessConfig)
    aggregator: ResultAggregator = field(default_factory=ResultAggregator)
    devices: DeviceCatalog = field(default_factory=DeviceCatalog)
    workflows: WorkflowCatalog = field(default_factory=WorkflowCatalog)
    allocator: TensorAllocator = field(default_factory=TensorAllocator)
