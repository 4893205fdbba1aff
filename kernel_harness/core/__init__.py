"""
Core module initialization.
"""

from .comparator import ComparisonResult, MismatchKind, ToleranceMode, compare, compare_tensors
from .config import HarnessConfig
from .context import HarnessContext
from .engine import (
    ActivationFunction,
    DeviceCatalog,
    DeviceInterface,
    FullyConnectedArguments,
    Status,
    WorkItem,
    WorkItemType,
    Workflow,
    WorkflowCatalog,
    WorkflowProvider,
    Workload,
    WorkloadDataType,
)
from .reference import fully_connected_reference, softmax_reference
from .results import MeasurementResult, ResultAggregator, Summary
from .tensor import TensorAllocator, TensorScope, populate
from .lifecycle import KernelTest, LifecycleState, Phase, WorkflowKernelTest
from .timer import Timer

__all__ = [
    "ActivationFunction",
    "ComparisonResult",
    "DeviceCatalog",
    "DeviceInterface",
    "FullyConnectedArguments",
    "HarnessConfig",
    "HarnessContext",
    "KernelTest",
    "LifecycleState",
    "MeasurementResult",
    "MismatchKind",
    "Phase",
    "ResultAggregator",
    "Status",
    "Summary",
    "TensorAllocator",
    "TensorScope",
    "Timer",
    "ToleranceMode",
    "WorkItem",
    "WorkItemType",
    "Workflow",
    "WorkflowCatalog",
    "WorkflowKernelTest",
    "WorkflowProvider",
    "Workload",
    "WorkloadDataType",
    "compare",
    "compare_tensors",
    "fully_connected_reference",
    "populate",
    "softmax_reference",
]
