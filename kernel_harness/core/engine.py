"""
Boundary to the execution engine and to the workflows it compiles.

The harness only talks to an engine through ``DeviceInterface`` and to a
graph through ``WorkflowProvider``. Expected failures travel as ``Status``
values; a compile that fails yields no workload.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import torch


class Status(Enum):
    SUCCESS = 0
    ERROR_OTHER = 1
    ERROR_INVALID_POINTER = 2
    ERROR_INVALID_WORKFLOW = 3
    ERROR_INVALID_INPUT_OUTPUT = 4
    ERROR_DATA_NOT_CONSISTENT = 5
    ERROR_UNSUPPORTED = 6

    @property
    def ok(self) -> bool:
        return self is Status.SUCCESS


class WorkloadDataType(Enum):
    F32_1D = "f32_1d"
    F32_1D_BATCH = "f32_1d_batch"


class WorkItemType(Enum):
    INPUT = "input"
    OUTPUT = "output"
    FULLY_CONNECTED = "fully_connected"
    SOFTMAX = "softmax"


class ActivationFunction(Enum):
    NONE = "none"
    RELU = "relu"
    LOGISTIC = "logistic"
    TANH = "tanh"


@dataclass
class FullyConnectedArguments:
    """Learned parameters of a fully connected item.

    Attributes:
        weights: Shape ``[features, output_classes]``
        biases: Shape ``[output_classes]``
        activation: Applied after the bias
    """
    weights: torch.Tensor
    biases: torch.Tensor
    activation: ActivationFunction = ActivationFunction.NONE


@dataclass
class WorkItem:
    name: str
    type: WorkItemType
    arguments: Any = None
    inputs: List[str] = field(default_factory=list)


@dataclass
class Workflow:
    """An uncompiled graph: work items in topological order."""
    name: str
    items: List[WorkItem]

    def item(self, name: str) -> WorkItem:
        for item in self.items:
            if item.name == name:
                return item
        raise KeyError(f"workflow '{self.name}' has no item '{name}'")

    def uses(self, name: str) -> List[WorkItem]:
        """Items that consume the output of ``name``."""
        return [item for item in self.items if name in item.inputs]

    @property
    def input_item(self) -> WorkItem:
        return next(item for item in self.items if item.type is WorkItemType.INPUT)

    @property
    def output_item(self) -> WorkItem:
        return next(item for item in self.items if item.type is WorkItemType.OUTPUT)


class Workload:
    """
    A compiled workflow owned by the caller of ``DeviceInterface.compile``.

    Release it exactly once, preferably by using it as a context manager.
    """

    def __init__(self, device: "DeviceInterface", batch_size: int, program: Any = None):
        self.device = device
        self.batch_size = batch_size
        self.program = program
        self.released = False

    def release(self):
        if not self.released:
            self.device.release_workload(self)
            self.released = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


class DeviceInterface(ABC):
    """
    Execution engine adapter.

    Implementations compile a ``Workflow`` for a fixed batch size and
    execute the resulting ``Workload`` on caller-owned tensors.
    """

    name: str = "device"

    @abstractmethod
    def describe(self) -> str:
        """Human-readable description of the device."""
        pass

    @abstractmethod
    def compile(
        self,
        workflow: Workflow,
        input_format: WorkloadDataType,
        output_format: WorkloadDataType,
        batch_size: int,
    ) -> Tuple[Optional[Workload], Status]:
        """
        Compile a workflow.

        Returns:
            ``(workload, Status.SUCCESS)``, or ``(None, <error status>)``
        """
        pass

    @abstractmethod
    def execute(
        self,
        workload: Workload,
        inputs: Sequence[torch.Tensor],
        outputs: Sequence[torch.Tensor],
    ) -> Status:
        """Run a workload, writing results into ``outputs`` in place."""
        pass

    def release_workload(self, workload: Workload):
        """Free engine-side state held by a workload."""
        workload.program = None


class WorkflowProvider(ABC):
    """
    Builds and tears down one named workflow for a device.
    """

    name: str = "workflow"

    def __init__(self):
        self.workflow: Optional[Workflow] = None

    @abstractmethod
    def build(self, device: Optional[DeviceInterface]) -> Optional[Workflow]:
        """Build the workflow, or return None if it cannot be built."""
        pass

    def teardown(self):
        """Drop the built workflow. Safe to call more than once."""
        self.workflow = None

    def parameters(self, node_name: str) -> Any:
        """Arguments (e.g. weights and biases) of a built item."""
        if self.workflow is None:
            raise RuntimeError(f"workflow '{self.name}' has not been built")
        return self.workflow.item(node_name).arguments


class _Catalog:
    kind = "entry"

    def __init__(self, entries: Iterable[Any] = ()):
        self._entries: Dict[str, Any] = {}
        for entry in entries:
            self.add(entry)

    def add(self, entry: Any):
        if entry.name in self._entries:
            raise ValueError(f"{self.kind} '{entry.name}' is already in the catalog")
        self._entries[entry.name] = entry

    def get(self, name: str) -> Any:
        try:
            return self._entries[name]
        except KeyError:
            known = ", ".join(self._entries) or "none"
            raise KeyError(f"no {self.kind} named '{name}' (known: {known})") from None

    def names(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, name: str) -> bool:
        return name in self._entries


class DeviceCatalog(_Catalog):
    kind = "device"


class WorkflowCatalog(_Catalog):
    kind = "workflow"
