"""
Execution engine backed by PyTorch.

Compiles a workflow of ``INPUT -> FULLY_CONNECTED|SOFTMAX -> OUTPUT`` items
into a list of torch ops for a fixed batch size. Tensors use the
``[features, batch]`` layout throughout.
"""

from typing import Callable, List, Optional, Sequence, Tuple

import torch

from ..core.engine import (
    ActivationFunction,
    DeviceCatalog,
    DeviceInterface,
    FullyConnectedArguments,
    Status,
    WorkItemType,
    Workflow,
    Workload,
    WorkloadDataType,
)

_ACTIVATIONS = {
    ActivationFunction.NONE: lambda x: x,
    ActivationFunction.RELU: torch.relu,
    ActivationFunction.LOGISTIC: torch.sigmoid,
    ActivationFunction.TANH: torch.tanh,
}

Op = Callable[[torch.Tensor], torch.Tensor]


def _softmax(x: torch.Tensor) -> torch.Tensor:
    return torch.softmax(x, dim=0)


class _Program:
    """Compiled ops plus the shapes they expect."""

    def __init__(self, ops: List[Op], input_features: int, output_features: int):
        self.ops = ops
        self.input_features = input_features
        self.output_features = output_features


class TorchDevice(DeviceInterface):
    """
    Runs workflows with torch on a CPU or CUDA device.
    """

    def __init__(self, device: str = 'cpu'):
        self.torch_device = torch.device(device)
        self.name = f"device_{self.torch_device.type}"
        self.live_workloads = 0

    def describe(self) -> str:
        if self.torch_device.type == 'cuda':
            target = torch.cuda.get_device_name(self.torch_device)
        else:
            target = "cpu"
        return f"torch {torch.__version__} device ({target})"

    def compile(
        self,
        workflow: Workflow,
        input_format: WorkloadDataType,
        output_format: WorkloadDataType,
        batch_size: int,
    ) -> Tuple[Optional[Workload], Status]:
        if workflow is None:
            return None, Status.ERROR_INVALID_POINTER
        if WorkloadDataType.F32_1D_BATCH is not input_format or WorkloadDataType.F32_1D_BATCH is not output_format:
            return None, Status.ERROR_UNSUPPORTED
        if batch_size <= 0:
            return None, Status.ERROR_INVALID_INPUT_OUTPUT

        ops: List[Op] = []
        features: Optional[int] = None
        input_features: Optional[int] = None
        for item in workflow.items:
            if item.type in (WorkItemType.INPUT, WorkItemType.OUTPUT):
                continue
            if item.type is WorkItemType.FULLY_CONNECTED:
                op, in_features, out_features = self._compile_fully_connected(item.arguments)
            elif item.type is WorkItemType.SOFTMAX:
                in_features = out_features = int(item.arguments)
                op = _softmax
            else:
                return None, Status.ERROR_UNSUPPORTED

            if features is not None and in_features != features:
                return None, Status.ERROR_INVALID_WORKFLOW
            if input_features is None:
                input_features = in_features
            features = out_features
            ops.append(op)

        if not ops:
            return None, Status.ERROR_INVALID_WORKFLOW

        self.live_workloads += 1
        program = _Program(ops, input_features, features)
        return Workload(self, batch_size, program), Status.SUCCESS

    def _compile_fully_connected(self, arguments: FullyConnectedArguments) -> Tuple[Op, int, int]:
        weights_t = arguments.weights.to(self.torch_device).t().contiguous()
        biases = arguments.biases.to(self.torch_device).unsqueeze(1)
        activation = _ACTIVATIONS[arguments.activation]

        def fully_connected(x: torch.Tensor) -> torch.Tensor:
            return activation(torch.addmm(biases, weights_t, x))

        features, classes = arguments.weights.shape
        return fully_connected, int(features), int(classes)

    def execute(
        self,
        workload: Workload,
        inputs: Sequence[torch.Tensor],
        outputs: Sequence[torch.Tensor],
    ) -> Status:
        if workload is None or workload.released or workload.program is None:
            return Status.ERROR_INVALID_POINTER
        if len(inputs) != 1 or len(outputs) != 1:
            return Status.ERROR_INVALID_INPUT_OUTPUT

        program: _Program = workload.program
        source, target = inputs[0], outputs[0]
        if tuple(source.shape) != (program.input_features, workload.batch_size):
            return Status.ERROR_DATA_NOT_CONSISTENT
        if tuple(target.shape) != (program.output_features, workload.batch_size):
            return Status.ERROR_DATA_NOT_CONSISTENT

        with torch.no_grad():
            value = source.to(self.torch_device)
            for op in program.ops:
                value = op(value)
            target.copy_(value)
        return Status.SUCCESS

    def release_workload(self, workload: Workload):
        super().release_workload(workload)
        self.live_workloads -= 1


def discover_devices() -> DeviceCatalog:
    """Catalog of the devices available on this machine."""
    catalog = DeviceCatalog([TorchDevice('cpu')])
    if torch.cuda.is_available():
        catalog.add(TorchDevice('cuda'))
    return catalog
