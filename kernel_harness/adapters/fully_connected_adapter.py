"""
Fully connected layer test against the naive reference kernel.
"""

from typing import Optional, Sequence

from ..core.comparator import ToleranceMode, compare_tensors
from ..core.context import HarnessContext
from ..core.engine import FullyConnectedArguments, WorkItemType
from ..core.reference import fully_connected_reference
from ..core.tensor import TensorScope, populate
from ..core.lifecycle import Phase, WorkflowKernelTest
from ..workflows import FullyConnectedWorkflow


class FullyConnectedFloatCpuRandomTest(WorkflowKernelTest):
    """
    Random ``[0, 255]`` inputs through a 512 -> 128 fully connected layer
    with RELU, for several batch sizes.
    """

    description = "fully connected float cpu random"
    workflow_name = FullyConnectedWorkflow.name

    BATCH_SIZES = (1, 8, 48)
    FC_SIZE = 512
    CLASSES = 128
    INPUT_RANGE = (0.0, 255.0)
    # single precision accumulation over FC_SIZE terms
    TOLERANCE = 1.5e-3
    TOLERANCE_MODE = ToleranceMode.RELATIVE

    def __init__(
        self,
        context: HarnessContext,
        batch_sizes: Optional[Sequence[int]] = None,
        device_name: Optional[str] = None,
    ):
        super().__init__(context, device_name)
        self.batch_sizes = tuple(batch_sizes) if batch_sizes is not None else self.BATCH_SIZES

    def configurations(self):
        return self.batch_sizes

    def case_description(self, batch: int) -> str:
        return f"batch {batch}"

    def read_parameters(self) -> FullyConnectedArguments:
        """Weights and biases of the item fed by the workflow input."""
        for item in self.workflow.uses(self.workflow.input_item.name):
            if item.type is WorkItemType.FULLY_CONNECTED:
                return self.workflow_provider.parameters(item.name)
        raise RuntimeError(f"workflow '{self.workflow.name}' has no fully connected item after its input")

    def run_case(self, batch: int, phase: Phase, scope: TensorScope) -> bool:
        dtype = self.element_type

        work_item = scope.allocate((self.FC_SIZE, batch), dtype=dtype)
        populate(work_item, *self.INPUT_RANGE, generator=self.generator)

        workload_output = scope.allocate((self.CLASSES, batch), dtype=dtype)
        populate(workload_output, 0.0)

        if not self.execute_workflow(batch, [work_item], [workload_output], phase):
            return False

        arguments = self.read_parameters()

        naive_output = scope.allocate((self.CLASSES, batch), dtype=dtype)
        fully_connected_reference(
            work_item, arguments.weights, arguments.biases, arguments.activation, out=naive_output
        )

        comparison = compare_tensors(workload_output, naive_output, self.TOLERANCE, self.TOLERANCE_MODE)
        if not comparison:
            phase.note(comparison.describe())
        return comparison.match
