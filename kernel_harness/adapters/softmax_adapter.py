"""
Softmax test against the naive reference kernel.
"""

from typing import Optional, Sequence

from ..core.comparator import ToleranceMode, compare_tensors
from ..core.context import HarnessContext
from ..core.reference import softmax_reference
from ..core.tensor import TensorScope, populate
from ..core.lifecycle import Phase, WorkflowKernelTest
from ..workflows import SoftmaxWorkflow


class SoftmaxFloatCpuRandomTest(WorkflowKernelTest):
    """Random ``[-10, 10]`` inputs through a 1000-way softmax."""

    description = "softmax float cpu random"
    workflow_name = SoftmaxWorkflow.name

    BATCH_SIZES = (1, 8, 48)
    LENGTH = 1000
    INPUT_RANGE = (-10.0, 10.0)
    # outputs lie in [0, 1], so the relative bound acts as an absolute one
    TOLERANCE = 1e-5
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

    def run_case(self, batch: int, phase: Phase, scope: TensorScope) -> bool:
        dtype = self.element_type

        work_item = scope.allocate((self.LENGTH, batch), dtype=dtype)
        populate(work_item, *self.INPUT_RANGE, generator=self.generator)

        workload_output = scope.allocate((self.LENGTH, batch), dtype=dtype)
        populate(workload_output, 0.0)

        if not self.execute_workflow(batch, [work_item], [workload_output], phase):
            return False

        naive_output = scope.allocate((self.LENGTH, batch), dtype=dtype)
        softmax_reference(work_item, out=naive_output)

        comparison = compare_tensors(workload_output, naive_output, self.TOLERANCE, self.TOLERANCE_MODE)
        if not comparison:
            phase.note(comparison.describe())
        return comparison.match
