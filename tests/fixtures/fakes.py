"""Fakes for lifecycle tests.

CountingAllocator records every allocation so tests can assert that nothing
is left unreleased; FaultyDevice wraps the torch engine and injects the
failures a real engine can report.
"""
from typing import List, Optional, Sequence, Tuple

import torch

from kernel_harness.core.engine import DeviceInterface, Status, Workload, WorkflowProvider
from kernel_harness.core.lifecycle import KernelTest
from kernel_harness.core.tensor import TensorAllocator
from kernel_harness.devices import TorchDevice


class CountingAllocator(TensorAllocator):
    """Allocator that counts, and can refuse, allocations."""

    def __init__(self, fail_on: Optional[int] = None):
        super().__init__("cpu")
        self.fail_on = fail_on
        self.sizes: List[Tuple[int, ...]] = []

    def allocate(self, sizes, dtype=torch.float32, device=None):
        if self.fail_on is not None and self.allocations + 1 == self.fail_on:
            self.fail_on = None
            raise MemoryError(f"unable to allocate {tuple(sizes)}")
        tensor = super().allocate(sizes, dtype=dtype, device=device)
        self.sizes.append(tuple(sizes))
        return tensor


class FaultyDevice(DeviceInterface):
    """Torch engine with injectable compile/execute failures."""

    name = "device_cpu"

    def __init__(
        self,
        compile_status: Status = Status.SUCCESS,
        execute_status: Status = Status.SUCCESS,
        fail_batches: Sequence[int] = (),
        offset: float = 0.0,
        compile_returns_workload: bool = False,
    ):
        self.engine = TorchDevice('cpu')
        self.compile_status = compile_status
        self.execute_status = execute_status
        self.fail_batches = tuple(fail_batches)
        self.offset = offset
        self.compile_returns_workload = compile_returns_workload
        self.compiled = 0
        self.released = 0

    def describe(self) -> str:
        return "faulty " + self.engine.describe()

    def compile(self, workflow, input_format, output_format, batch_size):
        status = self.compile_status
        if batch_size in self.fail_batches:
            status = Status.ERROR_OTHER
        if not status.ok:
            if self.compile_returns_workload:
                self.compiled += 1
                return Workload(self, batch_size), status
            return None, status
        workload, status = self.engine.compile(workflow, input_format, output_format, batch_size)
        if workload is not None:
            self.compiled += 1
            workload.device = self
        return workload, status

    def execute(self, workload, inputs, outputs):
        if not self.execute_status.ok:
            return self.execute_status
        status = self.engine.execute(workload, inputs, outputs)
        if status.ok and self.offset:
            outputs[0].add_(self.offset)
        return status

    def release_workload(self, workload):
        super().release_workload(workload)
        self.released += 1


class ScriptedTest(KernelTest):
    """A test whose sub-case verdicts are given up front.

    Each entry of ``cases`` is the value ``run_case`` returns for that
    sub-case, or an exception it raises.
    """

    def __init__(self, context, description, cases=(True,), fail_setup=False, fail_teardown=False):
        super().__init__(context)
        self.description = description
        self.cases = list(cases)
        self.fail_setup = fail_setup
        self.fail_teardown = fail_teardown
        self.teardown_calls = 0
        self.ran_cases: List[int] = []

    def setup(self):
        if self.fail_setup:
            raise RuntimeError("device not found")
        super().setup()

    def teardown(self):
        self.teardown_calls += 1
        if self.fail_teardown:
            raise RuntimeError("workflow teardown failed")

    def configurations(self):
        return range(len(self.cases))

    def case_description(self, index):
        return f"case {index}"

    def run_case(self, index, phase, scope):
        self.ran_cases.append(index)
        scope.allocate((4, 2))
        outcome = self.cases[index]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class UnbuildableWorkflow(WorkflowProvider):
    """Provider whose ``build`` hands back no workflow."""

    name = "workflow_that_cannot_be_built"

    def __init__(self):
        super().__init__()
        self.build_calls = 0
        self.teardown_calls = 0

    def build(self, device):
        self.build_calls += 1
        return None

    def teardown(self):
        self.teardown_calls += 1
        super().teardown()
