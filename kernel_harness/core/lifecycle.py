"""
Lifecycle shared by every kernel test.

A test moves through ``CREATED -> INITIALIZED -> RUNNING -> DONE``, or
ends early in ``FAILED`` when initialization does not succeed. Every phase
(init, each sub-case of the run, the run summary, done) is timed and
recorded as a ``MeasurementResult``; an exception raised inside a phase is
turned into a failing result with an ``error: ...`` note and never leaves
the phase.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterable, Iterator, Optional, Sequence

import torch

from .context import HarnessContext
from .engine import DeviceInterface, WorkflowProvider, Workflow, WorkloadDataType
from .results import MeasurementResult
from .tensor import TensorScope
from .timer import Timer


class LifecycleState(Enum):
    CREATED = "created"
    INITIALIZED = "initialized"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class Phase:
    """The result being built by a running phase, plus its verdict so far."""

    def __init__(self, description: str):
        self.result = MeasurementResult(description)
        self.ok = True

    def note(self, text: str):
        self.result.append_note(text)

    def fail(self, text: Optional[str] = None):
        self.ok = False
        if text:
            self.note(text)


class KernelTest(ABC):
    """
    Abstract base class for kernel tests.

    Subclasses describe a configuration matrix and how to check one entry
    of it. The base class drives the lifecycle and records the results.

    Example:
        class MyTest(KernelTest):
            description = "my op float cpu"

            def configurations(self):
                return (1, 8)

            def run_case(self, batch, phase, scope):
                output = scope.allocate((16, batch))
                ...
                return compare(output, reference, 1e-5)
    """

    description: str = "kernel test"

    def __init__(self, context: HarnessContext, device_name: Optional[str] = None):
        """
        Args:
            context: Harness state for this run
            device_name: Catalog name of the tested device (defaults to the
                configured device)
        """
        self.context = context
        self.device_name = device_name or context.config.device_name
        self.device: Optional[DeviceInterface] = None
        self.state = LifecycleState.CREATED

    # Hooks for subclasses

    def setup(self):
        """Acquire external resources. Raise on failure."""
        if self.context.devices is None:
            raise RuntimeError("Can't find aggregator of devices")
        self.device = self.context.devices.get(self.device_name)

    def teardown(self):
        """Release what ``setup()`` acquired. Called even if setup failed."""
        pass

    @abstractmethod
    def configurations(self) -> Iterable[Any]:
        """Configuration matrix; one sub-case per entry, run in order."""
        pass

    @abstractmethod
    def run_case(self, config: Any, phase: Phase, scope: TensorScope) -> bool:
        """
        Check one configuration.

        Args:
            config: Entry of the configuration matrix
            phase: Phase of this sub-case, for notes
            scope: Allocate every tensor of the sub-case through it

        Returns:
            True if the engine output matched the reference
        """
        pass

    def case_description(self, config: Any) -> str:
        return str(config)

    # Lifecycle

    @contextmanager
    def phase(self, description: str) -> Iterator[Phase]:
        """Time a phase and record its result, converting errors into notes."""
        phase = Phase(description)
        timer = Timer(synchronize=self.context.config.device == 'cuda')
        try:
            yield phase
        except Exception as e:
            phase.fail(f"error: {e}")
        phase.result.finish(phase.ok, timer)
        self.context.aggregator.record(phase.result)
        self._log(f"{'PASS' if phase.ok else 'FAIL'} {description}")

    def init(self) -> bool:
        with self.phase(f"INIT: {self.description}") as phase:
            self.setup()
            if self.device is None:
                phase.fail("no device was acquired")
        self._enter(LifecycleState.INITIALIZED if phase.ok else LifecycleState.FAILED)
        return phase.ok

    def done(self) -> bool:
        with self.phase(f"DONE: {self.description}") as phase:
            self.teardown()
        return phase.ok

    def run(self) -> bool:
        """
        Run the whole lifecycle: init, every sub-case, done.

        Returns:
            True if init, every sub-case and done passed
        """
        if self.state is not LifecycleState.CREATED:
            with self.phase(f"RUN SUMMARY: {self.description}") as phase:
                phase.fail(f"test already ran (state: {self.state.value})")
            return False

        print(f"-> Testing: {self.description}")

        if self.init():
            self._enter(LifecycleState.RUNNING)
            passed = self._run_cases()
        else:
            self._log("init failed, skipping run")
            passed = False

        passed = self.done() and passed
        if self.state is not LifecycleState.FAILED:
            self._enter(LifecycleState.DONE)

        print(f"<- Test {'passed' if passed else 'failed'}")
        return passed

    def _run_cases(self) -> bool:
        with self.phase(f"RUN SUMMARY: {self.description}") as summary:
            summary.note(f"run test with {self.device.describe()}")
            for config in self.configurations():
                description = f"RUN PART: ({self.case_description(config)}) execution of {self.description}"
                with self.phase(description) as part:
                    with self.context.allocator.scope() as scope:
                        part.ok = bool(self.run_case(config, part, scope)) and part.ok
                summary.ok = summary.ok and part.ok
        return summary.ok

    def _enter(self, state: LifecycleState):
        self._log(f"state {self.state.value} -> {state.value}")
        self.state = state

    def _log(self, message: str):
        if self.context.config.verbose:
            print(f"  [{self.__class__.__name__}] {message}")


class WorkflowKernelTest(KernelTest):
    """
    A kernel test whose engine result comes from compiling a named workflow.

    ``setup()`` builds the workflow on the tested device and seeds the
    generator used for input fills; ``teardown()`` releases the workflow.
    """

    workflow_name: str = ""
    input_format = WorkloadDataType.F32_1D_BATCH
    output_format = WorkloadDataType.F32_1D_BATCH
    # matches the F32 formats and the parameters the workflows build
    element_type = torch.float32

    def __init__(self, context: HarnessContext, device_name: Optional[str] = None):
        super().__init__(context, device_name)
        self.workflow_provider: Optional[WorkflowProvider] = None
        self.workflow: Optional[Workflow] = None
        self.generator: Optional[torch.Generator] = None

    def setup(self):
        super().setup()
        self.workflow_provider = self.context.workflows.get(self.workflow_name)
        self.workflow = self.workflow_provider.build(self.device)
        if self.workflow is None:
            raise RuntimeError("Workflow has not been initialized")
        self.generator = torch.Generator().manual_seed(self.context.config.seed)

    def teardown(self):
        if self.workflow_provider is not None:
            self.workflow_provider.teardown()
        self.workflow = None

    def execute_workflow(
        self,
        batch: int,
        inputs: Sequence[torch.Tensor],
        outputs: Sequence[torch.Tensor],
        phase: Phase,
    ) -> bool:
        """
        Compile the workflow for ``batch`` and execute it into ``outputs``.

        Returns:
            False, with a note on ``phase``, if compilation or execution failed
        """
        workload, status = self.device.compile(self.workflow, self.input_format, self.output_format, batch)
        if workload is None or not status.ok:
            if workload is not None:
                workload.release()
            phase.fail(f"workload compilation failed for batch = {batch} status: {status.name}")
            return False

        with workload:
            status = self.device.execute(workload, inputs, outputs)
        if not status.ok:
            phase.fail(f"workload execution failed for batch = {batch} status: {status.name}")
            return False
        return True
