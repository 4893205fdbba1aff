"""
Workflows used by the bundled tests.

Each provider builds a small graph ``input -> <operation> -> output`` whose
parameters are drawn from a seeded generator, so a run is reproducible.
"""

from typing import Optional, Tuple

import torch

from .core.config import HarnessConfig
from .core.engine import (
    ActivationFunction,
    DeviceInterface,
    FullyConnectedArguments,
    WorkItem,
    WorkItemType,
    Workflow,
    WorkflowCatalog,
    WorkflowProvider,
)
from .core.tensor import populate


class FullyConnectedWorkflow(WorkflowProvider):
    """
    ``input -> fully_connected -> output`` with random weights and biases.
    """

    name = "workflow_for_testing_float_fully_connected_random"
    node_name = "fully_connected"

    def __init__(
        self,
        fc_size: int = 512,
        classes: int = 128,
        activation: ActivationFunction = ActivationFunction.RELU,
        weight_range: Tuple[float, float] = (-0.01, 0.01),
        bias_range: Tuple[float, float] = (-1.0, 1.0),
        seed: int = 42,
    ):
        super().__init__()
        self.fc_size = fc_size
        self.classes = classes
        self.activation = activation
        self.weight_range = weight_range
        self.bias_range = bias_range
        self.seed = seed

    def build(self, device: Optional[DeviceInterface]) -> Optional[Workflow]:
        if device is None:
            return None

        generator = torch.Generator().manual_seed(self.seed)
        weights = populate(torch.empty(self.fc_size, self.classes), *self.weight_range, generator=generator)
        biases = populate(torch.empty(self.classes), *self.bias_range, generator=generator)

        self.workflow = Workflow(
            name=self.name,
            items=[
                WorkItem("input", WorkItemType.INPUT),
                WorkItem(
                    self.node_name,
                    WorkItemType.FULLY_CONNECTED,
                    FullyConnectedArguments(weights, biases, self.activation),
                    inputs=["input"],
                ),
                WorkItem("output", WorkItemType.OUTPUT, inputs=[self.node_name]),
            ],
        )
        return self.workflow


class SoftmaxWorkflow(WorkflowProvider):
    """``input -> softmax -> output`` over ``length`` features."""

    name = "workflow_for_testing_float_softmax_random"
    node_name = "softmax"

    def __init__(self, length: int = 1000):
        super().__init__()
        self.length = length

    def build(self, device: Optional[DeviceInterface]) -> Optional[Workflow]:
        if device is None:
            return None
        self.workflow = Workflow(
            name=self.name,
            items=[
                WorkItem("input", WorkItemType.INPUT),
                WorkItem(self.node_name, WorkItemType.SOFTMAX, self.length, inputs=["input"]),
                WorkItem("output", WorkItemType.OUTPUT, inputs=[self.node_name]),
            ],
        )
        return self.workflow


def default_workflows(config: HarnessConfig) -> WorkflowCatalog:
    """Catalog of the workflows the bundled tests look up by name."""
    return WorkflowCatalog([
        FullyConnectedWorkflow(seed=config.seed),
        SoftmaxWorkflow(),
    ])
