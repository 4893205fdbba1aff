"""
Naive reference kernels.

Each kernel recomputes an operation straight from its definition, one
output element at a time, with float64 accumulation. They are slow on
purpose and never share code with an execution engine, so they can serve
as the oracle the engine output is compared against.
"""

import math
from typing import Optional

import torch

from .engine import ActivationFunction


def _activate(value: float, activation: ActivationFunction) -> float:
    if activation is ActivationFunction.NONE:
        return value
    if activation is ActivationFunction.RELU:
        return max(0.0, value)
    if activation is ActivationFunction.LOGISTIC:
        if value >= 0:
            return 1.0 / (1.0 + math.exp(-value))
        z = math.exp(value)
        return z / (1.0 + z)
    if activation is ActivationFunction.TANH:
        return math.tanh(value)
    raise ValueError(f"unsupported activation {activation}")


def _rows(tensor: torch.Tensor) -> list:
    return tensor.detach().to(device="cpu", dtype=torch.float64).numpy().tolist()


def _store(values: list, shape: tuple, like: torch.Tensor, out: Optional[torch.Tensor]) -> torch.Tensor:
    result = torch.tensor(values, dtype=torch.float64).reshape(shape)
    if out is None:
        return result.to(dtype=like.dtype, device=like.device)
    assert tuple(out.shape) == tuple(result.shape), \
        f"output shape {tuple(out.shape)} does not match {tuple(result.shape)}"
    with torch.no_grad():
        out.copy_(result)
    return out


def fully_connected_reference(
    work_item: torch.Tensor,
    weights: torch.Tensor,
    biases: torch.Tensor,
    activation: ActivationFunction = ActivationFunction.NONE,
    out: Optional[torch.Tensor] = None,
) -> torch.Tensor:
    """
    Fully connected layer, computed element by element.

    Args:
        work_item: Input of shape ``[features, batch]``
        weights: Shape ``[features, output_classes]``
        biases: Shape ``[output_classes]``
        activation: Applied after the bias
        out: Optional ``[output_classes, batch]`` tensor to write into

    Returns:
        Output of shape ``[output_classes, batch]``
    """
    assert work_item.dim() == 2 and weights.dim() == 2 and biases.dim() == 1
    assert work_item.shape[0] == weights.shape[0], \
        f"input features {work_item.shape[0]} != weight features {weights.shape[0]}"
    assert biases.shape[0] == weights.shape[1], \
        f"bias length {biases.shape[0]} != output classes {weights.shape[1]}"

    fc_length, classes = weights.shape
    batch_input = work_item.shape[1]

    x = _rows(work_item)
    w = _rows(weights)
    b = _rows(biases)

    output = [[0.0] * batch_input for _ in range(classes)]
    for batch in range(batch_input):
        for output_element in range(classes):
            accumulator = 0.0
            for input_element in range(fc_length):
                accumulator += x[input_element][batch] * w[input_element][output_element]
            accumulator += b[output_element]
            output[output_element][batch] = _activate(accumulator, activation)

    return _store(output, (classes, batch_input), work_item, out)


def softmax_reference(work_item: torch.Tensor, out: Optional[torch.Tensor] = None) -> torch.Tensor:
    """
    Softmax over the feature dimension of a ``[features, batch]`` input.
    """
    assert work_item.dim() == 2
    length, batch_input = work_item.shape
    x = _rows(work_item)

    output = [[0.0] * batch_input for _ in range(length)]
    for batch in range(batch_input):
        column = [x[i][batch] for i in range(length)]
        peak = max(column) if column else 0.0
        exps = [math.exp(v - peak) for v in column]
        total = math.fsum(exps)
        for i in range(length):
            output[i][batch] = exps[i] / total

    return _store(output, (length, batch_input), work_item, out)
