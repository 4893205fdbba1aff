"""
Tolerance-based approximate equality between two numeric tensors.

Two tolerance modes are available, and each call site picks one together
with its epsilon:

- ``ToleranceMode.ABSOLUTE``: ``|a - b| <= eps``
- ``ToleranceMode.RELATIVE``: ``|a - b| <= eps * max(|a|, |b|, 1)``

Both are symmetric in ``a`` and ``b``. Arithmetic is carried out in
float64 regardless of the element type. A non-finite element only matches
the identical non-finite value on the other side (NaN with NaN, +inf with
+inf, -inf with -inf).
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

import numpy as np
import torch

ArrayLike = Union[torch.Tensor, np.ndarray]


class ToleranceMode(str, Enum):
    ABSOLUTE = "absolute"
    RELATIVE = "relative"


class MismatchKind(str, Enum):
    NONE = "none"
    SHAPE = "shape"
    NON_FINITE = "non_finite"
    VALUE = "value"


@dataclass(frozen=True)
class ComparisonResult:
    """Detailed comparison outcome.

    Attributes:
        match: True if every element pair is within tolerance
        kind: First reason the comparison failed, in the order shape,
            non-finite, value
        mismatched: Number of element pairs out of tolerance
        max_diff: Largest absolute difference over finite pairs
        first_mismatch: Multi-index of the first mismatching pair
        epsilon: Tolerance used
        mode: Tolerance mode used
    """
    match: bool
    kind: MismatchKind
    mismatched: int
    max_diff: float
    first_mismatch: Optional[Tuple[int, ...]]
    epsilon: float
    mode: ToleranceMode

    def __bool__(self) -> bool:
        return self.match

    def describe(self) -> str:
        if self.match:
            return f"match (max diff {self.max_diff:.3e}, {self.mode.value} eps {self.epsilon:g})"
        if self.kind is MismatchKind.SHAPE:
            return "shape mismatch"
        return (
            f"{self.mismatched} element(s) out of {self.mode.value} tolerance {self.epsilon:g}, "
            f"first at {self.first_mismatch}, max diff {self.max_diff:.3e} ({self.kind.value})"
        )


def _as_float64(data: ArrayLike) -> np.ndarray:
    if isinstance(data, torch.Tensor):
        return data.detach().to(device="cpu", dtype=torch.float64).numpy()
    return np.asarray(data, dtype=np.float64)


def compare_tensors(
    actual: ArrayLike,
    expected: ArrayLike,
    epsilon: float,
    mode: ToleranceMode = ToleranceMode.RELATIVE,
) -> ComparisonResult:
    """
    Compare two tensors element by element.

    Args:
        actual: Output under test
        expected: Reference output
        epsilon: Non-negative tolerance
        mode: How epsilon bounds the difference

    Returns:
        ComparisonResult; a shape mismatch is a failing result, not an error
    """
    if epsilon < 0 or math.isnan(epsilon):
        raise ValueError(f"tolerance must be non-negative, got {epsilon}")
    mode = ToleranceMode(mode)

    a_shape = tuple(actual.shape)
    b_shape = tuple(expected.shape)
    if a_shape != b_shape:
        return ComparisonResult(False, MismatchKind.SHAPE, 0, float("inf"), None, epsilon, mode)

    a = _as_float64(actual)
    b = _as_float64(expected)

    finite_a = np.isfinite(a)
    finite_b = np.isfinite(b)
    both_finite = finite_a & finite_b

    same_non_finite = (~finite_a & ~finite_b) & ((a == b) | (np.isnan(a) & np.isnan(b)))
    non_finite_mismatch = ~both_finite & ~same_non_finite

    a_fin = np.where(both_finite, a, 0.0)
    b_fin = np.where(both_finite, b, 0.0)
    diff = np.abs(a_fin - b_fin)
    if mode is ToleranceMode.ABSOLUTE:
        bound = np.full_like(diff, epsilon)
    else:
        bound = epsilon * np.maximum(np.maximum(np.abs(a_fin), np.abs(b_fin)), 1.0)
    value_mismatch = both_finite & (diff > bound)

    mismatch = non_finite_mismatch | value_mismatch
    mismatched = int(np.count_nonzero(mismatch))
    max_diff = float(diff.max()) if diff.size else 0.0

    if mismatched == 0:
        return ComparisonResult(True, MismatchKind.NONE, 0, max_diff, None, epsilon, mode)

    kind = MismatchKind.NON_FINITE if non_finite_mismatch.any() else MismatchKind.VALUE
    first = tuple(int(i) for i in np.argwhere(mismatch)[0])
    return ComparisonResult(False, kind, mismatched, max_diff, first, epsilon, mode)


def compare(
    actual: ArrayLike,
    expected: ArrayLike,
    epsilon: float,
    mode: ToleranceMode = ToleranceMode.RELATIVE,
) -> bool:
    """Boolean form of ``compare_tensors``."""
    return compare_tensors(actual, expected, epsilon, mode).match
