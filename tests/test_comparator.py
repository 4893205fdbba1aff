"""
Tests for the tolerance-based comparator.
"""

import math

import numpy as np
import pytest
import torch

from kernel_harness.core.comparator import (
    MismatchKind,
    ToleranceMode,
    compare,
    compare_tensors,
)


class TestComparator:
    """Test approximate equality between tensors."""

    @pytest.mark.parametrize("mode", list(ToleranceMode))
    @pytest.mark.parametrize("epsilon", [0.0, 1e-6, 1.5e-3])
    def test_tensor_matches_itself(self, mode, epsilon):
        t = torch.tensor([[0.0, -1.5, 3.0e8], [float('nan'), float('inf'), -float('inf')]])
        assert compare(t, t, epsilon, mode)

    @pytest.mark.parametrize("mode", list(ToleranceMode))
    def test_symmetry(self, mode):
        generator = torch.Generator().manual_seed(0)
        a = torch.rand(16, 4, generator=generator) * 10
        b = a + (torch.rand(16, 4, generator=generator) - 0.5) * 2e-3
        b[3, 1] = float('nan')

        for eps in (1e-4, 1e-3, 1e-2):
            assert compare(a, b, eps, mode) == compare(b, a, eps, mode)

    def test_shape_mismatch_is_a_failure(self):
        result = compare_tensors(torch.zeros(2, 3), torch.zeros(3, 2), 1.0)

        assert not result.match
        assert result.kind is MismatchKind.SHAPE
        assert not compare(torch.zeros(4), torch.zeros(4, 1), 1.0)

    def test_absolute_mode(self):
        a = torch.tensor([1000.0, 0.0])
        b = torch.tensor([1000.5, 0.0])

        assert not compare(a, b, 1e-1, ToleranceMode.ABSOLUTE)
        assert compare(a, b, 1.0, ToleranceMode.ABSOLUTE)

    def test_relative_mode_scales_with_magnitude(self):
        a = torch.tensor([1000.0])
        b = torch.tensor([1000.5])

        # 0.5 <= 1e-3 * 1000.5
        assert compare(a, b, 1e-3, ToleranceMode.RELATIVE)
        assert not compare(a, b, 1e-4, ToleranceMode.RELATIVE)

    def test_relative_mode_floor_of_one(self):
        a = torch.tensor([1e-6])
        b = torch.tensor([2e-6])

        # bound is eps * 1 near zero, not eps * 2e-6
        assert compare(a, b, 1e-5, ToleranceMode.RELATIVE)

    def test_non_finite_values(self):
        nan, inf = float('nan'), float('inf')

        assert compare(torch.tensor([nan]), torch.tensor([nan]), 0.0)
        assert compare(torch.tensor([-inf]), torch.tensor([-inf]), 0.0)
        assert not compare(torch.tensor([inf]), torch.tensor([-inf]), 1e9)
        assert not compare(torch.tensor([nan]), torch.tensor([1.0]), 1e9)
        assert not compare(torch.tensor([inf]), torch.tensor([3.0e38]), 1.0)

        result = compare_tensors(torch.tensor([1.0, nan]), torch.tensor([1.0, 2.0]), 1.0)
        assert result.kind is MismatchKind.NON_FINITE
        assert result.first_mismatch == (1,)

    def test_mismatch_details(self):
        expected = torch.zeros(3, 4)
        actual = expected.clone()
        actual[1, 2] = 0.5
        actual[2, 0] = -0.25

        result = compare_tensors(actual, expected, 1e-3)

        assert not result
        assert result.kind is MismatchKind.VALUE
        assert result.mismatched == 2
        assert result.first_mismatch == (1, 2)
        assert math.isclose(result.max_diff, 0.5)
        assert "2 element(s)" in result.describe()

    def test_numpy_and_torch_inputs(self):
        a = np.array([1.0, 2.0], dtype=np.float32)
        b = torch.tensor([1.0, 2.0])

        assert compare(a, b, 0.0)

    def test_float64_evaluation(self):
        a = torch.tensor([16777216.0], dtype=torch.float32)
        b = torch.tensor([16777217.0], dtype=torch.float64)

        assert not compare(a, b, 0.0, ToleranceMode.ABSOLUTE)

    def test_empty_tensors_match(self):
        assert compare(torch.zeros(0, 3), torch.zeros(0, 3), 0.0)

    def test_negative_tolerance_is_rejected(self):
        with pytest.raises(ValueError):
            compare(torch.zeros(1), torch.zeros(1), -1e-3)
