"""
Tests for the naive reference kernels.
"""

import math

import pytest
import torch

from kernel_harness.core.engine import ActivationFunction
from kernel_harness.core.reference import fully_connected_reference, softmax_reference


class TestFullyConnectedReference:
    """Test the fully connected oracle on hand-computed values."""

    def setup_method(self):
        self.work_item = torch.tensor([[3.0], [4.0]])   # [features=2, batch=1]
        self.weights = torch.tensor([[2.0], [1.0]])     # [features=2, classes=1]

    def test_identity_activation(self):
        output = fully_connected_reference(
            self.work_item, self.weights, torch.tensor([5.0]), ActivationFunction.NONE
        )

        assert output.shape == (1, 1)
        assert output.item() == 15.0

    def test_relu_clamps_negative(self):
        output = fully_connected_reference(
            self.work_item, self.weights, torch.tensor([-20.0]), ActivationFunction.RELU
        )

        assert output.item() == 0.0

    def test_logistic_and_tanh(self):
        biases = torch.tensor([-10.0])

        logistic = fully_connected_reference(self.work_item, self.weights, biases, ActivationFunction.LOGISTIC)
        tanh = fully_connected_reference(self.work_item, self.weights, biases, ActivationFunction.TANH)

        assert logistic.item() == pytest.approx(0.5)
        assert tanh.item() == pytest.approx(0.0)

    def test_batches_and_classes(self):
        work_item = torch.tensor([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])   # 3 features, batch 2
        weights = torch.tensor([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])      # 3 features, 2 classes
        biases = torch.tensor([0.5, -0.5])

        output = fully_connected_reference(work_item, weights, biases)

        expected = torch.tensor([[6.5, 8.5], [7.5, 9.5]])
        assert torch.equal(output, expected)

    def test_writes_into_out(self):
        out = torch.zeros(1, 1)
        result = fully_connected_reference(self.work_item, self.weights, torch.tensor([5.0]), out=out)

        assert result is out
        assert out.item() == 15.0

    def test_long_accumulation_uses_wide_precision(self):
        # 1 + 4096 * 2^-24 is not representable by summing in float32
        features = 4097
        work_item = torch.full((features, 1), 2.0 ** -24)
        work_item[0, 0] = 1.0
        weights = torch.ones(features, 1)

        output = fully_connected_reference(work_item, weights, torch.zeros(1))

        exact = 1.0 + 4096 * 2.0 ** -24
        assert abs(output.item() - exact) <= 2.0 ** -23

    def test_feature_mismatch_fails_fast(self):
        with pytest.raises(AssertionError):
            fully_connected_reference(torch.zeros(3, 1), self.weights, torch.zeros(1))


class TestSoftmaxReference:
    """Test the softmax oracle."""

    def test_columns_sum_to_one(self):
        work_item = torch.tensor([[1.0, 0.0], [2.0, 0.0], [3.0, 0.0]])

        output = softmax_reference(work_item)

        assert torch.allclose(output.sum(dim=0), torch.ones(2))
        assert torch.allclose(output[:, 1], torch.full((3,), 1.0 / 3.0))

    def test_known_values(self):
        output = softmax_reference(torch.tensor([[0.0], [math.log(3.0)]]))

        assert output[0, 0].item() == pytest.approx(0.25)
        assert output[1, 0].item() == pytest.approx(0.75)

    def test_large_inputs_do_not_overflow(self):
        output = softmax_reference(torch.tensor([[1000.0], [1000.0]]))

        assert torch.allclose(output, torch.full((2, 1), 0.5))
