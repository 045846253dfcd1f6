"""
Tests for loss functions module.

Tests cover:
- Each loss variant against hand-computed values
- Missing numeric guard on logarithmic losses
- Length validation
- Tag resolution, including "NONE"
"""

import math

import numpy as np
import pytest

from neuralnet.errors import DimensionMismatchError, UnresolvableFunctionError
from neuralnet.losses import (
    BinaryCrossEntropyLoss,
    CrossEntropyLoss,
    HingeLoss,
    LogLikelihoodLoss,
    MeanAbsoluteError,
    MeanSquaredError,
    resolve_loss_function,
)


class TestLossValues:
    """Known values for every variant."""

    def test_mean_squared_error(self):
        """mean((target - output)^2)."""
        loss = MeanSquaredError().function([0.5, 1.0], [1.0, 0.0])

        assert math.isclose(loss, (0.25 + 1.0) / 2)

    def test_mean_absolute_error(self):
        """mean(|output - target|)."""
        loss = MeanAbsoluteError().function([0.5, -1.0], [1.0, 1.0])

        assert math.isclose(loss, (0.5 + 2.0) / 2)

    def test_cross_entropy(self):
        """-mean(target * ln(output))."""
        loss = CrossEntropyLoss().function([0.25, 0.75], [0.0, 1.0])

        assert math.isclose(loss, -math.log(0.75) / 2)

    def test_binary_cross_entropy(self):
        """-mean(t ln(o) + (1 - t) ln(1 - o))."""
        loss = BinaryCrossEntropyLoss().function([0.8, 0.3], [1.0, 0.0])

        expected = -(math.log(0.8) + math.log(0.7)) / 2
        assert math.isclose(loss, expected)

    def test_hinge(self):
        """mean(max(0, 1 - target * output))."""
        loss = HingeLoss().function([0.5, 2.0, -0.5], [1.0, 1.0, 1.0])

        assert math.isclose(loss, (0.5 + 0.0 + 1.5) / 3)

    def test_log_likelihood(self):
        """Sum of -(o_i - ln(sum e^o)) over indices where the target is 1."""
        output = np.array([1.0, 2.0, 0.5])
        loss = LogLikelihoodLoss().function(output, [0.0, 1.0, 0.0])

        expected = -(2.0 - math.log(np.sum(np.exp(output))))
        assert math.isclose(loss, expected)

    def test_log_likelihood_ignores_non_one_targets(self):
        """Without a target equal to 1 the loss is 0."""
        loss = LogLikelihoodLoss().function([1.0, 2.0], [0.0, 0.5])

        assert loss == 0.0

    def test_loss_is_zero_for_perfect_output(self):
        """Distance-based losses vanish when output equals target."""
        target = [0.0, 1.0, 0.5]

        assert MeanSquaredError().function(target, target) == 0.0
        assert MeanAbsoluteError().function(target, target) == 0.0


class TestLossEdgeCases:
    """Behaviour outside the comfortable numeric range."""

    def test_binary_cross_entropy_saturated_output_is_not_clamped(self):
        """An output of exactly 1 with target 0 yields inf, not a clamped value."""
        loss = BinaryCrossEntropyLoss().function([1.0], [0.0])

        assert math.isinf(loss) or math.isnan(loss)

    def test_length_mismatch(self):
        """Output and target must have the same length."""
        with pytest.raises(DimensionMismatchError):
            MeanSquaredError().function([1.0, 2.0], [1.0])


class TestResolveLossFunction:
    """Tag parsing used by the binary model format."""

    def test_none_tag(self):
        """'NONE' means no loss function."""
        assert resolve_loss_function("NONE") is None

    @pytest.mark.parametrize(
        "loss",
        [
            MeanSquaredError(),
            MeanAbsoluteError(),
            CrossEntropyLoss(),
            BinaryCrossEntropyLoss(),
            HingeLoss(),
            LogLikelihoodLoss(),
        ],
    )
    def test_round_trip(self, loss):
        """Each variant resolves from its own tag."""
        assert resolve_loss_function(loss.tag) == loss

    @pytest.mark.parametrize("tag", ["MEDIAN", "HUBER_LOSS", "mean_squared_error", "NONE(1)"])
    def test_unknown_tag(self, tag):
        """Unknown tags raise UnresolvableFunctionError."""
        with pytest.raises(UnresolvableFunctionError):
            resolve_loss_function(tag)
