"""
Tests for activation functions module.

Tests cover:
- ReLU / Leaky ReLU: basic functionality, derivative
- Sigmoid / Tanh / ELU: known values, derivative convention
- Tag resolution for persistence
- Softmax helper: numerical stability, probability distribution properties
"""

import numpy as np
import pytest


class TestReLU:
    """
    Test suite for ReLU (Rectified Linear Unit) activation.

    Formula: ReLU(x) = max(0, x)
    """

    def test_relu_positive_unchanged(self):
        """Positive values should pass through unchanged."""
        from neuralnet.activations import ReLU

        positive_values = np.array([1.0, 2.0, 3.0])
        result = ReLU().function(positive_values)

        assert np.allclose(result, positive_values), (
            "ReLU should not change positive values"
        )

    def test_relu_negative_to_zero(self):
        """Negative values should become zero."""
        from neuralnet.activations import ReLU

        result = ReLU().function(np.array([-1.0, -2.0, -3.0]))

        assert np.allclose(result, 0.0), "ReLU should convert negative values to zero"

    def test_relu_derivative(self):
        """Derivative is 1 for positive values and 0 otherwise (0 at x=0)."""
        from neuralnet.activations import ReLU

        result = ReLU().derivative(np.array([-2.0, 0.0, 0.5, 3.0]))

        np.testing.assert_array_equal(result, [0.0, 0.0, 1.0, 1.0])

    def test_relu_does_not_modify_input(self):
        """The activation returns a new array instead of writing in place."""
        from neuralnet.activations import ReLU

        values = np.array([-1.0, 2.0])
        ReLU().function(values)

        np.testing.assert_array_equal(values, [-1.0, 2.0])


class TestLeakyReLU:
    """Leaky ReLU: slope 0.01 on the negative side."""

    def test_leaky_relu_values(self):
        """Negative inputs are scaled by 0.01, positive inputs kept."""
        from neuralnet.activations import LeakyReLU

        result = LeakyReLU().function(np.array([-2.0, 0.0, 3.0]))

        np.testing.assert_allclose(result, [-0.02, 0.0, 3.0])

    def test_leaky_relu_derivative(self):
        """Derivative is 1 for positive values, 0.01 for the rest."""
        from neuralnet.activations import LeakyReLU

        result = LeakyReLU().derivative(np.array([-0.02, 0.0, 3.0]))

        np.testing.assert_allclose(result, [0.01, 0.01, 1.0])


class TestSigmoid:
    """Sigmoid: derivative is written in terms of the output y."""

    def test_sigmoid_zero(self):
        """sigmoid(0) = 0.5."""
        from neuralnet.activations import Sigmoid

        assert np.isclose(Sigmoid().function(np.array([0.0]))[0], 0.5)

    def test_sigmoid_range(self):
        """Outputs stay strictly between 0 and 1 for moderate inputs."""
        from neuralnet.activations import Sigmoid

        result = Sigmoid().function(np.linspace(-10, 10, 21))

        assert np.all(result > 0) and np.all(result < 1)

    def test_sigmoid_derivative_uses_output(self):
        """derivative(y) = y * (1 - y), evaluated at the post-activation value."""
        from neuralnet.activations import Sigmoid

        sigmoid = Sigmoid()
        x = np.array([-1.0, 0.0, 2.0])
        y = sigmoid.function(x)

        np.testing.assert_allclose(sigmoid.derivative(y), y * (1 - y))
        assert np.isclose(sigmoid.derivative(np.array([0.5]))[0], 0.25)


class TestTanh:
    """Tanh: derivative is 1 - tanh(v)^2 of its argument."""

    def test_tanh_values(self):
        """Matches numpy's tanh."""
        from neuralnet.activations import Tanh

        x = np.array([-1.0, 0.0, 1.5])
        np.testing.assert_allclose(Tanh().function(x), np.tanh(x))

    def test_tanh_derivative(self):
        """derivative(v) = 1 - tanh(v)^2."""
        from neuralnet.activations import Tanh

        v = np.array([-0.5, 0.0, 0.7])
        np.testing.assert_allclose(Tanh().derivative(v), 1 - np.tanh(v) ** 2)
        assert np.isclose(Tanh().derivative(np.array([0.0]))[0], 1.0)


class TestELU:
    """ELU(alpha): x for x >= 0, alpha * (e^x - 1) otherwise."""

    def test_elu_values(self):
        """Negative branch saturates towards -alpha."""
        from neuralnet.activations import ELU

        elu = ELU(0.5)
        result = elu.function(np.array([-1.0, 0.0, 2.0, -50.0]))

        np.testing.assert_allclose(
            result, [0.5 * (np.exp(-1.0) - 1), 0.0, 2.0, -0.5], atol=1e-12
        )

    def test_elu_derivative(self):
        """Derivative is 1 for v >= 0 and alpha * e^v otherwise."""
        from neuralnet.activations import ELU

        result = ELU(2.0).derivative(np.array([-1.0, 0.0, 1.0]))

        np.testing.assert_allclose(result, [2.0 * np.exp(-1.0), 1.0, 1.0])

    def test_elu_tag_embeds_alpha(self):
        """The tag carries the alpha parameter."""
        from neuralnet.activations import ELU

        assert ELU(0.5).tag == "ELU(0.5)"
        assert str(ELU(1)) == "ELU(1.0)"


class TestResolveActivationFunction:
    """Tag parsing used by the binary model format."""

    @pytest.mark.parametrize(
        "tag, expected_type",
        [
            ("RELU()", "ReLU"),
            ("RELU", "ReLU"),
            ("LEAKY_RELU()", "LeakyReLU"),
            ("SIGMOID()", "Sigmoid"),
            ("TANH()", "Tanh"),
            ("ELU(0.25)", "ELU"),
        ],
    )
    def test_resolves_known_tags(self, tag, expected_type):
        """Every variant tag resolves to the matching class."""
        from neuralnet.activations import resolve_activation_function

        activation = resolve_activation_function(tag)

        assert type(activation).__name__ == expected_type

    def test_tag_round_trip(self):
        """Resolving an activation's own tag gives an equal activation."""
        from neuralnet.activations import (
            ELU,
            LeakyReLU,
            ReLU,
            Sigmoid,
            Tanh,
            resolve_activation_function,
        )

        for activation in (ReLU(), LeakyReLU(), Sigmoid(), Tanh(), ELU(0.3)):
            assert resolve_activation_function(activation.tag) == activation

    def test_factories_match_tags(self):
        """RELU(), LEAKY_RELU(), SIGMOID(), TANH() and ELU(a) build the tagged variant."""
        from neuralnet import ELU, LEAKY_RELU, RELU, SIGMOID, TANH
        from neuralnet.activations import LeakyReLU, ReLU, Sigmoid, Tanh

        assert isinstance(RELU(), ReLU) and RELU().tag == "RELU()"
        assert isinstance(LEAKY_RELU(), LeakyReLU) and LEAKY_RELU().tag == "LEAKY_RELU()"
        assert isinstance(SIGMOID(), Sigmoid) and SIGMOID().tag == "SIGMOID()"
        assert isinstance(TANH(), Tanh) and TANH().tag == "TANH()"
        assert ELU(0.5).tag == "ELU(0.5)"
        assert RELU() is not RELU()

    def test_elu_alpha_parsed(self):
        """ELU alpha is restored exactly."""
        from neuralnet.activations import resolve_activation_function

        assert resolve_activation_function("ELU(0.1)").alpha == 0.1

    @pytest.mark.parametrize(
        "tag", ["SOFTPLUS()", "", "relu()", "ELU()", "ELU(abc)", "SIGMOID(1.0)", "ELU(1,2)"]
    )
    def test_unknown_tags_fail(self, tag):
        """Unknown variants and malformed parameters raise UnresolvableFunctionError."""
        from neuralnet.activations import resolve_activation_function
        from neuralnet.errors import UnresolvableFunctionError

        with pytest.raises(UnresolvableFunctionError):
            resolve_activation_function(tag)


class TestSoftmax:
    """
    Test suite for the softmax helper.

    Formula: softmax(x)_i = exp(x_i) / sum(exp(x_j))
    """

    def test_softmax_output_sums_to_one(self):
        """Softmax output should be a valid probability distribution (sums to 1)."""
        from neuralnet.activations import softmax

        output_probabilities = softmax(np.array([1.0, 2.0, 3.0, 4.0, 5.0]))

        assert np.isclose(np.sum(output_probabilities), 1.0), (
            "Softmax output must sum to 1.0"
        )

    def test_softmax_numerical_stability_large_values(self):
        """Softmax should not overflow with large input values."""
        from neuralnet.activations import softmax

        output_probabilities = softmax(np.array([1000.0, 1001.0, 1002.0]))

        assert not np.any(np.isnan(output_probabilities)), (
            "Softmax should handle large values without NaN"
        )
        assert np.isclose(np.sum(output_probabilities), 1.0)

    def test_softmax_derivative_matches_jacobian_row_sums(self):
        """Row sums of the Jacobian vanish because the outputs sum to 1."""
        from neuralnet.activations import softmax_derivative

        result = softmax_derivative(np.array([0.5, -1.0, 2.0]))

        np.testing.assert_allclose(result, 0.0, atol=1e-12)
