"""
Activation Functions for Feedforward Networks

This module implements the activation functions a network applies after
every affine layer, together with the derivative used by backpropagation.

All implementations are vectorized NumPy operations on 1-D float arrays.

Derivative argument convention:
    The trainer always calls ``derivative`` with the cached post-activation
    output ``y = f(x)`` of a neuron. Each variant applies its own formula to
    that value:

    ========== ============================ ==========================
    Variant    f(x)                         derivative(v)
    ========== ============================ ==========================
    RELU       max(0, x)                    1 if v > 0 else 0
    LEAKY_RELU x if x > 0 else 0.01x        1 if v > 0 else 0.01
    SIGMOID    1 / (1 + e^-x)               v * (1 - v)
    TANH       tanh(x)                      1 - tanh(v)^2
    ELU(a)     x if x >= 0 else a(e^x - 1)  1 if v >= 0 else a * e^v
    ========== ============================ ==========================

    For RELU, LEAKY_RELU and ELU the sign of ``y`` equals the sign of ``x``,
    so the branch taken is the one of the raw pre-activation. SIGMOID is
    written in terms of its output. TANH and the negative branch of ELU are
    evaluated at ``y`` as given; they are not rewritten in terms of ``x``.

Classes:
    ActivationFunction: Base class (function, derivative, persistence tag)
    ReLU, LeakyReLU, Sigmoid, Tanh, ELU: Concrete variants

Functions:
    RELU, LEAKY_RELU, SIGMOID, TANH: Factories named like the tags;
        ELU(alpha) is the class itself
    resolve_activation_function: Rebuild an activation from its tag
    softmax: Numerically stable softmax helper
    softmax_derivative: Row sums of the softmax Jacobian
"""

import numpy as np

from neuralnet.errors import UnresolvableFunctionError
from neuralnet.tags import parse_float, parse_tag


class ActivationFunction:
    """
    Elementwise activation applied uniformly to every layer.

    Subclasses implement ``function`` and ``derivative`` and set ``name``.
    ``str(activation)`` returns the persistence tag.
    """

    name: str = ""

    def function(self, x: np.ndarray) -> np.ndarray:
        """Apply the activation to a vector of pre-activations."""
        raise NotImplementedError

    def derivative(self, y: np.ndarray) -> np.ndarray:
        """Evaluate the derivative formula of this variant at ``y``."""
        raise NotImplementedError

    @property
    def tag(self) -> str:
        return f"{self.name}()"

    def __str__(self) -> str:
        return self.tag

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.tag!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, ActivationFunction) and self.tag == other.tag

    def __hash__(self) -> int:
        return hash(self.tag)


class ReLU(ActivationFunction):
    """
    Rectified Linear Unit.

    Mathematical Formula:
        ReLU(x) = max(0, x)

    Non-differentiable at x=0; 0 is used as the subgradient there.
    """

    name = "RELU"

    def function(self, x: np.ndarray) -> np.ndarray:
        return np.maximum(0.0, x)

    def derivative(self, y: np.ndarray) -> np.ndarray:
        return (np.asarray(y) > 0).astype(np.float64)


class LeakyReLU(ActivationFunction):
    """
    Leaky ReLU with a fixed negative slope of 0.01.

    Keeps a small gradient for negative inputs so neurons cannot die the way
    plain ReLU units can.
    """

    name = "LEAKY_RELU"
    negative_slope = 0.01

    def function(self, x: np.ndarray) -> np.ndarray:
        return np.where(x > 0, x, self.negative_slope * x)

    def derivative(self, y: np.ndarray) -> np.ndarray:
        return np.where(np.asarray(y) > 0, 1.0, self.negative_slope)


class Sigmoid(ActivationFunction):
    """
    Logistic sigmoid.

    Mathematical Formula:
        sigmoid(x) = 1 / (1 + exp(-x))
        sigmoid'(x) = y * (1 - y)  where y = sigmoid(x)

    The derivative takes the post-activation value y, not x.
    """

    name = "SIGMOID"

    def function(self, x: np.ndarray) -> np.ndarray:
        return 1.0 / (1.0 + np.exp(-x))

    def derivative(self, y: np.ndarray) -> np.ndarray:
        y = np.asarray(y, dtype=np.float64)
        return y * (1.0 - y)


class Tanh(ActivationFunction):
    """Hyperbolic tangent; derivative is 1 - tanh(v)^2."""

    name = "TANH"

    def function(self, x: np.ndarray) -> np.ndarray:
        return np.tanh(x)

    def derivative(self, y: np.ndarray) -> np.ndarray:
        return 1.0 - np.power(np.tanh(y), 2)


class ELU(ActivationFunction):
    """
    Exponential Linear Unit.

    Mathematical Formula:
        ELU(x) = x                   if x >= 0
               = alpha * (e^x - 1)   otherwise

    The tag embeds alpha, e.g. "ELU(0.5)".

    Args:
        alpha: Saturation value for large negative inputs
    """

    name = "ELU"

    def __init__(self, alpha: float = 1.0):
        self.alpha = float(alpha)

    def function(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        # expm1 of the clipped input avoids overflow warnings on the unused branch
        negative = self.alpha * np.expm1(np.minimum(x, 0.0))
        return np.where(x >= 0, x, negative)

    def derivative(self, y: np.ndarray) -> np.ndarray:
        y = np.asarray(y, dtype=np.float64)
        return np.where(y >= 0, 1.0, self.alpha * np.exp(np.minimum(y, 0.0)))

    @property
    def tag(self) -> str:
        return f"{self.name}({self.alpha!r})"


def RELU() -> ReLU:
    return ReLU()


def LEAKY_RELU() -> LeakyReLU:
    return LeakyReLU()


def SIGMOID() -> Sigmoid:
    return Sigmoid()


def TANH() -> Tanh:
    return Tanh()


_PARAMETERLESS = {
    "RELU": ReLU,
    "LEAKY_RELU": LeakyReLU,
    "SIGMOID": Sigmoid,
    "TANH": Tanh,
}


def resolve_activation_function(tag: str) -> ActivationFunction:
    """
    Rebuild an activation function from its persistence tag.

    Args:
        tag: Tag such as "SIGMOID()", "LEAKY_RELU" or "ELU(0.5)"

    Returns:
        A new ActivationFunction instance.

    Raises:
        UnresolvableFunctionError: If the tag names no known variant or its
            parameters are malformed.

    Example:
        >>> resolve_activation_function("ELU(0.5)").alpha
        0.5
    """
    name, parameters = parse_tag(tag, "Activation function")

    if name in _PARAMETERLESS:
        if parameters:
            raise UnresolvableFunctionError(
                f"Activation function {name} takes no parameters, got {tag!r}"
            )
        return _PARAMETERLESS[name]()

    if name == "ELU":
        if len(parameters) != 1:
            raise UnresolvableFunctionError(
                f"Activation function ELU needs exactly one parameter, got {tag!r}"
            )
        return ELU(parse_float(parameters[0], tag, "ELU"))

    raise UnresolvableFunctionError(f"Activation function couldn't be resolved from {tag!r}")


def softmax(logits: np.ndarray, axis: int = -1) -> np.ndarray:
    """
    Compute softmax activation function.

    Converts a vector of arbitrary real values into a probability
    distribution. Not used by the network layers themselves; provided for
    callers that post-process the network output.

    Mathematical Formula:
        softmax(x)_i = exp(x_i) / sum_j(exp(x_j))

    Numerical Stability:
        max(x) is subtracted before exponentiation. This doesn't change the
        result because exp(x_i - max) / sum(exp(x_j - max)) equals
        exp(x_i) / sum(exp(x_j)).

    Args:
        logits: Input array of any shape.
        axis: The axis along which to compute softmax. Default is -1.

    Returns:
        Array of same shape as input whose values along ``axis`` sum to 1.
    """
    max_logit = np.max(logits, axis=axis, keepdims=True)
    exponentials = np.exp(logits - max_logit)
    return exponentials / np.sum(exponentials, axis=axis, keepdims=True)


def softmax_derivative(logits: np.ndarray) -> np.ndarray:
    """
    Row sums of the softmax Jacobian for a 1-D input.

    The Jacobian is J_ij = s_i * (delta_ij - s_j). This returns
    sum_j J_ij = s_i * (1 - sum_j s_j), one value per input element.
    """
    probabilities = softmax(np.asarray(logits, dtype=np.float64))
    jacobian = np.diag(probabilities) - np.outer(probabilities, probabilities)
    return np.sum(jacobian, axis=1)
