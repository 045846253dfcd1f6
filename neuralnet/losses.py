"""
Loss Functions

A loss function maps one network output vector and its target vector to a
scalar. During training the per-step loss is fed into a cost accumulator
(see neuralnet.costs) whose running mean scales the output-layer error.

No clamping is applied: the logarithmic variants return inf/nan when an
output is exactly 0 or 1 (or outside the valid domain).

Classes:
    LossFunction: Base class
    MeanSquaredError, MeanAbsoluteError, CrossEntropyLoss,
    BinaryCrossEntropyLoss, HingeLoss, LogLikelihoodLoss: Variants

Functions:
    resolve_loss_function: Rebuild a loss from its tag ("NONE" -> None)
"""

from typing import Optional

import numpy as np

from neuralnet.errors import DimensionMismatchError, UnresolvableFunctionError
from neuralnet.tags import parse_tag

NO_LOSS_TAG = "NONE"


class LossFunction:
    """
    Scalar loss over one (output, target) pair.

    Subclasses implement ``_compute`` on validated float arrays.
    ``str(loss)`` is the persistence tag, equal to ``name``.
    """

    name: str = ""

    def function(self, output, target) -> float:
        """
        Compute the loss.

        Args:
            output: Network output vector
            target: Expected output vector of the same length

        Returns:
            The loss as a Python float.

        Raises:
            DimensionMismatchError: If the vectors differ in length
        """
        output = np.asarray(output, dtype=np.float64)
        target = np.asarray(target, dtype=np.float64)
        if output.shape != target.shape:
            raise DimensionMismatchError(
                f"Output shape {output.shape} doesn't match target shape {target.shape}"
            )
        return float(self._compute(output, target))

    __call__ = function

    def _compute(self, output: np.ndarray, target: np.ndarray) -> float:
        raise NotImplementedError

    @property
    def tag(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.tag

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def __eq__(self, other) -> bool:
        return isinstance(other, LossFunction) and self.tag == other.tag

    def __hash__(self) -> int:
        return hash(self.tag)


class MeanSquaredError(LossFunction):
    """mean((target - output)^2)"""

    name = "MEAN_SQUARED_ERROR"

    def _compute(self, output, target):
        return np.mean(np.power(target - output, 2))


class MeanAbsoluteError(LossFunction):
    """mean(|output - target|)"""

    name = "MEAN_ABSOLUTE_ERROR"

    def _compute(self, output, target):
        return np.mean(np.abs(output - target))


class CrossEntropyLoss(LossFunction):
    """
    Categorical cross entropy.

    Mathematical Formula:
        L = -mean(target * ln(output))

    Outputs are expected to be probabilities; they are not normalized here.
    """

    name = "CROSS_ENTROPY_LOSS"

    def _compute(self, output, target):
        with np.errstate(divide="ignore", invalid="ignore"):
            return -np.mean(target * np.log(output))


class BinaryCrossEntropyLoss(LossFunction):
    """
    Binary cross entropy.

    Mathematical Formula:
        L = -mean(target * ln(output) + (1 - target) * ln(1 - output))
    """

    name = "BINARY_CROSS_ENTROPY_LOSS"

    def _compute(self, output, target):
        with np.errstate(divide="ignore", invalid="ignore"):
            return -np.mean(target * np.log(output) + (1.0 - target) * np.log(1.0 - output))


class HingeLoss(LossFunction):
    """mean(max(0, 1 - target * output)), targets in {-1, +1}."""

    name = "HINGE_LOSS"

    def _compute(self, output, target):
        return np.mean(np.maximum(0.0, 1.0 - target * output))


class LogLikelihoodLoss(LossFunction):
    """
    Negative log likelihood of the softmax of the output.

    Mathematical Formula:
        L = sum over i with target_i == 1 of -(output_i - ln(sum_j e^output_j))

    Targets are one-hot (or multi-hot); entries other than exactly 1 are
    ignored.
    """

    name = "LOG_LIKELIHOOD_LOSS"

    def _compute(self, output, target):
        log_normalizer = np.log(np.sum(np.exp(output)))
        selected = output[target == 1.0]
        return np.sum(-(selected - log_normalizer))


_VARIANTS = {
    variant.name: variant
    for variant in (
        MeanSquaredError,
        MeanAbsoluteError,
        CrossEntropyLoss,
        BinaryCrossEntropyLoss,
        HingeLoss,
        LogLikelihoodLoss,
    )
}


def resolve_loss_function(tag: str) -> Optional[LossFunction]:
    """
    Rebuild a loss function from its tag.

    Args:
        tag: Variant name, or "NONE" for no loss

    Returns:
        A new LossFunction, or None for "NONE".

    Raises:
        UnresolvableFunctionError: If the tag names no known variant
    """
    name, parameters = parse_tag(tag, "Loss function")

    if name == NO_LOSS_TAG and not parameters:
        return None

    variant = _VARIANTS.get(name)
    if variant is None or parameters:
        raise UnresolvableFunctionError(f"Loss function couldn't be resolved from {tag!r}")

    return variant()
