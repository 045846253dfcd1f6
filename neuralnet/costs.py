"""
Cost Functions

A cost function is a running accumulator over the per-step losses of a
training run. Its mean is used as a global multiplier on the output-layer
error of every backpropagation step.

Classes:
    CostFunction: Base accumulator (sum, count)
    Median: Running mean of raw loss values (the name is historical; this is
        not a true median)
    MeanSquaredErrorCost: Running mean of squared loss values

Functions:
    resolve_cost_function: Rebuild an accumulator from its tag
"""

from typing import Optional

from neuralnet.errors import EmptyCostError, UnresolvableFunctionError
from neuralnet.tags import parse_float, parse_tag

NO_COST_TAG = "NONE"


class CostFunction:
    """
    Running accumulator of loss values.

    Attributes:
        losses: Sum of the accumulated (possibly transformed) losses
        count: Number of losses added

    The tag embeds the accumulator state, e.g. "MEDIAN(12.5,40)", so that a
    resolved tag continues where the original left off.
    """

    name: str = ""

    def __init__(self, losses: float = 0.0, count: int = 0):
        self.losses = float(losses)
        self.count = int(count)

    def add_loss(self, value: float) -> None:
        raise NotImplementedError

    def mean(self) -> float:
        """
        Mean of the accumulated values.

        Raises:
            EmptyCostError: If no loss has been added yet
        """
        if self.count == 0:
            raise EmptyCostError(f"{self.name} cost has no accumulated losses")
        return self.losses / self.count

    def reset(self) -> None:
        self.losses = 0.0
        self.count = 0

    @property
    def tag(self) -> str:
        return f"{self.name}({self.losses!r},{self.count})"

    def __str__(self) -> str:
        return self.tag

    def __repr__(self) -> str:
        return f"{type(self).__name__}(losses={self.losses!r}, count={self.count})"


class Median(CostFunction):
    """Running mean of the raw loss values."""

    name = "MEDIAN"

    def add_loss(self, value: float) -> None:
        self.losses += float(value)
        self.count += 1


class MeanSquaredErrorCost(CostFunction):
    """Running mean of the squared loss values."""

    name = "MEAN_SQUARED_ERROR"

    def add_loss(self, value: float) -> None:
        self.losses += float(value) ** 2
        self.count += 1


_VARIANTS = {variant.name: variant for variant in (Median, MeanSquaredErrorCost)}


def resolve_cost_function(tag: str) -> Optional[CostFunction]:
    """
    Rebuild a cost accumulator from its tag.

    Args:
        tag: "MEDIAN", "MEDIAN(<sum>,<count>)", "MEAN_SQUARED_ERROR(...)"
            or "NONE"

    Returns:
        A new CostFunction carrying the encoded state, or None for "NONE".

    Raises:
        UnresolvableFunctionError: If the tag names no known variant or the
            accumulator state cannot be parsed
    """
    name, parameters = parse_tag(tag, "Cost function")

    if name == NO_COST_TAG and not parameters:
        return None

    variant = _VARIANTS.get(name)
    if variant is None:
        raise UnresolvableFunctionError(f"Cost function couldn't be resolved from {tag!r}")

    if not parameters:
        return variant()

    if len(parameters) != 2:
        raise UnresolvableFunctionError(f"Couldn't extract cost function values from {tag!r}")

    losses = parse_float(parameters[0], tag, "cost function")
    count = parse_float(parameters[1], tag, "cost function")
    if count < 0 or count != int(count):
        raise UnresolvableFunctionError(f"Invalid loss count in cost function tag {tag!r}")

    return variant(losses, int(count))
