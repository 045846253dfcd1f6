"""
Utility Functions for Training and Inference

This module provides the small helpers shared by the network, the trainer
and the training loop:
- Input/target validation and conversion to float64 vectors
- Dataset validation (paired inputs and targets)
- Half-up rounding and neuron-range partitioning for the worker pool

Functions:
    as_vector: Validate and convert one input or target vector
    as_dataset: Validate and convert a paired (inputs, targets) dataset
    round_half_up: Round to the nearest integer, halves away from -inf
    partition_ranges: Split [0, width) into contiguous worker ranges
"""

import math
from typing import List, Sequence, Tuple

import numpy as np

from neuralnet.errors import ConfigurationError, DimensionMismatchError


def as_vector(values: Sequence[float], expected_length: int, name: str = "input") -> np.ndarray:
    """
    Convert ``values`` to a fresh 1-D float64 array of a known length.

    Args:
        values: Any 1-D sequence of numbers
        expected_length: Required number of elements
        name: What the vector is ("input", "target"), used in error messages

    Returns:
        A float64 copy of ``values``.

    Raises:
        DimensionMismatchError: If ``values`` is not a numeric 1-D vector of the
            right length
    """
    try:
        vector = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as error:
        raise DimensionMismatchError(
            f"The given {name} is not a numeric vector: {error}"
        ) from error

    if vector.ndim != 1:
        raise DimensionMismatchError(
            f"The given {name} must be a 1-D vector, got shape {vector.shape}"
        )

    if vector.shape[0] != expected_length:
        raise DimensionMismatchError(
            f"The given {name} length {vector.shape[0]} doesn't match "
            f"the {expected_length} {name} neurons"
        )

    return vector


def as_dataset(
    inputs: Sequence[Sequence[float]],
    targets: Sequence[Sequence[float]],
    input_width: int,
    target_width: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Validate a dataset of paired input and target vectors.

    Args:
        inputs: Sequence of input vectors, shape (num_examples, input_width)
        targets: Sequence of target vectors, shape (num_examples, target_width)
        input_width: Width of the network input layer
        target_width: Width of the network output layer

    Returns:
        Tuple of (inputs, targets) as 2-D float64 arrays.

    Raises:
        ConfigurationError: If the dataset is empty or the number of inputs
            doesn't match the number of targets
        DimensionMismatchError: If any vector has the wrong width, or the
            vectors are ragged
    """
    if len(inputs) != len(targets):
        raise ConfigurationError(
            f"The given dataset length {len(inputs)} doesn't match "
            f"the {len(targets)} dataset target values"
        )

    if len(inputs) == 0:
        raise ConfigurationError("The given dataset is empty")

    try:
        input_array = np.array(inputs, dtype=np.float64)
        target_array = np.array(targets, dtype=np.float64)
    except (TypeError, ValueError) as error:
        raise DimensionMismatchError(
            f"Dataset vectors must be numeric and of equal width: {error}"
        ) from error

    if input_array.ndim != 2 or input_array.shape[1] != input_width:
        raise DimensionMismatchError(
            f"Dataset inputs must have shape (n, {input_width}), got {input_array.shape}"
        )

    if target_array.ndim != 2 or target_array.shape[1] != target_width:
        raise DimensionMismatchError(
            f"Dataset targets must have shape (n, {target_width}), got {target_array.shape}"
        )

    return input_array, target_array


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, with .5 rounding up.

    Python's round() rounds halves to even; neuron counts and partition
    boundaries use the half-up convention instead.

    Example:
        >>> round_half_up(2.5), round(2.5)
        (3, 2)
    """
    return int(math.floor(value + 0.5))


def partition_ranges(width: int, parts: int) -> List[Tuple[int, int]]:
    """
    Split the neuron range [0, width) into ``parts`` contiguous slices.

    Boundary t is round_half_up(t * width / parts). Slices are returned in
    order, cover the whole range exactly once, and empty slices (possible
    when parts > width) are dropped.

    Args:
        width: Number of neurons in the layer
        parts: Number of partitions (worker count)

    Returns:
        List of (start, stop) pairs.

    Example:
        >>> partition_ranges(10, 3)
        [(0, 3), (3, 7), (7, 10)]
    """
    if parts < 1:
        raise ConfigurationError(f"Number of partitions must be at least 1, got {parts}")

    neuron_range = width / parts
    ranges = []

    for part in range(parts):
        start = round_half_up(neuron_range * part)
        stop = round_half_up(neuron_range * (part + 1))
        if stop > start:
            ranges.append((start, stop))

    return ranges
