"""
Tests for Utility Functions

Tests for vector and dataset validation, half-up rounding and the neuron
range partitioning used by the worker pool.
"""

import numpy as np
import pytest

from neuralnet.errors import ConfigurationError, DimensionMismatchError
from neuralnet.utils import as_dataset, as_vector, partition_ranges, round_half_up


class TestAsVector:
    """Test single vector conversion."""

    def test_returns_float_copy(self):
        """Integers become float64 and the caller's array is not shared."""
        source = np.array([1, 2, 3])

        vector = as_vector(source, 3)
        vector[0] = 99.0

        assert vector.dtype == np.float64
        assert source[0] == 1

    def test_wrong_length(self):
        """Length must match exactly."""
        with pytest.raises(DimensionMismatchError, match="target"):
            as_vector([1.0, 2.0], 3, name="target")

    def test_not_one_dimensional(self):
        """Scalars and matrices are rejected."""
        with pytest.raises(DimensionMismatchError):
            as_vector(1.0, 1)
        with pytest.raises(DimensionMismatchError):
            as_vector([[1.0], [2.0]], 2)

    def test_non_numeric(self):
        """Values that cannot be converted to floats are rejected."""
        with pytest.raises(DimensionMismatchError):
            as_vector(["a", "b"], 2)

    def test_dimension_error_is_value_error(self):
        """DimensionMismatchError can be caught as ValueError."""
        with pytest.raises(ValueError):
            as_vector([], 1)


class TestAsDataset:
    """Test paired dataset validation."""

    def test_valid_dataset(self):
        """Rows are examples, columns the layer width."""
        inputs, targets = as_dataset([[0, 0], [1, 1], [0, 1]], [[0], [1], [1]], 2, 1)

        assert inputs.shape == (3, 2)
        assert targets.shape == (3, 1)

    def test_mismatched_lengths(self):
        """Number of inputs must equal number of targets."""
        with pytest.raises(ConfigurationError):
            as_dataset([[0, 0]], [[0], [1]], 2, 1)

    def test_empty(self):
        """An empty dataset cannot be trained on."""
        with pytest.raises(ConfigurationError):
            as_dataset([], [], 2, 1)

    def test_ragged_width(self):
        """A target of the wrong width is a DimensionMismatchError."""
        with pytest.raises(DimensionMismatchError):
            as_dataset([[0, 0], [1, 1]], [[0, 1], [1, 0]], 2, 1)

    @pytest.mark.parametrize(
        "inputs, targets",
        [([[0, 0], [1]], [[0], [1]]), ([[0, 0], [1, 1]], [[0], [1, 1]])],
    )
    def test_ragged_rows(self, inputs, targets):
        """Rows of different lengths are a DimensionMismatchError, not a bare ValueError."""
        with pytest.raises(DimensionMismatchError):
            as_dataset(inputs, targets, 2, 1)

    def test_ragged_training_data_on_network(self):
        """The typed error reaches callers of set_training_data."""
        from neuralnet.errors import NeuralNetworkError
        from neuralnet.network import Network

        with pytest.raises(NeuralNetworkError):
            Network([2, 3, 1], seed=0).set_training_data([[0, 0], [1]], [[0], [1]])


class TestRoundHalfUp:
    """Test half-up rounding."""

    @pytest.mark.parametrize(
        "value, expected",
        [(0.0, 0), (0.4, 0), (0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (7.0, 7)],
    )
    def test_values(self, value, expected):
        assert round_half_up(value) == expected


class TestPartitionRanges:
    """Test neuron range partitioning."""

    def test_even_split(self):
        assert partition_ranges(8, 4) == [(0, 2), (2, 4), (4, 6), (6, 8)]

    def test_uneven_split(self):
        """Boundaries are rounded half up."""
        assert partition_ranges(10, 3) == [(0, 3), (3, 7), (7, 10)]
        assert partition_ranges(5, 2) == [(0, 3), (3, 5)]

    def test_single_part(self):
        assert partition_ranges(7, 1) == [(0, 7)]

    def test_more_parts_than_neurons(self):
        """Empty slices are dropped, every neuron still covered once."""
        ranges = partition_ranges(3, 8)

        assert all(stop > start for start, stop in ranges)
        assert sum(stop - start for start, stop in ranges) == 3

    @pytest.mark.parametrize("width", [1, 2, 5, 16, 33])
    @pytest.mark.parametrize("parts", [1, 2, 3, 4, 7, 64])
    def test_exact_cover(self, width, parts):
        """Slices are contiguous, ordered and cover [0, width)."""
        ranges = partition_ranges(width, parts)

        assert ranges[0][0] == 0
        assert ranges[-1][1] == width
        for (_, stop), (start, _) in zip(ranges, ranges[1:]):
            assert stop == start

    def test_invalid_parts(self):
        with pytest.raises(ConfigurationError):
            partition_ranges(4, 0)
