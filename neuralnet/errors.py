"""
Exceptions raised by the neural network engine.

Every failure is raised synchronously at the call that caused it. Each
exception also derives from the built-in type a caller would naturally catch
(ValueError for bad input, OSError for storage failures), so code that does
not know about this package still handles them sensibly.

Classes:
    NeuralNetworkError: Base class for all errors raised by this package
    ConfigurationError: Invalid topology, hyperparameter or dataset
    DimensionMismatchError: Input/target vector has the wrong length
    UnresolvableFunctionError: A strategy tag cannot be parsed
    EmptyCostError: Cost accumulator queried before any loss was added
    ModelIOError: Reading or writing a saved model failed
"""


class NeuralNetworkError(Exception):
    """Base class for all errors raised by the neural network engine."""


class ConfigurationError(NeuralNetworkError, ValueError):
    """Raised for an invalid layer topology, hyperparameter or dataset."""


class DimensionMismatchError(NeuralNetworkError, ValueError):
    """Raised when an input or target vector does not match the layer width."""


class UnresolvableFunctionError(NeuralNetworkError, ValueError):
    """Raised when a persisted tag does not name a known strategy variant."""


class EmptyCostError(NeuralNetworkError, ValueError):
    """Raised when the mean of a cost accumulator with no losses is requested."""


class ModelIOError(NeuralNetworkError, OSError):
    """Raised when a model image cannot be written, read or decoded."""
