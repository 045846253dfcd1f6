"""
Fully Connected Neural Networks from Scratch

This package provides a small, complete feedforward neural network engine
written with NumPy: construction, forward inference, single-example
backpropagation with an optional multi-threaded weight update, and a
binary model format.

Modules:
    activations: Activation functions and their derivatives
    losses: Loss functions (MSE, MAE, cross entropy, hinge, ...)
    costs: Running cost accumulators that scale the output error
    initializers: Weight initialization schemes (HE, LECUN, GLOROT, XAVIER)
    network: The Network model and its NetworkConfig
    trainer: One backpropagation step and the hidden-layer worker pool
    training: The training loop and progress reporting
    persistence: Binary save/load of a complete network
    utils: Vector/dataset validation and partitioning helpers
    errors: Exception types
"""

from neuralnet.activations import (
    ELU,
    LEAKY_RELU,
    RELU,
    SIGMOID,
    TANH,
    LeakyReLU,
    ReLU,
    Sigmoid,
    Tanh,
)
from neuralnet.costs import MeanSquaredErrorCost, Median
from neuralnet.errors import (
    ConfigurationError,
    DimensionMismatchError,
    EmptyCostError,
    ModelIOError,
    NeuralNetworkError,
    UnresolvableFunctionError,
)
from neuralnet.initializers import GLOROT, HE, LECUN, XAVIER
from neuralnet.losses import (
    BinaryCrossEntropyLoss,
    CrossEntropyLoss,
    HingeLoss,
    LogLikelihoodLoss,
    MeanAbsoluteError,
    MeanSquaredError,
)
from neuralnet.network import Network, NetworkConfig
from neuralnet.training import TrainingProgress, log_progress

__version__ = "1.0.0"
