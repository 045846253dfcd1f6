"""
Fully Connected Feedforward Network

This module implements the network model: layer topology, weight matrices,
bias vectors, hyperparameters and strategy functions, plus the public
operations callers use (propagate, train_step, train, accuracy, save, load).

Architecture Overview:
    Input vector (layer_sizes[0])
           |
    [W[0] @ x + b[0]] -> activation
           |
          ...
           |
    [W[L-1] @ x + b[L-1]] -> activation
           |
    Output vector (layer_sizes[-1])

    L = len(layer_sizes) - 1 weight layers. W[l] has shape
    (layer_sizes[l+1], layer_sizes[l]) and b[l] has length layer_sizes[l+1].
    A single activation function applies to every layer, the output layer
    included.

Classes:
    NetworkConfig: Configuration dataclass for network hyperparameters
    Network: The network model
"""

import logging
import math
import operator
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np

from neuralnet.activations import ActivationFunction, LeakyReLU, resolve_activation_function
from neuralnet.costs import CostFunction, Median, resolve_cost_function
from neuralnet.errors import ConfigurationError
from neuralnet.initializers import XAVIER, WeightInitialization, resolve_weight_initialization
from neuralnet.losses import LossFunction, resolve_loss_function
from neuralnet.trainer import BackpropagationTrainer
from neuralnet.utils import as_dataset, as_vector

logger = logging.getLogger(__name__)


@dataclass
class NetworkConfig:
    """
    Configuration for a Network.

    Strategies are named by their tags, so a config can be turned into a
    plain dict with dataclasses.asdict and back.

    Attributes:
        layer_sizes: Neurons per layer, input first; at least 3 entries
        learning_rate: Step size of every weight update (> 0)
        activation: Activation tag, e.g. "LEAKY_RELU()" or "ELU(0.5)"
        loss: Loss tag, or "NONE" to train without a cost multiplier
        cost: Cost accumulator tag; used only when a loss is set
        weight_initialization: "HE", "LECUN", "GLOROT" or "XAVIER"
        dropout_rate: Fraction of hidden neurons dropped per step, in [0, 1)
        thread_count: Workers used for hidden-layer updates (>= 1)
        seed: Seed of the network's random generator; None for OS entropy
    """

    layer_sizes: Tuple[int, ...] = (2, 16, 16, 16, 1)
    learning_rate: float = 0.01
    activation: str = "LEAKY_RELU()"
    loss: str = "NONE"
    cost: str = "MEDIAN"
    weight_initialization: str = "XAVIER"
    dropout_rate: float = 0.0
    thread_count: int = 1
    seed: Optional[int] = None


def _coerce(value, base, resolver: Callable, kind: str):
    if isinstance(value, str):
        return resolver(value)
    if value is None or isinstance(value, base):
        return value
    raise ConfigurationError(f"Expected a {kind} or its tag, got {value!r}")


class Network:
    """
    Fully connected feedforward neural network.

    Configuration setters return the network, so a network can be set up
    in one expression:

        network = (
            Network([2, 16, 16, 16, 1], seed=7)
            .set_learning_rate(0.02)
            .set_activation(LeakyReLU())
        )
        network.set_training_data(inputs, targets)
        network.train(epochs=100_000)
        network.save("xor.nn")

    A network has a single owner: concurrent calls on the same instance are
    not supported. Inside one training step the hidden-layer updates may run
    on a worker pool (see set_thread_count); call close() or use the network
    as a context manager to release the pool.

    Attributes:
        layer_sizes: Neurons per layer, input first
        weights: Per-layer weight matrices, shape (layer_sizes[l+1], layer_sizes[l])
        biases: Per-layer bias vectors, length layer_sizes[l+1]
        learning_rate: Step size of every update
        dropout_rate: Fraction of hidden neurons dropped per training step
        thread_count: Workers used for hidden-layer updates
        activation_function: Activation applied after every layer
        loss_function: Optional loss; when set, cost_function is set too
        cost_function: Running accumulator of step losses
        total_trained_epochs: Training steps over the network's whole life
        trained_epochs: Training steps since the last call to train()
        rng: Random generator for initialization, dropout and sampling
    """

    def __init__(
        self,
        layer_sizes: Sequence[int],
        weight_initialization: Optional[WeightInitialization] = None,
        seed: Optional[int] = None,
    ):
        """
        Build a network and initialize its weights and biases.

        Args:
            layer_sizes: Neurons per layer, input first; at least 3 entries,
                each at least 1
            weight_initialization: Scheme used to fill weights and biases;
                XAVIER if omitted
            seed: Seed for the network's random generator

        Raises:
            ConfigurationError: For fewer than 3 layers or an empty layer
        """
        self._allocate(layer_sizes, seed)

        self.learning_rate = 0.01
        self.dropout_rate = 0.0
        self.thread_count = 1
        self.activation_function: ActivationFunction = LeakyReLU()
        self.loss_function: Optional[LossFunction] = None
        self.cost_function: Optional[CostFunction] = None

        scheme = weight_initialization if weight_initialization is not None else XAVIER()
        scheme.initialize(self.weights, self.biases, self.rng)

        logger.debug(f"Created network {self.layer_sizes} initialized with {scheme}")

    def _allocate(self, layer_sizes: Sequence[int], seed: Optional[int]) -> None:
        try:
            sizes = tuple(operator.index(size) for size in layer_sizes)
        except TypeError:
            raise ConfigurationError(
                f"Layer sizes must be integers, got {list(layer_sizes)!r}"
            ) from None

        if len(sizes) < 3:
            raise ConfigurationError(
                f"The network must have at least 3 layers, got {len(sizes)}"
            )
        if any(size < 1 for size in sizes):
            raise ConfigurationError(
                f"There can't be less than one neuron in one layer, got {list(sizes)}"
            )

        self.layer_sizes = sizes
        self.weights = [
            np.zeros((sizes[layer + 1], sizes[layer])) for layer in range(len(sizes) - 1)
        ]
        self.biases = [np.zeros(sizes[layer + 1]) for layer in range(len(sizes) - 1)]

        self.rng = np.random.default_rng(seed)
        self.total_trained_epochs = 0
        self.trained_epochs = 0

        self.training_inputs: Optional[np.ndarray] = None
        self.training_targets: Optional[np.ndarray] = None
        self.test_inputs: Optional[np.ndarray] = None
        self.test_targets: Optional[np.ndarray] = None

        self._trainer: Optional[BackpropagationTrainer] = None

    @classmethod
    def from_config(cls, config: NetworkConfig) -> "Network":
        """Build a network from a NetworkConfig."""
        network = cls(
            config.layer_sizes,
            weight_initialization=resolve_weight_initialization(config.weight_initialization),
            seed=config.seed,
        )
        network.set_activation(config.activation)
        network.set_learning_rate(config.learning_rate)
        network.set_dropout(config.dropout_rate)
        network.set_thread_count(config.thread_count)

        loss = resolve_loss_function(config.loss)
        if loss is not None:
            network.set_cost(resolve_cost_function(config.cost))
            network.set_loss(loss)

        return network

    def to_config(self) -> NetworkConfig:
        """Describe the current hyperparameters as a NetworkConfig (seed not recoverable)."""
        return NetworkConfig(
            layer_sizes=self.layer_sizes,
            learning_rate=self.learning_rate,
            activation=self.activation_function.tag,
            loss=self.loss_function.tag if self.loss_function is not None else "NONE",
            cost=self.cost_function.name if self.cost_function is not None else "NONE",
            dropout_rate=self.dropout_rate,
            thread_count=self.thread_count,
        )

    @classmethod
    def _restore(
        cls,
        layer_sizes: Sequence[int],
        weights,
        biases,
        learning_rate: float,
        activation_function: ActivationFunction,
        loss_function: Optional[LossFunction],
        dropout_rate: float,
        total_trained_epochs: int,
    ) -> "Network":
        """Rebuild a network from decoded state without drawing new weights."""
        network = cls.__new__(cls)
        network._allocate(layer_sizes, None)

        for layer, (layer_weights, layer_biases) in enumerate(zip(weights, biases)):
            network.weights[layer][...] = layer_weights
            network.biases[layer][...] = layer_biases

        network.learning_rate = learning_rate
        network.dropout_rate = dropout_rate
        network.thread_count = 1
        network.activation_function = activation_function
        network.loss_function = loss_function
        network.cost_function = Median() if loss_function is not None else None
        network.total_trained_epochs = total_trained_epochs
        return network

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_activation(self, activation: Union[ActivationFunction, str]) -> "Network":
        activation = _coerce(
            activation, ActivationFunction, resolve_activation_function, "activation function"
        )
        if activation is None:
            raise ConfigurationError("The network needs an activation function")
        self.activation_function = activation
        return self

    def set_loss(self, loss: Union[LossFunction, str, None]) -> "Network":
        """
        Set the loss function; None (or "NONE") trains without a cost multiplier.

        A MEDIAN cost accumulator is installed when a loss is set and no cost
        function is configured yet.
        """
        self.loss_function = _coerce(loss, LossFunction, resolve_loss_function, "loss function")

        if self.loss_function is not None and self.cost_function is None:
            self.cost_function = Median()

        return self

    def set_cost(self, cost: Union[CostFunction, str, None]) -> "Network":
        cost = _coerce(cost, CostFunction, resolve_cost_function, "cost function")

        if cost is None and self.loss_function is not None:
            raise ConfigurationError("A cost function is required while a loss function is set")

        self.cost_function = cost
        return self

    def set_learning_rate(self, learning_rate: float) -> "Network":
        learning_rate = float(learning_rate)
        if not math.isfinite(learning_rate) or learning_rate <= 0:
            raise ConfigurationError(f"Learning rate must be positive, got {learning_rate}")
        self.learning_rate = learning_rate
        return self

    def set_weight_initialization(
        self, weight_initialization: Union[WeightInitialization, str]
    ) -> "Network":
        """Re-fill all weights and biases with the given scheme."""
        scheme = _coerce(
            weight_initialization,
            WeightInitialization,
            resolve_weight_initialization,
            "weight initialization",
        )
        if scheme is None:
            raise ConfigurationError("A weight initialization scheme is required")
        scheme.initialize(self.weights, self.biases, self.rng)
        return self

    def set_dropout(self, dropout_rate: float) -> "Network":
        dropout_rate = float(dropout_rate)
        if not 0.0 <= dropout_rate < 1.0:
            raise ConfigurationError(f"Dropout rate must be in [0, 1), got {dropout_rate}")
        self.dropout_rate = dropout_rate
        return self

    def set_thread_count(self, thread_count: int) -> "Network":
        """Number of workers used for the hidden-layer weight updates."""
        try:
            thread_count = operator.index(thread_count)
        except TypeError:
            raise ConfigurationError(
                f"Thread count must be an integer, got {thread_count!r}"
            ) from None
        if thread_count < 1:
            raise ConfigurationError(f"Thread count must be at least 1, got {thread_count}")
        self.thread_count = thread_count
        return self

    def set_training_data(self, inputs, targets) -> "Network":
        """
        Set the examples train() samples from.

        Raises:
            ConfigurationError: If the number of inputs and targets differ
            DimensionMismatchError: If a vector doesn't fit the layer widths
        """
        self.training_inputs, self.training_targets = as_dataset(
            inputs, targets, self.layer_sizes[0], self.layer_sizes[-1]
        )
        return self

    def set_test_data(self, inputs, targets) -> "Network":
        """Set the examples the final accuracy of train() is measured on."""
        self.test_inputs, self.test_targets = as_dataset(
            inputs, targets, self.layer_sizes[0], self.layer_sizes[-1]
        )
        return self

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    @property
    def num_layers(self) -> int:
        """Number of weight layers, len(layer_sizes) - 1."""
        return len(self.weights)

    def activate_layer(self, layer: int, layer_input: np.ndarray) -> np.ndarray:
        """Affine map of one layer followed by the activation."""
        pre_activation = self.weights[layer] @ layer_input + self.biases[layer]
        return self.activation_function.function(pre_activation)

    def propagate(self, input_vector) -> np.ndarray:
        """
        Forward pass without dropout.

        Args:
            input_vector: Input of length layer_sizes[0]

        Returns:
            Output vector of length layer_sizes[-1].

        Raises:
            DimensionMismatchError: If the input length is wrong
        """
        layer_output = as_vector(input_vector, self.layer_sizes[0], "input")

        for layer in range(self.num_layers):
            layer_output = self.activate_layer(layer, layer_output)

        return layer_output

    def accuracy(self, inputs, targets) -> float:
        """
        1 - mean absolute error, averaged over examples and output neurons.

        Returns:
            A value that is 1 for a perfect match; it drops below 0 only when
            the outputs are further than 1 from the targets on average.
        """
        input_array, target_array = as_dataset(
            inputs, targets, self.layer_sizes[0], self.layer_sizes[-1]
        )

        absolute_error = 0.0
        for input_vector, target_vector in zip(input_array, target_array):
            output = self.propagate(input_vector)
            absolute_error += float(np.mean(np.abs(output - target_vector)))

        return 1.0 - absolute_error / len(input_array)

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    @property
    def trainer(self) -> BackpropagationTrainer:
        if self._trainer is None:
            self._trainer = BackpropagationTrainer(self)
        return self._trainer

    def train_step(self, input_vector, target_vector) -> None:
        """Apply one backpropagation step for a single example."""
        self.trainer.step(input_vector, target_vector)

    def train(
        self,
        epochs: Optional[int] = None,
        duration_millis: Optional[float] = None,
        progress_callback=None,
        report_interval: float = 0.1,
    ):
        """
        Train on randomly sampled examples of the training data.

        Exactly one budget must be given: a number of steps (``epochs``)
        or a wall-clock duration in milliseconds.

        Args:
            epochs: Number of training steps
            duration_millis: Training time budget in milliseconds
            progress_callback: Called with a TrainingProgress at most once
                per ``report_interval`` seconds and once when done
            report_interval: Minimum seconds between progress reports

        Returns:
            The final TrainingProgress, including the accuracy.
        """
        from neuralnet.training import run_training

        return run_training(
            self,
            epochs=epochs,
            duration_millis=duration_millis,
            progress_callback=progress_callback,
            report_interval=report_interval,
        )

    def close(self) -> None:
        """Release the worker pool used by multi-threaded training."""
        if self._trainer is not None:
            self._trainer.close()

    def __enter__(self) -> "Network":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path) -> None:
        """Write the network to ``path`` in the binary model format."""
        from neuralnet.persistence import save_network

        save_network(self, path)

    @classmethod
    def load(cls, path) -> "Network":
        """Read a network written by save()."""
        from neuralnet.persistence import load_network

        return load_network(path, cls)

    def __repr__(self) -> str:
        return (
            f"Network(layer_sizes={list(self.layer_sizes)}, "
            f"activation={self.activation_function}, "
            f"loss={self.loss_function}, "
            f"learning_rate={self.learning_rate}, "
            f"total_trained_epochs={self.total_trained_epochs})"
        )
