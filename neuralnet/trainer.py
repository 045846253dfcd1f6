"""
Backpropagation Trainer

One training step consumes exactly one (input, target) example:

    1. Forward pass, caching every layer's post-activation output. Dropout
       (when enabled) is applied to every layer except the last two: a
       random subset of round(rate * width) neurons is zeroed and the whole
       layer is divided by (1 - rate).
    2. If a loss function is configured, the step loss is added to the cost
       accumulator and the accumulator mean becomes the cost multiplier
       (1 otherwise).
    3. Output layer: error = (target - output) * cost_multiplier, then
           W[n, w] += lr * error[n] * previous[w] * f'(output[n])
           b[n]    += lr * error[n] * f'(output[n])
    4. Hidden layers, deepest first: the error is propagated through the
       ALREADY-UPDATED weights of the next layer,
           error[l] = error[l+1] @ W[l+1]
       and the rows of W[l] / b[l] are updated with the same rule.

Concurrency:
    Each hidden layer's neuron rows are split into ``thread_count``
    contiguous ranges that are updated by a bounded thread pool. A job only
    reads the shared error and output vectors and writes its own rows of
    W[l] and b[l], so jobs need no locking. All jobs of layer l are joined
    before layer l-1 starts, because layer l-1 reads the updated W[l].

    The propagated error of a layer is computed once, before its row jobs
    are dispatched, so the result of a step does not depend on the number
    of threads.

Classes:
    BackpropagationTrainer: Runs training steps for one network
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List, Optional

import numpy as np

from neuralnet.utils import as_vector, partition_ranges, round_half_up

logger = logging.getLogger(__name__)


class BackpropagationTrainer:
    """
    Applies single-example gradient steps to a network in place.

    The trainer reads hyperparameters and strategies from the network on
    every step, so changes made through the network's setters take effect
    on the next step. Randomness (dropout selection) is drawn from the
    network's generator.

    The worker pool is created on first use and recreated when the thread
    count changes. With a thread count of 1 every update runs on the calling
    thread and no pool is created.

    Attributes:
        network: The network being trained
    """

    def __init__(self, network):
        self.network = network
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_workers = 0

    def step(self, input_vector, target_vector) -> None:
        """
        Run one backpropagation step.

        Args:
            input_vector: Input of length layer_sizes[0]
            target_vector: Target of length layer_sizes[-1]

        Raises:
            DimensionMismatchError: If either vector has the wrong length.
                Raised before any state is touched.
        """
        network = self.network
        inputs = as_vector(input_vector, network.layer_sizes[0], "input")
        target = as_vector(target_vector, network.layer_sizes[-1], "target output")

        outputs = self._forward(inputs)

        cost_multiplier = 1.0
        if network.loss_function is not None:
            loss = network.loss_function.function(outputs[-1], target)
            network.cost_function.add_loss(loss)
            cost_multiplier = network.cost_function.mean()

        errors: List[Optional[np.ndarray]] = [None] * network.num_layers

        output_layer = network.num_layers - 1
        errors[output_layer] = (target - outputs[output_layer]) * cost_multiplier
        self._update_rows(
            output_layer, 0, network.layer_sizes[-1], errors, outputs, inputs
        )

        for layer in range(output_layer - 1, -1, -1):
            # W[layer + 1] is final at this point
            errors[layer] = errors[layer + 1] @ network.weights[layer + 1]
            self._update_layer(layer, errors, outputs, inputs)

        network.trained_epochs += 1
        network.total_trained_epochs += 1

    def _forward(self, inputs: np.ndarray) -> List[np.ndarray]:
        """Forward pass with dropout; returns every layer's output."""
        network = self.network
        dropout_rate = network.dropout_rate
        outputs = []
        layer_input = inputs

        for layer in range(network.num_layers):
            layer_output = network.activate_layer(layer, layer_input)

            if dropout_rate > 0 and layer < network.num_layers - 2:
                layer_output = self._apply_dropout(layer_output, dropout_rate)

            outputs.append(layer_output)
            layer_input = layer_output

        return outputs

    def _apply_dropout(self, layer_output: np.ndarray, dropout_rate: float) -> np.ndarray:
        width = layer_output.shape[0]
        num_dropped = min(round_half_up(dropout_rate * width), width)

        dropped = self.network.rng.choice(width, size=num_dropped, replace=False)
        layer_output[dropped] = 0.0

        # Inverted dropout keeps the expected activation sum unchanged
        return layer_output / (1.0 - dropout_rate)

    def _update_layer(self, layer, errors, outputs, inputs) -> None:
        width = self.network.layer_sizes[layer + 1]
        thread_count = self.network.thread_count
        ranges = partition_ranges(width, thread_count)

        if thread_count == 1 or len(ranges) == 1:
            for start, stop in ranges:
                self._update_rows(layer, start, stop, errors, outputs, inputs)
            return

        executor = self._get_executor(thread_count)
        futures = [
            executor.submit(self._update_rows, layer, start, stop, errors, outputs, inputs)
            for start, stop in ranges
        ]

        # Barrier: every row of this layer is final before the next layer reads it
        wait(futures)
        for future in futures:
            future.result()

    def _update_rows(self, layer, start, stop, errors, outputs, inputs) -> None:
        """Update rows [start, stop) of W[layer] and b[layer]."""
        network = self.network
        learning_rate = network.learning_rate
        previous = outputs[layer - 1] if layer > 0 else inputs

        error = errors[layer][start:stop]
        slope = network.activation_function.derivative(outputs[layer][start:stop])

        network.weights[layer][start:stop] += (
            learning_rate * error[:, np.newaxis] * previous[np.newaxis, :] * slope[:, np.newaxis]
        )
        network.biases[layer][start:stop] += error * learning_rate * slope

    def _get_executor(self, workers: int) -> ThreadPoolExecutor:
        if self._executor is not None and self._executor_workers != workers:
            self._executor.shutdown(wait=True)
            self._executor = None

        if self._executor is None:
            logger.debug(f"Starting backpropagation worker pool with {workers} threads")
            self._executor = ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="backprop"
            )
            self._executor_workers = workers

        return self._executor

    def close(self) -> None:
        """Shut down the worker pool, if one was started."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
            self._executor_workers = 0
