"""
Training Loop

Repeatedly samples one random example from a network's training data and
applies one backpropagation step, until a step budget or a wall-clock
budget is used up.

Progress is reported through an optional callback, called on the training
thread at a bounded cadence and once more at the end. The callback receives
an immutable TrainingProgress snapshot and has no access to trainer state.

Classes:
    TrainingProgress: Progress snapshot passed to callbacks

Functions:
    run_training: The training loop behind Network.train
    log_progress: Ready-made callback that logs progress
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from neuralnet.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainingProgress:
    """
    Snapshot of a running training loop.

    Attributes:
        trained_epochs: Steps done in this run
        total_trained_epochs: Steps done over the network's whole life
        elapsed_seconds: Wall-clock time since the run started
        target_epochs: Step budget, if training by epochs
        duration_millis: Time budget, if training by duration
        accuracy: Accuracy after training; only set on the final report
        finished: True for the final report
    """

    trained_epochs: int
    total_trained_epochs: int
    elapsed_seconds: float
    target_epochs: Optional[int] = None
    duration_millis: Optional[float] = None
    accuracy: Optional[float] = None
    finished: bool = False

    @property
    def fraction(self) -> float:
        """Completed share of the budget, in [0, 1]."""
        if self.target_epochs is not None:
            if self.target_epochs == 0:
                return 1.0
            return min(1.0, self.trained_epochs / self.target_epochs)
        if self.duration_millis:
            return min(1.0, self.elapsed_seconds * 1000.0 / self.duration_millis)
        return 1.0


ProgressCallback = Callable[[TrainingProgress], None]


def run_training(
    network,
    epochs: Optional[int] = None,
    duration_millis: Optional[float] = None,
    progress_callback: Optional[ProgressCallback] = None,
    report_interval: float = 0.1,
    clock: Callable[[], float] = time.monotonic,
) -> TrainingProgress:
    """
    Train a network on randomly sampled examples.

    Args:
        network: Network with training data set
        epochs: Number of steps to run
        duration_millis: Time budget in milliseconds
        progress_callback: Receives a TrainingProgress at most once per
            ``report_interval`` seconds and once when training is done
        report_interval: Minimum seconds between intermediate reports
        clock: Monotonic time source in seconds

    Returns:
        The final TrainingProgress. Its accuracy is measured on the test data
        when set, otherwise on the training data.

    Raises:
        ConfigurationError: If no training data is set, or not exactly one
            of ``epochs`` and ``duration_millis`` is given
    """
    if (epochs is None) == (duration_millis is None):
        raise ConfigurationError("Give exactly one of epochs or duration_millis")

    if epochs is not None and epochs < 0:
        raise ConfigurationError(f"Epochs must not be negative, got {epochs}")

    if duration_millis is not None and duration_millis < 0:
        raise ConfigurationError(f"Duration must not be negative, got {duration_millis}")

    if network.training_inputs is None or network.training_targets is None:
        raise ConfigurationError("No training data given")

    inputs = network.training_inputs
    targets = network.training_targets
    num_examples = len(inputs)

    def snapshot(elapsed: float, accuracy: Optional[float] = None, finished: bool = False):
        return TrainingProgress(
            trained_epochs=network.trained_epochs,
            total_trained_epochs=network.total_trained_epochs,
            elapsed_seconds=elapsed,
            target_epochs=epochs,
            duration_millis=duration_millis,
            accuracy=accuracy,
            finished=finished,
        )

    def budget_left(now: float) -> bool:
        if epochs is not None:
            return network.trained_epochs < epochs
        return (now - start) * 1000.0 < duration_millis

    budget = f"{epochs} epochs" if epochs is not None else f"{duration_millis} ms"
    logger.info(f"Training network {list(network.layer_sizes)} for {budget}")

    network.trained_epochs = 0
    start = clock()
    last_report = start
    now = start

    while budget_left(now):
        example = int(network.rng.integers(num_examples))
        network.train_step(inputs[example], targets[example])

        now = clock()
        if progress_callback is not None and now - last_report >= report_interval:
            progress_callback(snapshot(now - start))
            last_report = now

    if network.test_inputs is not None:
        accuracy = network.accuracy(network.test_inputs, network.test_targets)
    else:
        accuracy = network.accuracy(inputs, targets)

    final = snapshot(clock() - start, accuracy=accuracy, finished=True)
    if progress_callback is not None:
        progress_callback(final)

    logger.info(
        f"Completed with an accuracy of {accuracy * 100:.0f}% after "
        f"{final.elapsed_seconds:.1f}s and {network.total_trained_epochs} epochs"
    )
    return final


def log_progress(progress: TrainingProgress) -> None:
    """Progress callback that writes through the module logger."""
    if progress.finished:
        logger.info(
            f"Training finished: {progress.trained_epochs} epochs, "
            f"accuracy {progress.accuracy:.4f}"
        )
        return

    logger.info(
        f"Training {progress.fraction * 100:5.1f}% "
        f"({progress.trained_epochs} epochs, {progress.elapsed_seconds:.1f}s)"
    )
