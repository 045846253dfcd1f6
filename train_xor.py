#!/usr/bin/env python3
"""
XOR Training Script

This script trains a small fully connected network on the XOR truth table
and shows the complete public workflow of the neuralnet package.

Usage:
    python train_xor.py
    python train_xor.py --threads 4 --duration-ms 5000
    LOG_LEVEL=DEBUG python train_xor.py --output checkpoints/xor.nn

The script will:
1. Create a 2-16-16-16-1 network with LEAKY_RELU activation
2. Train it on the four XOR examples, printing a progress bar
3. Report the accuracy and the prediction for every example
4. Save the model, load it back and check the predictions still match

Training Configuration:
    - Dataset: XOR truth table (4 examples)
    - Model: 2-16-16-16-1, LEAKY_RELU, XAVIER initialization
    - Training: 100,000 single-example steps, learning rate 0.02, no dropout
"""

import argparse
import logging
import os

# Add parent directory to path if running as script
import sys

import numpy as np

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from neuralnet import Network, NetworkConfig, TrainingProgress

PROGRESS_BAR_LENGTH = 60

XOR_INPUTS = [[0, 0], [1, 0], [0, 1], [1, 1]]
XOR_TARGETS = [[0], [1], [1], [0]]


def configure_logging() -> None:
    """Set up logging, level taken from the LOG_LEVEL environment variable."""
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def print_progress(progress: TrainingProgress) -> None:
    """Draw a one-line console progress bar."""
    filled = round(PROGRESS_BAR_LENGTH * progress.fraction)
    bar = "=" * filled + " " * (PROGRESS_BAR_LENGTH - filled)

    line = (
        f"\rNeural Network {progress.fraction * 100:3.0f}% [{bar}] "
        f"{progress.trained_epochs} / {progress.target_epochs or '-'} "
        f"({progress.elapsed_seconds:.0f}s)"
    )
    print(line, end="", flush=True)

    if progress.finished:
        print()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Train a feedforward network on XOR")
    budget = parser.add_mutually_exclusive_group()
    budget.add_argument("--epochs", type=int, default=100_000, help="Training steps to run")
    budget.add_argument(
        "--duration-ms", type=float, default=None, help="Train for this many milliseconds instead"
    )
    parser.add_argument("--threads", type=int, default=1, help="Workers for hidden-layer updates")
    parser.add_argument("--seed", type=int, default=42, help="Seed for the network generator")
    parser.add_argument(
        "--output", default=os.path.join("checkpoints", "xor.nn"), help="Where to save the model"
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main training function."""
    args = parse_args(argv)
    configure_logging()

    print("=" * 60)
    print("XOR Training")
    print("=" * 60)
    print()

    # ==================== Configuration ====================
    config = NetworkConfig(
        layer_sizes=(2, 16, 16, 16, 1),
        learning_rate=0.02,
        activation="LEAKY_RELU()",
        weight_initialization="XAVIER",
        dropout_rate=0.0,
        thread_count=args.threads,
        seed=args.seed,
    )
    model_path = args.output

    os.makedirs(os.path.dirname(os.path.abspath(model_path)), exist_ok=True)

    # ==================== Model ====================
    print("Creating network...")
    network = Network.from_config(config)
    network.set_training_data(XOR_INPUTS, XOR_TARGETS)

    print(f"  - Layers: {list(network.layer_sizes)}")
    print(f"  - Activation: {network.activation_function}")
    print(f"  - Learning rate: {network.learning_rate}")
    print(f"  - Threads: {network.thread_count}")
    print()

    # ==================== Training Loop ====================
    print("Starting training...")
    print("-" * 60)

    with network:
        if args.duration_ms is not None:
            result = network.train(
                duration_millis=args.duration_ms, progress_callback=print_progress
            )
        else:
            result = network.train(epochs=args.epochs, progress_callback=print_progress)

    print("-" * 60)
    print(
        f"Completed with an accuracy of {result.accuracy * 100:.0f}% after "
        f"{result.elapsed_seconds:.0f}s and {network.total_trained_epochs} epochs."
    )
    print()

    for input_vector, target_vector in zip(XOR_INPUTS, XOR_TARGETS):
        output = network.propagate(input_vector)
        print(f"  {input_vector} -> {output[0]:.4f} (target {target_vector[0]})")
    print()

    # ==================== Save and Reload ====================
    network.save(model_path)
    print(f"Saved network to {model_path}")

    restored = Network.load(model_path)
    for input_vector in XOR_INPUTS:
        np.testing.assert_array_equal(
            restored.propagate(input_vector), network.propagate(input_vector)
        )
    print(f"Reloaded network reproduces all predictions ({restored.total_trained_epochs} epochs)")

    print()
    print("=" * 60)
    print("Training complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
