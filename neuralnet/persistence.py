"""
Binary Model Format

Serializes the complete state of a Network into a fixed big-endian layout:

    [num_layers: int32]
    [layer_sizes: num_layers x int32]
    [weights: float64, layer-major -> neuron-major -> weight-major]
    [biases: float64, layer-major -> neuron-major]
    [learning_rate: float64]
    [activation tag: string]
    [loss tag: string, "NONE" when no loss is set]
    [dropout_rate: float64]
    [total_trained_epochs: int32]

Strings are a 2-byte unsigned big-endian byte count followed by the UTF-8
bytes (the layout of Java's DataOutput.writeUTF for ASCII text).

The cost accumulator is not part of the image; a loaded network with a
loss function starts a fresh MEDIAN accumulator.

Functions:
    encode_network: Network -> bytes
    decode_network: bytes -> Network
    save_network: Encode and write atomically to a file
    load_network: Read and decode a file
"""

import logging
import math
import os
import struct
import tempfile
from typing import Type

import numpy as np

from neuralnet.activations import resolve_activation_function
from neuralnet.errors import ModelIOError
from neuralnet.losses import NO_LOSS_TAG, resolve_loss_function
from neuralnet.network import Network

logger = logging.getLogger(__name__)

_INT = struct.Struct(">i")
_DOUBLE = struct.Struct(">d")
_STRING_LENGTH = struct.Struct(">H")
_BIG_ENDIAN_DOUBLE = np.dtype(">f8")


def _encode_int(value: int, what: str) -> bytes:
    try:
        return _INT.pack(value)
    except struct.error as error:
        raise ModelIOError(f"Cannot encode {what} {value} as a 32-bit integer") from error


def _encode_string(value: str) -> bytes:
    data = value.encode("utf-8")
    if len(data) > 0xFFFF:
        raise ModelIOError(f"String too long to encode: {len(data)} bytes")
    return _STRING_LENGTH.pack(len(data)) + data


def encode_network(network: Network) -> bytes:
    """
    Encode a network into the binary model format.

    Args:
        network: Network to encode

    Returns:
        The complete model image.

    Raises:
        ModelIOError: If a counter does not fit the signed 32-bit field,
            e.g. total_trained_epochs above 2**31 - 1
    """
    parts = [_encode_int(len(network.layer_sizes), "layer count")]
    parts.extend(_encode_int(size, "layer size") for size in network.layer_sizes)

    for layer_weights in network.weights:
        parts.append(np.ascontiguousarray(layer_weights, dtype=_BIG_ENDIAN_DOUBLE).tobytes())

    for layer_biases in network.biases:
        parts.append(np.ascontiguousarray(layer_biases, dtype=_BIG_ENDIAN_DOUBLE).tobytes())

    loss_tag = network.loss_function.tag if network.loss_function is not None else NO_LOSS_TAG

    parts.append(_DOUBLE.pack(network.learning_rate))
    parts.append(_encode_string(network.activation_function.tag))
    parts.append(_encode_string(loss_tag))
    parts.append(_DOUBLE.pack(network.dropout_rate))
    parts.append(_encode_int(network.total_trained_epochs, "trained epochs"))

    return b"".join(parts)


class _ImageReader:
    """Sequential reader over a model image that fails cleanly on truncation."""

    def __init__(self, data: bytes):
        self.data = memoryview(data)
        self.offset = 0

    def _take(self, size: int, what: str) -> memoryview:
        end = self.offset + size
        if size < 0 or end > len(self.data):
            raise ModelIOError(
                f"Model image truncated while reading {what} at byte {self.offset}"
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def read_int(self, what: str) -> int:
        return _INT.unpack(self._take(_INT.size, what))[0]

    def read_double(self, what: str) -> float:
        return _DOUBLE.unpack(self._take(_DOUBLE.size, what))[0]

    def read_doubles(self, count: int, what: str) -> np.ndarray:
        chunk = self._take(count * _BIG_ENDIAN_DOUBLE.itemsize, what)
        return np.frombuffer(chunk, dtype=_BIG_ENDIAN_DOUBLE).astype(np.float64)

    def read_string(self, what: str) -> str:
        length = _STRING_LENGTH.unpack(self._take(_STRING_LENGTH.size, what))[0]
        try:
            return bytes(self._take(length, what)).decode("utf-8")
        except UnicodeDecodeError as error:
            raise ModelIOError(f"Invalid UTF-8 in {what}") from error

    def finish(self) -> None:
        if self.offset != len(self.data):
            raise ModelIOError(
                f"Unexpected {len(self.data) - self.offset} trailing bytes in model image"
            )


def decode_network(data: bytes, network_class: Type[Network] = Network) -> Network:
    """
    Decode a model image produced by encode_network.

    All fields are read and both tags are resolved before the Network is
    built, so a failure never yields a partially initialized network.

    Args:
        data: Complete model image
        network_class: Network subclass to instantiate

    Raises:
        ModelIOError: If the image is truncated, structurally invalid or
            holds out-of-range hyperparameters
        UnresolvableFunctionError: If a strategy tag is unknown
    """
    reader = _ImageReader(data)

    num_layers = reader.read_int("layer count")
    if num_layers < 3:
        raise ModelIOError(f"Invalid layer count {num_layers} in model image")

    layer_sizes = [reader.read_int("layer sizes") for _ in range(num_layers)]
    if any(size < 1 for size in layer_sizes):
        raise ModelIOError(f"Invalid layer sizes {layer_sizes} in model image")

    weights = []
    for layer in range(num_layers - 1):
        fan_out, fan_in = layer_sizes[layer + 1], layer_sizes[layer]
        values = reader.read_doubles(fan_out * fan_in, f"weights of layer {layer}")
        weights.append(values.reshape(fan_out, fan_in))

    biases = [
        reader.read_doubles(layer_sizes[layer + 1], f"biases of layer {layer}")
        for layer in range(num_layers - 1)
    ]

    learning_rate = reader.read_double("learning rate")
    activation_tag = reader.read_string("activation tag")
    loss_tag = reader.read_string("loss tag")
    dropout_rate = reader.read_double("dropout rate")
    total_trained_epochs = reader.read_int("trained epochs")
    reader.finish()

    if not math.isfinite(learning_rate) or learning_rate <= 0:
        raise ModelIOError(f"Invalid learning rate {learning_rate} in model image")
    if not 0.0 <= dropout_rate < 1.0:
        raise ModelIOError(f"Invalid dropout rate {dropout_rate} in model image")
    if total_trained_epochs < 0:
        raise ModelIOError(f"Invalid trained epoch count {total_trained_epochs} in model image")

    activation_function = resolve_activation_function(activation_tag)
    loss_function = resolve_loss_function(loss_tag)

    return network_class._restore(
        layer_sizes,
        weights,
        biases,
        learning_rate=learning_rate,
        activation_function=activation_function,
        loss_function=loss_function,
        dropout_rate=dropout_rate,
        total_trained_epochs=total_trained_epochs,
    )


def save_network(network: Network, path) -> None:
    """
    Save a network to a file.

    The complete image is encoded in memory first, written to a temporary
    file in the destination directory and then moved over the destination,
    so a failed save never leaves a truncated model behind.

    Raises:
        ModelIOError: If the file cannot be written
    """
    path = os.fspath(path)
    image = encode_network(network)
    directory = os.path.dirname(os.path.abspath(path))

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            "wb", dir=directory, prefix=".tmp-", suffix=".nn", delete=False
        ) as handle:
            temp_path = handle.name
            handle.write(image)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, path)
    except OSError as error:
        if temp_path is not None and os.path.exists(temp_path):
            os.remove(temp_path)
        raise ModelIOError(f"Could not save network to {path}: {error}") from error

    logger.info(
        f"Saved network {list(network.layer_sizes)} to {path} "
        f"({len(image)} bytes, {network.total_trained_epochs} epochs)"
    )


def load_network(path, network_class: Type[Network] = Network) -> Network:
    """
    Load a network saved with save_network.

    Args:
        path: File to read
        network_class: Network subclass to instantiate

    Raises:
        ModelIOError: If the file cannot be read or is not a valid image
        UnresolvableFunctionError: If a strategy tag is unknown
    """
    path = os.fspath(path)
    try:
        with open(path, "rb") as handle:
            image = handle.read()
    except OSError as error:
        raise ModelIOError(f"Could not load network from {path}: {error}") from error

    network = decode_network(image, network_class)
    logger.info(
        f"Loaded network {list(network.layer_sizes)} from {path} "
        f"({network.total_trained_epochs} epochs)"
    )
    return network
