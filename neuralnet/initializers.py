"""
Weight Initialization Schemes

Fills the weight matrices and bias vectors of a network in place. Every
scheme scales its random draws by the fan-in of the layer (the number of
input connections, i.e. the column count of the weight matrix), except
XAVIER, which computes one range for the whole network.

    ======= ================== =========================================
    Scheme  Distribution       Scale
    ======= ================== =========================================
    HE      N(0, 1) * std      std = sqrt(2 / fan_in), per layer
    LECUN   N(0, 1) * std      std = sqrt(1 / fan_in), per layer
    GLOROT  U(-r, r)           r = sqrt(2 / (fan_in + 1)), per layer
    XAVIER  U(-r, r)           r = sqrt(6 / (n_in + n_out)) for weights,
                               r = sqrt(1 / (n_in + n_out)) for biases,
                               n_in = width of the first hidden layer,
                               n_out = network output width
    ======= ================== =========================================

Reference:
    - "Delving Deep into Rectifiers" (He et al., 2015)
    - "Efficient BackProp" (LeCun et al., 1998)
    - "Understanding the difficulty of training deep feedforward neural
      networks" (Glorot & Bengio, 2010)
"""

import math
from typing import List, Optional, Sequence

import numpy as np

from neuralnet.errors import UnresolvableFunctionError
from neuralnet.tags import parse_tag


class WeightInitialization:
    """
    Base class for in-place weight and bias initialization.

    Subclasses implement ``fill_weights`` and ``fill_biases``. All sampling
    goes through the ``numpy.random.Generator`` passed in, so a seeded
    generator gives reproducible networks.
    """

    name: str = ""

    def initialize(
        self,
        weights: List[np.ndarray],
        biases: List[np.ndarray],
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """
        Fill all weights and biases of a network.

        Args:
            weights: Per-layer matrices of shape (fan_out, fan_in)
            biases: Per-layer vectors of length fan_out
            rng: Random generator; a fresh unseeded one if omitted
        """
        rng = rng if rng is not None else np.random.default_rng()
        fan_ins = [layer_weights.shape[1] for layer_weights in weights]
        self.fill_weights(weights, rng)
        self.fill_biases(biases, fan_ins, rng)

    def fill_weights(self, weights: List[np.ndarray], rng: np.random.Generator) -> None:
        raise NotImplementedError

    def fill_biases(
        self,
        biases: List[np.ndarray],
        fan_ins: Sequence[int],
        rng: np.random.Generator,
    ) -> None:
        raise NotImplementedError

    @property
    def tag(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.tag

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class _PerLayerGaussian(WeightInitialization):
    """Gaussian draws scaled by sqrt(gain / fan_in) for each layer."""

    gain: float = 1.0

    def _std(self, fan_in: int) -> float:
        return math.sqrt(self.gain / fan_in)

    def fill_weights(self, weights, rng):
        for layer_weights in weights:
            std = self._std(layer_weights.shape[1])
            layer_weights[...] = rng.standard_normal(layer_weights.shape) * std

    def fill_biases(self, biases, fan_ins, rng):
        for layer_biases, fan_in in zip(biases, fan_ins):
            layer_biases[...] = rng.standard_normal(layer_biases.shape) * self._std(fan_in)


class HE(_PerLayerGaussian):
    """He initialization, suited to the ReLU family."""

    name = "HE"
    gain = 2.0


class LECUN(_PerLayerGaussian):
    """LeCun initialization, suited to tanh."""

    name = "LECUN"
    gain = 1.0


class GLOROT(WeightInitialization):
    """Uniform draws in [-r, r] with r = sqrt(2 / (fan_in + 1)) per layer."""

    name = "GLOROT"

    @staticmethod
    def _range(fan_in: int) -> float:
        return math.sqrt(2.0 / (fan_in + 1))

    def fill_weights(self, weights, rng):
        for layer_weights in weights:
            limit = self._range(layer_weights.shape[1])
            layer_weights[...] = rng.uniform(-limit, limit, layer_weights.shape)

    def fill_biases(self, biases, fan_ins, rng):
        for layer_biases, fan_in in zip(biases, fan_ins):
            limit = self._range(fan_in)
            layer_biases[...] = rng.uniform(-limit, limit, layer_biases.shape)


class XAVIER(WeightInitialization):
    """
    Uniform draws with one range shared by every layer.

    The range is computed once from the width of the first hidden layer and
    the output width and reused unchanged for all layers, unlike the
    per-layer schemes.
    """

    name = "XAVIER"

    def fill_weights(self, weights, rng):
        first_hidden = weights[0].shape[0]
        network_outputs = weights[-1].shape[0]
        limit = math.sqrt(6.0 / (first_hidden + network_outputs))

        for layer_weights in weights:
            layer_weights[...] = rng.uniform(-limit, limit, layer_weights.shape)

    def fill_biases(self, biases, fan_ins, rng):
        first_hidden = biases[0].shape[0]
        network_outputs = biases[-1].shape[0]
        limit = math.sqrt(1.0 / (first_hidden + network_outputs))

        for layer_biases in biases:
            layer_biases[...] = rng.uniform(-limit, limit, layer_biases.shape)


_VARIANTS = {variant.name: variant for variant in (HE, LECUN, GLOROT, XAVIER)}


def resolve_weight_initialization(tag: str) -> WeightInitialization:
    """Look up a weight initialization scheme by name ("HE", "XAVIER()", ...)."""
    name, parameters = parse_tag(tag, "Weight initialization")

    variant = _VARIANTS.get(name)
    if variant is None or parameters:
        raise UnresolvableFunctionError(
            f"Weight initialization couldn't be resolved from {tag!r}"
        )

    return variant()
