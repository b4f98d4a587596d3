"""
Fixed-topology multi-layer perceptron.

Used both as the neural cellular automaton that scores candidate cells and
as the per-cell controller function. Weights are a flat vector, layer by
layer; within a layer, each output neuron reads a bias followed by one
weight per input neuron.
"""

import math
from typing import Callable, Sequence

import numpy as np

from .errors import GenotypeSizeMismatch


def inner_neurons(
    n_inputs: int,
    n_outputs: int,
    inner_layer_ratio: float,
    n_inner_layers: int,
) -> list[int]:
    """
    Compute inner layer sizes.

    The central layer has max(2, round(n_inputs * ratio)) neurons; with more
    than one inner layer, sizes taper linearly from the inputs to the centre
    and from the centre to the outputs.
    """
    sizes = [0] * n_inner_layers
    center = max(2, int(math.floor(n_inputs * inner_layer_ratio + 0.5)))
    if n_inner_layers > 1:
        half = n_inner_layers // 2
        for i in range(half):
            sizes[i] = n_inputs + int((center - n_inputs) / (half + 1)) * (i + 1)
        for i in range(half, n_inner_layers):
            sizes[i] = center + int((n_outputs - center) / (half + 1)) * (i - half)
    elif n_inner_layers > 0:
        sizes[0] = center
    return sizes


def count_weights(neurons: Sequence[int]) -> int:
    """Number of weights (biases included) for the given layer sizes."""
    return sum((n_in + 1) * n_out for n_in, n_out in zip(neurons[:-1], neurons[1:]))


class MultiLayerPerceptron:
    """
    Feed-forward network with the same activation on every non-input layer.

    Attributes:
        neurons: Layer sizes, inputs first and outputs last
        activation: Elementwise activation function
    """

    def __init__(
        self,
        n_inputs: int,
        inner: Sequence[int],
        n_outputs: int,
        weights: Sequence[float],
        activation: Callable[[np.ndarray], np.ndarray] = np.tanh,
    ):
        self.neurons = [n_inputs, *inner, n_outputs]
        self.activation = activation
        weights = np.array(weights, dtype=float, copy=True).ravel()
        expected = count_weights(self.neurons)
        if weights.size != expected:
            raise GenotypeSizeMismatch(expected, weights.size, "values for weights")

        self._layers = []
        offset = 0
        for n_in, n_out in zip(self.neurons[:-1], self.neurons[1:]):
            size = (n_in + 1) * n_out
            self._layers.append(weights[offset:offset + size].reshape(n_out, n_in + 1))
            offset += size

    @classmethod
    def shaped(
        cls,
        n_inputs: int,
        n_outputs: int,
        inner_layer_ratio: float,
        n_inner_layers: int,
        weights: Sequence[float],
    ) -> "MultiLayerPerceptron":
        """Build a network whose inner layers follow `inner_neurons`."""
        return cls(
            n_inputs,
            inner_neurons(n_inputs, n_outputs, inner_layer_ratio, n_inner_layers),
            n_outputs,
            weights,
        )

    @staticmethod
    def weight_count(
        n_inputs: int,
        n_outputs: int,
        inner_layer_ratio: float,
        n_inner_layers: int,
    ) -> int:
        inner = inner_neurons(n_inputs, n_outputs, inner_layer_ratio, n_inner_layers)
        return count_weights([n_inputs, *inner, n_outputs])

    @property
    def input_dim(self) -> int:
        return self.neurons[0]

    @property
    def output_dim(self) -> int:
        return self.neurons[-1]

    @property
    def weights(self) -> np.ndarray:
        """Flat copy of all weights, in genome order."""
        return np.concatenate([layer.ravel() for layer in self._layers])

    def __call__(self, inputs: Sequence[float]) -> np.ndarray:
        values = np.asarray(inputs, dtype=float).ravel()
        if values.size != self.input_dim:
            raise ValueError(
                f"Wrong input size: {self.input_dim} expected, {values.size} found"
            )
        for layer in self._layers:
            values = self.activation(layer[:, 0] + layer[:, 1:] @ values)
        return values

    def __repr__(self) -> str:
        return f"MultiLayerPerceptron({'-'.join(str(n) for n in self.neurons)})"
