"""
Controller synthesis for developed bodies.

Two families, chosen once per experiment:
- oscillatory: every voxel follows amplitude * sin(2π * frequency * t + phase)
- neural distributed: every voxel runs an MLP on its own sensor readings
  and on the signals its neighbours emitted at the previous step; the same
  network everywhere (homogeneous) or one network per voxel (heterogeneous)

Both can be time-downsampled with SteppedController.
"""

import math
from typing import Mapping, Optional, Sequence

import numpy as np

from .errors import DimensionMismatch
from .grid import DIRECTIONS, OFFSETS, OPPOSITE
from .mlp import MultiLayerPerceptron
from .organism import TargetSpec, body_mask

Readings = Mapping[tuple[int, int], Sequence[float]]

# Oscillator components, in the order their genome values are read
COMPONENTS = ("frequency", "phase", "amplitude")


def check_dimensions(function, n_inputs: int, n_outputs: int) -> None:
    """Raise DimensionMismatch if a function's declared arity is not the required one."""
    if function.input_dim != n_inputs:
        raise DimensionMismatch(function.input_dim, n_inputs, "input")
    if function.output_dim != n_outputs:
        raise DimensionMismatch(function.output_dim, n_outputs, "output")


class OscillatorController:
    """
    Open-loop sinusoidal controller.

    Attributes:
        frequencies, phases, amplitudes: Per-cell parameters [H, W]
        mask: Boolean grid [H, W] of live cells
    """

    def __init__(
        self,
        frequencies: np.ndarray,
        phases: np.ndarray,
        amplitudes: np.ndarray,
        mask: np.ndarray,
    ):
        self.frequencies = np.asarray(frequencies, dtype=float)
        self.phases = np.asarray(phases, dtype=float)
        self.amplitudes = np.asarray(amplitudes, dtype=float)
        self.mask = np.asarray(mask, dtype=bool)

    def control(self, t: float, readings: Optional[Readings] = None) -> np.ndarray:
        """Actuation values [H, W] at time t; NaN where there is no voxel."""
        values = self.amplitudes * np.sin(2.0 * math.pi * self.frequencies * t + self.phases)
        return np.where(self.mask, values, np.nan)

    def reset(self) -> None:
        """Nothing to reset: the controller is a pure function of time."""


class DistributedController:
    """
    Neural controller distributed over the voxels.

    Each live voxel reads its sensors plus, for every direction, the signals
    the neighbour on that side emitted towards it at the previous step. It
    outputs its actuation followed by the signals it emits: one block per
    direction if directional, a single broadcast block otherwise.
    """

    def __init__(
        self,
        body: np.ndarray,
        functions: np.ndarray,
        signals: int = 1,
        directional: bool = True,
    ):
        self.mask = body_mask(body)
        self.signals = signals
        self.directional = directional
        self.functions = functions
        self._n_readings = {}
        for y, x in zip(*np.nonzero(self.mask)):
            voxel = body[y, x]
            check_dimensions(
                functions[y, x],
                voxel.n_of_inputs(signals),
                voxel.n_of_outputs(signals, directional),
            )
            self._n_readings[(int(x), int(y))] = voxel.n_of_readings
        self.reset()

    def reset(self) -> None:
        H, W = self.mask.shape
        self._emitted = {d: np.zeros((H, W, self.signals)) for d in DIRECTIONS}

    def _incoming(self, x: int, y: int) -> np.ndarray:
        H, W = self.mask.shape
        blocks = []
        for direction in DIRECTIONS:
            dx, dy = OFFSETS[direction]
            nx, ny = x + dx, y + dy
            if 0 <= nx < W and 0 <= ny < H and self.mask[ny, nx]:
                blocks.append(self._emitted[OPPOSITE[direction]][ny, nx])
            else:
                blocks.append(np.zeros(self.signals))
        return np.concatenate(blocks)

    def control(self, t: float, readings: Optional[Readings] = None) -> np.ndarray:
        """
        Advance one control step.

        Args:
            t: Current time (unused by the networks themselves)
            readings: Sensor readings per (x, y); zeros for missing cells

        Returns:
            Actuation values [H, W]; NaN where there is no voxel
        """
        readings = readings or {}
        H, W = self.mask.shape
        actuation = np.full((H, W), np.nan)
        emitted = {d: np.zeros((H, W, self.signals)) for d in DIRECTIONS}
        for (x, y), n_readings in self._n_readings.items():
            own = np.asarray(readings.get((x, y), np.zeros(n_readings)), dtype=float)
            outputs = self.functions[y, x](np.concatenate([own, self._incoming(x, y)]))
            actuation[y, x] = outputs[0]
            for i, direction in enumerate(DIRECTIONS):
                if self.directional:
                    block = outputs[1 + i * self.signals:1 + (i + 1) * self.signals]
                else:
                    block = outputs[1:1 + self.signals]
                emitted[direction][y, x] = block
        self._emitted = emitted
        return actuation


class SteppedController:
    """Recompute the inner controller's outputs only every `step` time units."""

    def __init__(self, inner, step: float):
        if step <= 0:
            raise ValueError(f"step must be > 0, got {step}")
        self.inner = inner
        self.step = step
        self.reset()

    def reset(self) -> None:
        self.inner.reset()
        self._last_t = None
        self._last = None

    def control(self, t: float, readings: Optional[Readings] = None) -> np.ndarray:
        if self._last_t is None or t - self._last_t >= self.step:
            self._last = self.inner.control(t, readings)
            self._last_t = t
        return self._last


class ControllerStrategy:
    """
    How a controller is built for a body.

    A strategy may read shared weights (one genome slice for the whole
    body) and per-cell values (one slice per live cell, carried by the
    growth strategy alongside each cell).
    """

    requires_uniform_sensors = False

    def n_weights(self, target: TargetSpec) -> int:
        return 0

    def n_cell_values(self, target: TargetSpec) -> int:
        return 0

    def build(self, body: np.ndarray, weights: np.ndarray, cell_values: np.ndarray):
        raise NotImplementedError


def _clip(values: np.ndarray) -> np.ndarray:
    return np.clip(values, -1.0, 1.0)


class OscillatorControllerStrategy(ControllerStrategy):
    """
    Sinusoidal controllers.

    Components given a value are fixed; the others are read from the
    per-cell values, in the order frequency, phase, amplitude. Frequency
    values are clipped to [-1, 1] and rescaled to [min_frequency,
    max_frequency], amplitudes to [0, 1]; phases are used as they are.
    """

    def __init__(
        self,
        frequency: Optional[float] = 1.0,
        phase: Optional[float] = None,
        amplitude: Optional[float] = 1.0,
        min_frequency: float = 0.5,
        max_frequency: float = 2.0,
    ):
        self.fixed = {"frequency": frequency, "phase": phase, "amplitude": amplitude}
        self.min_frequency = min_frequency
        self.max_frequency = max_frequency

    @property
    def evolved_components(self) -> list[str]:
        return [c for c in COMPONENTS if self.fixed[c] is None]

    def n_cell_values(self, target: TargetSpec) -> int:
        return len(self.evolved_components)

    def build(self, body: np.ndarray, weights: np.ndarray, cell_values: np.ndarray):
        mask = body_mask(body)
        params = {c: np.full(mask.shape, v if v is not None else 0.0) for c, v in self.fixed.items()}
        for i, component in enumerate(self.evolved_components):
            raw = cell_values[..., i]
            if component == "frequency":
                params[component] = (
                    self.min_frequency
                    + (self.max_frequency - self.min_frequency) * (_clip(raw) + 1.0) / 2.0
                )
            elif component == "amplitude":
                params[component] = (_clip(raw) + 1.0) / 2.0
            else:
                params[component] = raw
        return OscillatorController(
            params["frequency"], params["phase"], params["amplitude"], mask
        )


class DistributedControllerStrategy(ControllerStrategy):
    """
    Neural distributed controllers.

    Homogeneous: one network from the shared weights, replicated at every
    voxel. Heterogeneous: one network per voxel from its per-cell values.
    """

    requires_uniform_sensors = True

    def __init__(
        self,
        inner_layer_ratio: float = 0.65,
        n_inner_layers: int = 1,
        signals: int = 1,
        directional: bool = True,
        heterogeneous: bool = False,
    ):
        self.inner_layer_ratio = inner_layer_ratio
        self.n_inner_layers = n_inner_layers
        self.signals = signals
        self.directional = directional
        self.heterogeneous = heterogeneous

    def io_dims(self, target: TargetSpec) -> tuple[int, int]:
        prototype = target.prototype
        return (
            prototype.n_of_inputs(self.signals),
            prototype.n_of_outputs(self.signals, self.directional),
        )

    def _network_size(self, target: TargetSpec) -> int:
        n_inputs, n_outputs = self.io_dims(target)
        return MultiLayerPerceptron.weight_count(
            n_inputs, n_outputs, self.inner_layer_ratio, self.n_inner_layers
        )

    def n_weights(self, target: TargetSpec) -> int:
        return 0 if self.heterogeneous else self._network_size(target)

    def n_cell_values(self, target: TargetSpec) -> int:
        return self._network_size(target) if self.heterogeneous else 0

    def _network(self, voxel, weights: np.ndarray) -> MultiLayerPerceptron:
        return MultiLayerPerceptron.shaped(
            voxel.n_of_inputs(self.signals),
            voxel.n_of_outputs(self.signals, self.directional),
            self.inner_layer_ratio,
            self.n_inner_layers,
            weights,
        )

    def build(self, body: np.ndarray, weights: np.ndarray, cell_values: np.ndarray):
        mask = body_mask(body)
        functions = np.empty(mask.shape, dtype=object)
        shared = None
        for y, x in zip(*np.nonzero(mask)):
            if self.heterogeneous:
                functions[y, x] = self._network(body[y, x], cell_values[y, x])
            else:
                # Stateless, shared by every voxel
                if shared is None:
                    shared = self._network(body[y, x], weights)
                functions[y, x] = shared
        return DistributedController(body, functions, self.signals, self.directional)
