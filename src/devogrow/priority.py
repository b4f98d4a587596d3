"""
Priority fields: per-cell scalars deciding which cells join the body next.

Two modes:
- direct: the genome slice holds one value per grid cell (row-major)
- neural: a small MLP (neural cellular automaton) scores every empty cell
  from the occupancy of its N, E, S, W neighbours; occupied cells are
  pinned with a sentinel priority
"""

from typing import Optional, Sequence

import numpy as np

from .errors import GenotypeSizeMismatch
from .grid import DIRECTIONS, neighbor_values
from .mlp import MultiLayerPerceptron

# Priority written on already enabled cells
PINNED_PRIORITY = -2.0

# Inputs of the neural automaton: one per neighbour
N_CA_INPUTS = len(DIRECTIONS)

VALID_MODES = {"direct", "neural"}


def neighbor_inputs(grid: np.ndarray, fill: float = 0.0) -> np.ndarray:
    """Stack neighbour values as automaton inputs [H, W, 4], ordered N, E, S, W."""
    neighbors = neighbor_values(np.asarray(grid, dtype=float), fill=fill)
    return np.stack([neighbors[d] for d in DIRECTIONS], axis=-1)


class PriorityField:
    """
    Priority field over a W x H grid.

    Attributes:
        mode: "direct" or "neural"
        width, height: Grid dimensions
        n_outputs: Automaton outputs (neural mode); the first is the priority
        inner_layer_ratio, n_inner_layers: Automaton shape (neural mode)
    """

    def __init__(
        self,
        mode: str,
        width: int,
        height: int,
        inner_layer_ratio: float = 0.65,
        n_inner_layers: int = 1,
        n_outputs: int = 1,
    ):
        if mode not in VALID_MODES:
            raise ValueError(f"mode must be one of {VALID_MODES}, got {mode}")
        self.mode = mode
        self.width = width
        self.height = height
        self.inner_layer_ratio = inner_layer_ratio
        self.n_inner_layers = n_inner_layers
        self.n_outputs = n_outputs

    @property
    def expected_size(self) -> int:
        """Length of the genome slice this field reads."""
        if self.mode == "direct":
            return self.width * self.height
        return MultiLayerPerceptron.weight_count(
            N_CA_INPUTS, self.n_outputs, self.inner_layer_ratio, self.n_inner_layers
        )

    def check(self, genome_slice: Sequence[float]) -> np.ndarray:
        values = np.asarray(genome_slice, dtype=float).ravel()
        if values.size != self.expected_size:
            raise GenotypeSizeMismatch(self.expected_size, values.size)
        return values

    def network(self, genome_slice: Sequence[float]) -> MultiLayerPerceptron:
        """The neural automaton encoded by the genome slice."""
        return MultiLayerPerceptron.shaped(
            N_CA_INPUTS,
            self.n_outputs,
            self.inner_layer_ratio,
            self.n_inner_layers,
            self.check(genome_slice),
        )

    def compute(
        self,
        genome_slice: Sequence[float],
        previous_occupancy: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """
        Compute the priority grid.

        Args:
            genome_slice: Values read by this field
            previous_occupancy: Boolean grid [H, W] of enabled cells

        Returns:
            Priorities [H, W]
        """
        if self.mode == "direct":
            return self.check(genome_slice).reshape(self.height, self.width)
        if previous_occupancy is None:
            previous_occupancy = np.zeros((self.height, self.width), dtype=bool)
        return neural_priorities(self.network(genome_slice), previous_occupancy)


def neural_priorities(network: MultiLayerPerceptron, occupancy: np.ndarray) -> np.ndarray:
    """
    Score every empty cell from its neighbours' occupancy (0/1).

    Args:
        network: Automaton with 4 inputs; output 0 is the priority
        occupancy: Boolean grid [H, W]

    Returns:
        Priorities [H, W], PINNED_PRIORITY on occupied cells
    """
    occupancy = np.asarray(occupancy, dtype=bool)
    inputs = neighbor_inputs(occupancy.astype(float))
    priorities = np.full(occupancy.shape, PINNED_PRIORITY)
    for y, x in zip(*np.nonzero(~occupancy)):
        priorities[y, x] = network(inputs[y, x])[0]
    return priorities


def neural_phase_priorities(
    network: MultiLayerPerceptron,
    phases: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Score every empty cell from its neighbours' phases.

    Args:
        network: Automaton with 4 inputs and 2 outputs (priority, phase)
        phases: Phase grid [H, W], NaN where no cell exists

    Returns:
        Tuple of (priorities, proposed phases), both [H, W]; occupied cells
        keep their phase and get PINNED_PRIORITY
    """
    occupied = ~np.isnan(phases)
    inputs = neighbor_inputs(np.nan_to_num(phases, nan=0.0))
    priorities = np.full(phases.shape, PINNED_PRIORITY)
    proposed = np.array(phases, dtype=float, copy=True)
    for y, x in zip(*np.nonzero(~occupied)):
        outputs = network(inputs[y, x])
        priorities[y, x] = outputs[0]
        proposed[y, x] = outputs[1]
    return priorities, proposed
