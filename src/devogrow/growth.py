"""
Growth strategies: how the body develops from one stage to the next.

Every strategy lays out its part of the genotype, validates it, and grows
a development state to a requested number of cells:
- GridGrowth: direct priority grid, connected greedy selection,
  optionally neighbour-conditioned
- NeuralCAGrowth: neural cellular automaton, one cell at a time
- TreeGrowth: quaternary priority tree, optionally neighbour-conditioned
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np

from .errors import GenotypeSizeMismatch
from .grid import OFFSETS, select_connected
from .mlp import MultiLayerPerceptron
from .organism import TargetSpec
from .priority import PriorityField, neural_phase_priorities, neural_priorities
from .state import OccupancyState, PhaseState, TreeState
from .tree import (
    Internal,
    Leaf,
    grow_tree,
    iter_nodes,
    neighbor_scorer,
    to_devo_tree,
    tree_body_mask,
    tree_cell_values,
)

logger = logging.getLogger(__name__)


@dataclass
class GrowthResult:
    """
    Outcome of one growth call.

    Attributes:
        state: The new development state
        cells: Boolean grid [H, W] of body cells
        cell_values: Per-cell controller values [H, W, k]
    """

    state: Any
    cells: np.ndarray
    cell_values: np.ndarray


def _flat(genotype, expected: int) -> np.ndarray:
    values = np.array(genotype, dtype=float, copy=True)
    if values.ndim != 1 or values.size != expected:
        raise GenotypeSizeMismatch(expected, values.size if values.ndim == 1 else values.shape)
    return values


class GrowthStrategy:
    """Base class; subclasses define the genotype layout and the growth rule."""

    def state_type(self, n_cell_values: int) -> type:
        """Development state class this strategy threads between stages."""
        raise NotImplementedError

    def example_for(self, target: TargetSpec, n_weights: int, n_cell_values: int):
        raise NotImplementedError

    def decode(self, genotype, target: TargetSpec, n_weights: int, n_cell_values: int):
        """Validate a genotype; return (growth parameters, controller weights)."""
        raise NotImplementedError

    def grow(
        self,
        params,
        state,
        previous_body: Optional[np.ndarray],
        n: int,
    ) -> GrowthResult:
        raise NotImplementedError


class GridGrowth(GrowthStrategy):
    """
    Direct encoding: one priority per target cell.

    Without per-cell controller values the genotype is the flat vector
    [controller weights..., W*H priorities]. With k per-cell values it is a
    grid [H, W, 1 + k] holding the priority first, then the values.

    Attributes:
        max_first: Prefer higher priorities if True
        condition: Optional Voxel -> float function; when set, later stages
            add the empty neighbours of the best-scoring previous voxels
        condition_max_first: Best score is the highest if True
    """

    def __init__(
        self,
        max_first: bool = True,
        condition: Optional[Callable] = None,
        condition_max_first: bool = True,
    ):
        self.max_first = max_first
        self.condition = condition
        self.condition_max_first = condition_max_first

    def state_type(self, n_cell_values: int) -> type:
        return OccupancyState

    @staticmethod
    def _check_layout(n_weights: int, n_cell_values: int) -> None:
        if n_weights > 0 and n_cell_values > 0:
            raise ValueError("Grid growth cannot carry both shared weights and per-cell values")

    def example_for(self, target: TargetSpec, n_weights: int, n_cell_values: int):
        self._check_layout(n_weights, n_cell_values)
        if n_cell_values == 0:
            return np.zeros(n_weights + target.width * target.height)
        return np.zeros((target.height, target.width, 1 + n_cell_values))

    def decode(self, genotype, target: TargetSpec, n_weights: int, n_cell_values: int):
        self._check_layout(n_weights, n_cell_values)
        H, W = target.height, target.width
        if n_cell_values == 0:
            values = _flat(genotype, n_weights + W * H)
            field = PriorityField("direct", W, H)
            return (field.compute(values[n_weights:]), np.zeros((H, W, 0))), values[:n_weights]

        grid = np.array(genotype, dtype=float, copy=True)
        expected = (H, W, 1 + n_cell_values)
        if grid.shape != expected:
            raise GenotypeSizeMismatch(expected, grid.shape, "grid values")
        return (grid[..., 0], grid[..., 1:]), np.zeros(0)

    def grow(self, params, state, previous_body, n):
        priorities, cell_values = params
        if (
            self.condition is not None
            and state is not None
            and previous_body is not None
            and previous_body.shape == state.shape
            and state.enabled.any()
        ):
            selected = self._grow_conditioned(priorities, state.enabled, previous_body, n)
        else:
            pinned = None if state is None else state.enabled
            selected = select_connected(priorities, n, pinned=pinned, maximize=self.max_first)
        return GrowthResult(OccupancyState(enabled=selected), selected, cell_values)

    def _grow_conditioned(
        self,
        priorities: np.ndarray,
        enabled: np.ndarray,
        previous_body: np.ndarray,
        n: int,
    ) -> np.ndarray:
        """
        Add cells next to the previous voxels, best-scoring voxels first.

        Each voxel offers its empty neighbours ranked by priority. Voxels
        with equal scores keep row-major order.
        """
        H, W = enabled.shape
        ranking = np.nan_to_num(priorities, nan=-np.inf if self.max_first else np.inf)
        scores = {
            (int(y), int(x)): float(self.condition(previous_body[y, x]))
            for y, x in zip(*np.nonzero(enabled))
        }
        order = sorted(scores, key=scores.get, reverse=self.condition_max_first)

        selected = np.array(enabled, copy=True)
        count = int(selected.sum())
        for y, x in order:
            if count >= n:
                break
            empty = [
                (y + dy, x + dx)
                for dx, dy in OFFSETS.values()
                if 0 <= x + dx < W and 0 <= y + dy < H and not selected[y + dy, x + dx]
            ]
            empty.sort(key=lambda cell: ranking[cell], reverse=self.max_first)
            for cell in empty[:n - count]:
                selected[cell] = True
                count += 1
        logger.debug("Conditioned growth added %d cells", count - int(enabled.sum()))
        return selected


class NeuralCAGrowth(GrowthStrategy):
    """
    Neural cellular automaton adding one cell at a time.

    The first cell goes to the grid centre. Every further cell is the best
    frontier cell scored by the automaton from its neighbours. With one
    per-cell value (e.g. an oscillator phase) the automaton reads the
    neighbours' values and emits the new cell's value as a second output.

    The genotype is [controller weights..., automaton weights...].
    """

    def __init__(self, inner_layer_ratio: float = 0.65, n_inner_layers: int = 1):
        self.inner_layer_ratio = inner_layer_ratio
        self.n_inner_layers = n_inner_layers

    def _field(self, target: TargetSpec, n_cell_values: int) -> PriorityField:
        if n_cell_values > 1:
            raise ValueError(
                f"Neural CA growth carries at most one value per cell, got {n_cell_values}"
            )
        return PriorityField(
            "neural",
            target.width,
            target.height,
            self.inner_layer_ratio,
            self.n_inner_layers,
            n_outputs=1 + n_cell_values,
        )

    def state_type(self, n_cell_values: int) -> type:
        return PhaseState if n_cell_values == 1 else OccupancyState

    def example_for(self, target: TargetSpec, n_weights: int, n_cell_values: int):
        return np.zeros(n_weights + self._field(target, n_cell_values).expected_size)

    def decode(self, genotype, target: TargetSpec, n_weights: int, n_cell_values: int):
        field = self._field(target, n_cell_values)
        values = _flat(genotype, n_weights + field.expected_size)
        network = field.network(values[n_weights:])
        return (network, (target.height, target.width), n_cell_values == 1), values[:n_weights]

    def grow(self, params, state, previous_body, n):
        network, (H, W), carries_values = params
        if carries_values:
            state = PhaseState.empty(W, H) if state is None else state.clone()
            self._grow_phases(network, state, n)
            cell_values = np.nan_to_num(state.phases, nan=0.0)[..., None]
        else:
            state = OccupancyState.empty(W, H) if state is None else state.clone()
            self._grow_occupancy(network, state, n)
            cell_values = np.zeros((H, W, 0))
        return GrowthResult(state, np.array(state.enabled, copy=True), cell_values)

    @staticmethod
    def _grow_occupancy(network: MultiLayerPerceptron, state: OccupancyState, n: int) -> None:
        H, W = state.shape
        while state.n_enabled < n:
            count = state.n_enabled
            if count == 0:
                state.enabled[H // 2, W // 2] = True
                continue
            priorities = neural_priorities(network, state.enabled)
            selected = select_connected(priorities, count + 1, pinned=state.enabled)
            if int(selected.sum()) == count:
                break
            state.enabled = selected

    @staticmethod
    def _grow_phases(network: MultiLayerPerceptron, state: PhaseState, n: int) -> None:
        H, W = state.shape
        while state.n_enabled < n:
            count = state.n_enabled
            if count == 0:
                state.phases[H // 2, W // 2] = network(np.zeros(4))[1]
                continue
            enabled = state.enabled
            priorities, proposed = neural_phase_priorities(network, state.phases)
            selected = select_connected(priorities, count + 1, pinned=enabled)
            added = selected & ~enabled
            if not added.any():
                break
            state.phases[added] = proposed[added]


class TreeGrowth(GrowthStrategy):
    """
    Growth driven by a quaternary priority tree.

    The genotype is the pair (tree, controller weights); every tree node
    carries its priority and the per-cell controller values.

    Attributes:
        max_first: Prefer higher priorities if True
        sprout: Let enabled nodes grow leaves in their empty child slots
        condition: Optional Voxel -> float function; when set, candidates
            next to previous-stage voxels with the best score go first
        condition_max_first: Best score is the highest if True
    """

    def __init__(
        self,
        max_first: bool = True,
        sprout: bool = True,
        condition: Optional[Callable] = None,
        condition_max_first: bool = True,
    ):
        self.max_first = max_first
        self.sprout = sprout
        self.condition = condition
        self.condition_max_first = condition_max_first

    def state_type(self, n_cell_values: int) -> type:
        return TreeState

    def example_for(self, target: TargetSpec, n_weights: int, n_cell_values: int):
        return Leaf(0.0, (0.0,) * n_cell_values), np.zeros(n_weights)

    def decode(self, genotype, target: TargetSpec, n_weights: int, n_cell_values: int):
        try:
            tree, weights = genotype
        except (TypeError, ValueError):
            raise GenotypeSizeMismatch(
                "(tree, weights) pair", type(genotype).__name__, "genotype parts"
            ) from None
        if not isinstance(tree, (Leaf, Internal)):
            raise GenotypeSizeMismatch("Leaf or Internal root", type(tree).__name__, "tree roots")
        weights = _flat(weights, n_weights)
        for node in iter_nodes(tree):
            if len(node.values) != n_cell_values:
                raise GenotypeSizeMismatch(n_cell_values, len(node.values), "values per tree node")
        return (tree, n_cell_values), weights

    def grow(self, params, state, previous_body, n):
        tree, n_cell_values = params
        scorer = None
        if state is None:
            state = TreeState(root=to_devo_tree(tree))
        else:
            state = state.clone()
            if self.condition is not None and previous_body is not None:
                origin = (state.root.x, state.root.y)
                scorer = neighbor_scorer(
                    previous_body, origin, self.condition, self.condition_max_first
                )
        grow_tree(
            state,
            n,
            max_first=self.max_first,
            sprout=self.sprout,
            scorer=scorer,
            score_max_first=self.condition_max_first,
        )
        return GrowthResult(state, tree_body_mask(state), tree_cell_values(state, n_cell_values))
