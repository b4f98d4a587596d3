"""
Cross-stage development state for devogrow.

A development state is the memory one lineage carries from a stage to the
next:
- OccupancyState: which grid cells are enabled
- PhaseState: per-cell oscillator phases (NaN where no cell exists)
- TreeState: the decorated development tree

States are never mutated by growth: every strategy clones the state it
receives and returns the clone, so a stage can be developed again with
identical results.
"""

import copy
from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

import numpy as np

from .grid import DIRECTIONS


@dataclass
class OccupancyState:
    """
    Enabled cells of a grid-developed body.

    Attributes:
        enabled: Boolean grid [H, W]
    """

    enabled: np.ndarray

    @classmethod
    def empty(cls, width: int, height: int) -> "OccupancyState":
        return cls(enabled=np.zeros((height, width), dtype=bool))

    @property
    def shape(self) -> tuple[int, int]:
        """Grid dimensions (H, W)."""
        return self.enabled.shape

    @property
    def n_enabled(self) -> int:
        return int(self.enabled.sum())

    def clone(self) -> "OccupancyState":
        return OccupancyState(enabled=np.array(self.enabled, dtype=bool, copy=True))


@dataclass
class PhaseState:
    """
    Per-cell oscillator phases of a body grown by a phase automaton.

    Attributes:
        phases: Phase grid [H, W]; NaN marks cells that are not part of the body
    """

    phases: np.ndarray

    @classmethod
    def empty(cls, width: int, height: int) -> "PhaseState":
        return cls(phases=np.full((height, width), np.nan))

    @property
    def shape(self) -> tuple[int, int]:
        """Grid dimensions (H, W)."""
        return self.phases.shape

    @property
    def enabled(self) -> np.ndarray:
        return ~np.isnan(self.phases)

    @property
    def n_enabled(self) -> int:
        return int(self.enabled.sum())

    def clone(self) -> "PhaseState":
        return PhaseState(phases=np.array(self.phases, dtype=float, copy=True))


@dataclass
class DevoNode:
    """
    Node of a development tree.

    Attributes:
        x, y: Cell coordinate; the root is at (0, 0) while growing
        priority: Growth priority read from the genotype
        values: Per-cell controller values read from the genotype
        enabled: Whether the node is part of the body
        children: Child slots indexed by direction (N, E, S, W)
    """

    x: int = 0
    y: int = 0
    priority: float = 0.0
    values: tuple[float, ...] = ()
    enabled: bool = False
    children: list[Optional["DevoNode"]] = field(
        default_factory=lambda: [None] * len(DIRECTIONS)
    )

    def walk(self) -> Iterator["DevoNode"]:
        """All nodes of the subtree, in pre-order (self, then N, E, S, W)."""
        yield self
        for child in self.children:
            if child is not None:
                yield from child.walk()

    def count_enabled(self) -> int:
        """Enabled nodes reachable through enabled ancestors."""
        if not self.enabled:
            return 0
        return 1 + sum(c.count_enabled() for c in self.children if c is not None)


@dataclass
class TreeState:
    """
    Development tree of a tree-grown body.

    Attributes:
        root: Root node of the decorated tree
    """

    root: DevoNode

    @property
    def n_enabled(self) -> int:
        return self.root.count_enabled()

    def enabled_nodes(self) -> list[DevoNode]:
        return [node for node in self.root.walk() if node.enabled]

    def clone(self) -> "TreeState":
        return TreeState(root=copy.deepcopy(self.root))


DevelopmentState = Union[OccupancyState, PhaseState, TreeState]
