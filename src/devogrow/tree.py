"""
Quaternary priority trees and tree-driven growth.

The genotype tree is a tagged union: a node is either a Leaf or an Internal
node with four optional children, one per direction (N, E, S, W). Growth
decorates a mutable copy of the tree (DevoNode) with coordinates and
enables nodes one at a time, always next to an enabled parent, so the body
is connected by construction.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Union

import numpy as np

from .grid import DIRECTIONS, OFFSETS
from .state import DevoNode, TreeState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Leaf:
    """Tree genotype node without children."""

    priority: float
    values: tuple[float, ...] = ()


@dataclass(frozen=True)
class Internal:
    """Tree genotype node with one optional child per direction (N, E, S, W)."""

    priority: float
    children: tuple[Optional["Node"], ...]
    values: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        if len(self.children) != len(DIRECTIONS):
            raise ValueError(
                f"Internal node needs {len(DIRECTIONS)} child slots, got {len(self.children)}"
            )


Node = Union[Leaf, Internal]


def iter_nodes(node: Node) -> Iterator[Node]:
    """Genotype nodes in pre-order."""
    yield node
    if isinstance(node, Internal):
        for child in node.children:
            if child is not None:
                yield from iter_nodes(child)


def to_devo_tree(node: Node) -> DevoNode:
    """Build an undecorated, fully disabled development tree from a genotype tree."""
    devo = DevoNode(priority=float(node.priority), values=tuple(float(v) for v in node.values))
    if isinstance(node, Internal):
        devo.children = [None if c is None else to_devo_tree(c) for c in node.children]
    return devo


def decorate(node: DevoNode, x: int = 0, y: int = 0) -> None:
    """Assign coordinates: the node gets (x, y), each child parent + offset."""
    node.x, node.y = x, y
    for direction, child in enumerate(node.children):
        if child is not None:
            dx, dy = OFFSETS[direction]
            decorate(child, x + dx, y + dy)


@dataclass
class Candidate:
    """A growth candidate: an existing disabled node or an empty child slot."""

    parent: Optional[DevoNode]
    direction: Optional[int]
    node: Optional[DevoNode]
    x: int
    y: int

    @property
    def priority(self) -> float:
        source = self.node if self.node is not None else self.parent
        return source.priority


def candidates(root: DevoNode, sprout: bool = False) -> list[Candidate]:
    """
    Eligible candidates in pre-order.

    A candidate is a disabled node whose parent is enabled (or the disabled
    root), skipping coordinates already taken by an enabled node. With
    `sprout`, empty child slots of enabled nodes are candidates too.
    """
    occupied = {(n.x, n.y) for n in root.walk() if n.enabled}
    if not root.enabled:
        return [Candidate(None, None, root, root.x, root.y)]

    found = []

    def visit(node: DevoNode) -> None:
        for direction, child in enumerate(node.children):
            if child is not None and child.enabled:
                visit(child)
                continue
            dx, dy = OFFSETS[direction]
            x, y = node.x + dx, node.y + dy
            if (x, y) in occupied:
                continue
            if child is not None:
                found.append(Candidate(node, direction, child, x, y))
            elif sprout:
                found.append(Candidate(node, direction, None, x, y))

    visit(root)
    return found


def enable(candidate: Candidate) -> DevoNode:
    """Enable a candidate, sprouting a leaf that inherits its parent's values if needed."""
    if candidate.node is not None:
        candidate.node.enabled = True
        return candidate.node
    parent = candidate.parent
    node = DevoNode(
        x=candidate.x,
        y=candidate.y,
        priority=parent.priority,
        values=parent.values,
        enabled=True,
    )
    parent.children[candidate.direction] = node
    return node


def normalize(root: DevoNode) -> None:
    """Translate all coordinates so the enabled bounding box starts at (0, 0)."""
    enabled = [n for n in root.walk() if n.enabled]
    if not enabled:
        return
    min_x = min(n.x for n in enabled)
    min_y = min(n.y for n in enabled)
    for node in root.walk():
        node.x -= min_x
        node.y -= min_y


def neighbor_scorer(
    previous_body: np.ndarray,
    origin: tuple[int, int],
    selection_function: Callable,
    max_first: bool,
) -> Callable[[int, int], float]:
    """
    Score a raw tree coordinate by the voxels of the previous body around it.

    Args:
        previous_body: Object grid [H, W] of the previous stage
        origin: Root coordinate in the previous body's frame
        selection_function: Voxel -> float
        max_first: Aggregate with max if True, min otherwise

    Returns:
        Function (x, y) -> aggregated score, 0 when no neighbour exists
    """
    H, W = previous_body.shape
    aggregate = max if max_first else min

    def score(x: int, y: int) -> float:
        bx, by = x + origin[0], y + origin[1]
        values = []
        for dx, dy in OFFSETS.values():
            nx, ny = bx + dx, by + dy
            if 0 <= nx < W and 0 <= ny < H and previous_body[ny, nx] is not None:
                values.append(float(selection_function(previous_body[ny, nx])))
        return aggregate(values) if values else 0.0

    return score


def grow_tree(
    state: TreeState,
    n: int,
    max_first: bool = True,
    sprout: bool = False,
    scorer: Optional[Callable[[int, int], float]] = None,
    score_max_first: bool = True,
) -> TreeState:
    """
    Enable nodes until `n` are enabled or no candidate remains.

    The state is modified in place; callers pass a clone.

    Args:
        state: Development tree to grow
        n: Requested total of enabled nodes
        max_first: Prefer higher priorities if True, lower otherwise
        sprout: Let empty child slots of enabled nodes grow new leaves
        scorer: Optional neighbour score, compared before the priority
        score_max_first: Prefer higher neighbour scores if True

    Returns:
        The same state, grown and normalized
    """
    root = state.root
    decorate(root)
    sign = 1.0 if max_first else -1.0
    score_sign = 1.0 if score_max_first else -1.0

    def key(c: Candidate):
        if scorer is None:
            return sign * c.priority
        return (score_sign * scorer(c.x, c.y), sign * c.priority)

    while state.n_enabled < n:
        found = candidates(root, sprout)
        if not found:
            logger.debug("No growth candidate left at %d cells", state.n_enabled)
            break
        # max keeps the first of equal keys, i.e. pre-order position
        enable(max(found, key=key))

    normalize(root)
    return state


def tree_body_mask(state: TreeState) -> np.ndarray:
    """Boolean grid [H, W] of enabled tree coordinates."""
    nodes = state.enabled_nodes()
    if not nodes:
        return np.zeros((1, 1), dtype=bool)
    mask = np.zeros((max(n.y for n in nodes) + 1, max(n.x for n in nodes) + 1), dtype=bool)
    for node in nodes:
        mask[node.y, node.x] = True
    return mask


def tree_cell_values(state: TreeState, n_values: int) -> np.ndarray:
    """Per-cell controller values [H, W, n_values] of the enabled nodes."""
    mask = tree_body_mask(state)
    values = np.zeros(mask.shape + (n_values,))
    for node in state.enabled_nodes():
        values[node.y, node.x] = node.values
    return values


def random_tree(
    rng: np.random.Generator,
    depth: int,
    n_values: int = 0,
    p_child: float = 0.5,
) -> Node:
    """
    Random genotype tree with normally distributed priorities and values.

    Args:
        rng: Random generator
        depth: Maximum depth; 0 gives a Leaf
        n_values: Per-node controller values
        p_child: Probability of each child slot being filled
    """
    priority = float(rng.normal())
    values = tuple(float(v) for v in rng.normal(size=n_values))
    if depth <= 0:
        return Leaf(priority, values)
    children = tuple(
        random_tree(rng, depth - 1, n_values, p_child) if rng.random() < p_child else None
        for _ in DIRECTIONS
    )
    return Internal(priority, children, values)
