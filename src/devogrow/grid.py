"""
Grid utilities for devogrow.

All grids are numpy arrays of shape [H, W], indexed [y, x], with y growing
southwards. Cells are addressed as (x, y) tuples.
"""

from typing import Optional

import numpy as np


# Direction indices, also the child slots of a tree node
NORTH = 0
EAST = 1
SOUTH = 2
WEST = 3

DIRECTIONS = (NORTH, EAST, SOUTH, WEST)

# (dx, dy) offset of the neighbour in each direction
OFFSETS = {
    NORTH: (0, -1),
    EAST: (1, 0),
    SOUTH: (0, 1),
    WEST: (-1, 0),
}

# Opposite direction mapping
OPPOSITE = {NORTH: SOUTH, EAST: WEST, SOUTH: NORTH, WEST: EAST}


def neighbor_values(arr: np.ndarray, fill=0) -> dict[int, np.ndarray]:
    """
    Get the value of each cell's neighbour in every direction.

    Unlike a toroidal roll, cells past the border read `fill`.

    Args:
        arr: Grid [H, W]
        fill: Value read outside the grid

    Returns:
        Mapping direction -> grid [H, W] of neighbour values
    """
    H, W = arr.shape
    padded = np.pad(arr, 1, mode="constant", constant_values=fill)
    return {
        NORTH: padded[0:H, 1:W + 1],
        EAST: padded[1:H + 1, 2:W + 2],
        SOUTH: padded[2:H + 2, 1:W + 1],
        WEST: padded[1:H + 1, 0:W],
    }


def frontier(mask: np.ndarray) -> np.ndarray:
    """Cells not in `mask` that share an edge with a cell in `mask`."""
    touching = np.zeros(mask.shape, dtype=bool)
    for values in neighbor_values(mask.astype(bool), fill=False).values():
        touching |= values
    return touching & ~mask.astype(bool)


def label_components(mask: np.ndarray) -> np.ndarray:
    """
    Label the 4-connected components of a boolean grid.

    Uses iterative minimum-label propagation.

    Args:
        mask: Boolean grid [H, W]

    Returns:
        Labels [H, W]; -1 outside the mask, equal labels within a component
    """
    mask = np.asarray(mask, dtype=bool)
    H, W = mask.shape
    outside = H * W
    labels = np.where(mask, np.arange(H * W).reshape(H, W), -1)

    # Worst case is a snake visiting every cell
    for _ in range(H * W):
        old_labels = labels
        work = np.where(mask, labels, outside)
        for n_labels in neighbor_values(work, fill=outside).values():
            work = np.minimum(work, n_labels)
        labels = np.where(mask, work, -1)
        if np.array_equal(labels, old_labels):
            break

    return labels


def count_components(mask: np.ndarray) -> int:
    """Number of 4-connected components in a boolean grid."""
    labels = label_components(mask)
    return len(np.unique(labels[labels >= 0]))


def is_connected(mask: np.ndarray) -> bool:
    """True if the non-empty cells form exactly one 4-connected component."""
    return count_components(mask) == 1


def _best_cell(priorities: np.ndarray, candidates: np.ndarray) -> tuple[int, int]:
    """Index (y, x) of the highest-priority candidate; ties go to row-major order."""
    masked = np.where(candidates, np.nan_to_num(priorities, nan=-np.inf), -np.inf)
    best = masked.max()
    flat = np.flatnonzero(candidates.ravel() & (masked.ravel() == best))[0]
    y, x = np.unravel_index(flat, priorities.shape)
    return int(y), int(x)


def select_connected(
    priorities: np.ndarray,
    n: int,
    pinned: Optional[np.ndarray] = None,
    maximize: bool = True,
) -> np.ndarray:
    """
    Select one 4-connected region of up to `n` cells.

    Every pinned cell is kept. If nothing is pinned, the region is seeded at
    the best cell of the whole grid. The region then grows one cell at a
    time, always taking the best cell of its frontier, until it has `n`
    cells or the frontier is empty. Ties are broken by row-major scan
    order, so the result is deterministic.

    Args:
        priorities: Priority grid [H, W]; NaN counts as the worst priority
        n: Requested number of cells
        pinned: Optional boolean grid of cells that must be kept
        maximize: Prefer higher priorities if True, lower otherwise

    Returns:
        Boolean grid [H, W] of selected cells
    """
    priorities = np.asarray(priorities, dtype=float)
    if not maximize:
        priorities = -priorities

    if pinned is None:
        selected = np.zeros(priorities.shape, dtype=bool)
    else:
        selected = np.array(pinned, dtype=bool, copy=True)

    if not selected.any():
        if n <= 0:
            return selected
        selected[_best_cell(priorities, np.ones(priorities.shape, dtype=bool))] = True

    while int(selected.sum()) < n:
        candidates = frontier(selected)
        if not candidates.any():
            break
        selected[_best_cell(priorities, candidates)] = True

    return selected


def to_ascii(mask: np.ndarray, full: str = "#", empty: str = ".") -> str:
    """Render a boolean grid as text, one row per line, north on top."""
    return "\n".join(
        "".join(full if v else empty for v in row) for row in np.asarray(mask, dtype=bool)
    )
