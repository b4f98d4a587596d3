"""
Organisms, targets and body materialization.

A body is an object array [H, W] holding a Voxel at every live cell and
None elsewhere.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional, Union

import numpy as np

from .errors import InvalidTarget
from .grid import is_connected, to_ascii
from .voxel import Voxel, duplicate


def body_mask(body: np.ndarray) -> np.ndarray:
    """Boolean grid [H, W] of live cells."""
    return np.vectorize(lambda v: v is not None, otypes=[bool])(body)


def materialize(cells: np.ndarray, prototype: Voxel) -> np.ndarray:
    """
    Turn a selected cell set into a body.

    Args:
        cells: Boolean grid [H, W] of selected cells
        prototype: Voxel duplicated at every selected cell

    Returns:
        Object grid [H, W]; a 1x1 body with one voxel if nothing is selected
    """
    cells = np.asarray(cells, dtype=bool)
    if not cells.any():
        body = np.empty((1, 1), dtype=object)
        body[0, 0] = duplicate(prototype)
        return body
    body = np.empty(cells.shape, dtype=object)
    for y, x in zip(*np.nonzero(cells)):
        body[y, x] = duplicate(prototype)
    return body


def box(width: int, height: int, prototype: Optional[Voxel] = None) -> np.ndarray:
    """Full rectangular body."""
    return materialize(np.ones((height, width), dtype=bool), prototype or Voxel())


def build_shape(name: str, prototype: Optional[Voxel] = None) -> np.ndarray:
    """Build a body from a shape name such as "box-5x4" (width x height)."""
    match = re.fullmatch(r"box-(?P<w>\d+)x(?P<h>\d+)", name)
    if match is None:
        raise ValueError(f"Unknown shape name: {name}")
    return box(int(match.group("w")), int(match.group("h")), prototype)


@dataclass
class Organism:
    """
    A developed creature.

    Attributes:
        body: Object grid [H, W] of voxels
        controller: Controller driving the voxels, if any
    """

    body: np.ndarray
    controller: Any = None

    @property
    def shape(self) -> tuple[int, int]:
        """Body dimensions (H, W)."""
        return self.body.shape

    @property
    def mask(self) -> np.ndarray:
        return body_mask(self.body)

    @property
    def n_voxels(self) -> int:
        return int(self.mask.sum())

    def positions(self) -> list[tuple[int, int]]:
        """(x, y) of every live cell, row-major."""
        return [(int(x), int(y)) for y, x in zip(*np.nonzero(self.mask))]

    def is_connected(self) -> bool:
        return is_connected(self.mask)

    def to_ascii(self) -> str:
        return to_ascii(self.mask)


@dataclass(frozen=True)
class TargetSpec:
    """
    What a mapper is bound to: grid size and the prototype voxel.

    Attributes:
        width, height: Target grid dimensions
        prototype: First live voxel of the target body (row-major)
    """

    width: int
    height: int
    prototype: Voxel

    @classmethod
    def of(
        cls,
        target: Union[Organism, np.ndarray],
        uniform_sensors: bool = False,
    ) -> "TargetSpec":
        """
        Take grid size and prototype from a reference organism or body.

        Args:
            target: Reference organism or body grid
            uniform_sensors: Require every voxel to carry the same sensor arity

        Raises:
            InvalidTarget: No live voxel, or mixed sensor arity when required
        """
        body = target.body if isinstance(target, Organism) else np.asarray(target, dtype=object)
        if body.ndim != 2:
            raise InvalidTarget(f"Target body must be a 2D grid, got {body.ndim} dimensions")
        voxels = [(x, y, v) for (y, x), v in np.ndenumerate(body) if v is not None]
        if not voxels:
            raise InvalidTarget("Target body has no valid voxels")
        prototype = voxels[0][2]

        if uniform_sensors:
            expected = prototype.n_of_readings
            wrong = [(x, y, v.n_of_readings) for x, y, v in voxels if v.n_of_readings != expected]
            if wrong:
                raise InvalidTarget(
                    f"All voxels should have {expected} sensor readings, but voxels at "
                    f"positions {','.join(f'({x},{y})' for x, y, _ in wrong)} have "
                    f"{','.join(str(n) for _, _, n in wrong)}"
                )

        height, width = body.shape
        return cls(width=width, height=height, prototype=prototype)
