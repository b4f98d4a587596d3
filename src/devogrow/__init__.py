"""
devogrow - Developmental growth of voxel creatures

Staged genotype-to-organism mapping: bodies that grow cell by cell across
developmental stages, each stage with a matching controller.
"""

__version__ = "0.1.0"

from .config import Config
from .development import Development, DevelopmentalMapper, Stage
from .errors import (
    DevelopmentError,
    DimensionMismatch,
    GenotypeSizeMismatch,
    InvalidPreviousState,
    InvalidTarget,
)
from .organism import Organism, TargetSpec

__all__ = [
    "Config",
    "Development",
    "DevelopmentalMapper",
    "Stage",
    "Organism",
    "TargetSpec",
    "DevelopmentError",
    "DimensionMismatch",
    "GenotypeSizeMismatch",
    "InvalidPreviousState",
    "InvalidTarget",
    "__version__",
]
