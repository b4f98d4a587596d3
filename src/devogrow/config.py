"""
Configuration dataclass for developmental mappers.

A configuration names one growth strategy and one controller family plus
their parameters. It can also be read from the compact names used on the
command line, e.g. "devoTreeHomoMLP-0.65-1-1-5-1".
"""

import re
from dataclasses import dataclass, asdict
from typing import Any, Optional

from .controllers import DistributedControllerStrategy, OscillatorControllerStrategy
from .development import DevelopmentalMapper
from .growth import GridGrowth, NeuralCAGrowth, TreeGrowth
from .organism import build_shape
from .voxel import SELECTION_FUNCTIONS, Voxel, sensorized

VALID_GROWTHS = {"grid", "ca", "tree"}
VALID_CONTROLLERS = {"phases", "mlp"}

_REAL = r"\d+(\.\d+)?"
_STAGES = r"-(?P<n_initial>\d+)-(?P<n_step>\d+)(-(?P<controller_step>" + _REAL + r"))?"
_MLP = r"(?P<ratio>" + _REAL + r")-(?P<n_layers>\d+)-(?P<signals>\d+)"
_CA = r"(?P<ca_ratio>" + _REAL + r")-(?P<ca_n_layers>\d+)"
_SELECTION = r"(?P<selection>areaRatioEnergy|areaRatio)-(?P<max_first>[tf])"
_FREQUENCY = r"(?P<frequency>" + _REAL + r")"

# Named descriptors: pattern -> fixed fields
NAMED = [
    (r"devoPhases-" + _FREQUENCY + _STAGES, {"growth": "grid", "controller": "phases"}),
    (r"devoTreePhases-" + _FREQUENCY + _STAGES, {"growth": "tree", "controller": "phases"}),
    (r"devoCAPhases-" + _FREQUENCY + "-" + _CA + _STAGES, {"growth": "ca", "controller": "phases"}),
    (r"devoHomoMLP-" + _MLP + _STAGES, {"growth": "grid", "controller": "mlp"}),
    (
        r"devoHeteroMLP-" + _MLP + _STAGES,
        {"growth": "grid", "controller": "mlp", "heterogeneous": True},
    ),
    (r"devoCAHomoMLP-" + _MLP + "-" + _CA + _STAGES, {"growth": "ca", "controller": "mlp"}),
    (r"devoTreeHomoMLP-" + _MLP + _STAGES, {"growth": "tree", "controller": "mlp"}),
    (
        r"devoCondHomoMLP-" + _MLP + "-" + _SELECTION + _STAGES,
        {"growth": "grid", "controller": "mlp"},
    ),
    (
        r"devoCondTreeHomoMLP-" + _MLP + "-" + _SELECTION + _STAGES,
        {"growth": "tree", "controller": "mlp"},
    ),
]


@dataclass
class Config:
    """
    Complete configuration of a developmental mapper.

    Attributes:
        growth: Growth strategy ("grid", "ca", "tree")
        controller: Controller family ("phases", "mlp")
        target: Target shape name, e.g. "box-5x5"
        sensors: Sensor arity of the target voxels (neural controllers)

        # Stage budget
        n_initial: Cells at birth
        n_step: Cells added at every later stage
        controller_step: Control period; 0 recomputes every step

        # Oscillators
        frequency: Fixed oscillation frequency
        amplitude: Fixed oscillation amplitude

        # Neural controllers
        inner_layer_ratio: Hidden layer size relative to the input size
        n_inner_layers: Number of hidden layers
        signals: Signals exchanged with each neighbour
        directional: One signal block per direction if True
        heterogeneous: One network per voxel, carried per cell

        # Neural cellular automaton
        ca_inner_layer_ratio, ca_n_inner_layers: Automaton shape

        # Ordering
        max_first: Prefer higher priorities
        sprout: Let tree nodes grow into empty child slots
        selection: Voxel function conditioning grid or tree growth, or None
        condition_max_first: Prefer neighbours with the higher selection value
    """

    growth: str = "grid"
    controller: str = "phases"
    target: str = "box-5x5"
    sensors: int = 1

    # Stage budget
    n_initial: int = 5
    n_step: int = 1
    controller_step: float = 0.0

    # Oscillators
    frequency: float = 1.0
    amplitude: float = 1.0

    # Neural controllers
    inner_layer_ratio: float = 0.65
    n_inner_layers: int = 1
    signals: int = 1
    directional: bool = True
    heterogeneous: bool = False

    # Neural cellular automaton
    ca_inner_layer_ratio: float = 0.65
    ca_n_inner_layers: int = 1

    # Ordering
    max_first: bool = True
    sprout: bool = True
    selection: Optional[str] = None
    condition_max_first: bool = True

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        self._validate()

    def _validate(self) -> None:
        """Check that all parameters are in valid ranges."""
        if self.growth not in VALID_GROWTHS:
            raise ValueError(f"growth must be one of {VALID_GROWTHS}, got {self.growth}")

        if self.controller not in VALID_CONTROLLERS:
            raise ValueError(
                f"controller must be one of {VALID_CONTROLLERS}, got {self.controller}"
            )

        if self.n_initial < 0:
            raise ValueError(f"n_initial must be >= 0, got {self.n_initial}")

        if self.n_step < 0:
            raise ValueError(f"n_step must be >= 0, got {self.n_step}")

        if self.controller_step < 0:
            raise ValueError(f"controller_step must be >= 0, got {self.controller_step}")

        if self.sensors < 0:
            raise ValueError(f"sensors must be >= 0, got {self.sensors}")

        if self.inner_layer_ratio <= 0 or self.ca_inner_layer_ratio <= 0:
            raise ValueError("inner layer ratios must be > 0")

        if self.n_inner_layers < 0 or self.ca_n_inner_layers < 0:
            raise ValueError("inner layer counts must be >= 0")

        if self.signals < 0:
            raise ValueError(f"signals must be >= 0, got {self.signals}")

        if self.selection is not None:
            if self.selection not in SELECTION_FUNCTIONS:
                raise ValueError(
                    f"selection must be one of {set(SELECTION_FUNCTIONS)}, got {self.selection}"
                )
            if self.growth == "ca":
                raise ValueError("selection conditioning applies to grid and tree growth only")

        if self.heterogeneous:
            if self.controller != "mlp":
                raise ValueError("heterogeneous applies to neural controllers only")
            if self.growth == "ca":
                raise ValueError("neural CA growth cannot carry one network per cell")

        # Unknown shape names raise here
        self.build_target()

    def build_target(self):
        """Target body named by `target`."""
        prototype = sensorized(("touch", self.sensors)) if self.sensors > 0 else Voxel()
        return build_shape(self.target, prototype)

    def build_growth(self):
        condition = None if self.selection is None else SELECTION_FUNCTIONS[self.selection]
        if self.growth == "grid":
            return GridGrowth(
                max_first=self.max_first,
                condition=condition,
                condition_max_first=self.condition_max_first,
            )
        if self.growth == "ca":
            return NeuralCAGrowth(self.ca_inner_layer_ratio, self.ca_n_inner_layers)
        return TreeGrowth(
            max_first=self.max_first,
            sprout=self.sprout,
            condition=condition,
            condition_max_first=self.condition_max_first,
        )

    def build_controller(self):
        if self.controller == "phases":
            return OscillatorControllerStrategy(
                frequency=self.frequency, phase=None, amplitude=self.amplitude
            )
        return DistributedControllerStrategy(
            inner_layer_ratio=self.inner_layer_ratio,
            n_inner_layers=self.n_inner_layers,
            signals=self.signals,
            directional=self.directional,
            heterogeneous=self.heterogeneous,
        )

    def build_mapper(self) -> DevelopmentalMapper:
        """Developmental mapper described by this configuration."""
        return DevelopmentalMapper(
            self.build_growth(),
            self.build_controller(),
            n_initial=self.n_initial,
            n_step=self.n_step,
            controller_step=self.controller_step,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        return cls(**d)

    @classmethod
    def from_args(cls, args: Any) -> "Config":
        """Create config from argparse namespace."""
        # Extract only known fields
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        config_dict = {k: v for k, v in vars(args).items() if k in known_fields and v is not None}
        return cls(**config_dict)

    @classmethod
    def from_name(cls, name: str, **overrides: Any) -> "Config":
        """
        Create config from a named descriptor.

        Args:
            name: Descriptor such as "devoPhases-1.0-5-1" or
                "devoCondTreeHomoMLP-0.65-1-1-areaRatio-t-5-1-0.2"
            **overrides: Further fields, e.g. target

        Raises:
            ValueError: Unknown descriptor
        """
        for pattern, fixed in NAMED:
            match = re.fullmatch(pattern, name)
            if match is None:
                continue
            groups = match.groupdict()
            values: dict[str, Any] = dict(fixed)
            values["n_initial"] = int(groups["n_initial"])
            values["n_step"] = int(groups["n_step"])
            if groups["controller_step"] is not None:
                values["controller_step"] = float(groups["controller_step"])
            if groups.get("frequency") is not None:
                values["frequency"] = float(groups["frequency"])
            if groups.get("ratio") is not None:
                values["inner_layer_ratio"] = float(groups["ratio"])
                values["n_inner_layers"] = int(groups["n_layers"])
                values["signals"] = int(groups["signals"])
            if groups.get("ca_ratio") is not None:
                values["ca_inner_layer_ratio"] = float(groups["ca_ratio"])
                values["ca_n_inner_layers"] = int(groups["ca_n_layers"])
            if groups.get("selection") is not None:
                values["selection"] = groups["selection"]
                values["condition_max_first"] = groups["max_first"] == "t"
            values.update(overrides)
            return cls(**values)
        raise ValueError(f"Unknown developmental function name: {name}")

    def __repr__(self) -> str:
        return (
            f"Config(\n"
            f"  growth={self.growth}, controller={self.controller}, target={self.target},\n"
            f"  n_initial={self.n_initial}, n_step={self.n_step}, "
            f"controller_step={self.controller_step},\n"
            f"  inner_layer_ratio={self.inner_layer_ratio}, n_inner_layers={self.n_inner_layers}, "
            f"signals={self.signals}, heterogeneous={self.heterogeneous},\n"
            f"  max_first={self.max_first}, sprout={self.sprout}, selection={self.selection}\n"
            f")"
        )
