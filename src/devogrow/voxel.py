"""
Voxel value type for devogrow bodies.

A voxel is an immutable specification: physical parameters, the sensors it
carries and the last readings of its state attributes. Bodies duplicate a
prototype voxel by value, never by reference.
"""

from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class Sensor:
    """
    A sensor mounted on a voxel.

    Attributes:
        name: Sensor kind (e.g. "area_ratio", "velocity", "touch")
        dim: Number of readings produced per control step
    """

    name: str
    dim: int = 1

    def __post_init__(self) -> None:
        if self.dim < 1:
            raise ValueError(f"Sensor dim must be >= 1, got {self.dim}")


@dataclass(frozen=True)
class Voxel:
    """
    Soft voxel specification.

    Attributes:
        side_length: Edge length of the voxel
        mass: Voxel mass
        sensors: Sensors mounted on the voxel, in reading order
        area_ratio: Current area over rest area (set by the physics engine)
        energy: Accumulated actuation energy (set by the physics engine)
    """

    side_length: float = 3.0
    mass: float = 1.0
    sensors: tuple[Sensor, ...] = field(default_factory=tuple)
    area_ratio: float = 1.0
    energy: float = 0.0

    @property
    def n_of_readings(self) -> int:
        """Total number of sensor readings per control step."""
        return sum(s.dim for s in self.sensors)

    def n_of_inputs(self, signals: int) -> int:
        """Inputs of a distributed controller cell: readings plus neighbour signals."""
        return self.n_of_readings + 4 * signals

    def n_of_outputs(self, signals: int, directional: bool = True) -> int:
        """Outputs of a distributed controller cell: actuation plus emitted signals."""
        return 1 + (4 * signals if directional else signals)


def duplicate(prototype: Voxel) -> Voxel:
    """Return a value copy of a voxel preserving every parameter."""
    return replace(prototype)


def area_ratio(voxel: Voxel) -> float:
    return voxel.area_ratio


def area_ratio_energy(voxel: Voxel) -> float:
    return voxel.area_ratio * voxel.energy


# Selection functions usable for conditioned growth
SELECTION_FUNCTIONS = {
    "areaRatio": area_ratio,
    "areaRatioEnergy": area_ratio_energy,
}


def sensorized(*sensors: tuple[str, int]) -> Voxel:
    """Build a default voxel carrying the given (name, dim) sensors."""
    return Voxel(sensors=tuple(Sensor(name, dim) for name, dim in sensors))
