"""Load zones — floor, wall-band and centre-band boundaries."""

from dataclasses import dataclass

from loadplan.config import SolverConfig
from loadplan.core.models import VehicleDefinition


CENTER_BAND_MIN_RATIO: float = 0.35
CENTER_BAND_MAX_RATIO: float = 0.65


@dataclass(frozen=True)
class LoadZones:
    """Scalar zone boundaries, computed once per solve (mm)."""
    floor_max_z: float
    wall_left_max_y: float
    wall_right_min_y: float
    wall_band: float
    length: float
    width: float
    height: float

    @property
    def center_band_min_y(self) -> float:
        return self.width * CENTER_BAND_MIN_RATIO

    @property
    def center_band_max_y(self) -> float:
        return self.width * CENTER_BAND_MAX_RATIO

    def in_center_band(self, center_y: float) -> bool:
        return self.center_band_min_y <= center_y <= self.center_band_max_y


def compute_zones(vehicle: VehicleDefinition, config: SolverConfig) -> LoadZones:
    cs = vehicle.cargo_space
    band = cs.width * config.wall_band_ratio
    return LoadZones(
        floor_max_z=cs.height * config.floor_height_ratio,
        wall_left_max_y=band,
        wall_right_min_y=cs.width - band,
        wall_band=band,
        length=cs.length,
        width=cs.width,
        height=cs.height,
    )


def is_in_floor_zone(anchor_z: float, size_z: float, zones: LoadZones) -> bool:
    """Vertical midpoint of the box lies within the floor zone."""
    return anchor_z + size_z / 2.0 <= zones.floor_max_z


def is_wall_adjacent(anchor_y: float, size_y: float, zones: LoadZones) -> bool:
    return anchor_y <= zones.wall_left_max_y or anchor_y + size_y >= zones.wall_right_min_y
