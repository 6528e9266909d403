"""
Solver configuration and numeric tolerances.

The engine never reads the environment: callers build a SolverConfig
(directly, from a dict, or from a YAML file) and pass it to ``solve``.

Classes:
    SolverConfig — tunable zone/gap ratios plus per-solve derived flags

Usage:
    cfg = SolverConfig.from_yaml("solver.yaml")
    response = solve(vehicle, items, max_trips=2, config=cfg)
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

import yaml


# ─────────────────────────────────────────────────────────────────────────────
# Tolerances
# ─────────────────────────────────────────────────────────────────────────────

GEOMETRY_EPS: float = 1e-6    # mm, bounds / overlap / containment
FLOOR_EPS: float = 1e-6       # mm, anchor z at or below this is on the floor
SUPPORT_Z_EPS: float = 0.1    # mm, supporter top surface vs anchor z
SUPPORT_AREA_EPS: float = 1.0  # mm², covered area vs footprint area

MAX_GROUP_GAP_RATIO: float = 0.02


def is_on_floor(z: float) -> bool:
    """True for an anchor resting on the cargo floor."""
    return z <= FLOOR_EPS


# ─────────────────────────────────────────────────────────────────────────────
# Solver configuration
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SolverConfig:
    """
    All tuneable parameters of a single solve.

    Attributes:
        floor_height_ratio:  Fraction of the cargo height counted as floor zone.
        wall_band_ratio:     Fraction of the width forming each wall band.
        group_gap_ratio:     Preferred lateral gap between same-type pieces,
                             as a fraction of the width (clamped to 0..0.02).
        has_vertical_demand: Derived per request: any vertical piece present.
        retry_until_stable:  Retry unplaced pieces within a trip until a pass
                             places nothing; False gives one pass per trip.
    """
    floor_height_ratio: float = 0.40
    wall_band_ratio: float = 0.05
    group_gap_ratio: float = 0.0
    has_vertical_demand: bool = False
    retry_until_stable: bool = True

    def __post_init__(self) -> None:
        clamped = min(max(self.group_gap_ratio, 0.0), MAX_GROUP_GAP_RATIO)
        if clamped != self.group_gap_ratio:
            object.__setattr__(self, "group_gap_ratio", clamped)

    def with_vertical_demand(self, has_vertical_demand: bool) -> "SolverConfig":
        return replace(self, has_vertical_demand=has_vertical_demand)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "SolverConfig":
        """Build from a mapping; unknown keys are ignored."""
        if not d:
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in known})

    @classmethod
    def from_yaml(cls, path: str) -> "SolverConfig":
        """
        Load from a YAML file.

        The mapping may sit at the top level or under a ``solver:`` key.
        An empty file gives the defaults.
        """
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")
        if isinstance(data.get("solver"), dict):
            data = data["solver"]
        return cls.from_dict(data)
