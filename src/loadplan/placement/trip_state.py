"""
Trip state — tracks the placements of a single trip.

The TripState is the data object the candidate builder queries.  It
provides:

  Spatial queries:
    .overlaps_any(anchor, size)   — intersection with any placed piece
    .lateral_com()                — weight-weighted centre of mass in Y
    .fill_rate()                  — volumetric utilisation
    .max_height()                 — highest top surface

  Full 3D state:
    .placements                   — List[SolverItemPlacement] (frozen)
    .vehicle                      — VehicleDefinition

Placement extents are mirrored into numpy arrays so the hot queries
run vectorised over all placed pieces.
"""

from typing import List, Optional

import numpy as np

from loadplan.config import GEOMETRY_EPS
from loadplan.core.models import SolverItemPlacement, Vec3, VehicleDefinition


class TripState:
    """
    Manages the placements of one trip.

    ``_lo`` / ``_hi`` hold min and max corners (n × 3) and ``_weight``
    the piece weights, in placement order.
    """

    __slots__ = ("vehicle", "placements", "_lo", "_hi", "_weight")

    def __init__(self, vehicle: VehicleDefinition) -> None:
        self.vehicle: VehicleDefinition = vehicle
        self.placements: List[SolverItemPlacement] = []
        self._lo: np.ndarray = np.empty((0, 3), dtype=np.float64)
        self._hi: np.ndarray = np.empty((0, 3), dtype=np.float64)
        self._weight: np.ndarray = np.empty(0, dtype=np.float64)

    # ── Spatial queries ──────────────────────────────────────────────────

    def overlaps_any(self, anchor: Vec3, size: Vec3) -> bool:
        """True if [anchor, anchor + size] shares volume with a placed piece."""
        if not self.placements:
            return False
        lo = np.asarray(anchor, dtype=np.float64)
        hi = lo + np.asarray(size, dtype=np.float64)
        hit = np.all(
            (lo < self._hi - GEOMETRY_EPS) & (self._lo < hi - GEOMETRY_EPS),
            axis=1,
        )
        return bool(np.any(hit))

    def total_weight(self) -> float:
        return float(np.sum(self._weight))

    def lateral_com(self) -> Optional[float]:
        """
        Weight-weighted centre of mass along Y.

        None while nothing with weight has been placed.
        """
        total = self.total_weight()
        if total <= 0:
            return None
        centers = (self._lo[:, 1] + self._hi[:, 1]) / 2.0
        return float(np.dot(centers, self._weight) / total)

    def com_offset(self) -> float:
        """Distance of the lateral centre of mass from the vehicle centreline."""
        com = self.lateral_com()
        if com is None:
            return 0.0
        return abs(com - self.vehicle.cargo_space.width / 2.0)

    def com_offset_with(self, anchor: Vec3, size: Vec3, weight: float) -> float:
        """Centre-of-mass offset after adding a piece at ``anchor``."""
        half_width = self.vehicle.cargo_space.width / 2.0
        center_y = anchor[1] + size[1] / 2.0
        total = self.total_weight() + weight
        if total <= 0:
            return 0.0
        moment = weight * center_y
        if self.placements:
            centers = (self._lo[:, 1] + self._hi[:, 1]) / 2.0
            moment += float(np.dot(centers, self._weight))
        return abs(moment / total - half_width)

    def placed_volume(self) -> float:
        if not self.placements:
            return 0.0
        return float(np.sum(np.prod(self._hi - self._lo, axis=1)))

    def fill_rate(self) -> float:
        """Volumetric fill rate = placed_volume / cargo_space_volume."""
        vol = self.vehicle.cargo_space.volume
        if vol == 0:
            return 0.0
        return self.placed_volume() / vol

    def max_height(self) -> float:
        if not self.placements:
            return 0.0
        return float(np.max(self._hi[:, 2]))

    # ── State mutation ───────────────────────────────────────────────────

    def apply_placement(self, placement: SolverItemPlacement) -> None:
        """Append a validated placement.  Called by the trip packer only."""
        lo = np.asarray(placement.anchor, dtype=np.float64).reshape(1, 3)
        hi = lo + np.asarray(placement.size, dtype=np.float64).reshape(1, 3)
        self._lo = np.vstack([self._lo, lo])
        self._hi = np.vstack([self._hi, hi])
        self._weight = np.append(self._weight, placement.piece.weight_kg)
        self.placements.append(placement)

    def __len__(self) -> int:
        return len(self.placements)

    def __repr__(self) -> str:
        return (
            f"TripState(pieces={len(self.placements)}, "
            f"fill={self.fill_rate():.1%}, "
            f"max_h={self.max_height():.1f}/{self.vehicle.cargo_space.height})"
        )
