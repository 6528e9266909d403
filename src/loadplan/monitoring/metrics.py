"""Metrics and export for load plans.

Provides dataclasses summarising each trip of a solve and utilities for
exporting them to JSON and CSV formats.
"""

from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import numpy as np

from loadplan.core.models import SolverResponse, SolverTrip, VehicleDefinition


TRIP_FIELDS = [
    "trip_index", "pieces", "weight_kg", "volume_used_m3", "volume_total_m3",
    "utilization_pct", "com_offset_mm", "max_stack_height_mm",
]


@dataclass
class TripMetrics:
    """Metrics for a single trip.

    Attributes:
        trip_index: Zero-based index of the trip.
        pieces: Number of pieces loaded.
        weight_kg: Total loaded weight.
        volume_used_m3: Volume of loaded pieces.
        volume_total_m3: Volume of the cargo space.
        utilization_pct: Volume utilization percentage (0-100).
        com_offset_mm: Lateral centre-of-mass distance from the centreline.
        max_stack_height_mm: Highest top surface.
    """

    trip_index: int
    pieces: int
    weight_kg: float
    volume_used_m3: float
    volume_total_m3: float
    utilization_pct: float
    com_offset_mm: float
    max_stack_height_mm: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary.

        Example:
            >>> tm = TripMetrics(0, 4, 120.0, 2.5, 10.0, 25.0, 12.5, 900.0)
            >>> tm.to_dict()["utilization_pct"]
            25.0
        """
        return asdict(self)


@dataclass
class SolveMetrics:
    """Aggregate metrics for one solve.

    Attributes:
        vehicle_id: Vehicle the plan was made for.
        status: Solver status value.
        total_pieces: Pieces requested.
        placed_pieces: Pieces loaded over all trips.
        unplaced_pieces: Pieces left over.
        trips_used: Number of trips with at least one piece.
        avg_utilization_pct: Mean utilization over the trips.
        min_utilization_pct: Lowest trip utilization.
        max_utilization_pct: Highest trip utilization.
        trip_metrics: List of per-trip metrics.
    """

    vehicle_id: str
    status: str
    total_pieces: int = 0
    placed_pieces: int = 0
    unplaced_pieces: int = 0
    trips_used: int = 0
    avg_utilization_pct: float = 0.0
    min_utilization_pct: float = 0.0
    max_utilization_pct: float = 0.0
    trip_metrics: list[TripMetrics] = field(default_factory=list)

    def add_trip(self, trip: TripMetrics) -> None:
        """Add a trip's metrics and refresh the utilization statistics.

        Example:
            >>> sm = SolveMetrics("van", "ok")
            >>> sm.add_trip(TripMetrics(0, 4, 120.0, 2.5, 10.0, 25.0, 0.0, 900.0))
            >>> sm.trips_used
            1
        """
        self.trip_metrics.append(trip)
        self.trips_used = len(self.trip_metrics)
        self._recalculate_stats()

    def _recalculate_stats(self) -> None:
        if not self.trip_metrics:
            return
        utils = [t.utilization_pct for t in self.trip_metrics]
        self.avg_utilization_pct = sum(utils) / len(utils)
        self.min_utilization_pct = min(utils)
        self.max_utilization_pct = max(utils)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["trip_metrics"] = [t.to_dict() for t in self.trip_metrics]
        return d

    def to_summary_dict(self) -> dict[str, Any]:
        """Summary dictionary without per-trip details."""
        d = self.to_dict()
        del d["trip_metrics"]
        return d


def trip_metrics(trip: SolverTrip, vehicle: VehicleDefinition) -> TripMetrics:
    """Compute the metrics of one trip with numpy over its placements."""
    total_m3 = vehicle.cargo_space.volume / 1e9
    if not trip.items:
        return TripMetrics(trip.index, 0, 0.0, 0.0, total_m3, 0.0, 0.0, 0.0)

    anchors = np.array([p.anchor for p in trip.items], dtype=np.float64)
    sizes = np.array([p.size for p in trip.items], dtype=np.float64)
    weights = np.array([p.piece.weight_kg for p in trip.items], dtype=np.float64)

    used_m3 = float(np.sum(np.prod(sizes, axis=1))) / 1e9
    total_weight = float(np.sum(weights))
    com_offset = 0.0
    if total_weight > 0:
        centers_y = anchors[:, 1] + sizes[:, 1] / 2.0
        com_y = float(np.dot(centers_y, weights) / total_weight)
        com_offset = abs(com_y - vehicle.cargo_space.width / 2.0)

    return TripMetrics(
        trip_index=trip.index,
        pieces=len(trip.items),
        weight_kg=total_weight,
        volume_used_m3=used_m3,
        volume_total_m3=total_m3,
        utilization_pct=100.0 * used_m3 / total_m3 if total_m3 > 0 else 0.0,
        com_offset_mm=com_offset,
        max_stack_height_mm=float(np.max(anchors[:, 2] + sizes[:, 2])),
    )


def collect_metrics(response: SolverResponse, vehicle: VehicleDefinition) -> SolveMetrics:
    """Build SolveMetrics from a solver response."""
    metrics = SolveMetrics(
        vehicle_id=response.vehicle_id,
        status=response.status.value,
        total_pieces=response.summary.total_pieces,
        placed_pieces=response.summary.placed_pieces,
        unplaced_pieces=response.summary.unplaced_pieces,
    )
    for trip in response.trips:
        metrics.add_trip(trip_metrics(trip, vehicle))
    return metrics


def export_to_json(metrics: SolveMetrics, output_path: Path | str, include_trips: bool = True) -> None:
    """Export solve metrics to a JSON file.

    Args:
        metrics: SolveMetrics instance to export.
        output_path: Path to output JSON file.
        include_trips: Whether to include per-trip details.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    data = metrics.to_dict() if include_trips else metrics.to_summary_dict()
    with output_path.open("w") as f:
        json.dump(data, f, indent=2)


def export_to_csv(metrics: SolveMetrics, output_path: Path | str) -> None:
    """Export per-trip metrics to a CSV file (header only if no trips)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=TRIP_FIELDS)
        writer.writeheader()
        for trip in metrics.trip_metrics:
            writer.writerow(trip.to_dict())


def print_summary(metrics: SolveMetrics) -> str:
    """Generate a human-readable summary of solve metrics.

    Returns:
        Formatted multi-line summary string.

    Example:
        >>> sm = SolveMetrics("van", "ok", total_pieces=4, placed_pieces=4)
        >>> "Vehicle: van" in print_summary(sm)
        True
    """
    lines = [
        "=" * 60,
        f"Vehicle: {metrics.vehicle_id}",
        f"Status: {metrics.status}",
        "=" * 60,
        f"Pieces: {metrics.placed_pieces}/{metrics.total_pieces} placed, "
        f"{metrics.unplaced_pieces} unplaced",
        f"Trips Used: {metrics.trips_used}",
        "",
        "Utilization Statistics:",
        f"  Average: {metrics.avg_utilization_pct:.2f}%",
        f"  Min:     {metrics.min_utilization_pct:.2f}%",
        f"  Max:     {metrics.max_utilization_pct:.2f}%",
    ]
    for t in metrics.trip_metrics:
        lines.append(
            f"  Trip {t.trip_index + 1}: {t.pieces} pieces, {t.weight_kg:.1f} kg, "
            f"{t.utilization_pct:.1f}%, COM offset {t.com_offset_mm:.0f} mm"
        )
    lines.append("=" * 60)
    return "\n".join(lines)
