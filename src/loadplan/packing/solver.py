"""
Solver orchestrator.

    expand -> sort -> group -> flatten -> zones -> trips -> response

``solve`` is a pure function of its arguments: every call builds its own
free space, zones and configuration, and output only happens through an
injected observer.

Usage:
    response = solve(vehicle, [CargoRequestItem(definition, 4)], max_trips=2)
    response.status, response.summary.placed_pieces
    payload = response.to_dict()
"""

from typing import List, Optional, Sequence

from loadplan.config import SolverConfig
from loadplan.core.models import (
    CargoPiece,
    CargoRequestItem,
    SolverResponse,
    SolverStatus,
    SolverSummary,
    SolverTrip,
    VehicleDefinition,
)
from loadplan.monitoring.observer import SolveObserver
from loadplan.packing.trip_packer import TripPacker
from loadplan.preprocessing.expander import expand_items
from loadplan.preprocessing.grouper import flatten_groups, group_pieces
from loadplan.preprocessing.priority import sort_by_priority
from loadplan.preprocessing.space import initialize_free_space
from loadplan.preprocessing.zones import compute_zones


UNIT = "mm"

MESSAGES = {
    SolverStatus.OK: "All items fit into the available trips.",
    SolverStatus.NO_FIT: "No items could be placed into the vehicle.",
    SolverStatus.PARTIAL: "Only a subset of items could be placed into the available trips.",
}
EMPTY_REQUEST_MESSAGE = "No items were requested."


def build_sequence(items: Sequence[CargoRequestItem],
                   observer: Optional[SolveObserver] = None) -> List[CargoPiece]:
    """Expanded, priority-sorted, grouped and flattened packing sequence."""
    obs = observer or SolveObserver()
    pieces = expand_items(items)
    obs.on_expanded(pieces)
    ordered = sort_by_priority(pieces)
    obs.on_sorted(ordered)
    groups = group_pieces(ordered)
    sequence = flatten_groups(groups)
    obs.on_grouped(groups, sequence)
    return sequence


def resolve_status(total: int, placed: int) -> SolverStatus:
    if placed == total:
        return SolverStatus.OK
    if placed == 0:
        return SolverStatus.NO_FIT
    return SolverStatus.PARTIAL


def solve(
    vehicle: VehicleDefinition,
    items: Sequence[CargoRequestItem],
    max_trips: int = 1,
    config: Optional[SolverConfig] = None,
    observer: Optional[SolveObserver] = None,
) -> SolverResponse:
    """
    Plan the load of ``items`` into ``vehicle`` over up to ``max_trips``.

    Args:
        vehicle:   Vehicle with cargo space and obstacles.
        items:     (definition, quantity) request lines.
        max_trips: Maximum number of trips; values below 1 count as 1.
        config:    Solver configuration; defaults to SolverConfig().
        observer:  Optional stage observer.

    Returns:
        SolverResponse with status, summary, trips and leftover pieces.
        Unplaceable pieces are reported as data, never raised.
    """
    obs = observer or SolveObserver()
    sequence = build_sequence(items, obs)

    base_config = config or SolverConfig()
    solve_config = base_config.with_vertical_demand(
        any(p.flags.vertical for p in sequence)
    )
    zones = compute_zones(vehicle, solve_config)
    obs.on_space_initialized(initialize_free_space(vehicle))

    trips: List[SolverTrip] = []
    remaining = sequence
    for t in range(max(1, int(max_trips))):
        if not remaining:
            break
        result = TripPacker(vehicle, zones, solve_config, index=t).pack(remaining)
        obs.on_trip_complete(result)
        if not result.placements:
            break
        trips.append(SolverTrip(index=t, items=tuple(result.placements)))
        remaining = result.remaining

    total = len(sequence)
    placed = sum(len(trip.items) for trip in trips)
    status = resolve_status(total, placed)
    message = EMPTY_REQUEST_MESSAGE if total == 0 else MESSAGES[status]

    response = SolverResponse(
        unit=UNIT,
        vehicle_id=vehicle.vehicle_id,
        status=status,
        message=message,
        summary=SolverSummary(
            total_pieces=total,
            placed_pieces=placed,
            unplaced_pieces=total - placed,
            trips_used=len(trips),
        ),
        trips=tuple(trips),
        unplaced=tuple(remaining),
    )
    obs.on_solve_complete(response)
    return response
