"""
Placement validator — pure-function physical constraint checking.

All checks are stateless functions: they take the vehicle, the pieces
already placed in the trip and a proposed placement, returning True or
raising an error.

Checks (always enforced):
  1. Bounds    — box must lie inside the cargo space on all axes
  2. Obstacles — box must not intersect a wheel arch or other obstacle
  3. Overlap   — box must not intersect an already-placed piece
  4. Vertical  — vertical pieces stay upright and on the floor
  5. Support   — above the floor, the full footprint rests on pieces the
                 new piece may stack on

The trip packer runs ``validate_placement`` as the final guard before
committing a candidate and records any PlacementError as a rejection.
"""

from typing import Optional, Sequence

from loadplan.config import GEOMETRY_EPS, SUPPORT_AREA_EPS, is_on_floor
from loadplan.core.geometry import boxes_intersect
from loadplan.core.models import CargoPiece, SolverItemPlacement, Vec3, VehicleDefinition
from loadplan.placement.orientation import UPRIGHT_ORIENTATIONS
from loadplan.placement.stacking import can_stack_on, gather_supports


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class PlacementError(Exception):
    """Base class for placement validation errors."""


class OutOfBoundsError(PlacementError):
    """Box extends outside the cargo space."""


class ObstacleCollisionError(PlacementError):
    """Box intersects a wheel arch or another fixed obstacle."""


class OverlapError(PlacementError):
    """Box would clip into an already-placed piece."""


class VerticalOrientationError(PlacementError):
    """Vertical piece is lying down or lifted off the floor."""


class UnsupportedPlacementError(PlacementError):
    """Part of the footprint rests on nothing."""


class StackingRuleError(PlacementError):
    """A supporting piece may not carry the new piece."""


class FreeBoxLookupError(PlacementError):
    """Candidate references a free box that is no longer in the working set."""


# ─────────────────────────────────────────────────────────────────────────────
# Validator
# ─────────────────────────────────────────────────────────────────────────────

def validate_placement(
    vehicle: VehicleDefinition,
    piece: CargoPiece,
    anchor: Vec3,
    size: Vec3,
    placements: Sequence[SolverItemPlacement],
    orientation: Optional[int] = None,
) -> bool:
    """
    Validate a proposed placement against all physical constraints.

    Args:
        vehicle:     Vehicle whose cargo space and obstacles bound the box.
        piece:       The piece being placed.
        anchor:      Proposed min corner.
        size:        Oriented extent along X, Y, Z.
        placements:  Pieces already placed in this trip.
        orientation: Orientation index, checked for vertical pieces.

    Returns:
        True if all checks pass.

    Raises:
        OutOfBoundsError:          box extends outside the cargo space.
        ObstacleCollisionError:    box intersects a vehicle obstacle.
        OverlapError:              box clips into a placed piece.
        VerticalOrientationError:  vertical piece tipped over or lifted.
        UnsupportedPlacementError: footprint not fully supported.
        StackingRuleError:         a supporter may not carry this piece.
    """
    eps = GEOMETRY_EPS
    cs = vehicle.cargo_space
    x, y, z = anchor
    dx, dy, dz = size
    hi = (x + dx, y + dy, z + dz)

    # ── 1. Bounds ────────────────────────────────────────────────────────
    if x < -eps or y < -eps or z < -eps:
        raise OutOfBoundsError(f"Negative coordinate: ({x:.1f}, {y:.1f}, {z:.1f})")
    if hi[0] > cs.length + eps:
        raise OutOfBoundsError(f"X overflow: {x:.1f}+{dx:.1f} > {cs.length:.1f}")
    if hi[1] > cs.width + eps:
        raise OutOfBoundsError(f"Y overflow: {y:.1f}+{dy:.1f} > {cs.width:.1f}")
    if hi[2] > cs.height + eps:
        raise OutOfBoundsError(f"Z overflow: {z:.1f}+{dz:.1f} > {cs.height:.1f}")

    # ── 2. Obstacles ─────────────────────────────────────────────────────
    for obstacle in vehicle.all_obstacles:
        if boxes_intersect(anchor, hi, obstacle.min_corner, obstacle.max_corner):
            raise ObstacleCollisionError(
                f"{piece.piece_id} intersects {obstacle.kind} at {obstacle.position}"
            )

    # ── 3. Overlap ───────────────────────────────────────────────────────
    for p in placements:
        if boxes_intersect(anchor, hi, p.anchor, (p.x_max, p.y_max, p.z_max)):
            raise OverlapError(f"{piece.piece_id} overlaps {p.piece.piece_id}")

    # ── 4. Vertical ──────────────────────────────────────────────────────
    if piece.flags.vertical:
        if orientation is not None and orientation not in UPRIGHT_ORIENTATIONS:
            raise VerticalOrientationError(
                f"{piece.piece_id} must stay upright, got orientation {orientation}"
            )
        if not is_on_floor(z):
            raise VerticalOrientationError(
                f"{piece.piece_id} must stand on the floor, got z={z:.1f}"
            )

    # ── 5. Support ───────────────────────────────────────────────────────
    if not is_on_floor(z):
        supports = gather_supports(anchor, size, placements)
        covered = sum(s.area for s in supports.values())
        footprint = dx * dy
        if not supports or covered + SUPPORT_AREA_EPS < footprint:
            raise UnsupportedPlacementError(
                f"{piece.piece_id} supported on {covered:.0f} of {footprint:.0f} mm²"
            )
        for s in supports.values():
            if not can_stack_on(piece, s.piece):
                raise StackingRuleError(
                    f"{piece.piece_id} may not rest on {s.piece.piece_id}"
                )

    return True


def validate_trip(vehicle: VehicleDefinition,
                  placements: Sequence[SolverItemPlacement]) -> bool:
    """
    Re-validate a finished trip in placement order.

    Each placement is checked against the ones committed before it, which
    is exactly the state the packer saw when it committed it.
    """
    for i, p in enumerate(placements):
        validate_placement(vehicle, p.piece, p.anchor, p.size, placements[:i],
                           orientation=p.orientation)
    return True
