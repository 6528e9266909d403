"""
Stacking rules and support gathering.

A placement above the floor needs every square millimetre of its
footprint resting on top surfaces of pieces it may stack on.
"""

from dataclasses import dataclass
from typing import Dict, Sequence

from loadplan.config import SUPPORT_AREA_EPS, SUPPORT_Z_EPS
from loadplan.core.models import CargoPiece, SolverItemPlacement, Vec3


@dataclass
class SupportArea:
    piece: CargoPiece
    area: float


def can_stack_on(upper: CargoPiece, lower: CargoPiece) -> bool:
    """
    Whether ``upper`` may rest on ``lower``.

    Non-stackable and fragile pieces carry nothing; a heavy piece never
    rests on a light one.
    """
    if not lower.flags.stackable:
        return False
    if lower.flags.fragile:
        return False
    if upper.meta.is_heavy and lower.meta.is_light:
        return False
    return True


def gather_supports(anchor: Vec3, size: Vec3,
                    placements: Sequence[SolverItemPlacement]) -> Dict[str, SupportArea]:
    """
    Pieces whose top surface sits at ``anchor`` z and overlaps the footprint.

    Returns piece_id -> SupportArea with the accumulated overlap area.
    """
    supports: Dict[str, SupportArea] = {}
    ax, ay, az = anchor
    dx, dy = size[0], size[1]

    for p in placements:
        if abs(p.z_max - az) > SUPPORT_Z_EPS:
            continue
        ox = min(ax + dx, p.x_max) - max(ax, p.x)
        oy = min(ay + dy, p.y_max) - max(ay, p.y)
        if ox <= SUPPORT_Z_EPS or oy <= SUPPORT_Z_EPS:
            continue
        key = p.piece.piece_id
        entry = supports.get(key)
        if entry is None:
            supports[key] = SupportArea(piece=p.piece, area=ox * oy)
        else:
            entry.area += ox * oy
    return supports


def is_supported(piece: CargoPiece, anchor: Vec3, size: Vec3,
                 placements: Sequence[SolverItemPlacement]) -> bool:
    """Full-footprint support from pieces that ``piece`` may stack on."""
    supports = gather_supports(anchor, size, placements)
    if not supports:
        return False
    covered = sum(s.area for s in supports.values())
    if covered + SUPPORT_AREA_EPS < size[0] * size[1]:
        return False
    return all(can_stack_on(piece, s.piece) for s in supports.values())
