"""
Anchor generator — candidate min corners for one free box and size.

Anchors are not limited to the free box's own corner: wall-flush,
centred, evenly stepped (vertical cargo), mirrored (palletized cargo)
and same-group adjacency positions are all proposed.  Anchors that
leave the free box are filtered by the candidate builder.
"""

from typing import Dict, List, Sequence

from loadplan.config import SolverConfig, is_on_floor
from loadplan.core.models import CargoPiece, FreeBox, SolverItemPlacement, Vec3
from loadplan.preprocessing.zones import LoadZones


def generate_anchors(
    free: FreeBox,
    piece: CargoPiece,
    size: Vec3,
    same_group: Sequence[SolverItemPlacement],
    zones: LoadZones,
    config: SolverConfig,
) -> List[Vec3]:
    """
    Deduplicated anchors in generation order.

    Args:
        free:       Free box the anchors are generated for.
        piece:      Piece being placed.
        size:       Oriented (dx, dy, dz) of the piece.
        same_group: Placements sharing the piece's (cargo_id, behavior).
        zones:      Zone boundaries of the vehicle.
        config:     Solver configuration (group gap).
    """
    dx, dy, dz = size
    anchors: List[Vec3] = []
    gap_y = config.group_gap_ratio * zones.width

    # Own rear-left-lower corner.
    anchors.append((free.min_x, free.min_y, free.min_z))

    # Wall-flush variants.
    if free.min_y <= zones.wall_left_max_y:
        anchors.append((free.min_x, max(free.min_y, 0.0), free.min_z))
    if free.max_y >= zones.wall_right_min_y:
        anchors.append((free.min_x, free.max_y - dy, free.min_z))

    free_width = free.max_y - free.min_y
    if free_width > dy:
        global_center = zones.width / 2.0 - dy / 2.0
        clamped = min(max(global_center, free.min_y), free.max_y - dy)
        if clamped >= free.min_y and clamped + dy <= free.max_y:
            anchors.append((free.min_x, clamped, free.min_z))
        if piece.flags.vertical:
            local_center = free.min_y + (free_width - dy) / 2.0
            anchors.append((free.min_x, local_center, free.min_z))

    if piece.flags.vertical and dy > 0:
        y = free.min_y
        while y + dy <= free.max_y:
            anchors.append((free.min_x, y, free.min_z))
            y += dy
        band_start = max(zones.center_band_min_y, free.min_y)
        band_end = min(zones.center_band_max_y - dy, free.max_y - dy)
        if band_end >= band_start:
            anchors.append((free.min_x, band_start, free.min_z))
            if band_end > band_start:
                anchors.append((free.min_x, band_end, free.min_z))

    # Palletized: second footprint mirrored across the centreline.
    if piece.is_palletized:
        floor_bases = [p for p in same_group if is_on_floor(p.z)]
        if len(floor_bases) == 1:
            base = floor_bases[0]
            mirror_y = zones.width - dy - base.y
            target_x = base.x
            if (
                free.min_y <= mirror_y and mirror_y + dy <= free.max_y
                and free.min_x <= target_x and target_x + dx <= free.max_x
                and free.min_z <= base.z and base.z + dz <= free.max_z
            ):
                anchors.append((target_x, mirror_y, free.min_z))

    # Same-group adjacency and stack continuation.
    for gp in same_group:
        gx, gy, gz = gp.anchor
        sx, sy, sz = gp.size
        anchors.append((gx + sx, gy, gz))
        anchors.append((gx - dx, gy, gz))
        anchors.append((gx, gy + sy + gap_y, gz))
        anchors.append((gx, gy - dy - gap_y, gz))
        anchors.append((gx, gy, gz + sz))

    unique: Dict[Vec3, None] = dict.fromkeys(anchors)
    return list(unique)
