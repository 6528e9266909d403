"""
Candidate builder — enumerates, filters and scores placements of one
piece against the current free space and trip state.

For every free box, allowed orientation and generated anchor the
builder rejects candidates that do not fit, leave the vehicle, overlap
placed pieces, lift vertical cargo, lack support, or sit in a locked
centre band; the survivors are scored and returned best-first with a
total, deterministic order.

Usage:
    candidates = build_candidates(piece, space, state, zones, config)
    best = candidates[0] if candidates else None
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from loadplan.config import GEOMETRY_EPS, SolverConfig, is_on_floor
from loadplan.core.models import Behavior, CargoPiece, FreeBox, SolverItemPlacement, Vec3
from loadplan.placement.anchors import generate_anchors
from loadplan.placement.free_space import FreeSpace
from loadplan.placement.orientation import allowed_orientations, oriented_size
from loadplan.placement.scoring import (
    BaseScoreContext,
    PalletScoreContext,
    score_candidate,
)
from loadplan.placement.stacking import is_supported
from loadplan.placement.trip_state import TripState
from loadplan.preprocessing.zones import LoadZones


FRONT_ROW_TOL: float = 5.0           # mm, or 10% of the piece depth if larger
FRONT_SLOT_TOL: float = 10.0         # mm, or 15% of the piece width if larger
WALKWAY_GAP: float = 5.0             # mm behind the front row / floor obstacles
MAX_PALLET_COLUMNS: int = 2
MAX_FRONT_ROW_CAPACITY: int = 2
CENTER_LOCK_MAX_WIDTH_RATIO: float = 0.7  # wider pieces always cover the centre


@dataclass(frozen=True)
class PlacementCandidate:
    """A legal, scored placement of a piece in one free box."""
    anchor: Vec3
    size: Vec3
    orientation: int
    score: float
    free_handle: int

    def sort_key(self) -> Tuple[float, float, float, float, int, int]:
        return (-self.score, self.anchor[2], self.anchor[1], self.anchor[0],
                self.orientation, self.free_handle)


@dataclass
class _GroupSnapshot:
    """Same-group and whole-trip state, computed once per piece."""
    same_group: List[SolverItemPlacement]
    front_row_min_x: float
    front_row_base_ys: Tuple[float, ...]
    front_row_incomplete: bool
    walkway_start_x: float
    floor_obstacles: List[Tuple[float, float, float, float]]
    center_band_occupied: bool
    center_reserved: bool
    center_offset_before: float
    footprint_heights: Dict[Tuple[float, float], float]
    min_column_height: float
    max_column_height: float
    floor_xs: Set[float] = field(default_factory=set)
    row_counts: Dict[float, int] = field(default_factory=dict)


def _snapshot(piece: CargoPiece, state: TripState, zones: LoadZones,
              config: SolverConfig) -> _GroupSnapshot:
    existing = state.placements
    same_group = [p for p in existing if p.piece.group_key == piece.group_key]
    group_floor = [p for p in same_group if is_on_floor(p.z)]
    all_floor = [p for p in existing if is_on_floor(p.z)]

    front_row_min_x = min((p.x for p in group_floor), default=math.inf)
    entries = []
    if math.isfinite(front_row_min_x):
        entries = [p for p in group_floor
                   if abs(p.x - front_row_min_x) <= max(FRONT_ROW_TOL, p.size[0] * 0.1)]
    base_ys = tuple(dict.fromkeys(p.y for p in entries))
    thickness = max((p.size[0] for p in entries), default=piece.meta.dims_mm.length)

    base_width = piece.meta.dims_mm.width
    per_row = int(zones.width // base_width) if base_width > 0 else 1
    capacity = min(MAX_FRONT_ROW_CAPACITY, max(1, per_row))

    walkway_start_x = front_row_min_x + thickness + WALKWAY_GAP if entries else 0.0
    floor_obstacles = sorted((p.x, p.x_max, p.y, p.y_max) for p in all_floor)

    band_lo = zones.center_band_min_y
    band_hi = zones.center_band_max_y
    band_occupied = any(
        p.piece.flags.vertical and p.y < band_hi and p.y_max > band_lo
        for p in all_floor
    )

    heights: Dict[Tuple[float, float], float] = {}
    for p in same_group:
        key = (p.x, p.y)
        heights[key] = heights.get(key, 0.0) + p.size[2]

    rows: Dict[float, int] = {}
    for p in group_floor:
        rows[p.x] = rows.get(p.x, 0) + 1

    return _GroupSnapshot(
        same_group=same_group,
        front_row_min_x=front_row_min_x,
        front_row_base_ys=base_ys,
        front_row_incomplete=len(entries) < capacity,
        walkway_start_x=walkway_start_x,
        floor_obstacles=floor_obstacles,
        center_band_occupied=band_occupied,
        center_reserved=config.has_vertical_demand and not band_occupied,
        center_offset_before=state.com_offset(),
        footprint_heights=heights,
        min_column_height=min(heights.values()) if heights else 0.0,
        max_column_height=max(heights.values()) if heights else 0.0,
        floor_xs={p.x for p in group_floor},
        row_counts=rows,
    )


def _free_box_order(piece: CargoPiece, zones: LoadZones):
    """Sort key for free boxes: lowest first, then by cargo kind."""
    center_line = zones.width / 2.0

    def key(item: Tuple[int, FreeBox]):
        handle, box = item
        if piece.flags.vertical:
            dist = abs((box.min_y + box.max_y) / 2.0 - center_line)
            return (box.min_z, dist, box.min_x, box.min_y, handle)
        if piece.is_palletized:
            return (box.min_z, box.min_x, box.min_y, handle)
        return (box.min_z, box.min_y, box.min_x, handle)

    return key


def _fits(box: FreeBox, size: Vec3) -> bool:
    sx, sy, sz = box.size
    dx, dy, dz = size
    if dx <= 0 or dy <= 0 or dz <= 0:
        return False
    return dx <= sx + GEOMETRY_EPS and dy <= sy + GEOMETRY_EPS and dz <= sz + GEOMETRY_EPS


def _inside(box: FreeBox, anchor: Vec3, size: Vec3) -> bool:
    eps = GEOMETRY_EPS
    return (
        anchor[0] >= box.min_x - eps and anchor[1] >= box.min_y - eps
        and anchor[2] >= box.min_z - eps
        and anchor[0] + size[0] <= box.max_x + eps
        and anchor[1] + size[1] <= box.max_y + eps
        and anchor[2] + size[2] <= box.max_z + eps
    )


def _within_vehicle(anchor: Vec3, size: Vec3, zones: LoadZones) -> bool:
    eps = GEOMETRY_EPS
    return (
        anchor[0] >= -eps and anchor[1] >= -eps and anchor[2] >= -eps
        and anchor[0] + size[0] <= zones.length + eps
        and anchor[1] + size[1] <= zones.width + eps
        and anchor[2] + size[2] <= zones.height + eps
    )


def _clear_walkway(anchor: Vec3, size: Vec3, box: FreeBox,
                   snap: _GroupSnapshot) -> Optional[Vec3]:
    """
    Move a vertical piece behind the front row and any floor piece in
    its lateral path.  None if it no longer fits the free box.
    """
    x, y, z = anchor
    dx, dy = size[0], size[1]
    if x < snap.walkway_start_x:
        x = max(snap.walkway_start_x, box.min_x)
    for start, end, oy0, oy1 in snap.floor_obstacles:
        if x + dx <= start:
            break
        if x < end and x + dx > start and y < oy1 and y + dy > oy0:
            x = end + WALKWAY_GAP
    if x + dx > box.max_x + GEOMETRY_EPS:
        return None
    return (x, y, z)


def build_candidates(
    piece: CargoPiece,
    space: FreeSpace,
    state: TripState,
    zones: LoadZones,
    config: SolverConfig,
) -> List[PlacementCandidate]:
    """
    All legal candidates for ``piece``, best first.

    Order: score descending, then z, y, x ascending, then orientation
    index, then free-box handle.
    """
    snap = _snapshot(piece, state, zones, config)
    orientations = allowed_orientations(piece)
    preferred_gap = config.group_gap_ratio * zones.width
    vertical = piece.flags.vertical
    candidates: List[PlacementCandidate] = []

    for handle, box in sorted(space.items(), key=_free_box_order(piece, zones)):
        for ori in orientations:
            size = oriented_size(piece.meta.dims_mm, ori)
            if not _fits(box, size):
                continue
            anchors = generate_anchors(box, piece, size, snap.same_group, zones, config)
            for raw in anchors:
                anchor = raw
                if vertical:
                    anchor = _clear_walkway(raw, size, box, snap)
                    if anchor is None:
                        continue
                if not _inside(box, anchor, size):
                    continue
                if not _within_vehicle(anchor, size, zones):
                    continue
                if state.overlaps_any(anchor, size):
                    continue
                on_floor = is_on_floor(anchor[2])
                if vertical and not on_floor:
                    continue
                if not on_floor and not is_supported(piece, anchor, size, state.placements):
                    continue

                scored = _score(piece, anchor, size, zones, snap, state, preferred_gap)
                if scored is None:
                    continue
                candidates.append(PlacementCandidate(
                    anchor=anchor, size=size, orientation=ori,
                    score=scored, free_handle=handle,
                ))

    candidates.sort(key=PlacementCandidate.sort_key)
    return candidates


def _score(piece: CargoPiece, anchor: Vec3, size: Vec3, zones: LoadZones,
           snap: _GroupSnapshot, state: TripState,
           preferred_gap: float) -> Optional[float]:
    """Derive the scoring contexts; None when a soft lock rejects the slot."""
    x, y, z = anchor
    dx, dy, dz = size
    on_floor = is_on_floor(z)

    # ── Adjacency ────────────────────────────────────────────────────────
    touches = False
    stacking = False
    min_dist = math.inf
    cx, cy = x + dx / 2.0, y + dy / 2.0
    for gp in snap.same_group:
        touch_x = x == gp.x_max or gp.x == x + dx
        touch_y = y == gp.y_max or gp.y == y + dy
        if touch_x or touch_y:
            touches = True
        if x == gp.x and y == gp.y and z == gp.z_max:
            stacking = True
        gcx = gp.x + gp.size[0] / 2.0
        gcy = gp.y + gp.size[1] / 2.0
        min_dist = min(min_dist, abs(cx - gcx) + abs(cy - gcy))

    # ── Front row ────────────────────────────────────────────────────────
    is_front = False
    if on_floor:
        row_x = snap.front_row_min_x if math.isfinite(snap.front_row_min_x) else x
        is_front = abs(x - row_x) <= max(FRONT_ROW_TOL, dx * 0.1)
    slot_tol = max(FRONT_SLOT_TOL, dy * 0.15)
    slot_taken = any(abs(by - y) <= slot_tol for by in snap.front_row_base_ys)
    is_new_front_slot = is_front and on_floor and not slot_taken

    # ── Centre-band lock (BOX cargo) ─────────────────────────────────────
    if piece.meta.behavior is Behavior.BOX and not piece.flags.vertical:
        can_avoid_band = dy < zones.width * CENTER_LOCK_MAX_WIDTH_RATIO
        if (can_avoid_band and zones.in_center_band(cy)
                and (snap.center_reserved or snap.front_row_incomplete)):
            return None
        if not on_floor and snap.center_reserved:
            return None

    # ── Palletized columns / rows / mirror ───────────────────────────────
    pallet_ctx: Optional[PalletScoreContext] = None
    if piece.is_palletized:
        pallet_ctx = _pallet_context(piece, anchor, size, snap, zones, stacking)
        if pallet_ctx is None:
            return None
        if on_floor and len(snap.floor_xs) == 1 and pallet_ctx.new_footprint:
            touches = True

    base = BaseScoreContext(
        piece=piece,
        anchor=anchor,
        size=size,
        zones=zones,
        touches_same_group=touches,
        cluster_distance=min_dist,
        stacking_on_same_footprint=stacking,
        is_front_row_candidate=is_front,
        is_new_front_slot=is_new_front_slot,
        front_row_incomplete=snap.front_row_incomplete,
        center_band_occupied=snap.center_band_occupied,
        center_offset_before=snap.center_offset_before,
        center_offset_after=state.com_offset_with(anchor, size, piece.weight_kg),
        preferred_gap=preferred_gap,
    )
    return score_candidate(base, pallet_ctx)


def _pallet_context(piece: CargoPiece, anchor: Vec3, size: Vec3,
                    snap: _GroupSnapshot, zones: LoadZones,
                    stacking: bool) -> Optional[PalletScoreContext]:
    """
    Column and row state of a palletized candidate.

    None when the candidate would open a column beyond the cap.
    """
    x, y, z = anchor
    dy, dz = size[1], size[2]
    heights = snap.footprint_heights
    distinct = len(heights)
    max_columns = min(MAX_PALLET_COLUMNS, int(zones.width // dy)) if dy > 0 else 1

    new_footprint = (x, y) not in heights
    if new_footprint and distinct >= max_columns:
        return None

    current = heights.get((x, y), 0.0)
    lo, hi = snap.min_column_height, snap.max_column_height
    if stacking:
        raised = current + dz
        if current == lo:
            lo = raised
        hi = max(hi, raised)
    elif new_footprint:
        if distinct == 0:
            lo = hi = dz
        else:
            lo = min(lo, dz)
            hi = max(hi, dz)

    first_incomplete: Optional[float] = None
    for rx in sorted(snap.row_counts):
        if snap.row_counts[rx] < max_columns:
            first_incomplete = rx
            break

    mirror_target: Optional[float] = None
    if is_on_floor(z) and len(snap.front_row_base_ys) == 1:
        row_x = snap.front_row_min_x
        if abs(x - row_x) <= max(FRONT_ROW_TOL, size[0] * 0.1):
            mirror_target = zones.width - dy - snap.front_row_base_ys[0]

    return PalletScoreContext(
        new_footprint=new_footprint,
        distinct_footprints=distinct,
        max_columns=max_columns,
        current_footprint_height=current,
        min_column_height=snap.min_column_height,
        max_column_height=snap.max_column_height,
        height_spread_after=hi - lo,
        row_counts=snap.row_counts,
        first_incomplete_row_x=first_incomplete,
        is_starting_new_row=is_on_floor(z) and x not in snap.row_counts,
        front_row_base_ys=snap.front_row_base_ys,
        mirror_target_y=mirror_target,
    )
