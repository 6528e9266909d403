"""
Placement scoring — weighted sum of zone, weight, clustering, column,
row, mirror and centre-of-mass heuristics.

Hard constraints are filtered out by the candidate builder before a
candidate reaches the scorer, so ``score_candidate`` always returns a
finite number.

Two context records feed the scorer:
    BaseScoreContext   — fields every candidate has
    PalletScoreContext — column/row/mirror fields, palletized cargo only
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from loadplan.config import is_on_floor
from loadplan.core.models import Behavior, CargoPiece, Vec3, WeightClass
from loadplan.preprocessing.zones import LoadZones, is_in_floor_zone, is_wall_adjacent


# ─────────────────────────────────────────────────────────────────────────────
# Weights
# ─────────────────────────────────────────────────────────────────────────────

# Zone affinity
W_PLATE_WALL: float = 60.0
W_BOX_WALL: float = 35.0
W_BOX_FLOOR: float = 30.0
W_BOX_FRONT_GRADIENT: float = 85.0    # scaled by closeness to the bulkhead
W_LONG_FLOOR: float = 20.0

# Front row
W_BOX_FRONT_ANCHOR: float = 50.0
W_BOX_FILL_FRONT: float = 150.0
P_BOX_SKIP_FRONT: float = -140.0
P_BOX_STACK_BEFORE_FRONT: float = -220.0

# Centre band
P_BOX_STACK_CENTER_LOCK: float = -260.0
W_VERTICAL_CENTER: float = 320.0
P_VERTICAL_CENTER_MISS: float = -280.0
VERTICAL_CENTER_SLACK_RATIO: float = 0.15  # of width, before the miss penalty starts
P_PALLET_CENTER_OCCUPY: float = -600.0

# Weight vs height
W_HEAVY_FLOOR: float = 40.0
P_HEAVY_HIGH: float = -80.0
W_LIGHT_UPPER: float = 15.0
W_FRONT_HEAVY: float = 25.0
W_FRONT_PALLET: float = 15.0
FRONT_REGION_RATIO: float = 0.4       # first 40% of the length

# Clustering
W_ADJACENT: float = 50.0
P_EXCESS_GAP: float = -30.0
EXCESS_GAP_FACTOR: float = 1.5
W_STACK_CONTINUE: float = 35.0
W_STACK_CONTINUE_FRONT: float = 20.0

# Columns (palletized)
W_LIMIT_COLUMNS: float = 40.0
P_COLUMN_IMBALANCE: float = -120.0
W_COLUMN_BALANCE: float = 65.0
P_STACK_ON_TALLER: float = -160.0
W_START_SECOND_COLUMN: float = 140.0
P_DELAY_SECOND_COLUMN: float = -130.0
SECOND_COLUMN_TRIGGER_LAYERS: int = 5

# Rows (palletized)
W_FILL_INCOMPLETE_ROW: float = 260.0
P_SKIP_INCOMPLETE_ROW: float = -500.0
P_STACK_BEFORE_ROW_FILLED: float = -140.0
W_START_NEW_ROW_AFTER_FILLED: float = 120.0

# Mirror symmetry (palletized)
W_MIRROR_MATCH: float = 900.0
P_MIRROR_MISS: float = -900.0
P_STACK_BEFORE_MIRROR: float = -4500.0

# Centre of mass
P_CENTER_OFFSET: float = -0.25        # per mm of lateral offset after placement
W_CENTER_IMPROVE: float = 0.35        # per mm of improvement

# Tie-break bias toward low X, Y, Z
TIE_ORIGIN: float = 10000.0
TIE_WEIGHT_XY: float = 1e-4
TIE_WEIGHT_Z: float = 5e-5


# ─────────────────────────────────────────────────────────────────────────────
# Contexts
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class BaseScoreContext:
    """
    Fields shared by every candidate.

    Attributes:
        touches_same_group:         Face contact with a same-group piece.
        cluster_distance:           XY Manhattan distance between centres to
                                    the nearest same-group piece (inf if none).
        stacking_on_same_footprint: Directly on top of a same-group piece.
        is_front_row_candidate:     Floor candidate in the front row.
        is_new_front_slot:          Front-row candidate at a free lateral slot.
        front_row_incomplete:       Front row has fewer pieces than it holds.
        center_band_occupied:       A vertical piece stands across the band.
        center_offset_before/after: Lateral centre-of-mass offset (mm).
        preferred_gap:              Preferred same-group gap (mm).
    """
    piece: CargoPiece
    anchor: Vec3
    size: Vec3
    zones: LoadZones
    touches_same_group: bool = False
    cluster_distance: float = math.inf
    stacking_on_same_footprint: bool = False
    is_front_row_candidate: bool = False
    is_new_front_slot: bool = False
    front_row_incomplete: bool = False
    center_band_occupied: bool = False
    center_offset_before: float = 0.0
    center_offset_after: float = 0.0
    preferred_gap: float = 0.0


@dataclass(frozen=True)
class PalletScoreContext:
    """
    Column, row and mirror state for palletized cargo.

    Columns are distinct (x, y) footprints of the same group; rows are
    floor-level footprints grouped by x.
    """
    new_footprint: bool
    distinct_footprints: int
    max_columns: int
    current_footprint_height: float
    min_column_height: float
    max_column_height: float
    height_spread_after: float
    row_counts: Dict[float, int] = field(default_factory=dict)
    first_incomplete_row_x: Optional[float] = None
    is_starting_new_row: bool = False
    front_row_base_ys: Tuple[float, ...] = ()
    mirror_target_y: Optional[float] = None


# ─────────────────────────────────────────────────────────────────────────────
# Scorer
# ─────────────────────────────────────────────────────────────────────────────

def score_candidate(base: BaseScoreContext,
                    pallet: Optional[PalletScoreContext] = None) -> float:
    """Score of one candidate; higher is better."""
    piece = base.piece
    zones = base.zones
    x, y, z = base.anchor
    dx, dy, dz = base.size
    behavior = piece.meta.behavior
    weight_class = piece.meta.weight_class

    floor = is_in_floor_zone(z, dz, zones)
    wall = is_wall_adjacent(y, dy, zones)
    upper = not floor
    center_x = x + dx / 2.0
    center_y = y + dy / 2.0
    front = center_x <= zones.length * FRONT_REGION_RATIO
    in_band = zones.in_center_band(center_y)

    score = 0.0

    # ── Zone affinity ────────────────────────────────────────────────────
    if behavior is Behavior.PLATE and wall:
        score += W_PLATE_WALL
    if behavior is Behavior.BOX:
        if wall:
            score += W_BOX_WALL
        if floor:
            score += W_BOX_FLOOR
            gradient = 1.0 - min(center_x / zones.length, 1.0) if zones.length > 0 else 0.0
            score += W_BOX_FRONT_GRADIENT * gradient
            if base.is_front_row_candidate:
                score += W_BOX_FRONT_ANCHOR
            if base.front_row_incomplete and not base.is_front_row_candidate:
                score += P_BOX_SKIP_FRONT
            if base.front_row_incomplete and base.is_new_front_slot:
                score += W_BOX_FILL_FRONT
        else:
            if base.front_row_incomplete:
                score += P_BOX_STACK_BEFORE_FRONT
            if not base.center_band_occupied and in_band and not piece.flags.vertical:
                score += P_BOX_STACK_CENTER_LOCK
    if behavior is Behavior.LONG and floor:
        score += W_LONG_FLOOR

    # ── Vertical centring ────────────────────────────────────────────────
    if piece.flags.vertical and zones.width > 0:
        half = zones.width / 2.0
        delta = abs(center_y - half)
        if not base.center_band_occupied:
            score += W_VERTICAL_CENTER * (1.0 - min(delta / half, 1.0))
        else:
            overshoot = max(0.0, delta - zones.width * VERTICAL_CENTER_SLACK_RATIO)
            if overshoot > 0:
                score += P_VERTICAL_CENTER_MISS * min(overshoot / half, 1.0)

    # ── Weight vs height ─────────────────────────────────────────────────
    if weight_class is WeightClass.HEAVY:
        score += W_HEAVY_FLOOR if floor else P_HEAVY_HIGH
        if front:
            score += W_FRONT_HEAVY
    if weight_class is WeightClass.LIGHT and upper:
        score += W_LIGHT_UPPER
    if piece.is_palletized:
        if front:
            score += W_FRONT_PALLET
        if in_band:
            score += P_PALLET_CENTER_OCCUPY

    # ── Stack continuation ───────────────────────────────────────────────
    if base.stacking_on_same_footprint:
        score += W_STACK_CONTINUE
        if front:
            score += W_STACK_CONTINUE_FRONT

    if pallet is not None:
        score += _pallet_terms(base, pallet)

    # ── Clustering ───────────────────────────────────────────────────────
    if base.touches_same_group:
        score += W_ADJACENT
    gap = base.preferred_gap
    if gap > 0 and math.isfinite(base.cluster_distance) \
            and base.cluster_distance > gap * EXCESS_GAP_FACTOR:
        score += P_EXCESS_GAP

    # ── Centre of mass ───────────────────────────────────────────────────
    score += P_CENTER_OFFSET * base.center_offset_after
    if base.center_offset_before > base.center_offset_after:
        score += W_CENTER_IMPROVE * (base.center_offset_before - base.center_offset_after)

    # ── Tie-break ────────────────────────────────────────────────────────
    score += ((TIE_ORIGIN - x) * TIE_WEIGHT_XY
              + (TIE_ORIGIN - y) * TIE_WEIGHT_XY
              + (TIE_ORIGIN - z) * TIE_WEIGHT_Z)
    return score


def _pallet_terms(base: BaseScoreContext, ctx: PalletScoreContext) -> float:
    """Column balancing, row layering and mirror symmetry."""
    x, y, z = base.anchor
    dz = base.size[2]
    dy = base.size[1]
    stacking = base.stacking_on_same_footprint
    score = 0.0

    # Columns
    if not ctx.new_footprint and ctx.distinct_footprints >= ctx.max_columns:
        score += W_LIMIT_COLUMNS

    # Rows
    if ctx.first_incomplete_row_x is not None:
        row_complete = ctx.row_counts.get(x, 0) >= ctx.max_columns
        if is_on_floor(z):
            if not row_complete:
                if x == ctx.first_incomplete_row_x and ctx.new_footprint:
                    score += W_FILL_INCOMPLETE_ROW
                if ctx.is_starting_new_row and x != ctx.first_incomplete_row_x:
                    score += P_SKIP_INCOMPLETE_ROW
            elif ctx.is_starting_new_row and x != ctx.first_incomplete_row_x:
                score += W_START_NEW_ROW_AFTER_FILLED
        elif stacking and not row_complete:
            score += P_STACK_BEFORE_ROW_FILLED

    # Column heights
    current_spread = ctx.max_column_height - ctx.min_column_height
    if ctx.height_spread_after > current_spread + dz * 0.5:
        score += P_COLUMN_IMBALANCE
    elif stacking and ctx.current_footprint_height == ctx.min_column_height:
        score += W_COLUMN_BALANCE
    if stacking and ctx.current_footprint_height == ctx.max_column_height \
            and current_spread >= dz:
        score += P_STACK_ON_TALLER

    if ctx.distinct_footprints == 1:
        threshold = base.piece.meta.dims_mm.height * SECOND_COLUMN_TRIGGER_LAYERS
        if ctx.new_footprint and ctx.max_column_height >= threshold:
            score += W_START_SECOND_COLUMN
        elif not ctx.new_footprint and stacking and ctx.max_column_height >= threshold:
            score += P_DELAY_SECOND_COLUMN

    # Mirror
    if (base.is_front_row_candidate and len(ctx.front_row_base_ys) == 1
            and ctx.mirror_target_y is not None):
        delta = abs(y - ctx.mirror_target_y)
        if delta <= max(10.0, dy * 0.1):
            score += W_MIRROR_MATCH
        else:
            score += P_MIRROR_MISS * min(delta / max(dy, 1.0), 1.0)
    if stacking and len(ctx.front_row_base_ys) < 2:
        score += P_STACK_BEFORE_MIRROR

    return score
