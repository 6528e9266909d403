"""
Axis-aligned box geometry shared by the space initializer and the
free-space splitter.

All boxes are given as (min corner, max corner) pairs in millimetres.
"""

from typing import List

from loadplan.config import GEOMETRY_EPS
from loadplan.core.models import FreeBox, Vec3


def overlap_1d(a0: float, a1: float, b0: float, b1: float) -> float:
    """Length of the overlap of [a0, a1] and [b0, b1] (0 if disjoint)."""
    return max(0.0, min(a1, b1) - max(a0, b0))


def boxes_intersect(a_lo: Vec3, a_hi: Vec3, b_lo: Vec3, b_hi: Vec3,
                    eps: float = GEOMETRY_EPS) -> bool:
    """
    True when the two boxes share interior volume.

    Touching faces do not count as an intersection.
    """
    return (
        a_lo[0] < b_hi[0] - eps and b_lo[0] < a_hi[0] - eps
        and a_lo[1] < b_hi[1] - eps and b_lo[1] < a_hi[1] - eps
        and a_lo[2] < b_hi[2] - eps and b_lo[2] < a_hi[2] - eps
    )


def box_contains(outer_lo: Vec3, outer_hi: Vec3, inner_lo: Vec3, inner_hi: Vec3,
                 eps: float = GEOMETRY_EPS) -> bool:
    """True when the inner box lies within the outer box (tolerance eps)."""
    return all(
        inner_lo[i] >= outer_lo[i] - eps and inner_hi[i] <= outer_hi[i] + eps
        for i in range(3)
    )


def footprint_overlap_area(a_lo: Vec3, a_hi: Vec3, b_lo: Vec3, b_hi: Vec3) -> float:
    """XY overlap area of two boxes."""
    return (overlap_1d(a_lo[0], a_hi[0], b_lo[0], b_hi[0])
            * overlap_1d(a_lo[1], a_hi[1], b_lo[1], b_hi[1]))


def subtract_box(free: FreeBox, lo: Vec3, hi: Vec3) -> List[FreeBox]:
    """
    Six-way box-minus-box decomposition.

    Returns the boxes covering ``free`` minus the volume [lo, hi]:
    left/right slices in X over the full Y/Z extent, front/back slices in
    Y within the X overlap, and below/above slices in Z within the X-Y
    overlap.  The pieces never overlap each other and leave no gaps.
    If the two boxes do not intersect, ``free`` is returned unchanged.
    Degenerate slices are dropped.
    """
    if not boxes_intersect(free.min_corner, free.max_corner, lo, hi, eps=0.0):
        return [free]

    ix0 = max(free.min_x, lo[0])
    ix1 = min(free.max_x, hi[0])
    iy0 = max(free.min_y, lo[1])
    iy1 = min(free.max_y, hi[1])
    iz0 = max(free.min_z, lo[2])
    iz1 = min(free.max_z, hi[2])

    pieces = [
        # X slices
        FreeBox(free.min_x, free.min_y, free.min_z, ix0, free.max_y, free.max_z),
        FreeBox(ix1, free.min_y, free.min_z, free.max_x, free.max_y, free.max_z),
        # Y slices within the X overlap
        FreeBox(ix0, free.min_y, free.min_z, ix1, iy0, free.max_z),
        FreeBox(ix0, iy1, free.min_z, ix1, free.max_y, free.max_z),
        # Z slices within the X-Y overlap
        FreeBox(ix0, iy0, free.min_z, ix1, iy1, iz0),
        FreeBox(ix0, iy0, iz1, ix1, iy1, free.max_z),
    ]
    return [p for p in pieces if not p.is_degenerate]
