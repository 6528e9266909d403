"""Priority sorter — total packing order by priority bucket."""

from typing import List, Sequence

from loadplan.core.models import CargoPiece


BUCKET_LONG = 0
BUCKET_VERTICAL = 1
BUCKET_HEAVY = 2
BUCKET_STANDARD = 3
BUCKET_LIGHT_OR_FRAGILE = 4


def priority_bucket(piece: CargoPiece) -> int:
    """
    Bucket of a piece, checked in precedence order.

    A long heavy piece is bucket 0, a vertical fragile piece bucket 1.
    """
    if piece.meta.is_long:
        return BUCKET_LONG
    if piece.flags.vertical:
        return BUCKET_VERTICAL
    if piece.meta.is_heavy:
        return BUCKET_HEAVY
    if piece.meta.is_light or piece.flags.fragile:
        return BUCKET_LIGHT_OR_FRAGILE
    return BUCKET_STANDARD


def sort_by_priority(pieces: Sequence[CargoPiece]) -> List[CargoPiece]:
    """Bucket ascending, weight descending, volume descending, then index."""
    return sorted(
        pieces,
        key=lambda p: (priority_bucket(p), -p.weight_kg, -p.meta.volume_m3, p.index),
    )
