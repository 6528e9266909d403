"""
Cargo grouper — clusters pieces by (cargo_id, behavior).

Groups keep the minimum priority bucket of their members and the
position of their first member in the priority-sorted input.  Flattening
interleaves groups of the same bucket round-robin so no single large
group monopolises the early placement sequence; buckets stay strictly
ordered.

Usage:
    ordered = sort_by_priority(pieces)
    sequence = flatten_groups(group_pieces(ordered))
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from loadplan.core.models import Behavior, CargoPiece, WeightClass
from loadplan.preprocessing.priority import priority_bucket


WEIGHT_CLASS_RANK: Dict[WeightClass, int] = {
    WeightClass.HEAVY: 0,
    WeightClass.MEDIUM: 1,
    WeightClass.LIGHT: 2,
}


@dataclass
class CargoPieceGroup:
    """Ordered cluster of same-type pieces."""
    cargo_id: str
    behavior: Behavior
    bucket: int
    first_position: int
    pieces: List[CargoPiece] = field(default_factory=list)

    @property
    def key(self) -> Tuple[str, Behavior]:
        return (self.cargo_id, self.behavior)

    def __len__(self) -> int:
        return len(self.pieces)


def group_pieces(sorted_pieces: Sequence[CargoPiece]) -> List[CargoPieceGroup]:
    """
    Group priority-sorted pieces.

    Groups are ordered by (bucket, first position); pieces inside a group
    by weight class, descending volume, then original index.
    """
    groups: Dict[Tuple[str, Behavior], CargoPieceGroup] = {}
    for position, piece in enumerate(sorted_pieces):
        bucket = priority_bucket(piece)
        grp = groups.get(piece.group_key)
        if grp is None:
            grp = CargoPieceGroup(
                cargo_id=piece.cargo_id,
                behavior=piece.behavior,
                bucket=bucket,
                first_position=position,
            )
            groups[piece.group_key] = grp
        else:
            grp.bucket = min(grp.bucket, bucket)
        grp.pieces.append(piece)

    for grp in groups.values():
        grp.pieces.sort(key=lambda p: (
            WEIGHT_CLASS_RANK[p.weight_class], -p.meta.volume_m3, p.index,
        ))

    return sorted(groups.values(), key=lambda g: (g.bucket, g.first_position))


def flatten_groups(groups: Sequence[CargoPieceGroup]) -> List[CargoPiece]:
    """Round-robin flatten within each bucket, buckets in ascending order."""
    out: List[CargoPiece] = []
    i = 0
    while i < len(groups):
        bucket = groups[i].bucket
        same_bucket = []
        while i < len(groups) and groups[i].bucket == bucket:
            same_bucket.append(groups[i])
            i += 1
        rounds = max(len(g.pieces) for g in same_bucket)
        for r in range(rounds):
            for grp in same_bucket:
                if r < len(grp.pieces):
                    out.append(grp.pieces[r])
    return out
