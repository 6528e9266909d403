"""
Orientation resolver.

Each orientation index maps the canonical (length, width, height) of a
piece onto the vehicle axes (X, Y, Z):

    0: L->X, W->Y, H->Z        3: W->X, H->Y, L->Z
    1: L->X, H->Y, W->Z        4: H->X, L->Y, W->Z
    2: W->X, L->Y, H->Z        5: H->X, W->Y, L->Z
"""

from typing import Dict, List, Tuple

from loadplan.core.models import CargoPiece, Dimensions, Vec3


ORIENTATION_AXES: Dict[int, Tuple[int, int, int]] = {
    0: (0, 1, 2),
    1: (0, 2, 1),
    2: (1, 0, 2),
    3: (1, 2, 0),
    4: (2, 0, 1),
    5: (2, 1, 0),
}

ALL_ORIENTATIONS: List[int] = [0, 1, 2, 3, 4, 5]
UPRIGHT_ORIENTATIONS: List[int] = [0, 2]  # height stays on Z


def allowed_orientations(piece: CargoPiece) -> List[int]:
    """Vertical pieces stay upright; no-rotate pieces keep index 0."""
    if piece.flags.vertical:
        return list(UPRIGHT_ORIENTATIONS)
    if not piece.flags.allow_rotations:
        return [0]
    return list(ALL_ORIENTATIONS)


def oriented_size(dims: Dimensions, orientation: int) -> Vec3:
    """Extent along (X, Y, Z) after applying the orientation."""
    src = dims.as_tuple()
    ax, ay, az = ORIENTATION_AXES[orientation]
    return (src[ax], src[ay], src[az])


def fits_any_orientation(piece: CargoPiece, length: float, width: float,
                         height: float) -> bool:
    """True when at least one allowed orientation fits the given box."""
    for idx in allowed_orientations(piece):
        dx, dy, dz = oriented_size(piece.dimensions, idx)
        if dx <= length and dy <= width and dz <= height:
            return True
    return False
