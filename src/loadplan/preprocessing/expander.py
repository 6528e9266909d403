"""
Piece expander — turns (definition, quantity) requests into pieces.

Derived meta depends only on the definition, so it is computed once per
definition and shared by every piece of that type.
"""

import math
from typing import Dict, List, Sequence, Tuple

from loadplan.core.models import (
    Behavior,
    CargoDefinition,
    CargoDerivedMeta,
    CargoPiece,
    CargoRequestItem,
    Dimensions,
    WeightClass,
)


# ─────────────────────────────────────────────────────────────────────────────
# Classification thresholds
# ─────────────────────────────────────────────────────────────────────────────

LONG_RATIO: float = 4.0              # largest / second-largest dimension
HEAVY_DENSITY: float = 300.0         # kg/m³, at or above -> heavy
LIGHT_DENSITY: float = 150.0         # kg/m³, at or below -> light
PLATE_THIN_RATIO: float = 0.25       # smallest < ratio * largest
PLATE_DOMINANCE: float = 2.5         # largest / smallest


def derive_meta(definition: CargoDefinition) -> CargoDerivedMeta:
    """Compute volume, density and the behavior/weight classes."""
    dims = definition.dimensions
    length, width, height = dims.length, dims.width, dims.height

    volume_m3 = (length * width * height) / 1e9
    density = definition.weight_kg / volume_m3 if volume_m3 > 0 else math.inf

    # Stable sort keeps length before width before height on ties.
    axes: List[Tuple[str, float]] = sorted(
        [("length", length), ("width", width), ("height", height)],
        key=lambda a: -a[1],
    )
    long_axis, largest = axes[0]
    second = axes[1][1]
    smallest_axis, smallest = axes[2]
    is_long = largest > 0 and largest >= LONG_RATIO * second

    is_heavy = density >= HEAVY_DENSITY
    is_light = density <= LIGHT_DENSITY and not definition.is_palletized

    if is_long:
        behavior = Behavior.LONG
    elif (
        smallest_axis == "height"
        and smallest < PLATE_THIN_RATIO * largest
        and smallest > 0
        and largest / smallest >= PLATE_DOMINANCE
    ):
        behavior = Behavior.PLATE
    else:
        behavior = Behavior.BOX

    if is_heavy:
        weight_class = WeightClass.HEAVY
    elif is_light:
        weight_class = WeightClass.LIGHT
    else:
        weight_class = WeightClass.MEDIUM

    return CargoDerivedMeta(
        dims_mm=Dimensions(length, width, height),
        volume_m3=volume_m3,
        density_kg_per_m3=density,
        is_long=is_long,
        long_axis=long_axis,
        is_heavy=is_heavy,
        is_light=is_light,
        behavior=behavior,
        weight_class=weight_class,
    )


def expand_items(items: Sequence[CargoRequestItem]) -> List[CargoPiece]:
    """
    Produce ``quantity`` pieces per request line.

    Piece ids are ``"<cargo_id>#<n>"`` where n counts pieces of that
    cargo type across the whole request; ``index`` is the global
    expansion position.  Zero or negative quantities yield nothing.
    """
    pieces: List[CargoPiece] = []
    meta_cache: Dict[CargoDefinition, CargoDerivedMeta] = {}
    per_type: Dict[str, int] = {}

    for item in items:
        definition = item.definition
        meta = meta_cache.get(definition)
        if meta is None:
            meta = derive_meta(definition)
            meta_cache[definition] = meta
        for _ in range(max(0, int(item.quantity))):
            n = per_type.get(definition.cargo_id, 0)
            per_type[definition.cargo_id] = n + 1
            pieces.append(CargoPiece(
                piece_id=f"{definition.cargo_id}#{n}",
                cargo_id=definition.cargo_id,
                index=len(pieces),
                dimensions=definition.dimensions,
                weight_kg=definition.weight_kg,
                flags=definition.flags,
                meta=meta,
                packing_class=definition.packing_class,
            ))
    return pieces
