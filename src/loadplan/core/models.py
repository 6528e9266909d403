"""
Core data models for the van load planner.

All modules import their core types from here to ensure consistency
across the preprocessing, placement, packing and api layers.

Classes:
    Dimensions          — canonical (length, width, height) in millimetres
    CargoFlags          — user flags: stackable, rotations, fragile, vertical
    PackingClass        — data-authored packing class (standard / palletized)
    CargoDefinition     — immutable cargo template from the catalog
    CargoDerivedMeta    — physical metadata computed once per definition
    CargoPiece          — one physical unit produced by the expander
    AABB                — axis-aligned obstacle (wheel arch, bulkhead, ...)
    CargoSpace          — cargo compartment dimensions
    VehicleDefinition   — vehicle with cargo space and obstacles
    FreeBox             — unoccupied axis-aligned region
    SolverItemPlacement — validated, immutable result of placing a piece
    CargoRequestItem    — (definition, quantity) request line
    SolverTrip          — ordered placements of one trip
    SolverSummary       — piece counts of a solve
    SolverResponse      — full solve result

Coordinates are vehicle-local millimetres: X = length (forward),
Y = width (lateral), Z = height (up), origin at rear-left-floor.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

Vec3 = Tuple[float, float, float]


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────

class Behavior(str, Enum):
    """Geometric shape class driving zone-affinity scoring."""
    PLATE = "PLATE"
    LONG = "LONG"
    BOX = "BOX"


class WeightClass(str, Enum):
    """Density-derived class driving floor/elevation scoring."""
    HEAVY = "HEAVY"
    MEDIUM = "MEDIUM"
    LIGHT = "LIGHT"


class PackingClass(str, Enum):
    """
    Packing class decided when the catalog is authored.

    PALLETIZED cargo gets the column, row and mirror heuristics of the
    placement engine.  Everything else is STANDARD.
    """
    STANDARD = "standard"
    PALLETIZED = "palletized"


class SolverStatus(str, Enum):
    OK = "ok"
    PARTIAL = "partial"
    NO_FIT = "no_fit"


# ─────────────────────────────────────────────────────────────────────────────
# Cargo
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Dimensions:
    """Canonical, unrotated dimensions in millimetres."""
    length: float
    width: float
    height: float

    @property
    def volume(self) -> float:
        """Volume in mm³."""
        return self.length * self.width * self.height

    def as_tuple(self) -> Vec3:
        return (self.length, self.width, self.height)

    def to_dict(self) -> dict:
        return {"length": self.length, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, d: dict) -> "Dimensions":
        return cls(length=float(d["length"]), width=float(d["width"]),
                   height=float(d["height"]))


@dataclass(frozen=True)
class CargoFlags:
    """
    User flags attached to a cargo definition.

    Attributes:
        stackable:       Other pieces may rest on top of this one.
        allow_rotations: Any of the six axis-aligned orientations is allowed.
        fragile:         Nothing may rest on top; scored as light cargo.
        vertical:        Must stay upright (height on the Z axis) on the floor.
    """
    stackable: bool = True
    allow_rotations: bool = True
    fragile: bool = False
    vertical: bool = False

    def to_dict(self) -> dict:
        return {
            "stackable": self.stackable,
            "allowRotations": self.allow_rotations,
            "fragile": self.fragile,
            "vertical": self.vertical,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "CargoFlags":
        allow = d.get("allow_rotations", d.get("allowRotations", True))
        return cls(
            stackable=bool(d.get("stackable", True)),
            allow_rotations=bool(allow),
            fragile=bool(d.get("fragile", False)),
            vertical=bool(d.get("vertical", False)),
        )


@dataclass(frozen=True)
class CargoDefinition:
    """
    Immutable cargo template supplied by the catalog.

    Attributes:
        cargo_id:      Unique key of the cargo type.
        dimensions:    Canonical (length, width, height) in mm.
        weight_kg:     Weight of one unit.
        flags:         User flags.
        packing_class: STANDARD or PALLETIZED.
        label:         Optional human-readable name.
    """
    cargo_id: str
    dimensions: Dimensions
    weight_kg: float = 0.0
    flags: CargoFlags = field(default_factory=CargoFlags)
    packing_class: PackingClass = PackingClass.STANDARD
    label: Optional[str] = None

    @property
    def is_palletized(self) -> bool:
        return self.packing_class is PackingClass.PALLETIZED

    def to_dict(self) -> dict:
        d = {
            "cargo_id": self.cargo_id,
            "dimensions": self.dimensions.to_dict(),
            "weight_kg": self.weight_kg,
            "flags": self.flags.to_dict(),
            "packing_class": self.packing_class.value,
        }
        if self.label is not None:
            d["label"] = self.label
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "CargoDefinition":
        packing = d.get("packing_class", d.get("packingClass", PackingClass.STANDARD.value))
        return cls(
            cargo_id=str(d["cargo_id"]),
            dimensions=Dimensions.from_dict(d["dimensions"]),
            weight_kg=float(d.get("weight_kg", 0.0)),
            flags=CargoFlags.from_dict(d.get("flags", {})),
            packing_class=PackingClass(packing),
            label=d.get("label"),
        )


@dataclass(frozen=True)
class CargoDerivedMeta:
    """
    Physical metadata derived from a CargoDefinition.

    Depends only on the definition, so it is computed once per
    definition and shared by every expanded piece.
    """
    dims_mm: Dimensions
    volume_m3: float
    density_kg_per_m3: float
    is_long: bool
    long_axis: str
    is_heavy: bool
    is_light: bool
    behavior: Behavior
    weight_class: WeightClass


@dataclass(frozen=True)
class CargoPiece:
    """
    One physical unit of cargo.

    Attributes:
        piece_id:      "<cargo_id>#<index>".
        cargo_id:      Back-reference to the definition.
        index:         Position in the expansion sequence (0-based, global).
        dimensions:    Canonical dimensions in mm.
        weight_kg:     Weight of this unit.
        flags:         Flags inherited from the definition.
        meta:          Derived meta inherited from the definition.
        packing_class: Packing class inherited from the definition.
    """
    piece_id: str
    cargo_id: str
    index: int
    dimensions: Dimensions
    weight_kg: float
    flags: CargoFlags
    meta: CargoDerivedMeta
    packing_class: PackingClass = PackingClass.STANDARD

    @property
    def is_palletized(self) -> bool:
        return self.packing_class is PackingClass.PALLETIZED

    @property
    def behavior(self) -> Behavior:
        return self.meta.behavior

    @property
    def weight_class(self) -> WeightClass:
        return self.meta.weight_class

    @property
    def group_key(self) -> Tuple[str, Behavior]:
        """Clustering key shared by same-type pieces."""
        return (self.cargo_id, self.meta.behavior)

    def to_dict(self) -> dict:
        return {
            "piece_id": self.piece_id,
            "cargo_id": self.cargo_id,
            "index": self.index,
            "dimensions": self.dimensions.to_dict(),
            "weight_kg": self.weight_kg,
            "flags": self.flags.to_dict(),
            "packing_class": self.packing_class.value,
            "behavior": self.meta.behavior.value,
            "weight_class": self.meta.weight_class.value,
        }


@dataclass(frozen=True)
class CargoRequestItem:
    """A single request line: quantity units of one definition."""
    definition: CargoDefinition
    quantity: int


# ─────────────────────────────────────────────────────────────────────────────
# Vehicle
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AABB:
    """Axis-aligned box given by its min corner and size (mm)."""
    position: Vec3
    size: Vec3
    kind: str = "obstacle"

    @property
    def min_corner(self) -> Vec3:
        return self.position

    @property
    def max_corner(self) -> Vec3:
        return (
            self.position[0] + self.size[0],
            self.position[1] + self.size[1],
            self.position[2] + self.size[2],
        )

    def to_dict(self) -> dict:
        return {"position": list(self.position), "size": list(self.size), "kind": self.kind}

    @classmethod
    def from_dict(cls, d: dict, kind: str = "obstacle") -> "AABB":
        pos = d["position"]
        size = d["size"]
        return cls(
            position=(float(pos[0]), float(pos[1]), float(pos[2])),
            size=(float(size[0]), float(size[1]), float(size[2])),
            kind=d.get("kind", kind),
        )


@dataclass(frozen=True)
class CargoSpace:
    """Inner cargo compartment dimensions (mm)."""
    length: float
    width: float
    height: float

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height

    def to_dict(self) -> dict:
        return {"length": self.length, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class VehicleDefinition:
    """
    Immutable vehicle record.

    Attributes:
        vehicle_id:   Unique key of the vehicle.
        cargo_space:  Compartment dimensions.
        wheel_arches: Wheel-arch volumes, carved from free space first.
        obstacles:    Any further fixed volumes (partition, tie-down rails).
    """
    vehicle_id: str
    cargo_space: CargoSpace
    wheel_arches: Tuple[AABB, ...] = ()
    obstacles: Tuple[AABB, ...] = ()

    @property
    def all_obstacles(self) -> Tuple[AABB, ...]:
        return self.wheel_arches + self.obstacles

    def to_dict(self) -> dict:
        return {
            "vehicle_id": self.vehicle_id,
            "cargo_space": self.cargo_space.to_dict(),
            "wheel_arches": [a.to_dict() for a in self.wheel_arches],
            "obstacles": [o.to_dict() for o in self.obstacles],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "VehicleDefinition":
        cs = d["cargo_space"]
        return cls(
            vehicle_id=str(d["vehicle_id"]),
            cargo_space=CargoSpace(float(cs["length"]), float(cs["width"]),
                                   float(cs["height"])),
            wheel_arches=tuple(AABB.from_dict(a, "wheel_arch")
                               for a in d.get("wheel_arches", [])),
            obstacles=tuple(AABB.from_dict(o) for o in d.get("obstacles", [])),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Free space
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FreeBox:
    """Unoccupied axis-aligned region between two corners (mm)."""
    min_x: float
    min_y: float
    min_z: float
    max_x: float
    max_y: float
    max_z: float

    @property
    def min_corner(self) -> Vec3:
        return (self.min_x, self.min_y, self.min_z)

    @property
    def max_corner(self) -> Vec3:
        return (self.max_x, self.max_y, self.max_z)

    @property
    def size(self) -> Vec3:
        return (self.max_x - self.min_x, self.max_y - self.min_y, self.max_z - self.min_z)

    @property
    def volume(self) -> float:
        sx, sy, sz = self.size
        return sx * sy * sz

    @property
    def is_degenerate(self) -> bool:
        return (self.max_x <= self.min_x or self.max_y <= self.min_y
                or self.max_z <= self.min_z)

    @classmethod
    def from_corners(cls, lo: Vec3, hi: Vec3) -> "FreeBox":
        return cls(lo[0], lo[1], lo[2], hi[0], hi[1], hi[2])


# ─────────────────────────────────────────────────────────────────────────────
# Placement & response
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SolverItemPlacement:
    """
    A single validated piece placement inside the cargo space.

    Attributes:
        piece:       The placed piece.
        orientation: Orientation index (0-5).
        anchor:      Min corner (mm, vehicle axes).
        size:        Post-orientation extent along X, Y, Z.
    """
    piece: CargoPiece
    orientation: int
    anchor: Vec3
    size: Vec3

    @property
    def x(self) -> float:
        return self.anchor[0]

    @property
    def y(self) -> float:
        return self.anchor[1]

    @property
    def z(self) -> float:
        return self.anchor[2]

    @property
    def x_max(self) -> float:
        return self.anchor[0] + self.size[0]

    @property
    def y_max(self) -> float:
        return self.anchor[1] + self.size[1]

    @property
    def z_max(self) -> float:
        return self.anchor[2] + self.size[2]

    @property
    def volume(self) -> float:
        return self.size[0] * self.size[1] * self.size[2]

    def to_dict(self) -> dict:
        return {
            "piece": self.piece.to_dict(),
            "orientation": self.orientation,
            "anchor": list(self.anchor),
            "size": list(self.size),
        }


@dataclass(frozen=True)
class SolverTrip:
    index: int
    items: Tuple[SolverItemPlacement, ...]

    def to_dict(self) -> dict:
        return {"index": self.index, "items": [p.to_dict() for p in self.items]}


@dataclass(frozen=True)
class SolverSummary:
    total_pieces: int
    placed_pieces: int
    unplaced_pieces: int
    trips_used: int

    def to_dict(self) -> dict:
        return {
            "total_pieces": self.total_pieces,
            "placed_pieces": self.placed_pieces,
            "unplaced_pieces": self.unplaced_pieces,
            "trips_used": self.trips_used,
        }


@dataclass(frozen=True)
class SolverResponse:
    """
    Result of one solve call.

    ``unplaced`` lists the pieces left over after the last trip; it is
    not part of the wire payload but is kept for callers and metrics.
    """
    unit: str
    vehicle_id: str
    status: SolverStatus
    message: str
    summary: SolverSummary
    trips: Tuple[SolverTrip, ...]
    unplaced: Tuple[CargoPiece, ...] = ()

    def to_dict(self) -> dict:
        return {
            "unit": self.unit,
            "vehicle_id": self.vehicle_id,
            "status": self.status.value,
            "message": self.message,
            "summary": self.summary.to_dict(),
            "trips": [t.to_dict() for t in self.trips],
        }
