"""Request/response schemas for the solver payload.

The engine trusts its inputs; this layer is where external JSON is
validated (non-negative dimensions, known unit, positive trip count)
before it is converted into core models.
"""

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from loadplan.config import SolverConfig
from loadplan.core.models import (
    AABB,
    CargoDefinition,
    CargoFlags,
    CargoRequestItem,
    CargoSpace,
    Dimensions,
    PackingClass,
    VehicleDefinition,
)
from loadplan.packing.solver import solve


class DimensionsModel(BaseModel):
    """Canonical dimensions in millimetres."""
    length: float = Field(ge=0, description="Length (mm)")
    width: float = Field(ge=0, description="Width (mm)")
    height: float = Field(ge=0, description="Height (mm)")


class CargoFlagsModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    stackable: bool = True
    allow_rotations: bool = Field(True, alias="allowRotations")
    fragile: bool = False
    vertical: bool = False


class CargoDefinitionModel(BaseModel):
    """Schema for a cargo definition."""
    model_config = ConfigDict(populate_by_name=True)

    cargo_id: str = Field(min_length=1)
    dimensions: DimensionsModel
    weight_kg: float = Field(0.0, ge=0)
    flags: CargoFlagsModel = Field(default_factory=CargoFlagsModel)
    packing_class: PackingClass = Field(PackingClass.STANDARD, alias="packingClass")
    label: Optional[str] = None

    def to_core(self) -> CargoDefinition:
        return CargoDefinition(
            cargo_id=self.cargo_id,
            dimensions=Dimensions(self.dimensions.length, self.dimensions.width,
                                  self.dimensions.height),
            weight_kg=self.weight_kg,
            flags=CargoFlags(
                stackable=self.flags.stackable,
                allow_rotations=self.flags.allow_rotations,
                fragile=self.flags.fragile,
                vertical=self.flags.vertical,
            ),
            packing_class=self.packing_class,
            label=self.label,
        )


class AABBModel(BaseModel):
    """Schema for an obstacle box (min corner + size)."""
    position: Tuple[float, float, float]
    size: Tuple[float, float, float]

    def to_core(self, kind: str) -> AABB:
        return AABB(position=self.position, size=self.size, kind=kind)


class VehicleModel(BaseModel):
    """Schema for a vehicle."""
    vehicle_id: str = Field(min_length=1)
    cargo_space: DimensionsModel
    wheel_arches: List[AABBModel] = Field(default_factory=list)
    obstacles: List[AABBModel] = Field(default_factory=list)

    def to_core(self) -> VehicleDefinition:
        cs = self.cargo_space
        return VehicleDefinition(
            vehicle_id=self.vehicle_id,
            cargo_space=CargoSpace(cs.length, cs.width, cs.height),
            wheel_arches=tuple(a.to_core("wheel_arch") for a in self.wheel_arches),
            obstacles=tuple(o.to_core("obstacle") for o in self.obstacles),
        )


class RequestItemModel(BaseModel):
    definition: CargoDefinitionModel
    quantity: int = Field(ge=0)


class SolveRequest(BaseModel):
    """Schema for a solve request."""
    unit: Literal["mm"] = "mm"
    vehicle: VehicleModel
    items: List[RequestItemModel] = Field(default_factory=list)
    max_trips: int = Field(1, ge=1)

    def to_items(self) -> List[CargoRequestItem]:
        return [CargoRequestItem(i.definition.to_core(), i.quantity) for i in self.items]


class PlacedPieceModel(BaseModel):
    piece_id: str
    cargo_id: str
    index: int


class PlacementModel(BaseModel):
    piece: PlacedPieceModel
    orientation: int = Field(ge=0, le=5)
    anchor: Tuple[float, float, float]
    size: Tuple[float, float, float]


class TripModel(BaseModel):
    index: int = Field(ge=0)
    items: List[PlacementModel]


class SummaryModel(BaseModel):
    total_pieces: int = Field(ge=0)
    placed_pieces: int = Field(ge=0)
    unplaced_pieces: int = Field(ge=0)
    trips_used: int = Field(ge=0)


class SolveResponseModel(BaseModel):
    """Schema for a solve response."""
    unit: Literal["mm"]
    vehicle_id: str
    status: Literal["ok", "partial", "no_fit"]
    message: str
    summary: SummaryModel
    trips: List[TripModel]


def solve_payload(payload: dict, config: Optional[SolverConfig] = None) -> dict:
    """
    Validate a request dict, solve it and return the response dict.

    Raises:
        pydantic.ValidationError: the payload does not match SolveRequest.
    """
    request = SolveRequest.model_validate(payload)
    response = solve(
        request.vehicle.to_core(),
        request.to_items(),
        max_trips=request.max_trips,
        config=config,
    )
    return response.to_dict()
