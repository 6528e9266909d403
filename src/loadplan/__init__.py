"""
Van load planner.

Computes a concrete 3D loading plan for cargo pieces in a van: each
piece gets a position and orientation, over one or more trips.

Usage:
    from loadplan import solve, CargoRequestItem, CargoDefinition, Dimensions
    response = solve(vehicle, [CargoRequestItem(definition, 3)], max_trips=2)
"""

from loadplan.config import SolverConfig
from loadplan.core.models import (
    AABB,
    Behavior,
    CargoDefinition,
    CargoFlags,
    CargoPiece,
    CargoRequestItem,
    CargoSpace,
    Dimensions,
    PackingClass,
    SolverItemPlacement,
    SolverResponse,
    SolverStatus,
    VehicleDefinition,
    WeightClass,
)
from loadplan.packing.solver import solve

__version__ = "0.1.0"

__all__ = [
    "AABB",
    "Behavior",
    "CargoDefinition",
    "CargoFlags",
    "CargoPiece",
    "CargoRequestItem",
    "CargoSpace",
    "Dimensions",
    "PackingClass",
    "SolverConfig",
    "SolverItemPlacement",
    "SolverResponse",
    "SolverStatus",
    "VehicleDefinition",
    "WeightClass",
    "solve",
]
