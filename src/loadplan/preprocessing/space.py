"""
Space initializer — free space of an empty cargo compartment.

Starts from one box spanning the whole cargo space, carves out wheel
arches and then the remaining obstacles, and finally appends a centre
corridor between the arches when it is wide enough to be useful.
"""

from typing import List, Sequence

from loadplan.core.geometry import subtract_box
from loadplan.core.models import AABB, FreeBox, VehicleDefinition


MIN_CORRIDOR_WIDTH: float = 500.0  # mm; narrower aisles are not added
RIGHT_WALL_TOLERANCE: float = 1.0  # mm; arch counts as touching the right wall


def carve_obstacle(free_boxes: Sequence[FreeBox], obstacle: AABB) -> List[FreeBox]:
    """Replace every box intersecting the obstacle by its remainder."""
    lo = obstacle.min_corner
    hi = obstacle.max_corner
    result: List[FreeBox] = []
    for box in free_boxes:
        result.extend(subtract_box(box, lo, hi))
    return result


def _center_corridor(vehicle: VehicleDefinition) -> List[FreeBox]:
    """
    Aisle between the left and right wheel arches.

    Carved by every obstacle so that it never intersects one.
    """
    if not vehicle.wheel_arches:
        return []
    cs = vehicle.cargo_space
    left_inset = 0.0
    right_inset = 0.0
    for arch in vehicle.wheel_arches:
        ay = arch.position[1]
        aw = arch.size[1]
        if ay == 0:
            left_inset = max(left_inset, aw)
        if abs(ay + aw - cs.width) <= RIGHT_WALL_TOLERANCE:
            right_inset = max(right_inset, aw)

    min_y = left_inset
    max_y = cs.width - right_inset
    if max_y - min_y < MIN_CORRIDOR_WIDTH:
        return []

    corridor = [FreeBox(0.0, min_y, 0.0, cs.length, max_y, cs.height)]
    for obstacle in vehicle.all_obstacles:
        corridor = carve_obstacle(corridor, obstacle)
    return corridor


def initialize_free_space(vehicle: VehicleDefinition) -> List[FreeBox]:
    """Free boxes of the empty vehicle, arches carved before obstacles."""
    cs = vehicle.cargo_space
    free_boxes = [FreeBox(0.0, 0.0, 0.0, cs.length, cs.width, cs.height)]
    for arch in vehicle.wheel_arches:
        free_boxes = carve_obstacle(free_boxes, arch)
    for obstacle in vehicle.obstacles:
        free_boxes = carve_obstacle(free_boxes, obstacle)
    free_boxes.extend(_center_corridor(vehicle))
    return free_boxes
