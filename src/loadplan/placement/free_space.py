"""
Free-space arena and splitter.

Free boxes live in an arena under stable integer handles.  Candidates
carry the handle of the box they were generated from, so the packer can
consume exactly that box after choosing a candidate.

Usage:
    space = FreeSpace(initialize_free_space(vehicle))
    for handle, box in space.items():
        ...
    space.split(candidate.free_handle, anchor, size)
"""

from typing import Dict, Iterable, Iterator, List, Tuple

from loadplan.core.geometry import subtract_box
from loadplan.core.models import FreeBox, Vec3
from loadplan.validation.validator import FreeBoxLookupError


def split_free_box(free: FreeBox, anchor: Vec3, size: Vec3) -> List[FreeBox]:
    """
    Remainder of ``free`` after placing [anchor, anchor + size].

    Uses the six-way decomposition, so the placement need not sit at the
    free box's own corner.  Degenerate slices are dropped.
    """
    hi = (anchor[0] + size[0], anchor[1] + size[1], anchor[2] + size[2])
    return subtract_box(free, anchor, hi)


class FreeSpace:
    """
    Arena of free boxes addressed by integer handles.

    Handles are never reused; iteration follows insertion order.
    """

    __slots__ = ("_boxes", "_next_handle")

    def __init__(self, boxes: Iterable[FreeBox] = ()) -> None:
        self._boxes: Dict[int, FreeBox] = {}
        self._next_handle: int = 0
        for box in boxes:
            self.add(box)

    def add(self, box: FreeBox) -> int:
        handle = self._next_handle
        self._boxes[handle] = box
        self._next_handle += 1
        return handle

    def get(self, handle: int) -> FreeBox:
        try:
            return self._boxes[handle]
        except KeyError:
            raise FreeBoxLookupError(f"Free box {handle} is not in the working set") from None

    def remove(self, handle: int) -> FreeBox:
        box = self.get(handle)
        del self._boxes[handle]
        return box

    def split(self, handle: int, anchor: Vec3, size: Vec3) -> List[int]:
        """
        Consume the box behind ``handle`` and add its remainder.

        Returns the handles of the replacement boxes.

        Raises:
            FreeBoxLookupError: the handle is not in the arena.
        """
        free = self.remove(handle)
        return [self.add(b) for b in split_free_box(free, anchor, size)]

    def items(self) -> List[Tuple[int, FreeBox]]:
        return list(self._boxes.items())

    def boxes(self) -> List[FreeBox]:
        return list(self._boxes.values())

    def __contains__(self, handle: object) -> bool:
        return handle in self._boxes

    def __len__(self) -> int:
        return len(self._boxes)

    def __iter__(self) -> Iterator[FreeBox]:
        return iter(self._boxes.values())

    def __repr__(self) -> str:
        return f"FreeSpace(boxes={len(self._boxes)}, next_handle={self._next_handle})"
