"""
Stage observers for the solver.

``solve`` calls the hooks of an injected observer at stage boundaries;
without one it produces no output at all.

Classes:
    SolveObserver    — no-op base class, override what you need
    VerboseObserver  — prints a short line per stage
    RecordingObserver— keeps every event in memory (tests, notebooks)

Usage:
    response = solve(vehicle, items, observer=VerboseObserver())
"""

from typing import TYPE_CHECKING, Any, List, Sequence, Tuple

from loadplan.core.models import CargoPiece, FreeBox, SolverResponse

if TYPE_CHECKING:
    from loadplan.packing.trip_packer import TripResult
    from loadplan.preprocessing.grouper import CargoPieceGroup


class SolveObserver:
    """Base observer: every hook is a no-op."""

    def on_expanded(self, pieces: Sequence[CargoPiece]) -> None:
        pass

    def on_sorted(self, pieces: Sequence[CargoPiece]) -> None:
        pass

    def on_grouped(self, groups: Sequence["CargoPieceGroup"],
                   sequence: Sequence[CargoPiece]) -> None:
        pass

    def on_space_initialized(self, free_boxes: Sequence[FreeBox]) -> None:
        pass

    def on_trip_complete(self, result: "TripResult") -> None:
        pass

    def on_solve_complete(self, response: SolverResponse) -> None:
        pass


class VerboseObserver(SolveObserver):
    """Prints one line per stage and a short line per trip."""

    def __init__(self, prefix: str = "[loadplan]", show_placements: bool = False) -> None:
        self.prefix = prefix
        self.show_placements = show_placements

    def on_expanded(self, pieces: Sequence[CargoPiece]) -> None:
        print(f"{self.prefix} expanded {len(pieces)} pieces")
        for p in pieces:
            print(f"{self.prefix}   {p.piece_id:<25} {p.meta.behavior.value:<6} "
                  f"{p.meta.weight_class.value:<7} {p.weight_kg:.1f}kg")

    def on_sorted(self, pieces: Sequence[CargoPiece]) -> None:
        head = ", ".join(p.piece_id for p in pieces[:5])
        print(f"{self.prefix} priority order: {head}{' ...' if len(pieces) > 5 else ''}")

    def on_grouped(self, groups: Sequence["CargoPieceGroup"],
                   sequence: Sequence[CargoPiece]) -> None:
        print(f"{self.prefix} {len(groups)} group(s)")
        for g in groups:
            print(f"{self.prefix}   {g.cargo_id}::{g.behavior.value} "
                  f"bucket={g.bucket} ({len(g.pieces)})")

    def on_space_initialized(self, free_boxes: Sequence[FreeBox]) -> None:
        print(f"{self.prefix} {len(free_boxes)} initial free box(es)")

    def on_trip_complete(self, result: "TripResult") -> None:
        print(f"{self.prefix} trip {result.index + 1}: {len(result.placements)} placed, "
              f"{len(result.remaining)} remaining, fill {result.fill_rate:.1%}")
        if self.show_placements:
            for p in result.placements:
                x, y, z = p.anchor
                print(f"{self.prefix}   {p.piece.piece_id:<25} @ "
                      f"[{x:.0f},{y:.0f},{z:.0f}] ori={p.orientation}")

    def on_solve_complete(self, response: SolverResponse) -> None:
        s = response.summary
        print(f"{self.prefix} {response.status.value}: {s.placed_pieces}/{s.total_pieces} "
              f"placed in {s.trips_used} trip(s)")


class RecordingObserver(SolveObserver):
    """Keeps (stage, payload) tuples in call order."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Any]] = []

    @property
    def stages(self) -> List[str]:
        return [name for name, _ in self.events]

    def on_expanded(self, pieces: Sequence[CargoPiece]) -> None:
        self.events.append(("expanded", list(pieces)))

    def on_sorted(self, pieces: Sequence[CargoPiece]) -> None:
        self.events.append(("sorted", list(pieces)))

    def on_grouped(self, groups: Sequence["CargoPieceGroup"],
                   sequence: Sequence[CargoPiece]) -> None:
        self.events.append(("grouped", list(sequence)))

    def on_space_initialized(self, free_boxes: Sequence[FreeBox]) -> None:
        self.events.append(("space_initialized", list(free_boxes)))

    def on_trip_complete(self, result: "TripResult") -> None:
        self.events.append(("trip_complete", result))

    def on_solve_complete(self, response: SolverResponse) -> None:
        self.events.append(("solve_complete", response))
