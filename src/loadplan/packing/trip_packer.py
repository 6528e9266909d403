"""
Trip packer - fills one vehicle trip from a piece sequence.

Data flow per piece:
  1. ``build_candidates`` enumerates and ranks legal placements against
     the trip's free space and TripState.
  2. The best candidate is re-checked by ``validate_placement`` and its
     free box is split through the FreeSpace arena.
  3. On success the placement is committed and logged; on failure the
     piece stays in the remaining list and a rejection is logged.

Pieces that fail are retried in further passes over the same trip
until a pass places nothing (``SolverConfig.retry_until_stable``).

Usage:
    packer = TripPacker(vehicle, zones, config, index=0)
    result = packer.pack(pieces)
    result.placements, result.remaining, result.get_summary()
"""

import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from loadplan.config import SolverConfig
from loadplan.core.models import CargoPiece, SolverItemPlacement, VehicleDefinition
from loadplan.placement.candidates import build_candidates
from loadplan.placement.free_space import FreeSpace
from loadplan.placement.trip_state import TripState
from loadplan.preprocessing.space import initialize_free_space
from loadplan.preprocessing.zones import LoadZones
from loadplan.validation.validator import PlacementError, validate_placement


# ---------------------------------------------------------------------------
# StepRecord -- immutable log entry for each placement attempt
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StepRecord:
    """
    Log of a single placement attempt (success or rejection).

    Frozen so it can be safely examined without risk of mutation.
    """
    step: int
    pass_index: int
    piece: CargoPiece
    success: bool
    placement: Optional[SolverItemPlacement] = None
    rejection_reason: str = ""
    candidates_considered: int = 0
    fill_rate_after: float = 0.0
    elapsed_ms: float = 0.0

    def to_dict(self) -> dict:
        d = {
            "step": self.step,
            "pass": self.pass_index,
            "piece_id": self.piece.piece_id,
            "success": self.success,
            "candidates": self.candidates_considered,
            "fill_rate_after": round(self.fill_rate_after, 6),
            "elapsed_ms": round(self.elapsed_ms, 3),
        }
        if self.success and self.placement is not None:
            d["anchor"] = list(self.placement.anchor)
            d["orientation"] = self.placement.orientation
        else:
            d["rejection_reason"] = self.rejection_reason
        return d


@dataclass
class TripResult:
    """Outcome of one trip."""
    index: int
    placements: List[SolverItemPlacement]
    remaining: List[CargoPiece]
    step_log: List[StepRecord] = field(default_factory=list)
    passes: int = 0
    fill_rate: float = 0.0

    def get_summary(self) -> dict:
        """
        Summary dict of the trip.

        Keys: trip, pieces_placed, pieces_remaining, passes, attempts,
              rejections, fill_rate, computation_time_ms.
        """
        rejected = sum(1 for r in self.step_log if not r.success)
        return {
            "trip": self.index,
            "pieces_placed": len(self.placements),
            "pieces_remaining": len(self.remaining),
            "passes": self.passes,
            "attempts": len(self.step_log),
            "rejections": rejected,
            "fill_rate": self.fill_rate,
            "computation_time_ms": round(sum(r.elapsed_ms for r in self.step_log), 2),
        }


# ---------------------------------------------------------------------------
# TripPacker
# ---------------------------------------------------------------------------

class TripPacker:
    """
    Greedy placement loop for a single trip.

    Public interface
    ~~~~~~~~~~~~~~~~
    attempt(piece)     -> SolverItemPlacement | None
    pack(pieces)       -> TripResult
    state              -> TripState (read-only use)
    free_space         -> FreeSpace (read-only use)
    get_step_log()     -> List[StepRecord]
    """

    def __init__(
        self,
        vehicle: VehicleDefinition,
        zones: LoadZones,
        config: SolverConfig,
        index: int = 0,
    ) -> None:
        self._vehicle = vehicle
        self._zones = zones
        self._config = config
        self._index = index
        self._space = FreeSpace(initialize_free_space(vehicle))
        self._state = TripState(vehicle)
        self._step_log: List[StepRecord] = []
        self._pass_index: int = 0

    # -- Public: state access ------------------------------------------------

    @property
    def state(self) -> TripState:
        return self._state

    @property
    def free_space(self) -> FreeSpace:
        return self._space

    def get_step_log(self) -> List[StepRecord]:
        """Return a copy of the full step log."""
        return list(self._step_log)

    # -- Public: placement ---------------------------------------------------

    def attempt(self, piece: CargoPiece) -> Optional[SolverItemPlacement]:
        """
        Place ``piece`` at its best candidate.

        Returns:
            The committed placement, or None when no candidate exists or
            the chosen one fails validation / free-space bookkeeping.
        """
        t0 = time.perf_counter()
        candidates = build_candidates(piece, self._space, self._state,
                                      self._zones, self._config)
        if not candidates:
            self._log_rejection(piece, t0, "No viable candidate", 0)
            return None

        best = candidates[0]
        try:
            validate_placement(self._vehicle, piece, best.anchor, best.size,
                               self._state.placements, orientation=best.orientation)
            self._space.split(best.free_handle, best.anchor, best.size)
        except PlacementError as e:
            self._log_rejection(piece, t0, str(e), len(candidates))
            return None

        placement = SolverItemPlacement(
            piece=piece,
            orientation=best.orientation,
            anchor=best.anchor,
            size=best.size,
        )
        self._state.apply_placement(placement)
        self._step_log.append(StepRecord(
            step=len(self._step_log),
            pass_index=self._pass_index,
            piece=piece,
            success=True,
            placement=placement,
            candidates_considered=len(candidates),
            fill_rate_after=self._state.fill_rate(),
            elapsed_ms=(time.perf_counter() - t0) * 1000,
        ))
        return placement

    def pack(self, pieces: Sequence[CargoPiece]) -> TripResult:
        """
        Place as many of ``pieces`` as possible, in sequence order.

        With ``retry_until_stable`` the leftover pieces are retried in
        further passes until a pass places nothing.
        """
        pending = list(pieces)
        while pending:
            placed_this_pass = 0
            leftover: List[CargoPiece] = []
            for piece in pending:
                if self.attempt(piece) is None:
                    leftover.append(piece)
                else:
                    placed_this_pass += 1
            pending = leftover
            self._pass_index += 1
            if placed_this_pass == 0 or not self._config.retry_until_stable:
                break

        return TripResult(
            index=self._index,
            placements=list(self._state.placements),
            remaining=pending,
            step_log=self.get_step_log(),
            passes=self._pass_index,
            fill_rate=self._state.fill_rate(),
        )

    # -- Private helpers -----------------------------------------------------

    def _log_rejection(self, piece: CargoPiece, t0: float, reason: str,
                       candidates: int) -> None:
        self._step_log.append(StepRecord(
            step=len(self._step_log),
            pass_index=self._pass_index,
            piece=piece,
            success=False,
            rejection_reason=reason,
            candidates_considered=candidates,
            fill_rate_after=self._state.fill_rate(),
            elapsed_ms=(time.perf_counter() - t0) * 1000,
        ))


def pack_trip(
    vehicle: VehicleDefinition,
    pieces: Sequence[CargoPiece],
    zones: LoadZones,
    config: SolverConfig,
    index: int = 0,
) -> TripResult:
    """Convenience wrapper: fresh TripPacker, one ``pack`` call."""
    return TripPacker(vehicle, zones, config, index=index).pack(pieces)
