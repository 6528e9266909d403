"""
Tests for the placement layer: orientation, stacking, free space,
anchors, trip state, scoring and the candidate builder.

Run with:
    python -m pytest tests/test_placement.py -v
"""

import math
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from loadplan.config import SolverConfig
from loadplan.core.geometry import boxes_intersect
from loadplan.core.models import (
    CargoDefinition,
    CargoFlags,
    CargoRequestItem,
    CargoSpace,
    Dimensions,
    FreeBox,
    PackingClass,
    SolverItemPlacement,
    VehicleDefinition,
)
from loadplan.packing.trip_packer import TripPacker
from loadplan.placement.anchors import generate_anchors
from loadplan.placement.candidates import build_candidates
from loadplan.placement.free_space import FreeSpace, split_free_box
from loadplan.placement.orientation import (
    allowed_orientations,
    fits_any_orientation,
    oriented_size,
)
from loadplan.placement.scoring import BaseScoreContext, PalletScoreContext, score_candidate
from loadplan.placement.stacking import can_stack_on, gather_supports, is_supported
from loadplan.placement.trip_state import TripState
from loadplan.preprocessing.expander import expand_items
from loadplan.preprocessing.space import initialize_free_space
from loadplan.preprocessing.zones import compute_zones
from loadplan.validation.validator import FreeBoxLookupError


def make_piece(cargo_id, l, w, h, weight, packing=PackingClass.STANDARD, **flags):
    definition = CargoDefinition(cargo_id, Dimensions(l, w, h), weight,
                                 CargoFlags(**flags), packing)
    return expand_items([CargoRequestItem(definition, 1)])[0]


def place(piece, anchor, size, orientation=0):
    return SolverItemPlacement(piece=piece, orientation=orientation,
                               anchor=anchor, size=size)


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def van():
    return VehicleDefinition("van", CargoSpace(3000.0, 1700.0, 1800.0))


@pytest.fixture
def config():
    return SolverConfig()


@pytest.fixture
def zones(van, config):
    return compute_zones(van, config)


@pytest.fixture
def crate():
    """Medium-density BOX piece (208 kg/m³)."""
    return make_piece("crate", 600, 400, 400, 20)


@pytest.fixture
def pallet():
    return make_piece("pallet", 1200, 800, 150, 25,
                      packing=PackingClass.PALLETIZED, allow_rotations=False)


# ---------------------------------------------------------------------------
# Orientation
# ---------------------------------------------------------------------------

class TestOrientation:

    @pytest.mark.parametrize("idx,expected", [
        (0, (300, 200, 100)),
        (1, (300, 100, 200)),
        (2, (200, 300, 100)),
        (3, (200, 100, 300)),
        (4, (100, 300, 200)),
        (5, (100, 200, 300)),
    ])
    def test_axis_table(self, idx, expected):
        assert oriented_size(Dimensions(300, 200, 100), idx) == expected

    def test_allowed_sets(self):
        assert allowed_orientations(make_piece("a", 300, 200, 100, 5)) == [0, 1, 2, 3, 4, 5]
        assert allowed_orientations(make_piece("b", 300, 200, 100, 5,
                                               allow_rotations=False)) == [0]
        assert allowed_orientations(make_piece("c", 300, 200, 100, 5, vertical=True)) == [0, 2]
        assert allowed_orientations(make_piece("d", 300, 200, 100, 5, vertical=True,
                                               allow_rotations=False)) == [0, 2]

    def test_fits_any_orientation(self):
        rotatable = make_piece("a", 300, 200, 100, 5)
        fixed = make_piece("b", 300, 200, 100, 5, allow_rotations=False)
        assert fits_any_orientation(rotatable, 100, 200, 300)
        assert not fits_any_orientation(fixed, 100, 200, 300)


# ---------------------------------------------------------------------------
# Stacking
# ---------------------------------------------------------------------------

class TestStacking:

    def test_can_stack_on(self):
        base = make_piece("base", 500, 400, 300, 12)
        assert can_stack_on(base, base)
        assert not can_stack_on(base, make_piece("ns", 500, 400, 300, 12, stackable=False))
        assert not can_stack_on(base, make_piece("fr", 500, 400, 300, 12, fragile=True))

    def test_heavy_never_on_light(self):
        heavy = make_piece("heavy", 500, 400, 300, 30)
        light = make_piece("light", 500, 400, 300, 3)
        assert not can_stack_on(heavy, light)
        assert can_stack_on(light, heavy)

    def test_two_supporters_cover_footprint(self):
        definition = CargoDefinition("base", Dimensions(500, 1000, 500), 50)
        left, right = expand_items([CargoRequestItem(definition, 2)])
        lower = [
            place(left, (0.0, 0.0, 0.0), (500.0, 1000.0, 500.0)),
            place(right, (500.0, 0.0, 0.0), (500.0, 1000.0, 500.0)),
        ]
        supports = gather_supports((0.0, 0.0, 500.0), (1000.0, 1000.0, 300.0), lower)
        assert set(supports) == {"base#0", "base#1"}
        assert supports["base#0"].area == pytest.approx(500_000.0)
        assert sum(s.area for s in supports.values()) == pytest.approx(1_000_000.0)
        upper = make_piece("upper", 1000, 1000, 300, 20)
        assert is_supported(upper, (0.0, 0.0, 500.0), (1000.0, 1000.0, 300.0), lower)

    def test_partial_footprint_unsupported(self):
        base = make_piece("base", 1000, 1000, 500, 50)
        lower = [place(base, (0.0, 0.0, 0.0), (1000.0, 1000.0, 500.0))]
        upper = make_piece("upper", 1000, 1000, 300, 20)
        assert not is_supported(upper, (200.0, 0.0, 500.0), (1000.0, 1000.0, 300.0), lower)

    def test_wrong_height_has_no_supporters(self):
        base = make_piece("base", 1000, 1000, 500, 50)
        lower = [place(base, (0.0, 0.0, 0.0), (1000.0, 1000.0, 500.0))]
        assert gather_supports((0.0, 0.0, 600.0), (1000.0, 1000.0, 300.0), lower) == {}

    def test_fragile_supporter_rejected(self):
        base = make_piece("base", 1000, 1000, 500, 50, fragile=True)
        lower = [place(base, (0.0, 0.0, 0.0), (1000.0, 1000.0, 500.0))]
        upper = make_piece("upper", 1000, 1000, 300, 20)
        assert not is_supported(upper, (0.0, 0.0, 500.0), (1000.0, 1000.0, 300.0), lower)


# ---------------------------------------------------------------------------
# Free space
# ---------------------------------------------------------------------------

class TestFreeSpace:

    @pytest.fixture
    def box(self):
        return FreeBox(0.0, 0.0, 0.0, 2000.0, 1000.0, 1000.0)

    def test_corner_split(self, box):
        space = FreeSpace([box])
        new_handles = space.split(0, (0.0, 0.0, 0.0), (1000.0, 500.0, 1000.0))
        assert new_handles == [1, 2]
        assert 0 not in space
        assert sum(b.volume for b in space) == pytest.approx(2e9 - 5e8)

    def test_inner_split_leaves_no_overlap(self, box):
        anchor, size = (500.0, 200.0, 0.0), (500.0, 500.0, 500.0)
        hi = (1000.0, 700.0, 500.0)
        rest = split_free_box(box, anchor, size)
        assert sum(b.volume for b in rest) == pytest.approx(box.volume - 1.25e8)
        for b in rest:
            assert not boxes_intersect(b.min_corner, b.max_corner, anchor, hi)

    def test_disjoint_split_returns_box(self, box):
        assert split_free_box(box, (3000.0, 0.0, 0.0), (100.0, 100.0, 100.0)) == [box]

    def test_unknown_handle_raises(self, box):
        space = FreeSpace([box])
        with pytest.raises(FreeBoxLookupError):
            space.get(99)
        space.split(0, (0.0, 0.0, 0.0), (100.0, 100.0, 100.0))
        with pytest.raises(FreeBoxLookupError):
            space.split(0, (0.0, 0.0, 0.0), (100.0, 100.0, 100.0))

    def test_handles_never_reused(self, box):
        space = FreeSpace([box])
        handles = space.split(0, (0.0, 0.0, 0.0), (100.0, 100.0, 100.0))
        later = space.add(box)
        assert later > max(handles)


# ---------------------------------------------------------------------------
# Anchors
# ---------------------------------------------------------------------------

class TestAnchors:

    def full_box(self):
        return FreeBox(0.0, 0.0, 0.0, 3000.0, 1700.0, 1800.0)

    def test_corner_wall_and_center(self, crate, zones, config):
        anchors = generate_anchors(self.full_box(), crate, (600.0, 400.0, 400.0),
                                   [], zones, config)
        assert anchors[0] == (0.0, 0.0, 0.0)
        assert (0.0, 1300.0, 0.0) in anchors, "Right-wall anchor missing"
        assert (0.0, 650.0, 0.0) in anchors, "Centred anchor missing"
        assert len(anchors) == len(set(anchors))

    def test_vertical_stepping(self, zones, config):
        fridge = make_piece("fridge", 700, 700, 1800, 80, vertical=True)
        anchors = generate_anchors(self.full_box(), fridge, (700.0, 700.0, 1800.0),
                                   [], zones, config)
        assert (0.0, 700.0, 0.0) in anchors
        assert (0.0, 500.0, 0.0) in anchors

    def test_pallet_mirror_anchor(self, pallet, zones, config):
        base = place(pallet, (0.0, 0.0, 0.0), (1200.0, 800.0, 150.0))
        free = FreeBox(0.0, 800.0, 0.0, 3000.0, 1700.0, 1800.0)
        anchors = generate_anchors(free, pallet, (1200.0, 800.0, 150.0),
                                   [base], zones, config)
        assert (0.0, 900.0, 0.0) in anchors

    def test_same_group_adjacency(self, crate, zones, config):
        base = place(crate, (0.0, 0.0, 0.0), (600.0, 400.0, 400.0))
        anchors = generate_anchors(self.full_box(), crate, (600.0, 400.0, 400.0),
                                   [base], zones, config)
        for expected in [(600.0, 0.0, 0.0), (0.0, 400.0, 0.0), (0.0, 0.0, 400.0)]:
            assert expected in anchors, f"Adjacency anchor {expected} missing"


# ---------------------------------------------------------------------------
# Trip state
# ---------------------------------------------------------------------------

class TestTripState:

    def test_empty_state(self, van):
        state = TripState(van)
        assert state.lateral_com() is None
        assert state.com_offset() == 0.0
        assert state.fill_rate() == 0.0
        assert state.max_height() == 0.0
        assert not state.overlaps_any((0.0, 0.0, 0.0), (100.0, 100.0, 100.0))

    def test_queries_after_placement(self, van):
        piece = make_piece("block", 1000, 500, 500, 100)
        state = TripState(van)
        state.apply_placement(place(piece, (0.0, 0.0, 0.0), (1000.0, 500.0, 500.0)))

        assert state.overlaps_any((500.0, 0.0, 0.0), (1000.0, 500.0, 500.0))
        assert not state.overlaps_any((1000.0, 0.0, 0.0), (1000.0, 500.0, 500.0)), \
            "Touching faces must not count as overlap"
        assert state.lateral_com() == pytest.approx(250.0)
        assert state.com_offset() == pytest.approx(600.0)
        assert state.com_offset_with((0.0, 1200.0, 0.0), (1000.0, 500.0, 500.0),
                                     100.0) == pytest.approx(0.0)
        assert state.fill_rate() == pytest.approx(2.5e8 / van.cargo_space.volume)
        assert state.max_height() == pytest.approx(500.0)
        assert len(state) == 1


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

class TestScoring:

    def ctx(self, piece, anchor, size, zones, **kw):
        return BaseScoreContext(piece=piece, anchor=anchor, size=size, zones=zones, **kw)

    def pallet_ctx(self, **kw):
        values = dict(
            new_footprint=True,
            distinct_footprints=1,
            max_columns=2,
            current_footprint_height=0.0,
            min_column_height=150.0,
            max_column_height=150.0,
            height_spread_after=0.0,
            row_counts={0.0: 1},
            first_incomplete_row_x=0.0,
            front_row_base_ys=(0.0,),
            mirror_target_y=900.0,
        )
        values.update(kw)
        return PalletScoreContext(**values)

    def test_heavy_prefers_floor(self, zones):
        heavy = make_piece("heavy", 500, 400, 300, 30)
        size = (500.0, 400.0, 300.0)
        floor = score_candidate(self.ctx(heavy, (0.0, 0.0, 0.0), size, zones))
        high = score_candidate(self.ctx(heavy, (0.0, 0.0, 1000.0), size, zones))
        assert floor > high

    def test_box_prefers_front(self, crate, zones):
        size = (600.0, 400.0, 400.0)
        front = score_candidate(self.ctx(crate, (0.0, 0.0, 0.0), size, zones))
        rear = score_candidate(self.ctx(crate, (2000.0, 0.0, 0.0), size, zones))
        assert front > rear

    def test_pallet_center_band_penalised(self, pallet, zones):
        size = (1200.0, 800.0, 150.0)
        side = score_candidate(self.ctx(pallet, (0.0, 0.0, 0.0), size, zones))
        center = score_candidate(self.ctx(pallet, (0.0, 450.0, 0.0), size, zones))
        assert side - center > 600.0

    def test_mirror_match_beats_miss(self, pallet, zones):
        size = (1200.0, 800.0, 150.0)
        ctx = self.pallet_ctx()
        match = score_candidate(
            self.ctx(pallet, (0.0, 900.0, 0.0), size, zones, is_front_row_candidate=True), ctx)
        miss = score_candidate(
            self.ctx(pallet, (0.0, 800.0, 0.0), size, zones, is_front_row_candidate=True), ctx)
        assert match > miss + 900.0

    def test_stack_before_mirror_heavily_penalised(self, pallet, zones):
        size = (1200.0, 800.0, 150.0)
        floor = score_candidate(
            self.ctx(pallet, (0.0, 900.0, 0.0), size, zones), self.pallet_ctx())
        stacked = score_candidate(
            self.ctx(pallet, (0.0, 0.0, 150.0), size, zones, stacking_on_same_footprint=True),
            self.pallet_ctx(new_footprint=False, current_footprint_height=150.0,
                            height_spread_after=0.0))
        assert stacked < floor - 4000.0

    def test_score_is_finite(self, crate, zones):
        value = score_candidate(self.ctx(crate, (0.0, 0.0, 0.0), (600.0, 400.0, 400.0), zones))
        assert math.isfinite(value)

    # -- Zone affinity and front row ----------------------------------------

    def test_plate_prefers_wall_band(self, zones):
        board = make_piece("board", 1200, 800, 100, 20)
        size = (1200.0, 800.0, 100.0)
        wall = score_candidate(self.ctx(board, (0.0, 0.0, 0.0), size, zones))
        inner = score_candidate(self.ctx(board, (0.0, 200.0, 0.0), size, zones))
        assert wall - inner == pytest.approx(60.0, abs=0.05)

    def test_new_front_slot_bonus(self, crate, zones):
        size = (600.0, 400.0, 400.0)
        slot = score_candidate(self.ctx(crate, (0.0, 0.0, 0.0), size, zones,
                                        is_front_row_candidate=True, is_new_front_slot=True,
                                        front_row_incomplete=True))
        taken = score_candidate(self.ctx(crate, (0.0, 0.0, 0.0), size, zones,
                                         is_front_row_candidate=True, front_row_incomplete=True))
        assert slot - taken == pytest.approx(150.0)

    def test_skipping_front_row_penalised(self, crate, zones):
        size = (600.0, 400.0, 400.0)
        skip = score_candidate(self.ctx(crate, (1200.0, 0.0, 0.0), size, zones,
                                        front_row_incomplete=True))
        filled = score_candidate(self.ctx(crate, (1200.0, 0.0, 0.0), size, zones))
        assert skip - filled == pytest.approx(-140.0)

    def test_stacking_before_front_row_penalised(self, crate, zones):
        size = (600.0, 400.0, 400.0)
        early = score_candidate(self.ctx(crate, (0.0, 0.0, 800.0), size, zones,
                                         front_row_incomplete=True))
        later = score_candidate(self.ctx(crate, (0.0, 0.0, 800.0), size, zones))
        assert early - later == pytest.approx(-220.0)

    def test_box_stacked_into_free_center_band(self, crate, zones):
        size = (600.0, 400.0, 400.0)
        anchor = (0.0, 650.0, 800.0)
        free = score_candidate(self.ctx(crate, anchor, size, zones))
        occupied = score_candidate(self.ctx(crate, anchor, size, zones,
                                            center_band_occupied=True))
        assert free - occupied == pytest.approx(-260.0)

    # -- Vertical centring --------------------------------------------------

    def test_vertical_centred_while_band_free(self, zones):
        fridge = make_piece("fridge", 700, 700, 1800, 80, vertical=True)
        size = (700.0, 700.0, 1800.0)
        anchor = (0.0, 500.0, 0.0)
        free = score_candidate(self.ctx(fridge, anchor, size, zones))
        occupied = score_candidate(self.ctx(fridge, anchor, size, zones,
                                            center_band_occupied=True))
        assert free - occupied == pytest.approx(320.0)

    def test_vertical_drift_penalised_once_band_occupied(self, zones):
        fridge = make_piece("fridge", 700, 700, 1800, 80, vertical=True)
        size = (700.0, 700.0, 1800.0)
        anchor = (0.0, 0.0, 0.0)
        # Centre 350 mm: 500 mm off the centreline, 245 mm beyond the slack.
        free = score_candidate(self.ctx(fridge, anchor, size, zones))
        occupied = score_candidate(self.ctx(fridge, anchor, size, zones,
                                            center_band_occupied=True))
        expected = -280.0 * 245.0 / 850.0 - 320.0 * 350.0 / 850.0
        assert occupied - free == pytest.approx(expected)

    # -- Clustering and centre of mass --------------------------------------

    def test_excess_cluster_gap(self, crate, zones):
        size = (600.0, 400.0, 400.0)
        far = score_candidate(self.ctx(crate, (1200.0, 0.0, 0.0), size, zones,
                                       preferred_gap=100.0, cluster_distance=200.0))
        near = score_candidate(self.ctx(crate, (1200.0, 0.0, 0.0), size, zones,
                                        preferred_gap=100.0, cluster_distance=100.0))
        assert far - near == pytest.approx(-30.0)

    def test_center_of_mass_offset_penalty(self, crate, zones):
        size = (600.0, 400.0, 400.0)
        offset = score_candidate(self.ctx(crate, (0.0, 0.0, 0.0), size, zones,
                                          center_offset_after=100.0))
        centred = score_candidate(self.ctx(crate, (0.0, 0.0, 0.0), size, zones))
        assert offset - centred == pytest.approx(-25.0)

    def test_center_of_mass_improvement_reward(self, crate, zones):
        size = (600.0, 400.0, 400.0)
        improved = score_candidate(self.ctx(crate, (0.0, 0.0, 0.0), size, zones,
                                            center_offset_before=300.0,
                                            center_offset_after=100.0))
        unchanged = score_candidate(self.ctx(crate, (0.0, 0.0, 0.0), size, zones,
                                             center_offset_before=100.0,
                                             center_offset_after=100.0))
        assert improved - unchanged == pytest.approx(70.0)

    # -- Pallet rows --------------------------------------------------------

    def test_fill_first_incomplete_row(self, pallet, zones):
        base = self.ctx(pallet, (0.0, 900.0, 0.0), (1200.0, 800.0, 150.0), zones)
        filling = score_candidate(base, self.pallet_ctx())
        no_rows = score_candidate(base, self.pallet_ctx(first_incomplete_row_x=None))
        assert filling - no_rows == pytest.approx(260.0)

    def test_skip_incomplete_row(self, pallet, zones):
        base = self.ctx(pallet, (1200.0, 900.0, 0.0), (1200.0, 800.0, 150.0), zones)
        skipping = score_candidate(base, self.pallet_ctx(is_starting_new_row=True))
        no_rows = score_candidate(base, self.pallet_ctx(first_incomplete_row_x=None,
                                                        is_starting_new_row=True))
        assert skipping - no_rows == pytest.approx(-500.0)

    def test_new_row_after_filled_row(self, pallet, zones):
        base = self.ctx(pallet, (1200.0, 900.0, 0.0), (1200.0, 800.0, 150.0), zones)
        rows = {0.0: 1, 1200.0: 2}
        after_full = score_candidate(base, self.pallet_ctx(row_counts=rows,
                                                           is_starting_new_row=True))
        no_rows = score_candidate(base, self.pallet_ctx(row_counts=rows,
                                                        first_incomplete_row_x=None,
                                                        is_starting_new_row=True))
        assert after_full - no_rows == pytest.approx(120.0)

    def test_stack_before_row_filled(self, pallet, zones):
        base = self.ctx(pallet, (0.0, 0.0, 150.0), (1200.0, 800.0, 150.0), zones,
                        stacking_on_same_footprint=True)
        stacked = dict(new_footprint=False, current_footprint_height=150.0)
        early = score_candidate(base, self.pallet_ctx(**stacked))
        no_rows = score_candidate(base, self.pallet_ctx(first_incomplete_row_x=None, **stacked))
        assert early - no_rows == pytest.approx(-140.0)

    # -- Pallet columns -----------------------------------------------------

    def test_reuse_column_at_cap(self, pallet, zones):
        base = self.ctx(pallet, (0.0, 900.0, 0.0), (1200.0, 800.0, 150.0), zones)
        capped = score_candidate(base, self.pallet_ctx(
            new_footprint=False, distinct_footprints=2, first_incomplete_row_x=None))
        single = score_candidate(base, self.pallet_ctx(
            new_footprint=False, distinct_footprints=1, first_incomplete_row_x=None))
        assert capped - single == pytest.approx(40.0)

    def test_widening_height_spread(self, pallet, zones):
        base = self.ctx(pallet, (0.0, 900.0, 0.0), (1200.0, 800.0, 150.0), zones)
        wider = score_candidate(base, self.pallet_ctx(height_spread_after=300.0))
        level = score_candidate(base, self.pallet_ctx(height_spread_after=0.0))
        assert wider - level == pytest.approx(-120.0)

    def columns_ctx(self, current, spread_after):
        return self.pallet_ctx(new_footprint=False, distinct_footprints=2,
                               current_footprint_height=current,
                               min_column_height=150.0, max_column_height=450.0,
                               height_spread_after=spread_after)

    def test_level_shorter_column(self, pallet, zones):
        base = self.ctx(pallet, (0.0, 0.0, 150.0), (1200.0, 800.0, 150.0), zones,
                        stacking_on_same_footprint=True)
        shorter = score_candidate(base, self.columns_ctx(150.0, 150.0))
        middle = score_candidate(base, self.columns_ctx(300.0, 150.0))
        assert shorter - middle == pytest.approx(65.0)

    def test_stack_on_taller_column(self, pallet, zones):
        base = self.ctx(pallet, (0.0, 0.0, 450.0), (1200.0, 800.0, 150.0), zones,
                        stacking_on_same_footprint=True)
        taller = score_candidate(base, self.columns_ctx(450.0, 150.0))
        middle = score_candidate(base, self.columns_ctx(300.0, 150.0))
        assert taller - middle == pytest.approx(-160.0)

    def test_early_second_column(self, pallet, zones):
        base = self.ctx(pallet, (0.0, 900.0, 0.0), (1200.0, 800.0, 150.0), zones)
        tall = score_candidate(base, self.pallet_ctx(
            min_column_height=900.0, max_column_height=900.0, first_incomplete_row_x=None))
        short = score_candidate(base, self.pallet_ctx(
            min_column_height=600.0, max_column_height=600.0, first_incomplete_row_x=None))
        assert tall - short == pytest.approx(140.0)

    def test_delaying_second_column(self, pallet, zones):
        base = self.ctx(pallet, (0.0, 0.0, 900.0), (1200.0, 800.0, 150.0), zones,
                        stacking_on_same_footprint=True)
        stacked = dict(new_footprint=False, first_incomplete_row_x=None)
        tall = score_candidate(base, self.pallet_ctx(
            current_footprint_height=900.0, min_column_height=900.0,
            max_column_height=900.0, **stacked))
        short = score_candidate(base, self.pallet_ctx(
            current_footprint_height=600.0, min_column_height=600.0,
            max_column_height=600.0, **stacked))
        assert tall - short == pytest.approx(-130.0)


# ---------------------------------------------------------------------------
# Candidate builder
# ---------------------------------------------------------------------------

class TestCandidates:

    def test_empty_van_prefers_origin(self, van, zones, config, crate):
        space = FreeSpace(initialize_free_space(van))
        candidates = build_candidates(crate, space, TripState(van), zones, config)
        assert candidates, "An empty van must offer candidates"
        assert candidates[0].anchor == (0.0, 0.0, 0.0)
        keys = [c.sort_key() for c in candidates]
        assert keys == sorted(keys)

    def test_center_band_locked_until_front_row_filled(self, van, zones, config, crate):
        space = FreeSpace(initialize_free_space(van))
        for c in build_candidates(crate, space, TripState(van), zones, config):
            assert not zones.in_center_band(c.anchor[1] + c.size[1] / 2.0)

    def test_full_width_box_not_locked(self, van, zones, config):
        wide = make_piece("wide", 1000, 1700, 1000, 300)
        space = FreeSpace(initialize_free_space(van))
        candidates = build_candidates(wide, space, TripState(van), zones, config)
        assert candidates
        assert candidates[0].anchor[1] == 0.0

    def test_vertical_pieces_stay_on_floor(self, van, zones, config, crate):
        packer = TripPacker(van, zones, config)
        assert packer.attempt(crate) is not None
        fridge = make_piece("fridge", 700, 700, 1700, 80, vertical=True)
        candidates = build_candidates(fridge, packer.free_space, packer.state, zones,
                                      config.with_vertical_demand(True))
        assert candidates
        for c in candidates:
            assert c.anchor[2] == 0.0
            assert c.orientation in (0, 2)

    def test_pallet_column_cap_rejects_new_footprint(self, van, zones, config, pallet):
        size = (1200.0, 800.0, 150.0)
        deck = make_piece("deck", 1200, 800, 150, 25)
        # The only free box starts on top of the deck, away from the pallet columns.
        space = FreeSpace([FreeBox(1200.0, 0.0, 150.0, 3000.0, 1700.0, 1800.0)])

        one_column = TripState(van)
        one_column.apply_placement(place(pallet, (0.0, 0.0, 0.0), size))
        one_column.apply_placement(place(deck, (1200.0, 0.0, 0.0), size))
        candidates = build_candidates(pallet, space, one_column, zones, config)
        assert [c.anchor for c in candidates] == [(1200.0, 0.0, 150.0)]

        two_columns = TripState(van)
        two_columns.apply_placement(place(pallet, (0.0, 0.0, 0.0), size))
        two_columns.apply_placement(place(pallet, (0.0, 900.0, 0.0), size))
        two_columns.apply_placement(place(deck, (1200.0, 0.0, 0.0), size))
        assert build_candidates(pallet, space, two_columns, zones, config) == []

    def test_candidates_avoid_placed_pieces(self, van, zones, config, crate):
        packer = TripPacker(van, zones, config)
        packer.attempt(crate)
        for c in build_candidates(crate, packer.free_space, packer.state, zones, config):
            assert not packer.state.overlaps_any(c.anchor, c.size)
            assert c.free_handle in packer.free_space
