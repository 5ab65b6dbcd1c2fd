"""Tests for the left-to-right pedigree layout."""

from collections import Counter

import pytest

from ancestor_layout import AncestorTreeLayout, compute_ancestor_layout
from config import LayoutConfig
from layouts import compute_tree_layout
from models import Family, Individual
from parsing import parse_gedcom
from samples import build_ancestor_gedcom

GAP = 180
UNIT = 40 + 16


@pytest.fixture(scope="module")
def pedigree():
    return parse_gedcom(build_ancestor_gedcom(8))


def layout_for(result, depth, gap=GAP):
    return compute_ancestor_layout(
        result.individuals, result.families, "I0", depth, horizontal_gap=gap, box_height=40, vertical_gap=16
    )


class TestFullPedigree:
    def test_one_column_per_generation(self, pedigree):
        layout = layout_for(pedigree, 8)
        columns = Counter(round(p.x / GAP) for p in layout.person_positions.values())
        assert columns == {g: 2**g for g in range(9)}

    def test_parents_symmetric_around_child(self, pedigree):
        layout = layout_for(pedigree, 8)
        pos = layout.person_positions
        max_height = 2**8 * UNIT
        for conn in layout.connections:
            g = round(pos[conn.to_id].x / GAP)
            dy = pos[conn.to_id].y - pos[conn.from_id].y
            assert abs(dy) == pytest.approx(max_height / 2**g / 2)
            if conn.gender_hint == "M":
                assert dy < 0
            else:
                assert dy > 0

    def test_connections_point_from_child_to_parent(self, pedigree):
        layout = layout_for(pedigree, 2)
        edges = {(c.from_id, c.to_id, c.gender_hint) for c in layout.connections}
        assert ("I0", "I1", "M") in edges
        assert ("I0", "I2", "F") in edges
        assert len(edges) == 6
        assert layout.family_positions == []

    def test_depth_limits_generations(self, pedigree):
        layout = layout_for(pedigree, 3)
        assert len(layout.person_positions) == 15

    def test_top_row_padded(self, pedigree):
        layout = layout_for(pedigree, 4)
        assert min(p.y for p in layout.person_positions.values()) == 40

    def test_bounds_grow_with_depth_and_gap(self, pedigree):
        shallow = layout_for(pedigree, 4).bounds
        deep = layout_for(pedigree, 8).bounds
        wide = layout_for(pedigree, 4, gap=300).bounds
        assert deep.width == 8 * GAP + GAP + 120
        assert deep.width > shallow.width
        assert deep.height > shallow.height
        assert wide.width > shallow.width


class TestIncompleteData:
    def test_pedigree_collapse_draws_ancestor_once(self):
        individuals = [
            Individual(id="C"),
            Individual(id="F", gender="M"),
            Individual(id="Mo", gender="F"),
            Individual(id="G", gender="M"),
            Individual(id="W1", gender="F"),
            Individual(id="W2", gender="F"),
        ]
        families = [
            Family(id="FC", parents=["F", "Mo"], children=["C"]),
            Family(id="FF", parents=["G", "W1"], children=["F"]),
            Family(id="FM", parents=["G", "W2"], children=["Mo"]),
        ]
        layout = compute_ancestor_layout(individuals, families, "C", 3)
        assert len(layout.person_positions) == 6
        assert len(layout.connections) == 5

    def test_unknown_sex_uses_record_order(self):
        individuals = [Individual(id="C"), Individual(id="X"), Individual(id="Y")]
        families = [Family(id="F1", parents=["X", "Y"], children=["C"])]
        pos = compute_ancestor_layout(individuals, families, "C", 2).person_positions
        assert pos["X"].y < pos["C"].y < pos["Y"].y

    def test_single_parent(self):
        individuals = [Individual(id="C"), Individual(id="Mo", gender="F")]
        families = [Family(id="F1", parents=["Mo"], children=["C"])]
        layout = compute_ancestor_layout(individuals, families, "C", 2)
        assert set(layout.person_positions) == {"C", "Mo"}
        assert layout.person_positions["Mo"].y > layout.person_positions["C"].y
        assert layout.connections[0].gender_hint == "F"

    def test_dangling_parent_skipped(self):
        individuals = [Individual(id="C"), Individual(id="Mo", gender="F")]
        families = [Family(id="F1", parents=["ghost", "Mo"], children=["C"])]
        layout = compute_ancestor_layout(individuals, families, "C", 2)
        assert set(layout.person_positions) == {"C", "Mo"}

    def test_empty(self):
        bounds = compute_ancestor_layout([], [], None, 3).bounds
        assert (bounds.width, bounds.height) == (200, 200)

    def test_invalid_config_rejected(self):
        individuals = [Individual(id="C")]
        with pytest.raises(ValueError, match="vertical_gap"):
            AncestorTreeLayout().compute_layout(individuals, [], {"C": 0}, LayoutConfig(vertical_gap=-1))


class TestThroughRegistry:
    def test_three_person_family(self, three_person):
        layout = compute_tree_layout(three_person, "I3", "ancestor")
        pos = layout.person_positions
        assert pos["I3"].x == 0
        assert pos["I1"].x == pos["I2"].x == 180
        assert pos["I1"].y < pos["I3"].y < pos["I2"].y
