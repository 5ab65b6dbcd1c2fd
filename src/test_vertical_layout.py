"""Tests for the top-down vertical tree layout."""

import pytest

from config import LayoutConfig
from dates import parse_gedcom_date
from graph import build_relationship_maps
from layouts import compute_tree_layout
from models import Family, Individual, ParseResult, Position
from parsing import parse_gedcom
from samples import build_ancestor_gedcom, build_descendant_gedcom
from vertical_layout import VerticalTreeLayout, filter_families_to_valid


def rows(layout):
    """Person x positions grouped by row (y), top to bottom."""
    by_y: dict[float, list[float]] = {}
    for p in layout.person_positions.values():
        by_y.setdefault(p.y, []).append(p.x)
    return [sorted(by_y[y]) for y in sorted(by_y)]


def assert_family_nodes_between_parents(layout, padding_x=100):
    pos = layout.person_positions
    for fam in layout.family_positions:
        xs = [pos[p].x for p in fam.parents if p in pos]
        assert min(xs) <= fam.x <= max(xs), f"{fam.id} not between its parents"
        assert fam.x >= padding_x


class TestThreePersonFamily:
    def test_positions(self, three_person):
        layout = compute_tree_layout(three_person)
        pos = layout.person_positions
        assert (pos["I1"].x, pos["I1"].y) == (100, 100)
        assert (pos["I2"].x, pos["I2"].y) == (240, 100)
        assert (pos["I3"].x, pos["I3"].y) == (170, 260)

    def test_family_node_between_parents(self, three_person):
        layout = compute_tree_layout(three_person)
        (fam,) = layout.family_positions
        assert fam.id == "F1"
        assert (fam.x, fam.y) == (170, 140)
        assert fam.parents == ["I1", "I2"]
        assert fam.children == ["I3"]

    def test_connections(self, three_person):
        layout = compute_tree_layout(three_person)
        edges = {(c.from_id, c.to_id, c.kind) for c in layout.connections}
        assert edges == {("I1", "F1", "spouse"), ("I2", "F1", "spouse"), ("F1", "I3", "child")}

    def test_bounds_cover_boxes(self, three_person):
        bounds = compute_tree_layout(three_person).bounds
        assert bounds.width == 240 + 50 + 100
        assert bounds.height == 260 + 20 + 100
        assert (bounds.min_x, bounds.max_x) == (100, 240)


class TestDanglingReferences:
    def test_missing_child_not_positioned(self, dangling):
        layout = compute_tree_layout(dangling)
        assert set(layout.person_positions) == {"I1", "I3"}
        (fam,) = layout.family_positions
        assert fam.children == ["I3"]
        assert all("I999" not in (c.from_id, c.to_id) for c in layout.connections)

    def test_filter_families_copies(self):
        families = [Family(id="F1", parents=["A", "X"], children=["B", "Y"])]
        filtered = filter_families_to_valid(families, {"A", "B"})
        assert (filtered[0].parents, filtered[0].children) == (["A"], ["B"])
        assert families[0].parents == ["A", "X"]


class TestLargerTrees:
    @pytest.mark.parametrize(
        "text,focus",
        [
            (build_descendant_gedcom(3), None),
            (build_descendant_gedcom(3, children_per_family=3), "I1_1"),
            (build_ancestor_gedcom(4), "I0"),
        ],
    )
    def test_no_overlap_within_a_generation(self, text, focus):
        layout = compute_tree_layout(parse_gedcom(text), focus)
        for xs in rows(layout):
            assert all(b - a >= 100 for a, b in zip(xs, xs[1:]))

    def test_all_positions_inside_bounds(self):
        layout = compute_tree_layout(parse_gedcom(build_descendant_gedcom(3)))
        bounds = layout.bounds
        for p in layout.person_positions.values():
            assert 100 <= p.x <= bounds.width
            assert 100 <= p.y <= bounds.height

    def test_generation_window_limits_rows(self):
        layout = compute_tree_layout(
            parse_gedcom(build_descendant_gedcom(4)), overrides={"max_generations_forward": 1}
        )
        assert len(rows(layout)) == 2

    def test_children_below_parents(self):
        result = parse_gedcom(build_descendant_gedcom(3))
        layout = compute_tree_layout(result)
        pos = layout.person_positions
        for fam in result.families:
            for parent in fam.parents:
                for child in fam.children:
                    if parent in pos and child in pos:
                        assert pos[child].y > pos[parent].y

    def test_ancestors_centered_over_focus(self):
        layout = compute_tree_layout(
            parse_gedcom(build_ancestor_gedcom(3)),
            "I0",
            overrides={"max_generations_forward": 0, "max_generations_backward": 3},
        )
        assert [len(xs) for xs in rows(layout)] == [8, 4, 2, 1]
        focus_x = layout.person_positions["I0"].x
        for xs in rows(layout)[:-1]:
            assert (xs[0] + xs[-1]) / 2 == pytest.approx(focus_x)

    def test_siblings_ordered_by_birth(self):
        def person(pid, birth=None):
            return Individual(id=pid, name=pid, birth_date=parse_gedcom_date(birth) if birth else None)

        individuals = [
            person("A"),
            person("B"),
            person("YOUNG", "1960"),
            person("OLD", "3 FEB 1950"),
            person("UNDATED"),
            person("MID", "MAY 1955"),
        ]
        families = [Family(id="F1", parents=["A", "B"], children=["YOUNG", "OLD", "UNDATED", "MID"])]
        level_of = {"A": 0, "B": 0, "YOUNG": 1, "OLD": 1, "UNDATED": 1, "MID": 1}
        pos = VerticalTreeLayout().compute_layout(individuals, families, level_of, LayoutConfig()).person_positions
        assert pos["OLD"].x < pos["MID"].x < pos["YOUNG"].x < pos["UNDATED"].x

    def test_cousin_marriage_without_overlap(self):
        # C and D are first cousins through grandparents G1 + G2; E remarried
        ids = ["G1", "G2", "A", "SA", "B", "SB", "C", "D", "E", "X", "Y", "K"]
        families = [
            Family(id="FG", parents=["G1", "G2"], children=["A", "B"]),
            Family(id="FA", parents=["A", "SA"], children=["C"]),
            Family(id="FB", parents=["B", "SB"], children=["D"]),
            Family(id="FCD", parents=["C", "D"], children=["E"]),
            Family(id="FEX", parents=["E", "X"], children=["K"]),
            Family(id="FEY", parents=["E", "Y"]),
        ]
        result = ParseResult([Individual(id=i, name=i) for i in ids], families, [])
        layout = compute_tree_layout(result, "E", overrides={"max_generations_backward": 3})

        assert set(layout.person_positions) == set(ids)
        for xs in rows(layout):
            assert all(b - a >= 100 for a, b in zip(xs, xs[1:]))
        assert_family_nodes_between_parents(layout)


class TestMultipleMarriages:
    def test_family_node_between_its_own_couple(self, remarried):
        individuals, families = remarried
        level_of = {"A": 0, "B": 0, "P": 1, "S1": 1, "S2": 1}
        layout = VerticalTreeLayout().compute_layout(individuals, families, level_of, LayoutConfig())
        assert set(layout.person_positions) == {"A", "B", "P", "S1", "S2"}
        assert_family_nodes_between_parents(layout)

    def test_three_wives(self):
        individuals = [Individual(id=i, name=i) for i in ["P", "S1", "S2", "S3"]]
        families = [Family(id=f"F{n}", parents=["P", f"S{n}"]) for n in (1, 2, 3)]
        level_of = {"P": 0, "S1": 0, "S2": 0, "S3": 0}
        layout = VerticalTreeLayout().compute_layout(individuals, families, level_of, LayoutConfig())
        assert_family_nodes_between_parents(layout)
        assert layout.bounds.min_x >= 100

    def test_repeated_couple_fans_out(self):
        individuals = [Individual(id="P", name="P"), Individual(id="S", name="S")]
        families = [Family(id="F1", parents=["P", "S"]), Family(id="F2", parents=["S", "P"])]
        layout = VerticalTreeLayout().compute_layout(individuals, families, {"P": 0, "S": 0}, LayoutConfig())
        fam_x = {f.id: f.x for f in layout.family_positions}
        pos = layout.person_positions
        assert fam_x["F2"] - fam_x["F1"] == pytest.approx(150)
        assert (fam_x["F1"] + fam_x["F2"]) / 2 == pytest.approx((pos["P"].x + pos["S"].x) / 2)
        assert min(fam_x.values()) >= 100
        assert layout.bounds.width >= max(fam_x.values()) + 100


class TestEdgeCases:
    def test_empty_input(self):
        layout = VerticalTreeLayout().compute_layout([], [], {}, LayoutConfig())
        assert layout.person_positions == {}
        assert layout.family_positions == []
        assert layout.bounds.width == 1100
        assert layout.bounds.height == 200

    def test_invalid_config_rejected(self, three_person):
        with pytest.raises(ValueError, match="sibling_gap"):
            VerticalTreeLayout().compute_layout(
                three_person.individuals, three_person.families, {}, LayoutConfig(sibling_gap=-5)
            )

    def test_wide_trees_pack_siblings_tighter(self):
        families = [Family(id="F1", parents=["P"], children=[f"C{i}" for i in range(40)])]
        assert VerticalTreeLayout.sibling_gap_for(families, LayoutConfig()) == pytest.approx(40 / 3)
        assert VerticalTreeLayout.sibling_gap_for(families[:0], LayoutConfig()) == 40

    def test_focus_parent_family_starts_layout(self, three_person):
        maps = build_relationship_maps(three_person.families)
        start = VerticalTreeLayout.start_families(three_person.families, maps, lambda _: True, "I3")
        assert start[0].id == "F1"

    def test_center_ancestors_moves_only_ancestors(self):
        pos = {"F": Position(500, 0), "A": Position(0, 0), "B": Position(200, 0), "K": Position(10, 0)}
        VerticalTreeLayout.center_ancestors(pos, {"F": 0, "A": -1, "B": -1, "K": 1}, "F")
        assert (pos["A"].x, pos["B"].x) == (400, 600)
        assert pos["K"].x == 10
