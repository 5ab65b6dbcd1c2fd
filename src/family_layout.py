"""Recursive family placement: subtree widths, collision tracking and the family layouter."""

from dataclasses import dataclass
import logging
import math

from config import DebugOptions
from graph import build_relationship_maps
from models import Family, GedcomDate, Individual, Position

logger = logging.getLogger(__name__)

# Maximum distance to search for a non-overlapping position
MAX_COLLISION_SEARCH_DISTANCE = 2000

DIRECTIONS = ("ancestor", "descendant", "both")


def in_generation_window(level: int, max_forward: float, max_backward: float) -> bool:
    return -max_backward <= level <= max_forward


def _birth_sort_key(individual: Individual | None) -> tuple[int, str]:
    if individual is None or individual.birth_date is None:
        return (2, "")
    return individual.birth_date.sort_key()


def _marriage_sort_key(fam: Family) -> tuple[int, str, str]:
    # Dated marriages first, then by family id
    date: GedcomDate | None = fam.marriage_date
    value = (date.iso or date.approx_iso) if date else None
    if value:
        return (0, value, fam.id)
    return (1, "", fam.id)


def sort_marriages(families: list[Family]) -> list[Family]:
    return sorted(families, key=_marriage_sort_key)


class FamilyWidthCalculator:
    """
    Horizontal space required by a family subtree.

    Owns its memo (`cache`), so create one per layout call and discard it after.
    A family with children needs the sum of its children's subtree widths plus
    sibling gaps, never less than its parent boxes plus padding. Children outside
    the generation window do not count.
    """

    def __init__(
        self,
        families: list[Family],
        level_of: dict[str, int],
        person_widths: dict[str, float],
        max_generations_forward: float,
        max_generations_backward: float,
        single_width: float,
        sibling_gap: float,
        parent_gap: float,
        family_padding: float,
    ):
        self.families_by_id = {fam.id: fam for fam in families}
        self.child_families = build_relationship_maps(families).person_to_child_families
        self.level_of = level_of
        self.person_widths = person_widths
        self.max_forward = max_generations_forward
        self.max_backward = max_generations_backward
        self.single_width = single_width
        self.sibling_gap = sibling_gap
        self.parent_gap = parent_gap
        self.family_padding = family_padding
        self.cache: dict[str, float] = {}

    def __call__(self, family_id: str) -> float:
        return self.width(family_id)

    def person_width(self, person_id: str) -> float:
        return self.person_widths.get(person_id, self.single_width)

    def parent_block_width(self, fam: Family) -> float:
        widths = [self.person_width(p) for p in fam.parents]
        return sum(widths) + max(0, len(widths) - 1) * self.parent_gap

    def width(self, family_id: str, visiting: set[str] | None = None) -> float:
        if family_id in self.cache:
            return self.cache[family_id]
        visiting = visiting if visiting is not None else set()
        if family_id in visiting:
            return self.single_width  # cycle guard

        fam = self.families_by_id.get(family_id)
        if fam is None:
            return self.single_width

        visiting.add(family_id)
        try:
            result = self._compute(fam, visiting)
        finally:
            visiting.discard(family_id)

        self.cache[family_id] = result
        return result

    def _compute(self, fam: Family, visiting: set[str]) -> float:
        parent_block = self.parent_block_width(fam) + self.family_padding
        if not fam.children:
            return max(self.single_width, parent_block)

        total = 0.0
        visible_kids = 0
        for kid in fam.children:
            level = self.level_of.get(kid, 0)
            if not in_generation_window(level, self.max_forward, self.max_backward):
                continue
            kid_families = self.child_families.get(kid, [])
            if kid_families:
                total += sum(self.width(f.id, visiting) for f in kid_families)
                total += (len(kid_families) - 1) * self.sibling_gap
            else:
                total += self.person_width(kid)
            visible_kids += 1

        children_width = total + max(0, visible_kids - 1) * self.sibling_gap
        return max(children_width, parent_block, self.single_width)


class OccupiedRanges:
    """Horizontal intervals already used at each generation level."""

    def __init__(self, search_step: float = 40, max_search_distance: float = MAX_COLLISION_SEARCH_DISTANCE):
        self.search_step = search_step if search_step > 0 else 1
        self.max_search_distance = max_search_distance
        self.ranges: dict[int, list[tuple[float, float]]] = {}

    def mark(self, generation: int, lo: float, hi: float):
        self.ranges.setdefault(generation, []).append((lo, hi))

    def overlaps(self, generation: int, lo: float, hi: float) -> bool:
        return any(not (hi < r_lo or lo > r_hi) for r_lo, r_hi in self.ranges.get(generation, []))

    def rightmost(self, generation: int | None = None) -> float | None:
        if generation is None:
            his = [hi for ranges in self.ranges.values() for _, hi in ranges]
        else:
            his = [hi for _, hi in self.ranges.get(generation, [])]
        return max(his, default=None)

    def find_free_x(self, generation: int, preferred_x: float, width: float) -> float:
        """
        Nearest center to `preferred_x` whose interval is free at this generation.

        Searches outward (right first, then left) in `search_step` increments.
        When nothing is free within the search distance the interval is put just
        right of everything already at this generation.
        """
        half = width / 2
        if not self.overlaps(generation, preferred_x - half, preferred_x + half):
            return preferred_x

        offset = self.search_step
        while offset < self.max_search_distance:
            for test_x in (preferred_x + offset, preferred_x - offset):
                if not self.overlaps(generation, test_x - half, test_x + half):
                    return test_x
            offset += self.search_step

        logger.debug("No free slot near %.1f at generation %d, appending", preferred_x, generation)
        return self.rightmost(generation) + self.search_step + half


@dataclass
class _ChildSlot:
    child_id: str
    family_id: str | None
    width: float


class FamilyLayouter:
    """
    Depth-first placement of families.

    `layout_family` positions a family's parents around `center_x`, climbs into
    the parents' own parent families, then places children (one slot per child
    marriage) left to right under the family. Every placement is checked
    against `occupied` so sibling subtrees and reconverging ancestor lines do
    not overlap. Positions accumulate in `pos`.
    """

    def __init__(
        self,
        individuals: list[Individual],
        families: list[Family],
        level_of: dict[str, int],
        width_calculator: FamilyWidthCalculator,
        person_widths: dict[str, float],
        max_generations_forward: float,
        max_generations_backward: float,
        row_height: float,
        y_offset: float,
        single_width: float,
        sibling_gap: float,
        selected_id: str | None = None,
        parent_gap: float = 20,
        ancestor_family_gap: float = 40,
        descendant_family_gap: float = 40,
        debug: DebugOptions | None = None,
    ):
        self.individuals_by_id = {ind.id: ind for ind in individuals}
        self.families_by_id = {fam.id: fam for fam in families}
        maps = build_relationship_maps(families)
        self.person_to_parent_family = maps.person_to_parent_family
        self.person_to_child_families = maps.person_to_child_families
        self.level_of = level_of
        self.compute_family_width = width_calculator
        self.person_widths = person_widths
        self.max_forward = max_generations_forward
        self.max_backward = max_generations_backward
        self.row_height = row_height
        self.y_offset = y_offset
        self.single_width = single_width
        self.sibling_gap = sibling_gap
        self.selected_id = selected_id
        self.parent_gap = parent_gap
        self.ancestor_family_gap = ancestor_family_gap
        self.descendant_family_gap = descendant_family_gap
        self.trace = bool(debug and debug.trace_layout)

        self.pos: dict[str, Position] = {}
        self.occupied = OccupiedRanges(search_step=ancestor_family_gap)
        self.selected_person_x: float | None = None

    def level(self, person_id: str) -> int:
        return self.level_of.get(person_id, 0)

    def is_visible(self, person_id: str) -> bool:
        return in_generation_window(self.level(person_id), self.max_forward, self.max_backward)

    def person_width(self, person_id: str) -> float:
        return self.person_widths.get(person_id, self.single_width)

    def generation_y(self, level: int) -> float:
        return level * 2 * self.row_height + self.row_height / 2 + self.y_offset

    def simple_family_width(self, fam: Family, minimum: float) -> float:
        n = len(fam.parents)
        return max(n * self.single_width + max(0, n - 1) * self.parent_gap, minimum)

    def place_person(self, person_id: str, x: float, level: int):
        self.pos[person_id] = Position(x, self.generation_y(level))
        if person_id == self.selected_id:
            self.selected_person_x = x
        half = self.person_width(person_id) / 2
        self.occupied.mark(level, x - half, x + half)

    def layout_family(
        self, family_id: str, center_x: float, processed: set[str], direction: str = "both"
    ) -> float:
        """Lay out one family around `center_x`. Returns the width taken by its children."""
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown layout direction: {direction}")
        if family_id in processed:
            return 0
        processed.add(family_id)

        fam = self.families_by_id.get(family_id)
        if fam is None:
            return 0

        if self.trace:
            logger.debug(
                "Layout family %s at center_x=%.1f (%s), parents=%s, children=%s",
                family_id,
                center_x,
                direction,
                fam.parents,
                fam.children,
            )

        parent_level = self.level(fam.parents[0]) if fam.parents else 0
        self._place_parents(fam, center_x, parent_level)
        self._layout_ancestor_families(fam, center_x, parent_level, processed, direction)
        return self._layout_children(fam, center_x, processed)

    def _place_parents(self, fam: Family, center_x: float, parent_level: int):
        visible = [p for p in fam.parents if self.is_visible(p)]
        if not visible:
            return

        widths = [self.person_width(p) for p in visible]
        total = sum(widths) + max(0, len(visible) - 1) * self.parent_gap
        px = center_x - total / 2
        for person_id, box_width in zip(visible, widths):
            cx = px + box_width / 2
            # A parent already placed through another marriage keeps that spot
            if person_id not in self.pos:
                self.place_person(person_id, cx, parent_level)
                if self.trace:
                    logger.debug("  Parent %s at x=%.1f", person_id, cx)
            px += box_width + self.parent_gap

    def _layout_ancestor_families(
        self, fam: Family, center_x: float, parent_level: int, processed: set[str], direction: str
    ):
        ancestor_level = parent_level - 1
        if not in_generation_window(ancestor_level, self.max_forward, self.max_backward):
            return

        with_ancestors = []
        for person_id in fam.parents:
            parent_fam = self.person_to_parent_family.get(person_id)
            if person_id in self.pos and parent_fam is not None and parent_fam.id not in processed:
                with_ancestors.append((self.pos[person_id].x, parent_fam))
        if not with_ancestors:
            return

        # Left to right, in the order of the children they belong to
        with_ancestors.sort(key=lambda item: item[0])
        widths = [self.simple_family_width(pf, self.single_width * 2) for _, pf in with_ancestors]
        total = sum(widths) + max(0, len(widths) - 1) * self.ancestor_family_gap

        anchor = center_x
        if direction != "descendant" and self.selected_person_x is not None:
            anchor = self.selected_person_x
        cursor = anchor - total / 2

        if self.trace:
            logger.debug(
                "  Positioning %d ancestor families at generation %d, total_width=%.1f, anchor=%.1f",
                len(with_ancestors),
                ancestor_level,
                total,
                anchor,
            )

        for (_, parent_fam), width in zip(with_ancestors, widths):
            if parent_fam.id in processed:
                continue
            preferred = cursor + width / 2
            adjusted = self.occupied.find_free_x(ancestor_level, preferred, width)
            self.layout_family(parent_fam.id, adjusted, processed, "ancestor")
            self.occupied.mark(ancestor_level, adjusted - width / 2, adjusted + width / 2)
            cursor += width + self.ancestor_family_gap

    def _child_slots(self, fam: Family, processed: set[str]) -> list[_ChildSlot]:
        kids = [k for k in fam.children if self.is_visible(k)]
        # Oldest first; sorted() is stable so undated children keep file order
        kids.sort(key=lambda k: _birth_sort_key(self.individuals_by_id.get(k)))

        slots: list[_ChildSlot] = []
        for kid in kids:
            kid_families = [
                f for f in sort_marriages(self.person_to_child_families.get(kid, [])) if f.id not in processed
            ]
            if kid_families:
                for kid_fam in kid_families:
                    slots.append(_ChildSlot(kid, kid_fam.id, self.compute_family_width(kid_fam.id)))
            elif kid not in self.pos:
                slots.append(_ChildSlot(kid, None, self.person_width(kid)))
        return slots

    def _layout_children(self, fam: Family, center_x: float, processed: set[str]) -> float:
        slots = self._child_slots(fam, processed)
        if not slots:
            return 0

        if self.trace and len(slots) > 1:
            logger.debug(
                "  %s child slots: %s",
                fam.id,
                ", ".join(f"{s.child_id}({s.family_id})={s.width:.0f}" for s in slots),
            )

        total = sum(s.width for s in slots) + (len(slots) - 1) * self.descendant_family_gap
        cursor = center_x - total / 2

        for slot in slots:
            child_level = self.level(slot.child_id)
            preferred = cursor + slot.width / 2
            adjusted = self.occupied.find_free_x(child_level, preferred, slot.width)

            if slot.family_id is not None:
                self.layout_family(slot.family_id, adjusted, processed, "descendant")
                self.occupied.mark(child_level, adjusted - slot.width / 2, adjusted + slot.width / 2)
            else:
                self.place_person(slot.child_id, adjusted, child_level)

            cursor += slot.width + self.descendant_family_gap

        return total

    def place_unpositioned(self, person_ids: list[str], gap: float):
        """Put visible people no family placed at the right end of their generation."""
        for person_id in person_ids:
            if person_id in self.pos or not self.is_visible(person_id):
                continue
            level = self.level(person_id)
            rightmost = self.occupied.rightmost(level)
            width = self.person_width(person_id)
            if rightmost is None:
                x = self.selected_person_x if self.selected_person_x is not None else 0
                x = self.occupied.find_free_x(level, x, width)
            else:
                x = rightmost + gap + width / 2
            self.place_person(person_id, x, level)


def create_family_layouter(**params) -> FamilyLayouter:
    """Keyword-argument factory mirroring FamilyLayouter's constructor."""
    return FamilyLayouter(**params)


def separate_generations(
    pos: dict[str, Position], level_of: dict[str, int], min_distance: float
) -> int:
    """
    Push people right until same-generation neighbours are at least `min_distance` apart.

    Returns how many positions moved.
    """
    by_level: dict[int, list[str]] = {}
    for person_id in pos:
        by_level.setdefault(level_of.get(person_id, 0), []).append(person_id)

    moved = 0
    for ids in by_level.values():
        ids.sort(key=lambda pid: (pos[pid].x, pid))
        for prev, cur in zip(ids, ids[1:]):
            needed = pos[prev].x + min_distance
            if pos[cur].x < needed and not math.isclose(pos[cur].x, needed):
                pos[cur].x = needed
                moved += 1
    return moved


def collect_ancestor_generations(
    families: list[Family], start_family_id: str, max_generations_back: int
) -> list[list[str]]:
    """
    Family ids one, two, ... generations above `start_family_id`.

    Each entry holds the parent families of the previous entry's parents,
    without duplicates. Stops early when a generation has no known parents.
    """
    families_by_id = {fam.id: fam for fam in families}
    parent_family_of = build_relationship_maps(families).person_to_parent_family

    result: list[list[str]] = []
    current = [start_family_id]
    for _ in range(max_generations_back):
        next_ids: list[str] = []
        for fam_id in current:
            fam = families_by_id.get(fam_id)
            if fam is None:
                continue
            for parent_id in fam.parents:
                parent_fam = parent_family_of.get(parent_id)
                if parent_fam is not None and parent_fam.id not in next_ids:
                    next_ids.append(parent_fam.id)
        if not next_ids:
            break
        result.append(next_ids)
        current = next_ids
    return result
