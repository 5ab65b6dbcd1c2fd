"""Left-to-right pedigree chart: one column per generation, fathers above, mothers below."""

import logging

from config import DebugOptions, LayoutConfig
from graph import build_relationship_maps
from models import Bounds, Connection, Family, Individual, LayoutResult, Position

logger = logging.getLogger(__name__)

PADDING_Y = 40
RIGHT_PADDING = 120


def _pick_father_mother(fam: Family, individuals_by_id: dict[str, Individual]) -> tuple[str | None, str | None]:
    father_id = mother_id = None
    for parent_id in fam.parents:
        parent = individuals_by_id.get(parent_id)
        if parent is None:
            continue
        if parent.gender == "M":
            father_id = parent_id
        elif parent.gender == "F":
            mother_id = parent_id

    # Unknown sex: the remaining parents fill the open sides in record order
    rest = [p for p in fam.parents if p not in (father_id, mother_id)]
    if father_id is None and rest:
        father_id = rest.pop(0)
    if mother_id is None and rest:
        mother_id = rest.pop(0)
    return father_id, mother_id


class AncestorTreeLayout:
    """
    Pedigree layout anchored on one person.

    Generation g sits in column x = g * horizontal_gap. Space is reserved for a
    full binary tree of `max_ancestors` generations, so every person's parents
    are placed symmetrically around them at half the spacing of the previous
    generation. Family boxes are not produced.
    """

    id = "ancestor"
    name = "Ancestor tree"
    description = "Left-to-right ancestors with symmetric parent placement"

    def __init__(self, debug: DebugOptions | None = None):
        self.debug = debug or DebugOptions()

    def compute_layout(
        self,
        individuals: list[Individual],
        families: list[Family],
        level_of: dict[str, int],
        config: LayoutConfig,
    ) -> LayoutResult:
        config.validate()
        max_ancestors = config.ancestor_depth
        horizontal_gap = config.horizontal_gap
        unit_height = config.box_height + config.vertical_gap

        individuals_by_id = {ind.id: ind for ind in individuals}
        parent_family_of = build_relationship_maps(families).person_to_parent_family

        selected_id = config.selected_id if config.selected_id in individuals_by_id else None
        if selected_id is None:
            selected_id = next((pid for pid, lvl in level_of.items() if lvl == 0 and pid in individuals_by_id), None)
        if selected_id is None and individuals:
            selected_id = individuals[0].id
        if selected_id is None:
            return LayoutResult(
                person_positions={},
                family_positions=[],
                bounds=Bounds(width=200, height=200, min_x=0, max_x=200, min_y=0, max_y=200),
            )

        max_height = 2**max_ancestors * unit_height
        pos: dict[str, Position] = {selected_id: Position(0, 0)}
        connections: list[Connection] = []

        current = [selected_id]
        for g in range(1, max_ancestors + 1):
            spacing = max_height / 2**g
            next_gen: list[str] = []
            for child_id in current:
                fam = parent_family_of.get(child_id)
                if fam is None:
                    continue
                child_y = pos[child_id].y
                father_id, mother_id = _pick_father_mother(fam, individuals_by_id)
                for parent_id, sign, hint in ((father_id, -1, "M"), (mother_id, 1, "F")):
                    # Pedigree collapse: an ancestor is drawn once, at its first slot
                    if parent_id is None or parent_id in pos or parent_id not in individuals_by_id:
                        continue
                    pos[parent_id] = Position(g * horizontal_gap, child_y + sign * spacing / 2)
                    next_gen.append(parent_id)
                    connections.append(Connection(from_id=child_id, to_id=parent_id, kind="parent", gender_hint=hint))
            if not next_gen:
                break
            current = next_gen

        ys = [p.y for p in pos.values()]
        xs = [p.x for p in pos.values()]
        y_shift = PADDING_Y - min(ys)
        for p in pos.values():
            p.y += y_shift

        max_y = max(ys) + y_shift
        width = max(xs) + horizontal_gap + RIGHT_PADDING
        height = max_y + PADDING_Y

        logger.info("Ancestor layout for %s: %d people", selected_id, len(pos))
        return LayoutResult(
            person_positions=pos,
            family_positions=[],
            bounds=Bounds(width=width, height=height, min_x=min(xs), max_x=width, min_y=PADDING_Y, max_y=height),
            connections=connections,
        )


def compute_ancestor_layout(
    individuals: list[Individual],
    families: list[Family],
    selected_id: str | None,
    max_ancestors: int,
    horizontal_gap: float = 180,
    box_height: float = 30,
    vertical_gap: float = 16,
) -> LayoutResult:
    """Convenience wrapper running AncestorTreeLayout without a generation map."""
    config = LayoutConfig(
        sibling_gap=0,
        parent_gap=0,
        family_padding=0,
        max_generations_forward=0,
        max_generations_backward=max_ancestors,
        max_ancestors=max_ancestors,
        horizontal_gap=horizontal_gap,
        box_height=box_height,
        vertical_gap=vertical_gap,
        selected_id=selected_id,
    )
    level_of = {selected_id: 0} if selected_id else {}
    return AncestorTreeLayout().compute_layout(individuals, families, level_of, config)
