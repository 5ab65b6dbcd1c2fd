"""Top-down family tree layout: ancestors above, descendants below the focus."""

from dataclasses import dataclass, field
import logging
import math

from bounds import apply_x_offset, compute_bounds
from config import DebugOptions, LayoutConfig
from family_layout import (
    FamilyWidthCalculator,
    create_family_layouter,
    in_generation_window,
    separate_generations,
)
from graph import build_relationship_maps
from models import Bounds, Connection, Family, FamilyPosition, Individual, LayoutResult, Position

logger = logging.getLogger(__name__)

# Estimated tree width above which siblings are packed tighter
WIDE_TREE_THRESHOLD = 5000
MIN_SIBLING_GAP = 8


@dataclass
class _Group:
    """People packed as one unit: a couple or the siblings of one family."""

    members: list[str]
    relatives: list[str] = field(default_factory=list)
    is_couple: bool = False
    gap: float = 0  # between members


def filter_families_to_valid(families: list[Family], valid_ids: set[str]) -> list[Family]:
    """Copies of `families` with dangling member ids removed."""
    return [
        Family(
            id=fam.id,
            parents=[p for p in fam.parents if p in valid_ids],
            children=[c for c in fam.children if c in valid_ids],
            marriage_date=fam.marriage_date,
        )
        for fam in families
    ]


class VerticalTreeLayout:
    """Recursive top-down layout built on FamilyLayouter."""

    id = "vertical"
    name = "Vertical family tree"
    description = "Ancestors above, descendants below, couples joined by a family node"

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
        valid_ids = {ind.id for ind in individuals}
        families = filter_families_to_valid(families, valid_ids)
        individuals_by_id = {ind.id: ind for ind in individuals}
        maps = build_relationship_maps(families)
        min_level = min(level_of.values(), default=0)
        max_level = max(level_of.values(), default=0)

        forward = config.max_generations_forward
        backward = config.max_generations_backward
        row_height = config.row_height
        single_width = config.box_width
        sibling_gap = self.sibling_gap_for(families, config)
        y_offset = abs(min_level) * 2 * row_height + row_height

        calculator = FamilyWidthCalculator(
            families,
            level_of,
            {},
            forward,
            backward,
            single_width,
            sibling_gap,
            config.parent_gap,
            config.family_padding,
        )
        layouter = create_family_layouter(
            individuals=individuals,
            families=families,
            level_of=level_of,
            width_calculator=calculator,
            person_widths={},
            max_generations_forward=forward,
            max_generations_backward=backward,
            row_height=row_height,
            y_offset=y_offset,
            single_width=single_width,
            sibling_gap=sibling_gap,
            selected_id=config.selected_id,
            parent_gap=config.parent_gap,
            ancestor_family_gap=config.ancestor_family_gap,
            descendant_family_gap=config.descendant_family_gap,
            debug=self.debug,
        )

        def visible(person_id: str) -> bool:
            return in_generation_window(level_of.get(person_id, 0), forward, backward)

        processed: set[str] = set()
        cursor = 0.0
        for fam in self.start_families(families, maps, visible, config.selected_id):
            if fam.id in processed:
                continue
            width = calculator.width(fam.id)
            level = level_of.get(fam.parents[0], 0) if fam.parents else 0
            center = layouter.occupied.find_free_x(level, cursor + width / 2, width)
            layouter.layout_family(fam.id, center, processed, "both")
            rightmost = layouter.occupied.rightmost()
            cursor = max(cursor + width, rightmost if rightmost is not None else cursor)
            cursor += config.descendant_family_gap

        # Focus first so it is never pushed aside by unrelated people
        leftovers = [ind.id for ind in individuals]
        if config.selected_id in individuals_by_id:
            leftovers.insert(0, config.selected_id)
        layouter.place_unpositioned(leftovers, sibling_gap)

        pos = layouter.pos
        apply_x_offset(pos, config.padding_x, config.padding_y)

        if config.simple_packing:
            self.pack_generations(pos, families, level_of, config, sibling_gap)

        separate_generations(pos, level_of, single_width + min(config.parent_gap, sibling_gap))

        if config.selected_id in pos and forward == 0:
            self.center_ancestors(pos, level_of, config.selected_id)

        apply_x_offset(pos, config.padding_x, config.padding_y)
        family_positions = self.family_positions(families, pos, valid_ids, config)
        self.shift_into_padding(pos, family_positions, config.padding_x)
        connections = self.connections(family_positions, pos)
        bounds = self.bounds(pos, config, family_positions)

        logger.info(
            "Vertical layout: %d people, %d families, levels %d..%d",
            len(pos),
            len(family_positions),
            min_level,
            max_level,
        )
        return LayoutResult(
            person_positions=pos,
            family_positions=family_positions,
            bounds=bounds,
            connections=connections,
        )

    @staticmethod
    def sibling_gap_for(families: list[Family], config: LayoutConfig) -> float:
        estimated = sum(len(fam.children) * (config.box_width + config.sibling_gap) for fam in families)
        if estimated > WIDE_TREE_THRESHOLD:
            return max(MIN_SIBLING_GAP, config.sibling_gap / 3)
        return config.sibling_gap

    @staticmethod
    def start_families(families, maps, visible, selected_id: str | None) -> list[Family]:
        """
        Families the layout starts from, in order.

        The focus person's own parent family (or their marriages when they have
        no visible parents) comes first, then every family with visible parents
        whose parents are not themselves visible children of another family.
        """
        visible_parent_families = [fam for fam in families if any(visible(p) for p in fam.parents)]
        visible_children = {c for fam in visible_parent_families for c in fam.children}

        start: list[Family] = []
        if selected_id:
            parent_fam = maps.person_to_parent_family.get(selected_id)
            if parent_fam is not None and any(visible(p) for p in parent_fam.parents):
                start.append(parent_fam)
            else:
                start.extend(maps.person_to_child_families.get(selected_id, []))

        start.extend(
            fam
            for fam in visible_parent_families
            if not any(p in visible_children for p in fam.parents if visible(p))
        )
        return start

    def pack_generations(
        self,
        pos: dict[str, Position],
        families: list[Family],
        level_of: dict[str, int],
        config: LayoutConfig,
        sibling_gap: float,
    ):
        """
        Repack each generation tightly, topmost first.

        Couples and sibling sets stay together. Each group is pulled towards the
        average x of its already packed relatives: children for ancestor
        generations, parents for the focus generation and below. Only x changes.
        """
        groups_by_level: dict[int, list[_Group]] = {}
        grouped: set[str] = set()
        child_order: dict[str, int] = {}

        for fam in families:
            for index, kid in enumerate(fam.children):
                child_order.setdefault(kid, index)
            parents = [p for p in fam.parents if p in pos]
            if not parents:
                continue
            level = level_of.get(parents[0], 0)
            groups_by_level.setdefault(level, []).append(
                _Group(
                    members=parents,
                    relatives=[c for c in fam.children if c in pos],
                    is_couple=True,
                    gap=config.parent_gap,
                )
            )
            grouped.update(parents)

        for fam in families:
            kids = [c for c in fam.children if c in pos and c not in grouped]
            if not kids:
                continue
            # Siblings keep the birth order the layouter gave them
            kids.sort(key=lambda c: pos[c].x)
            groups_by_level.setdefault(level_of.get(kids[0], 0), []).append(
                _Group(members=kids, relatives=[p for p in fam.parents if p in pos], gap=sibling_gap)
            )
            grouped.update(kids)

        if not groups_by_level:
            return

        levels = sorted(groups_by_level)
        top_level = levels[0]
        used: set[str] = set()
        trace = self.debug.trace_packing
        step = config.box_width

        for level in levels:
            groups = []
            for group in groups_by_level[level]:
                members = [m for m in group.members if m not in used]
                if members:
                    used.update(members)
                    groups.append(_Group(members, group.relatives, group.is_couple, group.gap))
            if not groups:
                continue

            if level == top_level:
                people = [m for g in groups for m in g.members]
                center = sum(pos[m].x for m in people) / len(people)
                total = len(people) * step + (len(people) - 1) * sibling_gap
                x = center - total / 2 + step / 2
                for person_id in people:
                    pos[person_id].x = x
                    x += step + sibling_gap
                continue

            groups.sort(
                key=lambda g: (
                    min((child_order.get(m, math.inf) for m in g.members), default=math.inf),
                    min(pos[m].x for m in g.members),
                )
            )

            desired: list[tuple[_Group, float]] = []
            for group in groups:
                anchors = [pos[r].x for r in group.relatives if r in pos]
                if not anchors:
                    anchors = [pos[m].x for m in group.members]
                desired.append((group, sum(anchors) / len(anchors)))
            desired.sort(key=lambda item: item[1])

            if level >= 1:
                couples = [(g, c) for g, c in desired if g.is_couple]
                self._pack_side_by_side(pos, couples, step, max(sibling_gap, 30))
                for group, center in desired:
                    if not group.is_couple:
                        self._place_group(pos, group, center, step)
            else:
                self._pack_side_by_side(pos, desired, step, max(sibling_gap, 20))

            if trace:
                logger.debug(
                    "Packed level %d: %s",
                    level,
                    ", ".join(f"{m}@{pos[m].x:.0f}" for g in groups for m in g.members),
                )

    @staticmethod
    def _group_width(group: _Group, step: float) -> float:
        return len(group.members) * step + (len(group.members) - 1) * group.gap

    def _place_group(self, pos, group: _Group, center: float, step: float):
        x = center - self._group_width(group, step) / 2 + step / 2
        for member in group.members:
            pos[member].x = x
            x += step + group.gap

    def _pack_side_by_side(self, pos, desired, step: float, gap: float):
        if not desired:
            return
        widths = [self._group_width(g, step) for g, _ in desired]
        total = sum(widths) + (len(widths) - 1) * gap
        center = sum(c for _, c in desired) / len(desired)
        cursor = center - total / 2
        for (group, _), width in zip(desired, widths):
            self._place_group(pos, group, cursor + width / 2, step)
            cursor += width + gap

    @staticmethod
    def family_positions(
        families: list[Family], pos: dict[str, Position], valid_ids: set[str], config: LayoutConfig
    ) -> list[FamilyPosition]:
        """
        One node per family with a positioned parent, just below the couple.

        Several family records with the same set of parents are spread
        horizontally around the couple so their nodes do not stack.
        """
        to_parent = config.family_to_parent_distance or config.box_height
        spacing = config.box_width * 1.5
        by_parent_set: dict[tuple[str, ...], list[str]] = {}
        for fam in families:
            parents = [p for p in fam.parents if p in valid_ids]
            if parents:
                by_parent_set.setdefault(tuple(sorted(parents)), []).append(fam.id)

        result: list[FamilyPosition] = []
        for fam in families:
            parents = [p for p in fam.parents if p in pos]
            if not parents:
                continue
            x = sum(pos[p].x for p in parents) / len(parents)
            y = sum(pos[p].y for p in parents) / len(parents) + to_parent

            siblings = by_parent_set.get(tuple(sorted(p for p in fam.parents if p in valid_ids)), [fam.id])
            if len(siblings) > 1:
                x += siblings.index(fam.id) * spacing - (len(siblings) - 1) * spacing / 2

            result.append(
                FamilyPosition(
                    id=fam.id,
                    x=x,
                    y=y,
                    parents=[p for p in fam.parents if p in valid_ids],
                    children=[c for c in fam.children if c in valid_ids],
                )
            )
        return result

    @staticmethod
    def shift_into_padding(pos: dict[str, Position], family_positions: list[FamilyPosition], padding_x: float):
        """Move everything right when a fanned-out family node ends up left of the padding."""
        shift = padding_x - min((f.x for f in family_positions), default=padding_x)
        if shift <= 0:
            return
        for p in pos.values():
            p.x += shift
        for f in family_positions:
            f.x += shift

    @staticmethod
    def center_ancestors(pos: dict[str, Position], level_of: dict[str, int], selected_id: str):
        """Shift each ancestor generation so its span is centered over the focus person."""
        focus_x = pos[selected_id].x
        by_level: dict[int, list[str]] = {}
        for person_id in pos:
            level = level_of.get(person_id, 0)
            if level < 0:
                by_level.setdefault(level, []).append(person_id)

        for ids in by_level.values():
            xs = [pos[p].x for p in ids]
            shift = focus_x - (min(xs) + max(xs)) / 2
            for person_id in ids:
                pos[person_id].x += shift

    @staticmethod
    def connections(family_positions: list[FamilyPosition], pos: dict[str, Position]) -> list[Connection]:
        result: list[Connection] = []
        for fam_pos in family_positions:
            for parent_id in fam_pos.parents:
                if parent_id in pos:
                    result.append(Connection(from_id=parent_id, to_id=fam_pos.id, kind="spouse"))
            for child_id in fam_pos.children:
                if child_id in pos:
                    result.append(Connection(from_id=fam_pos.id, to_id=child_id, kind="child"))
        return result

    @staticmethod
    def bounds(
        pos: dict[str, Position], config: LayoutConfig, family_positions: list[FamilyPosition] | None = None
    ) -> Bounds:
        """Extent of the person boxes and family nodes, plus the right and bottom padding."""
        extent = compute_bounds(pos)
        if extent is None:
            return Bounds(
                width=1000 + config.padding_x,
                height=config.padding_y * 2,
                min_x=0,
                max_x=1000,
                min_y=0,
                max_y=0,
            )
        min_x, max_x, min_y, max_y = extent
        fam_xs = [f.x for f in family_positions or []]
        right = max([max_x + config.box_width / 2, *fam_xs])
        min_x = min([min_x, *fam_xs])
        max_x = max([max_x, *fam_xs])
        return Bounds(
            width=right + config.padding_x,
            height=max_y + config.box_height / 2 + config.padding_y,
            min_x=min_x,
            max_x=max_x,
            min_y=min_y,
            max_y=max_y,
        )
