"""Registry of layout strategies and the parse-result-to-layout pipeline."""

from dataclasses import dataclass, field, fields, replace
import logging
from typing import Any

from ancestor_layout import AncestorTreeLayout
from config import DebugOptions, LayoutConfig
from generations import assign_generations
from graph import build_relationship_maps
from models import LayoutResult, ParseResult
from vertical_layout import VerticalTreeLayout, filter_families_to_valid

logger = logging.getLogger(__name__)


@dataclass
class LayoutMeta:
    id: str
    name: str
    description: str
    strategy: type
    default_config: dict[str, Any] = field(default_factory=dict)


AVAILABLE_LAYOUTS: list[LayoutMeta] = [
    LayoutMeta(
        id="vertical",
        name="Vertical Tree",
        description="Top-to-bottom generations with lateral sibling grouping.",
        strategy=VerticalTreeLayout,
        default_config={
            "max_generations_backward": 2,
            "max_generations_forward": 2,
            "sibling_gap": 40,
            "parent_gap": 20,
            "family_padding": 12,
            "simple_packing": True,
        },
    ),
    LayoutMeta(
        id="ancestor",
        name="Ancestor Tree",
        description="Left-to-right ancestors with symmetric parent placement.",
        strategy=AncestorTreeLayout,
        default_config={
            "max_ancestors": 5,
            "horizontal_gap": 180,
            "box_height": 40,
            "box_width": 140,
            "vertical_gap": 16,
        },
    ),
]


def get_layout(layout_id: str) -> LayoutMeta:
    for meta in AVAILABLE_LAYOUTS:
        if meta.id == layout_id:
            return meta
    known = ", ".join(meta.id for meta in AVAILABLE_LAYOUTS)
    raise ValueError(f"Unknown layout '{layout_id}' (available: {known})")


def build_config(layout_id: str, focus: str | None = None, overrides: dict[str, Any] | None = None) -> LayoutConfig:
    """Layout defaults, then user overrides, validated."""
    meta = get_layout(layout_id)
    values = {**meta.default_config, **(overrides or {})}
    unknown = set(values) - {f.name for f in fields(LayoutConfig)}
    if unknown:
        raise ValueError(f"Unknown layout config keys: {sorted(unknown)}")
    if focus is not None:
        values["selected_id"] = focus
    return replace(LayoutConfig(), **values).validate()


def compute_tree_layout(
    parse_result: ParseResult,
    focus: str | None = None,
    layout_id: str = "vertical",
    overrides: dict[str, Any] | None = None,
    debug: DebugOptions | None = None,
) -> LayoutResult:
    """
    Lay out a parsed file.

    Builds the relationship indexes over the valid part of the data, assigns
    generations relative to `focus` and runs the chosen strategy.
    """
    meta = get_layout(layout_id)
    config = build_config(layout_id, focus, overrides)
    debug = debug or DebugOptions()

    individuals = parse_result.individuals
    individuals_by_id = {ind.id: ind for ind in individuals}
    families = filter_families_to_valid(parse_result.families, set(individuals_by_id))
    maps = build_relationship_maps(families)

    assignment = assign_generations(
        individuals,
        families,
        maps.children_of,
        maps.parents_of,
        individuals_by_id,
        config.selected_id,
        debug,
    )
    logger.debug(
        "Generations %d..%d for focus %s", assignment.min_level, assignment.max_level, config.selected_id
    )

    strategy = meta.strategy(debug)
    return strategy.compute_layout(individuals, families, assignment.level_of, config)
