"""Layout configuration and debug options."""

from dataclasses import dataclass, fields
import math

# Fields that may be None and are resolved from other settings
OPTIONAL_FIELDS = {
    "family_to_parent_distance",
    "family_to_children_distance",
    "max_ancestors",
}


@dataclass
class LayoutConfig:
    sibling_gap: float = 40
    parent_gap: float = 20
    family_padding: float = 12
    max_generations_forward: int = 2
    max_generations_backward: int = 2
    box_width: float = 100
    box_height: float = 40
    horizontal_gap: float = 20  # ancestor layout: column spacing
    vertical_gap: float = 16  # ancestor layout: spacing between boxes
    simple_packing: bool = True
    selected_id: str | None = None
    ancestor_family_gap: float = 40
    descendant_family_gap: float = 40
    family_to_parent_distance: float | None = None  # defaults to box_height
    family_to_children_distance: float | None = None  # defaults to box_height
    max_ancestors: int | None = None  # defaults to max_generations_backward
    padding_x: float = 100
    padding_y: float = 100

    @property
    def row_height(self) -> float:
        to_parent = self.family_to_parent_distance or self.box_height
        to_children = self.family_to_children_distance or self.box_height
        return to_parent + to_children

    @property
    def ancestor_depth(self) -> int:
        if self.max_ancestors is not None:
            return self.max_ancestors
        return self.max_generations_backward

    def errors(self) -> list[str]:
        """Return a message for every field that is not a non-negative number."""
        problems: list[str] = []
        for f in fields(self):
            if f.name in ("simple_packing", "selected_id"):
                continue
            value = getattr(self, f.name)
            if value is None and f.name in OPTIONAL_FIELDS:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value) or value < 0:
                problems.append(f"{f.name} must be a non-negative number")
        return problems

    def validate(self) -> "LayoutConfig":
        problems = self.errors()
        if problems:
            raise ValueError("Invalid layout config: " + "; ".join(problems))
        return self


@dataclass
class DebugOptions:
    """Switches for DEBUG-level layout tracing through the module loggers."""

    trace_levels: bool = False
    trace_layout: bool = False
    trace_packing: bool = False
