"""Coordinate normalization into positive canvas space."""

from dataclasses import dataclass

from models import Position


@dataclass
class OffsetResult:
    pos: dict[str, Position]
    min_x: float
    max_x: float


def compute_bounds(pos: dict[str, Position]) -> tuple[float, float, float, float] | None:
    """Return (min_x, max_x, min_y, max_y) over all positions, or None when empty."""
    if not pos:
        return None
    xs = [p.x for p in pos.values()]
    ys = [p.y for p in pos.values()]
    return min(xs), max(xs), min(ys), max(ys)


def apply_x_offset(
    pos: dict[str, Position], target_min_x: float = 100, target_min_y: float = 100
) -> OffsetResult:
    """
    Shift every position so the smallest x lands on target_min_x and the smallest y
    on target_min_y.

    Mutates `pos` in place and also returns it. Call it only once the recursive
    layout has finished: the occupied-range tracker works in pre-offset coordinates.
    With no positions the reported range is 0..1000.
    """
    extent = compute_bounds(pos)
    if extent is None:
        return OffsetResult(pos=pos, min_x=0, max_x=1000)

    min_x, max_x, min_y, _ = extent
    x_offset = target_min_x - min_x
    y_offset = target_min_y - min_y

    for p in pos.values():
        p.x += x_offset
        p.y += y_offset

    return OffsetResult(pos=pos, min_x=min_x + x_offset, max_x=max_x + x_offset)
