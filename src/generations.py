"""Generation (level) assignment relative to a focus person or family."""

from collections import deque
from dataclasses import dataclass, field
import logging

from config import DebugOptions
from models import Family, Individual

logger = logging.getLogger(__name__)

# Bounded effort, not a convergence proof: long marriage chains across many
# generations can need more passes than this.
MAX_PROPAGATION_PASSES = 8


@dataclass
class GenerationAssignment:
    level_of: dict[str, int]
    min_level: int = 0
    max_level: int = 0
    levels: dict[int, list[str]] = field(default_factory=dict)


def find_starting_individuals(
    individuals: list[Individual],
    families: list[Family],
    parents_of: dict[str, list[str]],
    individuals_by_id: dict[str, Individual],
    focus_item: str | None,
) -> list[str]:
    """
    Pick the BFS seeds.

    A focus individual seeds itself; a focus family seeds its parents (or its
    children when it has no known parents). Otherwise every individual without
    recorded parents is a root, falling back to the first individual.
    """
    if focus_item:
        if focus_item in individuals_by_id:
            return [focus_item]
        fam = next((f for f in families if f.id == focus_item), None)
        if fam is not None:
            parents = [p for p in fam.parents if p in individuals_by_id]
            if parents:
                return parents
            kids = [k for k in fam.children if k in individuals_by_id]
            if kids:
                return kids

    roots = [ind.id for ind in individuals if ind.id not in parents_of]
    return roots or [ind.id for ind in individuals[:1]]


def _propagate(level_of: dict[str, int], families: list[Family]) -> bool:
    """Run the spouse/child constraint passes. Returns True when a fixed point was reached."""
    for _ in range(MAX_PROPAGATION_PASSES):
        changed = False
        for fam in families:
            # Spouses adopt the deepest generation among them
            parent_levels = [level_of[p] for p in fam.parents if p in level_of]
            if parent_levels:
                target = max(parent_levels)
                for p in fam.parents:
                    if level_of.get(p) != target:
                        level_of[p] = target
                        changed = True
                for c in fam.children:
                    if level_of.get(c) != target + 1:
                        level_of[c] = target + 1
                        changed = True

            # Parents sit one generation above their highest child
            child_levels = [level_of[c] for c in fam.children if c in level_of]
            if child_levels:
                want = min(child_levels) - 1
                for p in fam.parents:
                    if level_of.get(p) != want:
                        level_of[p] = want
                        changed = True
        if not changed:
            return True
    return False


def assign_generations(
    individuals: list[Individual],
    families: list[Family],
    children_of: dict[str, list[str]],
    parents_of: dict[str, list[str]],
    individuals_by_id: dict[str, Individual],
    focus_item: str | None,
    debug: DebugOptions | None = None,
) -> GenerationAssignment:
    """
    Give every individual a signed generation: 0 at the focus, negative towards
    ancestors, positive towards descendants.

    Forward and backward BFS seed the levels, then the family constraints are
    propagated so spouses share a generation and children sit exactly one below
    their parents. Individuals no constraint reaches default to 0.
    """
    starting = find_starting_individuals(individuals, families, parents_of, individuals_by_id, focus_item)

    level_of: dict[str, int] = {}
    queue: deque[str] = deque()
    for root in starting:
        level_of[root] = 0
        queue.append(root)

    # Forward BFS: the closest-to-root path wins
    while queue:
        person_id = queue.popleft()
        wanted = level_of[person_id] + 1
        for kid in children_of.get(person_id, []):
            existing = level_of.get(kid)
            if existing is None or wanted < existing:
                level_of[kid] = wanted
                queue.append(kid)

    # Backward BFS: the closest-to-focus ancestor level wins
    back_queue: deque[str] = deque(starting)
    while back_queue:
        person_id = back_queue.popleft()
        wanted = level_of.get(person_id, 0) - 1
        for parent in parents_of.get(person_id, []):
            existing = level_of.get(parent)
            if existing is None or wanted > existing:
                level_of[parent] = wanted
                back_queue.append(parent)

    # Spouses and cousins the BFS never reached get their level from family
    # constraints first; only what is still unplaced falls back to 0
    converged = _propagate(level_of, families)
    for ind in individuals:
        level_of.setdefault(ind.id, 0)
    converged = _propagate(level_of, families)

    # A parent with known ancestry fixes the generation of the spouses who married in
    child_in_family = {c for fam in families for c in fam.children}
    for fam in families:
        anchor = next((p for p in fam.parents if p in child_in_family), None)
        if anchor is not None and anchor in level_of:
            for p in fam.parents:
                level_of[p] = level_of[anchor]

    converged = _propagate(level_of, families) and converged
    if not converged:
        logger.warning(
            "Generation constraints did not settle within %d passes; levels may be inconsistent",
            MAX_PROPAGATION_PASSES,
        )

    if debug and debug.trace_levels:
        for person_id, lvl in level_of.items():
            ind = individuals_by_id.get(person_id)
            logger.debug("  %s (%s): level %d", person_id, ind.name if ind else "?", lvl)

    levels: dict[int, list[str]] = {}
    for person_id, lvl in level_of.items():
        levels.setdefault(lvl, []).append(person_id)

    return GenerationAssignment(
        level_of=level_of,
        min_level=min(levels, default=0),
        max_level=max(levels, default=0),
        levels=levels,
    )
