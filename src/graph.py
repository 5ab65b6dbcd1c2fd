"""Relationship indexes and NetworkX lineage graph building."""

from dataclasses import dataclass, field

import networkx as nx

from models import Family, Individual


@dataclass
class RelationshipMaps:
    """Lookups derived from a family list. Rebuild them whenever the families change."""

    children_of: dict[str, list[str]] = field(default_factory=dict)
    parents_of: dict[str, list[str]] = field(default_factory=dict)
    person_to_parent_family: dict[str, Family] = field(default_factory=dict)
    person_to_child_families: dict[str, list[Family]] = field(default_factory=dict)


def build_relationship_maps(families: list[Family]) -> RelationshipMaps:
    """
    Build child/parent lookups from the family list.

    - children_of: parent id -> child ids across all their families
    - parents_of: child id -> parent ids
    - person_to_parent_family: child id -> first family listing them as a child
    - person_to_child_families: parent id -> families where they are a parent
    """
    maps = RelationshipMaps()

    for fam in families:
        for parent_id in fam.parents:
            kids = maps.children_of.setdefault(parent_id, [])
            kids.extend(c for c in fam.children if c not in kids)
            maps.person_to_child_families.setdefault(parent_id, []).append(fam)

        for child_id in fam.children:
            parents = maps.parents_of.setdefault(child_id, [])
            parents.extend(p for p in fam.parents if p not in parents)
            # Each person typically has only one biological parent family
            maps.person_to_parent_family.setdefault(child_id, fam)

    return maps


def build_lineage_graph(individuals: list[Individual], families: list[Family]) -> nx.DiGraph:
    """Build a directed parent -> child graph with person attributes on the nodes.

    Edges pointing at ids that are not in `individuals` are left out.
    """
    G = nx.DiGraph()

    # Note: use 'person_name' instead of 'name' to avoid conflict with pydot
    for ind in individuals:
        G.add_node(
            ind.id,
            person_name=ind.name,
            sex=ind.gender,
            birth_date=ind.birth_date,
            death_date=ind.death_date,
        )

    for fam in families:
        for parent_id in fam.parents:
            for child_id in fam.children:
                if parent_id in G and child_id in G:
                    G.add_edge(parent_id, child_id, relationship_type="PARENT_OF", family_id=fam.id)

    return G


def find_root_families(families: list[Family]) -> list[Family]:
    """Families none of whose parents appear as a child anywhere, in input order."""
    is_child = {c for fam in families for c in fam.children}
    return [fam for fam in families if not any(p in is_child for p in fam.parents)]


def filter_by_max_trees(
    individuals: list[Individual], families: list[Family], max_trees: int | None
) -> tuple[list[Individual], list[Family]]:
    """
    Keep only the first `max_trees` root families and everything descending from them.

    Individuals are kept when they appear as a parent or child of a kept family.
    A missing or non-positive limit returns the inputs unchanged.
    """
    if max_trees is None or max_trees <= 0 or not families:
        return individuals, families

    roots = find_root_families(families)[:max_trees]
    if not roots:
        return individuals, families

    maps = build_relationship_maps(families)
    allowed: set[str] = set()
    stack = list(reversed(roots))

    while stack:
        fam = stack.pop()
        if fam.id in allowed:
            continue
        allowed.add(fam.id)
        for child_id in fam.children:
            for child_fam in maps.person_to_child_families.get(child_id, []):
                if child_fam.id not in allowed:
                    stack.append(child_fam)

    kept_families = [fam for fam in families if fam.id in allowed]
    member_ids = {m for fam in kept_families for m in fam.parents + fam.children}
    kept_individuals = [ind for ind in individuals if ind.id in member_ids]

    return kept_individuals, kept_families
