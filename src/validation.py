"""Structural and lineage validation for parsed family tree data."""

from collections import Counter

import networkx as nx

from graph import build_lineage_graph
from models import Family, GedcomDate, Individual, ValidationError


def validate_references(individuals: list[Individual], families: list[Family]) -> list[ValidationError]:
    """
    Collect dangling references and missing required fields.

    Nothing is removed from the input; layout code filters dangling ids itself.
    """
    errors: list[ValidationError] = []
    valid_individual_ids = {ind.id for ind in individuals}
    valid_family_ids = {fam.id for fam in families}

    for ind_id, count in Counter(ind.id for ind in individuals).items():
        if count > 1:
            errors.append(
                ValidationError(
                    type="duplicate_individual",
                    message=f"Individual {ind_id} is defined {count} times",
                    entity_id=ind_id,
                )
            )
    for fam_id, count in Counter(fam.id for fam in families).items():
        if count > 1:
            errors.append(
                ValidationError(
                    type="duplicate_family",
                    message=f"Family {fam_id} is defined {count} times",
                    entity_id=fam_id,
                )
            )

    for ind in individuals:
        if not ind.name:
            errors.append(
                ValidationError(
                    type="missing_name",
                    message=f"Individual {ind.id} has no NAME",
                    entity_id=ind.id,
                )
            )
        for fam_id in ind.families:
            if fam_id not in valid_family_ids:
                errors.append(
                    ValidationError(
                        type="invalid_family_reference",
                        message=f"Individual {ind.id} references non-existent family {fam_id}",
                        entity_id=ind.id,
                        reference_id=fam_id,
                    )
                )

    for fam in families:
        for parent_id in fam.parents:
            if parent_id not in valid_individual_ids:
                errors.append(
                    ValidationError(
                        type="invalid_parent_reference",
                        message=f"Family {fam.id} references non-existent parent {parent_id}",
                        entity_id=fam.id,
                        reference_id=parent_id,
                    )
                )
        for child_id in fam.children:
            if child_id not in valid_individual_ids:
                errors.append(
                    ValidationError(
                        type="invalid_child_reference",
                        message=f"Family {fam.id} references non-existent child {child_id}",
                        entity_id=fam.id,
                        reference_id=child_id,
                    )
                )

    return errors


def _born_before(a: GedcomDate, b: GedcomDate) -> bool:
    if a.iso and b.iso:
        return a.iso < b.iso
    return a.year < b.year


def validate_lineage(individuals: list[Individual], families: list[Family]) -> list[ValidationError]:
    """
    Validate the family tree for:
    - Cycles in parent-child relationships
    - Impossible ages (child born before parent)
    - Date ordering issues

    Only dates with a known year take part in the age checks.
    """
    errors: list[ValidationError] = []
    G = build_lineage_graph(individuals, families)

    # Check for cycles
    try:
        cycle = nx.find_cycle(G, orientation="original")
        cycle_nodes = [edge[0] for edge in cycle]
        errors.append(
            ValidationError(
                type="ancestry_cycle",
                message=f"Cycle detected in parent-child relationships: {cycle_nodes}",
                entity_id=cycle_nodes[0],
            )
        )
    except nx.NetworkXNoCycle:
        pass  # No cycle found, which is good

    # Check for impossible ages (child born before parent)
    for parent, child in G.edges():
        parent_data = G.nodes[parent]
        child_data = G.nodes[child]

        parent_birth = parent_data.get("birth_date")
        child_birth = child_data.get("birth_date")
        if not (parent_birth and child_birth and parent_birth.year and child_birth.year):
            continue

        if _born_before(child_birth, parent_birth):
            errors.append(
                ValidationError(
                    type="child_born_before_parent",
                    message=(
                        f"Impossible: {child_data.get('person_name') or child} born before parent "
                        f"{parent_data.get('person_name') or parent}"
                    ),
                    entity_id=child,
                    reference_id=parent,
                )
            )
        elif child_birth.year - parent_birth.year < 12:
            errors.append(
                ValidationError(
                    type="young_parent",
                    message=(
                        f"Suspicious: {parent_data.get('person_name') or parent} was less than 12 "
                        f"years old when {child_data.get('person_name') or child} was born"
                    ),
                    entity_id=parent,
                    reference_id=child,
                )
            )

    # Check death before birth
    for node, data in G.nodes(data=True):
        birth = data.get("birth_date")
        death = data.get("death_date")
        if birth and death and birth.year and death.year and _born_before(death, birth):
            errors.append(
                ValidationError(
                    type="death_before_birth",
                    message=f"Impossible: {data.get('person_name') or node} died before being born",
                    entity_id=node,
                )
            )

    return errors
