"""Tests for reference and lineage validation."""

from dates import parse_gedcom_date
from models import Family, Individual
from validation import validate_lineage, validate_references


def person(pid, birth=None, death=None, name=None):
    return Individual(
        id=pid,
        name=pid if name is None else name,
        birth_date=parse_gedcom_date(birth) if birth else None,
        death_date=parse_gedcom_date(death) if death else None,
    )


def error_types(errors):
    return sorted(e.type for e in errors)


class TestReferences:
    def test_clean_data(self):
        individuals = [person("A"), person("B")]
        families = [Family(id="F1", parents=["A"], children=["B"])]
        assert validate_references(individuals, families) == []

    def test_dangling_parent_and_child(self):
        individuals = [person("A")]
        families = [Family(id="F1", parents=["A", "X"], children=["Y"])]
        errors = validate_references(individuals, families)
        assert error_types(errors) == ["invalid_child_reference", "invalid_parent_reference"]
        assert {e.reference_id for e in errors} == {"X", "Y"}

    def test_dangling_family_reference(self):
        individuals = [Individual(id="A", name="A", families=["F404"])]
        errors = validate_references(individuals, [])
        assert error_types(errors) == ["invalid_family_reference"]
        assert errors[0].entity_id == "A"

    def test_duplicates(self):
        individuals = [person("A"), person("A")]
        families = [Family(id="F1"), Family(id="F1")]
        assert error_types(validate_references(individuals, families)) == [
            "duplicate_family",
            "duplicate_individual",
        ]

    def test_missing_name(self):
        errors = validate_references([person("A", name="")], [])
        assert error_types(errors) == ["missing_name"]

    def test_input_not_modified(self):
        families = [Family(id="F1", parents=["X"], children=["Y"])]
        validate_references([], families)
        assert families[0].parents == ["X"]
        assert families[0].children == ["Y"]


class TestLineage:
    def test_cycle_detected(self):
        individuals = [person("A"), person("B")]
        families = [
            Family(id="F1", parents=["A"], children=["B"]),
            Family(id="F2", parents=["B"], children=["A"]),
        ]
        errors = validate_lineage(individuals, families)
        assert error_types(errors) == ["ancestry_cycle"]

    def test_child_born_before_parent(self):
        individuals = [person("P", birth="1950"), person("C", birth="1940")]
        families = [Family(id="F1", parents=["P"], children=["C"])]
        errors = validate_lineage(individuals, families)
        assert error_types(errors) == ["child_born_before_parent"]
        assert errors[0].entity_id == "C"
        assert errors[0].reference_id == "P"

    def test_young_parent(self):
        individuals = [person("P", birth="1950"), person("C", birth="1958")]
        families = [Family(id="F1", parents=["P"], children=["C"])]
        assert error_types(validate_lineage(individuals, families)) == ["young_parent"]

    def test_exact_dates_compared_within_year(self):
        individuals = [person("P", birth="10 JUN 1950"), person("C", birth="1 JAN 1950")]
        families = [Family(id="F1", parents=["P"], children=["C"])]
        assert error_types(validate_lineage(individuals, families)) == ["child_born_before_parent"]

    def test_death_before_birth(self):
        errors = validate_lineage([person("A", birth="1900", death="1890")], [])
        assert error_types(errors) == ["death_before_birth"]

    def test_unknown_dates_skipped(self):
        individuals = [person("P", birth="someday"), person("C", birth="1900")]
        families = [Family(id="F1", parents=["P"], children=["C"])]
        assert validate_lineage(individuals, families) == []

    def test_dangling_members_ignored(self):
        families = [Family(id="F1", parents=["P"], children=["ghost"])]
        assert validate_lineage([person("P", birth="1900")], families) == []
