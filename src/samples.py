"""Synthetic GEDCOM generators for demos, previews and layout tests."""

HEADER = ["0 HEAD", "1 SOUR Generated", "1 GEDC", "2 VERS 5.5.1", "2 FORM LINEAGE-LINKED", "1 CHAR UTF-8"]


def build_ancestor_gedcom(generations: int = 8, root_birth_year: int = 2000) -> str:
    """
    A root person @I0@ with a complete pedigree `generations` deep.

    Generation g holds 2**g people born 30 years apart per generation; every
    child has a father (SEX M) and mother (SEX F) in the next generation.
    """
    lines = list(HEADER)
    individuals: list[dict] = []
    families: list[dict] = []

    def add_person(gen: int, index: int, sex: str, birth_year: int) -> int:
        individuals.append(
            {"num": len(individuals), "gen": gen, "index": index, "sex": sex, "birth": birth_year, "famc": None, "fams": None}
        )
        return len(individuals) - 1

    previous = [add_person(0, 0, "M", root_birth_year)]
    for g in range(1, generations + 1):
        birth_year = root_birth_year - g * 30
        current = []
        for child_index, child in enumerate(previous):
            father = add_person(g, child_index * 2, "M", birth_year)
            mother = add_person(g, child_index * 2 + 1, "F", birth_year)
            fam_num = len(families) + 1
            families.append({"num": fam_num, "husb": father, "wife": mother, "child": child})
            individuals[child]["famc"] = fam_num
            individuals[father]["fams"] = fam_num
            individuals[mother]["fams"] = fam_num
            current.extend([father, mother])
        previous = current

    for ind in individuals:
        lines.append(f"0 @I{ind['num']}@ INDI")
        lines.append(f"1 NAME Person G{ind['gen']}-{ind['index']} /Ancestor/")
        lines.append(f"1 SEX {ind['sex']}")
        lines.append("1 BIRT")
        lines.append(f"2 DATE 1 JAN {ind['birth']}")
        if ind["famc"] is not None:
            lines.append(f"1 FAMC @F{ind['famc']}@")
        if ind["fams"] is not None:
            lines.append(f"1 FAMS @F{ind['fams']}@")

    for fam in families:
        lines.append(f"0 @F{fam['num']}@ FAM")
        lines.append(f"1 HUSB @I{fam['husb']}@")
        lines.append(f"1 WIFE @I{fam['wife']}@")
        lines.append(f"1 CHIL @I{fam['child']}@")

    lines.append("0 TRLR")
    return "\n".join(lines)


def build_descendant_gedcom(generations: int = 8, children_per_family: int = 2, base_year: int = 1700) -> str:
    """
    A root couple @I0@ + @I0_S@ and `generations` generations of descendants.

    Every descendant marries a spouse (id suffix `_S`); couples above the last
    generation have `children_per_family` children each.
    """
    span = 25
    lines = list(HEADER)
    people: list[tuple[str, str, str, str, int]] = [
        ("I0", "Root", "Ancestor", "M", base_year),
        ("I0_S", "RootSpouse", "Ancestor", "F", base_year + 2),
    ]
    families: list[tuple[str, str, str, list[str], int]] = []

    if generations >= 1:
        families.append(("F0", "I0", "I0_S", [f"I1_{i}" for i in range(children_per_family)], base_year + 24))

    for gen in range(1, generations + 1):
        birth_year = base_year + gen * span
        for person_index in range(children_per_family**gen):
            child_index = person_index % children_per_family
            person_id = f"I{gen}_{person_index}"
            spouse_id = f"{person_id}_S"
            sex = "M" if child_index % 2 == 0 else "F"
            spouse_sex = "F" if sex == "M" else "M"
            people.append((person_id, f"Child{person_index + 1}", "Person", sex, birth_year + child_index))
            people.append(
                (spouse_id, f"Child{person_index + 1}Spouse", "Person", spouse_sex, birth_year + child_index + 2)
            )

            if gen < generations:
                first_child = person_index * children_per_family
                husband, wife = (person_id, spouse_id) if sex == "M" else (spouse_id, person_id)
                families.append(
                    (
                        f"F{gen}_{person_index}",
                        husband,
                        wife,
                        [f"I{gen + 1}_{first_child + i}" for i in range(children_per_family)],
                        birth_year + 24,
                    )
                )

    for person_id, given, surname, sex, birth_year in people:
        lines.append(f"0 @{person_id}@ INDI")
        lines.append(f"1 NAME {given} /{surname}/")
        lines.append(f"1 SEX {sex}")
        lines.append("1 BIRT")
        lines.append(f"2 DATE 1 JAN {birth_year}")

    for fam_id, husband, wife, children, marriage_year in families:
        lines.append(f"0 @{fam_id}@ FAM")
        lines.append(f"1 HUSB @{husband}@")
        lines.append(f"1 WIFE @{wife}@")
        for child_id in children:
            lines.append(f"1 CHIL @{child_id}@")
        lines.append("1 MARR")
        lines.append(f"2 DATE 1 JAN {marriage_year}")

    lines.append("0 TRLR")
    return "\n".join(lines)


SAMPLES = {
    "ancestors": build_ancestor_gedcom,
    "descendants": build_descendant_gedcom,
}
