import matplotlib
import pytest

from dates import parse_gedcom_date
from models import Family, Individual
from parsing import parse_gedcom

# Headless rendering for the preview tests
matplotlib.use("Agg")


THREE_PERSON_GED = """0 HEAD
1 CHAR UTF-8
0 @I1@ INDI
1 NAME John /Smith/
1 SEX M
1 BIRT
2 DATE 15 MAR 1950
1 FAMS @F1@
0 @I2@ INDI
1 NAME Mary /Jones/
1 SEX F
1 BIRT
2 DATE 1952
1 FAMS @F1@
0 @I3@ INDI
1 NAME Tom /Smith/
1 SEX M
1 BIRT
2 DATE MAR 1980
1 FAMC @F1@
0 @F1@ FAM
1 HUSB @I1@
1 WIFE @I2@
1 CHIL @I3@
1 MARR
2 DATE 1 JUN 1975
0 TRLR
"""

DANGLING_GED = """0 @I1@ INDI
1 NAME Anna /Berg/
1 SEX F
0 @I3@ INDI
1 NAME Erik /Berg/
0 @F1@ FAM
1 WIFE @I1@
1 CHIL @I3@
1 CHIL @I999@
0 TRLR
"""


@pytest.fixture
def three_person_text():
    return THREE_PERSON_GED


@pytest.fixture
def three_person(three_person_text):
    """Parents I1 + I2 with one child I3 in family F1."""
    return parse_gedcom(three_person_text)


@pytest.fixture
def dangling():
    """Family F1 lists a child I999 that has no INDI record."""
    return parse_gedcom(DANGLING_GED)


@pytest.fixture
def remarried():
    """P married S2 (1890) and then S1 (1900); both marriages childless."""
    individuals = [
        Individual(id="A", name="A", gender="M"),
        Individual(id="B", name="B", gender="F"),
        Individual(id="P", name="P", gender="M"),
        Individual(id="S1", name="S1", gender="F"),
        Individual(id="S2", name="S2", gender="F"),
    ]
    families = [
        Family(id="F1", parents=["A", "B"], children=["P"]),
        Family(id="F2", parents=["P", "S1"], marriage_date=parse_gedcom_date("1 JAN 1900")),
        Family(id="F3", parents=["P", "S2"], marriage_date=parse_gedcom_date("1 JAN 1890")),
    ]
    return individuals, families
