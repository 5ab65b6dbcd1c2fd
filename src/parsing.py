"""GEDCOM line tokenizing, record assembly and family linking."""

import logging
import re
from typing import NamedTuple

from dates import DateCache
from models import Family, Individual, ParseResult
from validation import validate_lineage, validate_references

logger = logging.getLogger(__name__)

FAMILY_HEADER_RE = re.compile(r"^0\s+@([^@]+)@\s+FAM\b", flags=re.IGNORECASE)

# Event tags whose date lives on a nested level-2 DATE line
INDIVIDUAL_DATE_TAGS = {"BIRT": "birth_date", "DEAT": "death_date"}


class GedcomLine(NamedTuple):
    level: int
    tag: str
    value: str
    record_id: str | None


def normalize_id(xref: str | None) -> str:
    """Strip the surrounding @ markers from a GEDCOM xref: '@I42@' -> 'I42'."""
    if not xref:
        return ""
    return xref.strip().removeprefix("@").removesuffix("@").strip()


def normalize_gedcom_name(value: str) -> str:
    """Drop the slashes GEDCOM puts around surnames: 'John /Doe/' -> 'John Doe'."""
    name = re.sub(r"\s*/\s*", " ", value)
    return re.sub(r"\s+", " ", name).strip()


def tokenize_line(line: str) -> GedcomLine | None:
    """
    Split one GEDCOM line into (level, tag, value, record_id).

    Handles both line shapes:
    - "0 @I1@ INDI"          (record id in the second token, tag in the third)
    - "1 NAME John /Doe/"    (tag in the second token, value is the rest)

    Returns None for blank or malformed lines.
    """
    parts = line.strip().split(None, 2)
    if len(parts) < 2 or not parts[0].isdigit():
        return None

    level = int(parts[0])
    rest = parts[2] if len(parts) > 2 else ""

    if parts[1].startswith("@") and rest:
        tag_and_value = rest.split(None, 1)
        value = tag_and_value[1] if len(tag_and_value) > 1 else ""
        return GedcomLine(level, tag_and_value[0], value.strip(), parts[1])

    return GedcomLine(level, parts[1], rest.strip(), None)


def find_next_date_value(tokens: list[GedcomLine | None], start_index: int) -> str | None:
    """Look ahead from an event line for its level-2 DATE, stopping at the next level 0/1 line."""
    for token in tokens[start_index + 1 :]:
        if token is None:
            continue
        if token.level <= 1:
            break
        if token.level == 2 and token.tag == "DATE":
            return token.value.strip() or None
    return None


def _append_unique(items: list[str], value: str):
    if value and value not in items:
        items.append(value)


def _event_date_value(tokens: list[GedcomLine | None], index: int, inline: str) -> str | None:
    date_value = find_next_date_value(tokens, index)
    # "1 BIRT Y" only asserts the event happened
    if date_value is None and inline and inline.upper() != "Y":
        date_value = inline
    return date_value


class RecordAssembler:
    """Single-pass state machine holding the current individual and current family."""

    def __init__(self, tokens: list[GedcomLine | None], dates: DateCache | None = None):
        self.tokens = tokens
        self.dates = dates if dates is not None else DateCache()
        self.individuals: list[Individual] = []
        self.families: list[Family] = []
        self.current_individual: Individual | None = None
        self.current_family: Family | None = None

    def flush(self):
        if self.current_individual is not None:
            if self.current_individual.id:
                self.individuals.append(self.current_individual)
            else:
                logger.debug("Dropping individual record without an id")
            self.current_individual = None
        if self.current_family is not None:
            if self.current_family.id:
                self.families.append(self.current_family)
            else:
                logger.debug("Dropping family record without an id")
            self.current_family = None

    def run(self) -> tuple[list[Individual], list[Family]]:
        for index, token in enumerate(self.tokens):
            if token is None:
                continue
            if token.level == 0:
                self._start_record(token)
            elif token.level == 1:
                if self.current_individual is not None:
                    self._handle_individual_tag(token, index)
                elif self.current_family is not None:
                    self._handle_family_tag(token, index)
        self.flush()
        return self.individuals, self.families

    def _start_record(self, token: GedcomLine):
        self.flush()
        record_id = normalize_id(token.record_id or token.value)
        if token.tag == "INDI":
            self.current_individual = Individual(id=record_id)
            logger.debug("Created individual %s", record_id)
        elif token.tag == "FAM":
            self.current_family = Family(id=record_id)
            logger.debug("Created family %s", record_id)

    def _handle_individual_tag(self, token: GedcomLine, index: int):
        individual = self.current_individual
        tag = token.tag
        if tag == "NAME":
            individual.name = normalize_gedcom_name(token.value)
        elif tag == "SEX":
            individual.gender = token.value.strip() or None
        elif tag in INDIVIDUAL_DATE_TAGS:
            date_value = _event_date_value(self.tokens, index, token.value)
            if date_value:
                setattr(individual, INDIVIDUAL_DATE_TAGS[tag], self.dates.parse(date_value))
        elif tag in ("FAMS", "FAMC"):
            _append_unique(individual.families, normalize_id(token.value))

    def _handle_family_tag(self, token: GedcomLine, index: int):
        family = self.current_family
        tag = token.tag
        if tag in ("HUSB", "WIFE"):
            _append_unique(family.parents, normalize_id(token.value))
        elif tag == "CHIL":
            _append_unique(family.children, normalize_id(token.value))
        elif tag == "MARR":
            date_value = _event_date_value(self.tokens, index, token.value)
            if date_value:
                family.marriage_date = self.dates.parse(date_value)


def link_family_references(individuals: list[Individual], families: list[Family]):
    """
    Populate each individual's `families` list from the family records.

    Family parent/child lists are the authoritative source; FAMS/FAMC on the
    individual are only a partial signal.
    """
    individuals_by_id = {ind.id: ind for ind in individuals}

    for fam in families:
        for member_id in fam.parents + fam.children:
            ind = individuals_by_id.get(member_id)
            if ind is None:
                logger.debug("Could not find individual %s to link to family %s", member_id, fam.id)
                continue
            _append_unique(ind.families, fam.id)


def scan_for_missing_families(lines: list[str], known_ids: set[str] | None = None) -> list[Family]:
    """
    Fallback scan of the raw lines for `0 @id@ FAM` headers.

    Walks forward from each header collecting HUSB/WIFE/CHIL until the next
    level-0 line. Used when the line state machine found no families at all.
    """
    seen = set(known_ids or ())
    found: list[Family] = []

    for i, raw in enumerate(lines):
        match = FAMILY_HEADER_RE.match(raw.strip())
        if not match:
            continue
        fam_id = normalize_id(match.group(1))
        if not fam_id or fam_id in seen:
            continue

        fam = Family(id=fam_id)
        for following in lines[i + 1 :]:
            token = tokenize_line(following)
            if token is None:
                continue
            if token.level == 0:
                break
            if token.level != 1:
                continue
            tag = token.tag.upper()
            if tag in ("HUSB", "WIFE"):
                _append_unique(fam.parents, normalize_id(token.value))
            elif tag == "CHIL":
                _append_unique(fam.children, normalize_id(token.value))

        seen.add(fam_id)
        found.append(fam)

    return found


def split_lines(text: str) -> list[str]:
    return text.lstrip("\ufeff").splitlines()


def parse_gedcom(text: str) -> ParseResult:
    """
    Parse raw GEDCOM text into individuals, families and validation diagnostics.

    Never raises for malformed input: bad lines are skipped, bad dates degrade to
    precision "unknown", dangling references become ValidationError entries.
    """
    lines = split_lines(text or "")
    tokens = [tokenize_line(line) for line in lines]

    individuals, families = RecordAssembler(tokens).run()

    if not families:
        fallback = scan_for_missing_families(lines)
        if fallback:
            logger.warning(
                "No families found in primary parse, fallback scan recovered %d", len(fallback)
            )
            families.extend(fallback)

    link_family_references(individuals, families)

    validation_errors = validate_references(individuals, families)
    validation_errors.extend(validate_lineage(individuals, families))

    logger.info(
        "Parsed %d individuals, %d families (%d validation errors)",
        len(individuals),
        len(families),
        len(validation_errors),
    )
    return ParseResult(individuals, families, validation_errors)
