"""Data classes for family tree entities and layout results."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class GedcomDate:
    original: str | None
    year: int | None = None
    month: int | None = None
    day: int | None = None
    precision: str = "unknown"  # day, month, year or unknown
    iso: str | None = None  # only for day precision
    approx_iso: str | None = None  # placeholder day/month, never an exact date

    def display(self) -> str | None:
        """Preferred display text: exact ISO, then approximate ISO, then the raw text."""
        return self.iso or self.approx_iso or self.original

    def sort_key(self) -> tuple[int, str]:
        # Dated values first, in chronological order; unparseable ones last
        value = self.iso or self.approx_iso
        if value:
            return (0, value)
        return (1, self.original or "")


@dataclass
class Individual:
    id: str
    name: str = ""
    gender: str | None = None  # raw SEX value, usually M, F or U
    birth_date: GedcomDate | None = None
    death_date: GedcomDate | None = None
    families: list[str] = field(default_factory=list)


@dataclass
class Family:
    id: str
    parents: list[str] = field(default_factory=list)  # HUSB/WIFE order, not male-first
    children: list[str] = field(default_factory=list)
    marriage_date: GedcomDate | None = None


@dataclass
class ValidationError:
    type: str
    message: str
    entity_id: str | None = None
    reference_id: str | None = None


@dataclass
class ParseResult:
    individuals: list[Individual]
    families: list[Family]
    validation_errors: list[ValidationError]


@dataclass
class Position:
    x: float
    y: float


@dataclass
class FamilyPosition:
    id: str
    x: float
    y: float
    parents: list[str]
    children: list[str]


@dataclass
class Bounds:
    width: float
    height: float
    min_x: float
    max_x: float
    min_y: float
    max_y: float


@dataclass
class Connection:
    from_id: str
    to_id: str
    kind: str = "parent"  # parent, spouse or child
    gender_hint: str | None = None


@dataclass
class LayoutResult:
    person_positions: dict[str, Position]
    family_positions: list[FamilyPosition]
    bounds: Bounds
    connections: list[Connection] = field(default_factory=list)
