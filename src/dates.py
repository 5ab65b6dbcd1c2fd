"""GEDCOM date normalization."""

from datetime import date
import re

from models import GedcomDate


# Month name mappings (handle abbreviations and full names)
MONTH_MAP = {
    "JAN": 1,
    "JANUARY": 1,
    "FEB": 2,
    "FEBRUARY": 2,
    "MAR": 3,
    "MARCH": 3,
    "APR": 4,
    "APRIL": 4,
    "MAY": 5,
    "JUN": 6,
    "JUNE": 6,
    "JUL": 7,
    "JULY": 7,
    "AUG": 8,
    "AUGUST": 8,
    "SEP": 9,
    "SEPT": 9,
    "SEPTEMBER": 9,
    "OCT": 10,
    "OCTOBER": 10,
    "NOV": 11,
    "NOVEMBER": 11,
    "DEC": 12,
    "DECEMBER": 12,
}

QUALIFIER_RE = re.compile(
    r"^(ABT\.?|ABOUT|EST\.?|CAL\.?|BEF\.?|BEFORE|AFT\.?|AFTER|CIRCA|CA\.?|AROUND):?\s+",
    flags=re.IGNORECASE,
)
DAY_MONTH_YEAR_RE = re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s+(\d{3,4})$")
MONTH_YEAR_RE = re.compile(r"^([A-Za-z]+)\.?,?\s+(\d{3,4})$")
YEAR_RE = re.compile(r"^(\d{3,4})$")


def _is_valid_day(year: int, month: int, day: int) -> bool:
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def parse_gedcom_date(date_str: str | None) -> GedcomDate:
    """
    Parse a free-form GEDCOM date string into a GedcomDate.

    Recognized shapes (after dropping a leading ABT/EST/CAL/BEF/AFT qualifier):
    - "15 MAR 1950" -> day precision, iso set
    - "MAR 1950"    -> month precision, approx_iso uses day 01
    - "1950"        -> year precision, approx_iso uses 01-01

    Anything else comes back with precision "unknown", the original text kept and
    every numeric field None. Never raises.
    """
    if date_str is None:
        return GedcomDate(original=None)

    s = QUALIFIER_RE.sub("", date_str.strip()).strip()
    if not s:
        return GedcomDate(original=date_str)

    match = DAY_MONTH_YEAR_RE.match(s)
    if match:
        day = int(match.group(1))
        month = MONTH_MAP.get(match.group(2).upper())
        year = int(match.group(3))
        if month and _is_valid_day(year, month, day):
            return GedcomDate(
                original=date_str,
                year=year,
                month=month,
                day=day,
                precision="day",
                iso=f"{year:04d}-{month:02d}-{day:02d}",
            )
        return GedcomDate(original=date_str)

    match = MONTH_YEAR_RE.match(s)
    if match:
        month = MONTH_MAP.get(match.group(1).upper())
        year = int(match.group(2))
        if month and year > 0:
            return GedcomDate(
                original=date_str,
                year=year,
                month=month,
                precision="month",
                approx_iso=f"{year:04d}-{month:02d}-01",
            )
        return GedcomDate(original=date_str)

    match = YEAR_RE.match(s)
    if match:
        year = int(match.group(1))
        if year > 0:
            return GedcomDate(
                original=date_str,
                year=year,
                precision="year",
                approx_iso=f"{year:04d}-01-01",
            )

    return GedcomDate(original=date_str)


class DateCache:
    """Per-parse memo of date strings to parsed values.

    GedcomDate is frozen, so one parsed instance can be shared by every record
    carrying the same text.
    """

    def __init__(self):
        self._parsed: dict[str | None, GedcomDate] = {}

    def parse(self, date_str: str | None) -> GedcomDate:
        cached = self._parsed.get(date_str)
        if cached is None:
            cached = parse_gedcom_date(date_str)
            self._parsed[date_str] = cached
        return cached

    def __len__(self) -> int:
        return len(self._parsed)
