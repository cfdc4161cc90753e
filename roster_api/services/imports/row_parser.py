"""
Turn raw cell rows into typed ImportRow objects.

Parsing never fails: a value that cannot be read becomes None and the
validator reports it. Rows whose first name, last name, date of birth and
gender are all absent are treated as blank and dropped; row numbers count
only the rows that are kept.
"""
import logging
import re
import warnings
from datetime import date, datetime
from typing import Iterator, List, Optional, Sequence

import pandas as pd

from roster_api.models import Gender
from roster_api.services.imports.column_mapping import CanonicalField, ColumnMapping
from roster_api.services.imports.file_reader import ImportFile
from roster_api.services.imports.schemas import ImportRow
from roster_api.utils.school_year import compute_graduation_year

logger = logging.getLogger(__name__)

# Tried in order; ambiguous values such as 03/04/2010 resolve month-first.
DATE_FORMATS = [
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%d-%m-%Y",
]

# General parses must name a plausible four-digit year; pandas fills a missing
# year with 1 ("5/15" -> 0001-05-15).
_YEAR_PATTERN = re.compile(r"(?<!\d)(19|20)\d{2}(?!\d)")

GENDER_CODES = {
    "M": Gender.MALE,
    "MALE": Gender.MALE,
    "F": Gender.FEMALE,
    "FEMALE": Gender.FEMALE,
    "O": Gender.OTHER,
    "OTHER": Gender.OTHER,
}


# ============================================================================
# Cell parsers
# ============================================================================

def parse_date(text: Optional[str]) -> Optional[date]:
    """Parse a date using the known formats, then a general parse."""
    text = (text or "").strip()
    if not text:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    if text.isdigit() or not _YEAR_PATTERN.search(text):
        return None

    # General fallback ("May 15, 2010", "15-May-2010", "2010-05-15 00:00:00"...)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            parsed = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None

    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date()


def parse_gender(text: Optional[str]) -> Optional[Gender]:
    """M/Male, F/Female, O/Other in any case; anything else is None."""
    return GENDER_CODES.get((text or "").strip().upper())


def parse_int(text: Optional[str]) -> Optional[int]:
    """
    Parse an integer cell.

    Integral decimals ("10.0", as spreadsheets often write numbers) are
    accepted; fractional or non-numeric text is None.
    """
    text = (text or "").strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError:
        return None
    if value != value or value in (float("inf"), float("-inf")) or not value.is_integer():
        return None
    return int(value)


# ============================================================================
# Rows
# ============================================================================

def _cell(cells: Sequence[str], mapping: ColumnMapping, canonical: CanonicalField) -> str:
    index = mapping.index_of(canonical)
    if index is None or index >= len(cells):
        return ""
    value = cells[index]
    return "" if value is None else str(value).strip()


def apply_computed_graduation_year(row: ImportRow) -> None:
    """
    Fill in a missing graduation year from the date of birth.

    A year that was computed earlier follows the current date of birth, so
    an edited birth date is never paired with a stale year.
    """
    if row.is_graduation_year_computed:
        row.graduation_year = None
        row.is_graduation_year_computed = False

    if row.graduation_year is None and row.date_of_birth is not None:
        row.graduation_year = compute_graduation_year(row.date_of_birth)
        row.is_graduation_year_computed = True


def is_blank_row(row: ImportRow) -> bool:
    return (
        not row.first_name
        and not row.last_name
        and row.date_of_birth is None
        and row.gender is None
    )


def parse_row(cells: Sequence[str], mapping: ColumnMapping, row_number: int) -> ImportRow:
    """Build an ImportRow from one data row. Derived values are not applied here."""
    return ImportRow(
        row_number=row_number,
        first_name=_cell(cells, mapping, CanonicalField.FIRST_NAME),
        last_name=_cell(cells, mapping, CanonicalField.LAST_NAME),
        date_of_birth=parse_date(_cell(cells, mapping, CanonicalField.DATE_OF_BIRTH)),
        gender=parse_gender(_cell(cells, mapping, CanonicalField.GENDER)),
        graduation_year=parse_int(_cell(cells, mapping, CanonicalField.GRADUATION_YEAR)),
        jersey_number=parse_int(_cell(cells, mapping, CanonicalField.JERSEY_NUMBER)),
        tryout_number=parse_int(_cell(cells, mapping, CanonicalField.TRYOUT_NUMBER)),
        raw_cells=["" if c is None else str(c) for c in cells],
    )


def iter_parsed_rows(import_file: ImportFile, mapping: ColumnMapping) -> Iterator[ImportRow]:
    """Yield non-blank rows, numbered sequentially from 1, with derived graduation years."""
    row_number = 0
    for cells in import_file.rows:
        row = parse_row(cells, mapping, row_number + 1)
        if is_blank_row(row):
            continue
        row_number += 1
        apply_computed_graduation_year(row)
        yield row


def parse_rows(import_file: ImportFile, mapping: ColumnMapping) -> List[ImportRow]:
    """Parse every data row of an import file."""
    rows = list(iter_parsed_rows(import_file, mapping))
    logger.debug(f"Parsed {len(rows)} rows ({len(import_file.rows) - len(rows)} blank skipped)")
    return rows
