"""
Per-row validation rules for player imports.

validate_row only appends messages; callers clear previous results with
reset_row_state first so that a row can be revalidated after edits without
stale errors piling up.

Rules:
- first and last name required, at most 100 characters
- date of birth and gender required
- graduation year required, within [IMPORT_MIN_GRADUATION_YEAR,
  current year + IMPORT_GRADUATION_YEAR_HORIZON]
- jersey number 0-999 and tryout number 0-9999 when present

A computed graduation year adds a warning, not an error.
"""
from datetime import date
from typing import Optional

from roster_api.core.config import settings
from roster_api.services.imports.schemas import ImportRow
from roster_api.utils.school_year import current_year

MAX_NAME_LENGTH = 100
JERSEY_NUMBER_RANGE = (0, 999)
TRYOUT_NUMBER_RANGE = (0, 9999)


def max_graduation_year(today: Optional[date] = None) -> int:
    """Latest accepted graduation year, relative to the current year."""
    return current_year(today) + settings.IMPORT_GRADUATION_YEAR_HORIZON


def reset_row_state(row: ImportRow) -> None:
    """Clear results of a previous validation pass."""
    row.errors = []
    row.warnings = []
    row.is_duplicate_in_file = False
    row.is_duplicate_in_database = False


def _check_name(row: ImportRow, value: str, label: str) -> None:
    if not value or not value.strip():
        row.errors.append(f"{label} is required.")
    elif len(value) > MAX_NAME_LENGTH:
        row.errors.append(f"{label} must be {MAX_NAME_LENGTH} characters or less.")


def validate_row(row: ImportRow, today: Optional[date] = None) -> None:
    """Append validation errors and warnings to a row."""
    _check_name(row, row.first_name, "First name")
    _check_name(row, row.last_name, "Last name")

    if row.date_of_birth is None:
        row.errors.append("Date of birth is required and must be a valid date.")

    if row.gender is None:
        row.errors.append("Gender is required. Use M/Male, F/Female, or O/Other.")

    min_year = settings.IMPORT_MIN_GRADUATION_YEAR
    max_year = max_graduation_year(today)
    if row.graduation_year is None:
        row.errors.append(
            "Graduation year is required (or provide date of birth for automatic calculation)."
        )
    elif not min_year <= row.graduation_year <= max_year:
        row.errors.append(f"Graduation year must be between {min_year} and {max_year}.")

    low, high = JERSEY_NUMBER_RANGE
    if row.jersey_number is not None and not low <= row.jersey_number <= high:
        row.errors.append(f"Jersey number must be between {low} and {high}.")

    low, high = TRYOUT_NUMBER_RANGE
    if row.tryout_number is not None and not low <= row.tryout_number <= high:
        row.errors.append(f"Tryout number must be between {low} and {high}.")

    if row.is_graduation_year_computed and row.graduation_year is not None:
        row.warnings.append(
            f"Graduation year computed as {row.graduation_year} based on date of birth."
        )
