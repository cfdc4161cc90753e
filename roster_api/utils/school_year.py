"""
School-calendar and clock utilities.

All timestamps are stored as naive UTC. Graduation years follow the typical
US school calendar:

- Students graduate the year they turn 18
- The school-year cutoff is August 1: children born August-December start
  school a year later and graduate one year later

Examples:
    Born 2010-01-15 -> class of 2028
    Born 2010-07-31 -> class of 2028
    Born 2010-08-01 -> class of 2029
"""
from datetime import date, datetime, timezone
from typing import Optional

SCHOOL_YEAR_CUTOFF_MONTH = 8
TYPICAL_GRADUATION_AGE = 18


def utc_now() -> datetime:
    """Current time as naive UTC, the storage convention for all timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def current_year(today: Optional[date] = None) -> int:
    """Calendar year used for time-relative validation bounds."""
    return (today or utc_now().date()).year


def compute_graduation_year(date_of_birth: date) -> int:
    """
    Compute the expected high school graduation year from a date of birth.

    Args:
        date_of_birth: The player's date of birth

    Returns:
        Graduation year (class of)

    Examples:
        >>> compute_graduation_year(date(2010, 5, 15))
        2028
        >>> compute_graduation_year(date(2010, 9, 1))
        2029
    """
    graduation_year = date_of_birth.year + TYPICAL_GRADUATION_AGE

    if date_of_birth.month >= SCHOOL_YEAR_CUTOFF_MONTH:
        graduation_year += 1

    return graduation_year
