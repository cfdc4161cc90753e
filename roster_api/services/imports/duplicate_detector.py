"""
Duplicate detection on the player natural key.

Two players are the same person when first name, last name (case-insensitive)
and date of birth match. Duplicates are warnings: the club may really have two
players sharing a name and birthday, so the client decides whether to unmark
the row.
"""
from datetime import date
from typing import Dict, Iterable, List, Optional, Set, Tuple

from roster_api.services.imports.schemas import ImportRow


def natural_key(first_name: Optional[str], last_name: Optional[str],
                date_of_birth: Optional[date]) -> Optional[str]:
    """FIRST|LAST|YYYY-MM-DD, or None when any component is missing."""
    first = (first_name or "").strip()
    last = (last_name or "").strip()
    if not first or not last or date_of_birth is None:
        return None
    return f"{first.upper()}|{last.upper()}|{date_of_birth.isoformat()}"


def existing_keys(identities: Iterable[Tuple[str, str, date]]) -> Set[str]:
    """Natural keys for stored (first_name, last_name, date_of_birth) tuples."""
    keys = set()
    for first, last, dob in identities:
        key = natural_key(first, last, dob)
        if key:
            keys.add(key)
    return keys


def flag_in_file_duplicates(rows: List[ImportRow]) -> int:
    """
    Flag rows repeating an earlier row's natural key.

    The earliest row number keeps its status; every later occurrence is
    flagged with a warning naming it.

    Returns:
        Number of rows flagged
    """
    first_seen: Dict[str, int] = {}
    flagged = 0
    for row in sorted(rows, key=lambda r: r.row_number):
        key = natural_key(row.first_name, row.last_name, row.date_of_birth)
        if key is None:
            continue
        if key in first_seen:
            row.is_duplicate_in_file = True
            row.warnings.append(
                f"Duplicate of row {first_seen[key]} (same name and date of birth)."
            )
            flagged += 1
        else:
            first_seen[key] = row.row_number
    return flagged


def flag_database_duplicates(rows: List[ImportRow], stored_keys: Set[str]) -> int:
    """
    Flag rows matching a player already stored for the club.

    Returns:
        Number of rows flagged
    """
    flagged = 0
    for row in rows:
        key = natural_key(row.first_name, row.last_name, row.date_of_birth)
        if key is not None and key in stored_keys:
            row.is_duplicate_in_database = True
            row.warnings.append(
                "A player with the same name and date of birth already exists in this club."
            )
            flagged += 1
    return flagged
