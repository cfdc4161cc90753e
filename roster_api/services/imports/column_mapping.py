"""
Column alias resolution for player import files.

Clubs export rosters from many systems, so the header row of an upload is
matched against a table of known aliases per canonical field rather than an
exact column layout.

Header normalization:
- case-folded
- byte-order mark removed
- whitespace, underscores, hyphens, dots and slashes dropped

so "First Name", "first_name", "FIRST-NAME" and "firstname" all resolve to
FirstName. '#' is kept, which makes "Jersey #" distinct from "Jersey".

Usage:
    mapping = map_columns(["First", "Surname", "DOB", "Sex"])
    mapping.missing_required()   # []
    mapping.index_of(CanonicalField.GENDER)   # 3
"""
import enum
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from roster_api.services.imports.schemas import ColumnMappingResult


class CanonicalField(str, enum.Enum):
    """Target player fields, in canonical order."""
    FIRST_NAME = "FirstName"
    LAST_NAME = "LastName"
    DATE_OF_BIRTH = "DateOfBirth"
    GENDER = "Gender"
    GRADUATION_YEAR = "GraduationYear"
    JERSEY_NUMBER = "JerseyNumber"
    TRYOUT_NUMBER = "TryoutNumber"


REQUIRED_FIELDS = (
    CanonicalField.FIRST_NAME,
    CanonicalField.LAST_NAME,
    CanonicalField.DATE_OF_BIRTH,
    CanonicalField.GENDER,
)

OPTIONAL_FIELDS = (
    CanonicalField.GRADUATION_YEAR,
    CanonicalField.JERSEY_NUMBER,
    CanonicalField.TRYOUT_NUMBER,
)

FIELD_ALIASES: Dict[CanonicalField, tuple] = {
    CanonicalField.FIRST_NAME: (
        "first_name", "firstname", "first", "player_first_name",
        "given_name", "givenname", "player first name", "first name", "forename",
    ),
    CanonicalField.LAST_NAME: (
        "last_name", "lastname", "last", "player_last_name", "surname",
        "family_name", "familyname", "player last name", "last name",
    ),
    CanonicalField.DATE_OF_BIRTH: (
        "date_of_birth", "dateofbirth", "dob", "birth_date", "birthdate",
        "birthday", "birth date", "date of birth",
    ),
    CanonicalField.GENDER: (
        "gender", "sex", "player_gender",
    ),
    CanonicalField.GRADUATION_YEAR: (
        "graduation_year", "graduationyear", "grad_year", "gradyear", "grad",
        "graduation", "class_of", "classof",
    ),
    CanonicalField.JERSEY_NUMBER: (
        "jersey_number", "jerseynumber", "jersey", "number", "jersey_no",
        "jersey #", "jersey#", "player_number",
    ),
    CanonicalField.TRYOUT_NUMBER: (
        "tryout_number", "tryoutnumber", "tryout", "tryout_no", "tryout #",
        "evaluation_number",
    ),
}

# Headers written to downloadable templates. Every one resolves through the
# alias table above.
TEMPLATE_HEADERS = [
    "first_name",
    "last_name",
    "date_of_birth",
    "gender",
    "graduation_year",
    "jersey_number",
    "tryout_number",
]

TEMPLATE_DISPLAY_HEADERS = [
    "First Name",
    "Last Name",
    "Date of Birth",
    "Gender",
    "Graduation Year",
    "Jersey Number",
    "Tryout Number",
]

TEMPLATE_SAMPLE_ROW = ["John", "Doe", "2010-05-15", "M", "2028", "10", ""]

_STRIPPED_CHARS = re.compile(r"[\s_\-./\\]+")


def normalize_header(header_text: Optional[str]) -> str:
    """Normalize a header (or alias) for comparison."""
    if header_text is None:
        return ""
    return _STRIPPED_CHARS.sub("", str(header_text).replace("\ufeff", "").casefold())


def _build_alias_lookup() -> Dict[str, CanonicalField]:
    lookup: Dict[str, CanonicalField] = {}
    for canonical, aliases in FIELD_ALIASES.items():
        for alias in aliases:
            key = normalize_header(alias)
            owner = lookup.get(key)
            if owner is not None and owner is not canonical:
                raise ValueError(
                    f"Column alias '{alias}' is claimed by both "
                    f"{owner.value} and {canonical.value}"
                )
            lookup[key] = canonical
    return lookup


_ALIAS_LOOKUP = _build_alias_lookup()


def find_matching_field(header_text: Optional[str]) -> Optional[CanonicalField]:
    """Canonical field for a header, or None when empty or unrecognized."""
    key = normalize_header(header_text)
    if not key:
        return None
    return _ALIAS_LOOKUP.get(key)


@dataclass
class ColumnMapping:
    """Which column (index and literal header) supplies each canonical field."""
    indices: Dict[CanonicalField, int] = field(default_factory=dict)
    header_names: Dict[CanonicalField, str] = field(default_factory=dict)

    def is_detected(self, canonical: CanonicalField) -> bool:
        return canonical in self.indices

    def index_of(self, canonical: CanonicalField) -> Optional[int]:
        return self.indices.get(canonical)

    def missing_required(self) -> List[CanonicalField]:
        """Undetected required fields, in canonical order."""
        return [f for f in REQUIRED_FIELDS if f not in self.indices]

    def to_results(self) -> List[ColumnMappingResult]:
        return [
            ColumnMappingResult(
                field_name=canonical.value,
                detected_column_name=self.header_names.get(canonical),
                is_required=canonical in REQUIRED_FIELDS,
                is_detected=canonical in self.indices,
            )
            for canonical in CanonicalField
        ]


def map_columns(headers: Sequence[str]) -> ColumnMapping:
    """
    Resolve a header row to a ColumnMapping.

    When two headers resolve to the same field, the leftmost one wins.
    """
    mapping = ColumnMapping()
    for index, header in enumerate(headers):
        canonical = find_matching_field(header)
        if canonical is None or canonical in mapping.indices:
            continue
        mapping.indices[canonical] = index
        mapping.header_names[canonical] = header
    return mapping
