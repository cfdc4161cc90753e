"""Unit tests for column alias resolution.

Test Strategy:
1. Every alias resolves to the field that owns it (and to no other)
2. Header normalization (case, spacing, separators, BOM)
3. Unknown and empty headers
4. map_columns: detection, first match wins, missing required order
5. Template headers read back through the alias table
"""
import pytest

from roster_api.services.imports.column_mapping import (
    FIELD_ALIASES,
    REQUIRED_FIELDS,
    TEMPLATE_DISPLAY_HEADERS,
    TEMPLATE_HEADERS,
    CanonicalField,
    find_matching_field,
    map_columns,
    normalize_header,
)


class TestFindMatchingField:
    """Test suite for single-header resolution."""

    # Alias table
    # ─────────────────────────────────────────────────────────────

    @pytest.mark.parametrize(
        "canonical,alias",
        [(canonical, alias) for canonical, aliases in FIELD_ALIASES.items() for alias in aliases],
    )
    def test_every_alias_resolves_to_its_owner(self, canonical, alias):
        """Should map each declared alias to exactly its own field."""
        assert find_matching_field(alias) is canonical

    def test_every_field_has_aliases(self):
        """Should declare aliases for every canonical field."""
        assert set(FIELD_ALIASES) == set(CanonicalField)

    # Normalization
    # ─────────────────────────────────────────────────────────────

    @pytest.mark.parametrize("header", [
        "First Name", "FIRST_NAME", "first-name", "  firstname  ", "First.Name", "\ufefffirst_name",
    ])
    def test_normalizes_spelling_variants(self, header):
        """Should ignore case, whitespace, separators and a leading BOM."""
        assert find_matching_field(header) is CanonicalField.FIRST_NAME

    def test_common_export_headers(self):
        """Should recognize headers seen in real roster exports."""
        assert find_matching_field("Surname") is CanonicalField.LAST_NAME
        assert find_matching_field("D.O.B.") is CanonicalField.DATE_OF_BIRTH
        assert find_matching_field("Sex") is CanonicalField.GENDER
        assert find_matching_field("Class Of") is CanonicalField.GRADUATION_YEAR
        assert find_matching_field("Jersey #") is CanonicalField.JERSEY_NUMBER
        assert find_matching_field("Tryout #") is CanonicalField.TRYOUT_NUMBER

    def test_hash_is_significant(self):
        """Should keep '#' so it does not collapse into another alias."""
        assert normalize_header("Jersey #") == "jersey#"
        assert find_matching_field("#") is None

    @pytest.mark.parametrize("header", ["", "   ", None, "Position", "Team", "Email"])
    def test_unknown_or_empty_headers_return_none(self, header):
        """Should return None for headers that match no field."""
        assert find_matching_field(header) is None


class TestMapColumns:
    """Test suite for resolving a full header row."""

    def test_detects_all_fields_with_indices(self):
        """Should record index and literal header for each detected field."""
        mapping = map_columns(["FirstName", "LastName", "DOB", "Sex", "Grad Year", "Jersey"])

        assert mapping.index_of(CanonicalField.FIRST_NAME) == 0
        assert mapping.index_of(CanonicalField.GENDER) == 3
        assert mapping.header_names[CanonicalField.DATE_OF_BIRTH] == "DOB"
        assert mapping.is_detected(CanonicalField.JERSEY_NUMBER)
        assert not mapping.is_detected(CanonicalField.TRYOUT_NUMBER)
        assert mapping.missing_required() == []

    def test_first_matching_header_wins(self):
        """Should keep the leftmost header when two resolve to the same field."""
        mapping = map_columns(["Jersey", "Number", "First", "Last", "DOB", "Gender"])

        assert mapping.index_of(CanonicalField.JERSEY_NUMBER) == 0
        assert mapping.header_names[CanonicalField.JERSEY_NUMBER] == "Jersey"

    def test_missing_required_in_canonical_order(self):
        """Should list undetected required fields in canonical order."""
        mapping = map_columns(["Gender", "Team", "First Name"])

        assert mapping.missing_required() == [
            CanonicalField.LAST_NAME,
            CanonicalField.DATE_OF_BIRTH,
        ]

    def test_to_results_covers_every_field(self):
        """Should report one mapping result per canonical field."""
        results = map_columns(["first_name", "Surname"]).to_results()

        assert [r.field_name for r in results] == [f.value for f in CanonicalField]
        by_name = {r.field_name: r for r in results}
        assert by_name["LastName"].detected_column_name == "Surname"
        assert by_name["LastName"].is_detected is True
        assert by_name["Gender"].is_detected is False
        assert by_name["Gender"].detected_column_name is None
        assert by_name["Gender"].is_required is True
        assert by_name["JerseyNumber"].is_required is False
        assert sum(r.is_required for r in results) == len(REQUIRED_FIELDS)


class TestTemplateHeaders:
    """Template headers must import cleanly."""

    @pytest.mark.parametrize("headers", [TEMPLATE_HEADERS, TEMPLATE_DISPLAY_HEADERS])
    def test_template_headers_detect_every_field(self, headers):
        mapping = map_columns(headers)

        assert mapping.missing_required() == []
        assert all(mapping.is_detected(f) for f in CanonicalField)
