"""Unit tests for per-row validation.

Test Strategy:
1. A complete row has no errors
2. Each rule produces its message
3. Graduation-year bounds move with the current year
4. Computed graduation years add a warning only
5. reset_row_state clears previous results
"""
from datetime import date

import pytest

from conftest import TODAY, make_row
from roster_api.services.imports.validator import (
    max_graduation_year,
    reset_row_state,
    validate_row,
)


class TestValidateRow:
    """Test suite for validate_row."""

    def test_complete_row_is_valid(self):
        row = make_row()

        validate_row(row, today=TODAY)

        assert row.errors == []
        assert row.warnings == []
        assert row.is_valid is True

    # Required fields
    # ─────────────────────────────────────────────────────────────

    def test_missing_names(self):
        row = make_row(first_name="", last_name="   ")

        validate_row(row, today=TODAY)

        assert "First name is required." in row.errors
        assert "Last name is required." in row.errors
        assert row.is_valid is False

    def test_names_longer_than_100_characters(self):
        row = make_row(first_name="A" * 101, last_name="B" * 100)

        validate_row(row, today=TODAY)

        assert row.errors == ["First name must be 100 characters or less."]

    def test_missing_date_of_birth_and_gender(self):
        row = make_row(date_of_birth=None, gender=None)

        validate_row(row, today=TODAY)

        assert "Date of birth is required and must be a valid date." in row.errors
        assert "Gender is required. Use M/Male, F/Female, or O/Other." in row.errors

    def test_missing_graduation_year(self):
        row = make_row(graduation_year=None)

        validate_row(row, today=TODAY)

        assert row.errors == [
            "Graduation year is required (or provide date of birth for automatic calculation)."
        ]

    # Ranges
    # ─────────────────────────────────────────────────────────────

    @pytest.mark.parametrize("year", [1999, 2052])
    def test_graduation_year_out_of_range(self, year):
        row = make_row(graduation_year=year)

        validate_row(row, today=TODAY)

        assert row.errors == ["Graduation year must be between 2000 and 2051."]

    @pytest.mark.parametrize("year", [2000, 2051])
    def test_graduation_year_bounds_are_inclusive(self, year):
        row = make_row(graduation_year=year)

        validate_row(row, today=TODAY)

        assert row.errors == []

    def test_upper_bound_follows_current_year(self):
        """Should evaluate the horizon against the year of the call."""
        assert max_graduation_year(date(2026, 1, 1)) == 2051
        assert max_graduation_year(date(2030, 6, 1)) == 2055

    @pytest.mark.parametrize("number,valid", [(-1, False), (0, True), (999, True), (1000, False)])
    def test_jersey_number_range(self, number, valid):
        row = make_row(jersey_number=number)

        validate_row(row, today=TODAY)

        assert row.is_valid is valid
        if not valid:
            assert row.errors == ["Jersey number must be between 0 and 999."]

    @pytest.mark.parametrize("number,valid", [(-1, False), (0, True), (9999, True), (10000, False)])
    def test_tryout_number_range(self, number, valid):
        row = make_row(tryout_number=number)

        validate_row(row, today=TODAY)

        assert row.is_valid is valid
        if not valid:
            assert row.errors == ["Tryout number must be between 0 and 9999."]

    def test_optional_numbers_may_be_absent(self):
        row = make_row(jersey_number=None, tryout_number=None)

        validate_row(row, today=TODAY)

        assert row.is_valid is True

    # Warnings
    # ─────────────────────────────────────────────────────────────

    def test_computed_graduation_year_is_a_warning(self):
        row = make_row(graduation_year=2028, is_graduation_year_computed=True)

        validate_row(row, today=TODAY)

        assert row.is_valid is True
        assert row.warnings == ["Graduation year computed as 2028 based on date of birth."]
        assert "computed" in row.warnings[0]

    def test_all_errors_collected_at_once(self):
        """Should report every failing rule, not just the first."""
        row = make_row(first_name="", date_of_birth=None, gender=None, jersey_number=5000)

        validate_row(row, today=TODAY)

        assert len(row.errors) == 4


class TestResetRowState:
    """Test suite for clearing validation results."""

    def test_clears_errors_warnings_and_flags(self):
        row = make_row(
            errors=["stale"],
            warnings=["stale"],
            is_duplicate_in_file=True,
            is_duplicate_in_database=True,
        )

        reset_row_state(row)

        assert row.errors == []
        assert row.warnings == []
        assert row.is_duplicate_in_file is False
        assert row.is_duplicate_in_database is False

    def test_revalidating_does_not_accumulate(self):
        row = make_row(gender=None)

        for _ in range(3):
            reset_row_state(row)
            validate_row(row, today=TODAY)

        assert len(row.errors) == 1
