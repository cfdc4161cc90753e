"""
Transport models for the player import pipeline.

ImportRow is both the parser's output and the unit clients send back for
revalidation and commit, so it carries its own error/warning state. Only the
input fields are trusted on the way back in: errors, warnings and duplicate
flags are recomputed server-side.
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field

from roster_api.models import Gender, ImportStatus


# ==================== ROWS ====================

class ImportRow(BaseModel):
    """One candidate player parsed from an upload or edited by the client."""
    id: UUID = Field(default_factory=uuid4, description="Stable key for UI edits")
    row_number: int = Field(..., ge=1, description="1-based position among non-blank rows")
    first_name: str = ""
    last_name: str = ""
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    graduation_year: Optional[int] = None
    jersey_number: Optional[int] = None
    tryout_number: Optional[int] = None
    is_graduation_year_computed: bool = False
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    is_duplicate_in_file: bool = False
    is_duplicate_in_database: bool = False
    is_marked_for_import: bool = True
    raw_cells: List[str] = Field(default_factory=list, description="Original cell text, kept for the audit trail")

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not self.errors


# ==================== VALIDATION RESPONSES ====================

class ColumnMappingResult(BaseModel):
    """How one canonical field was resolved against the uploaded headers."""
    field_name: str
    detected_column_name: Optional[str] = None
    is_required: bool
    is_detected: bool


class ValidationSummary(BaseModel):
    """Validation outcome of an upload or a revalidation pass."""
    rows: List[ImportRow]
    column_mappings: List[ColumnMappingResult] = Field(default_factory=list)
    missing_required_columns: List[str] = Field(default_factory=list)
    valid_count: int = 0
    error_count: int = 0
    warning_count: int = Field(0, description="Rows carrying at least one warning")
    duplicate_in_file_count: int = 0
    duplicate_in_database_count: int = 0

    @classmethod
    def from_rows(
        cls,
        rows: List[ImportRow],
        column_mappings: Optional[List[ColumnMappingResult]] = None,
        missing_required_columns: Optional[List[str]] = None,
    ) -> "ValidationSummary":
        """Build a summary whose counts are derived from the rows."""
        return cls(
            rows=rows,
            column_mappings=column_mappings or [],
            missing_required_columns=missing_required_columns or [],
            valid_count=sum(1 for r in rows if r.is_valid),
            error_count=sum(1 for r in rows if not r.is_valid),
            warning_count=sum(1 for r in rows if r.warnings),
            duplicate_in_file_count=sum(1 for r in rows if r.is_duplicate_in_file),
            duplicate_in_database_count=sum(1 for r in rows if r.is_duplicate_in_database),
        )


# ==================== COMMIT ====================

class BulkImportRequest(BaseModel):
    """Rows the client has reviewed and wants committed."""
    rows: List[ImportRow]
    file_name: str = Field("manual-entry", max_length=255, description="Name recorded on the import audit")


class ImportResult(BaseModel):
    """Outcome of a successful commit."""
    import_id: str
    created_count: int
    skipped_count: int = Field(..., description="Rows the client unmarked")


# ==================== AUDIT ====================

class ImportRowStatus(BaseModel):
    """Audit entry for one input row."""
    model_config = ConfigDict(from_attributes=True)

    row_number: int
    is_success: bool
    error_message: Optional[str] = None
    created_player_id: Optional[str] = None
    raw_data: str


class ImportStatusResponse(BaseModel):
    """Audit header of an import attempt together with its row entries."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    club_id: str
    file_name: str
    status: ImportStatus
    total_rows: int
    successful_rows: int
    failed_rows: int
    error_message: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    created_by_id: str
    rows: List[ImportRowStatus] = Field(default_factory=list)


# ==================== ERRORS ====================

class ErrorResponse(BaseModel):
    """Error body returned for import failures."""
    error: str
    detail: Optional[str] = None
