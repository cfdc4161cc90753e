"""
Exceptions raised by the player import pipeline.

Each carries a stable machine-readable `code` and the HTTP status the route
layer maps it to. Row-level problems (bad dates, missing names...) are never
exceptions; they are collected on the rows themselves.
"""
from typing import Optional, Sequence


class PlayerImportError(Exception):
    """Base exception for player import failures."""

    code = "IMPORT_ERROR"
    status_code = 400

    def __init__(self, message: str, import_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.import_id = import_id


# ---------------------------------------------------------------------------
# File-level problems (HTTP 400)
# ---------------------------------------------------------------------------

class ImportFileError(PlayerImportError):
    """The uploaded file could not be turned into rows."""

    code = "INVALID_FILE"


class UnsupportedFileFormatError(ImportFileError):
    """File extension is not one of the supported formats."""

    code = "UNSUPPORTED_FILE_FORMAT"

    def __init__(self, file_name: str, supported: Sequence[str]):
        super().__init__(
            f"Unsupported file format for '{file_name}'. "
            f"Supported formats: {', '.join(supported)}."
        )
        self.file_name = file_name


class MalformedFileError(ImportFileError):
    """Content could not be decoded or parsed."""

    code = "MALFORMED_FILE"


class EmptyImportFileError(ImportFileError):
    """File (or request) contains no data rows."""

    code = "EMPTY_FILE"

    def __init__(self, message: str = "The file contains no data rows."):
        super().__init__(message)


class ImportLimitExceededError(ImportFileError):
    """File size or row count is over the configured cap."""

    code = "IMPORT_LIMIT_EXCEEDED"


class MissingRequiredColumnsError(ImportFileError):
    """Required canonical fields were not found among the headers."""

    code = "MISSING_REQUIRED_COLUMNS"

    def __init__(self, missing: Sequence[str], import_id: Optional[str] = None):
        super().__init__(
            f"Missing required columns: {', '.join(missing)}.",
            import_id=import_id,
        )
        self.missing = list(missing)


# ---------------------------------------------------------------------------
# Commit outcomes
# ---------------------------------------------------------------------------

class ImportRejectedError(PlayerImportError):
    """Commit refused because marked rows failed validation. Nothing was written."""

    code = "IMPORT_REJECTED"


class ImportCommitError(PlayerImportError):
    """Unexpected failure while committing; the import is recorded as Failed."""

    code = "IMPORT_FAILED"
    status_code = 500


class ImportNotFoundError(PlayerImportError):
    """No import with that id exists for the club."""

    code = "IMPORT_NOT_FOUND"
    status_code = 404

    def __init__(self, import_id: str):
        super().__init__(f"Import {import_id} not found.", import_id=import_id)
