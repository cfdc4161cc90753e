"""Player import orchestrator.

Coordinates the bulk import pipeline for a club roster:
- File reading and column mapping (validate-only and standalone flows)
- Row parsing, validation and duplicate detection
- All-or-nothing commit of reviewed rows
- Import audit trail (player_imports / player_import_rows)

Flows:
- validate_upload: file -> rows with errors/warnings, nothing written
- revalidate: client-edited rows -> same, nothing written
- commit_rows: reviewed rows -> players + audit, or audit only when rejected
- import_file: file -> players + audit in one call (no review step)

The commit either creates every marked row or none of them. The audit
record is created (and committed) before any work starts, so even a crashed or
cancelled import leaves a Failed record behind.
"""
import asyncio
import logging
from datetime import date
from typing import Dict, List, Optional, Tuple, Union, BinaryIO

from sqlalchemy.orm import Session

from roster_api.core import metrics
from roster_api.core.config import settings
from roster_api.models import ImportStatus, PlayerImport
from roster_api.repositories import PlayerRepository, PlayerImportRepository
from roster_api.services.imports.column_mapping import ColumnMapping, map_columns
from roster_api.services.imports.duplicate_detector import (
    existing_keys,
    flag_database_duplicates,
    flag_in_file_duplicates,
)
from roster_api.services.imports.errors import (
    EmptyImportFileError,
    ImportCommitError,
    ImportFileError,
    ImportLimitExceededError,
    ImportNotFoundError,
    ImportRejectedError,
    MissingRequiredColumnsError,
)
from roster_api.services.imports.file_reader import (
    ImportFile,
    file_extension,
    read_content,
    read_import_file,
)
from roster_api.services.imports.row_parser import (
    apply_computed_graduation_year,
    iter_parsed_rows,
)
from roster_api.services.imports.schemas import (
    ImportResult,
    ImportRow,
    ImportStatusResponse,
    ValidationSummary,
)
from roster_api.services.imports.validator import reset_row_state, validate_row
from roster_api.utils.school_year import utc_now

logger = logging.getLogger(__name__)

SKIPPED_ROW_MESSAGE = "Skipped: row was not marked for import."
BLOCKED_ROW_MESSAGE = "Not imported: other rows in this import failed validation."
CANCELLED_MESSAGE = "Import cancelled before completion. No players were created."
MAX_FILE_NAME_LENGTH = 255


def raw_data_for(row: ImportRow) -> str:
    """Pipe-joined original cells (or parsed fields for manual rows), truncated for storage."""
    if row.raw_cells:
        raw = "|".join(row.raw_cells)
    else:
        raw = "|".join(
            "" if value is None else str(getattr(value, "value", value))
            for value in (
                row.first_name,
                row.last_name,
                row.date_of_birth.isoformat() if row.date_of_birth else None,
                row.gender,
                row.graduation_year,
                row.jersey_number,
                row.tryout_number,
            )
        )
    return raw[:settings.IMPORT_RAW_DATA_MAX_LENGTH]


class PlayerImportOrchestrator:
    """
    Entry point for bulk player imports.

    All import operations (routes, scripts, tests) should go through this
    class rather than calling the parsing modules directly.
    """

    def __init__(self, db: Session):
        """
        Initialize the import orchestrator.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db
        self.players = PlayerRepository(db)
        self.imports = PlayerImportRepository(db)

    # ========================================================================
    # Validate-only flows (no writes)
    # ========================================================================

    async def validate_upload(
        self,
        club_id: str,
        source: Union[bytes, BinaryIO],
        file_name: str,
        today: Optional[date] = None
    ) -> ValidationSummary:
        """
        Parse and validate an uploaded file without importing anything.

        When required columns are missing the summary carries the mapping and
        the missing list, with no rows: the file is not parsed further.

        Raises:
            ImportFileError: Unsupported, malformed, empty or over-cap file
        """
        with metrics.player_import_duration_seconds.labels(operation="validate").time():
            import_file, mapping = self._read_and_map(source, file_name)
            column_mappings = mapping.to_results()

            missing = mapping.missing_required()
            if missing:
                metrics.record_file_outcome("missing_columns")
                logger.info(
                    f"Import file '{file_name}' is missing required columns: "
                    f"{', '.join(m.value for m in missing)}",
                    extra={"club_id": club_id, "file_name": file_name},
                )
                return ValidationSummary.from_rows(
                    [], column_mappings, [m.value for m in missing]
                )

            rows = await self._parse_rows(import_file, mapping)
            if not rows:
                raise EmptyImportFileError()

            await self._validate_rows(club_id, rows, today=today)
            summary = ValidationSummary.from_rows(rows, column_mappings)

        metrics.record_file_outcome("parsed")
        metrics.record_row_results(summary.valid_count, summary.error_count)
        logger.info(
            f"Validated '{file_name}': {summary.valid_count}/{len(rows)} valid, "
            f"{summary.warning_count} with warnings",
            extra={"club_id": club_id, "file_name": file_name, "rows": len(rows)},
        )
        return summary

    async def revalidate(
        self,
        club_id: str,
        rows: List[ImportRow],
        today: Optional[date] = None
    ) -> ValidationSummary:
        """
        Re-run validation on rows the client has edited.

        Previous errors, warnings and duplicate flags are discarded first, so
        running this twice on the same rows gives the same result.

        Raises:
            EmptyImportFileError: No rows submitted
            ImportLimitExceededError: More rows than IMPORT_MAX_ROWS
        """
        if not rows:
            raise EmptyImportFileError("No rows were submitted for validation.")
        self._check_row_count(len(rows))

        with metrics.player_import_duration_seconds.labels(operation="revalidate").time():
            await self._validate_rows(club_id, rows, today=today)
            summary = ValidationSummary.from_rows(rows)

        metrics.record_row_results(summary.valid_count, summary.error_count)
        logger.debug(
            f"Revalidated {len(rows)} rows: {summary.valid_count} valid",
            extra={"club_id": club_id},
        )
        return summary

    # ========================================================================
    # Commit flows
    # ========================================================================

    async def commit_rows(
        self,
        club_id: str,
        rows: List[ImportRow],
        acting_user_id: str,
        file_name: str = "manual-entry",
        today: Optional[date] = None
    ) -> ImportResult:
        """
        Import reviewed rows: every marked row is created, or none is.

        Client-supplied errors and validity are ignored; every row is
        validated again here.

        Raises:
            EmptyImportFileError: No rows submitted
            ImportLimitExceededError: More rows than IMPORT_MAX_ROWS
            ImportRejectedError: A marked row failed validation (audit kept)
            ImportCommitError: Unexpected failure (audit marked Failed)
        """
        if not rows:
            raise EmptyImportFileError("No rows were submitted for import.")
        self._check_row_count(len(rows))

        audit = self._start_audit(club_id, file_name, acting_user_id)
        return await self._commit_into(audit, club_id, rows, acting_user_id, today=today)

    async def import_file(
        self,
        club_id: str,
        source: Union[bytes, BinaryIO],
        file_name: str,
        acting_user_id: str,
        today: Optional[date] = None
    ) -> ImportResult:
        """
        Read, validate and commit a file in one step.

        Every parsed row is treated as marked for import. Any file-level
        problem (format, caps, missing columns, no rows) marks the audit
        record Failed before the error is raised.

        Raises:
            ImportFileError: File-level problem (audit marked Failed)
            ImportRejectedError: A row failed validation (audit kept)
            ImportCommitError: Unexpected failure (audit marked Failed)
        """
        audit = self._start_audit(club_id, file_name, acting_user_id)

        try:
            import_file, mapping = self._read_and_map(source, file_name)
            missing = mapping.missing_required()
            if missing:
                metrics.record_file_outcome("missing_columns")
                raise MissingRequiredColumnsError([m.value for m in missing])

            rows = await self._parse_rows(import_file, mapping)
            if not rows:
                raise EmptyImportFileError()
        except ImportFileError as e:
            e.import_id = audit.id
            self._fail_audit(audit, e.message)
            logger.warning(
                f"Import {audit.id} failed: {e.message}",
                extra={"club_id": club_id, "import_id": audit.id, "error_code": e.code},
            )
            raise
        except asyncio.CancelledError:
            self._cancel_audit(audit.id, club_id)
            raise

        metrics.record_file_outcome("parsed")
        for row in rows:
            row.is_marked_for_import = True

        return await self._commit_into(audit, club_id, rows, acting_user_id, today=today)

    def get_import_status(self, club_id: str, import_id: str) -> ImportStatusResponse:
        """
        Audit header and row entries of one import.

        Raises:
            ImportNotFoundError: Unknown id, or the import belongs to another club
        """
        player_import = self.imports.find_for_club(import_id, club_id)
        if player_import is None:
            raise ImportNotFoundError(import_id)
        return ImportStatusResponse.model_validate(player_import)

    # ========================================================================
    # Internals
    # ========================================================================

    def _check_row_count(self, count: int) -> None:
        if count > settings.IMPORT_MAX_ROWS:
            metrics.record_file_outcome("limit_exceeded")
            raise ImportLimitExceededError(
                f"Too many rows: {count}. A single import is limited to "
                f"{settings.IMPORT_MAX_ROWS} players."
            )

    def _read_and_map(
        self,
        source: Union[bytes, BinaryIO],
        file_name: str
    ) -> Tuple[ImportFile, ColumnMapping]:
        """Extension check, size cap, read, row cap, column mapping."""
        try:
            file_extension(file_name)
            content = read_content(source)
            if len(content) > settings.IMPORT_MAX_FILE_SIZE_BYTES:
                metrics.record_file_outcome("limit_exceeded")
                raise ImportLimitExceededError(
                    f"File is too large. Maximum size is {settings.max_file_size_mb} MB."
                )
            import_file = read_import_file(content, file_name)
        except ImportLimitExceededError:
            raise
        except ImportFileError as e:
            metrics.record_file_outcome(e.code.lower())
            raise

        self._check_row_count(len(import_file.rows))
        return import_file, map_columns(import_file.headers)

    async def _parse_rows(self, import_file: ImportFile, mapping: ColumnMapping) -> List[ImportRow]:
        rows = []
        for row in iter_parsed_rows(import_file, mapping):
            rows.append(row)
            await asyncio.sleep(0)
        return rows

    async def _validate_rows(
        self,
        club_id: str,
        rows: List[ImportRow],
        today: Optional[date] = None
    ) -> None:
        """Clear previous results, validate each row, then flag duplicates."""
        for row in rows:
            reset_row_state(row)
            apply_computed_graduation_year(row)
            validate_row(row, today=today)
            await asyncio.sleep(0)

        flag_in_file_duplicates(rows)
        stored = existing_keys(self.players.find_identity_fields(club_id))
        flag_database_duplicates(rows, stored)

        for row in rows:
            row.is_marked_for_import = row.is_valid

    def _start_audit(self, club_id: str, file_name: str, acting_user_id: str) -> PlayerImport:
        """Create and commit the Processing audit record."""
        audit = self.imports.start(
            club_id=club_id,
            file_name=(file_name or "manual-entry")[:MAX_FILE_NAME_LENGTH],
            created_by_id=acting_user_id,
        )
        self.imports.save()
        logger.info(
            f"Started player import {audit.id} for club {club_id}",
            extra={"club_id": club_id, "import_id": audit.id, "file_name": audit.file_name},
        )
        return audit

    def _fail_audit(self, audit: PlayerImport, message: str) -> None:
        audit.status = ImportStatus.FAILED
        audit.error_message = message
        audit.completed_at = utc_now()
        self.imports.save()
        metrics.record_commit(ImportStatus.FAILED.value)

    def _cancel_audit(self, import_id: str, club_id: str) -> None:
        """Discard pending writes and close a cancelled import as Failed."""
        self.imports.rollback()
        logger.warning(
            f"Player import {import_id} cancelled",
            extra={"club_id": club_id, "import_id": import_id},
        )
        audit = self.imports.find_by_id(import_id)
        if audit is not None:
            self._fail_audit(audit, CANCELLED_MESSAGE)

    async def _commit_into(
        self,
        audit: PlayerImport,
        club_id: str,
        rows: List[ImportRow],
        acting_user_id: str,
        today: Optional[date] = None
    ) -> ImportResult:
        """
        Validate server-side, then write players and audit rows in one transaction.

        Between the end of validation and the final commit there are no await
        points, so a cancelled request cannot leave half an import behind.
        """
        import_id = audit.id
        marked: List[ImportRow] = []

        with metrics.player_import_duration_seconds.labels(operation="commit").time():
            try:
                # Remember the client's choices; validation resets them
                wanted: Dict[int, bool] = {id(r): r.is_marked_for_import for r in rows}
                await self._validate_rows(club_id, rows, today=today)
                for row in rows:
                    row.is_marked_for_import = wanted[id(row)]

                marked = [r for r in rows if r.is_marked_for_import]
                invalid = [r for r in marked if not r.is_valid]
                audit.total_rows = len(rows)

                if invalid:
                    message = f"{len(invalid)} row(s) failed validation and were not imported."
                    self.imports.add_rows([
                        self._audit_row(
                            import_id, row, acting_user_id,
                            error_message=(
                                "; ".join(row.errors) if row.errors and row.is_marked_for_import
                                else BLOCKED_ROW_MESSAGE if row.is_marked_for_import
                                else SKIPPED_ROW_MESSAGE
                            ),
                        )
                        for row in rows
                    ])
                    audit.successful_rows = 0
                    audit.failed_rows = len(invalid)
                    audit.status = ImportStatus.COMPLETED
                    audit.error_message = message
                    audit.completed_at = utc_now()
                    self.imports.save()
                else:
                    message = None
                    created = self.players.create_many([
                        self._player_values(club_id, row, acting_user_id) for row in marked
                    ])
                    self.players.flush()
                    player_ids = {id(row): player.id for row, player in zip(marked, created)}

                    self.imports.add_rows([
                        self._audit_row(
                            import_id, row, acting_user_id,
                            is_success=row.is_marked_for_import,
                            created_player_id=player_ids.get(id(row)),
                            error_message=None if row.is_marked_for_import else SKIPPED_ROW_MESSAGE,
                        )
                        for row in rows
                    ])
                    audit.successful_rows = len(created)
                    audit.failed_rows = 0
                    audit.status = ImportStatus.COMPLETED
                    audit.completed_at = utc_now()
                    self.imports.save()

            except asyncio.CancelledError:
                self._cancel_audit(import_id, club_id)
                raise
            except Exception as e:
                self.imports.rollback()
                logger.error(
                    f"Player import {import_id} failed: {e}",
                    exc_info=True,
                    extra={"club_id": club_id, "import_id": import_id},
                )
                failed = self.imports.find_by_id(import_id)
                if failed is not None:
                    self._fail_audit(failed, f"Import failed: {e}")
                raise ImportCommitError(
                    "The import could not be completed. No players were created.",
                    import_id=import_id,
                ) from e

        if message is not None:
            metrics.record_commit("rejected")
            logger.info(
                f"Player import {import_id} rejected: {message}",
                extra={"club_id": club_id, "import_id": import_id, "failed_rows": len(invalid)},
            )
            raise ImportRejectedError(message, import_id=import_id)

        metrics.record_commit(ImportStatus.COMPLETED.value)
        skipped = len(rows) - len(marked)
        logger.info(
            f"Player import {import_id} completed: {len(marked)} created, {skipped} skipped",
            extra={
                "club_id": club_id,
                "import_id": import_id,
                "created": len(marked),
                "skipped": skipped,
            },
        )
        return ImportResult(import_id=import_id, created_count=len(marked), skipped_count=skipped)

    @staticmethod
    def _player_values(club_id: str, row: ImportRow, acting_user_id: str) -> Dict:
        return {
            "club_id": club_id,
            "first_name": row.first_name.strip(),
            "last_name": row.last_name.strip(),
            "date_of_birth": row.date_of_birth,
            "gender": row.gender,
            "graduation_year": row.graduation_year,
            "jersey_number": row.jersey_number,
            "tryout_number": row.tryout_number,
            "created_by_id": acting_user_id,
        }

    @staticmethod
    def _audit_row(
        import_id: str,
        row: ImportRow,
        acting_user_id: str,
        is_success: bool = False,
        created_player_id: Optional[str] = None,
        error_message: Optional[str] = None
    ) -> Dict:
        return {
            "import_id": import_id,
            "row_number": row.row_number,
            "is_success": is_success,
            "error_message": error_message,
            "created_player_id": created_player_id,
            "raw_data": raw_data_for(row),
            "created_by_id": acting_user_id,
        }
