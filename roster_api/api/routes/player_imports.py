"""Bulk player import API routes.

Provides endpoints for:
- Validating an uploaded roster file (nothing is written)
- Revalidating rows after client-side edits
- Committing reviewed rows (all-or-nothing)
- Importing a file in one step
- Import audit status
- Downloading an import template

Base path: /api/v1/clubs/{club_id}/players/bulk
"""
import logging
from typing import List, NoReturn

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, Response, UploadFile
from sqlalchemy.orm import Session

from roster_api.core.auth import get_acting_user_id, get_api_key
from roster_api.core.database import get_db
from roster_api.core.rate_limit import rate_limit_uploads
from roster_api.services.imports.errors import PlayerImportError
from roster_api.services.imports.orchestrator import PlayerImportOrchestrator
from roster_api.services.imports.schemas import (
    BulkImportRequest,
    ErrorResponse,
    ImportResult,
    ImportRow,
    ImportStatusResponse,
    ValidationSummary,
)
from roster_api.services.imports.template_service import build_template

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/clubs/{club_id}/players/bulk",
    tags=["player-imports"],
    dependencies=[Depends(get_api_key)],
    responses={
        400: {"model": ErrorResponse},
        401: {"description": "Missing credentials"},
    },
)


def get_orchestrator(db: Session = Depends(get_db)) -> PlayerImportOrchestrator:
    """Dependency to get player import orchestrator instance."""
    return PlayerImportOrchestrator(db)


def _raise_http(error: PlayerImportError) -> NoReturn:
    """Translate an import error into its HTTP response."""
    detail = {"error": error.code, "detail": error.message}
    if error.import_id:
        detail["import_id"] = error.import_id
    raise HTTPException(status_code=error.status_code, detail=detail) from error


# ==================== VALIDATION ====================

@router.post("/validate", response_model=ValidationSummary)
@rate_limit_uploads
async def validate_import_file(
    request: Request,
    club_id: str,
    file: UploadFile = File(..., description="Roster file (.csv or .xlsx)"),
    orchestrator: PlayerImportOrchestrator = Depends(get_orchestrator)
) -> ValidationSummary:
    """
    Parse and validate a roster file without importing it.

    Returns every parsed row with its errors and warnings, how each column
    was mapped, and summary counts. When required columns are missing the
    response lists them and contains no rows.
    """
    content = await file.read()
    try:
        return await orchestrator.validate_upload(club_id, content, file.filename or "")
    except PlayerImportError as e:
        logger.info(f"Rejected import file '{file.filename}': {e.message}")
        _raise_http(e)


@router.post("/revalidate", response_model=ValidationSummary)
async def revalidate_rows(
    club_id: str,
    rows: List[ImportRow],
    orchestrator: PlayerImportOrchestrator = Depends(get_orchestrator)
) -> ValidationSummary:
    """
    Re-run validation on edited rows.

    Errors, warnings and duplicate flags sent by the client are discarded
    and recomputed.
    """
    try:
        return await orchestrator.revalidate(club_id, rows)
    except PlayerImportError as e:
        _raise_http(e)


# ==================== COMMIT ====================

@router.post("", response_model=ImportResult, responses={500: {"model": ErrorResponse}})
async def import_players(
    club_id: str,
    payload: BulkImportRequest,
    acting_user_id: str = Depends(get_acting_user_id),
    orchestrator: PlayerImportOrchestrator = Depends(get_orchestrator)
) -> ImportResult:
    """
    Commit reviewed rows.

    Every row marked for import is created, or none is: when any marked row
    fails validation the request is rejected with 400 and the attempt is
    still recorded in the import audit.
    """
    try:
        return await orchestrator.commit_rows(
            club_id, payload.rows, acting_user_id, file_name=payload.file_name
        )
    except PlayerImportError as e:
        _raise_http(e)


@router.post("/file", response_model=ImportResult, responses={500: {"model": ErrorResponse}})
@rate_limit_uploads
async def import_players_from_file(
    request: Request,
    club_id: str,
    file: UploadFile = File(..., description="Roster file (.csv or .xlsx)"),
    acting_user_id: str = Depends(get_acting_user_id),
    orchestrator: PlayerImportOrchestrator = Depends(get_orchestrator)
) -> ImportResult:
    """
    Read, validate and import a roster file in one step.

    File-level problems are recorded as a Failed import; row validation
    failures reject the whole file.
    """
    content = await file.read()
    try:
        return await orchestrator.import_file(
            club_id, content, file.filename or "", acting_user_id
        )
    except PlayerImportError as e:
        _raise_http(e)


# ==================== STATUS & TEMPLATE ====================

@router.get("/imports/{import_id}", response_model=ImportStatusResponse,
            responses={404: {"model": ErrorResponse}})
async def get_import_status(
    club_id: str,
    import_id: str,
    orchestrator: PlayerImportOrchestrator = Depends(get_orchestrator)
) -> ImportStatusResponse:
    """Audit record of one import with its per-row outcomes."""
    try:
        return orchestrator.get_import_status(club_id, import_id)
    except PlayerImportError as e:
        _raise_http(e)


@router.get("/template")
async def download_template(
    club_id: str,
    format: str = Query("csv", description="Template format: csv or xlsx")
) -> Response:
    """Download an import template with the expected headers and one example row."""
    try:
        template = build_template(format)
    except PlayerImportError as e:
        _raise_http(e)

    return Response(
        content=template.content,
        media_type=template.media_type,
        headers={"Content-Disposition": f'attachment; filename="{template.file_name}"'},
    )
