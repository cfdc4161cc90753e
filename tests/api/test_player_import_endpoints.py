"""
HTTP endpoint integration tests for the bulk player import API.

These tests verify that FastAPI endpoints:
- Return correct HTTP status codes
- Validate request/response schemas
- Translate import errors into structured error bodies
- Require the acting-user header where an audit is written

Uses httpx AsyncClient over ASGITransport for in-memory HTTP testing.
"""
import io
from unittest.mock import patch

import pytest
from openpyxl import load_workbook

from conftest import ACTING_USER, csv_bytes
from roster_api.core.logging import acting_user_var
from roster_api.services.imports.orchestrator import PlayerImportOrchestrator
from roster_api.services.imports.schemas import ImportResult

pytestmark = pytest.mark.integration

USER_HEADERS = {"X-User-Id": ACTING_USER}


def _bulk_url(club_id: str, suffix: str = "") -> str:
    return f"/api/v1/clubs/{club_id}/players/bulk{suffix}"


def _row_payload(row_number: int, **overrides) -> dict:
    payload = {
        "row_number": row_number,
        "first_name": f"Player{row_number}",
        "last_name": "Doe",
        "date_of_birth": "2010-05-15",
        "gender": "Male",
        "graduation_year": 2028,
        "jersey_number": row_number,
        "is_marked_for_import": True,
    }
    payload.update(overrides)
    return payload


# =============================================================================
# VALIDATE / REVALIDATE
# =============================================================================

class TestValidateEndpoint:

    async def test_validate_csv(self, async_client, club):
        """Should return rows, mappings and counts for a valid upload."""
        content = csv_bytes("FirstName,LastName,DOB,Sex", "John,Doe,2010-05-15,M")

        response = await async_client.post(
            _bulk_url(club.id, "/validate"),
            files={"file": ("roster.csv", content, "text/csv")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["valid_count"] == 1
        assert body["missing_required_columns"] == []
        assert body["rows"][0]["is_valid"] is True
        assert body["rows"][0]["graduation_year"] == 2028
        assert body["rows"][0]["gender"] == "Male"

    async def test_missing_columns_is_not_an_error(self, async_client, club):
        content = csv_bytes("First,Last", "John,Doe")

        response = await async_client.post(
            _bulk_url(club.id, "/validate"),
            files={"file": ("roster.csv", content, "text/csv")},
        )

        assert response.status_code == 200
        assert response.json()["missing_required_columns"] == ["DateOfBirth", "Gender"]
        assert response.json()["rows"] == []

    @pytest.mark.parametrize("file_name,content,code", [
        ("roster.txt", b"first_name\nJohn\n", "UNSUPPORTED_FILE_FORMAT"),
        ("roster.csv", b"", "EMPTY_FILE"),
        ("roster.xlsx", b"not a workbook", "MALFORMED_FILE"),
    ])
    async def test_file_errors_are_400(self, async_client, club, file_name, content, code):
        response = await async_client.post(
            _bulk_url(club.id, "/validate"),
            files={"file": (file_name, content, "application/octet-stream")},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == code
        assert response.json()["detail"]["detail"]


class TestRevalidateEndpoint:

    async def test_edited_row_revalidated(self, async_client, club):
        rows = [_row_payload(1, errors=["stale"], is_valid=False), _row_payload(2, gender=None)]

        response = await async_client.post(_bulk_url(club.id, "/revalidate"), json=rows)

        assert response.status_code == 200
        body = response.json()
        assert body["rows"][0]["errors"] == []
        assert body["rows"][0]["is_valid"] is True
        assert body["valid_count"] == 1
        assert body["error_count"] == 1

    async def test_empty_list_is_400(self, async_client, club):
        response = await async_client.post(_bulk_url(club.id, "/revalidate"), json=[])

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "EMPTY_FILE"


# =============================================================================
# COMMIT / STATUS
# =============================================================================

class TestCommitEndpoint:

    async def test_commit_and_read_status(self, async_client, club):
        payload = {"rows": [_row_payload(1), _row_payload(2, is_marked_for_import=False)],
                   "file_name": "roster.csv"}

        response = await async_client.post(_bulk_url(club.id), json=payload, headers=USER_HEADERS)

        assert response.status_code == 200
        result = response.json()
        assert result["created_count"] == 1
        assert result["skipped_count"] == 1

        status = await async_client.get(_bulk_url(club.id, f"/imports/{result['import_id']}"))
        assert status.status_code == 200
        body = status.json()
        assert body["status"] == "Completed"
        assert body["file_name"] == "roster.csv"
        assert body["created_by_id"] == ACTING_USER
        assert [r["is_success"] for r in body["rows"]] == [True, False]

    async def test_rejected_commit_is_400_with_import_id(self, async_client, club):
        payload = {"rows": [_row_payload(1), _row_payload(2, first_name="")]}

        response = await async_client.post(_bulk_url(club.id), json=payload, headers=USER_HEADERS)

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "IMPORT_REJECTED"
        assert detail["import_id"]

        status = await async_client.get(_bulk_url(club.id, f"/imports/{detail['import_id']}"))
        assert status.json()["failed_rows"] == 1
        assert status.json()["successful_rows"] == 0

    async def test_acting_user_required(self, async_client, club):
        response = await async_client.post(_bulk_url(club.id), json={"rows": [_row_payload(1)]})

        assert response.status_code == 401

    async def test_acting_user_in_log_context(self, async_client, club):
        """Should expose the X-User-Id value to logging while the endpoint runs."""
        seen = {}

        async def fake_commit(self, club_id, rows, acting_user_id, file_name="manual-entry", today=None):
            seen["user"] = acting_user_var.get()
            return ImportResult(import_id="import-1", created_count=len(rows), skipped_count=0)

        with patch.object(PlayerImportOrchestrator, "commit_rows", fake_commit):
            response = await async_client.post(
                _bulk_url(club.id), json={"rows": [_row_payload(1)]}, headers=USER_HEADERS
            )

        assert response.status_code == 200
        assert seen["user"] == ACTING_USER

    async def test_unknown_import_is_404(self, async_client, club):
        response = await async_client.get(_bulk_url(club.id, "/imports/does-not-exist"))

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "IMPORT_NOT_FOUND"


class TestFileImportEndpoint:

    async def test_import_file(self, async_client, club):
        content = csv_bytes("first_name,last_name,dob,gender", "John,Doe,2010-05-15,M", "Jane,Roe,2011-01-01,F")

        response = await async_client.post(
            _bulk_url(club.id, "/file"),
            files={"file": ("roster.csv", content, "text/csv")},
            headers=USER_HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["created_count"] == 2

    async def test_missing_columns_is_400(self, async_client, club):
        response = await async_client.post(
            _bulk_url(club.id, "/file"),
            files={"file": ("roster.csv", csv_bytes("first_name", "John"), "text/csv")},
            headers=USER_HEADERS,
        )

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "MISSING_REQUIRED_COLUMNS"

        status = await async_client.get(_bulk_url(club.id, f"/imports/{detail['import_id']}"))
        assert status.json()["status"] == "Failed"


# =============================================================================
# TEMPLATE
# =============================================================================

class TestTemplateEndpoint:

    async def test_csv_template(self, async_client, club):
        response = await async_client.get(_bulk_url(club.id, "/template"))

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "player_import_template.csv" in response.headers["content-disposition"]
        lines = response.text.splitlines()
        assert lines[0] == "first_name,last_name,date_of_birth,gender,graduation_year,jersey_number,tryout_number"
        assert lines[1] == "John,Doe,2010-05-15,M,2028,10,"

    async def test_xlsx_template(self, async_client, club):
        response = await async_client.get(_bulk_url(club.id, "/template"), params={"format": "xlsx"})

        assert response.status_code == 200
        workbook = load_workbook(io.BytesIO(response.content))
        sheet = workbook.active
        assert sheet.cell(row=1, column=1).value == "First Name"
        assert sheet.cell(row=2, column=1).value == "John"

    async def test_template_round_trips_through_validation(self, async_client, club):
        """Should produce a file the validator accepts as-is."""
        template = await async_client.get(_bulk_url(club.id, "/template"), params={"format": "xlsx"})

        response = await async_client.post(
            _bulk_url(club.id, "/validate"),
            files={"file": ("template.xlsx", template.content, "application/octet-stream")},
        )

        assert response.status_code == 200
        assert response.json()["valid_count"] == 1

    async def test_unknown_format_is_400(self, async_client, club):
        response = await async_client.get(_bulk_url(club.id, "/template"), params={"format": "pdf"})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "UNSUPPORTED_FILE_FORMAT"
