"""
Repository for import audit records (player_imports / player_import_rows).
"""
from typing import Optional, List, Any, Dict

from sqlalchemy.orm import selectinload

from roster_api.models import PlayerImport, PlayerImportRow, ImportStatus
from roster_api.repositories.base import BaseRepository


class PlayerImportRepository(BaseRepository[PlayerImport]):
    """Repository for player import audit headers and their row entries."""

    def __init__(self, db):
        super().__init__(PlayerImport, db)

    def start(self, club_id: str, file_name: str, created_by_id: str) -> PlayerImport:
        """Add a new import record in Processing state (not committed)."""
        return self.create(
            club_id=club_id,
            file_name=file_name,
            status=ImportStatus.PROCESSING,
            created_by_id=created_by_id,
        )

    def add_rows(self, items: List[Dict[str, Any]]) -> List[PlayerImportRow]:
        """Add row-level audit entries (not committed)."""
        rows = [PlayerImportRow(**item) for item in items]
        self.db.add_all(rows)
        return rows

    def find_for_club(self, import_id: str, club_id: str) -> Optional[PlayerImport]:
        """
        Find an import with its row entries, scoped to the owning club.

        Returns None when the import does not exist or belongs to another club.
        """
        return (
            self.db.query(PlayerImport)
            .options(
                selectinload(PlayerImport.rows).selectinload(PlayerImportRow.created_player)
            )
            .filter(PlayerImport.id == import_id, PlayerImport.club_id == club_id)
            .first()
        )
