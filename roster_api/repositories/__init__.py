"""
Repository layer for data access.

Usage:
    from roster_api.repositories import PlayerRepository, PlayerImportRepository
    from roster_api.core.database import SessionLocal

    db = SessionLocal()
    player_repo = PlayerRepository(db)
    players = player_repo.find_by_club(club_id)
    db.close()
"""

from roster_api.repositories.base import BaseRepository
from roster_api.repositories.player_repository import PlayerRepository
from roster_api.repositories.player_import_repository import PlayerImportRepository

__all__ = [
    "BaseRepository",
    "PlayerRepository",
    "PlayerImportRepository",
]
