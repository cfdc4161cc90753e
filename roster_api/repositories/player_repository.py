"""
Player Repository for roster data access.

Usage:
    repo = PlayerRepository(db)
    players = repo.find_by_club(club_id)
    keys = repo.find_identity_fields(club_id)
"""
from datetime import date
from typing import List, Tuple

from roster_api.models import Player
from roster_api.repositories.base import BaseRepository


class PlayerRepository(BaseRepository[Player]):
    """Repository for club roster players."""

    def __init__(self, db):
        super().__init__(Player, db)

    def find_by_club(self, club_id: str) -> List[Player]:
        """All players stored for a club, ordered by name."""
        return (
            self.db.query(Player)
            .filter(Player.club_id == club_id)
            .order_by(Player.last_name, Player.first_name)
            .all()
        )

    def find_identity_fields(self, club_id: str) -> List[Tuple[str, str, date]]:
        """
        (first_name, last_name, date_of_birth) for every player in a club.

        Only the natural-key columns are loaded; duplicate detection does not
        need full entities.
        """
        rows = (
            self.db.query(Player.first_name, Player.last_name, Player.date_of_birth)
            .filter(Player.club_id == club_id)
            .all()
        )
        return [(row.first_name, row.last_name, row.date_of_birth) for row in rows]

    def count_for_club(self, club_id: str) -> int:
        """Number of players stored for a club."""
        return self.count(Player.club_id == club_id)
