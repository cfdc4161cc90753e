"""
Database models.

Usage:
    from roster_api.models import Player, PlayerImport, PlayerImportRow
"""
from roster_api.models.models import (
    Base,
    Gender,
    ImportStatus,
    Club,
    Player,
    PlayerImport,
    PlayerImportRow,
)

__all__ = [
    "Base",
    "Gender",
    "ImportStatus",
    "Club",
    "Player",
    "PlayerImport",
    "PlayerImportRow",
]
