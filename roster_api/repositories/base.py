"""
Base repository class for data access layer.

The repository pattern provides:
1. Separation of data access logic from business logic
2. Single place for query logic (easier to maintain)
3. Easier testing (can mock repositories)
4. Consistent interface for data operations

Transaction boundaries belong to the caller: repositories add and flush,
services decide when to commit or roll back.

Example:
    class PlayerRepository(BaseRepository[Player]):
        def find_by_club(self, club_id: str) -> List[Player]:
            return self.db.query(Player).filter(Player.club_id == club_id).all()
"""
from abc import ABC
from typing import TypeVar, Generic, Type, Optional, List, Any, Dict
from sqlalchemy import func
from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseRepository(Generic[T], ABC):
    """
    Base repository class providing common data access methods.

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        db: The database session
    """

    def __init__(self, model_type: Type[T], db: Session):
        self.model_type = model_type
        self.db = db

    # ========================================================================
    # Reads
    # ========================================================================

    def find_by_id(self, id: str) -> Optional[T]:
        """Find a single record by ID."""
        return self.db.query(self.model_type).filter(self.model_type.id == id).first()

    def count(self, *criterion) -> int:
        """Count records matching optional criterion."""
        query = self.db.query(func.count(self.model_type.id))
        if criterion:
            query = query.filter(*criterion)
        return query.scalar() or 0

    # ========================================================================
    # Writes (not committed)
    # ========================================================================

    def create(self, **kwargs) -> T:
        """
        Create a new record.

        Returns:
            The created record (not yet committed to database)
        """
        instance = self.model_type(**kwargs)
        self.db.add(instance)
        return instance

    def create_many(self, items: List[Dict[str, Any]]) -> List[T]:
        """
        Create multiple records in one batch.

        Args:
            items: List of dictionaries with record data

        Returns:
            List of created records, in input order (not yet committed)
        """
        instances = [self.model_type(**item) for item in items]
        self.db.add_all(instances)
        return instances

    # ========================================================================
    # Session control
    # ========================================================================

    def save(self) -> None:
        """Commit pending changes to the database."""
        self.db.commit()

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.db.flush()

    def rollback(self) -> None:
        """Rollback pending changes."""
        self.db.rollback()
