"""
Database models for the club roster and the player import audit trail.
"""
import enum
import uuid

from sqlalchemy import Column, String, Integer, DateTime, Date, ForeignKey, Boolean, Text, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship, declarative_base

from roster_api.utils.school_year import utc_now

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class Gender(str, enum.Enum):
    """Player gender as recorded on the roster."""
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class ImportStatus(str, enum.Enum):
    """Lifecycle of one import attempt: Processing -> Completed | Failed."""
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    FAILED = "Failed"


class Club(Base):
    """A club owning a roster of players."""
    __tablename__ = "clubs"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    players = relationship("Player", back_populates="club", cascade="all, delete-orphan")
    imports = relationship("PlayerImport", back_populates="club", cascade="all, delete-orphan")


class Player(Base):
    """Roster entry. (first_name, last_name, date_of_birth) is the natural key within a club."""
    __tablename__ = "players"

    id = Column(String(36), primary_key=True, default=_new_id)
    club_id = Column(String(36), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(SQLEnum(Gender, native_enum=False, length=16), nullable=True)
    graduation_year = Column(Integer, nullable=False)
    jersey_number = Column(Integer, nullable=True)
    tryout_number = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    created_by_id = Column(String(64), nullable=False)

    club = relationship("Club", back_populates="players")

    __table_args__ = (
        Index('ix_players_natural_key', 'club_id', 'last_name', 'first_name', 'date_of_birth'),
    )


class PlayerImport(Base):
    """Audit header for one import attempt. Never deleted by the import pipeline."""
    __tablename__ = "player_imports"

    id = Column(String(36), primary_key=True, default=_new_id)
    club_id = Column(String(36), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    status = Column(SQLEnum(ImportStatus, native_enum=False, length=16), nullable=False,
                    default=ImportStatus.PROCESSING, index=True)
    total_rows = Column(Integer, nullable=False, default=0)
    successful_rows = Column(Integer, nullable=False, default=0)
    failed_rows = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    completed_at = Column(DateTime, nullable=True)
    created_by_id = Column(String(64), nullable=False)

    club = relationship("Club", back_populates="imports")
    rows = relationship(
        "PlayerImportRow",
        back_populates="player_import",
        cascade="all, delete-orphan",
        order_by="PlayerImportRow.row_number",
    )


class PlayerImportRow(Base):
    """Outcome of one input row of an import attempt. Written once."""
    __tablename__ = "player_import_rows"

    id = Column(String(36), primary_key=True, default=_new_id)
    import_id = Column(String(36), ForeignKey("player_imports.id", ondelete="CASCADE"), nullable=False, index=True)
    row_number = Column(Integer, nullable=False)
    is_success = Column(Boolean, nullable=False, default=False)
    error_message = Column(Text, nullable=True)
    created_player_id = Column(String(36), ForeignKey("players.id", ondelete="SET NULL"), nullable=True)
    raw_data = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=utc_now)
    created_by_id = Column(String(64), nullable=False)

    player_import = relationship("PlayerImport", back_populates="rows")
    created_player = relationship("Player")

    __table_args__ = (
        Index('ix_player_import_rows_import_row', 'import_id', 'row_number'),
    )
