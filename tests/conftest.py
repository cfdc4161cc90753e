"""Shared pytest fixtures for club-roster-import-api tests."""
import io
import os
import sys
from pathlib import Path
from datetime import date
from typing import AsyncGenerator, Generator, List, Sequence

# Settings are read at import time; pin the test environment first.
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_JSON"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("API_KEY", None)

import pytest
from openpyxl import Workbook
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from roster_api.models import Base, Club, Gender, Player  # noqa: E402
from roster_api.services.imports.schemas import ImportRow  # noqa: E402

# Fixed "today" so graduation-year bounds do not drift
TODAY = date(2026, 10, 17)
ACTING_USER = "user-42"


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create fresh test database session with isolated in-memory database."""
    # StaticPool keeps one connection, so every session (including the one the
    # app uses during a request) sees the same in-memory database.
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(bind=engine)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def club(db_session: Session) -> Club:
    """A club with an empty roster."""
    club = Club(name="Riverside FC")
    db_session.add(club)
    db_session.commit()
    return club


@pytest.fixture
def other_club(db_session: Session) -> Club:
    club = Club(name="Lakeside United")
    db_session.add(club)
    db_session.commit()
    return club


@pytest.fixture
def existing_player(db_session: Session, club: Club) -> Player:
    """A player already on the club roster."""
    player = Player(
        club_id=club.id,
        first_name="Jane",
        last_name="Smith",
        date_of_birth=date(2011, 3, 2),
        gender=Gender.FEMALE,
        graduation_year=2029,
        created_by_id="seed",
    )
    db_session.add(player)
    db_session.commit()
    return player


@pytest.fixture(scope="function")
async def async_client(db_session: Session) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing FastAPI endpoints."""
    from roster_api.main import app
    from roster_api.core.database import get_db

    # Override database dependency to use test session
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Builders
# ============================================================================

def csv_bytes(*lines: str, encoding: str = "utf-8") -> bytes:
    """Join CSV lines into file content."""
    return ("\r\n".join(lines) + "\r\n").encode(encoding)


def xlsx_bytes(rows: Sequence[Sequence[object]]) -> bytes:
    """Build a single-sheet workbook; the first row is the header row."""
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def make_row(row_number: int = 1, **overrides) -> ImportRow:
    """A valid ImportRow, with any field overridden."""
    values = dict(
        row_number=row_number,
        first_name="John",
        last_name="Doe",
        date_of_birth=date(2010, 5, 15),
        gender=Gender.MALE,
        graduation_year=2028,
        jersey_number=10,
    )
    values.update(overrides)
    return ImportRow(**values)


def make_rows(count: int) -> List[ImportRow]:
    """Distinct valid rows numbered from 1."""
    return [
        make_row(i, first_name=f"Player{i}", date_of_birth=date(2010, 1, min(i, 28)))
        for i in range(1, count + 1)
    ]
