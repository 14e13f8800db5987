"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.db.schema import Base
from src.db.sql_repository import SQLLedgerStore

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

START_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def file_sessions(tmp_path: Path) -> Generator[sessionmaker[Session], None, None]:
    """Sessions with their own connections to one file database, so calls can overlap like concurrent requests."""
    file_engine = create_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    Base.metadata.create_all(bind=file_engine)
    try:
        yield sessionmaker(autoflush=False, bind=file_engine)
    finally:
        file_engine.dispose()


@pytest.fixture
def sql_store(db_session_repo: Session) -> SQLLedgerStore:
    return SQLLedgerStore(db_session_repo)


@pytest.fixture
def ticking_clock() -> Callable[[], datetime]:
    """Every call is one second later than the previous one."""
    ticks = iter(range(10_000))

    def _now() -> datetime:
        return START_TIME + timedelta(seconds=next(ticks))

    return _now
