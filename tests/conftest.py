"""Fixtures shared by the repository and database tests: one in-memory SQLite engine for the whole test run."""

from typing import Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.db.schema import Base

# StaticPool keeps the single in-memory connection alive between sessions
in_memory_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(autoflush=False, bind=in_memory_engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Fresh tables for every test. Dropped again at teardown."""
    Base.metadata.create_all(bind=in_memory_engine)
    session = TestSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=in_memory_engine)


@pytest.fixture
def db_session_shared() -> Generator[Session, None, None]:
    """A session on tables that outlive the test, like several requests hitting one database."""
    Base.metadata.create_all(bind=in_memory_engine)
    session = TestSession()
    try:
        yield session
    finally:
        session.close()
