"""Generate database session"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import DatabaseSettings
from src.db.schema import Base


def build_session_factory(settings: DatabaseSettings) -> sessionmaker[Session]:
    """Connect to the configured database, making sure all tables exist"""
    engine = create_engine(settings.url, echo=settings.echo)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)


def get_db(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
