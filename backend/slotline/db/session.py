"""
Database session and engine.
"""
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from slotline.config import settings

engine = create_engine(
    settings.database_url,
    pool_size=8,
    max_overflow=10,
    pool_pre_ping=True,
    pool_recycle=300,
    pool_timeout=30,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    All-or-nothing unit of work: commit when the block finishes, roll back and
    re-raise on any exception so partial transitions are never observable.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
