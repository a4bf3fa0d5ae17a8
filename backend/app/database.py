import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.orm.exc import StaleDataError

from backend.app.config import get_settings

logger = logging.getLogger(__name__)

DATABASE_URL = get_settings().database_url

# Create SQLAlchemy engine
engine = create_engine(
    DATABASE_URL, connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
)

# Create sessionmaker
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create tables in the database
def create_tables():
    from backend.app.models.models import Base
    Base.metadata.create_all(bind=engine)

# Dependency to get the database session
def get_db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def commit_scope(db: Session, action: str) -> Iterator[Session]:
    """Run a multi-step mutation with a single commit point.

    Everything flushed inside the block is committed together or rolled back
    together. Store failures are logged and surfaced as a generic error; a
    lost optimistic-lock race becomes a 409 so the caller can re-fetch.
    """
    try:
        yield db
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except StaleDataError:
        db.rollback()
        logger.warning("Concurrent modification while trying to %s", action)
        raise HTTPException(
            status_code=409,
            detail="The record was modified concurrently, please refresh and try again",
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Store failure while trying to %s", action)
        raise HTTPException(status_code=500, detail=f"Failed to {action}, please try again")
    except Exception:
        db.rollback()
        raise
