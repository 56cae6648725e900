# database.py
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from config import DATABASE_URL, SQL_ECHO
from errors import PersistenceError

logger = logging.getLogger(__name__)


def build_engine(url: str):
    # SQLite (used by the tests) needs one shared connection across threads.
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=SQL_ECHO,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=SQL_ECHO, pool_pre_ping=True)


# The create_engine is the starting point for any SQLAlchemy application.
engine = build_engine(DATABASE_URL)

# Each instance of the SessionLocal class will be a new database session.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for our models to inherit from.
Base = declarative_base()


# Dependency to get a DB session for each request
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session):
    """Run a block as one unit of work: commit on success, roll back on any error.

    Storage failures come out as ``PersistenceError``; anything else is
    re-raised untouched after the rollback.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Transaction rolled back: %s", exc)
        raise PersistenceError("Could not save changes, nothing was written") from exc
    except Exception:
        db.rollback()
        logger.warning("Transaction rolled back after an application error")
        raise
