"""
SQLAlchemy engine, session factory and declarative base.
The URL comes from database.url, else database.path (SQLite), else ~/.blinky/blinky.db.
"""
import importlib
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from blinky.core.errors import StoreError

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_DB_PATH = "~/.blinky/blinky.db"

# Modules whose tables must be registered on Base before create_all
MODEL_MODULES = (
    "blinky.core.models",
    "blinky.plugins.users.models",
    "blinky.plugins.assignments.models",
    "blinky.plugins.screentime.models",
    "blinky.plugins.friends.models",
)

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    One unit of work: commit on success, roll back on any error.
    SQLAlchemy failures surface as StoreError with the original exception chained.
    """
    if _SessionLocal is None:
        raise StoreError("Database not initialized. Call init_db() first.")
    session = _SessionLocal()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StoreError(f"Database error: {e.__class__.__name__}") from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _sqlite_url(path: str) -> str:
    db_path = Path(path).expanduser().resolve()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_path}"


def database_url(config_data: Optional[dict]) -> str:
    db_config = (config_data or {}).get("database") or {}
    if db_config.get("url"):
        return db_config["url"]
    return _sqlite_url(db_config.get("path") or DEFAULT_DB_PATH)


def init_db(config_data: Optional[dict] = None, db_url: Optional[str] = None) -> None:
    """
    Create the engine and any missing tables. No-op when already initialized.
    db_url overrides the config (tests pass a temporary SQLite file).
    """
    global _engine, _SessionLocal

    if _engine is not None:
        logger.debug("Database already initialized")
        return

    url = db_url or database_url(config_data)
    engine = create_engine(url, echo=False)
    for module in MODEL_MODULES:
        importlib.import_module(module)
    Base.metadata.create_all(engine)

    _engine = engine
    _SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    logger.info(f"Database initialized: {url.split('?')[0]}")


def close_db() -> None:
    """Dispose the engine so init_db() can run again (shutdown, tests)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
