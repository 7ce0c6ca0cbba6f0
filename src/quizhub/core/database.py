"""Database connection and session management.

This module handles the database connection using SQLAlchemy. The engine is
built from ``DATABASE_URL``; request handlers receive their own session through
the ``get_db`` dependency, which tests replace with an in-memory database.
"""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from quizhub.config import DATA_DIR, DATABASE_URL
from quizhub.models.base import Base
# Import models to ensure they are registered with Base.metadata
import quizhub.models  # noqa: F401


def ensure_sqlite_dir(database_url: str, data_dir: Path = DATA_DIR) -> bool:
    """Create ``data_dir`` when ``database_url`` is a SQLite file inside it.

    In-memory databases and files elsewhere are left alone.

    Returns:
        True if the directory was created or already existed.
    """
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return False
    if not url.database or url.database == ":memory:":
        return False
    db_path = Path(url.database).resolve()
    data_dir = data_dir.resolve()
    if data_dir not in db_path.parents:
        return False
    data_dir.mkdir(parents=True, exist_ok=True)
    return True


connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    ensure_sqlite_dir(DATABASE_URL)
    connect_args = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """Dependency for getting a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
