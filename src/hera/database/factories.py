"""Database factory functions for creating database instances."""

from pathlib import Path
from typing import Optional

from hera.config import Settings
from hera.database.sqlalchemy_db import SQLAlchemyDatabase


def default_database_url() -> str:
    """Return the default SQLite URL under ~/.hera/hera.db."""
    db_dir = Path.home() / ".hera"
    db_dir.mkdir(exist_ok=True)
    return f"sqlite:///{db_dir / 'hera.db'}"


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, defaults to
            ~/.hera/hera.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        return SQLAlchemyDatabase(default_database_url())
    return SQLAlchemyDatabase(f"sqlite:///{database_path}")


def create_database(settings: Settings) -> SQLAlchemyDatabase:
    """Create the database configured by the given settings.

    Args:
        settings: Application settings; database_url may be any SQLAlchemy URL

    Returns:
        SQLAlchemyDatabase instance
    """
    database_url = settings.database_url or default_database_url()
    return SQLAlchemyDatabase(database_url, echo=settings.echo_sql)
