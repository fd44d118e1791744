"""Database layer for hera application."""

from hera.database.base import Database
from hera.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
