"""Database layer for chobo application."""

from chobo.database.base import Database
from chobo.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
