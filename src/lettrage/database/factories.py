"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from lettrage.database.sqlalchemy_db import SQLAlchemyDatabase


def default_data_dir() -> Path:
    """Return ~/.lettrage, creating it if needed."""
    data_dir = Path.home() / ".lettrage"
    data_dir.mkdir(exist_ok=True)
    return data_dir


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks LETTRAGE_DB_PATH
            environment variable, then defaults to ~/.lettrage/lettrage.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("LETTRAGE_DB_PATH")

    if database_path is None:
        database_path = str(default_data_dir() / "lettrage.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)
