"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from qifledger.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV_VAR = "QIFLEDGER_DB_PATH"
DEFAULT_DB_DIR_NAME = ".qifledger"
DEFAULT_DB_FILE_NAME = "qifledger.db"


def resolve_database_path(database_path: Optional[str] = None) -> Path:
    """Pick the SQLite file: the given path, then $QIFLEDGER_DB_PATH, then ~/.qifledger/qifledger.db.

    The default directory is created if it does not exist; explicit paths are
    used as given (with ``~`` expanded).
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV_VAR)
    if database_path is not None:
        return Path(database_path).expanduser()

    db_dir = Path.home() / DEFAULT_DB_DIR_NAME
    db_dir.mkdir(parents=True, exist_ok=True)
    return db_dir / DEFAULT_DB_FILE_NAME


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite-backed store (see resolve_database_path for the location)."""
    return SQLAlchemyDatabase(f"sqlite:///{resolve_database_path(database_path)}")
