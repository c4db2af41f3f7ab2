"""Database layer for qifledger."""

from qifledger.database.base import Database
from qifledger.database.factories import create_sqlite_database
from qifledger.database.sqlalchemy_db import SQLAlchemyDatabase

__all__ = ["Database", "SQLAlchemyDatabase", "create_sqlite_database"]
