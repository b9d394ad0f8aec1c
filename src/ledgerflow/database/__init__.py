"""Database layer for ledgerflow."""

from ledgerflow.database.base import Database, UnitOfWork
from ledgerflow.database.factories import create_sqlite_database

__all__ = ["Database", "UnitOfWork", "create_sqlite_database"]
