"""Factory functions for creating database instances and resolving storage paths."""

import os
from pathlib import Path
from typing import Optional

from ledgerflow.database.sqlalchemy_db import SQLAlchemyDatabase


def _default_home() -> Path:
    home_dir = Path.home() / ".ledgerflow"
    home_dir.mkdir(exist_ok=True)
    return home_dir


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks LEDGERFLOW_DB_PATH
            environment variable, then defaults to ~/.ledgerflow/ledgerflow.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("LEDGERFLOW_DB_PATH")

    if database_path is None:
        database_path = str(_default_home() / "ledgerflow.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)


def resolve_upload_dir(upload_dir: Optional[str] = None) -> Path:
    """Resolve the directory uploaded statements are copied into.

    Args:
        upload_dir: Explicit directory. If None, checks LEDGERFLOW_UPLOAD_DIR
            environment variable, then defaults to ~/.ledgerflow/uploads/accounting

    Returns:
        Existing directory path
    """
    if upload_dir is None:
        upload_dir = os.environ.get("LEDGERFLOW_UPLOAD_DIR")

    if upload_dir is None:
        path = _default_home() / "uploads" / "accounting"
    else:
        path = Path(upload_dir)

    path.mkdir(parents=True, exist_ok=True)
    return path
