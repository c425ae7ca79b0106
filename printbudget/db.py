"""Database utilities for the PrintBudget pricing service."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, Optional

from sqlmodel import Session, SQLModel, create_engine

PROJECT_ROOT = Path(__file__).resolve().parents[1]

logger = logging.getLogger(__name__)


def default_sqlite_url() -> str:
    """SQLite file under PRINTBUDGET_DATA_DIR (relative paths resolve against the project root)."""
    data_dir = Path(os.environ.get("PRINTBUDGET_DATA_DIR", "data"))
    if not data_dir.is_absolute():
        data_dir = PROJECT_ROOT / data_dir
    data_dir.mkdir(parents=True, exist_ok=True)
    db_file = (data_dir / os.environ.get("PRINTBUDGET_DB_FILENAME", "printbudget.db")).resolve()
    return f"sqlite:///{db_file}"


def create_db_engine(database_url: Optional[str] = None):
    database_url = database_url or os.environ.get("DATABASE_URL") or default_sqlite_url()
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args)


engine = create_db_engine()


def init_db(target_engine=None) -> None:
    """Create database tables if they don't exist yet."""
    target_engine = target_engine or engine
    logger.info("Creating tables on %s", target_engine.url.get_backend_name())
    SQLModel.metadata.create_all(target_engine)


def get_session() -> Iterator[Session]:
    with Session(engine) as session:
        yield session
