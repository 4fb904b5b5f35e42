"""
Database Connection Module

Builds the SQLAlchemy engine from the environment. DATABASE_URL wins;
otherwise POSTGRES_* variables select PostgreSQL; otherwise a local SQLite
file is used.
"""

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

DEFAULT_SQLITE_URL = "sqlite:///statements.db"


def get_database_url() -> str:
    """Resolve the database URL from the environment."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    if os.getenv("POSTGRES_HOST"):
        return (
            f"postgresql+psycopg2://{os.getenv('POSTGRES_USER', 'statements')}:"
            f"{os.getenv('POSTGRES_PASSWORD', 'password')}@"
            f"{os.getenv('POSTGRES_HOST')}:"
            f"{os.getenv('POSTGRES_PORT', '5432')}/"
            f"{os.getenv('POSTGRES_DB', 'statements')}"
        )

    return DEFAULT_SQLITE_URL


def create_db_engine(database_url: str | None = None) -> Engine:
    """Create an engine for the given or configured URL.

    Args:
        database_url: Explicit URL (resolved from the environment if omitted)

    Returns:
        SQLAlchemy engine
    """
    url = database_url or get_database_url()

    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )
