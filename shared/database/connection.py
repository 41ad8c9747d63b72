"""Database connection management using PyDAL."""

# flake8: noqa: E501


import logging
import os
import time
from typing import Optional

from pydal import DAL

logger = logging.getLogger(__name__)


def build_database_url() -> str:
    """
    Build a PyDAL database URI from environment variables.

    Environment Variables:
        DATABASE_URL: Full database URI (takes precedence if set)
        DB_TYPE: Database type (postgresql, mysql, mariadb, sqlite) - default: postgresql
        DB_HOST: Database host - default: localhost
        DB_PORT: Database port - default: 5432 (PostgreSQL) or 3306 (MySQL/MariaDB)
        DB_NAME: Database name - default: collections
        DB_USER: Database username - default: collections
        DB_PASSWORD: Database password - default: collections

    Returns:
        Database URI in PyDAL format (postgres:// rather than postgresql://)
    """
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return normalize_url(database_url)

    db_type = os.getenv("DB_TYPE", "postgres").lower()
    db_host = os.getenv("DB_HOST", "localhost")
    db_port = os.getenv("DB_PORT", "")
    db_name = os.getenv("DB_NAME", "collections")
    db_user = os.getenv("DB_USER", "collections")
    db_password = os.getenv("DB_PASSWORD", "collections")

    if db_type == "sqlite":
        return f"sqlite://{db_name}.sqlite"

    if db_type in ["mysql", "mariadb", "mariadb-galera"]:
        db_port = db_port or "3306"
        return f"mysql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}?set_encoding=utf8mb4"

    if db_type in ["postgresql", "postgres"]:
        db_port = db_port or "5432"
        return f"postgres://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"

    raise ValueError(
        f"Unsupported DB_TYPE: {db_type}. Use postgresql, mysql, mariadb or sqlite"
    )


def normalize_url(database_url: str) -> str:
    """PyDAL uses postgres:// not postgresql://."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgres://", 1)
    return database_url


def create_db_connection(
    database_url: str,
    pool_size: int = 10,
    migrate: bool = True,
    folder: Optional[str] = None,
    max_retries: int = 30,
    retry_delay: float = 1.0,
) -> DAL:
    """
    Open a PyDAL connection, retrying while the database starts up.

    Args:
        database_url: PyDAL database URI
        pool_size: Connection pool size
        migrate: Whether PyDAL may create missing tables
        folder: PyDAL metadata folder (.table files, SQLite databases)
        max_retries: Connection attempts before giving up
        retry_delay: Seconds between attempts

    Returns:
        Connected DAL instance

    Raises:
        Exception: The last connection error once retries are exhausted
    """
    folder = folder or "/tmp/pydal"
    os.makedirs(folder, exist_ok=True)

    for attempt in range(max_retries):
        try:
            db = DAL(
                normalize_url(database_url),
                folder=folder,
                migrate=migrate,
                fake_migrate_all=False,
                lazy_tables=False,
                pool_size=pool_size,
                adapter_args={"attempts": 1},
            )
            db.executesql("SELECT 1")
            logger.info("Database connection established successfully")
            return db
        except Exception as e:
            if attempt < max_retries - 1:
                logger.warning(
                    f"Database connection attempt {attempt + 1}/{max_retries} failed: {e}. Retrying in {retry_delay}s..."
                )
                time.sleep(retry_delay)
            else:
                logger.error(f"Failed to connect to database after {max_retries} attempts")
                raise


def ensure_thread_connection(db: DAL) -> None:
    """
    Make sure the calling thread holds a PyDAL connection.

    PyDAL keeps connections in thread-local storage, so worker threads
    (thread pool, scheduler) must attach one before their first query.
    Calling this on a thread that already has a connection is a no-op.
    """
    db._adapter.reconnect()
