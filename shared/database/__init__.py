"""Database utilities for the collections service.

PyDAL owns both the table definitions and runtime queries. The five tables
are small and stable, so PyDAL's own migrations create them.
"""

# flake8: noqa: E501

import logging

from shared.database.connection import (
    build_database_url,
    create_db_connection,
    ensure_thread_connection,
    normalize_url,
)

logger = logging.getLogger(__name__)


def get_database_url(app) -> str:
    """
    Get the PyDAL database URL for an app.

    Args:
        app: Flask app instance

    Returns:
        Database URL in PyDAL format
    """
    database_url = app.config.get("DATABASE_URL")
    if database_url:
        return normalize_url(database_url)
    return build_database_url()


def init_db(app):
    """
    Initialize the PyDAL database and attach it to the app as ``app.db``.

    Args:
        app: Flask application
    """
    from shared.models.pydal_models import define_all_tables

    database_url = get_database_url(app)
    logger.info(f"Initializing PyDAL: {database_url.split('://')[0]}://***")

    db = create_db_connection(
        database_url,
        pool_size=app.config.get("DB_POOL_SIZE", 10),
        migrate=app.config.get("DB_MIGRATE", True),
        folder=app.config.get("DB_FOLDER") or app.instance_path,
        max_retries=app.config.get("DB_CONNECT_RETRIES", 30),
    )

    define_all_tables(db, migrate=app.config.get("DB_MIGRATE", True))
    db.commit()

    app.db = db
    logger.info("PyDAL database initialized successfully")
    return db


def log_startup_status(db) -> None:
    """Log the tables the service will use."""
    logger.info(f"Database ready - tables: {', '.join(db.tables)}")


__all__ = [
    "init_db",
    "get_database_url",
    "log_startup_status",
    "create_db_connection",
    "ensure_thread_connection",
]
