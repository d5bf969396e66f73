"""Database connection lifecycle."""

from pathlib import Path

from peewee import PeeweeException, SqliteDatabase

from termbeacon.config import Config
from termbeacon.database.models import create_tables, db_proxy
from termbeacon.exceptions import DatabaseError
from termbeacon.logging_config import get_logger

logger = get_logger(__name__)


def initialize_database(config: Config) -> SqliteDatabase:
    """Open the SQLite database named in the config and create tables."""
    db_path = Path(config.database.path).expanduser()
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        database = SqliteDatabase(str(db_path), pragmas={"journal_mode": "wal"})
        db_proxy.initialize(database)
        database.connect(reuse_if_open=True)
        create_tables()
    except (OSError, PeeweeException) as e:
        raise DatabaseError(f"Failed to open database at {db_path}", details=str(e)) from e

    logger.debug("Database initialized", path=str(db_path))
    return database


def close_database() -> None:
    """Close the connection if one is open."""
    database = db_proxy.obj
    if database is not None and not database.is_closed():
        database.close()
        logger.debug("Database closed")
