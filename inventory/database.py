import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from inventory.config import settings
from inventory.errors import StorageUnavailable

logger = logging.getLogger(__name__)


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


def get_db_connection(db_file: str) -> sqlite3.Connection:
    """Open a connection to the SQLite inventory file.

    The connection runs in autocommit mode; writes are grouped explicitly
    with :func:`transaction`. A ``casefold`` SQL function is registered so
    searches can match case-insensitively beyond ASCII.
    """
    try:
        conn = sqlite3.connect(db_file, timeout=settings.sqlite_timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        return conn
    except sqlite3.Error as e:
        logger.error(f"Could not open database {db_file}: {e}")
        raise StorageUnavailable(f"Cannot open database {db_file}: {e}") from e


@contextmanager
def connect(db_file: str) -> Iterator[sqlite3.Connection]:
    """Yield a fresh connection and close it on every exit path."""
    conn = get_db_connection(db_file)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the enclosed statements as one write transaction.

    ``BEGIN IMMEDIATE`` takes the write lock up front, so a check followed
    by a write cannot interleave with another writer.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    else:
        conn.commit()


def create_tables(db_file: str) -> None:
    """Create the books table and its indexes if they do not exist yet."""
    parent = os.path.dirname(os.path.abspath(db_file))
    try:
        os.makedirs(parent, exist_ok=True)
    except OSError as e:
        raise StorageUnavailable(f"Cannot create directory {parent}: {e}") from e

    try:
        with connect(db_file) as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS books (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    author TEXT NOT NULL,
                    isbn TEXT NOT NULL UNIQUE,
                    total_copies INTEGER NOT NULL DEFAULT 1,
                    available_copies INTEGER NOT NULL DEFAULT 1,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    CHECK (available_copies >= 0 AND available_copies <= total_copies)
                );
                CREATE INDEX IF NOT EXISTS idx_books_title ON books(title);
                CREATE INDEX IF NOT EXISTS idx_books_author ON books(author);
            """)
    except sqlite3.Error as e:
        logger.error(f"Could not initialize database {db_file}: {e}")
        raise StorageUnavailable(f"Cannot initialize database {db_file}: {e}") from e


def initialize_database(db_file: Optional[str] = None) -> str:
    """Make sure the database file and schema exist; return the file used."""
    db_file = db_file or settings.db_file
    create_tables(db_file)
    logger.info(f"Database ready at {db_file}")
    return db_file
