"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from common.logging_config import get_logger
from metadata_api.exceptions import ConflictError, MetadataStoreError, NotFoundError, StorageAPIError

logger = get_logger(__name__)


SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS folders (
        folder_id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        parent_id TEXT REFERENCES folders(folder_id) ON DELETE CASCADE,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE UNIQUE INDEX IF NOT EXISTS idx_folders_sibling_name
    ON folders (COALESCE(parent_id, ''), name)
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_folders_parent ON folders(parent_id)
    """,
    """
    CREATE TABLE IF NOT EXISTS files (
        file_id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        storage_path TEXT NOT NULL UNIQUE,
        mime_type TEXT NOT NULL,
        size INTEGER NOT NULL DEFAULT 0,
        checksum TEXT,
        folder_id TEXT REFERENCES folders(folder_id) ON DELETE SET NULL,
        description TEXT,
        status TEXT NOT NULL DEFAULT 'pending',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_files_folder ON files(folder_id)
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_files_created ON files(created_at)
    """,
    """
    CREATE TABLE IF NOT EXISTS file_tags (
        file_id TEXT NOT NULL,
        tag TEXT NOT NULL,
        PRIMARY KEY(file_id, tag),
        FOREIGN KEY(file_id) REFERENCES files(file_id) ON DELETE CASCADE
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_file_tags_tag ON file_tags(tag)
    """,
)


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


def translate_db_error(error: sqlite3.Error, message: str) -> StorageAPIError:
    """
    Classify a sqlite3 error into the API error taxonomy.

    This is the only place where SQLite error shapes are inspected.

    Args:
        error: Error raised by sqlite3
        message: Human-readable context for the failed operation

    Returns:
        ConflictError for uniqueness violations, NotFoundError for dangling
        references, MetadataStoreError otherwise
    """
    text = str(error)
    if isinstance(error, sqlite3.IntegrityError):
        if "UNIQUE constraint failed" in text:
            return ConflictError(f"{message}: a record with the same unique key already exists")
        if "FOREIGN KEY constraint failed" in text:
            return NotFoundError(f"{message}: referenced folder does not exist")
    return MetadataStoreError(f"{message}: {text}")


class Database:
    """
    Handle to the SQLite metadata store.

    Each unit of work opens a short-lived connection with foreign keys
    enforced and a `casefold` SQL function registered for case-insensitive
    name matching, so one handle can be shared by concurrent requests.
    The handle itself keeps no connection open; `close` only marks the end
    of its use in the application lifespan.
    """

    def __init__(self, path: str, timeout: float = 5.0):
        self.path = path
        self.timeout = timeout

    def init_database(self) -> None:
        """
        Create tables and indexes if they don't exist.
        """
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        with self.connection("Failed to initialize metadata database") as conn:
            cursor = conn.cursor()
            for statement in SCHEMA_STATEMENTS:
                cursor.execute(statement)
            conn.commit()

        logger.info(f"Metadata database ready at {self.path}")

    @contextmanager
    def connection(self, action: str = "Metadata store operation failed") -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database connections.

        sqlite3 errors raised inside the block are re-raised as API errors
        prefixed with `action`.
        """
        try:
            conn = sqlite3.connect(self.path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise translate_db_error(e, action) from e

        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            conn.create_function("casefold", 1, _casefold, deterministic=True)
            yield conn
        except sqlite3.Error as e:
            raise translate_db_error(e, action) from e
        finally:
            conn.close()

    @contextmanager
    def transaction(
        self,
        conn: Optional[sqlite3.Connection] = None,
        action: str = "Metadata store operation failed"
    ) -> Generator[sqlite3.Connection, None, None]:
        """
        Reuse the caller's connection, or open one that commits on success
        and rolls back on error.
        """
        if conn is not None:
            yield conn
            return

        with self.connection(action) as new_conn:
            try:
                yield new_conn
                new_conn.commit()
            except Exception:
                new_conn.rollback()
                raise

    def ping(self) -> None:
        with self.connection("Metadata database is unreachable") as conn:
            conn.execute("SELECT 1").fetchone()

    def close(self) -> None:
        logger.info(f"Metadata database handle released [{self.path}]")
