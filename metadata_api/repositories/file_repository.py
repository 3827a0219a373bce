"""File repository for database operations."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from common.logging_config import get_logger
from metadata_api.database import Database
from metadata_api.domain import FileRecord, FileSearchFilters, FileStats, FileStatus, MimeTypeStats
from metadata_api.repositories.folder_repository import escape_like
from metadata_api.repositories.tag_repository import TagRepository
from metadata_api.utils import is_root_folder, to_utc_iso

logger = get_logger(__name__)

FILE_COLUMNS = (
    "file_id, name, storage_path, mime_type, size, checksum, folder_id, "
    "description, status, created_at, updated_at"
)

SORT_COLUMNS = ("name", "size", "mime_type", "created_at", "updated_at")

_UPDATABLE_FIELDS = ("name", "folder_id", "description", "size", "checksum", "status")


def row_to_file(row, tags: Optional[List[str]] = None) -> FileRecord:
    return FileRecord(
        file_id=row["file_id"],
        name=row["name"],
        storage_path=row["storage_path"],
        mime_type=row["mime_type"],
        size=row["size"],
        checksum=row["checksum"],
        folder_id=row["folder_id"],
        description=row["description"],
        status=FileStatus(row["status"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
        tags=list(tags or []),
    )


def _folder_clause(folder_id: Optional[str], column: str = "folder_id") -> Tuple[str, List[Any]]:
    if is_root_folder(folder_id):
        return f"{column} IS NULL", []
    return f"{column} = ?", [folder_id]


class FileRepository:
    def __init__(self, db: Database, tag_repo: Optional[TagRepository] = None):
        self.db = db
        self.tag_repo = tag_repo or TagRepository(db)

    def _with_tags(self, rows, conn) -> List[FileRecord]:
        file_ids = [row["file_id"] for row in rows]
        tags = self.tag_repo.get_tags_for_files(file_ids, conn=conn)
        return [row_to_file(row, tags.get(row["file_id"])) for row in rows]

    def create_file(
        self,
        file_id: str,
        name: str,
        storage_path: str,
        mime_type: str,
        size: int,
        checksum: Optional[str],
        folder_id: Optional[str],
        description: Optional[str],
        status: FileStatus,
        created_at: datetime,
        conn=None
    ) -> None:
        with self.db.transaction(conn, f"Failed to create file record for '{storage_path}'") as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                INSERT INTO files ({FILE_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    file_id, name, storage_path, mime_type, size, checksum, folder_id,
                    description, status.value, created_at.isoformat(), created_at.isoformat()
                )
            )

        logger.debug(f"File record inserted [file_id={file_id}] path={storage_path}")

    def get_by_id(self, file_id: str, conn=None) -> Optional[FileRecord]:
        with self.db.transaction(conn, f"Failed to get file {file_id}") as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {FILE_COLUMNS} FROM files WHERE file_id = ?", (file_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return self._with_tags([row], conn)[0]

    def get_by_storage_path(self, storage_path: str, conn=None) -> Optional[FileRecord]:
        with self.db.transaction(conn, f"Failed to get file at '{storage_path}'") as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {FILE_COLUMNS} FROM files WHERE storage_path = ?", (storage_path,))
            row = cursor.fetchone()
            if row is None:
                return None
            return self._with_tags([row], conn)[0]

    def storage_path_exists(self, storage_path: str, conn=None) -> bool:
        with self.db.transaction(conn, f"Failed to check storage path '{storage_path}'") as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1 FROM files WHERE storage_path = ?", (storage_path,))
            return cursor.fetchone() is not None

    def list_by_folder(self, folder_id: Optional[str], conn=None) -> List[FileRecord]:
        """
        List files directly inside a folder, or root-level files for None/'root'.
        """
        clause, params = _folder_clause(folder_id)
        with self.db.transaction(conn, "Failed to list files by folder") as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {FILE_COLUMNS} FROM files WHERE {clause} ORDER BY name ASC, file_id ASC",
                params
            )
            return self._with_tags(cursor.fetchall(), conn)

    def update_file(self, file_id: str, changes: Dict[str, Any], updated_at: datetime, conn=None) -> None:
        fields = [name for name in _UPDATABLE_FIELDS if name in changes]
        values = []
        for name in fields:
            value = changes[name]
            values.append(value.value if isinstance(value, FileStatus) else value)

        assignments = ", ".join(f"{name} = ?" for name in fields + ["updated_at"])
        values += [updated_at.isoformat(), file_id]

        with self.db.transaction(conn, f"Failed to update file {file_id}") as conn:
            cursor = conn.cursor()
            cursor.execute(f"UPDATE files SET {assignments} WHERE file_id = ?", values)

        logger.debug(f"File updated [file_id={file_id}] fields={fields}")

    def delete_file(self, file_id: str, conn=None) -> bool:
        """
        Hard delete a file record; its tags go with it.

        Returns:
            True if a record was removed
        """
        with self.db.transaction(conn, f"Failed to delete file {file_id}") as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM files WHERE file_id = ?", (file_id,))
            deleted = cursor.rowcount > 0

        logger.debug(f"File record delete [file_id={file_id}] deleted={deleted}")
        return deleted

    def _search_where(self, filters: FileSearchFilters) -> Tuple[str, List[Any]]:
        clauses = []
        params: List[Any] = []

        if filters.name:
            clauses.append("casefold(f.name) LIKE ? ESCAPE '\\'")
            params.append(f"%{escape_like(filters.name.casefold())}%")

        if filters.mime_type:
            clauses.append("casefold(f.mime_type) LIKE ? ESCAPE '\\'")
            params.append(f"%{escape_like(filters.mime_type.casefold())}%")

        if filters.folder_id is not None:
            clause, folder_params = _folder_clause(filters.folder_id, "f.folder_id")
            clauses.append(clause)
            params.extend(folder_params)

        if filters.tags:
            placeholders = ','.join('?' for _ in filters.tags)
            clauses.append(
                f"EXISTS (SELECT 1 FROM file_tags t WHERE t.file_id = f.file_id AND t.tag IN ({placeholders}))"
            )
            params.extend(filters.tags)

        if filters.min_size is not None:
            clauses.append("f.size >= ?")
            params.append(filters.min_size)

        if filters.max_size is not None:
            clauses.append("f.size <= ?")
            params.append(filters.max_size)

        if filters.created_after is not None:
            clauses.append("f.created_at >= ?")
            params.append(to_utc_iso(filters.created_after))

        if filters.created_before is not None:
            clauses.append("f.created_at <= ?")
            params.append(to_utc_iso(filters.created_before))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    def search(
        self,
        filters: FileSearchFilters,
        sort_column: str,
        descending: bool,
        offset: int,
        limit: int,
        conn=None
    ) -> Tuple[List[FileRecord], int]:
        """
        Filter, sort and page file records.

        Args:
            filters: Search filters; unset fields do not constrain results
            sort_column: One of SORT_COLUMNS
            descending: Sort direction
            offset: Rows to skip
            limit: Maximum rows to return

        Returns:
            Tuple of (records on the page, total matching records)
        """
        if sort_column not in SORT_COLUMNS:
            raise ValueError(f"Unsupported sort column: {sort_column}")

        where, params = self._search_where(filters)
        direction = "DESC" if descending else "ASC"

        with self.db.transaction(conn, "Failed to search files") as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT COUNT(*) AS count FROM files f {where}", params)
            total = cursor.fetchone()["count"]

            cursor.execute(
                f"""
                SELECT {', '.join('f.' + c.strip() for c in FILE_COLUMNS.split(','))}
                FROM files f {where}
                ORDER BY f.{sort_column} {direction}, f.file_id {direction}
                LIMIT ? OFFSET ?
                """,
                params + [limit, offset]
            )
            records = self._with_tags(cursor.fetchall(), conn)

        return records, total

    def stats(self, folder_id: Optional[str] = None, conn=None) -> FileStats:
        """
        Aggregate count and bytes, overall and per MIME type.

        Args:
            folder_id: Scope to one folder ('root' for root-level files), or None for all files
        """
        if folder_id is None:
            where, params = "", []
        else:
            clause, params = _folder_clause(folder_id)
            where = f"WHERE {clause}"

        with self.db.transaction(conn, "Failed to compute file statistics") as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT COUNT(*) AS count, COALESCE(SUM(size), 0) AS total FROM files {where}",
                params
            )
            totals = cursor.fetchone()
            cursor.execute(
                f"""
                SELECT mime_type, COUNT(*) AS count, COALESCE(SUM(size), 0) AS total
                FROM files {where}
                GROUP BY mime_type
                ORDER BY mime_type ASC
                """,
                params
            )
            distribution = [
                MimeTypeStats(mime_type=row["mime_type"], count=row["count"], total_size=row["total"])
                for row in cursor.fetchall()
            ]

        return FileStats(
            total_files=totals["count"],
            total_size=totals["total"],
            mime_type_distribution=distribution,
        )
