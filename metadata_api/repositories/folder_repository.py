"""Folder repository for database operations."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from common.logging_config import get_logger
from metadata_api.database import Database
from metadata_api.domain import Folder

logger = get_logger(__name__)

FOLDER_COLUMNS = "folder_id, name, description, parent_id, created_at, updated_at"

_UPDATABLE_FIELDS = ("name", "description", "parent_id")


def row_to_folder(row) -> Folder:
    return Folder(
        folder_id=row["folder_id"],
        name=row["name"],
        description=row["description"],
        parent_id=row["parent_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class FolderRepository:
    def __init__(self, db: Database):
        self.db = db

    def create_folder(
        self,
        folder_id: str,
        name: str,
        description: Optional[str],
        parent_id: Optional[str],
        created_at: datetime,
        conn=None
    ) -> Folder:
        with self.db.transaction(conn, f"Failed to create folder '{name}'") as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                INSERT INTO folders ({FOLDER_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (folder_id, name, description, parent_id, created_at.isoformat(), created_at.isoformat())
            )

        return Folder(
            folder_id=folder_id,
            name=name,
            description=description,
            parent_id=parent_id,
            created_at=created_at,
            updated_at=created_at,
        )

    def get_by_id(self, folder_id: str, conn=None) -> Optional[Folder]:
        with self.db.transaction(conn, f"Failed to get folder {folder_id}") as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {FOLDER_COLUMNS} FROM folders WHERE folder_id = ?",
                (folder_id,)
            )
            row = cursor.fetchone()

        if row is None:
            return None
        return row_to_folder(row)

    def exists(self, folder_id: str, conn=None) -> bool:
        with self.db.transaction(conn, f"Failed to check folder {folder_id}") as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1 FROM folders WHERE folder_id = ?", (folder_id,))
            return cursor.fetchone() is not None

    def find_by_parent_and_name(self, parent_id: Optional[str], name: str, conn=None) -> Optional[Folder]:
        with self.db.transaction(conn, "Failed to look up sibling folder") as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {FOLDER_COLUMNS} FROM folders
                WHERE COALESCE(parent_id, '') = COALESCE(?, '') AND name = ?
                """,
                (parent_id, name)
            )
            row = cursor.fetchone()

        if row is None:
            return None
        return row_to_folder(row)

    def list_by_parent(self, parent_id: Optional[str], conn=None) -> List[Folder]:
        """
        List direct children of a folder, or root folders when parent_id is None.
        """
        with self.db.transaction(conn, "Failed to list folders") as conn:
            cursor = conn.cursor()
            if parent_id is None:
                cursor.execute(
                    f"SELECT {FOLDER_COLUMNS} FROM folders WHERE parent_id IS NULL ORDER BY name ASC"
                )
            else:
                cursor.execute(
                    f"SELECT {FOLDER_COLUMNS} FROM folders WHERE parent_id = ? ORDER BY name ASC",
                    (parent_id,)
                )
            return [row_to_folder(row) for row in cursor.fetchall()]

    def update_folder(self, folder_id: str, changes: Dict[str, Any], updated_at: datetime, conn=None) -> None:
        fields = [name for name in _UPDATABLE_FIELDS if name in changes]
        assignments = ", ".join(f"{name} = ?" for name in fields + ["updated_at"])
        values = [changes[name] for name in fields] + [updated_at.isoformat(), folder_id]

        with self.db.transaction(conn, f"Failed to update folder {folder_id}") as conn:
            cursor = conn.cursor()
            cursor.execute(f"UPDATE folders SET {assignments} WHERE folder_id = ?", values)

        logger.debug(f"Folder updated [folder_id={folder_id}] fields={fields}")

    def get_ancestor_ids(self, folder_id: str, conn=None) -> List[str]:
        """
        Walk the parent chain upwards.

        Args:
            folder_id: Folder to start from (included in the result)

        Returns:
            Ids from folder_id up to its root folder
        """
        with self.db.transaction(conn, f"Failed to resolve ancestors of folder {folder_id}") as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                WITH RECURSIVE ancestors(folder_id, parent_id) AS (
                    SELECT folder_id, parent_id FROM folders WHERE folder_id = ?
                    UNION
                    SELECT f.folder_id, f.parent_id
                    FROM folders f JOIN ancestors a ON f.folder_id = a.parent_id
                )
                SELECT folder_id FROM ancestors
                """,
                (folder_id,)
            )
            return [row["folder_id"] for row in cursor.fetchall()]

    def get_subtree_ids(self, folder_id: str, conn=None) -> List[str]:
        """
        Collect a folder and all of its descendants.
        """
        with self.db.transaction(conn, f"Failed to resolve subtree of folder {folder_id}") as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                WITH RECURSIVE subtree(folder_id) AS (
                    SELECT folder_id FROM folders WHERE folder_id = ?
                    UNION
                    SELECT f.folder_id FROM folders f JOIN subtree s ON f.parent_id = s.folder_id
                )
                SELECT folder_id FROM subtree
                """,
                (folder_id,)
            )
            return [row["folder_id"] for row in cursor.fetchall()]

    def count_contents(self, folder_id: str, conn=None) -> Tuple[int, int]:
        """
        Count direct child folders and files of a folder.

        Returns:
            Tuple of (child_folder_count, file_count)
        """
        with self.db.transaction(conn, f"Failed to inspect folder {folder_id}") as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM folders WHERE parent_id = ?", (folder_id,))
            children = cursor.fetchone()["count"]
            cursor.execute("SELECT COUNT(*) AS count FROM files WHERE folder_id = ?", (folder_id,))
            files = cursor.fetchone()["count"]
            return children, files

    def delete_folders(self, folder_ids: List[str], detached_at: datetime, conn=None) -> int:
        """
        Delete folders, moving every file they contain to root.

        Args:
            folder_ids: Folders to delete
            detached_at: Timestamp recorded on the files moved to root

        Returns:
            Number of files moved to root
        """
        if not folder_ids:
            return 0

        placeholders = ','.join('?' for _ in folder_ids)
        with self.db.transaction(conn, "Failed to delete folders") as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE files SET folder_id = NULL, updated_at = ? WHERE folder_id IN ({placeholders})",
                [detached_at.isoformat()] + list(folder_ids)
            )
            detached = cursor.rowcount
            cursor.execute(f"DELETE FROM folders WHERE folder_id IN ({placeholders})", list(folder_ids))

        logger.info(f"Deleted {len(folder_ids)} folders, moved {detached} files to root")
        return detached

    def search(
        self,
        name: Optional[str],
        parent_id: Optional[str],
        root_only: bool,
        offset: int,
        limit: int,
        conn=None
    ) -> Tuple[List[Folder], int]:
        """
        Search folders by name substring and exact parent.

        Returns:
            Tuple of (folders on the requested page ordered by name, total matches)
        """
        clauses = []
        params: List[Any] = []
        if name:
            clauses.append("casefold(name) LIKE ? ESCAPE '\\'")
            params.append(f"%{escape_like(name.casefold())}%")
        if root_only:
            clauses.append("parent_id IS NULL")
        elif parent_id is not None:
            clauses.append("parent_id = ?")
            params.append(parent_id)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self.db.transaction(conn, "Failed to search folders") as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT COUNT(*) AS count FROM folders {where}", params)
            total = cursor.fetchone()["count"]
            cursor.execute(
                f"SELECT {FOLDER_COLUMNS} FROM folders {where} ORDER BY name ASC, folder_id ASC LIMIT ? OFFSET ?",
                params + [limit, offset]
            )
            folders = [row_to_folder(row) for row in cursor.fetchall()]

        return folders, total
