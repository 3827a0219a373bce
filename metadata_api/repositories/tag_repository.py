"""Tag repository for database operations."""

from typing import Dict, List

from common.logging_config import get_logger
from metadata_api.database import Database

logger = get_logger(__name__)


class TagRepository:
    def __init__(self, db: Database):
        self.db = db

    def add_tags(self, file_id: str, tags: List[str], conn=None) -> None:
        if not tags:
            return

        with self.db.transaction(conn, f"Failed to add tags to file {file_id}") as conn:
            cursor = conn.cursor()
            for tag in tags:
                cursor.execute(
                    "INSERT OR IGNORE INTO file_tags (file_id, tag) VALUES (?, ?)",
                    (file_id, tag)
                )

    def replace_tags(self, file_id: str, tags: List[str], conn=None) -> None:
        """
        Replace the whole tag set of a file.
        """
        with self.db.transaction(conn, f"Failed to replace tags of file {file_id}") as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM file_tags WHERE file_id = ?", (file_id,))
            for tag in tags:
                cursor.execute(
                    "INSERT OR IGNORE INTO file_tags (file_id, tag) VALUES (?, ?)",
                    (file_id, tag)
                )

    def get_tags_for_file(self, file_id: str, conn=None) -> List[str]:
        return self.get_tags_for_files([file_id], conn=conn).get(file_id, [])

    def get_tags_for_files(self, file_ids: List[str], conn=None) -> Dict[str, List[str]]:
        """
        Load tags for many files with one query.

        Args:
            file_ids: File ids to load tags for

        Returns:
            Mapping of file id to its sorted tags; files without tags are absent
        """
        if not file_ids:
            return {}

        with self.db.transaction(conn, "Failed to load file tags") as conn:
            cursor = conn.cursor()
            placeholders = ','.join('?' for _ in file_ids)
            cursor.execute(
                f"SELECT file_id, tag FROM file_tags WHERE file_id IN ({placeholders}) ORDER BY tag",
                list(file_ids)
            )
            result: Dict[str, List[str]] = {}
            for row in cursor.fetchall():
                result.setdefault(row["file_id"], []).append(row["tag"])
            return result
