"""File service for business logic."""

from typing import Any, Dict, List, Optional

from common.constants import DEFAULT_PAGE_SIZE
from common.logging_config import get_logger
from metadata_api.database import Database
from metadata_api.domain import FileRecord, FileSearchFilters, FileStats, FileStatus, Page
from metadata_api.exceptions import ConflictError, NotFoundError, ValidationError
from metadata_api.repositories.file_repository import FileRepository
from metadata_api.repositories.folder_repository import FolderRepository
from metadata_api.repositories.tag_repository import TagRepository
from metadata_api.utils import generate_uuid, is_root_folder, normalize_tags, utc_now

logger = get_logger(__name__)

# API sort field -> column
SORT_FIELDS = {
    "name": "name",
    "size": "size",
    "mimeType": "mime_type",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

SORT_ORDERS = ("asc", "desc")


def _require(value: Optional[str], field_name: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


class FileService:
    def __init__(
        self,
        db: Database,
        file_repo: FileRepository = None,
        folder_repo: FolderRepository = None,
        tag_repo: TagRepository = None
    ):
        self.db = db
        self.tag_repo = tag_repo or TagRepository(db)
        self.file_repo = file_repo or FileRepository(db, self.tag_repo)
        self.folder_repo = folder_repo or FolderRepository(db)

    def create(
        self,
        name: str,
        storage_path: str,
        mime_type: str,
        size: int,
        checksum: Optional[str] = None,
        folder_id: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        status: FileStatus = FileStatus.PENDING,
    ) -> FileRecord:
        name = _require(name, "name")
        storage_path = _require(storage_path, "storagePath")
        mime_type = _require(mime_type, "mimeType")
        if size is None or size < 0:
            raise ValidationError("size must be a non-negative integer")
        tags = normalize_tags(tags)

        file_id = generate_uuid()
        with self.db.transaction(action="Failed to create file") as conn:
            if folder_id is not None and not self.folder_repo.exists(folder_id, conn=conn):
                logger.warning(f"Create file rejected: folder {folder_id} not found")
                raise NotFoundError(f"Folder with ID {folder_id} not found")

            if self.file_repo.storage_path_exists(storage_path, conn=conn):
                logger.warning(f"Create file rejected: storage path {storage_path} already used")
                raise ConflictError(f"File with storage path \"{storage_path}\" already exists")

            self.file_repo.create_file(
                file_id=file_id,
                name=name,
                storage_path=storage_path,
                mime_type=mime_type,
                size=size,
                checksum=checksum,
                folder_id=folder_id,
                description=description,
                status=status,
                created_at=utc_now(),
                conn=conn,
            )
            self.tag_repo.add_tags(file_id, tags, conn=conn)
            record = self.file_repo.get_by_id(file_id, conn=conn)

        logger.info(f"File record created [file_id={file_id}] path={storage_path} status={status.value}")
        return record

    def _attach_folder(self, record: FileRecord, conn) -> FileRecord:
        if record.folder_id is not None:
            record.folder = self.folder_repo.get_by_id(record.folder_id, conn=conn)
        return record

    def get_by_id(self, file_id: str, include_folder: bool = False) -> FileRecord:
        with self.db.transaction(action=f"Failed to get file with ID {file_id}") as conn:
            record = self.file_repo.get_by_id(file_id, conn=conn)
            if record is None:
                raise NotFoundError(f"File with ID {file_id} not found")
            if include_folder:
                self._attach_folder(record, conn)
        return record

    def get_by_storage_path(self, storage_path: str, include_folder: bool = False) -> FileRecord:
        with self.db.transaction(action=f"Failed to get file with storage path {storage_path}") as conn:
            record = self.file_repo.get_by_storage_path(storage_path, conn=conn)
            if record is None:
                raise NotFoundError(f"File with storage path \"{storage_path}\" not found")
            if include_folder:
                self._attach_folder(record, conn)
        return record

    def list_by_folder(self, folder_id: Optional[str], include_folder: bool = False) -> List[FileRecord]:
        """
        List files directly in a folder; None or 'root' lists root-level files.
        """
        with self.db.transaction(action="Failed to get files by folder") as conn:
            if not is_root_folder(folder_id) and not self.folder_repo.exists(folder_id, conn=conn):
                raise NotFoundError(f"Folder with ID {folder_id} not found")
            records = self.file_repo.list_by_folder(folder_id, conn=conn)
            if include_folder:
                for record in records:
                    self._attach_folder(record, conn)
        return records

    def update(self, file_id: str, changes: Dict[str, Any]) -> FileRecord:
        """
        Apply a partial update.

        Args:
            file_id: File to update
            changes: Any of name, folder_id, description, tags, and the
                reconciliation fields size, checksum, status. A folder_id of
                None moves the file to root; tags replace the current set.

        Returns:
            Updated record
        """
        changes = dict(changes)
        if "name" in changes:
            changes["name"] = _require(changes["name"], "name")
        if "size" in changes and (changes["size"] is None or changes["size"] < 0):
            raise ValidationError("size must be a non-negative integer")
        tags = changes.pop("tags", None)

        with self.db.transaction(action=f"Failed to update file with ID {file_id}") as conn:
            if self.file_repo.get_by_id(file_id, conn=conn) is None:
                raise NotFoundError(f"File with ID {file_id} not found")

            folder_id = changes.get("folder_id")
            if folder_id is not None and not self.folder_repo.exists(folder_id, conn=conn):
                raise NotFoundError(f"Folder with ID {folder_id} not found")

            self.file_repo.update_file(file_id, changes, utc_now(), conn=conn)
            if tags is not None:
                self.tag_repo.replace_tags(file_id, normalize_tags(tags), conn=conn)
            record = self.file_repo.get_by_id(file_id, conn=conn)

        logger.info(f"File record updated [file_id={file_id}]")
        return record

    def delete(self, file_id: str) -> FileRecord:
        """
        Delete the metadata record only. Object store cleanup is the caller's job.

        Returns:
            The deleted record
        """
        with self.db.transaction(action=f"Failed to delete file with ID {file_id}") as conn:
            record = self.file_repo.get_by_id(file_id, conn=conn)
            if record is None or not self.file_repo.delete_file(file_id, conn=conn):
                raise NotFoundError(f"File with ID {file_id} not found")

        logger.info(f"File record deleted [file_id={file_id}]")
        return record

    def search(
        self,
        filters: Optional[FileSearchFilters] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort_by: str = "name",
        sort_order: str = "asc"
    ) -> Page[FileRecord]:
        """
        Search file metadata.

        Args:
            filters: Name/MIME substring, exact folder ('root' for root),
                any-of tags, inclusive size and creation-date ranges
            page: 1-indexed page
            limit: Page size
            sort_by: One of SORT_FIELDS
            sort_order: 'asc' or 'desc'

        Returns:
            Page of matching records
        """
        filters = filters or FileSearchFilters()
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")
        if sort_by not in SORT_FIELDS:
            raise ValidationError(
                f"Unsupported sortBy '{sort_by}'. Allowed: {', '.join(SORT_FIELDS)}"
            )
        sort_order = (sort_order or "asc").lower()
        if sort_order not in SORT_ORDERS:
            raise ValidationError("sortOrder must be 'asc' or 'desc'")
        if filters.min_size is not None and filters.max_size is not None and filters.min_size > filters.max_size:
            raise ValidationError("minSize cannot be greater than maxSize")

        filters.tags = normalize_tags(filters.tags)
        records, total = self.file_repo.search(
            filters,
            sort_column=SORT_FIELDS[sort_by],
            descending=sort_order == "desc",
            offset=(page - 1) * limit,
            limit=limit,
        )
        logger.debug(f"File search matched {total} records (page={page}, limit={limit})")
        return Page(data=records, total=total, page=page, limit=limit)

    def stats_by_folder(self, folder_id: Optional[str] = None) -> FileStats:
        """
        Count files and bytes, broken down by MIME type.

        Args:
            folder_id: Folder to scope to, 'root' for root-level files, None for everything
        """
        return self.file_repo.stats(folder_id)
