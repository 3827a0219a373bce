"""Folder service for business logic."""

from typing import Any, Dict, List, Optional

from common.constants import DEFAULT_PAGE_SIZE
from common.logging_config import get_logger
from metadata_api.database import Database
from metadata_api.domain import Folder, Page
from metadata_api.exceptions import ConflictError, NotFoundError, ValidationError
from metadata_api.repositories.file_repository import FileRepository
from metadata_api.repositories.folder_repository import FolderRepository
from metadata_api.utils import generate_uuid, is_root_folder, utc_now

logger = get_logger(__name__)


def _clean_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValidationError("Folder name is required")
    return name.strip()


class FolderService:
    def __init__(self, db: Database, folder_repo: FolderRepository = None, file_repo: FileRepository = None):
        self.db = db
        self.folder_repo = folder_repo or FolderRepository(db)
        self.file_repo = file_repo or FileRepository(db)

    def create(self, name: str, description: Optional[str] = None, parent_id: Optional[str] = None) -> Folder:
        name = _clean_name(name)
        if is_root_folder(parent_id):
            parent_id = None
        logger.info(f"Creating folder '{name}' [parent_id={parent_id}]")

        with self.db.transaction(action=f"Failed to create folder '{name}'") as conn:
            if parent_id is not None and not self.folder_repo.exists(parent_id, conn=conn):
                logger.warning(f"Create folder rejected: parent {parent_id} not found")
                raise NotFoundError(f"Parent folder with ID {parent_id} not found")

            if self.folder_repo.find_by_parent_and_name(parent_id, name, conn=conn):
                logger.warning(f"Create folder rejected: '{name}' already exists [parent_id={parent_id}]")
                raise ConflictError(f"Folder with name \"{name}\" already exists in this location")

            folder = self.folder_repo.create_folder(
                folder_id=generate_uuid(),
                name=name,
                description=description,
                parent_id=parent_id,
                created_at=utc_now(),
                conn=conn,
            )

        logger.info(f"Folder created [folder_id={folder.folder_id}]")
        return folder

    def exists(self, folder_id: str) -> bool:
        return self.folder_repo.exists(folder_id)

    def get_by_id(
        self,
        folder_id: str,
        include_children: bool = False,
        include_files: bool = False,
        include_parent: bool = False
    ) -> Folder:
        with self.db.transaction(action=f"Failed to get folder {folder_id}") as conn:
            folder = self.folder_repo.get_by_id(folder_id, conn=conn)
            if folder is None:
                raise NotFoundError(f"Folder with ID {folder_id} not found")

            if include_children:
                folder.children = self.folder_repo.list_by_parent(folder_id, conn=conn)
            if include_files:
                folder.files = self.file_repo.list_by_folder(folder_id, conn=conn)
            if include_parent and folder.parent_id is not None:
                folder.parent = self.folder_repo.get_by_id(folder.parent_id, conn=conn)

        return folder

    def list_roots(self, include_children: bool = False, include_files: bool = False) -> List[Folder]:
        with self.db.transaction(action="Failed to get root folders") as conn:
            folders = self.folder_repo.list_by_parent(None, conn=conn)
            for folder in folders:
                if include_children:
                    folder.children = self.folder_repo.list_by_parent(folder.folder_id, conn=conn)
                if include_files:
                    folder.files = self.file_repo.list_by_folder(folder.folder_id, conn=conn)
        return folders

    def update(self, folder_id: str, changes: Dict[str, Any]) -> Folder:
        """
        Apply a partial update.

        Args:
            folder_id: Folder to update
            changes: Any of name, description, parent_id; a parent_id of None or
                'root' moves the folder to root

        Returns:
            Updated folder

        Raises:
            NotFoundError: Folder or new parent does not exist
            ValidationError: Blank name, or the move would make the folder its own ancestor
            ConflictError: Destination already holds a folder with the same name
        """
        changes = {k: v for k, v in changes.items() if k in ("name", "description", "parent_id")}
        if "name" in changes:
            changes["name"] = _clean_name(changes["name"])
        if "parent_id" in changes and is_root_folder(changes["parent_id"]):
            changes["parent_id"] = None

        with self.db.transaction(action=f"Failed to update folder with ID {folder_id}") as conn:
            folder = self.folder_repo.get_by_id(folder_id, conn=conn)
            if folder is None:
                raise NotFoundError(f"Folder with ID {folder_id} not found")

            new_parent_id = changes.get("parent_id", folder.parent_id)
            if "parent_id" in changes and new_parent_id is not None:
                if not self.folder_repo.exists(new_parent_id, conn=conn):
                    raise NotFoundError(f"Parent folder with ID {new_parent_id} not found")
                if folder_id in self.folder_repo.get_ancestor_ids(new_parent_id, conn=conn):
                    logger.warning(f"Move rejected: folder {folder_id} would become its own ancestor")
                    raise ValidationError("A folder cannot be moved into itself or one of its descendants")

            new_name = changes.get("name", folder.name)
            if new_name != folder.name or new_parent_id != folder.parent_id:
                sibling = self.folder_repo.find_by_parent_and_name(new_parent_id, new_name, conn=conn)
                if sibling is not None and sibling.folder_id != folder_id:
                    raise ConflictError(f"Folder with name \"{new_name}\" already exists in this location")

            if changes:
                self.folder_repo.update_folder(folder_id, changes, utc_now(), conn=conn)
            updated = self.folder_repo.get_by_id(folder_id, conn=conn)

        logger.info(f"Folder updated [folder_id={folder_id}]")
        return updated

    def delete(self, folder_id: str, recursive: bool = False) -> Folder:
        """
        Delete a folder.

        Without `recursive` the folder must be empty. With it, every
        descendant folder is removed as well. Files inside the removed
        folders are moved to root, never deleted: only the transfer
        service removes files, since their bytes live in the object store.

        Returns:
            The deleted folder
        """
        with self.db.transaction(action=f"Failed to delete folder with ID {folder_id}") as conn:
            folder = self.folder_repo.get_by_id(folder_id, conn=conn)
            if folder is None:
                raise NotFoundError(f"Folder with ID {folder_id} not found")

            children, files = self.folder_repo.count_contents(folder_id, conn=conn)
            if not recursive and (children or files):
                logger.warning(
                    f"Delete rejected: folder {folder_id} contains {children} folders and {files} files"
                )
                raise ConflictError("Folder contains items. Use recursive delete or move items first")

            subtree = self.folder_repo.get_subtree_ids(folder_id, conn=conn) if recursive else [folder_id]
            self.folder_repo.delete_folders(subtree, utc_now(), conn=conn)

        logger.info(f"Folder deleted [folder_id={folder_id}] recursive={recursive} removed={len(subtree)}")
        return folder

    def search(
        self,
        name: Optional[str] = None,
        parent_id: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE
    ) -> Page[Folder]:
        """
        Search folders by case-insensitive name substring and exact parent.

        Args:
            name: Substring of the folder name
            parent_id: Parent folder id, or 'root' for root folders
            page: 1-indexed page
            limit: Page size
        """
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")

        root_only = parent_id is not None and is_root_folder(parent_id)
        folders, total = self.folder_repo.search(
            name=name,
            parent_id=None if root_only else parent_id,
            root_only=root_only,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return Page(data=folders, total=total, page=page, limit=limit)
