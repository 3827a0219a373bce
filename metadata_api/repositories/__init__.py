"""Repository layer for data access."""

from metadata_api.repositories.folder_repository import FolderRepository
from metadata_api.repositories.file_repository import FileRepository
from metadata_api.repositories.tag_repository import TagRepository

__all__ = [
    "FolderRepository",
    "FileRepository",
    "TagRepository",
]
