"""Service layer for business logic."""

from metadata_api.services.folder_service import FolderService
from metadata_api.services.file_service import FileService
from metadata_api.services.transfer_service import TransferService

__all__ = [
    "FolderService",
    "FileService",
    "TransferService",
]
