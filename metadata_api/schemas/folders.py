"""Pydantic schemas for folder endpoints."""

from datetime import datetime
from typing import List, Optional

from metadata_api.domain import Folder
from metadata_api.schemas.common import APIModel
from metadata_api.schemas.files import FileResponse


class CreateFolderRequest(APIModel):
    """Request model for folder creation."""
    name: str
    description: Optional[str] = None
    parent_id: Optional[str] = None


class UpdateFolderRequest(APIModel):
    """Request model for a partial folder update. Send parentId: null to move to root."""
    name: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[str] = None


class FolderResponse(APIModel):
    """Response model for a folder with its optional relations."""
    id: str
    name: str
    description: Optional[str] = None
    parent_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    children: Optional[List["FolderResponse"]] = None
    files: Optional[List[FileResponse]] = None
    parent: Optional["FolderResponse"] = None

    @classmethod
    def from_folder(cls, folder: Folder) -> "FolderResponse":
        data = dict(
            id=folder.folder_id,
            name=folder.name,
            description=folder.description,
            parent_id=folder.parent_id,
            created_at=folder.created_at,
            updated_at=folder.updated_at,
        )
        if folder.children is not None:
            data["children"] = [cls.from_folder(child) for child in folder.children]
        if folder.files is not None:
            data["files"] = [FileResponse.from_record(record) for record in folder.files]
        if folder.parent is not None:
            data["parent"] = cls.from_folder(folder.parent)
        return cls(**data)


class FolderSearchResponse(APIModel):
    """Response model for folder search."""
    data: List[FolderResponse]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool


class DeleteFolderResponse(APIModel):
    """Response model for folder deletion."""
    message: str
    folder: FolderResponse
    recursive: bool = False
