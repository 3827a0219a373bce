"""Pydantic schemas for file record endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from metadata_api.domain import FileRecord, FileStats
from metadata_api.schemas.common import APIModel, PaginationInfo


class FolderSummary(APIModel):
    """Folder embedded in a file response."""
    id: str
    name: str
    parent_id: Optional[str] = None


class FileResponse(APIModel):
    """Response model for file metadata."""
    id: str
    name: str
    storage_path: str
    mime_type: str
    size: int
    checksum: Optional[str] = None
    folder_id: Optional[str] = None
    description: Optional[str] = None
    tags: List[str]
    status: str
    created_at: datetime
    updated_at: datetime
    folder: Optional[FolderSummary] = None

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileResponse":
        folder = None
        if record.folder is not None:
            folder = FolderSummary(
                id=record.folder.folder_id,
                name=record.folder.name,
                parent_id=record.folder.parent_id,
            )
        return cls(
            id=record.file_id,
            name=record.name,
            storage_path=record.storage_path,
            mime_type=record.mime_type,
            size=record.size,
            checksum=record.checksum,
            folder_id=record.folder_id,
            description=record.description,
            tags=record.tags,
            status=record.status.value,
            created_at=record.created_at,
            updated_at=record.updated_at,
            folder=folder,
        )


class CreateFileRequest(APIModel):
    """Request model for registering a file record for an existing object key."""
    name: str
    storage_path: str
    mime_type: str
    size: int = Field(ge=0)
    checksum: Optional[str] = None
    folder_id: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class UpdateFileRequest(APIModel):
    """Request model for a partial file update. Send folderId: null to move to root."""
    name: Optional[str] = None
    folder_id: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None


class FileSearchResponse(APIModel):
    """Response model for file search."""
    data: List[FileResponse]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool


class MimeTypeStatsResponse(APIModel):
    mime_type: str
    count: int
    total_size: int


class FileStatsResponse(APIModel):
    """Response model for file statistics."""
    total_files: int
    total_size: int
    mime_type_distribution: List[MimeTypeStatsResponse]

    @classmethod
    def from_stats(cls, stats: FileStats) -> "FileStatsResponse":
        return cls(
            total_files=stats.total_files,
            total_size=stats.total_size,
            mime_type_distribution=[
                MimeTypeStatsResponse(mime_type=s.mime_type, count=s.count, total_size=s.total_size)
                for s in stats.mime_type_distribution
            ],
        )


class ListFilesResponse(APIModel):
    """Response model for the paginated file listing."""
    files: List[FileResponse]
    pagination: PaginationInfo
    filters: dict
    sort: dict


class DeleteFileResponse(APIModel):
    """Response model for file deletion."""
    message: str
    file: FileResponse
    deleted_at: datetime
