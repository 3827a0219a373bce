"""Pydantic schemas for API requests and responses."""

from metadata_api.schemas.common import ErrorResponse, PaginationInfo
from metadata_api.schemas.files import (
    CreateFileRequest,
    DeleteFileResponse,
    FileResponse,
    FileSearchResponse,
    FileStatsResponse,
    ListFilesResponse,
    UpdateFileRequest,
)
from metadata_api.schemas.folders import (
    CreateFolderRequest,
    DeleteFolderResponse,
    FolderResponse,
    FolderSearchResponse,
    UpdateFolderRequest,
)
from metadata_api.schemas.transfers import (
    ConfirmUploadRequest,
    DownloadUrlResponse,
    FileInfoResponse,
    StatsResponse,
    UploadUrlRequest,
    UploadUrlResponse,
)

__all__ = [
    "ErrorResponse",
    "PaginationInfo",
    "CreateFileRequest",
    "DeleteFileResponse",
    "FileResponse",
    "FileSearchResponse",
    "FileStatsResponse",
    "ListFilesResponse",
    "UpdateFileRequest",
    "CreateFolderRequest",
    "DeleteFolderResponse",
    "FolderResponse",
    "FolderSearchResponse",
    "UpdateFolderRequest",
    "ConfirmUploadRequest",
    "DownloadUrlResponse",
    "FileInfoResponse",
    "StatsResponse",
    "UploadUrlRequest",
    "UploadUrlResponse",
]
