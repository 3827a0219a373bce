"""Pydantic schemas for upload/download endpoints."""

from datetime import datetime
from typing import Dict, List, Optional

from metadata_api.schemas.common import APIModel
from metadata_api.schemas.files import FileResponse, FileStatsResponse


class UploadUrlRequest(APIModel):
    """Request model for an upload URL."""
    file_name: str
    file_type: str
    file_size: Optional[int] = None
    folder_id: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = []


class UploadInstructions(APIModel):
    method: str
    headers: Dict[str, str]
    note: str


class UploadUrlResponse(APIModel):
    """Response model for an upload URL."""
    upload_url: str
    file_id: str
    key: str
    original_file_name: str
    expires_in: int
    max_file_size: int
    message: str
    instructions: UploadInstructions


class ConfirmUploadRequest(APIModel):
    """Request model for upload confirmation."""
    file_id: str


class DownloadUrlResponse(APIModel):
    """Response model for a download URL."""
    download_url: str
    file: FileResponse
    expires_in: int
    download_type: str
    message: str


class StorageVerification(APIModel):
    """Advisory result of probing the object store."""
    exists: bool
    size: Optional[int] = None
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None
    content_type: Optional[str] = None
    error: Optional[str] = None


class FileInfoResponse(APIModel):
    """Response model for file info with storage verification."""
    file: FileResponse
    s3_verification: StorageVerification


class StatsResponse(APIModel):
    """Response model for storage statistics."""
    statistics: FileStatsResponse
