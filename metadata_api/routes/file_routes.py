"""File record API routes."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from metadata_api.domain import FileSearchFilters
from metadata_api.schemas.common import ErrorResponse
from metadata_api.schemas.files import (
    CreateFileRequest,
    DeleteFileResponse,
    FileResponse,
    FileSearchResponse,
    FileStatsResponse,
    UpdateFileRequest,
)
from metadata_api.service_locator import get_file_service, get_transfer_service
from metadata_api.services.file_service import FileService
from metadata_api.services.transfer_service import TransferService
from metadata_api.utils import clamp_pagination, parse_tags

router = APIRouter(
    prefix="/api/storage/files",
    tags=["Files"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)


@router.post("", response_model=FileResponse, status_code=status.HTTP_201_CREATED)
def create_file(
    request: CreateFileRequest,
    file_service: FileService = Depends(get_file_service)
):
    """
    Register a file record for an object key.

    Raises:
        - 400: Missing name, storagePath or mimeType
        - 404: Folder not found
        - 409: storagePath already registered
    """
    record = file_service.create(
        name=request.name,
        storage_path=request.storage_path,
        mime_type=request.mime_type,
        size=request.size,
        checksum=request.checksum,
        folder_id=request.folder_id,
        description=request.description,
        tags=request.tags,
    )
    return FileResponse.from_record(record)


@router.get("/search", response_model=FileSearchResponse)
def search_files(
    name: Optional[str] = Query(None),
    mime_type: Optional[str] = Query(None, alias="mimeType"),
    folder_id: Optional[str] = Query(None, alias="folderId", description="Folder id or 'root'"),
    tags: Optional[str] = Query(None, description="Comma-separated tags (match any)"),
    min_size: Optional[int] = Query(None, alias="minSize", ge=0),
    max_size: Optional[int] = Query(None, alias="maxSize", ge=0),
    created_after: Optional[datetime] = Query(None, alias="createdAfter"),
    created_before: Optional[datetime] = Query(None, alias="createdBefore"),
    page: int = Query(1),
    limit: int = Query(20),
    sort_by: str = Query("name", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder"),
    file_service: FileService = Depends(get_file_service)
):
    """
    Search file records.

    Raises:
        - 400: Unsupported sort field or direction, inverted size range
    """
    page, limit = clamp_pagination(page, limit)
    filters = FileSearchFilters(
        name=name,
        mime_type=mime_type,
        folder_id=folder_id,
        tags=parse_tags(tags),
        min_size=min_size,
        max_size=max_size,
        created_after=created_after,
        created_before=created_before,
    )
    result = file_service.search(filters, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
    return FileSearchResponse(
        data=[FileResponse.from_record(record) for record in result.data],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
        has_next=result.has_next,
        has_prev=result.has_prev,
    )


@router.get("/stats", response_model=FileStatsResponse)
def get_file_stats(
    folder_id: Optional[str] = Query(None, alias="folderId", description="Folder id or 'root'"),
    file_service: FileService = Depends(get_file_service)
):
    stats = file_service.stats_by_folder(folder_id or None)
    return FileStatsResponse.from_stats(stats)


@router.get("/by-path", response_model=FileResponse)
def get_file_by_storage_path(
    storage_path: str = Query(..., alias="storagePath"),
    include_folder: bool = Query(False, alias="includeFolder"),
    file_service: FileService = Depends(get_file_service)
):
    """
    Look up a file record by its object key.

    Raises:
        - 404: No record for this storage path
    """
    record = file_service.get_by_storage_path(storage_path, include_folder=include_folder)
    return FileResponse.from_record(record)


@router.get("/{file_id}", response_model=FileResponse)
def get_file(
    file_id: str,
    include_folder: bool = Query(False, alias="includeFolder"),
    file_service: FileService = Depends(get_file_service)
):
    """
    Raises:
        - 404: File not found
    """
    record = file_service.get_by_id(file_id, include_folder=include_folder)
    return FileResponse.from_record(record)


@router.put("/{file_id}", response_model=FileResponse)
def update_file(
    file_id: str,
    request: UpdateFileRequest,
    file_service: FileService = Depends(get_file_service)
):
    """
    Update name, folder, description or tags. Only fields present in the body change.

    Raises:
        - 404: File or folder not found
    """
    changes = {name: getattr(request, name) for name in request.model_fields_set}
    record = file_service.update(file_id, changes)
    return FileResponse.from_record(record)


@router.delete("/{file_id}", response_model=DeleteFileResponse)
def delete_file(
    file_id: str,
    transfer_service: TransferService = Depends(get_transfer_service)
):
    """
    Delete a file from the object store and the metadata store.

    Raises:
        - 404: File not found
    """
    deleted = transfer_service.delete_file(file_id)
    return DeleteFileResponse(
        message="File deleted successfully",
        file=FileResponse.from_record(deleted.file),
        deleted_at=deleted.deleted_at,
    )
