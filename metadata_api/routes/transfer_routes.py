"""Upload/download API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from metadata_api.schemas.common import ErrorResponse, PaginationInfo
from metadata_api.schemas.files import DeleteFileResponse, FileResponse, FileStatsResponse, ListFilesResponse
from metadata_api.schemas.transfers import (
    ConfirmUploadRequest,
    DownloadUrlResponse,
    FileInfoResponse,
    StatsResponse,
    StorageVerification,
    UploadInstructions,
    UploadUrlRequest,
    UploadUrlResponse,
)
from metadata_api.service_locator import get_transfer_service
from metadata_api.services.transfer_service import TransferService
from metadata_api.utils import parse_tags

router = APIRouter(
    prefix="/api/s3",
    tags=["Transfers"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


@router.post("/upload-url", response_model=UploadUrlResponse)
def get_upload_url(
    request: UploadUrlRequest,
    transfer_service: TransferService = Depends(get_transfer_service)
):
    """
    Register a pending file and return a pre-signed PUT URL.

    Parameters:
        - fileName: Original file name
        - fileType: MIME type (must be in the allow-list)
        - fileSize: Optional declared size in bytes (max 50 MiB)
        - folderId: Optional destination folder
        - description, tags: Optional metadata

    Returns:
        - uploadUrl, fileId, key, originalFileName, expiresIn, maxFileSize
        - instructions: method and headers to use for the PUT

    Raises:
        - 400: Missing name/type, type not allowed, file too large
        - 404: Folder not found
    """
    ticket = transfer_service.request_upload(
        file_name=request.file_name,
        mime_type=request.file_type,
        size_hint=request.file_size,
        folder_id=request.folder_id,
        description=request.description,
        tags=request.tags,
    )

    return UploadUrlResponse(
        upload_url=ticket.upload_url,
        file_id=ticket.file.file_id,
        key=ticket.file.storage_path,
        original_file_name=ticket.file.name,
        expires_in=ticket.expires_in,
        max_file_size=ticket.max_file_size,
        message="Upload URL generated successfully",
        instructions=UploadInstructions(
            method=ticket.method,
            headers=ticket.headers,
            note=(
                "Upload the file directly to the uploadUrl using a PUT request with the "
                "specified headers, then call /api/s3/confirm-upload with the fileId"
            ),
        ),
    )


@router.post("/confirm-upload", response_model=FileResponse)
def confirm_upload(
    request: ConfirmUploadRequest,
    transfer_service: TransferService = Depends(get_transfer_service)
):
    """
    Verify the uploaded object and persist its size and checksum.

    Raises:
        - 404: File record not found, or the object has not been uploaded yet
    """
    record = transfer_service.confirm_upload(request.file_id)
    return FileResponse.from_record(record)


@router.get("/download-url/{file_id}", response_model=DownloadUrlResponse)
def get_download_url(
    file_id: str,
    download: bool = Query(False, description="Force attachment instead of inline display"),
    transfer_service: TransferService = Depends(get_transfer_service)
):
    """
    Return a pre-signed GET URL valid for one hour.

    Raises:
        - 404: File record not found
    """
    link = transfer_service.get_download_url(file_id, as_attachment=download)
    return DownloadUrlResponse(
        download_url=link.download_url,
        file=FileResponse.from_record(link.file),
        expires_in=link.expires_in,
        download_type=link.download_type,
        message="Download URL generated successfully",
    )


@router.get("/info/{file_id}", response_model=FileInfoResponse)
def get_file_info(
    file_id: str,
    include_folder: bool = Query(False, alias="includeFolder"),
    transfer_service: TransferService = Depends(get_transfer_service)
):
    """
    Return file metadata and an advisory object store probe.

    Raises:
        - 404: File record not found
    """
    info = transfer_service.get_file_info(file_id, include_folder=include_folder)
    verification = info.verification
    return FileInfoResponse(
        file=FileResponse.from_record(info.file),
        s3_verification=StorageVerification(
            exists=verification.exists,
            size=verification.size,
            etag=verification.etag,
            last_modified=verification.last_modified,
            content_type=verification.content_type,
            error=verification.error,
        ),
    )


@router.get("/files", response_model=ListFilesResponse)
def list_files(
    page: int = Query(1),
    limit: int = Query(20),
    folder_id: Optional[str] = Query(None, alias="folderId", description="Folder id or 'root'"),
    mime_type: Optional[str] = Query(None, alias="mimeType"),
    search: Optional[str] = Query(None, description="Substring of the file name"),
    tags: Optional[str] = Query(None, description="Comma-separated tags (match any)"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    transfer_service: TransferService = Depends(get_transfer_service)
):
    """
    List file records with filtering, sorting and pagination.

    Raises:
        - 400: Unsupported sortBy/sortOrder
    """
    tag_list = parse_tags(tags)
    result = transfer_service.list_files(
        page=page,
        limit=limit,
        folder_id=folder_id,
        mime_type=mime_type,
        search=search,
        tags=tag_list,
        sort_by=sort_by,
        sort_order=sort_order,
    )

    return ListFilesResponse(
        files=[FileResponse.from_record(record) for record in result.data],
        pagination=PaginationInfo.from_page(result),
        filters={
            "folderId": folder_id,
            "mimeType": mime_type,
            "search": search,
            "tags": tag_list,
        },
        sort={"sortBy": sort_by, "sortOrder": sort_order.lower()},
    )


@router.delete("/delete/{file_id}", response_model=DeleteFileResponse)
def delete_file(
    file_id: str,
    transfer_service: TransferService = Depends(get_transfer_service)
):
    """
    Delete the object from storage, then its metadata record.

    Raises:
        - 404: File record not found
        - 500: Object store failure (the record is kept)
    """
    deleted = transfer_service.delete_file(file_id)
    return DeleteFileResponse(
        message="File deleted successfully",
        file=FileResponse.from_record(deleted.file),
        deleted_at=deleted.deleted_at,
    )


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    folder_id: Optional[str] = Query(None, alias="folderId", description="Folder id or 'root'"),
    transfer_service: TransferService = Depends(get_transfer_service)
):
    """
    Return file count, total size and MIME type distribution.
    """
    stats = transfer_service.get_stats(folder_id)
    return StatsResponse(statistics=FileStatsResponse.from_stats(stats))
