"""Folder API routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from metadata_api.schemas.common import ErrorResponse
from metadata_api.schemas.files import FileResponse
from metadata_api.schemas.folders import (
    CreateFolderRequest,
    DeleteFolderResponse,
    FolderResponse,
    FolderSearchResponse,
    UpdateFolderRequest,
)
from metadata_api.service_locator import get_file_service, get_folder_service
from metadata_api.services.file_service import FileService
from metadata_api.services.folder_service import FolderService
from metadata_api.utils import clamp_pagination

router = APIRouter(
    prefix="/api/storage/folders",
    tags=["Folders"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)


@router.post("", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
def create_folder(
    request: CreateFolderRequest,
    folder_service: FolderService = Depends(get_folder_service)
):
    """
    Create a folder at root or under a parent.

    Raises:
        - 400: Empty name
        - 404: Parent folder not found
        - 409: A sibling folder already has this name
    """
    folder = folder_service.create(
        name=request.name,
        description=request.description,
        parent_id=request.parent_id,
    )
    return FolderResponse.from_folder(folder)


@router.get("", response_model=List[FolderResponse], response_model_exclude_unset=True)
def list_root_folders(
    include_children: bool = Query(False, alias="includeChildren"),
    include_files: bool = Query(False, alias="includeFiles"),
    folder_service: FolderService = Depends(get_folder_service)
):
    """
    List folders without a parent, ordered by name.
    """
    folders = folder_service.list_roots(include_children=include_children, include_files=include_files)
    return [FolderResponse.from_folder(folder) for folder in folders]


@router.get("/search", response_model=FolderSearchResponse)
def search_folders(
    name: Optional[str] = Query(None, description="Case-insensitive substring of the name"),
    parent_id: Optional[str] = Query(None, alias="parentId", description="Parent folder id or 'root'"),
    page: int = Query(1),
    limit: int = Query(20),
    folder_service: FolderService = Depends(get_folder_service)
):
    """
    Search folders by name and parent with pagination.
    """
    page, limit = clamp_pagination(page, limit)
    result = folder_service.search(name=name, parent_id=parent_id, page=page, limit=limit)
    return FolderSearchResponse(
        data=[FolderResponse.from_folder(folder) for folder in result.data],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
        has_next=result.has_next,
        has_prev=result.has_prev,
    )


@router.get("/{folder_id}/files", response_model=List[FileResponse])
def list_folder_files(
    folder_id: str,
    include_folder: bool = Query(False, alias="includeFolder"),
    file_service: FileService = Depends(get_file_service)
):
    """
    List files directly inside a folder; use 'root' for root-level files.

    Raises:
        - 404: Folder not found
    """
    records = file_service.list_by_folder(folder_id, include_folder=include_folder)
    return [FileResponse.from_record(record) for record in records]


@router.get("/{folder_id}", response_model=FolderResponse, response_model_exclude_unset=True)
def get_folder(
    folder_id: str,
    include_children: bool = Query(False, alias="includeChildren"),
    include_files: bool = Query(False, alias="includeFiles"),
    include_parent: bool = Query(False, alias="includeParent"),
    folder_service: FolderService = Depends(get_folder_service)
):
    """
    Get a folder with optional children, files and parent.

    Raises:
        - 404: Folder not found
    """
    folder = folder_service.get_by_id(
        folder_id,
        include_children=include_children,
        include_files=include_files,
        include_parent=include_parent,
    )
    return FolderResponse.from_folder(folder)


@router.put("/{folder_id}", response_model=FolderResponse)
def update_folder(
    folder_id: str,
    request: UpdateFolderRequest,
    folder_service: FolderService = Depends(get_folder_service)
):
    """
    Rename, describe or move a folder. Only fields present in the body change.

    Raises:
        - 400: Empty name, or moving a folder into its own subtree
        - 404: Folder or new parent not found
        - 409: Destination already has a folder with this name
    """
    changes = {name: getattr(request, name) for name in request.model_fields_set}
    folder = folder_service.update(folder_id, changes)
    return FolderResponse.from_folder(folder)


@router.delete("/{folder_id}", response_model=DeleteFolderResponse)
def delete_folder(
    folder_id: str,
    recursive: bool = Query(False),
    folder_service: FolderService = Depends(get_folder_service)
):
    """
    Delete a folder. Non-empty folders need recursive=true; files inside
    deleted folders are moved to root.

    Raises:
        - 404: Folder not found
        - 409: Folder is not empty and recursive is false
    """
    folder = folder_service.delete(folder_id, recursive=recursive)
    return DeleteFolderResponse(
        message="Folder deleted successfully",
        folder=FolderResponse.from_folder(folder),
        recursive=recursive,
    )
