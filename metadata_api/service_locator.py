"""Service wiring and FastAPI dependency providers.

Services are built once per application by `build_services` and kept on
`app.state`; route handlers receive them through `Depends`.
"""

from dataclasses import dataclass

from fastapi import Request

from metadata_api.database import Database
from metadata_api.object_store import ObjectStore
from metadata_api.repositories import FileRepository, FolderRepository, TagRepository
from metadata_api.services import FileService, FolderService, TransferService


@dataclass
class Services:
    folder_service: FolderService
    file_service: FileService
    transfer_service: TransferService


def build_services(db: Database, object_store: ObjectStore) -> Services:
    """
    Wire repositories and services around shared store handles.

    Args:
        db: Metadata store handle
        object_store: Object store handle

    Returns:
        Services container
    """
    tag_repo = TagRepository(db)
    folder_repo = FolderRepository(db)
    file_repo = FileRepository(db, tag_repo)

    folder_service = FolderService(db, folder_repo=folder_repo, file_repo=file_repo)
    file_service = FileService(db, file_repo=file_repo, folder_repo=folder_repo, tag_repo=tag_repo)
    transfer_service = TransferService(file_service, folder_service, object_store)

    return Services(
        folder_service=folder_service,
        file_service=file_service,
        transfer_service=transfer_service,
    )


def get_folder_service(request: Request) -> FolderService:
    return request.app.state.services.folder_service


def get_file_service(request: Request) -> FileService:
    return request.app.state.services.file_service


def get_transfer_service(request: Request) -> TransferService:
    return request.app.state.services.transfer_service
