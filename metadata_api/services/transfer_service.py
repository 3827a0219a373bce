"""Upload/download coordination between the metadata store and the object store.

Each multi-step flow is a short saga with no cross-store transaction:

request_upload
    1. validate input (nothing written on failure)
    2. create the file record in status ``pending``
    3. pre-sign a PUT URL; on failure the record from step 2 is deleted

confirm_upload
    1. HEAD the object; absent objects leave the record untouched
    2. persist size, checksum (small objects only, cleared otherwise) and
       status ``confirmed``

delete_file
    1. delete the object; on failure the record is kept
    2. delete the record

A record stays ``pending`` until the client confirms. Nothing expires or
reaps abandoned uploads; the pre-signed URL lifetime is the only time bound.
"""

from typing import List, Optional
from urllib.parse import quote

from common.constants import (
    ALLOWED_MIME_TYPES,
    CHECKSUM_MAX_SIZE_BYTES,
    DOWNLOAD_URL_EXPIRES_SECONDS,
    MAX_UPLOAD_SIZE_BYTES,
    UPLOAD_URL_EXPIRES_SECONDS,
)
from common.logging_config import get_logger
from metadata_api.domain import (
    DeletedFile,
    DownloadLink,
    FileInfo,
    FileRecord,
    FileSearchFilters,
    FileStats,
    FileStatus,
    ObjectVerification,
    Page,
    UploadTicket,
)
from metadata_api.exceptions import NotFoundError, StorageAPIError, ValidationError
from metadata_api.object_store import ObjectStore
from metadata_api.services.file_service import FileService
from metadata_api.services.folder_service import FolderService
from metadata_api.utils import build_storage_path, clamp_pagination, content_disposition, get_current_timestamp, utc_now

logger = get_logger(__name__)


def is_allowed_mime_type(mime_type: str) -> bool:
    return mime_type in ALLOWED_MIME_TYPES


class TransferService:
    def __init__(
        self,
        file_service: FileService,
        folder_service: FolderService,
        object_store: ObjectStore,
        checksum_max_size: int = CHECKSUM_MAX_SIZE_BYTES
    ):
        self.file_service = file_service
        self.folder_service = folder_service
        self.object_store = object_store
        self.checksum_max_size = checksum_max_size

    def request_upload(
        self,
        file_name: str,
        mime_type: str,
        size_hint: Optional[int] = None,
        folder_id: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> UploadTicket:
        """
        Register a pending file and issue a pre-signed PUT URL for it.

        Args:
            file_name: Original file name
            mime_type: Declared content type, must be in ALLOWED_MIME_TYPES
            size_hint: Declared size in bytes, at most MAX_UPLOAD_SIZE_BYTES
            folder_id: Destination folder, None for root
            description: Optional description
            tags: Optional tags

        Returns:
            UploadTicket with the URL, the pending record and the headers the
            client must send with the PUT

        Raises:
            ValidationError: Missing name/type, disallowed type or oversize
            NotFoundError: folder_id does not resolve
        """
        if not file_name or not file_name.strip():
            raise ValidationError("fileName and fileType are required")
        if not mime_type:
            raise ValidationError("fileName and fileType are required")
        file_name = file_name.strip()

        if not is_allowed_mime_type(mime_type):
            logger.warning(f"Upload rejected: type {mime_type} not allowed [file_name={file_name}]")
            raise ValidationError(f"File type not allowed: {mime_type}")

        if size_hint is not None and size_hint < 0:
            raise ValidationError("fileSize cannot be negative")
        if size_hint is not None and size_hint > MAX_UPLOAD_SIZE_BYTES:
            logger.warning(f"Upload rejected: {size_hint} bytes exceeds limit [file_name={file_name}]")
            raise ValidationError(
                f"File size too large. Maximum allowed size is {MAX_UPLOAD_SIZE_BYTES // (1024 * 1024)}MB"
            )

        if folder_id is not None and not self.folder_service.exists(folder_id):
            logger.warning(f"Upload rejected: folder {folder_id} not found [file_name={file_name}]")
            raise NotFoundError(f"Folder with ID {folder_id} not found")

        storage_path = build_storage_path(file_name, folder_id)
        record = self.file_service.create(
            name=file_name,
            storage_path=storage_path,
            mime_type=mime_type,
            size=size_hint or 0,
            folder_id=folder_id,
            description=description,
            tags=tags,
            status=FileStatus.PENDING,
        )

        metadata = {
            "original-name": quote(file_name),
            "upload-timestamp": get_current_timestamp(),
        }
        try:
            upload_url = self.object_store.generate_upload_url(
                key=storage_path,
                content_type=mime_type,
                expires_in=UPLOAD_URL_EXPIRES_SECONDS,
                metadata=metadata,
            )
        except Exception:
            logger.error(f"Presign failed, removing pending record [file_id={record.file_id}]")
            try:
                self.file_service.delete(record.file_id)
            except Exception as cleanup_error:
                logger.error(
                    f"Failed to remove pending record [file_id={record.file_id}]: {cleanup_error}",
                    exc_info=True
                )
            raise

        headers = {"Content-Type": mime_type}
        headers.update({f"x-amz-meta-{name}": value for name, value in metadata.items()})

        logger.info(f"Upload URL issued [file_id={record.file_id}] key={storage_path}")
        return UploadTicket(
            upload_url=upload_url,
            file=record,
            expires_in=UPLOAD_URL_EXPIRES_SECONDS,
            max_file_size=MAX_UPLOAD_SIZE_BYTES,
            method="PUT",
            headers=headers,
        )

    def confirm_upload(self, file_id: str) -> FileRecord:
        """
        Reconcile a record with the object the client uploaded.

        Raises:
            NotFoundError: Unknown file id, or the object is not in the store yet
        """
        record = self.file_service.get_by_id(file_id)

        info = self.object_store.head_object(record.storage_path)
        if info is None:
            logger.warning(f"Confirm rejected: object not uploaded yet [file_id={file_id}]")
            raise NotFoundError(f"File {file_id} has not been uploaded to storage yet")

        changes = {"size": info.size, "status": FileStatus.CONFIRMED}
        if info.size < self.checksum_max_size:
            changes["checksum"] = self.object_store.compute_md5(record.storage_path)
        else:
            changes["checksum"] = None
            logger.info(f"Skipping checksum for large object [file_id={file_id}] size={info.size}")

        updated = self.file_service.update(file_id, changes)
        logger.info(f"Upload confirmed [file_id={file_id}] size={info.size}")
        return updated

    def get_download_url(self, file_id: str, as_attachment: bool = False) -> DownloadLink:
        """
        Pre-sign a GET URL. The object is not probed.
        """
        record = self.file_service.get_by_id(file_id)
        download_url = self.object_store.generate_download_url(
            key=record.storage_path,
            expires_in=DOWNLOAD_URL_EXPIRES_SECONDS,
            content_disposition=content_disposition(record.name, as_attachment),
            content_type=record.mime_type,
        )
        return DownloadLink(
            download_url=download_url,
            file=record,
            expires_in=DOWNLOAD_URL_EXPIRES_SECONDS,
            download_type="attachment" if as_attachment else "inline",
        )

    def delete_file(self, file_id: str) -> DeletedFile:
        """
        Delete the object, then the record.

        If the object store fails the record is kept, so the object can
        still be found and the delete retried.
        """
        record = self.file_service.get_by_id(file_id)

        self.object_store.delete_object(record.storage_path)
        deleted = self.file_service.delete(file_id)

        logger.info(f"File deleted from storage and metadata [file_id={file_id}]")
        return DeletedFile(file=deleted, deleted_at=utc_now())

    def get_file_info(self, file_id: str, include_folder: bool = False) -> FileInfo:
        """
        Return metadata plus an advisory existence probe.

        A failing probe is reported in the verification, never raised.
        """
        record = self.file_service.get_by_id(file_id, include_folder=include_folder)

        try:
            info = self.object_store.head_object(record.storage_path)
        except StorageAPIError as e:
            logger.warning(f"Storage probe failed [file_id={file_id}]: {e}")
            verification = ObjectVerification(exists=False, error=str(e))
        else:
            if info is None:
                verification = ObjectVerification(exists=False)
            else:
                verification = ObjectVerification(
                    exists=True,
                    size=info.size,
                    etag=info.etag,
                    last_modified=info.last_modified,
                    content_type=info.content_type,
                )

        return FileInfo(file=record, verification=verification)

    def list_files(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        folder_id: Optional[str] = None,
        mime_type: Optional[str] = None,
        search: Optional[str] = None,
        tags: Optional[List[str]] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Page[FileRecord]:
        """
        List files, newest first by default.

        page below 1 becomes 1; limit is clamped to [1, 100].
        """
        page, limit = clamp_pagination(page, limit)
        filters = FileSearchFilters(
            name=search or None,
            mime_type=mime_type or None,
            folder_id=folder_id or None,
            tags=list(tags or []),
        )
        return self.file_service.search(
            filters,
            page=page,
            limit=limit,
            sort_by=sort_by or "createdAt",
            sort_order=sort_order or "desc",
        )

    def get_stats(self, folder_id: Optional[str] = None) -> FileStats:
        return self.file_service.stats_by_folder(folder_id or None)
