"""Domain objects shared by repositories, services and routes."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class FileStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


@dataclass
class Folder:
    folder_id: str
    name: str
    description: Optional[str]
    parent_id: Optional[str]
    created_at: datetime
    updated_at: datetime
    children: Optional[List["Folder"]] = None
    files: Optional[List["FileRecord"]] = None
    parent: Optional["Folder"] = None


@dataclass
class FileRecord:
    file_id: str
    name: str
    storage_path: str
    mime_type: str
    size: int
    checksum: Optional[str]
    folder_id: Optional[str]
    description: Optional[str]
    status: FileStatus
    created_at: datetime
    updated_at: datetime
    tags: List[str] = field(default_factory=list)
    folder: Optional[Folder] = None


@dataclass
class FileSearchFilters:
    name: Optional[str] = None
    mime_type: Optional[str] = None
    folder_id: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    min_size: Optional[int] = None
    max_size: Optional[int] = None
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None


@dataclass
class Page(Generic[T]):
    """
    One page of a paginated query.

    Pages are 1-indexed. A page past the end carries no data and reports
    has_next=False.
    """
    data: List[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page * self.limit < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1


@dataclass
class MimeTypeStats:
    mime_type: str
    count: int
    total_size: int


@dataclass
class FileStats:
    total_files: int
    total_size: int
    mime_type_distribution: List[MimeTypeStats]


@dataclass
class ObjectInfo:
    """Object metadata reported by a HEAD request against the object store."""
    key: str
    size: int
    etag: Optional[str]
    last_modified: Optional[datetime]
    content_type: Optional[str]
    metadata: dict = field(default_factory=dict)


@dataclass
class ObjectVerification:
    exists: bool
    size: Optional[int] = None
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None
    content_type: Optional[str] = None
    error: Optional[str] = None


@dataclass
class UploadTicket:
    upload_url: str
    file: FileRecord
    expires_in: int
    max_file_size: int
    method: str
    headers: dict


@dataclass
class DownloadLink:
    download_url: str
    file: FileRecord
    expires_in: int
    download_type: str


@dataclass
class FileInfo:
    file: FileRecord
    verification: ObjectVerification


@dataclass
class DeletedFile:
    file: FileRecord
    deleted_at: datetime
