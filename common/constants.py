"""Project-wide constants (upload limits, URL lifetimes, paging)."""

ALLOWED_MIME_TYPES: tuple = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "text/plain",
    "text/csv",
    "application/json",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)

MAX_UPLOAD_SIZE_BYTES: int = 50 * 1024 * 1024  # 50 MiB

# Objects at or above this size are not hashed on confirm
CHECKSUM_MAX_SIZE_BYTES: int = 10 * 1024 * 1024

UPLOAD_URL_EXPIRES_SECONDS: int = 900
DOWNLOAD_URL_EXPIRES_SECONDS: int = 3600

DEFAULT_PAGE_SIZE: int = 20
MAX_PAGE_SIZE: int = 100

# Sentinel accepted wherever a folder id filters results
ROOT_FOLDER_ID: str = "root"

ROOT_STORAGE_PREFIX: str = "root"
FOLDER_STORAGE_PREFIX: str = "folders"

CHECKSUM_READ_CHUNK_BYTES: int = 64 * 1024
