"""Custom exception classes for the metadata API."""


class StorageAPIError(Exception):
    """
    Base exception class for all metadata API errors.
    """
    status_code = 500
    code = "INTERNAL_ERROR"


class ValidationError(StorageAPIError):
    """
    Raised when input is missing or malformed, a MIME type is not allowed,
    or an upload exceeds the size limit.
    """
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(StorageAPIError):
    """
    Raised when a folder or file id does not resolve, or when an object is
    absent from the object store.
    """
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(StorageAPIError):
    """
    Raised for duplicate storage paths, duplicate sibling folder names and
    deletion of a non-empty folder without the recursive flag.
    """
    status_code = 409
    code = "CONFLICT"


class BackendError(StorageAPIError):
    """
    Raised when a storage backend fails for a reason the caller cannot fix.
    """
    status_code = 500
    code = "BACKEND_ERROR"


class MetadataStoreError(BackendError):
    """
    Raised when the relational metadata store fails unexpectedly.
    """
    code = "METADATA_STORE_ERROR"


class ObjectStoreError(BackendError):
    """
    Raised when the S3-compatible object store fails unexpectedly.
    """
    code = "OBJECT_STORE_ERROR"
