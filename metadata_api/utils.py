"""Utility helper functions for the metadata API."""

import time
import uuid
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import List, Optional, Tuple
from urllib.parse import quote

from common.constants import (
    DEFAULT_PAGE_SIZE,
    FOLDER_STORAGE_PREFIX,
    MAX_PAGE_SIZE,
    ROOT_FOLDER_ID,
    ROOT_STORAGE_PREFIX,
)


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_current_timestamp() -> str:
    """
    Get current timestamp in ISO format (UTC).

    Returns:
        Current timestamp as ISO format string
    """
    return utc_now().isoformat()


def to_utc_iso(value: datetime) -> str:
    """
    Normalize a datetime to a UTC ISO string comparable with stored timestamps.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_tags(tags_str: Optional[str]) -> List[str]:
    """
    Parse comma-separated tags string into list.

    Args:
        tags_str: Comma-separated tags (e.g., "tag1,tag2,tag3")

    Returns:
        List of trimmed tag strings
    """
    if not tags_str:
        return []
    return [tag.strip() for tag in tags_str.split(',') if tag.strip()]


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    """
    Trim, drop empties and de-duplicate tags, keeping first-seen order.
    """
    seen = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def is_root_folder(folder_id: Optional[str]) -> bool:
    return folder_id is None or folder_id == ROOT_FOLDER_ID


def get_file_extension(file_name: str) -> str:
    """
    Get file extension from a file name.

    Args:
        file_name: Original file name (e.g., 'Report.PDF')

    Returns:
        Lowercase extension without dot (e.g., 'pdf'), or '' if none
    """
    return PurePosixPath(file_name).suffix.lstrip('.').lower()


def build_storage_path(file_name: str, folder_id: Optional[str] = None) -> str:
    """
    Build a collision-resistant object key namespaced by folder.

    Examples:
        folders/<folder_id>/1718000000000-<uuid>.pdf
        root/1718000000000-<uuid>.txt

    Args:
        file_name: Original file name, used only for its extension
        folder_id: Folder the file is uploaded into, None for root

    Returns:
        Storage path (object key)
    """
    unique_name = f"{int(time.time() * 1000)}-{generate_uuid()}"
    extension = get_file_extension(file_name)
    if extension:
        unique_name = f"{unique_name}.{extension}"

    if folder_id is None:
        return f"{ROOT_STORAGE_PREFIX}/{unique_name}"
    return f"{FOLDER_STORAGE_PREFIX}/{folder_id}/{unique_name}"


def clamp_pagination(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """
    Clamp request paging parameters.

    Args:
        page: Requested 1-indexed page; values below 1 become 1
        limit: Requested page size; clamped to [1, MAX_PAGE_SIZE]

    Returns:
        Tuple of (page, limit)
    """
    page = 1 if page is None or page < 1 else page
    if limit is None:
        limit = DEFAULT_PAGE_SIZE
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    return page, limit


def content_disposition(file_name: str, as_attachment: bool) -> str:
    """
    Build a Content-Disposition header value for a download.
    """
    if not as_attachment:
        return "inline"
    fallback = file_name.encode("ascii", "replace").decode("ascii").replace('"', "'")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name)}"
