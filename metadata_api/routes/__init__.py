"""API routes package."""

from metadata_api.routes.file_routes import router as file_router
from metadata_api.routes.folder_routes import router as folder_router
from metadata_api.routes.transfer_routes import router as transfer_router

__all__ = ["file_router", "folder_router", "transfer_router"]
