"""Entry point for the metadata API service."""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from metadata_api.config import Settings
from metadata_api.database import Database
from metadata_api.exceptions import (
    BackendError,
    ConflictError,
    NotFoundError,
    StorageAPIError,
    ValidationError,
)
from metadata_api.object_store import ObjectStore
from metadata_api.routes import file_router, folder_router, transfer_router
from metadata_api.service_locator import build_services

logger = setup_logging('metadata_api')


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the store handles on startup and release them on shutdown.
    """
    settings: Settings = app.state.settings
    logger.info("Metadata API starting up...")

    database = Database(settings.database_path)
    database.init_database()

    object_store = ObjectStore.from_settings(settings)
    try:
        if settings.create_bucket:
            object_store.ensure_bucket()
        app.state.database = database
        app.state.object_store = object_store
        app.state.services = build_services(database, object_store)
        logger.info(f"Services ready [bucket={settings.bucket_name}] [env={settings.environment}]")
        yield
    finally:
        logger.info("Metadata API shutting down...")
        object_store.close()
        database.close()


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', 'unknown')


def _error_response(request: Request, exc: StorageAPIError, include_details: bool = False) -> JSONResponse:
    content = {"error": str(exc), "code": exc.code}
    if include_details and not request.app.state.settings.is_production and exc.__cause__ is not None:
        content["details"] = repr(exc.__cause__)
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning(
        f"Validation error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return _error_response(request, exc)


async def not_found_handler(request: Request, exc: NotFoundError):
    logger.warning(
        f"Not found error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return _error_response(request, exc)


async def conflict_handler(request: Request, exc: ConflictError):
    logger.warning(
        f"Conflict error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return _error_response(request, exc)


async def backend_error_handler(request: Request, exc: BackendError):
    logger.error(
        f"Backend error: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(request, exc, include_details=True)


async def storage_api_error_handler(request: Request, exc: StorageAPIError):
    logger.error(
        f"Metadata API exception: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(request, exc, include_details=True)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()) if part != 'body')}: {error.get('msg')}"
        for error in errors
    )
    logger.warning(
        f"Request validation error: {message} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": message or "Invalid request",
            "code": ValidationError.code,
            "details": jsonable_encoder(errors),
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    content = {"error": "Internal server error", "code": StorageAPIError.code}
    if not request.app.state.settings.is_production:
        content["details"] = repr(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; read from the environment when omitted

    Returns:
        Configured application; store handles are opened by its lifespan
    """
    app = FastAPI(
        title="File Storage Metadata API",
        description="Folder and file metadata over SQLite with S3 pre-signed transfers",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or Settings.from_env()

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all HTTP requests and responses.
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()

        logger.info(
            f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
        )

        response = await call_next(request)

        duration = time.time() - start_time

        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
        )

        response.headers["X-Request-ID"] = request_id

        return response

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(ConflictError, conflict_handler)
    app.add_exception_handler(BackendError, backend_error_handler)
    app.add_exception_handler(StorageAPIError, storage_api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(transfer_router)
    app.include_router(folder_router)
    app.include_router(file_router)

    @app.get("/")
    async def root():
        """
        Health check endpoint.
        """
        return {
            "service": "File Storage Metadata API",
            "status": "running",
            "version": "1.0.0"
        }

    @app.get("/health")
    async def health_check():
        """
        Liveness endpoint for container healthchecks.
        """
        return {"status": "healthy", "service": "metadata_api"}

    @app.get("/ready")
    def ready_check(request: Request):
        """
        Readiness check endpoint.
        Verifies metadata database and object store connectivity.
        """
        try:
            request.app.state.database.ping()
            db_status = "ok"
        except StorageAPIError as e:
            db_status = f"error: {e}"

        try:
            request.app.state.object_store.ping()
            storage_status = "ok"
        except StorageAPIError as e:
            storage_status = f"error: {e}"

        ready = db_status == "ok" and storage_status == "ok"
        return JSONResponse(
            status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "ready" if ready else "not_ready",
                "database": db_status,
                "object_store": storage_status,
            },
        )

    return app


app = create_app()


def run() -> None:
    settings: Settings = app.state.settings
    uvicorn.run(
        "metadata_api.main:app",
        host=settings.host,
        port=settings.port,
        log_level="info"
    )


if __name__ == "__main__":
    run()
