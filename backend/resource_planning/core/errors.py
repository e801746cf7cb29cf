"""Domain error taxonomy and its translation to HTTP responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from resource_planning.core.logging import get_logger

logger = get_logger(__name__)


class ResourcePlanningError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ResourcePlanningError):
    """Missing or out-of-range input; nothing was written."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ResourcePlanningError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ResourcePlanningError):
    """A unique email or code is already taken."""

    status_code = status.HTTP_409_CONFLICT


class StorageError(ResourcePlanningError):
    """The database rejected a query or a transaction failed to commit."""

    public_message = "Internal server error"


async def _handle_domain_error(request: Request, exc: ResourcePlanningError) -> JSONResponse:
    logger.info(
        "request_rejected",
        path=request.url.path,
        error=type(exc).__name__,
        detail=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def _handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("storage_failure", path=request.url.path, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": StorageError.public_message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorageError, _handle_storage_error)
    app.add_exception_handler(ResourcePlanningError, _handle_domain_error)
