from fastapi import Request, status
from fastapi.responses import JSONResponse
import logging
import traceback

from chatty.core.config import settings

logger = logging.getLogger(__name__)

class ServiceError(Exception):
    """Unexpected failure inside a request handler, reported as a 500."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

def error_body(message: str, exc: BaseException | None = None) -> dict:
    body = {"detail": message}
    # Diagnostic detail is only exposed outside production
    if exc is not None and not settings.is_production:
        body["error"] = str(exc)
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body

async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    cause = exc.__cause__ or exc
    logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({cause!r})")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, cause))

async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Something went wrong!", exc),
    )
