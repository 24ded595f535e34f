"""
Error handling for the adaptive API.

Adaptive errors map to their HTTP status; anything else that escapes a route
is logged with its traceback and returned as a 500.
"""
import logging
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.core.errors import AdaptiveError

logger = logging.getLogger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Catch-all for unhandled exceptions, logging route and traceback.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                f"💥 Unhandled exception on {request.method} {request.url.path}: "
                f"{type(e).__name__}: {e}"
            )

            content = {"detail": "Internal server error"}
            if not settings.is_production:
                content["detail"] = f"Internal server error: {str(e)}"
                content["type"] = type(e).__name__
            return JSONResponse(status_code=500, content=content)


async def adaptive_error_handler(request: Request, exc: AdaptiveError):
    """
    Translate AdaptiveError subclasses into JSON responses.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"🚨 {exc.error_code} on {request.method} {request.url.path}: "
        f"{exc.message} {exc.details or ''}"
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Custom handler for 422 validation errors to provide detailed logging.
    """
    for error in exc.errors():
        logger.warning(
            f"🚨 422 on {request.method} {request.url.path}: "
            f"{' -> '.join(str(loc) for loc in error['loc'])}: {error['msg']} ({error['type']})"
        )

    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors())}
    )


def setup_error_middleware(app):
    """
    Add error handling middleware and exception handlers to the FastAPI app.
    """
    app.add_middleware(ErrorHandlingMiddleware)

    app.add_exception_handler(AdaptiveError, adaptive_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    logger.info("🛡️  Error handlers enabled")
