"""
Error taxonomy for the adaptive decision engine.

Every error raised across the service boundary is an ``AdaptiveError`` carrying
a stable ``error_code`` so callers (and the HTTP layer) can branch on it:

- AdaptiveValidationError: missing or malformed input (user id, score)
- AdaptiveNotFoundError: the targeted user does not exist
- AdaptiveProcessingError: a required downstream dependency failed

Optional enrichment failures never surface here; they are logged and the
priority chains fall through to their next step.
"""

from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar
import functools
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AdaptiveError(Exception):
    """Base error for the adaptive domain."""

    error_code = "ADAPTIVE_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str = "Adaptive operation failed",
        *,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "detail": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class AdaptiveValidationError(AdaptiveError):
    error_code = "ADAPTIVE_VALIDATION_ERROR"
    status_code = 400


class AdaptiveNotFoundError(AdaptiveError):
    error_code = "ADAPTIVE_NOT_FOUND"
    status_code = 404


class AdaptiveProcessingError(AdaptiveError):
    error_code = "ADAPTIVE_PROCESSING_ERROR"
    status_code = 500


class CacheError(AdaptiveError):
    error_code = "CACHE_ERROR"
    status_code = 500


# ============================================================================
# ERROR MAPPING
# ============================================================================

def map_service_error(error: BaseException, operation: str) -> AdaptiveError:
    """
    Translate any exception into the adaptive error taxonomy.

    Args:
        error: Exception raised while running a service operation
        operation: Name of the operation (used in the message and details)

    Returns:
        The original error if it is already an AdaptiveError, otherwise an
        AdaptiveProcessingError wrapping it as its cause
    """
    if isinstance(error, AdaptiveError):
        return error

    return AdaptiveProcessingError(
        f"{operation} failed: {error}",
        details={"operation": operation, "error_type": type(error).__name__},
        cause=error
    )


def service_operation(operation: str):
    """
    Decorator applying ``map_service_error`` to a service coroutine.

    Usage:
        @service_operation("generate_challenge")
        async def generate_challenge(self, user_id, options=None): ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                mapped = map_service_error(e, operation)
                if mapped is e:
                    raise
                logger.error(f"❌ {operation} failed: {type(e).__name__}: {e}")
                raise mapped from e
        return wrapper
    return decorator
