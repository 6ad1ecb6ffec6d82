"""
Error taxonomy shared by the service and router layers.

Services raise ``ApiError`` (or let lower-level exceptions escape); the
``service_method`` decorator re-raises everything as an ``ApiError`` tagged
with the failing method name, and ``main`` installs a handler that turns it
into a JSON response.
"""
import functools
import logging

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error that maps directly onto an HTTP status code."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @classmethod
    def bad_request(cls, message: str = "Bad request") -> "ApiError":
        return cls(400, message)

    @classmethod
    def not_found(cls, message: str = "Not found") -> "ApiError":
        return cls(404, message)

    @classmethod
    def conflict(cls, message: str = "Conflict") -> "ApiError":
        return cls(409, message)

    @classmethod
    def internal(cls, message: str = "Internal server error") -> "ApiError":
        return cls(500, message)

    def __repr__(self) -> str:
        return f"ApiError({self.status_code}, {self.message!r})"


def wrap_error(context: str, exc: BaseException) -> ApiError:
    """
    Return an ``ApiError`` describing *exc*, prefixed with *context*.

    Known kinds are preserved, integrity violations become 409 and
    everything else is reported as an internal error.
    """
    if isinstance(exc, ApiError):
        return ApiError(exc.status_code, f"{context}: {exc.message}")
    if isinstance(exc, IntegrityError):
        return ApiError.conflict(f"{context}: {exc.orig}")
    logger.exception("%s: unexpected error", context)
    return ApiError.internal(f"{context}: {exc}")


def service_method(func):
    """Re-raise any exception from the wrapped coroutine as an ``ApiError``."""
    context = f"Service error: Method - {func.__name__}"

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except Exception as exc:
            raise wrap_error(context, exc) from exc

    return wrapper
