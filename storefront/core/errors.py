# storefront/core/errors.py
import enum
import time
import traceback
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, NoResultFound
from starlette.requests import Request

from storefront.core.logger import AppLogger, utc_timestamp


T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    VALIDATION = "VALIDATION"
    AUTHENTICATION = "AUTHENTICATION"
    AUTHORIZATION = "AUTHORIZATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    RATE_LIMIT = "RATE_LIMIT"
    DATABASE = "DATABASE"


# kind -> (HTTP status, machine-readable code)
ERROR_KINDS: Dict[ErrorKind, tuple] = {
    ErrorKind.VALIDATION: (400, "VALIDATION_ERROR"),
    ErrorKind.AUTHENTICATION: (401, "AUTHENTICATION_ERROR"),
    ErrorKind.AUTHORIZATION: (403, "AUTHORIZATION_ERROR"),
    ErrorKind.NOT_FOUND: (404, "NOT_FOUND_ERROR"),
    ErrorKind.CONFLICT: (409, "CONFLICT_ERROR"),
    ErrorKind.METHOD_NOT_ALLOWED: (405, "METHOD_NOT_ALLOWED"),
    ErrorKind.RATE_LIMIT: (429, "RATE_LIMIT_ERROR"),
    ErrorKind.DATABASE: (500, "DATABASE_ERROR"),
}


class AppError(Exception):
    """An expected failure that maps onto an HTTP status and error code.

    ``is_operational`` is False for defects (schema mismatches, unexpected
    exceptions); their message is hidden from clients in production.
    """

    kind = ErrorKind.DATABASE

    def __init__(
        self,
        message: str,
        kind: Optional[ErrorKind] = None,
        is_operational: bool = True,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        if kind is not None:
            self.kind = kind
        self.message = message
        self.status_code, self.code = ERROR_KINDS[self.kind]
        self.is_operational = is_operational
        self.cause = cause

    def _key(self):
        return (self.kind, self.message, self.status_code, self.code, self.is_operational)

    def __eq__(self, other):
        if not isinstance(other, AppError):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code})"


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class AuthenticationError(AppError):
    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AuthorizationError(AppError):
    kind = ErrorKind.AUTHORIZATION

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT


class MethodNotAllowedError(AppError):
    kind = ErrorKind.METHOD_NOT_ALLOWED

    def __init__(self, method: str):
        super().__init__(f"Method {method} not allowed")


class RateLimitError(AppError):
    kind = ErrorKind.RATE_LIMIT

    def __init__(self, message: str = "Too many requests"):
        super().__init__(message)


class DatabaseError(AppError):
    kind = ErrorKind.DATABASE

    def __init__(self, message: str, cause: Optional[BaseException] = None, is_operational: bool = True):
        super().__init__(message, is_operational=is_operational, cause=cause)
        if cause is not None:
            self.__cause__ = cause


UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"
NOT_NULL_VIOLATION = "23502"
UNDEFINED_TABLE = "42P01"
UNDEFINED_COLUMN = "42703"
NO_ROWS = "PGRST116"

_SQLITE_CODES = {
    "SQLITE_CONSTRAINT_UNIQUE": UNIQUE_VIOLATION,
    "SQLITE_CONSTRAINT_PRIMARYKEY": UNIQUE_VIOLATION,
    "SQLITE_CONSTRAINT_FOREIGNKEY": FOREIGN_KEY_VIOLATION,
    "SQLITE_CONSTRAINT_CHECK": CHECK_VIOLATION,
    "SQLITE_CONSTRAINT_NOTNULL": NOT_NULL_VIOLATION,
}

_SQLITE_MESSAGES = {
    "UNIQUE constraint failed": UNIQUE_VIOLATION,
    "FOREIGN KEY constraint failed": FOREIGN_KEY_VIOLATION,
    "CHECK constraint failed": CHECK_VIOLATION,
    "NOT NULL constraint failed": NOT_NULL_VIOLATION,
    "no such table": UNDEFINED_TABLE,
    "no such column": UNDEFINED_COLUMN,
}


def _error_code(error: Any) -> Optional[str]:
    if isinstance(error, NoResultFound):
        return NO_ROWS

    if isinstance(error, dict):
        return error.get("code")

    # SQLAlchemy's own ``code`` attribute is a docs link id, not an SQLSTATE
    if isinstance(error, DBAPIError):
        candidates = [error.orig, getattr(error.orig, "__cause__", None)]
    else:
        candidates = [error]

    for candidate in candidates:
        if candidate is None:
            continue
        for attr in ("sqlstate", "pgcode", "code"):
            value = getattr(candidate, attr, None)
            if isinstance(value, str) and value:
                return value
        sqlite_name = getattr(candidate, "sqlite_errorname", None)
        if sqlite_name in _SQLITE_CODES:
            return _SQLITE_CODES[sqlite_name]
        text = str(candidate)
        for fragment, code in _SQLITE_MESSAGES.items():
            if fragment in text:
                return code
    return None


def _error_text(error: Any) -> Optional[str]:
    if isinstance(error, dict):
        return error.get("message")
    if isinstance(error, DBAPIError) and error.orig is not None:
        return str(error.orig)
    return getattr(error, "message", None) or (str(error) if isinstance(error, BaseException) else None)


def map_database_error(error: Any) -> AppError:
    """Translate a persistence-layer error into the application taxonomy."""
    code = _error_code(error)

    if code == UNIQUE_VIOLATION:
        return ConflictError("A record with this value already exists")
    if code == FOREIGN_KEY_VIOLATION:
        return ValidationError("Referenced record does not exist")
    if code == CHECK_VIOLATION:
        return ValidationError("Data violates database constraints")
    if code == NOT_NULL_VIOLATION:
        return ValidationError("Required field is missing")
    if code == UNDEFINED_TABLE:
        return DatabaseError("Database table not found", is_operational=False)
    if code == UNDEFINED_COLUMN:
        return DatabaseError("Database column not found", is_operational=False)
    if code == NO_ROWS:
        return NotFoundError("Record")

    cause = error if isinstance(error, BaseException) else None
    return DatabaseError(_error_text(error) or "Database operation failed", cause)


def get_error_message(error: Any) -> str:
    if isinstance(error, BaseException):
        return str(error)
    if isinstance(error, str):
        return error
    if isinstance(error, dict) and "message" in error:
        return str(error["message"])
    message = getattr(error, "message", None)
    if message is not None:
        return str(message)
    return "An unexpected error occurred"


def handle_api_error(
    error: BaseException,
    request: Request,
    context: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Log ``error`` and render the error envelope for ``request``."""
    settings = request.app.state.settings
    logger: AppLogger = request.app.state.logger

    logger.api_error("Unhandled API error", error, request, context)

    if isinstance(error, AppError):
        status_code, code = error.status_code, error.code
        expose = error.is_operational or not settings.is_production
    else:
        status_code, code = 500, "INTERNAL_SERVER_ERROR"
        expose = not settings.is_production

    body: Dict[str, Any] = {
        "message": get_error_message(error) if expose else "Internal server error",
        "code": code,
        "statusCode": status_code,
        "timestamp": utc_timestamp(),
        "path": request.url.path,
    }
    if not settings.is_production:
        trace_source = error.cause if isinstance(error, AppError) and error.cause else error
        body["details"] = {
            "stack": "".join(traceback.format_exception(type(trace_source), trace_source, trace_source.__traceback__)),
            "context": context,
        }

    return JSONResponse({"success": False, "error": body}, status_code=status_code)


async def measure_performance(
    logger: AppLogger,
    operation: str,
    fn: Callable[[], Awaitable[T]],
    context: Optional[Dict[str, Any]] = None,
) -> T:
    started = time.perf_counter()
    try:
        result = await fn()
    except Exception as exc:
        duration = (time.perf_counter() - started) * 1000
        logger.error(f"Performance: {operation} failed", exc, {"duration": f"{duration:.0f}ms", **(context or {})})
        raise
    duration = (time.perf_counter() - started) * 1000
    logger.debug(f"Performance: {operation}", {"duration": f"{duration:.0f}ms", **(context or {})})
    return result
