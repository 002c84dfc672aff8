# storefront/core/pipeline.py
"""Per-request plumbing shared by the API routes.

Guarded routes run, in order: rate limit, method check, authentication,
admin check. Routes then parse and validate their body, sanitise it, run
business checks and hit the database. Any failure short-circuits with an
``AppError`` which the exception handler turns into an error envelope.
"""
import time
from typing import Any, Dict, List, Optional, Sequence, Union

from fastapi import Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.requests import Request

from storefront.auth.provider import AuthProviderError
from storefront.auth.service import AuthService, AuthUser
from storefront.core.errors import (
    AuthenticationError,
    AuthorizationError,
    MethodNotAllowedError,
    RateLimitError,
    ValidationError,
    handle_api_error,
)
from storefront.core.logger import AppLogger, get_client_ip


READ = "read"
WRITE = "write"
DELETE = "delete"


def success_response(data: Any, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    body: Dict[str, Any] = {"success": True, "data": jsonable_encoder(data)}
    if message is not None:
        body["message"] = message
    return JSONResponse(body, status_code=status_code)


def error_response(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


def get_logger(request: Request) -> AppLogger:
    return request.app.state.logger


def get_auth_service(request: Request) -> AuthService:
    return AuthService(request.app.state.identity_provider)


def get_bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization")
    if not header or not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None


def parse_query_params(request: Request) -> Dict[str, Union[str, List[str]]]:
    params: Dict[str, Union[str, List[str]]] = {}
    for key, value in request.query_params.multi_items():
        if key not in params:
            params[key] = value
        elif isinstance(params[key], list):
            params[key].append(value)
        else:
            params[key] = [params[key], value]
    return params


def validate_method(request: Request, allowed_methods: Sequence[str]) -> None:
    if request.method not in allowed_methods:
        raise MethodNotAllowedError(request.method)


async def parse_json_body(request: Request, validator=None):
    """Decode the JSON body and, given a ``validate_*`` function, validate it."""
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("Invalid JSON in request body") from None

    if validator is None:
        return body

    result = validator(body)
    if not result.success:
        raise ValidationError(result.error)
    return result.data


async def require_auth(request: Request, auth: AuthService, logger: AppLogger) -> AuthUser:
    token = get_bearer_token(request)
    if token is None:
        logger.security_event("Missing bearer token", request)
        raise AuthenticationError("Missing or invalid authorization header")

    try:
        user = await auth.get_user(token)
    except AuthProviderError as exc:
        logger.error("Identity provider request failed", exc, request=request)
        raise AuthenticationError("Authentication failed") from exc

    if user is None:
        logger.security_event("Invalid or expired token", request)
        raise AuthenticationError("Invalid or expired token")
    return user


async def require_admin(request: Request, auth: AuthService, logger: AppLogger) -> AuthUser:
    user = await require_auth(request, auth, logger)
    if not auth.is_admin(user):
        logger.security_event("Admin access denied", request, {"user_id": user.id})
        raise AuthorizationError("Admin access required")
    return user


class RequestGuard:
    """Dependency enforcing rate limit, method, and auth for one route.

    ``tier`` picks the configured limit (read, write or delete);
    ``access`` is one of ``public``, ``user`` or ``admin``.
    """

    def __init__(self, tier: str, methods: Sequence[str], access: str = "admin"):
        self.tier = tier
        self.methods = list(methods)
        self.access = access

    def _limit(self, settings) -> int:
        return {
            READ: settings.RATE_LIMIT_READ_MAX,
            WRITE: settings.RATE_LIMIT_WRITE_MAX,
            DELETE: settings.RATE_LIMIT_DELETE_MAX,
        }[self.tier]

    async def __call__(self, request: Request, auth: AuthService = Depends(get_auth_service)) -> Optional[AuthUser]:
        settings = request.app.state.settings
        logger: AppLogger = request.app.state.logger

        max_requests = self._limit(settings)
        request.state.rate_limit = (max_requests, settings.RATE_LIMIT_WINDOW_MS)
        if not request.app.state.rate_limiter.hit(get_client_ip(request), max_requests, settings.RATE_LIMIT_WINDOW_MS):
            logger.security_event("Rate limit exceeded", request, {"tier": self.tier, "limit": max_requests})
            raise RateLimitError()

        validate_method(request, self.methods)

        if self.access == "public":
            return None
        if self.access == "admin":
            user = await require_admin(request, auth, logger)
        else:
            user = await require_auth(request, auth, logger)
        request.state.user = user
        return user


async def request_pipeline(request: Request, call_next):
    """Outer request wrapper: catch-all error envelope and one log line per API call."""
    request.state.started_at = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as exc:
        response = handle_api_error(exc, request)

    if request.url.path.startswith("/api/"):
        duration_ms = (time.perf_counter() - request.state.started_at) * 1000
        request.app.state.logger.api_request(request, response.status_code, duration_ms)
    return response
