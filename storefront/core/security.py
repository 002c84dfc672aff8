# storefront/core/security.py
from starlette.requests import Request
from starlette.responses import Response


BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def format_window(window_ms: int) -> str:
    seconds = window_ms // 1000
    if seconds and seconds % 3600 == 0:
        return f"{seconds // 3600}h"
    if seconds and seconds % 60 == 0:
        return f"{seconds // 60}m"
    return f"{seconds}s"


def rate_limit_headers(request: Request) -> dict:
    """Limit of the tier the route's guard applied, else the read tier."""
    settings = request.app.state.settings
    limit, window_ms = getattr(request.state, "rate_limit", None) or (
        settings.RATE_LIMIT_READ_MAX,
        settings.RATE_LIMIT_WINDOW_MS,
    )
    return {
        "X-RateLimit-Limit": str(limit),
        "X-RateLimit-Window": format_window(window_ms),
    }


def is_admin_path(path: str) -> bool:
    return path.startswith("/admin") or path.startswith("/api/admin")


async def security_headers(request: Request, call_next):
    path = request.url.path
    is_api = path.startswith("/api/")

    if is_api and request.method == "OPTIONS":
        response = Response(status_code=200)
    else:
        response = await call_next(request)

    response.headers.update(BASE_HEADERS)
    if is_api:
        response.headers.update(rate_limit_headers(request))
    if is_admin_path(path):
        response.headers.update(NO_CACHE_HEADERS)
    return response
