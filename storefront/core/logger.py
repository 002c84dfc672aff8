# storefront/core/logger.py
"""Structured application logging.

One ``AppLogger`` is built per process in ``create_app`` and handed to
whoever needs it (routes through the ``get_logger`` dependency, services as
an argument). Every call builds a ``LogEntry`` and emits it through a stdlib
``logging.Logger`` whose handler renders colourised text in development and
single-line JSON everywhere else. Error entries in production are also
posted to an optional webhook sink.
"""
import asyncio
import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Set, TextIO

import httpx
from pydantic import BaseModel
from starlette.requests import Request

from storefront.core.config import Settings


LogSink = Callable[[Dict[str, Any]], Awaitable[None]]


class LogError(BaseModel):
    name: str
    message: str
    stack: Optional[str] = None


class LogRequest(BaseModel):
    method: str
    url: str
    ip: str
    user_agent: str
    user_id: Optional[str] = None


class LogEntry(BaseModel):
    timestamp: str
    level: str
    message: str
    context: Optional[Dict[str, Any]] = None
    error: Optional[LogError] = None
    request: Optional[LogRequest] = None


_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_COLORS = {
    "info": "\x1b[36m",
    "warn": "\x1b[33m",
    "error": "\x1b[31m",
    "debug": "\x1b[35m",
}
_RESET = "\x1b[0m"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _get_user_id(request: Request) -> Optional[str]:
    user = getattr(request.state, "user", None)
    if user is not None:
        return str(user.id)

    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return "authenticated"
    return None


class DevelopmentFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: LogEntry = record.entry
        color = _COLORS.get(entry.level, "")
        output = f"{color}[{entry.level.upper()}]{_RESET} {entry.timestamp} - {entry.message}"

        if entry.context:
            output += f"\n  Context: {json.dumps(entry.context, indent=2, default=str)}"
        if entry.request:
            output += f"\n  Request: {entry.request.method} {entry.request.url} ({entry.request.ip})"
        if entry.error:
            output += f"\n  Error: {entry.error.name}: {entry.error.message}"
            if entry.error.stack:
                output += f"\n  Stack: {entry.error.stack}"
        return output


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: LogEntry = record.entry
        return json.dumps(entry.model_dump(exclude_none=True), default=str)


class WebhookSink:
    """Posts a log entry as JSON to a webhook URL."""

    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout

    async def __call__(self, payload: Dict[str, Any]) -> None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.url, json=payload)
            response.raise_for_status()


class AppLogger:
    def __init__(
        self,
        settings: Settings,
        stream: Optional[TextIO] = None,
        sink: Optional[LogSink] = None,
        name: str = "storefront",
    ):
        self.is_development = settings.is_development
        self.is_production = settings.is_production

        if sink is None and settings.LOG_SINK_URL:
            sink = WebhookSink(settings.LOG_SINK_URL, settings.UPSTREAM_TIMEOUT_SECONDS)
        self.sink = sink
        self._pending: Set[asyncio.Task] = set()

        # owned by this instance, not registered with logging.getLogger
        self._logger = logging.Logger(name, logging.DEBUG if self.is_development else logging.INFO)
        self._logger.propagate = False

        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(DevelopmentFormatter() if self.is_development else JsonFormatter())
        self._logger.addHandler(handler)

        if settings.ERROR_TRACKING_DSN:
            self.warn(
                "ERROR_TRACKING_DSN is set but not supported; production errors only go to LOG_SINK_URL",
                {"sink_configured": self.sink is not None},
            )

    def _log(
        self,
        level: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        error: Optional[BaseException] = None,
        request: Optional[Request] = None,
    ) -> LogEntry:
        entry = LogEntry(
            timestamp=utc_timestamp(),
            level=level,
            message=message,
            context=context,
        )

        if error is not None:
            stack = None
            if self.is_development:
                stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
            entry.error = LogError(name=type(error).__name__, message=str(error), stack=stack)

        if request is not None:
            entry.request = LogRequest(
                method=request.method,
                url=str(request.url),
                ip=get_client_ip(request),
                user_agent=request.headers.get("user-agent", "unknown"),
                user_id=_get_user_id(request),
            )

        self._logger.log(_LEVELS[level], entry.message, extra={"entry": entry})

        if self.is_production and level == "error" and self.sink is not None:
            self._forward(entry)
        return entry

    def _forward(self, entry: LogEntry) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # no loop to schedule on outside a request
            return
        task = loop.create_task(self._deliver(entry.model_dump(exclude_none=True)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, payload: Dict[str, Any]) -> None:
        try:
            await self.sink(payload)
        except Exception as exc:
            self._logger.log(
                logging.ERROR,
                "Failed to send log to external service",
                extra={"entry": LogEntry(
                    timestamp=utc_timestamp(),
                    level="error",
                    message="Failed to send log to external service",
                    error=LogError(name=type(exc).__name__, message=str(exc)),
                )},
            )

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def info(self, message: str, context: Optional[Dict[str, Any]] = None, request: Optional[Request] = None):
        return self._log("info", message, context, None, request)

    def warn(self, message: str, context: Optional[Dict[str, Any]] = None, request: Optional[Request] = None):
        return self._log("warn", message, context, None, request)

    def error(
        self,
        message: str,
        error: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
        request: Optional[Request] = None,
    ):
        return self._log("error", message, context, error, request)

    def debug(self, message: str, context: Optional[Dict[str, Any]] = None, request: Optional[Request] = None):
        if not self.is_development:
            return None
        return self._log("debug", message, context, None, request)

    def api_request(self, request: Request, status: Optional[int] = None, duration_ms: Optional[float] = None):
        return self.info("API Request", {
            "method": request.method,
            "path": request.url.path,
            "status": status,
            "duration": f"{duration_ms:.0f}ms" if duration_ms is not None else None,
        }, request)

    def api_error(self, message: str, error: BaseException, request: Request, context: Optional[Dict[str, Any]] = None):
        return self.error(f"API Error: {message}", error, {
            **(context or {}),
            "method": request.method,
            "url": str(request.url),
        }, request)

    def auth_attempt(self, email: str, success: bool, request: Request, reason: Optional[str] = None):
        return self.info("Authentication Attempt", {
            "email": email,
            "success": success,
            "reason": reason,
            "ip": get_client_ip(request),
        }, request)

    def security_event(self, event: str, request: Request, context: Optional[Dict[str, Any]] = None):
        return self.warn(f"Security Event: {event}", {
            **(context or {}),
            "ip": get_client_ip(request),
            "user_agent": request.headers.get("user-agent"),
        }, request)

    def database_operation(
        self,
        operation: str,
        table: str,
        success: bool,
        duration_ms: Optional[float] = None,
        error: Optional[BaseException] = None,
    ):
        context = {
            "operation": operation,
            "table": table,
            "duration": f"{duration_ms:.0f}ms" if duration_ms is not None else None,
        }
        if success:
            return self.debug("Database Operation", context)
        return self.error(f"Database Operation Failed: {operation} on {table}", error, context)
