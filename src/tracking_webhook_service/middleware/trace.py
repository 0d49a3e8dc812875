"""Middleware binding trace_id and request_id to every log line of a request."""
from __future__ import annotations

import time
from typing import Mapping
from uuid import UUID, uuid4

import structlog
from aiohttp import web

TRACE_ID_HEADER = "X-Trace-Id"
REQUEST_ID_HEADER = "X-Request-Id"

logger = structlog.get_logger(__name__)

# Never logged
SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "x-api-secret",
    "x-auth-token",
}


def is_valid_uuid(value: str) -> bool:
    try:
        UUID(value)
        return True
    except (ValueError, AttributeError):
        return False


def get_safe_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy headers, dropping the sensitive ones."""
    return {key: value for key, value in headers.items() if key.lower() not in SENSITIVE_HEADERS}


def _incoming_id(request: web.Request, header: str) -> str:
    value = request.headers.get(header)
    if not value or not is_valid_uuid(value):
        return str(uuid4())
    return value


def create_trace_middleware(service_name: str):
    """Create trace middleware with specified service name."""

    @web.middleware
    async def trace_middleware(request: web.Request, handler):
        start_time = time.monotonic()

        trace_id = _incoming_id(request, TRACE_ID_HEADER)
        request_id = _incoming_id(request, REQUEST_ID_HEADER)
        request["trace_id"] = trace_id
        request["request_id"] = request_id

        # Each request runs in its own task, so its contextvars are isolated
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            trace_id=trace_id,
            request_id=request_id,
            service=service_name,
            method=request.method,
            path=request.path,
        )

        logger.debug(
            "Incoming request",
            remote=request.remote,
            content_length=request.content_length,
            headers=get_safe_headers(request.headers),
        )

        try:
            response = await handler(request)
        except web.HTTPException as exc:
            logger.warning(
                "Request failed with HTTP exception",
                status_code=exc.status_code,
                duration_ms=round((time.monotonic() - start_time) * 1000, 2),
                error=exc.text,
            )
            exc.headers[TRACE_ID_HEADER] = trace_id
            exc.headers[REQUEST_ID_HEADER] = request_id
            raise
        except Exception as exc:
            logger.error(
                "Request failed with exception",
                duration_ms=round((time.monotonic() - start_time) * 1000, 2),
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise
        finally:
            structlog.contextvars.clear_contextvars()

        duration_ms = round((time.monotonic() - start_time) * 1000, 2)
        log = logger.warning if response.status >= 400 else logger.info
        log(
            "Request completed",
            method=request.method,
            path=request.path,
            status_code=response.status,
            duration_ms=duration_ms,
            trace_id=trace_id,
            request_id=request_id,
        )

        response.headers[TRACE_ID_HEADER] = trace_id
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    return trace_middleware
