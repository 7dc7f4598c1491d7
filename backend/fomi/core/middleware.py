"""
Request Middleware
Provides request_id injection, timing, and the error envelope every
endpoint answers with: ``{"error": message, "request_id": ...}``.
"""
import time
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from fomi.core.errors import FomiError
from fomi.core.logging import (
    get_request_id,
    generate_request_id,
    request_id_var,
    request_start_var,
    api_logger,
)

QUIET_PATHS = ('/health', '/readyz')


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', None) or get_request_id() or 'unknown'


def error_response(request: Request, status_code: int, message: str, **extra) -> JSONResponse:
    request_id = _request_id(request)
    content = {'error': message, 'request_id': request_id}
    content.update(extra)
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={'X-Request-ID': request_id},
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that:
    1. Generates/propagates request_id for tracing
    2. Tracks request timing
    3. Logs request/response summary
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get('X-Request-ID') or generate_request_id()

        request_id_var.set(request_id)
        request_start_var.set(time.time())
        request.state.request_id = request_id

        path = request.url.path
        quiet = path.endswith(QUIET_PATHS)
        if not quiet:
            api_logger.debug(
                f"{request.method} {path}",
                client=request.client.host if request.client else 'unknown',
            )

        try:
            response = await call_next(request)
            response.headers['X-Request-ID'] = request_id

            if not quiet:
                duration = round((time.time() - request_start_var.get()) * 1000, 2)
                log_level = 'info' if response.status_code < 400 else 'warning'
                getattr(api_logger, log_level)(
                    f"{request.method} {path} -> {response.status_code}",
                    duration_ms=duration,
                    status=response.status_code,
                )

            return response

        except Exception as e:
            duration = round((time.time() - request_start_var.get()) * 1000, 2)
            api_logger.error(
                f"{request.method} {path} -> 500 (unhandled)",
                error=e,
                duration_ms=duration,
            )
            return JSONResponse(
                status_code=500,
                content={'error': 'Internal server error', 'request_id': request_id},
                headers={'X-Request-ID': request_id},
            )
        finally:
            request_id_var.set(None)
            request_start_var.set(None)


async def fomi_exception_handler(request: Request, exc: FomiError) -> JSONResponse:
    """Domain errors carry their own status code."""
    log = api_logger.error if exc.status_code >= 500 else api_logger.warning
    log(
        f"{type(exc).__name__}: {exc.message}",
        path=str(request.url.path),
        status=exc.status_code,
    )
    extra = {}
    errors = getattr(exc, 'errors', None)
    if errors:
        extra['errors'] = errors
    return error_response(request, exc.status_code, exc.message, **extra)


async def http_exception_handler(request: Request, exc) -> JSONResponse:
    """
    Handler for HTTPException - adds request_id to error responses.
    """
    status_code = getattr(exc, 'status_code', 500)
    detail = getattr(exc, 'detail', 'Unknown error')

    if status_code >= 500:
        api_logger.error(f"HTTP {status_code}: {detail}", path=str(request.url.path), status=status_code)
    elif status_code >= 400:
        api_logger.warning(f"HTTP {status_code}: {detail}", path=str(request.url.path), status=status_code)

    return error_response(request, status_code, str(detail))


async def validation_exception_handler(request: Request, exc) -> JSONResponse:
    """
    Handler for RequestValidationError - returns structured validation errors.
    """
    errors = []
    for error in exc.errors():
        errors.append({
            'field': '.'.join(str(loc) for loc in error.get('loc', [])),
            'message': error.get('msg', 'Validation error'),
            'type': error.get('type', 'value_error'),
        })

    api_logger.warning(
        f"Validation error in {request.method} {request.url.path}",
        errors=errors,
    )
    return error_response(request, 422, 'Validation error', errors=errors)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    api_logger.error(
        f"Unhandled exception in {request.method} {request.url.path}",
        error=exc,
        path=str(request.url.path),
    )
    return error_response(request, 500, 'Internal server error')
