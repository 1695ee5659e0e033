"""Operational errors and the FastAPI handlers that render them.

Learn: Services raise these instead of HTTPException so they stay
framework-agnostic (the CLI and tests call them directly). The handlers
below turn every failure into the uniform envelope:

    {"success": false, "message": "...", "errors": [...]}

Operational errors (AppError subclasses) are expected and client-facing:
their message goes out as-is. Anything else is a fault: logged in full
server-side, masked to a generic 500 for the client.
"""

from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from nexusadmin.middleware.security import apply_security_headers

logger = structlog.get_logger()

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."


class AppError(Exception):
    """Base class for anticipated, client-facing failures."""

    status_code = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[list[dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors
        self.is_operational = True


class BadRequestError(AppError):
    status_code = 400

    def __init__(self, message: str = "Bad request", errors=None):
        super().__init__(message, errors=errors)


class UnauthorizedError(AppError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized access"):
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = 403

    def __init__(self, message: str = "Access forbidden"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class ConflictError(AppError):
    status_code = 409

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message)


# ─── Envelope helpers ───────────────────────────────────


def success(message: str, data: Any = None) -> dict:
    """Build a success envelope. `data` is omitted when None."""
    body: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body


def _error_response(
    status_code: int,
    message: str,
    errors: Optional[list[dict[str, Any]]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body, headers=headers)


# ─── Handlers ───────────────────────────────────────────


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _error_response(exc.status_code, exc.message, exc.errors, headers)


def _validation_message(err: dict[str, Any]) -> str:
    # Custom validators raise ValueError; pydantic prefixes "Value error, "
    ctx_error = (err.get("ctx") or {}).get("error")
    if err.get("type") == "value_error" and ctx_error is not None:
        return str(ctx_error)
    return err.get("msg", "Invalid value")


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Schema-level failures: always 400, aggregated per field."""
    errors = []
    for err in exc.errors():
        # loc looks like ("body", "email") or ("path", "token")
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append(
            {
                "field": ".".join(loc) if loc else "body",
                "message": _validation_message(err),
            }
        )
    return _error_response(400, "Validation failed", errors)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Cannot find {request.method} {request.url.path} on this server"
    else:
        message = str(exc.detail)
    return _error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Non-operational fault: full detail in the log, nothing in the response."""
    logger.exception(
        "request.unhandled_error",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    errors = [{"type": type(exc).__name__}] if request.app.state.settings.debug else None

    # Rendered by ServerErrorMiddleware, outside the header middlewares
    request_id = structlog.contextvars.get_contextvars().get("request_id")
    headers = {"X-Request-ID": request_id} if request_id else None
    response = _error_response(500, GENERIC_ERROR_MESSAGE, errors, headers)
    return apply_security_headers(request, response)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
