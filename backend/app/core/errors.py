"""
Application error types and the shared HTTP error mapping.

Routes raise either ``HTTPException`` (like the rest of FastAPI) or one of the
``AppError`` subclasses below; ``register_exception_handlers`` turns both into
``{"error": "..."}`` JSON bodies with the matching status code.
"""

from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.dependencies.utils import get_flat_dependant
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from app.core.config import settings
from app.core.logging import get_logger
from app.core.security import decode_access_token

logger = get_logger("api")


class AppError(Exception):
    """Base class for errors that carry their own HTTP status."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: str = "INTERNAL_ERROR",
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class ValidationError(AppError):
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR")
        self.details = details


class AuthenticationError(AppError):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, "AUTHENTICATION_ERROR")


class AuthorizationError(AppError):
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status.HTTP_403_FORBIDDEN, "AUTHORIZATION_ERROR")


class NotFoundError(AppError):
    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found", status.HTTP_404_NOT_FOUND, "NOT_FOUND_ERROR")


class ConflictError(AppError):
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_409_CONFLICT, "CONFLICT_ERROR")


class RateLimitError(AppError):
    def __init__(self, message: str = "Rate limit exceeded"):
        super().__init__(message, status.HTTP_429_TOO_MANY_REQUESTS, "RATE_LIMIT_ERROR")


class ExternalServiceError(AppError):
    def __init__(self, service: str, message: str):
        super().__init__(
            f"{service} service error: {message}",
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "EXTERNAL_SERVICE_ERROR",
        )
        self.service = service


class AIFlowError(AppError):
    """Raised when a generative AI call returns no usable output."""

    def __init__(self, flow: str, message: str):
        super().__init__(f"{flow}: {message}", code="AI_FLOW_ERROR")
        self.flow = flow


# ============== Handlers ==============


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(
        f"Application error on {request.method} {request.url.path}: "
        f"{exc.message} ({exc.code}, {exc.status_code})"
    )
    body: dict[str, Any] = {"error": exc.message, "code": exc.code}
    if isinstance(exc, ValidationError) and exc.details is not None:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def route_requires_bearer(request: Request) -> bool:
    """True when the matched route declares a security dependency."""
    route = request.scope.get("route")
    if route is None:
        route = next(
            (r for r in request.app.router.routes if r.matches(request.scope)[0] == Match.FULL),
            None,
        )
    dependant = getattr(route, "dependant", None)
    if dependant is None:
        return False
    return bool(get_flat_dependant(dependant).security_requirements)


def has_valid_bearer(request: Request) -> bool:
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return False
    payload = decode_access_token(token.strip())
    return bool(payload and payload.get("sub"))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # The body is parsed before dependencies run; a protected route still answers 401 first
    if route_requires_bearer(request) and not has_valid_bearer(request):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    logger.warning(f"Validation failed on {request.method} {request.url.path}: {details}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "code": "VALIDATION_ERROR", "details": details},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")
    message = str(exc) if settings.DEBUG and str(exc) else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": message, "code": "INTERNAL_ERROR"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the shared error-to-status mapping on the application."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
