"""
Error taxonomy and the FastAPI handlers that render it.

Every failure leaves the API as ``{"success": false, "error": ..., "message": ...}``.
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from src.logger import get_logger

logger = get_logger("errors")


class TetherError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"success": False, "error": self.error, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(TetherError):
    """Malformed input."""

    status_code = 400
    error = "Validation error"


class InvalidStateTransition(TetherError):
    """Link lifecycle violation."""

    status_code = 400
    error = "Invalid status"

    def __init__(self, action: str, current: str, allowed: List[str]):
        allowed_text = " or ".join(allowed) if allowed else "no state"
        super().__init__(
            f"Meeting cannot be {action} from status {current}; "
            f"allowed only from {allowed_text}"
        )
        self.action = action
        self.current = current
        self.allowed = allowed


class UnauthorizedError(TetherError):
    status_code = 401
    error = "Unauthorized"


class AuthorizationError(TetherError):
    """Authenticated, but not allowed to touch the resource."""

    status_code = 403
    error = "Access denied"


class NotFoundError(TetherError):
    status_code = 404
    error = "Not found"

    def __init__(self, resource: str, message: Optional[str] = None):
        super().__init__(message or f"The requested {resource.lower()} does not exist")
        self.error = f"{resource} not found"


class ConflictError(TetherError):
    status_code = 409
    error = "Conflict"


class UpstreamError(TetherError):
    """Identity verification or summarization service failure."""

    status_code = 502
    error = "Upstream service error"


def _field_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error-envelope handlers on the application."""

    @app.exception_handler(TetherError)
    async def handle_tether_error(request: Request, exc: TetherError):
        if exc.status_code >= 500:
            logger.error(f"{exc.error}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = _field_errors(exc)
        message = details[0]["message"] if details else "Invalid request"
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Validation error",
                "message": message,
                "details": details,
            },
        )

    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail), "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Something went wrong!",
                "message": "Internal server error",
            },
        )
