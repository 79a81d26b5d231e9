"""
Blog API Response Utilities
Standardized error format and exception handlers
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging_config import api_logger


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================
# PAGINATION
# ============================================================

def pagination(total: int, page: int, per_page: int) -> Dict[str, Any]:
    """Pagination block shared by the list endpoints."""
    return {
        "total": total,
        "page": page,
        "per_page": per_page,
        "total_pages": (total + per_page - 1) // per_page,
        "has_next": page * per_page < total,
        "has_prev": page > 1,
    }


# ============================================================
# ERROR RESPONSES
# ============================================================

class ApiException(HTTPException):
    """Custom API exception with error codes"""

    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str = None,
        details: Optional[Dict] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.error_code = error_code or f"ERR_{status_code}"
        self.details = details
        super().__init__(status_code=status_code, detail=message, headers=headers)


# Common exceptions
def bad_request(message: str, code: str = "BAD_REQUEST", details: Dict = None):
    raise ApiException(400, message, code, details)

def unauthorized(message: str = "Authentication required", code: str = "UNAUTHORIZED"):
    raise ApiException(401, message, code, headers={"WWW-Authenticate": "Bearer"})

def forbidden(message: str = "Access denied"):
    raise ApiException(403, message, "FORBIDDEN")

def not_found(resource: str = "Resource"):
    raise ApiException(404, f"{resource} not found", "NOT_FOUND")

def conflict(message: str = "Resource conflict", details: Dict = None):
    raise ApiException(409, message, "CONFLICT", details)


def _error_body(message: str, error_code: str, details: Optional[Dict] = None, **extra) -> Dict[str, Any]:
    body = {
        "ok": False,
        "message": message,
        "error_code": error_code,
        "timestamp": _timestamp(),
    }
    if details:
        body["details"] = details
    body.update(extra)
    return body


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

async def api_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render ApiException and plain HTTP errors in the standard format."""
    if isinstance(exc, ApiException):
        api_logger.warning(
            f"API Error: {exc.detail}",
            status_code=exc.status_code,
            error_code=exc.error_code,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.detail, exc.error_code, exc.details),
            headers=exc.headers,
        )

    message = exc.detail
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = "Route not found"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message, f"HTTP_{exc.status_code}"),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Turn pydantic request errors into per-field messages."""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({
            "field": ".".join(loc) or "body",
            "message": error.get("msg", "Invalid value"),
        })

    return JSONResponse(
        status_code=400,
        content=_error_body("Validation failed", "VALIDATION_ERROR", errors=errors),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log the fault, hide the stack trace."""
    api_logger.error(
        f"Unexpected error: {exc}",
        error=exc,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=500,
        content=_error_body("Something went wrong!", "INTERNAL_ERROR"),
    )
