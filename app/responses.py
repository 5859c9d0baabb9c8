"""
Blogline API Response Utilities
Uniform {success, data, error, message} envelope and error taxonomy
"""
import math
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging_config import api_logger


# ============================================================
# SUCCESS RESPONSES
# ============================================================

def success(data: Any = None, message: Optional[str] = None, **extra) -> Dict:
    """Create success envelope"""
    response: Dict[str, Any] = {"success": True}

    if data is not None:
        response["data"] = data

    if message:
        response["message"] = message

    response.update(extra)
    return response


def created(data: Any, message: str = "Created successfully") -> JSONResponse:
    """201 Created response"""
    return JSONResponse(status_code=201, content=jsonable_encoder(success(data, message)))


def updated(data: Any = None, message: str = "Updated successfully") -> Dict:
    return success(data, message)


def deleted(message: str = "Deleted successfully") -> Dict:
    return success(message=message)


def paginated(items: List, total: int, page: int, limit: int, **extra) -> Dict:
    """Paginated list envelope"""
    return success(
        items,
        pagination={
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
        },
        **extra,
    )


# ============================================================
# ERROR RESPONSES
# ============================================================

class ApiException(HTTPException):
    """API exception carrying a machine-readable error code"""

    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.error_code = error_code or f"ERR_{status_code}"
        self.details = details
        super().__init__(status_code=status_code, detail=message, headers=headers)


def bad_request(message: str, code: str = "BAD_REQUEST", details: Optional[Dict] = None):
    raise ApiException(400, message, code, details)

def validation_error(message: str, details: Optional[Dict] = None):
    raise ApiException(400, message, "VALIDATION_ERROR", details)

def unauthorized(message: str = "Authentication required"):
    raise ApiException(401, message, "UNAUTHORIZED", headers={"WWW-Authenticate": "Bearer"})

def forbidden(message: str = "You do not have permission to modify this resource"):
    raise ApiException(403, message, "FORBIDDEN")

def not_found(resource: str = "Resource", id: Any = None):
    message = f"{resource} not found" if id is None else f"{resource} '{id}' not found"
    raise ApiException(404, message, "NOT_FOUND")

def conflict(message: str = "Resource conflict", details: Optional[Dict] = None):
    raise ApiException(409, message, "CONFLICT", details)

def upstream_failure(message: str = "The data store could not complete the request"):
    raise ApiException(500, message, "UPSTREAM_FAILURE")


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

def _error_body(message: str, error_code: str, details: Optional[Dict] = None) -> Dict:
    body = {
        "success": False,
        "error": message,
        "error_code": error_code,
    }
    if details:
        body["details"] = details
    return body


async def api_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for API errors"""

    if isinstance(exc, ApiException):
        log = api_logger.error if exc.status_code >= 500 else api_logger.warning
        log(
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

    if isinstance(exc, StarletteHTTPException):
        api_logger.warning(
            f"HTTP Error: {exc.detail}",
            status_code=exc.status_code,
            path=request.url.path,
        )
        code = "RATE_LIMITED" if exc.status_code == 429 else f"HTTP_{exc.status_code}"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail), code),
            headers=getattr(exc, "headers", None),
        )

    api_logger.error(
        f"Unexpected error: {exc}",
        error=exc,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=500,
        content=_error_body("An unexpected error occurred", "INTERNAL_ERROR"),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed input with the same envelope as other validation failures"""
    fields = {}
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
        fields[location or "request"] = err.get("msg", "Invalid value")

    api_logger.warning("Request validation failed", path=request.url.path, fields=fields)
    return JSONResponse(
        status_code=400,
        content=_error_body("Invalid request", "VALIDATION_ERROR", {"fields": fields}),
    )


# ============================================================
# VALIDATION HELPERS
# ============================================================

def require(value: Any, field_name: str):
    """Require a field to be present and non-blank"""
    if value is None or (isinstance(value, str) and not value.strip()):
        validation_error(f"{field_name} is required", {"field": field_name})
    return value
