"""
Exception handling
"""
from typing import Any, Optional
from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from utils.logger import get_logger
from utils.time_utils import now_ms

logger = get_logger("exceptions")

class BusinessError(Exception):
    """Base class for business errors"""
    error_type = "BUSINESS_ERROR"

    def __init__(self, message: str, status_code: int = 400, details: Optional[Any] = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

class ValidationError(BusinessError):
    """Invalid input"""
    error_type = "VALIDATION_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, 400, details)

class ConflictError(BusinessError):
    """Duplicate slug, email, username and the like"""
    error_type = "CONFLICT"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, 400, details)

class AuthenticationError(BusinessError):
    error_type = "UNAUTHORIZED"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, 401)

class PermissionDeniedError(BusinessError):
    error_type = "FORBIDDEN"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message, 403)

class NotFoundError(BusinessError):
    error_type = "NOT_FOUND"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, 404)

STATUS_ERROR_TYPES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    429: "TOO_MANY_REQUESTS",
    503: "SERVICE_UNAVAILABLE",
}

def error_body(status_code: int, error_type: str, message: str, details: Any = None) -> dict:
    """Build the error envelope shared by every handler"""
    return {
        "success": False,
        "error": {
            "code": status_code,
            "type": error_type,
            "message": message,
            "details": details
        },
        "timestamp": now_ms()
    }

async def business_error_handler(request: Request, exc: BusinessError):
    """Business error handler"""
    logger.warning("Business error", error=exc.message, path=request.url.path, status=exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.error_type, exc.message, exc.details)
    )

async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Request body/query validation handler"""
    details = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc), "message": err.get("msg")})

    logger.warning("Validation error", path=request.url.path, errors=len(details))
    return JSONResponse(
        status_code=400,
        content=error_body(400, "VALIDATION_ERROR", "Validation failed", details)
    )

async def http_error_handler(request: Request, exc: HTTPException):
    """HTTP error handler"""
    logger.warning("HTTP error", status=exc.status_code, detail=exc.detail, path=request.url.path)
    details = None
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Resource not found - {request.url.path}"
        details = {"path": request.url.path}
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(
            exc.status_code,
            STATUS_ERROR_TYPES.get(exc.status_code, "HTTP_ERROR"),
            message,
            details
        ),
        headers=getattr(exc, "headers", None)
    )

async def general_error_handler(request: Request, exc: Exception):
    """General error handler"""
    logger.error("Unexpected error", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body(500, "INTERNAL_SERVER_ERROR", "Internal server error")
    )
