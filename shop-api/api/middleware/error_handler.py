"""
Error handling middleware
"""
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from utils.exceptions import (
    BusinessError,
    business_error_handler,
    validation_error_handler,
    http_error_handler,
    general_error_handler
)

def add_error_handlers(app: FastAPI):
    """Add error handlers"""

    # Business errors (NotFoundError, ValidationError, ...)
    app.add_exception_handler(BusinessError, business_error_handler)

    # Request validation
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # HTTP errors, including unmatched routes
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.add_exception_handler(Exception, general_error_handler)
