"""
Utils package
"""
from .logger import get_logger
from .id_generator import generate_id, generate_order_number
from .time_utils import now, now_ms
from .validators import generate_slug, validate_uuid
from .response_utils import success_response
from .exceptions import (
    BusinessError,
    ValidationError,
    ConflictError,
    AuthenticationError,
    PermissionDeniedError,
    NotFoundError,
)

__all__ = [
    # Logging
    "get_logger",

    # ID Generation
    "generate_id",
    "generate_order_number",

    # Time
    "now",
    "now_ms",

    # Validation
    "generate_slug",
    "validate_uuid",

    # Response
    "success_response",

    # Exceptions
    "BusinessError",
    "ValidationError",
    "ConflictError",
    "AuthenticationError",
    "PermissionDeniedError",
    "NotFoundError",
]
