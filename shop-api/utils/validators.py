"""
Validation tools
"""
import re
import uuid
from typing import Optional
from utils.exceptions import ValidationError

_SLUG_INVALID_CHARS = re.compile(r"[^a-z0-9]+")

def generate_slug(name: str) -> str:
    """Lowercase, collapse every run of non-alphanumerics into '-', strip edge hyphens"""
    return _SLUG_INVALID_CHARS.sub("-", (name or "").lower()).strip("-")

def is_valid_uuid(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        uuid.UUID(str(value))
        return True
    except (ValueError, AttributeError, TypeError):
        return False

def validate_uuid(value: Optional[str], message: str = "Invalid ID format") -> str:
    """Return the canonical string form of a UUID or raise ValidationError"""
    if not is_valid_uuid(value):
        raise ValidationError(message)
    return str(uuid.UUID(str(value)))

def validate_not_empty(value: Optional[str], field_name: str = "Field"):
    """Validate non-empty"""
    if not value or not value.strip():
        raise ValidationError(f"{field_name} cannot be empty")
