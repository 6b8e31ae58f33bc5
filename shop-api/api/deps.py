"""
Authentication dependencies
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from data.models.user import User
from data.repositories.user_repository import user_repo
from utils.exceptions import AuthenticationError, PermissionDeniedError
from utils.logger import get_logger
from utils.security import decode_access_token
from utils.validators import is_valid_uuid

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> User:
    """Resolve the bearer token to an active user"""
    if not credentials or not credentials.credentials:
        raise AuthenticationError("Authentication required. No token provided.")

    payload = decode_access_token(credentials.credentials)
    if not payload or not is_valid_uuid(payload.get("id")):
        raise AuthenticationError("Invalid or expired token.")

    user = await user_repo.get_by_id(payload["id"])
    if not user:
        raise AuthenticationError("User not found or deleted.")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated.")
    return user

async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        logger.warning("Admin access denied", user_id=user.id, role=user.role)
        raise PermissionDeniedError("Access denied. Admin privileges required.")
    return user

async def require_admin_or_manager(user: User = Depends(get_current_user)) -> User:
    if user.role not in ("admin", "manager"):
        raise PermissionDeniedError("Access denied. Admin or manager privileges required.")
    return user
