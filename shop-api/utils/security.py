"""
Password hashing and JWT helpers
"""
import hashlib
from datetime import timedelta
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from configs.auth_config import auth_config
from utils.time_utils import now

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Not a recognised hash
        return False

def create_access_token(user_id: str, username: str, email: str, role: str,
                        expires_delta: Optional[timedelta] = None) -> str:
    """Signed token carrying the user identity and role"""
    issued_at = now()
    expire = issued_at + (expires_delta or timedelta(days=auth_config.jwt_expires_days))
    payload = {
        "id": str(user_id),
        "username": username,
        "email": email,
        "role": role,
        "is_admin": role == "admin",
        "iat": issued_at,
        "exp": expire,
    }
    return jwt.encode(payload, auth_config.jwt_secret, algorithm=auth_config.jwt_algorithm)

def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Payload of a valid token, None when expired or tampered with"""
    try:
        return jwt.decode(token, auth_config.jwt_secret, algorithms=[auth_config.jwt_algorithm])
    except jwt.InvalidTokenError:
        return None

def extract_token_from_header(authorization: Optional[str]) -> Optional[str]:
    """'Bearer <token>' -> '<token>'"""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return None
    return parts[1]

def hash_reset_token(token: str) -> str:
    """Reset tokens are only ever stored as their SHA-256 digest"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
