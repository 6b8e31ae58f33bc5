"""
Configuration package
"""
from .settings import settings
from .database_config import database_config
from .auth_config import auth_config
from .email_config import email_config

__all__ = [
    "settings",
    "database_config",
    "auth_config",
    "email_config",
]
