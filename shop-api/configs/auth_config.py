"""
Authentication configuration
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from pathlib import Path

env_path = Path(__file__).parent.parent.parent / ".env"

class AuthConfig(BaseSettings):
    """Token and password reset configuration"""

    jwt_secret: str = Field(default="change-me-in-production", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_expires_days: int = Field(default=30, alias="JWT_EXPIRES_DAYS")

    # Milliseconds
    password_reset_expiration: int = Field(default=3600000, alias="PASSWORD_RESET_EXPIRATION")
    password_reset_cooldown: int = Field(default=900000, alias="PASSWORD_RESET_COOLDOWN")

    frontend_url: str = Field(default="http://localhost:3000", alias="FRONTEND_URL")

    model_config = {
        "env_file": env_path,
        "env_file_encoding": "utf-8",
        "extra": "allow"
    }


auth_config = AuthConfig()
