"""
Email configuration
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional
from pathlib import Path

env_path = Path(__file__).parent.parent.parent / ".env"

class EmailConfig(BaseSettings):
    """SMTP configuration"""

    enabled: bool = Field(default=True, alias="EMAIL_ENABLED")
    host: str = Field(default="localhost", alias="EMAIL_HOST")
    port: int = Field(default=1025, alias="EMAIL_PORT")
    secure: bool = Field(default=False, alias="EMAIL_SECURE")
    user: Optional[str] = Field(default=None, alias="EMAIL_USER")
    password: Optional[str] = Field(default=None, alias="EMAIL_PASS")
    sender: str = Field(default="Luxury Shop <noreply@luxuryshop.local>", alias="EMAIL_FROM")
    timeout: int = Field(default=10, alias="EMAIL_TIMEOUT")

    model_config = {
        "env_file": env_path,
        "env_file_encoding": "utf-8",
        "extra": "allow"
    }


email_config = EmailConfig()
