"""
PostgreSQL configuration
"""
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field
from pathlib import Path

env_path = Path(__file__).parent.parent.parent / ".env"

class DatabaseConfig(BaseSettings):
    """Connection settings for the shop database"""

    # A full DSN wins over the individual fields
    url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    host: str = Field(default="localhost", alias="DB_HOST")
    port: int = Field(default=5432, alias="DB_PORT")
    database: str = Field(default="luxury_shop", alias="DB_NAME")
    username: str = Field(default="postgres", alias="DB_USER")
    password: str = Field(default="postgres", alias="DB_PASSWORD")

    # asyncpg pool
    pool_min_size: int = Field(default=2, alias="DB_POOL_MIN_SIZE")
    pool_max_size: int = Field(default=10, alias="DB_POOL_MAX_SIZE")
    command_timeout: float = Field(default=30.0, alias="DB_COMMAND_TIMEOUT")

    model_config = {
        "env_file": env_path,
        "env_file_encoding": "utf-8",
        "extra": "allow"
    }

    @property
    def database_url(self) -> str:
        if self.url:
            return self.url
        return f"postgresql://{self.username}:{self.password}@{self.host}:{self.port}/{self.database}"


database_config = DatabaseConfig()
